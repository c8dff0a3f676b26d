from fastapi import APIRouter

from gstcore.api.v1.endpoints import (
    documents,
    payments,
    sequences,
)


# Create main API router
api_router = APIRouter(prefix="/api/v1")

# ==================== Documents ====================
api_router.include_router(
    documents.router,
    prefix="/documents",
    tags=["Documents"]
)

# ==================== Payments ====================
api_router.include_router(
    payments.router,
    prefix="/payments",
    tags=["Payments"]
)

# ==================== Document Numbering ====================
api_router.include_router(
    sequences.router,
    prefix="/sequences",
    tags=["Document Numbering"]
)
