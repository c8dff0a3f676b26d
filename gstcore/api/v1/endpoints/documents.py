"""Document API endpoints: quotations, invoices, purchase orders, bills and notes."""
from uuid import UUID

from fastapi import APIRouter, status

from gstcore.api.deps import DB
from gstcore.schemas.document import DocumentCreate, DocumentUpdate, DocumentResponse
from gstcore.services.document_service import DocumentService

router = APIRouter()


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    document_in: DocumentCreate,
    db: DB,
):
    """
    Create a document.

    Items, GST split and totals are computed server-side; the document
    number is issued from the type's sequence unless one is supplied.
    """
    service = DocumentService(db)
    return await service.create_document(document_in.model_dump())


@router.put("/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: UUID,
    document_in: DocumentUpdate,
    db: DB,
):
    """Replace a document's items and recompute its totals. Paid and cancelled documents are read-only."""
    service = DocumentService(db)
    return await service.update_document(document_id, document_in.model_dump(exclude_unset=True))


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: UUID,
    db: DB,
):
    """Get a document with its items."""
    service = DocumentService(db)
    return await service.get_document(document_id)
