"""Document numbering API endpoints."""
from fastapi import APIRouter

from gstcore.api.deps import DB
from gstcore.schemas.sequence import SequenceInitialize, SequenceNumberResponse, SequenceSettingResponse
from gstcore.services.document_sequence_service import DocumentSequenceService

router = APIRouter()


@router.post("/{document_type}/next", response_model=SequenceNumberResponse)
async def issue_next_number(
    document_type: str,
    db: DB,
):
    """Reserve the next number for a document type."""
    service = DocumentSequenceService(db)
    number = await service.get_next_number(document_type)
    return SequenceNumberResponse(document_type=document_type.upper(), document_number=number)


@router.get("/{document_type}/preview", response_model=SequenceNumberResponse)
async def preview_next_number(
    document_type: str,
    db: DB,
):
    """Show the next number without reserving it."""
    service = DocumentSequenceService(db)
    number = await service.preview_next_number(document_type)
    return SequenceNumberResponse(document_type=document_type.upper(), document_number=number)


@router.put("/{document_type}", response_model=SequenceSettingResponse)
async def initialize_sequence(
    document_type: str,
    sequence_in: SequenceInitialize,
    db: DB,
):
    """Create or reset the numbering counter of a document type."""
    service = DocumentSequenceService(db)
    return await service.initialize_sequence(document_type, **sequence_in.model_dump())
