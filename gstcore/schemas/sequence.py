"""Document number sequence schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from gstcore.schemas.base import BaseUpdateSchema, BaseResponseSchema


class SequenceNumberResponse(BaseModel):
    document_type: str
    document_number: str


class SequenceInitialize(BaseUpdateSchema):
    next_number: int = Field(1, ge=1)
    prefix: Optional[str] = Field(None, max_length=20)
    separator: Optional[str] = Field(None, max_length=5)
    padding_digits: Optional[int] = Field(None, ge=1, le=12)


class SequenceSettingResponse(BaseResponseSchema):
    document_type: str
    prefix: str
    separator: str
    padding_digits: int
    next_number: int
    updated_at: datetime
