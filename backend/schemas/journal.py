from pydantic import Field, field_validator
from typing import Optional
from datetime import datetime
from models.journal import JournalType
from schemas.common import CamelModel


class JournalBase(CamelModel):
    code: str = Field(..., min_length=1, max_length=10)
    name: str = Field(..., min_length=2, max_length=100)
    type: JournalType

    @field_validator('code')
    @classmethod
    def validate_code(cls, v):
        v = v.strip().upper()
        if not v.isalpha() or not v.isascii():
            raise ValueError("code must contain only letters A-Z")
        return v


class JournalCreate(JournalBase):
    pass


class JournalUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    active: Optional[bool] = None


class JournalFilter(CamelModel):
    type: Optional[JournalType] = None
    active: Optional[bool] = None


class Journal(JournalBase):
    id: str
    organization_id: str
    active: bool
    created_at: datetime
