from pydantic import Field, field_validator
from typing import Optional
from datetime import datetime
from models.account import AccountType
from schemas.common import CamelModel


class AccountBase(CamelModel):
    code: str = Field(..., min_length=1, max_length=20, pattern=r"^[0-9A-Z]+$")
    name: str = Field(..., min_length=2, max_length=200)
    type: AccountType
    parent_id: Optional[str] = None
    currency: str = Field("EUR", min_length=3, max_length=3)

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v):
        return v.upper()


class AccountCreate(AccountBase):
    pass


class AccountUpdate(CamelModel):
    # type is deliberately absent: it is fixed once the account exists
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    active: Optional[bool] = None


class AccountFilter(CamelModel):
    type: Optional[AccountType] = None
    active: Optional[bool] = None


class Account(AccountBase):
    id: str
    organization_id: str
    active: bool
    system: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
