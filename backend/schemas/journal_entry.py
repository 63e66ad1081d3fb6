from pydantic import Field, model_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from models.journal_entry import EntryStatus
from models.journal import JournalType
from schemas.common import CamelModel, Money
from utils.money import is_balanced


class JournalEntryLineBase(CamelModel):
    account_id: str
    label: Optional[str] = Field(None, max_length=500)
    debit: Decimal = Field(Decimal("0"), ge=0, max_digits=18, decimal_places=2)
    credit: Decimal = Field(Decimal("0"), ge=0, max_digits=18, decimal_places=2)


class JournalEntryLineCreate(JournalEntryLineBase):
    pass


class JournalEntryLine(JournalEntryLineBase):
    id: str
    entry_id: str
    debit: Money
    credit: Money
    reconciled: bool
    reconciled_at: Optional[datetime] = None


class JournalEntryBase(CamelModel):
    journal_id: str
    reference: Optional[str] = Field(None, max_length=50)
    date: date
    description: Optional[str] = Field(None, max_length=1000)


class JournalEntryCreate(JournalEntryBase):
    lines: List[JournalEntryLineCreate] = Field(..., min_length=2)

    @model_validator(mode="after")
    def check_debits_equal_credits(self):
        total_debit = sum((line.debit for line in self.lines), Decimal("0"))
        total_credit = sum((line.credit for line in self.lines), Decimal("0"))
        if not is_balanced(total_debit, total_credit):
            raise ValueError(
                f"Total debits must equal total credits (debit {total_debit}, credit {total_credit})"
            )
        return self


class JournalEntryPost(CamelModel):
    date: Optional[datetime] = None


class JournalEntryReverse(CamelModel):
    reversal_date: Optional[date] = None


class EntryListFilter(CamelModel):
    journal_id: Optional[str] = None
    status: Optional[EntryStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    limit: int = Field(50, ge=1, le=500)
    offset: int = Field(0, ge=0)

    @model_validator(mode="after")
    def check_date_range(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must be on or before endDate")
        return self


class JournalSummary(CamelModel):
    id: str
    code: str
    name: str
    type: JournalType


class JournalEntry(JournalEntryBase):
    id: str
    organization_id: str
    reference: str
    status: EntryStatus
    total_debit: Money
    total_credit: Money
    created_by: Optional[str] = None
    posted_at: Optional[datetime] = None
    posted_by: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    reversal_of_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    journal: Optional[JournalSummary] = None
    lines: List[JournalEntryLine] = []
