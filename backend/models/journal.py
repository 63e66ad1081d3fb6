from sqlalchemy import Column, String, Boolean, Enum, UniqueConstraint
from database import Base
from models.audit_mixin import TimestampMixin
import enum
import uuid


class JournalType(str, enum.Enum):
    GENERAL = "general"
    SALES = "sales"
    PURCHASE = "purchase"
    BANK = "bank"
    CASH = "cash"


class Journal(Base, TimestampMixin):
    __tablename__ = "journals"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String, index=True, nullable=False)
    code = Column(String(10), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    type = Column(
        Enum(JournalType, name="journal_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint('organization_id', 'code', name='_organization_journal_code_uc'),
    )
