from sqlalchemy import Column, String, Text, Date, DateTime, Numeric, ForeignKey, Enum, Index, text
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin
import enum
import uuid


class EntryStatus(str, enum.Enum):
    DRAFT = "draft"
    POSTED = "posted"
    CANCELLED = "cancelled"


class JournalEntry(Base, TimestampMixin):
    __tablename__ = "journal_entries"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String, index=True, nullable=False)
    journal_id = Column(String(36), ForeignKey("journals.id"), nullable=False, index=True)
    reference = Column(String(50), nullable=False)
    date = Column(Date, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        Enum(EntryStatus, name="entry_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=EntryStatus.DRAFT,
    )
    total_debit = Column(Numeric(18, 2), nullable=False, default=0)
    total_credit = Column(Numeric(18, 2), nullable=False, default=0)
    posted_at = Column(DateTime(timezone=True), nullable=True)
    posted_by = Column(String, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(String, nullable=True)
    reversal_of_id = Column(String(36), ForeignKey("journal_entries.id"), nullable=True)

    # Relationships
    journal = relationship("Journal")
    lines = relationship(
        "JournalEntryLine",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalEntryLine.position",
    )

    __table_args__ = (
        Index("ix_journal_entries_org_status_date", "organization_id", "status", "date"),
        # At most one live reversal per entry; cancelled reversals drop out of the index
        Index(
            "uq_journal_entries_active_reversal",
            "reversal_of_id",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
    )
