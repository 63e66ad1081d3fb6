from sqlalchemy import Column, String, Boolean, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin
import enum
import uuid


class AccountType(str, enum.Enum):
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


# Accounts whose balance grows with debits; the rest grow with credits.
DEBIT_NORMAL_TYPES = (AccountType.ASSET, AccountType.EXPENSE)


class Account(Base, TimestampMixin):
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String, index=True, nullable=False)
    code = Column(String(20), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    type = Column(
        Enum(AccountType, name="account_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    parent_id = Column(String(36), ForeignKey("accounts.id"), nullable=True)
    currency = Column(String(3), nullable=False, default="EUR")
    active = Column(Boolean, nullable=False, default=True)
    system = Column(Boolean, nullable=False, default=False)  # system accounts cannot be edited or deleted

    # Relationships
    parent = relationship("Account", remote_side=[id])

    __table_args__ = (
        UniqueConstraint('organization_id', 'code', name='_organization_account_code_uc'),
    )

    @property
    def is_debit_normal(self) -> bool:
        return self.type in DEBIT_NORMAL_TYPES
