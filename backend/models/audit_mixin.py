from sqlalchemy import Column, DateTime, String
from datetime import datetime
import os
import pytz

APP_TIMEZONE = pytz.timezone(os.getenv("APP_TIMEZONE", "UTC"))


def now_local():
    return datetime.now(APP_TIMEZONE)


def today_local():
    return now_local().date()


class TimestampMixin:
    """Mixin that provides created/updated timestamps and user info.

    Ledger rows are never soft-deleted: accounts and journals are disabled
    through their `active` flag and posted entries are cancelled or reversed,
    so no deleted_at column is carried here.
    """
    # DateTime(timezone=True) ensures the timezone info is persisted in the database.
    created_at = Column(DateTime(timezone=True), default=now_local, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_local, onupdate=now_local)
    created_by = Column(String, nullable=True)
    updated_by = Column(String, nullable=True)
