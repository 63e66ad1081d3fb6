from models.account import Account, AccountType
from models.journal import Journal, JournalType
from models.journal_entry import JournalEntry, EntryStatus
from models.journal_entry_line import JournalEntryLine
from models.audit_log import AuditLog
import models.immutability  # noqa: F401  registers the posted-entry guards

__all__ = ['Account', 'AccountType', 'AuditLog', 'EntryStatus', 'Journal', 'JournalEntry', 'JournalEntryLine', 'JournalType',]
