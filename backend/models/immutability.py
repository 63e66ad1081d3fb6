"""
Posted-entry immutability guards.

Mapper events that stop the ORM from flushing changes to a journal entry
(or its lines) once it has left the draft state. Status transitions are
done with conditional UPDATE statements in crud.journal_entries, which
do not pass through these hooks.
"""

import logging
from sqlalchemy import event, inspect
from exceptions import ImmutableEntryError
from models.journal_entry import JournalEntry, EntryStatus
from models.journal_entry_line import JournalEntryLine

logger = logging.getLogger("journal_entries")

# Fields that may still change on a posted entry
ENTRY_MUTABLE_FIELDS = {"status", "cancelled_at", "cancelled_by", "updated_at", "updated_by", "lines"}
LINE_MUTABLE_FIELDS = {"reconciled", "reconciled_at"}


def _original_status(target):
    history = inspect(target).attrs.status.history
    if history.deleted:
        return history.deleted[0]
    return target.status


@event.listens_for(JournalEntry, "before_update")
def block_posted_entry_update(mapper, connection, target):
    if _original_status(target) == EntryStatus.DRAFT:
        return
    for attr in inspect(target).attrs:
        if attr.key in ENTRY_MUTABLE_FIELDS:
            continue
        if attr.history.has_changes():
            logger.warning(f"Blocked change to '{attr.key}' on {target.status.value} entry {target.id}")
            raise ImmutableEntryError(f"Cannot modify '{attr.key}' on a {target.status.value} journal entry")
    if target.status == EntryStatus.DRAFT:
        raise ImmutableEntryError("A journal entry cannot return to draft")


@event.listens_for(JournalEntry, "before_delete")
def block_posted_entry_delete(mapper, connection, target):
    if _original_status(target) != EntryStatus.DRAFT:
        raise ImmutableEntryError("Only draft journal entries can be deleted")


@event.listens_for(JournalEntryLine, "before_update")
def block_posted_line_update(mapper, connection, target):
    if target.entry is None or target.entry.status == EntryStatus.DRAFT:
        return
    for attr in inspect(target).attrs:
        if attr.key in LINE_MUTABLE_FIELDS:
            continue
        if attr.history.has_changes():
            raise ImmutableEntryError("Journal lines cannot be modified once the entry has been posted")


@event.listens_for(JournalEntryLine, "before_delete")
def block_posted_line_delete(mapper, connection, target):
    if target.entry is not None and _original_status(target.entry) != EntryStatus.DRAFT:
        raise ImmutableEntryError("Journal lines cannot be deleted once the entry has been posted")


@event.listens_for(JournalEntryLine, "before_insert")
def block_line_insert_on_posted_entry(mapper, connection, target):
    if target.entry is not None and target.entry.status != EntryStatus.DRAFT and inspect(target.entry).persistent:
        raise ImmutableEntryError("Lines cannot be added to a posted journal entry")
