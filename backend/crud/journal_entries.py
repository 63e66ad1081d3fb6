"""
Journal entry engine.

Entries are created as drafts together with their lines in a single
transaction, then posted (frozen), reversed (a new draft with debit and
credit swapped per line), cancelled, or, while still drafts, deleted.

Status transitions are conditional UPDATE/DELETE statements filtered on the
expected current status, so two concurrent requests on the same entry cannot
both succeed: the loser affects zero rows and gets InvalidStateError.
Cancel and reverse also take a row lock on the entry, and a partial unique
index allows one live reversal per entry.
"""

from sqlalchemy import select, exists
from sqlalchemy.orm import Session, selectinload, joinedload, aliased
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from datetime import date, datetime
from typing import List, Optional
import logging
import re

from models.account import Account
from models.journal import Journal
from models.journal_entry import JournalEntry, EntryStatus
from models.journal_entry_line import JournalEntryLine
from models.audit_mixin import now_local, today_local
from schemas.journal_entry import JournalEntryCreate, JournalEntryLineCreate, EntryListFilter
from schemas.audit_log import AuditLogCreate
from crud.audit_log import create_audit_log
from crud.journals import get_journal
from exceptions import NotFoundError, ValidationError, InvalidStateError
from utils import sqlalchemy_to_dict
from utils.money import to_money, is_balanced, ZERO

logger = logging.getLogger("journal_entries")

MIN_LINES = 2
REFERENCE_SEQUENCE = re.compile(r"-(\d+)$")


def _entry_query(db: Session, organization_id: str):
    return db.query(JournalEntry).options(
        selectinload(JournalEntry.lines),
        joinedload(JournalEntry.journal),
    ).filter(JournalEntry.organization_id == organization_id)


def _lock_entry(db: Session, organization_id: str, entry_id: str) -> None:
    """Row-lock the entry header so cancel and reverse on the same entry run one at a time."""
    db.query(JournalEntry.id).filter(
        JournalEntry.id == entry_id,
        JournalEntry.organization_id == organization_id,
    ).with_for_update().first()


def _active_reversal_id(db: Session, organization_id: str, entry_id: str) -> Optional[str]:
    row = db.query(JournalEntry.id).filter(
        JournalEntry.organization_id == organization_id,
        JournalEntry.reversal_of_id == entry_id,
        JournalEntry.status != EntryStatus.CANCELLED,
    ).first()
    return row[0] if row else None


def get_journal_entry(db: Session, organization_id: str, entry_id: str) -> JournalEntry:
    entry = _entry_query(db, organization_id).filter(JournalEntry.id == entry_id).first()
    if not entry:
        raise NotFoundError(f"Journal entry {entry_id} not found")
    return entry


def list_journal_entries(db: Session, organization_id: str, filters: EntryListFilter) -> List[JournalEntry]:
    query = _entry_query(db, organization_id)

    if filters.journal_id:
        query = query.filter(JournalEntry.journal_id == filters.journal_id)
    if filters.status:
        query = query.filter(JournalEntry.status == filters.status)
    if filters.start_date:
        query = query.filter(JournalEntry.date >= filters.start_date)
    if filters.end_date:
        query = query.filter(JournalEntry.date <= filters.end_date)

    return query.order_by(
        JournalEntry.date.desc(),
        JournalEntry.created_at.desc(),
    ).offset(filters.offset).limit(filters.limit).all()


def validate_lines(lines) -> tuple:
    """
    Check the double-entry rules on a set of lines and return (total_debit, total_credit).

    Works on request lines and on stored lines alike, so posting can re-check
    what creation already accepted.
    """
    if len(lines) < MIN_LINES:
        raise ValidationError(f"A journal entry needs at least {MIN_LINES} lines", code="TOO_FEW_LINES")

    total_debit = ZERO
    total_credit = ZERO
    for line in lines:
        debit = to_money(line.debit)
        credit = to_money(line.credit)
        if debit < 0 or credit < 0:
            raise ValidationError("Line amounts cannot be negative", code="NEGATIVE_AMOUNT")
        total_debit += debit
        total_credit += credit

    if not is_balanced(total_debit, total_credit):
        raise ValidationError(
            f"Total debits must equal total credits (debit {total_debit}, credit {total_credit})",
            code="UNBALANCED_ENTRY",
        )
    return total_debit, total_credit


def generate_reference(db: Session, organization_id: str, journal, entry_date: date) -> str:
    """Next reference for the journal in the entry's year, formatted CODE-YYYY-NNN."""
    prefix = f"{journal.code}-{entry_date.year}-"
    references = db.query(JournalEntry.reference).filter(
        JournalEntry.organization_id == organization_id,
        JournalEntry.journal_id == journal.id,
        JournalEntry.reference.like(f"{prefix}%"),
    ).all()

    last_number = 0
    for (reference,) in references:
        match = REFERENCE_SEQUENCE.search(reference)
        if match:
            last_number = max(last_number, int(match.group(1)))

    return f"{prefix}{last_number + 1:03d}"


def _check_accounts(db: Session, organization_id: str, lines) -> None:
    account_ids = {line.account_id for line in lines}
    found = {
        account_id for (account_id,) in db.query(Account.id).filter(
            Account.organization_id == organization_id,
            Account.id.in_(account_ids),
        ).all()
    }
    missing = account_ids - found
    if missing:
        raise NotFoundError(f"Account {sorted(missing)[0]} not found")


def _persist_entry(
    db: Session,
    organization_id: str,
    user_id: str,
    entry: JournalEntryCreate,
    reversal_of_id: Optional[str] = None,
) -> JournalEntry:
    journal = get_journal(db, organization_id, entry.journal_id)
    # Serializes reference numbering within the journal until commit
    db.query(Journal.id).filter(Journal.id == journal.id).with_for_update().first()
    total_debit, total_credit = validate_lines(entry.lines)
    _check_accounts(db, organization_id, entry.lines)

    reference = entry.reference or generate_reference(db, organization_id, journal, entry.date)

    db_entry = JournalEntry(
        organization_id=organization_id,
        journal_id=journal.id,
        reference=reference,
        date=entry.date,
        description=entry.description,
        status=EntryStatus.DRAFT,
        total_debit=total_debit,
        total_credit=total_credit,
        created_by=user_id,
        reversal_of_id=reversal_of_id,
    )
    for position, line in enumerate(entry.lines):
        db_entry.lines.append(JournalEntryLine(
            account_id=line.account_id,
            position=position,
            label=line.label,
            debit=to_money(line.debit),
            credit=to_money(line.credit),
            reconciled=False,
        ))

    try:
        db.add(db_entry)
        db.flush()
        create_audit_log(db, AuditLogCreate(
            organization_id=organization_id,
            table_name='journal_entries',
            record_id=db_entry.id,
            changed_by=user_id,
            action='REVERSE' if reversal_of_id else 'CREATE',
            old_values={},
            new_values=sqlalchemy_to_dict(db_entry),
        ))
        db.commit()
    except IntegrityError:
        db.rollback()
        if reversal_of_id:
            logger.warning(f"Concurrent reversal lost for journal entry {reversal_of_id}")
            raise InvalidStateError("Journal entry already has a reversal")
        raise
    except SQLAlchemyError:
        # Entry and lines go in together or not at all
        db.rollback()
        logger.exception(f"Failed to persist journal entry {reference} for organization {organization_id}")
        raise

    return get_journal_entry(db, organization_id, db_entry.id)


def create_journal_entry(db: Session, organization_id: str, user_id: str, entry: JournalEntryCreate) -> JournalEntry:
    db_entry = _persist_entry(db, organization_id, user_id, entry)
    logger.info(
        f"Journal entry {db_entry.reference} created as draft for organization {organization_id} "
        f"(debit {db_entry.total_debit}, credit {db_entry.total_credit}) by {user_id}"
    )
    return db_entry


def _transition(db: Session, organization_id: str, entry_id: str, from_statuses, values: dict, *criteria) -> int:
    return db.query(JournalEntry).filter(
        JournalEntry.id == entry_id,
        JournalEntry.organization_id == organization_id,
        JournalEntry.status.in_(from_statuses),
        *criteria,
    ).update(values, synchronize_session=False)


def post_journal_entry(
    db: Session,
    organization_id: str,
    entry_id: str,
    user_id: str,
    posted_at: Optional[datetime] = None,
) -> JournalEntry:
    entry = get_journal_entry(db, organization_id, entry_id)

    if entry.status == EntryStatus.POSTED:
        raise InvalidStateError("Journal entry is already posted")
    if entry.status == EntryStatus.CANCELLED:
        raise InvalidStateError("Cannot post cancelled journal entry")

    total_debit, total_credit = validate_lines(entry.lines)
    if to_money(entry.total_debit) != total_debit or to_money(entry.total_credit) != total_credit:
        raise ValidationError("Entry totals do not match its lines", code="UNBALANCED_ENTRY")

    stamp = now_local()
    updated = _transition(db, organization_id, entry_id, [EntryStatus.DRAFT], {
        JournalEntry.status: EntryStatus.POSTED,
        JournalEntry.posted_at: posted_at or stamp,
        JournalEntry.posted_by: user_id,
        JournalEntry.updated_at: stamp,
        JournalEntry.updated_by: user_id,
    })
    if updated == 0:
        # Someone else moved it out of draft between our read and our write
        db.rollback()
        logger.warning(f"Concurrent transition lost while posting journal entry {entry_id}")
        raise InvalidStateError("Journal entry is no longer a draft")

    create_audit_log(db, AuditLogCreate(
        organization_id=organization_id,
        table_name='journal_entries',
        record_id=entry_id,
        changed_by=user_id,
        action='POST',
        old_values={"status": EntryStatus.DRAFT.value},
        new_values={"status": EntryStatus.POSTED.value, "posted_at": (posted_at or stamp).isoformat()},
    ))
    db.commit()

    logger.info(f"Journal entry {entry.reference} posted for organization {organization_id} by {user_id}")
    db.expire_all()
    return get_journal_entry(db, organization_id, entry_id)


def cancel_journal_entry(db: Session, organization_id: str, entry_id: str, user_id: str = None) -> JournalEntry:
    """
    Mark an entry cancelled. Drafts and posted entries can be cancelled; the
    lines and totals stay in place as history and reports ignore the entry.

    A posted entry with a live reversal cannot be cancelled: reports would
    keep the reversal and drop the transaction it negates. Cancel the
    reversal first.
    """
    _lock_entry(db, organization_id, entry_id)
    entry = get_journal_entry(db, organization_id, entry_id)
    if entry.status == EntryStatus.CANCELLED:
        raise InvalidStateError("Journal entry is already cancelled")
    previous_status = entry.status

    reversal_id = _active_reversal_id(db, organization_id, entry_id)
    if reversal_id:
        db.rollback()
        raise InvalidStateError(
            f"Journal entry {entry.reference} has been reversed by {reversal_id}; cancel the reversal first"
        )

    reversal = aliased(JournalEntry)
    no_live_reversal = ~exists().where(
        reversal.reversal_of_id == JournalEntry.id,
        reversal.status != EntryStatus.CANCELLED,
    )

    stamp = now_local()
    updated = _transition(db, organization_id, entry_id, [EntryStatus.DRAFT, EntryStatus.POSTED], {
        JournalEntry.status: EntryStatus.CANCELLED,
        JournalEntry.cancelled_at: stamp,
        JournalEntry.cancelled_by: user_id,
        JournalEntry.updated_at: stamp,
        JournalEntry.updated_by: user_id,
    }, no_live_reversal)
    if updated == 0:
        db.rollback()
        raise InvalidStateError("Journal entry was cancelled or reversed concurrently")

    create_audit_log(db, AuditLogCreate(
        organization_id=organization_id,
        table_name='journal_entries',
        record_id=entry_id,
        changed_by=user_id,
        action='CANCEL',
        old_values={"status": previous_status.value},
        new_values={"status": EntryStatus.CANCELLED.value},
    ))
    db.commit()

    if previous_status == EntryStatus.POSTED:
        logger.warning(f"Posted journal entry {entry.reference} cancelled for organization {organization_id} by {user_id}")
    else:
        logger.info(f"Journal entry {entry.reference} cancelled for organization {organization_id} by {user_id}")
    db.expire_all()
    return get_journal_entry(db, organization_id, entry_id)


def reverse_journal_entry(
    db: Session,
    organization_id: str,
    entry_id: str,
    user_id: str,
    reversal_date: Optional[date] = None,
) -> JournalEntry:
    _lock_entry(db, organization_id, entry_id)
    original = get_journal_entry(db, organization_id, entry_id)

    if original.status != EntryStatus.POSTED:
        raise InvalidStateError("Can only reverse posted journal entries")

    existing_reversal = _active_reversal_id(db, organization_id, original.id)
    if existing_reversal:
        db.rollback()
        raise InvalidStateError(f"Journal entry {original.reference} already has a reversal ({existing_reversal})")

    reversal = JournalEntryCreate(
        journal_id=original.journal_id,
        date=reversal_date or today_local(),
        description=f"Reversal of {original.reference}",
        lines=[
            JournalEntryLineCreate(
                account_id=line.account_id,
                label=f"Reversal: {line.label}" if line.label else None,
                debit=to_money(line.credit),
                credit=to_money(line.debit),
            )
            for line in original.lines
        ],
    )
    db_entry = _persist_entry(db, organization_id, user_id, reversal, reversal_of_id=original.id)

    logger.info(f"Reversal {db_entry.reference} created for journal entry {original.reference} by {user_id}")
    return db_entry


def delete_journal_entry(db: Session, organization_id: str, entry_id: str, user_id: str = None) -> None:
    entry = get_journal_entry(db, organization_id, entry_id)
    if entry.status != EntryStatus.DRAFT:
        raise InvalidStateError("Can only delete draft journal entries")
    reference = entry.reference
    snapshot = sqlalchemy_to_dict(entry)

    draft_entry = select(JournalEntry.id).where(
        JournalEntry.id == entry_id,
        JournalEntry.organization_id == organization_id,
        JournalEntry.status == EntryStatus.DRAFT,
    )
    db.query(JournalEntryLine).filter(
        JournalEntryLine.entry_id.in_(draft_entry)
    ).delete(synchronize_session=False)
    deleted = _delete_draft(db, organization_id, entry_id)
    if deleted == 0:
        db.rollback()
        raise InvalidStateError("Can only delete draft journal entries")

    create_audit_log(db, AuditLogCreate(
        organization_id=organization_id,
        table_name='journal_entries',
        record_id=entry_id,
        changed_by=user_id,
        action='DELETE',
        old_values=snapshot,
        new_values={},
    ))
    db.commit()
    db.expunge_all()
    logger.info(f"Draft journal entry {reference} deleted for organization {organization_id} by {user_id}")


def _delete_draft(db: Session, organization_id: str, entry_id: str) -> int:
    return db.query(JournalEntry).filter(
        JournalEntry.id == entry_id,
        JournalEntry.organization_id == organization_id,
        JournalEntry.status == EntryStatus.DRAFT,
    ).delete(synchronize_session=False)
