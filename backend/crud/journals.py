from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List
import logging

from models.journal import Journal, JournalType
from models.journal_entry import JournalEntry
from schemas.journal import JournalCreate, JournalUpdate, JournalFilter
from schemas.audit_log import AuditLogCreate
from crud.audit_log import create_audit_log
from exceptions import NotFoundError, DuplicateCodeError, JournalInUseError
from utils import sqlalchemy_to_dict

logger = logging.getLogger("journals")

DEFAULT_JOURNALS = [
    {"code": "GEN", "name": "Journal général", "type": JournalType.GENERAL},
    {"code": "VEN", "name": "Journal des ventes", "type": JournalType.SALES},
    {"code": "ACH", "name": "Journal des achats", "type": JournalType.PURCHASE},
    {"code": "BQ", "name": "Journal de banque", "type": JournalType.BANK},
    {"code": "CAI", "name": "Journal de caisse", "type": JournalType.CASH},
]


def get_journal_by_code(db: Session, organization_id: str, code: str):
    return db.query(Journal).filter(
        Journal.code == code,
        Journal.organization_id == organization_id
    ).first()


def get_journal(db: Session, organization_id: str, journal_id: str) -> Journal:
    journal = db.query(Journal).filter(
        Journal.id == journal_id,
        Journal.organization_id == organization_id
    ).first()
    if not journal:
        raise NotFoundError(f"Journal {journal_id} not found")
    return journal


def list_journals(db: Session, organization_id: str, filters: JournalFilter = None) -> List[Journal]:
    query = db.query(Journal).filter(Journal.organization_id == organization_id)

    if filters is not None:
        if filters.type is not None:
            query = query.filter(Journal.type == filters.type)
        if filters.active is not None:
            query = query.filter(Journal.active == filters.active)

    return query.order_by(Journal.code.asc()).all()


def _commit(db: Session, code: str):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateCodeError(f"Journal with code {code} already exists")


def create_journal(db: Session, organization_id: str, journal: JournalCreate, user_id: str = None) -> Journal:
    if get_journal_by_code(db, organization_id, journal.code):
        raise DuplicateCodeError(f"Journal with code {journal.code} already exists")

    db_journal = Journal(
        **journal.model_dump(),
        organization_id=organization_id,
        active=True,
        created_by=user_id,
    )
    db.add(db_journal)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise DuplicateCodeError(f"Journal with code {journal.code} already exists")

    create_audit_log(db, AuditLogCreate(
        organization_id=organization_id,
        table_name='journals',
        record_id=db_journal.id,
        changed_by=user_id,
        action='CREATE',
        old_values={},
        new_values=sqlalchemy_to_dict(db_journal),
    ))
    _commit(db, journal.code)
    db.refresh(db_journal)

    logger.info(f"Journal {db_journal.code} created for organization {organization_id} by {user_id}")
    return db_journal


def update_journal(db: Session, organization_id: str, journal_id: str, journal_update: JournalUpdate, user_id: str = None) -> Journal:
    db_journal = get_journal(db, organization_id, journal_id)

    old_values = sqlalchemy_to_dict(db_journal)
    for key, value in journal_update.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(db_journal, key, value)
    db_journal.updated_by = user_id
    db.flush()

    create_audit_log(db, AuditLogCreate(
        organization_id=organization_id,
        table_name='journals',
        record_id=db_journal.id,
        changed_by=user_id,
        action='UPDATE',
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_journal),
    ))
    db.commit()
    db.refresh(db_journal)
    return db_journal


def delete_journal(db: Session, organization_id: str, journal_id: str, user_id: str = None) -> None:
    db_journal = get_journal(db, organization_id, journal_id)

    in_use = db.query(JournalEntry.id).filter(
        JournalEntry.journal_id == journal_id,
        JournalEntry.organization_id == organization_id
    ).first()
    if in_use:
        raise JournalInUseError("Cannot delete journal because journal entries are filed under it; deactivate it instead")

    create_audit_log(db, AuditLogCreate(
        organization_id=organization_id,
        table_name='journals',
        record_id=db_journal.id,
        changed_by=user_id,
        action='DELETE',
        old_values=sqlalchemy_to_dict(db_journal),
        new_values={},
    ))
    db.delete(db_journal)
    db.commit()
    logger.info(f"Journal {db_journal.code} deleted for organization {organization_id} by {user_id}")


def create_default_journals(db: Session, organization_id: str, user_id: str = None) -> int:
    """Create one journal per type, skipping codes the organization already uses."""
    existing_codes = {
        code for (code,) in db.query(Journal.code).filter(Journal.organization_id == organization_id).all()
    }

    created_codes = []
    for journal_data in DEFAULT_JOURNALS:
        if journal_data["code"] in existing_codes:
            continue
        db.add(Journal(**journal_data, organization_id=organization_id, active=True, created_by=user_id))
        created_codes.append(journal_data["code"])
    created = len(created_codes)

    create_audit_log(db, AuditLogCreate(
        organization_id=organization_id,
        table_name='journals',
        record_id='defaults',
        changed_by=user_id,
        action='IMPORT',
        new_values={"codes": created_codes, "created": created},
    ))
    _commit(db, "among defaults")
    logger.info(f"Created {created} default journals for organization {organization_id}")
    return created
