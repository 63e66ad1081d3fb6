from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List
import logging

from models.account import Account, AccountType
from models.journal_entry_line import JournalEntryLine
from schemas.account import AccountCreate, AccountUpdate, AccountFilter
from schemas.audit_log import AuditLogCreate
from crud.audit_log import create_audit_log
from exceptions import (
    NotFoundError,
    DuplicateCodeError,
    SystemAccountError,
    AccountInUseError,
    ValidationError,
)
from utils import sqlalchemy_to_dict

logger = logging.getLogger("accounts")

# Starter charts of accounts, keyed by template name.
ACCOUNT_TEMPLATES = {
    "french": [
        {"code": "101000", "name": "Capital", "type": AccountType.EQUITY},
        {"code": "106000", "name": "Réserves", "type": AccountType.EQUITY},
        {"code": "120000", "name": "Résultat de l'exercice", "type": AccountType.EQUITY},
        {"code": "164000", "name": "Emprunts auprès des établissements de crédit", "type": AccountType.LIABILITY},
        {"code": "401000", "name": "Fournisseurs", "type": AccountType.LIABILITY},
        {"code": "411000", "name": "Clients", "type": AccountType.ASSET},
        {"code": "445660", "name": "TVA déductible sur autres biens et services", "type": AccountType.ASSET},
        {"code": "445710", "name": "TVA collectée", "type": AccountType.LIABILITY},
        {"code": "512000", "name": "Banque", "type": AccountType.ASSET},
        {"code": "530000", "name": "Caisse", "type": AccountType.ASSET},
        {"code": "601000", "name": "Achats de matières premières", "type": AccountType.EXPENSE},
        {"code": "607000", "name": "Achats de marchandises", "type": AccountType.EXPENSE},
        {"code": "613000", "name": "Locations", "type": AccountType.EXPENSE},
        {"code": "626000", "name": "Frais postaux et de télécommunications", "type": AccountType.EXPENSE},
        {"code": "641000", "name": "Rémunérations du personnel", "type": AccountType.EXPENSE},
        {"code": "701000", "name": "Ventes de produits finis", "type": AccountType.REVENUE},
        {"code": "706000", "name": "Prestations de services", "type": AccountType.REVENUE},
        {"code": "707000", "name": "Ventes de marchandises", "type": AccountType.REVENUE},
    ],
    "syscohada": [
        {"code": "101000", "name": "Capital social", "type": AccountType.EQUITY},
        {"code": "111000", "name": "Réserve légale", "type": AccountType.EQUITY},
        {"code": "131000", "name": "Résultat net : bénéfice", "type": AccountType.EQUITY},
        {"code": "162000", "name": "Emprunts auprès des établissements de crédit", "type": AccountType.LIABILITY},
        {"code": "401100", "name": "Fournisseurs", "type": AccountType.LIABILITY},
        {"code": "411100", "name": "Clients", "type": AccountType.ASSET},
        {"code": "443100", "name": "TVA facturée sur ventes", "type": AccountType.LIABILITY},
        {"code": "445200", "name": "TVA récupérable sur achats", "type": AccountType.ASSET},
        {"code": "521000", "name": "Banques locales", "type": AccountType.ASSET},
        {"code": "571000", "name": "Caisse siège social", "type": AccountType.ASSET},
        {"code": "601100", "name": "Achats de marchandises", "type": AccountType.EXPENSE},
        {"code": "622000", "name": "Locations et charges locatives", "type": AccountType.EXPENSE},
        {"code": "628000", "name": "Frais de télécommunications", "type": AccountType.EXPENSE},
        {"code": "661000", "name": "Rémunérations directes versées au personnel", "type": AccountType.EXPENSE},
        {"code": "701100", "name": "Ventes de marchandises", "type": AccountType.REVENUE},
        {"code": "706100", "name": "Services vendus", "type": AccountType.REVENUE},
    ],
}


def get_account_by_code(db: Session, organization_id: str, code: str):
    return db.query(Account).filter(
        Account.code == code,
        Account.organization_id == organization_id
    ).first()


def get_account(db: Session, organization_id: str, account_id: str) -> Account:
    account = db.query(Account).filter(
        Account.id == account_id,
        Account.organization_id == organization_id
    ).first()
    if not account:
        raise NotFoundError(f"Account {account_id} not found")
    return account


def list_accounts(db: Session, organization_id: str, filters: AccountFilter = None) -> List[Account]:
    query = db.query(Account).filter(Account.organization_id == organization_id)

    if filters is not None:
        if filters.type is not None:
            query = query.filter(Account.type == filters.type)
        if filters.active is not None:
            query = query.filter(Account.active == filters.active)

    return query.order_by(Account.code.asc()).all()


def get_account_hierarchy(db: Session, organization_id: str) -> List[Account]:
    """All accounts sorted by code, which places children right after their parents."""
    accounts = list_accounts(db, organization_id)
    return sorted(accounts, key=lambda a: a.code)


def _commit_new_account(db: Session, code: str, flush_only: bool = False):
    try:
        if flush_only:
            db.flush()
        else:
            db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Account code {code} lost a concurrent insert race")
        raise DuplicateCodeError(f"Account with code {code} already exists")


def create_account(db: Session, organization_id: str, account: AccountCreate, user_id: str = None) -> Account:
    # Friendly pre-check; the unique constraint is what actually guarantees uniqueness
    if get_account_by_code(db, organization_id, account.code):
        raise DuplicateCodeError(f"Account with code {account.code} already exists")

    if account.parent_id:
        get_account(db, organization_id, account.parent_id)

    db_account = Account(
        **account.model_dump(),
        organization_id=organization_id,
        active=True,
        system=False,
        created_by=user_id,
    )
    db.add(db_account)
    _commit_new_account(db, account.code, flush_only=True)

    create_audit_log(db, AuditLogCreate(
        organization_id=organization_id,
        table_name='accounts',
        record_id=db_account.id,
        changed_by=user_id,
        action='CREATE',
        old_values={},
        new_values=sqlalchemy_to_dict(db_account),
    ))
    _commit_new_account(db, account.code)
    db.refresh(db_account)

    logger.info(f"Account {db_account.code} created for organization {organization_id} by {user_id}")
    return db_account


def update_account(db: Session, organization_id: str, account_id: str, account_update: AccountUpdate, user_id: str = None) -> Account:
    db_account = get_account(db, organization_id, account_id)

    if db_account.system:
        raise SystemAccountError("Cannot update system account")

    old_values = sqlalchemy_to_dict(db_account)
    update_data = account_update.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in update_data.items():
        setattr(db_account, key, value)
    db_account.updated_by = user_id
    db.flush()

    create_audit_log(db, AuditLogCreate(
        organization_id=organization_id,
        table_name='accounts',
        record_id=db_account.id,
        changed_by=user_id,
        action='UPDATE',
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_account),
    ))
    db.commit()
    db.refresh(db_account)
    return db_account


def delete_account(db: Session, organization_id: str, account_id: str, user_id: str = None) -> None:
    db_account = get_account(db, organization_id, account_id)

    if db_account.system:
        raise SystemAccountError("Cannot delete system account")

    # Ledger lines must never be orphaned
    in_use = db.query(JournalEntryLine.id).filter(JournalEntryLine.account_id == account_id).first()
    if in_use:
        raise AccountInUseError("Cannot delete account because it is referenced by journal entry lines; deactivate it instead")

    has_children = db.query(Account.id).filter(
        Account.parent_id == account_id,
        Account.organization_id == organization_id
    ).first()
    if has_children:
        raise AccountInUseError("Cannot delete account because other accounts use it as their parent")

    create_audit_log(db, AuditLogCreate(
        organization_id=organization_id,
        table_name='accounts',
        record_id=db_account.id,
        changed_by=user_id,
        action='DELETE',
        old_values=sqlalchemy_to_dict(db_account),
        new_values={},
    ))
    db.delete(db_account)
    db.commit()
    logger.info(f"Account {db_account.code} deleted for organization {organization_id} by {user_id}")


def import_template(db: Session, organization_id: str, template: str, user_id: str = None) -> int:
    """Seed a starter chart of accounts. Codes that already exist are skipped."""
    if template not in ACCOUNT_TEMPLATES:
        raise ValidationError('Template must be "french" or "syscohada"', code="INVALID_TEMPLATE")

    existing_codes = {
        code for (code,) in db.query(Account.code).filter(Account.organization_id == organization_id).all()
    }

    created = 0
    for account_data in ACCOUNT_TEMPLATES[template]:
        if account_data["code"] in existing_codes:
            continue
        db.add(Account(
            **account_data,
            organization_id=organization_id,
            currency="EUR",
            active=True,
            system=False,
            created_by=user_id,
        ))
        created += 1

    create_audit_log(db, AuditLogCreate(
        organization_id=organization_id,
        table_name='accounts',
        record_id=template,
        changed_by=user_id,
        action='IMPORT',
        new_values={"template": template, "created": created},
    ))
    _commit_new_account(db, f"from template {template}")

    logger.info(f"Imported {created} accounts from template '{template}' for organization {organization_id}")
    return created
