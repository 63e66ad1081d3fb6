from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import date
from typing import Iterable, List, Optional
import logging

from models.account import Account, AccountType, DEBIT_NORMAL_TYPES
from models.journal_entry import JournalEntry, EntryStatus
from models.journal_entry_line import JournalEntryLine
from schemas.financial_reports import (
    ReportFilter,
    AccountSummary,
    GeneralLedger,
    GeneralLedgerRow,
    AccountBalanceRow,
    TrialBalance,
    BalanceSheet,
    IncomeStatement,
)
from crud.accounts import get_account
from utils.money import to_money, is_negligible, ZERO

logger = logging.getLogger("reports")

BALANCE_SHEET_TYPES = (AccountType.ASSET, AccountType.LIABILITY, AccountType.EQUITY)
INCOME_STATEMENT_TYPES = (AccountType.REVENUE, AccountType.EXPENSE)


def normal_balance(account_type: AccountType, debit, credit):
    """Debit-normal accounts grow with debits, the others with credits."""
    if account_type in DEBIT_NORMAL_TYPES:
        return to_money(debit) - to_money(credit)
    return to_money(credit) - to_money(debit)


def _account_totals(
    db: Session,
    organization_id: str,
    end_date: date,
    start_date: Optional[date] = None,
    account_types: Optional[Iterable[AccountType]] = None,
    account_ids: Optional[List[str]] = None,
):
    """
    Posted debit and credit totals per active account, in one grouped query.

    Returns (account_id, code, name, type, debit, credit) tuples ordered by code.
    Accounts without any posted line in the window are not returned.
    """
    query = db.query(
        Account.id,
        Account.code,
        Account.name,
        Account.type,
        func.coalesce(func.sum(JournalEntryLine.debit), 0),
        func.coalesce(func.sum(JournalEntryLine.credit), 0),
    ).join(
        JournalEntryLine, JournalEntryLine.account_id == Account.id
    ).join(
        JournalEntry, JournalEntry.id == JournalEntryLine.entry_id
    ).filter(
        Account.organization_id == organization_id,
        Account.active == True,  # noqa: E712
        JournalEntry.organization_id == organization_id,
        JournalEntry.status == EntryStatus.POSTED,
        JournalEntry.date <= end_date,
    )

    if start_date is not None:
        query = query.filter(JournalEntry.date >= start_date)
    if account_types:
        query = query.filter(Account.type.in_(list(account_types)))
    if account_ids:
        query = query.filter(Account.id.in_(account_ids))

    rows = query.group_by(
        Account.id, Account.code, Account.name, Account.type
    ).order_by(Account.code.asc()).all()

    return [
        (account_id, code, name, account_type, to_money(debit), to_money(credit))
        for account_id, code, name, account_type, debit, credit in rows
    ]


def get_general_ledger(db: Session, organization_id: str, account_id: str, filters: ReportFilter) -> GeneralLedger:
    account = get_account(db, organization_id, account_id)

    lines = db.query(
        JournalEntry.id,
        JournalEntry.date,
        JournalEntry.reference,
        JournalEntry.description,
        JournalEntryLine.label,
        JournalEntryLine.debit,
        JournalEntryLine.credit,
    ).join(
        JournalEntryLine, JournalEntryLine.entry_id == JournalEntry.id
    ).filter(
        JournalEntry.organization_id == organization_id,
        JournalEntry.status == EntryStatus.POSTED,
        JournalEntryLine.account_id == account.id,
        JournalEntry.date >= filters.start_date,
        JournalEntry.date <= filters.end_date,
    ).order_by(
        JournalEntry.date.asc(),
        JournalEntry.created_at.asc(),
        JournalEntryLine.position.asc(),
    ).all()

    balance = ZERO
    rows = []
    for entry_id, entry_date, reference, description, label, debit, credit in lines:
        balance += normal_balance(account.type, debit, credit)
        rows.append(GeneralLedgerRow(
            entry_id=entry_id,
            date=entry_date,
            reference=reference,
            description=label or description or "",
            debit=to_money(debit),
            credit=to_money(credit),
            running_balance=balance,
        ))

    return GeneralLedger(
        account=AccountSummary.model_validate(account),
        start_date=filters.start_date,
        end_date=filters.end_date,
        opening_balance=ZERO,
        closing_balance=balance,
        rows=rows,
    )


def get_trial_balance(db: Session, organization_id: str, filters: ReportFilter) -> TrialBalance:
    rows = []
    for account_id, code, name, account_type, debit, credit in _account_totals(
        db,
        organization_id,
        start_date=filters.start_date,
        end_date=filters.end_date,
        account_ids=filters.account_ids,
    ):
        # Only accounts with activity
        if debit == 0 and credit == 0:
            continue
        rows.append(AccountBalanceRow(
            account_id=account_id,
            account_code=code,
            account_name=name,
            account_type=account_type,
            debit=debit,
            credit=credit,
            balance=normal_balance(account_type, debit, credit),
        ))

    total_debit = sum((row.debit for row in rows), ZERO)
    total_credit = sum((row.credit for row in rows), ZERO)
    if not filters.account_ids and total_debit != total_credit:
        logger.error(
            f"Trial balance for organization {organization_id} does not balance: "
            f"debit {total_debit}, credit {total_credit}"
        )

    return TrialBalance(
        start_date=filters.start_date,
        end_date=filters.end_date,
        rows=rows,
        total_debit=total_debit,
        total_credit=total_credit,
    )


def get_balance_sheet(db: Session, organization_id: str, as_of_date: date) -> BalanceSheet:
    buckets = {
        AccountType.ASSET: [],
        AccountType.LIABILITY: [],
        AccountType.EQUITY: [],
    }

    # Cumulative from the first posting up to and including as_of_date
    for account_id, code, name, account_type, debit, credit in _account_totals(
        db,
        organization_id,
        end_date=as_of_date,
        account_types=BALANCE_SHEET_TYPES,
    ):
        balance = debit - credit
        if is_negligible(balance):
            continue
        buckets[account_type].append(AccountBalanceRow(
            account_id=account_id,
            account_code=code,
            account_name=name,
            account_type=account_type,
            debit=balance if balance > 0 else ZERO,
            credit=-balance if balance < 0 else ZERO,
            balance=abs(balance),
        ))

    def total(rows):
        return sum((row.balance for row in rows), ZERO)

    return BalanceSheet(
        as_of_date=as_of_date,
        assets=buckets[AccountType.ASSET],
        liabilities=buckets[AccountType.LIABILITY],
        equity=buckets[AccountType.EQUITY],
        total_assets=total(buckets[AccountType.ASSET]),
        total_liabilities=total(buckets[AccountType.LIABILITY]),
        total_equity=total(buckets[AccountType.EQUITY]),
    )


def get_income_statement(db: Session, organization_id: str, filters: ReportFilter) -> IncomeStatement:
    revenue = []
    expenses = []

    for account_id, code, name, account_type, debit, credit in _account_totals(
        db,
        organization_id,
        start_date=filters.start_date,
        end_date=filters.end_date,
        account_types=INCOME_STATEMENT_TYPES,
    ):
        # revenue: credit - debit, expense: debit - credit
        balance = normal_balance(account_type, debit, credit)
        if is_negligible(balance):
            continue
        row = AccountBalanceRow(
            account_id=account_id,
            account_code=code,
            account_name=name,
            account_type=account_type,
            debit=debit,
            credit=credit,
            balance=balance,
        )
        if account_type == AccountType.REVENUE:
            revenue.append(row)
        else:
            expenses.append(row)

    total_revenue = sum((row.balance for row in revenue), ZERO)
    total_expenses = sum((row.balance for row in expenses), ZERO)

    return IncomeStatement(
        start_date=filters.start_date,
        end_date=filters.end_date,
        revenue=revenue,
        expenses=expenses,
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        net_income=total_revenue - total_expenses,
    )
