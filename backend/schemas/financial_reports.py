from pydantic import model_validator
from typing import List, Optional
from datetime import date
from models.account import AccountType
from schemas.common import CamelModel, Money


class ReportFilter(CamelModel):
    start_date: date
    end_date: date
    account_ids: Optional[List[str]] = None

    @model_validator(mode="after")
    def check_date_range(self):
        if self.start_date > self.end_date:
            raise ValueError("startDate must be on or before endDate")
        return self


class BalanceSheetRequest(CamelModel):
    as_of_date: date


class AccountSummary(CamelModel):
    id: str
    code: str
    name: str
    type: AccountType


# General Ledger
class GeneralLedgerRow(CamelModel):
    entry_id: str
    date: date
    reference: str
    description: str
    debit: Money
    credit: Money
    running_balance: Money


class GeneralLedger(CamelModel):
    account: AccountSummary
    start_date: date
    end_date: date
    opening_balance: Money
    closing_balance: Money
    rows: List[GeneralLedgerRow]


# Trial Balance, Balance Sheet and Income Statement share one row shape
class AccountBalanceRow(CamelModel):
    account_id: str
    account_code: str
    account_name: str
    account_type: AccountType
    debit: Money
    credit: Money
    balance: Money


class TrialBalance(CamelModel):
    start_date: date
    end_date: date
    rows: List[AccountBalanceRow]
    total_debit: Money
    total_credit: Money


class BalanceSheet(CamelModel):
    as_of_date: date
    assets: List[AccountBalanceRow]
    liabilities: List[AccountBalanceRow]
    equity: List[AccountBalanceRow]
    total_assets: Money
    total_liabilities: Money
    total_equity: Money


class IncomeStatement(CamelModel):
    start_date: date
    end_date: date
    revenue: List[AccountBalanceRow]
    expenses: List[AccountBalanceRow]
    total_revenue: Money
    total_expenses: Money
    net_income: Money
