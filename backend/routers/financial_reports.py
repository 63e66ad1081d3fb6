from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from database import get_db
from schemas.financial_reports import (
    ReportFilter,
    BalanceSheetRequest,
    GeneralLedger,
    TrialBalance,
    BalanceSheet,
    IncomeStatement,
)
from schemas.common import DataResponse
from crud import financial_reports as crud_financial_reports
from utils.tenancy import get_organization_id
from utils.auth_utils import require_permission

router = APIRouter(
    prefix="/reports",
    tags=["Financial Reports"],
)


@router.post("/general-ledger/{account_id}", response_model=DataResponse[GeneralLedger])
def get_general_ledger(
    account_id: str,
    filters: ReportFilter,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:reports:read")),
):
    return {"data": crud_financial_reports.get_general_ledger(db, organization_id, account_id, filters)}


@router.post("/trial-balance", response_model=DataResponse[TrialBalance])
def get_trial_balance(
    filters: ReportFilter,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:reports:read")),
):
    return {"data": crud_financial_reports.get_trial_balance(db, organization_id, filters)}


@router.post("/balance-sheet", response_model=DataResponse[BalanceSheet])
def get_balance_sheet(
    body: BalanceSheetRequest,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:reports:read")),
):
    return {"data": crud_financial_reports.get_balance_sheet(db, organization_id, body.as_of_date)}


@router.post("/income-statement", response_model=DataResponse[IncomeStatement])
def get_income_statement(
    filters: ReportFilter,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:reports:read")),
):
    return {"data": crud_financial_reports.get_income_statement(db, organization_id, filters)}
