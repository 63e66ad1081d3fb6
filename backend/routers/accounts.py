from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from database import get_db
from models.account import AccountType
from schemas.account import Account, AccountCreate, AccountUpdate, AccountFilter
from schemas.common import DataResponse, CountResult, MessageResult
from crud import accounts as account_crud
from utils.tenancy import get_organization_id
from utils.auth_utils import require_permission, get_user_identifier

router = APIRouter(
    prefix="/accounts",
    tags=["Accounts"],
)


@router.get("", response_model=DataResponse[List[Account]])
def list_accounts(
    type: Optional[AccountType] = None,
    active: Optional[bool] = None,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:accounts:read")),
):
    filters = AccountFilter(type=type, active=active)
    return {"data": account_crud.list_accounts(db, organization_id, filters)}


@router.get("/hierarchy", response_model=DataResponse[List[Account]])
def get_account_hierarchy(
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:accounts:read")),
):
    return {"data": account_crud.get_account_hierarchy(db, organization_id)}


@router.post("/import/{template}", response_model=DataResponse[CountResult], status_code=status.HTTP_201_CREATED)
def import_account_template(
    template: str,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:accounts:create")),
):
    """Seed the organization's chart of accounts from the `french` or `syscohada` template."""
    count = account_crud.import_template(db, organization_id, template, get_user_identifier(user))
    return {"data": {"count": count, "message": f"{count} accounts imported"}}


@router.post("", response_model=DataResponse[Account], status_code=status.HTTP_201_CREATED)
def create_account(
    account: AccountCreate,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:accounts:create")),
):
    return {"data": account_crud.create_account(db, organization_id, account, get_user_identifier(user))}


@router.get("/{account_id}", response_model=DataResponse[Account])
def get_account(
    account_id: str,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:accounts:read")),
):
    return {"data": account_crud.get_account(db, organization_id, account_id)}


@router.put("/{account_id}", response_model=DataResponse[Account])
def update_account(
    account_id: str,
    account: AccountUpdate,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:accounts:update")),
):
    return {"data": account_crud.update_account(db, organization_id, account_id, account, get_user_identifier(user))}


@router.delete("/{account_id}", response_model=DataResponse[MessageResult])
def delete_account(
    account_id: str,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:accounts:delete")),
):
    account_crud.delete_account(db, organization_id, account_id, get_user_identifier(user))
    return {"data": {"message": "Account deleted successfully"}}
