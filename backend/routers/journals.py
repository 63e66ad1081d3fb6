from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from database import get_db
from models.journal import JournalType
from schemas.journal import Journal, JournalCreate, JournalUpdate, JournalFilter
from schemas.common import DataResponse, CountResult, MessageResult
from crud import journals as journal_crud
from utils.tenancy import get_organization_id
from utils.auth_utils import require_permission, get_user_identifier

router = APIRouter(
    prefix="/journals",
    tags=["Journals"],
)


@router.get("", response_model=DataResponse[List[Journal]])
def list_journals(
    type: Optional[JournalType] = None,
    active: Optional[bool] = None,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:journals:read")),
):
    filters = JournalFilter(type=type, active=active)
    return {"data": journal_crud.list_journals(db, organization_id, filters)}


@router.post("", response_model=DataResponse[Journal], status_code=status.HTTP_201_CREATED)
def create_journal(
    journal: JournalCreate,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:journals:create")),
):
    return {"data": journal_crud.create_journal(db, organization_id, journal, get_user_identifier(user))}


@router.post("/defaults", response_model=DataResponse[CountResult], status_code=status.HTTP_201_CREATED)
def create_default_journals(
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:journals:create")),
):
    count = journal_crud.create_default_journals(db, organization_id, get_user_identifier(user))
    return {"data": {"count": count, "message": f"{count} journals created"}}


@router.get("/{journal_id}", response_model=DataResponse[Journal])
def get_journal(
    journal_id: str,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:journals:read")),
):
    return {"data": journal_crud.get_journal(db, organization_id, journal_id)}


@router.put("/{journal_id}", response_model=DataResponse[Journal])
def update_journal(
    journal_id: str,
    journal: JournalUpdate,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:journals:update")),
):
    return {"data": journal_crud.update_journal(db, organization_id, journal_id, journal, get_user_identifier(user))}


@router.delete("/{journal_id}", response_model=DataResponse[MessageResult])
def delete_journal(
    journal_id: str,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:journals:delete")),
):
    journal_crud.delete_journal(db, organization_id, journal_id, get_user_identifier(user))
    return {"data": {"message": "Journal deleted successfully"}}
