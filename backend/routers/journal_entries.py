from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from database import get_db
from models.journal_entry import EntryStatus
from schemas.journal_entry import (
    JournalEntry,
    JournalEntryCreate,
    JournalEntryPost,
    JournalEntryReverse,
    EntryListFilter,
)
from schemas.common import DataResponse, MessageResult
from crud import journal_entries as journal_entry_crud
from utils.tenancy import get_organization_id
from utils.auth_utils import require_permission, get_user_identifier

router = APIRouter(
    prefix="/journal-entries",
    tags=["Journal Entries"],
)


@router.get("", response_model=DataResponse[List[JournalEntry]])
def list_journal_entries(
    journal_id: Optional[str] = Query(None, alias="journalId"),
    entry_status: Optional[EntryStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:journal_entries:read")),
):
    filters = EntryListFilter(
        journal_id=journal_id,
        status=entry_status,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
    )
    return {"data": journal_entry_crud.list_journal_entries(db, organization_id, filters)}


@router.post("", response_model=DataResponse[JournalEntry], status_code=status.HTTP_201_CREATED)
def create_journal_entry(
    entry: JournalEntryCreate,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:journal_entries:create")),
):
    """
    Create a draft journal entry.
    Debits must equal credits; the schema checks it first and the crud layer again before saving.
    """
    return {"data": journal_entry_crud.create_journal_entry(db, organization_id, get_user_identifier(user), entry)}


@router.get("/{entry_id}", response_model=DataResponse[JournalEntry])
def get_journal_entry(
    entry_id: str,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:journal_entries:read")),
):
    return {"data": journal_entry_crud.get_journal_entry(db, organization_id, entry_id)}


@router.post("/{entry_id}/post", response_model=DataResponse[JournalEntry])
def post_journal_entry(
    entry_id: str,
    body: Optional[JournalEntryPost] = None,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:journal_entries:post")),
):
    posted_at = body.date if body else None
    return {"data": journal_entry_crud.post_journal_entry(
        db, organization_id, entry_id, get_user_identifier(user), posted_at=posted_at
    )}


@router.post("/{entry_id}/cancel", response_model=DataResponse[JournalEntry])
def cancel_journal_entry(
    entry_id: str,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:journal_entries:post")),
):
    return {"data": journal_entry_crud.cancel_journal_entry(db, organization_id, entry_id, get_user_identifier(user))}


@router.post("/{entry_id}/reverse", response_model=DataResponse[JournalEntry], status_code=status.HTTP_201_CREATED)
def reverse_journal_entry(
    entry_id: str,
    body: Optional[JournalEntryReverse] = None,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:journal_entries:create")),
):
    reversal_date = body.reversal_date if body else None
    return {"data": journal_entry_crud.reverse_journal_entry(
        db, organization_id, entry_id, get_user_identifier(user), reversal_date=reversal_date
    )}


@router.delete("/{entry_id}", response_model=DataResponse[MessageResult])
def delete_journal_entry(
    entry_id: str,
    db: Session = Depends(get_db),
    organization_id: str = Depends(get_organization_id),
    user: dict = Depends(require_permission("finance:journal_entries:delete")),
):
    journal_entry_crud.delete_journal_entry(db, organization_id, entry_id, get_user_identifier(user))
    return {"data": {"message": "Journal entry deleted successfully"}}
