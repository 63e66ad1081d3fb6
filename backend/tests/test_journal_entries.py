from datetime import date
from types import SimpleNamespace

import pytest

from crud import journal_entries as journal_entry_crud
from crud.audit_log import get_audit_trail
from exceptions import ImmutableEntryError, InvalidStateError, ValidationError
from models.journal_entry import JournalEntry
from schemas.journal_entry import JournalEntryCreate, JournalEntryLineCreate

ORGANIZATION_ID = "org-1"


@pytest.fixture
def bank(create_account):
    return create_account("512000", "asset")


@pytest.fixture
def sales(create_account):
    return create_account("706000", "revenue")


def test_create_draft_entry(client, journal, bank, sales, create_entry):
    entry = create_entry([(bank, 120.5, 0), (sales, 0, 120.5)], description="Invoice 42")

    assert entry["status"] == "draft"
    assert entry["reference"] == "GEN-2024-001"
    assert entry["totalDebit"] == 120.5
    assert entry["totalCredit"] == 120.5
    assert entry["journal"]["code"] == "GEN"
    assert [line["accountId"] for line in entry["lines"]] == [bank["id"], sales["id"]]
    assert entry["postedAt"] is None


def test_references_follow_journal_sequence(journal, bank, sales, create_entry):
    first = create_entry([(bank, 10, 0), (sales, 0, 10)])
    second = create_entry([(bank, 10, 0), (sales, 0, 10)])
    next_year = create_entry([(bank, 10, 0), (sales, 0, 10)], entry_date="2025-01-02")
    custom = create_entry([(bank, 10, 0), (sales, 0, 10)], reference="INV-42")

    assert first["reference"] == "GEN-2024-001"
    assert second["reference"] == "GEN-2024-002"
    assert next_year["reference"] == "GEN-2025-001"
    assert custom["reference"] == "INV-42"


def test_unbalanced_entry_is_rejected_and_not_persisted(client, journal, bank, sales):
    payload = {
        "journalId": journal["id"],
        "date": "2024-03-15",
        "lines": [
            {"accountId": bank["id"], "debit": 100, "credit": 0},
            {"accountId": sales["id"], "debit": 0, "credit": 90},
        ],
    }

    response = client.post("/journal-entries", json=payload)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    assert client.get("/journal-entries").json()["data"] == []


def test_negative_amount_is_rejected(client, journal, bank, sales):
    payload = {
        "journalId": journal["id"],
        "date": "2024-03-15",
        "lines": [
            {"accountId": bank["id"], "debit": -100, "credit": 0},
            {"accountId": sales["id"], "debit": 0, "credit": -100},
        ],
    }

    response = client.post("/journal-entries", json=payload)

    assert response.status_code == 400


def test_single_line_is_rejected(client, journal, bank):
    payload = {
        "journalId": journal["id"],
        "date": "2024-03-15",
        "lines": [{"accountId": bank["id"], "debit": 0, "credit": 0}],
    }

    response = client.post("/journal-entries", json=payload)

    assert response.status_code == 400


def test_validate_lines_codes():
    with pytest.raises(ValidationError) as unbalanced:
        journal_entry_crud.validate_lines([
            SimpleNamespace(debit=100, credit=0),
            SimpleNamespace(debit=0, credit=90),
        ])
    with pytest.raises(ValidationError) as too_few:
        journal_entry_crud.validate_lines([SimpleNamespace(debit=0, credit=0)])
    with pytest.raises(ValidationError) as negative:
        journal_entry_crud.validate_lines([
            SimpleNamespace(debit=-5, credit=0),
            SimpleNamespace(debit=0, credit=-5),
        ])

    assert unbalanced.value.code == "UNBALANCED_ENTRY"
    assert too_few.value.code == "TOO_FEW_LINES"
    assert negative.value.code == "NEGATIVE_AMOUNT"


def test_unknown_account_is_not_found(client, journal, bank):
    payload = {
        "journalId": journal["id"],
        "date": "2024-03-15",
        "lines": [
            {"accountId": bank["id"], "debit": 10, "credit": 0},
            {"accountId": "missing", "debit": 0, "credit": 10},
        ],
    }

    response = client.post("/journal-entries", json=payload)

    assert response.status_code == 404


def test_post_entry(client, journal, bank, sales, create_entry):
    entry = create_entry([(bank, 100, 0), (sales, 0, 100)])

    response = client.post(f"/journal-entries/{entry['id']}/post", json={"date": "2024-03-20T10:00:00"})

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["status"] == "posted"
    assert data["postedBy"] == "user-1"
    assert data["postedAt"].startswith("2024-03-20T10:00:00")
    assert data["date"] == "2024-03-15"


def test_posting_twice_is_invalid_state(client, journal, bank, sales, create_entry):
    entry = create_entry([(bank, 100, 0), (sales, 0, 100)], post=True)

    response = client.post(f"/journal-entries/{entry['id']}/post")

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "INVALID_STATE"
    assert client.get(f"/journal-entries/{entry['id']}").json()["data"]["totalDebit"] == 100.0


def test_cancel_draft_then_post_is_rejected(client, journal, bank, sales, create_entry):
    entry = create_entry([(bank, 100, 0), (sales, 0, 100)])

    cancelled = client.post(f"/journal-entries/{entry['id']}/cancel")
    posted = client.post(f"/journal-entries/{entry['id']}/post")
    again = client.post(f"/journal-entries/{entry['id']}/cancel")

    assert cancelled.json()["data"]["status"] == "cancelled"
    assert cancelled.json()["data"]["cancelledBy"] == "user-1"
    assert posted.status_code == 409
    assert again.status_code == 409


def test_cancel_posted_entry_keeps_lines(client, journal, bank, sales, create_entry):
    entry = create_entry([(bank, 100, 0), (sales, 0, 100)], post=True)

    response = client.post(f"/journal-entries/{entry['id']}/cancel")

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["status"] == "cancelled"
    assert len(data["lines"]) == 2
    assert data["totalDebit"] == 100.0


def test_reverse_swaps_debit_and_credit(client, journal, bank, sales, create_entry):
    original = create_entry(
        [(bank, 100, 0), (sales, 0, 100)],
        post=True,
        reference="INV-1",
    )

    response = client.post(f"/journal-entries/{original['id']}/reverse", json={"reversalDate": "2024-04-01"})

    reversal = response.json()["data"]
    assert response.status_code == 201
    assert reversal["status"] == "draft"
    assert reversal["reversalOfId"] == original["id"]
    assert reversal["date"] == "2024-04-01"
    assert reversal["description"] == "Reversal of INV-1"
    for before, after in zip(original["lines"], reversal["lines"]):
        assert after["accountId"] == before["accountId"]
        assert after["debit"] == before["credit"]
        assert after["credit"] == before["debit"]

    stored = client.get(f"/journal-entries/{original['id']}").json()["data"]
    assert stored["status"] == "posted"
    assert stored["totalDebit"] == original["totalDebit"]
    assert stored["totalCredit"] == original["totalCredit"]
    assert stored["date"] == original["date"]
    assert stored["journalId"] == original["journalId"]
    assert [(line["debit"], line["credit"]) for line in stored["lines"]] == [
        (line["debit"], line["credit"]) for line in original["lines"]
    ]
    assert sum(line["debit"] for line in reversal["lines"]) == sum(line["credit"] for line in stored["lines"])


def test_reverse_requires_posted_entry(client, journal, bank, sales, create_entry):
    entry = create_entry([(bank, 100, 0), (sales, 0, 100)])

    response = client.post(f"/journal-entries/{entry['id']}/reverse")

    assert response.status_code == 409


def test_entry_can_only_be_reversed_once(client, journal, bank, sales, create_entry):
    entry = create_entry([(bank, 100, 0), (sales, 0, 100)], post=True)

    first = client.post(f"/journal-entries/{entry['id']}/reverse")
    second = client.post(f"/journal-entries/{entry['id']}/reverse")
    client.post(f"/journal-entries/{first.json()['data']['id']}/cancel")
    third = client.post(f"/journal-entries/{entry['id']}/reverse")

    assert first.status_code == 201
    assert second.status_code == 409
    assert third.status_code == 201


def test_delete_draft_entry(client, journal, bank, sales, create_entry):
    entry = create_entry([(bank, 100, 0), (sales, 0, 100)])

    response = client.delete(f"/journal-entries/{entry['id']}")

    assert response.status_code == 200
    assert client.get(f"/journal-entries/{entry['id']}").status_code == 404


def test_delete_posted_entry_is_rejected(client, journal, bank, sales, create_entry):
    entry = create_entry([(bank, 100, 0), (sales, 0, 100)], post=True)

    response = client.delete(f"/journal-entries/{entry['id']}")

    assert response.status_code == 409
    assert client.get(f"/journal-entries/{entry['id']}").status_code == 200


def test_list_filters(client, journal, bank, sales, create_entry):
    create_entry([(bank, 10, 0), (sales, 0, 10)], entry_date="2024-01-10", post=True)
    create_entry([(bank, 20, 0), (sales, 0, 20)], entry_date="2024-02-10")
    create_entry([(bank, 30, 0), (sales, 0, 30)], entry_date="2024-03-10")

    posted = client.get("/journal-entries", params={"status": "posted"}).json()["data"]
    february = client.get(
        "/journal-entries", params={"startDate": "2024-02-01", "endDate": "2024-02-29"}
    ).json()["data"]
    paged = client.get("/journal-entries", params={"limit": 1, "offset": 1}).json()["data"]
    by_journal = client.get("/journal-entries", params={"journalId": journal["id"]}).json()["data"]

    assert [e["totalDebit"] for e in posted] == [10.0]
    assert [e["totalDebit"] for e in february] == [20.0]
    assert [e["totalDebit"] for e in paged] == [20.0]
    assert len(by_journal) == 3


def test_list_rejects_inverted_date_range(client):
    response = client.get("/journal-entries", params={"startDate": "2024-03-01", "endDate": "2024-02-01"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_posted_entry_cannot_be_modified_through_the_orm(db, journal, bank, sales, create_entry):
    entry = create_entry([(bank, 100, 0), (sales, 0, 100)], post=True)

    db_entry = db.query(JournalEntry).filter(JournalEntry.id == entry["id"]).one()
    db_entry.description = "rewritten"
    with pytest.raises(ImmutableEntryError):
        db.flush()
    db.rollback()

    db_entry = db.query(JournalEntry).filter(JournalEntry.id == entry["id"]).one()
    db_entry.lines[0].debit = 1
    with pytest.raises(ImmutableEntryError):
        db.flush()
    db.rollback()

    db_entry = db.query(JournalEntry).filter(JournalEntry.id == entry["id"]).one()
    db.delete(db_entry)
    with pytest.raises(ImmutableEntryError):
        db.flush()
    db.rollback()


def test_mutations_are_audited(db, journal, bank, sales, create_entry):
    entry = create_entry([(bank, 100, 0), (sales, 0, 100)], post=True)
    journal_entry_crud.cancel_journal_entry(db, ORGANIZATION_ID, entry["id"], "user-2")

    trail = get_audit_trail(db, ORGANIZATION_ID, "journal_entries", entry["id"])

    assert [log.action for log in trail] == ["CREATE", "POST", "CANCEL"]
    assert trail[-1].changed_by == "user-2"
    assert trail[-1].old_values == {"status": "posted"}


def test_crud_post_rejects_cancelled_entry(db, journal, bank, sales, create_entry):
    entry = create_entry([(bank, 100, 0), (sales, 0, 100)])
    journal_entry_crud.cancel_journal_entry(db, ORGANIZATION_ID, entry["id"], "user-1")

    with pytest.raises(InvalidStateError):
        journal_entry_crud.post_journal_entry(db, ORGANIZATION_ID, entry["id"], "user-1", posted_at=None)

    stored = journal_entry_crud.get_journal_entry(db, ORGANIZATION_ID, entry["id"])
    assert stored.status.value == "cancelled"
    assert stored.date == date(2024, 3, 15)


def test_second_live_reversal_is_refused_by_the_database(db, journal, bank, sales, create_entry):
    entry = create_entry([(bank, 100, 0), (sales, 0, 100)], post=True)
    journal_entry_crud.reverse_journal_entry(db, ORGANIZATION_ID, entry["id"], "user-1")

    # Skips the service-level check and goes straight to the insert
    duplicate = JournalEntryCreate(
        journal_id=journal["id"],
        date=date(2024, 4, 1),
        lines=[
            JournalEntryLineCreate(account_id=bank["id"], credit="100.00"),
            JournalEntryLineCreate(account_id=sales["id"], debit="100.00"),
        ],
    )
    with pytest.raises(InvalidStateError):
        journal_entry_crud._persist_entry(db, ORGANIZATION_ID, "user-1", duplicate, reversal_of_id=entry["id"])

    reversals = db.query(JournalEntry).filter(JournalEntry.reversal_of_id == entry["id"]).all()
    assert len(reversals) == 1


def test_oversized_amount_is_rejected(client, journal, bank, sales):
    payload = {
        "journalId": journal["id"],
        "date": "2024-03-15",
        "lines": [
            {"accountId": bank["id"], "debit": "10000000000000000.00", "credit": 0},
            {"accountId": sales["id"], "debit": 0, "credit": "10000000000000000.00"},
        ],
    }

    response = client.post("/journal-entries", json=payload)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    assert client.get("/journal-entries").json()["data"] == []
