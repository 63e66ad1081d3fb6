import os
import tempfile

# Must be set before the application modules read their configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="ledger-logs-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, build_engine, get_db
from main import app
from utils.auth_utils import get_current_user

ORGANIZATION_ID = "org-1"
TEST_USER = {"sub": "user-1", "permissions": ["*"]}

engine = build_engine("sqlite://", poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: TEST_USER
    with TestClient(app, headers={"X-Organization-ID": ORGANIZATION_ID}) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def create_account(client):
    def _create(code, account_type="asset", name=None, **extra):
        payload = {"code": code, "name": name or f"Account {code}", "type": account_type, **extra}
        response = client.post("/accounts", json=payload)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _create


@pytest.fixture
def journal(client):
    response = client.post("/journals", json={"code": "GEN", "name": "General journal", "type": "general"})
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def create_entry(client, journal):
    """Create a draft from (account, debit, credit) tuples; post it when asked."""
    def _create(lines, entry_date="2024-03-15", post=False, **extra):
        payload = {
            "journalId": journal["id"],
            "date": entry_date,
            "lines": [
                {"accountId": account["id"], "debit": debit, "credit": credit}
                for account, debit, credit in lines
            ],
            **extra,
        }
        response = client.post("/journal-entries", json=payload)
        assert response.status_code == 201, response.text
        entry = response.json()["data"]
        if post:
            response = client.post(f"/journal-entries/{entry['id']}/post")
            assert response.status_code == 200, response.text
            entry = response.json()["data"]
        return entry
    return _create
