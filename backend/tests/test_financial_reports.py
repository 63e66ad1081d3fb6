import pytest

PERIOD = {"startDate": "2024-01-01", "endDate": "2024-12-31"}


@pytest.fixture
def accounts(create_account):
    return {
        "bank": create_account("512000", "asset"),
        "capital": create_account("101000", "equity"),
        "supplier": create_account("401000", "liability"),
        "sales": create_account("706000", "revenue"),
        "rent": create_account("613000", "expense"),
    }


def _rows_by_code(rows):
    return {row["accountCode"]: row for row in rows}


def test_income_statement_and_trial_balance_after_posting(client, journal, accounts, create_entry):
    create_entry([(accounts["bank"], 100, 0), (accounts["sales"], 0, 100)], post=True)

    income = client.post("/reports/income-statement", json=PERIOD).json()["data"]
    trial = client.post("/reports/trial-balance", json=PERIOD).json()["data"]

    assert income["totalRevenue"] == 100.0
    assert income["totalExpenses"] == 0.0
    assert income["netIncome"] == 100.0
    rows = _rows_by_code(trial["rows"])
    assert rows["512000"]["balance"] == 100.0
    assert rows["706000"]["balance"] == 100.0
    assert trial["totalDebit"] == trial["totalCredit"] == 100.0


def test_reversal_nets_accounts_to_zero(client, journal, accounts, create_entry):
    original = create_entry([(accounts["bank"], 100, 0), (accounts["sales"], 0, 100)], post=True)
    reversal = client.post(
        f"/journal-entries/{original['id']}/reverse", json={"reversalDate": "2024-06-30"}
    ).json()["data"]
    client.post(f"/journal-entries/{reversal['id']}/post")

    trial = client.post("/reports/trial-balance", json=PERIOD).json()["data"]

    rows = _rows_by_code(trial["rows"])
    assert rows["512000"]["balance"] == 0.0
    assert rows["706000"]["balance"] == 0.0
    assert rows["512000"]["debit"] == rows["512000"]["credit"] == 100.0


def test_reversed_entry_cannot_be_cancelled_while_reversal_stands(client, journal, accounts, create_entry):
    original = create_entry([(accounts["bank"], 100, 0), (accounts["sales"], 0, 100)], post=True)
    reversal = client.post(
        f"/journal-entries/{original['id']}/reverse", json={"reversalDate": "2024-06-30"}
    ).json()["data"]
    client.post(f"/journal-entries/{reversal['id']}/post")

    response = client.post(f"/journal-entries/{original['id']}/cancel")

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "INVALID_STATE"
    assert client.get(f"/journal-entries/{original['id']}").json()["data"]["status"] == "posted"
    trial = client.post("/reports/trial-balance", json=PERIOD).json()["data"]
    rows = _rows_by_code(trial["rows"])
    assert rows["512000"]["balance"] == 0.0
    assert rows["706000"]["balance"] == 0.0
    assert trial["totalDebit"] == trial["totalCredit"]

    # Cancelling the reversal first frees the original
    assert client.post(f"/journal-entries/{reversal['id']}/cancel").status_code == 200
    assert client.post(f"/journal-entries/{original['id']}/cancel").status_code == 200
    trial = client.post("/reports/trial-balance", json=PERIOD).json()["data"]
    assert trial["rows"] == []


def test_balance_sheet_before_any_entry_is_empty(client, journal, accounts, create_entry):
    create_entry([(accounts["bank"], 500, 0), (accounts["capital"], 0, 500)], entry_date="2024-05-01", post=True)

    sheet = client.post("/reports/balance-sheet", json={"asOfDate": "2024-04-30"}).json()["data"]

    assert sheet["assets"] == []
    assert sheet["liabilities"] == []
    assert sheet["equity"] == []
    assert sheet["totalAssets"] == sheet["totalLiabilities"] == sheet["totalEquity"] == 0.0


def test_balance_sheet_is_cumulative_up_to_date(client, journal, accounts, create_entry):
    create_entry([(accounts["bank"], 1000, 0), (accounts["capital"], 0, 1000)], entry_date="2023-12-01", post=True)
    create_entry([(accounts["rent"], 300, 0), (accounts["supplier"], 0, 300)], entry_date="2024-02-01", post=True)
    create_entry([(accounts["bank"], 50, 0), (accounts["sales"], 0, 50)], entry_date="2024-08-01", post=True)

    sheet = client.post("/reports/balance-sheet", json={"asOfDate": "2024-06-30"}).json()["data"]

    assert [row["accountCode"] for row in sheet["assets"]] == ["512000"]
    assert sheet["assets"][0]["debit"] == 1000.0
    assert sheet["assets"][0]["balance"] == 1000.0
    assert sheet["liabilities"][0]["credit"] == 300.0
    assert sheet["liabilities"][0]["balance"] == 300.0
    assert sheet["totalAssets"] == 1000.0
    assert sheet["totalLiabilities"] == 300.0
    assert sheet["totalEquity"] == 1000.0


def test_reports_ignore_draft_and_cancelled_entries(client, journal, accounts, create_entry):
    create_entry([(accounts["bank"], 100, 0), (accounts["sales"], 0, 100)], post=True)
    create_entry([(accounts["bank"], 40, 0), (accounts["sales"], 0, 40)])
    cancelled = create_entry([(accounts["rent"], 70, 0), (accounts["bank"], 0, 70)], post=True)
    client.post(f"/journal-entries/{cancelled['id']}/cancel")

    trial = client.post("/reports/trial-balance", json=PERIOD).json()["data"]
    ledger = client.post(f"/reports/general-ledger/{accounts['bank']['id']}", json=PERIOD).json()["data"]
    income = client.post("/reports/income-statement", json=PERIOD).json()["data"]

    assert sorted(_rows_by_code(trial["rows"])) == ["512000", "706000"]
    assert len(ledger["rows"]) == 1
    assert ledger["closingBalance"] == 100.0
    assert income["expenses"] == []
    assert income["netIncome"] == 100.0


def test_general_ledger_running_balance_matches_trial_balance(client, journal, accounts, create_entry):
    create_entry([(accounts["bank"], 1000, 0), (accounts["capital"], 0, 1000)], entry_date="2024-01-05", post=True)
    create_entry(
        [(accounts["rent"], 250, 0), (accounts["bank"], 0, 250)],
        entry_date="2024-02-05",
        description="February rent",
        post=True,
    )
    create_entry([(accounts["bank"], 80, 0), (accounts["sales"], 0, 80)], entry_date="2024-03-05", post=True)

    ledger = client.post(f"/reports/general-ledger/{accounts['bank']['id']}", json=PERIOD).json()["data"]
    trial = client.post("/reports/trial-balance", json=PERIOD).json()["data"]

    assert ledger["account"]["code"] == "512000"
    assert ledger["openingBalance"] == 0.0
    assert [row["runningBalance"] for row in ledger["rows"]] == [1000.0, 750.0, 830.0]
    assert ledger["rows"][1]["description"] == "February rent"
    assert ledger["rows"][1]["credit"] == 250.0
    assert ledger["closingBalance"] == _rows_by_code(trial["rows"])["512000"]["balance"]


def test_general_ledger_sign_follows_account_type(client, journal, accounts, create_entry):
    create_entry([(accounts["bank"], 60, 0), (accounts["sales"], 0, 60)], post=True)

    ledger = client.post(f"/reports/general-ledger/{accounts['sales']['id']}", json=PERIOD).json()["data"]

    assert ledger["rows"][0]["runningBalance"] == 60.0
    assert ledger["closingBalance"] == 60.0


def test_general_ledger_unknown_account(client):
    response = client.post("/reports/general-ledger/missing", json=PERIOD)

    assert response.status_code == 404


def test_trial_balance_debits_equal_credits(client, journal, accounts, create_entry):
    create_entry([(accounts["bank"], 1000, 0), (accounts["capital"], 0, 1000)], post=True)
    create_entry([(accounts["rent"], 123.45, 0), (accounts["supplier"], 0, 123.45)], post=True)
    create_entry(
        [(accounts["bank"], 99.99, 0), (accounts["sales"], 0, 33.33), (accounts["supplier"], 0, 66.66)],
        post=True,
    )

    trial = client.post("/reports/trial-balance", json=PERIOD).json()["data"]

    assert trial["totalDebit"] == trial["totalCredit"]
    assert [row["accountCode"] for row in trial["rows"]] == ["101000", "401000", "512000", "613000", "706000"]


def test_trial_balance_account_filter_and_period(client, journal, accounts, create_entry):
    create_entry([(accounts["bank"], 100, 0), (accounts["sales"], 0, 100)], entry_date="2023-06-01", post=True)
    create_entry([(accounts["bank"], 20, 0), (accounts["sales"], 0, 20)], entry_date="2024-06-01", post=True)

    trial = client.post(
        "/reports/trial-balance", json={**PERIOD, "accountIds": [accounts["bank"]["id"]]}
    ).json()["data"]

    assert [row["accountCode"] for row in trial["rows"]] == ["512000"]
    assert trial["rows"][0]["debit"] == 20.0


def test_income_statement_net_income(client, journal, accounts, create_entry):
    create_entry([(accounts["bank"], 500, 0), (accounts["sales"], 0, 500)], post=True)
    create_entry([(accounts["rent"], 200, 0), (accounts["bank"], 0, 200)], post=True)

    income = client.post("/reports/income-statement", json=PERIOD).json()["data"]

    assert income["revenue"][0]["balance"] == 500.0
    assert income["expenses"][0]["balance"] == 200.0
    assert income["netIncome"] == 300.0


def test_reports_are_scoped_to_organization(client, journal, accounts, create_entry):
    create_entry([(accounts["bank"], 100, 0), (accounts["sales"], 0, 100)], post=True)

    trial = client.post(
        "/reports/trial-balance", json=PERIOD, headers={"X-Organization-ID": "org-2"}
    ).json()["data"]

    assert trial["rows"] == []
    assert trial["totalDebit"] == 0.0


def test_inverted_report_period_is_rejected(client):
    response = client.post("/reports/trial-balance", json={"startDate": "2024-12-31", "endDate": "2024-01-01"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
