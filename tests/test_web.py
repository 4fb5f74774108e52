"""Tests for the HTTP API."""

from decimal import Decimal

import pytest


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == 200
    assert body["data"]["status"] == "ok"


def test_ready(client):
    response = client.get("/health/ready")
    assert response.status_code == 200
    assert response.json()["data"]["database"] == "ok"


def test_login_flow(client, mailer):
    response = client.post("/auth/request", json={"email": "new@x.io"})
    assert response.status_code == 200
    assert response.json()["data"] == {"message": "code sent"}

    code = mailer.last_to("new@x.io").data["Code"]
    response = client.post("/auth/validate", json={"email": "new@x.io", "code": code})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["is_new_user"] is True
    assert data["session_info"]["user"]["name"] == "new"
    assert data["session_info"]["organizations"][0]["user_role"] == "regular_manager"

    headers = {"Authorization": f"Bearer {data['session_token']}"}
    me = client.get("/accounts/me", headers=headers)
    assert me.json()["data"]["user"]["email"] == "new@x.io"

    assert client.post("/auth/logout", headers=headers).status_code == 200
    response = client.get("/accounts/me", headers=headers)
    assert response.status_code == 401
    assert response.json()["code"] == "SESSION_NOT_FOUND"


def test_wrong_code(client):
    client.post("/auth/request", json={"email": "u@x.io"})
    response = client.post("/auth/validate", json={"email": "u@x.io", "code": "abcd"})

    assert response.status_code == 401
    assert response.json() == {"status": 401, "code": "INVALID_CODE", "message": "invalid code"}


def test_request_validation_errors(client):
    response = client.post("/auth/request", json={"email": ""})
    assert response.status_code == 400
    assert response.json()["code"] == "EMAIL_REQUIRED"

    response = client.post(
        "/auth/request", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_JSON_SYNTAX"

    response = client.post("/auth/request", json={"email": ["a@b.co"]})
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_JSON_TYPE"


def test_request_existing_only(client, sample_user):
    assert client.post("/auth/request/existing", json={"email": sample_user.email}).status_code == 200

    response = client.post("/auth/request/existing", json={"email": "ghost@x.io"})
    assert response.status_code == 404
    assert response.json()["code"] == "USER_NOT_FOUND"


def test_missing_session(client):
    response = client.get("/financial/accounts")
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"


def test_session_id_header(client, auth_service, sample_user):
    token = auth_service.authenticate(sample_user.email).session.token
    response = client.get("/accounts/me", headers={"X-Session-ID": token})
    assert response.status_code == 200


def test_foreign_active_organization(client, auth_headers, user_service):
    other = user_service.register_user(name="Bia", email="bia@example.com", organization_name="Bia Org")
    headers = {**auth_headers, "X-Active-Organization": str(other.default_organization_id)}

    response = client.get("/financial/accounts", headers=headers)
    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"

    response = client.get("/financial/accounts", headers={**auth_headers, "X-Active-Organization": "abc"})
    assert response.status_code == 400


def test_unknown_route(client):
    response = client.get("/nowhere")
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_account_crud(client, auth_headers):
    response = client.post(
        "/financial/accounts",
        json={"name": "Nubank", "bank_name": "Nu", "balance": "10.50"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    account = response.json()["data"]
    assert account["balance"] == "10.50"
    assert account["account_type"] == "checking"

    response = client.patch(
        f"/financial/accounts/{account['id']}", json={"name": "Nu"}, headers=auth_headers
    )
    assert response.json()["data"]["name"] == "Nu"

    duplicate = client.post("/financial/accounts", json={"name": "Nu"}, headers=auth_headers)
    assert duplicate.status_code == 409

    assert client.delete(f"/financial/accounts/{account['id']}", headers=auth_headers).status_code == 200
    response = client.get(f"/financial/accounts/{account['id']}", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_import_multipart_and_raw(client, auth_headers, sample_account, fixtures_dir):
    payload = (fixtures_dir / "two_transactions.ofx").read_bytes()
    url = f"/financial/accounts/{sample_account.id}/transactions/import"

    response = client.post(url, files={"ofx_file": ("extrato.ofx", payload)}, headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert (data["imported_count"], data["duplicate_count"]) == (2, 0)

    response = client.post(
        url, content=payload, headers={**auth_headers, "Content-Type": "application/x-ofx"}
    )
    data = response.json()["data"]
    assert (data["imported_count"], data["duplicate_count"]) == (0, 2)

    transactions = client.get("/financial/transactions", headers=auth_headers).json()["data"]
    assert {t["ofx_fitid"] for t in transactions} == {"FIT-0001", "FIT-0002"}


def test_import_empty_body(client, auth_headers, sample_account):
    response = client.post(
        f"/financial/accounts/{sample_account.id}/transactions/import", content=b"", headers=auth_headers
    )
    assert response.status_code == 400
    assert response.json()["code"] == "MISSING_REQUIRED_FIELDS"


def test_import_without_transactions(client, auth_headers, sample_account, fixtures_dir):
    response = client.post(
        f"/financial/accounts/{sample_account.id}/transactions/import",
        content=(fixtures_dir / "empty_statement.ofx").read_bytes(),
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "NO_TRANSACTIONS_FOUND"


def test_budget_progress_endpoint(client, auth_headers, sample_account):
    budget = client.post(
        "/financial/budgets",
        json={"name": "March", "month": 3, "year": 2024, "budget_type": "fixed", "amount": "3100"},
        headers=auth_headers,
    ).json()["data"]
    client.post(
        f"/financial/accounts/{sample_account.id}/transactions",
        json={
            "description": "Rent",
            "amount": "1000",
            "transaction_date": "2024-03-02",
            "transaction_type": "debit",
        },
        headers=auth_headers,
    )

    response = client.get(f"/financial/budgets/{budget['id']}/progress", headers=auth_headers)

    assert response.status_code == 200
    progress = response.json()["data"]
    assert progress["current_day"] == 15
    assert progress["expected_at_current_day"] == "1500.00"
    assert progress["status"] == "on_track"


def test_planned_entry_month_and_dismiss(client, auth_headers, sample_category):
    entry = client.post(
        "/financial/planned-entries",
        json={
            "category_id": sample_category.id,
            "description": "Rent",
            "amount": "1500",
            "expected_day": 10,
        },
        headers=auth_headers,
    ).json()["data"]

    month = client.get("/financial/planned-entries/month?month=3&year=2024", headers=auth_headers)
    assert [item["status"] for item in month.json()["data"]] == ["missed"]

    response = client.post(
        f"/financial/planned-entries/{entry['id']}/dismiss",
        json={"month": 3, "year": 2024, "reason": "skip"},
        headers=auth_headers,
    )
    assert response.json()["data"]["status"] == "dismissed"

    response = client.delete(
        f"/financial/planned-entries/{entry['id']}/dismiss?month=3&year=2024", headers=auth_headers
    )
    assert response.json()["data"]["status"] == "pending"


def test_auto_match_endpoint(client, auth_headers, sample_account, sample_category):
    client.post(
        "/financial/planned-entries",
        json={
            "category_id": sample_category.id,
            "description": "UBER TRIP",
            "amount": "50",
            "expected_day": 5,
            "is_saved_pattern": True,
        },
        headers=auth_headers,
    )
    tx = client.post(
        f"/financial/accounts/{sample_account.id}/transactions",
        json={
            "description": "UBER TRIP 1234",
            "amount": "51",
            "transaction_date": "2024-03-05",
            "transaction_type": "debit",
            "category_id": sample_category.id,
        },
        headers=auth_headers,
    ).json()["data"]

    suggestions = client.get(f"/financial/transactions/{tx['id']}/suggestions", headers=auth_headers)
    assert suggestions.json()["data"][0]["score"]["confidence"] == "HIGH"

    response = client.post(f"/financial/transactions/{tx['id']}/auto-match", headers=auth_headers)
    assert response.json()["data"] == {"matched": True}


def test_classification_rule_endpoints(client, auth_headers, sample_account, sample_category):
    rule = client.post(
        "/financial/classification-rules",
        json={"category_id": sample_category.id, "name": "Market", "match_description": "mercado"},
        headers=auth_headers,
    )
    assert rule.status_code == 201
    client.post(
        f"/financial/accounts/{sample_account.id}/transactions",
        json={
            "description": "SUPER MERCADO X",
            "amount": "80",
            "transaction_date": "2024-03-05",
            "transaction_type": "debit",
        },
        headers=auth_headers,
    )

    response = client.post("/financial/classification-rules/apply", json={}, headers=auth_headers)
    assert response.json()["data"]["classified_count"] == 1


def test_invite_requires_permission(client, auth_service, user_service, org_id):
    member = user_service.register_user(
        name="Reader", email="reader@example.com", organization_id=org_id, role="regular_user"
    )
    token = auth_service.authenticate(member.email).session.token

    response = client.post(
        f"/accounts/organizations/{org_id}/invites",
        json={"email": "guest@example.com"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 403


def test_invite_and_accept(client, auth_headers, org_id):
    response = client.post(
        f"/accounts/organizations/{org_id}/invites",
        json={"email": "guest@example.com", "role": "regular_user"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    token = response.json()["data"]["token"]

    pending = client.get(f"/accounts/organizations/{org_id}/invites", headers=auth_headers)
    assert len(pending.json()["data"]) == 1

    accepted = client.post("/auth/invites/accept", json={"token": token})
    assert accepted.status_code == 200
    assert accepted.json()["data"]["is_new_user"] is True

    again = client.post("/auth/invites/accept", json={"token": token})
    assert again.status_code == 409
    assert again.json()["code"] == "INVITE_ALREADY_ACCEPTED"


def test_members_of_foreign_organization(client, auth_headers, user_service):
    other = user_service.register_user(name="Bia", email="bia@example.com", organization_name="Bia Org")
    response = client.get(
        f"/accounts/organizations/{other.default_organization_id}/members", headers=auth_headers
    )
    assert response.status_code == 403


@pytest.mark.parametrize("amount", ["-1", "abc"])
def test_bad_budget_amounts(client, auth_headers, amount):
    response = client.post(
        "/financial/budgets",
        json={"name": "Bad", "month": 3, "year": 2024, "amount": amount},
        headers=auth_headers,
    )
    assert response.status_code == 400


def test_decimal_fields_are_strings(client, auth_headers, sample_account):
    response = client.post(
        f"/financial/accounts/{sample_account.id}/transactions",
        json={
            "description": "Coffee",
            "amount": 7.5,
            "transaction_date": "2024-03-05",
            "transaction_type": "debit",
        },
        headers=auth_headers,
    )
    assert Decimal(response.json()["data"]["amount"]) == Decimal("7.5")
    assert isinstance(response.json()["data"]["amount"], str)


def test_generate_monthly_instance_endpoint(client, auth_headers, sample_category):
    entry = client.post(
        "/financial/planned-entries",
        json={
            "category_id": sample_category.id,
            "description": "Rent",
            "amount": "1500",
            "expected_day": 10,
            "is_recurrent": True,
        },
        headers=auth_headers,
    ).json()["data"]
    url = f"/financial/planned-entries/{entry['id']}/generate"

    response = client.post(url, json={"month": 4, "year": 2024}, headers=auth_headers)
    assert response.status_code == 201
    [instance] = response.json()["data"]
    assert instance["parent_entry_id"] == entry["id"]
    assert instance["is_recurrent"] is False

    again = client.post(url, json={"month": 4, "year": 2024}, headers=auth_headers)
    assert again.status_code == 409


def test_savings_goal_endpoints(client, auth_headers, sample_account):
    response = client.post(
        "/financial/savings-goals",
        json={
            "name": "Trip",
            "goal_type": "reserva",
            "target_amount": "900",
            "initial_amount": "100",
            "due_date": "2024-12-31",
        },
        headers=auth_headers,
    )
    assert response.status_code == 201
    goal = response.json()["data"]
    assert goal["due_date"] == "2024-12-31"

    tx = client.post(
        f"/financial/accounts/{sample_account.id}/transactions",
        json={
            "description": "Transfer",
            "amount": "200",
            "transaction_date": "2024-03-10",
            "transaction_type": "credit",
        },
        headers=auth_headers,
    ).json()["data"]
    linked = client.post(f"/financial/savings-goals/{goal['id']}/transactions/{tx['id']}", headers=auth_headers)
    assert linked.json()["data"]["savings_goal_id"] == goal["id"]

    progress = client.post(
        f"/financial/savings-goals/{goal['id']}/contribute", json={"amount": "50"}, headers=auth_headers
    ).json()["data"]
    assert progress["current_amount"] == "350.00"
    assert progress["months_remaining"] == 10

    summary = client.get(f"/financial/savings-goals/{goal['id']}/summary", headers=auth_headers).json()["data"]
    assert [t["id"] for t in summary["transactions"]] == [tx["id"]]

    completed = client.post(f"/financial/savings-goals/{goal['id']}/complete", headers=auth_headers)
    assert completed.json()["data"]["is_completed"] is True
    listed = client.get("/financial/savings-goals?is_completed=true", headers=auth_headers)
    assert [g["id"] for g in listed.json()["data"]] == [goal["id"]]

    assert client.delete(f"/financial/savings-goals/{goal['id']}", headers=auth_headers).status_code == 200
    response = client.get(f"/financial/savings-goals/{goal['id']}/progress", headers=auth_headers)
    assert response.status_code == 404


def test_reserve_goal_requires_due_date(client, auth_headers):
    response = client.post(
        "/financial/savings-goals",
        json={"name": "Trip", "goal_type": "reserva", "target_amount": "900"},
        headers=auth_headers,
    )
    assert response.status_code == 400


def test_income_planning_endpoint(client, auth_headers):
    response = client.get("/financial/income-planning?month=3&year=2024", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "OK"
    assert data["threshold"] == "0.25"
