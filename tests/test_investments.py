"""Tests for the investments endpoints."""

from __future__ import annotations

import json

import pytest
from flask.testing import FlaskClient

from models.activity_log import ActivityLog

NEW_INVESTMENT = {
    "name": "Apple Inc.",
    "type": "stocks",
    "amount": 1000,
    "currentValue": 1250.5,
    "purchaseDate": "2024-03-01T00:00:00Z",
    "symbol": "AAPL",
}


@pytest.fixture()
def owner_headers(make_user, auth_headers):
    make_user("owner@example.com")
    return auth_headers("owner@example.com")


@pytest.fixture()
def stranger_headers(make_user, auth_headers):
    make_user("stranger@example.com")
    return auth_headers("stranger@example.com")


def _create(client: FlaskClient, headers: dict, **overrides) -> dict:
    response = client.post("/api/investments", json={**NEW_INVESTMENT, **overrides}, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()["data"]


def test_create_and_fetch_investment(client: FlaskClient, owner_headers):
    created = _create(client, owner_headers)

    assert created["status"] == "active"
    assert created["gainLoss"] == pytest.approx(250.5)
    assert created["purchaseDate"].startswith("2024-03-01")

    response = client.get(f"/api/investments/{created['id']}", headers=owner_headers)
    assert response.status_code == 200
    assert response.get_json()["data"]["name"] == "Apple Inc."


def test_create_rejects_unknown_type(client: FlaskClient, owner_headers):
    response = client.post(
        "/api/investments", json={**NEW_INVESTMENT, "type": "tulips"}, headers=owner_headers
    )

    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_create_requires_fields(client: FlaskClient, owner_headers):
    response = client.post("/api/investments", json={"name": "Only a name"}, headers=owner_headers)

    assert response.status_code == 400


def test_list_paginates_and_filters(client: FlaskClient, owner_headers, stranger_headers):
    for index in range(3):
        _create(client, owner_headers, name=f"Stock {index}")
    _create(client, owner_headers, name="Gold Bond", type="bonds")
    _create(client, stranger_headers, name="Someone else's")

    page = client.get("/api/investments?page=1&limit=2", headers=owner_headers).get_json()["data"]
    assert page["total"] == 4
    assert page["page"] == 1
    assert page["limit"] == 2
    assert page["totalPages"] == 2
    assert len(page["data"]) == 2

    bonds = client.get("/api/investments?type=bonds", headers=owner_headers).get_json()["data"]
    assert [item["name"] for item in bonds["data"]] == ["Gold Bond"]

    search = client.get("/api/investments?search=stock%201", headers=owner_headers).get_json()["data"]
    assert [item["name"] for item in search["data"]] == ["Stock 1"]

    by_name = client.get(
        "/api/investments?sortBy=name&sortOrder=asc", headers=owner_headers
    ).get_json()["data"]
    assert [item["name"] for item in by_name["data"]] == ["Gold Bond", "Stock 0", "Stock 1", "Stock 2"]


def test_list_rejects_bad_page(client: FlaskClient, owner_headers):
    response = client.get("/api/investments?page=0", headers=owner_headers)

    assert response.status_code == 400


def test_other_users_investment_is_not_found(client: FlaskClient, owner_headers, stranger_headers):
    created = _create(client, owner_headers)

    for method in ("get", "put", "delete"):
        response = getattr(client, method)(
            f"/api/investments/{created['id']}", json={"name": "Mine now"}, headers=stranger_headers
        )
        assert response.status_code == 404
        assert response.get_json()["message"] == "Investment not found"


def test_partial_update(client: FlaskClient, owner_headers):
    created = _create(client, owner_headers)

    response = client.put(
        f"/api/investments/{created['id']}",
        json={"currentValue": 900, "status": "sold"},
        headers=owner_headers,
    )

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["currentValue"] == 900
    assert data["status"] == "sold"
    assert data["name"] == "Apple Inc."
    assert data["gainLoss"] == pytest.approx(-100)


def test_delete_hides_investment_and_logs_activity(client: FlaskClient, app, owner_headers):
    created = _create(client, owner_headers)

    response = client.delete(f"/api/investments/{created['id']}", headers=owner_headers)
    assert response.status_code == 200

    assert client.get(f"/api/investments/{created['id']}", headers=owner_headers).status_code == 404
    listing = client.get("/api/investments", headers=owner_headers).get_json()["data"]
    assert listing["total"] == 0

    with app.app_context():
        actions = {
            entry.action
            for entry in ActivityLog.query.filter_by(entity_type="investment", entity_id=created["id"])
        }
    assert actions == {"create", "delete"}


def test_export_investment(client: FlaskClient, owner_headers):
    created = _create(client, owner_headers)

    as_csv = client.get(f"/api/investments/{created['id']}/export?format=csv", headers=owner_headers)
    assert as_csv.status_code == 200
    assert as_csv.mimetype == "text/csv"
    lines = as_csv.get_data(as_text=True).splitlines()
    assert lines[0] == "Id,Name,Type,Amount,CurrentValue,PurchaseDate,Status"
    assert lines[1].startswith(f"{created['id']},Apple Inc.,stocks,")
    assert "attachment" in as_csv.headers["Content-Disposition"]

    as_json = client.get(f"/api/investments/{created['id']}/export?format=JSON", headers=owner_headers)
    assert as_json.status_code == 200
    assert json.loads(as_json.get_data(as_text=True))["id"] == created["id"]

    bad = client.get(f"/api/investments/{created['id']}/export?format=pdf", headers=owner_headers)
    assert bad.status_code == 400
    assert bad.get_json()["message"] == "Invalid format. Use 'csv' or 'json'"


def test_investments_require_authentication(client: FlaskClient):
    assert client.get("/api/investments").status_code == 401
