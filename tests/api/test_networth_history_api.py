"""
API tests for net worth history endpoints.

Tests cover:
- Recording (default and explicit day)
- Listing, latest, stats and CSV export
- Deleting with ownership checks
- The scheduler trigger and its bearer secret
"""

from datetime import date
from decimal import Decimal

from fastapi.testclient import TestClient


class TestRecordHistoryAPI:
    """Tests for POST /networth-history/."""

    def test_record_without_body_uses_today(self, client: TestClient, user_factory, account_factory, auth_headers):
        user = user_factory()
        account_factory(user, Decimal("750"))

        response = client.post("/networth-history/", headers=auth_headers(user))

        assert response.status_code == 201
        data = response.json()
        assert data["snapshot_date"] == date.today().isoformat()
        assert data["record_type"] == "MANUAL"
        assert Decimal(str(data["net_worth"])) == Decimal("750")

    def test_recording_same_day_returns_same_record(self, client: TestClient, user_factory, auth_headers):
        user = user_factory()
        body = {"snapshot_date": "2024-04-01"}

        first = client.post("/networth-history/", json=body, headers=auth_headers(user)).json()
        second = client.post("/networth-history/", json=body, headers=auth_headers(user)).json()

        assert first["id"] == second["id"]
        listing = client.get("/networth-history/", headers=auth_headers(user)).json()
        assert len(listing) == 1

    def test_requires_user(self, client: TestClient):
        response = client.post("/networth-history/")

        assert response.status_code == 401


class TestReadHistoryAPI:
    """Tests for the history read endpoints."""

    def test_list_with_range(self, client: TestClient, user_factory, history_factory, auth_headers):
        user = user_factory()
        history_factory(user, date(2024, 1, 1), Decimal("1"))
        history_factory(user, date(2024, 2, 1), Decimal("2"))
        history_factory(user, date(2024, 3, 1), Decimal("3"))

        response = client.get(
            "/networth-history/",
            params={"start_date": "2024-01-15", "end_date": "2024-03-01"},
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        assert [r["snapshot_date"] for r in response.json()] == ["2024-02-01", "2024-03-01"]

    def test_invalid_limit_returns_422(self, client: TestClient, user_factory, auth_headers):
        user = user_factory()

        response = client.get("/networth-history/", params={"limit": 0}, headers=auth_headers(user))

        assert response.status_code == 422

    def test_latest_without_history_returns_404(self, client: TestClient, user_factory, auth_headers):
        user = user_factory()

        response = client.get("/networth-history/latest", headers=auth_headers(user))

        assert response.status_code == 404

    def test_latest(self, client: TestClient, user_factory, history_factory, auth_headers):
        user = user_factory()
        history_factory(user, date(2024, 1, 1), Decimal("1"))
        history_factory(user, date(2024, 5, 1), Decimal("5"))

        response = client.get("/networth-history/latest", headers=auth_headers(user))

        assert response.status_code == 200
        assert response.json()["snapshot_date"] == "2024-05-01"

    def test_stats(self, client: TestClient, user_factory, history_factory, auth_headers):
        user = user_factory()
        history_factory(user, date(2024, 1, 1), Decimal("100"))
        history_factory(user, date(2024, 1, 21), Decimal("150"))

        response = client.get("/networth-history/stats", headers=auth_headers(user))

        assert response.status_code == 200
        data = response.json()
        assert Decimal(str(data["total_growth"])) == Decimal("50")
        assert data["days_tracked"] == 20
        assert data["record_count"] == 2

    def test_export(self, client: TestClient, user_factory, history_factory, auth_headers):
        user = user_factory()
        history_factory(user, date(2024, 1, 1), Decimal("100"))

        response = client.get("/networth-history/export", headers=auth_headers(user))

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        lines = response.text.splitlines()
        assert lines[0].startswith("Date,Net Worth")
        assert lines[1].startswith("2024-01-01,")


class TestDeleteHistoryAPI:
    """Tests for DELETE /networth-history/{record_id}."""

    def test_delete_own_record(self, client: TestClient, user_factory, history_factory, auth_headers):
        user = user_factory()
        record = history_factory(user, date(2024, 1, 1), Decimal("1"))

        response = client.delete(f"/networth-history/{record.id}", headers=auth_headers(user))

        assert response.status_code == 204
        again = client.delete(f"/networth-history/{record.id}", headers=auth_headers(user))
        assert again.status_code == 404

    def test_cannot_delete_other_users_record(self, client: TestClient, user_factory, history_factory, auth_headers):
        owner = user_factory()
        intruder = user_factory()
        record = history_factory(owner, date(2024, 1, 1), Decimal("1"))

        response = client.delete(f"/networth-history/{record.id}", headers=auth_headers(intruder))

        assert response.status_code == 404
        assert len(client.get("/networth-history/", headers=auth_headers(owner)).json()) == 1


class TestScheduledRecordingAPI:
    """Tests for GET/POST /networth-history/cron."""

    def test_runs_without_secret_configured(self, client: TestClient, user_factory, monkeypatch):
        monkeypatch.delenv("CRON_SECRET", raising=False)
        user_factory()
        user_factory()

        response = client.get("/networth-history/cron", params={"snapshot_date": "2024-08-01"})

        assert response.status_code == 200
        data = response.json()
        assert data["processed_users"] == 2
        assert data["successful_records"] == 2
        assert data["snapshot_date"] == "2024-08-01"

    def test_rejects_wrong_secret(self, client: TestClient, monkeypatch):
        monkeypatch.setenv("CRON_SECRET", "s3cret")

        missing = client.post("/networth-history/cron")
        wrong = client.post("/networth-history/cron", headers={"Authorization": "Bearer nope"})

        assert missing.status_code == 401
        assert wrong.status_code == 401

    def test_accepts_bearer_secret(self, client: TestClient, user_factory, monkeypatch):
        monkeypatch.setenv("CRON_SECRET", "s3cret")
        user_factory()

        response = client.post("/networth-history/cron", headers={"Authorization": "Bearer s3cret"})

        assert response.status_code == 200
        assert response.json()["error_count"] == 0

    def test_unknown_user_returns_404(self, client: TestClient, monkeypatch):
        monkeypatch.delenv("CRON_SECRET", raising=False)

        response = client.get("/networth-history/cron", params={"user_id": 4242})

        assert response.status_code == 404
