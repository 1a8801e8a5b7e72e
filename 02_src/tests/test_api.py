"""Tests for the HTTP API."""

from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from debt_tracker.api import create_fastapi_app
from debt_tracker.api.routes import control
from debt_tracker.app import Application
from debt_tracker.dialogue import views


@pytest.fixture
def client():
    """Create a test client over an in-memory application."""
    application = Application(db_path=":memory:")
    with TestClient(create_fastapi_app(application)) as c:
        yield c


def _event(client, **body):
    response = client.post("/api/events", json={"chat_id": 42, **body})
    assert response.status_code == 200
    return response.json()["renders"]


class TestEventsRoute:
    """Tests for POST /api/events."""

    def test_command(self, client):
        """Test that a command returns the engine's renders."""
        renders = _event(client, command="/add")

        assert renders[0]["text"] == views.ASK_DEBTOR_NAME
        assert renders[0]["mode"] == "send"
        assert renders[0]["actions"] == []

    def test_add_flow_and_snapshot(self, client):
        """Test the add dialog followed by a ledger snapshot."""
        _event(client, command="/add")
        _event(client, text="Alex")
        _event(client, text="lunch")
        _event(client, text="25.50")

        response = client.get("/api/chats/42/debtors")

        assert response.status_code == 200
        (debtor,) = response.json()
        assert debtor["name"] == "Alex"
        assert debtor["total_debt"] == "25.50"
        assert [(d["amount"], d["reason"]) for d in debtor["debts"]] == [("25.50", "lunch")]
        assert debtor["payment_date"] is None

    def test_button_edits_message(self, client):
        """Test that a button press with a message id edits it."""
        _event(client, command="/add")
        _event(client, text="Alex")
        _event(client, text="lunch")
        _event(client, text="10")
        debtor_id = client.get("/api/chats/42/debtors").json()[0]["id"]

        renders = _event(client, payload=f"delete_debtor:{debtor_id}", message_id=3)

        assert renders[0]["mode"] == "edit"
        assert renders[0]["message_id"] == 3
        payloads = [a["payload"] for row in renders[0]["actions"] for a in row]
        assert payloads == [f"confirm_delete_debtor:{debtor_id}", f"cancel:{debtor_id}"]

    def test_export_document(self, client):
        """Test that /exportcsv carries the CSV as text."""
        _event(client, command="/add")
        _event(client, text="Alex")
        _event(client, text="lunch")
        _event(client, text="10")

        renders = _event(client, command="/exportcsv")

        assert renders[0]["document"]["filename"] == "debts_42.csv"
        assert renders[0]["document"]["content"].startswith("Debtor Name,Total Debt")

    @pytest.mark.parametrize(
        "body",
        [
            {"chat_id": 1},
            {"chat_id": 1, "command": "/add", "text": "Alex"},
            {"command": "/add"},
        ],
    )
    def test_invalid_event(self, client, body):
        """Test that an event needs a chat and exactly one kind."""
        response = client.post("/api/events", json=body)
        assert response.status_code == 422


class TestLedgerRoutes:
    """Tests for the read-only ledger routes."""

    def test_empty_snapshot(self, client):
        """Test a chat without debtors."""
        response = client.get("/api/chats/42/debtors")
        assert response.status_code == 200
        assert response.json() == []

    def test_export_empty(self, client):
        """Test that an empty chat has no export."""
        response = client.get("/api/chats/42/export.csv")
        assert response.status_code == 404

    def test_export_csv(self, client):
        """Test the CSV download."""
        _event(client, command="/add")
        _event(client, text="Alex")
        _event(client, text="lunch")
        _event(client, text="10")

        response = client.get("/api/chats/42/export.csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="debts_42.csv"' in response.headers["content-disposition"]
        assert "Alex,10.00,,,lunch,10.00" in response.text


class TestControlRoutes:
    """Tests for control routes."""

    def test_reset(self, client):
        """Test that reset empties the ledger."""
        _event(client, command="/add")
        _event(client, text="Alex")
        _event(client, text="lunch")
        _event(client, text="10")

        response = client.post("/api/control/reset")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert client.get("/api/chats/42/debtors").json() == []

    def test_sim_not_configured(self, client, monkeypatch):
        """Test sim control without a SIM instance."""
        monkeypatch.setattr(control, "_sim_instance", None)

        assert client.post("/api/control/sim/start").status_code == 404
        assert client.post("/api/control/sim/stop").status_code == 404

    def test_sim_start_stop(self, client, monkeypatch):
        """Test that sim control delegates to the SIM."""
        sim = Mock()
        sim.start = AsyncMock()
        sim.stop = AsyncMock()
        monkeypatch.setattr(control, "_sim_instance", sim)

        assert client.post("/api/control/sim/start").status_code == 200
        assert client.post("/api/control/sim/stop").status_code == 200
        sim.start.assert_awaited_once()
        sim.stop.assert_awaited_once()


class TestCors:
    """Tests for CORS configuration."""

    def _preflight(self, monkeypatch, origins):
        if origins is None:
            monkeypatch.delenv("CORS_ORIGINS", raising=False)
        else:
            monkeypatch.setenv("CORS_ORIGINS", origins)
        application = Application(db_path=":memory:")
        with TestClient(create_fastapi_app(application)) as c:
            return c.options(
                "/api/events",
                headers={
                    "Origin": "http://ui.example",
                    "Access-Control-Request-Method": "POST",
                },
            )

    def test_no_origins_by_default(self, monkeypatch):
        """Test that no origin is allowed unless configured."""
        response = self._preflight(monkeypatch, None)
        assert "access-control-allow-origin" not in response.headers

    def test_configured_origin(self, monkeypatch):
        """Test that CORS_ORIGINS enables the listed origins."""
        response = self._preflight(monkeypatch, "http://ui.example, http://other.example")
        assert response.headers["access-control-allow-origin"] == "http://ui.example"
