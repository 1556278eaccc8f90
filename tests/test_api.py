"""Tests for the FastAPI humanize endpoints."""

import pytest
from fastapi.testclient import TestClient

from api.index import app, get_client_factory
from anchor_humanizer.humanize_client import HumanizeServiceError


ARTICLE = '<h2>Intro</h2><p>Visit <a href="https://acme.example">Acme</a> today.</p>'


class StubClient:
    """Stands in for AIHumanizeClient."""

    instances = []

    def __init__(self, config):
        self.config = config
        self.words_used = 0
        self.remaining_words = 0
        self.closed = False
        StubClient.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        self.closed = True

    def __call__(self, text):
        self.words_used += 7
        self.remaining_words = 993
        return text.replace("today", "right away")

    def get_balance(self):
        return 1234


class FailingClient(StubClient):
    """Every call hits an empty balance."""

    def __call__(self, text):
        raise HumanizeServiceError.from_code(1006, "Insufficient balance")

    def get_balance(self):
        raise HumanizeServiceError.from_code(1006, "Insufficient balance")


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("AIHUMANIZE_API_KEY", "test-key")
    monkeypatch.delenv("AIHUMANIZE_EMAIL", raising=False)
    app.dependency_overrides[get_client_factory] = lambda: StubClient
    StubClient.instances.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestHumanizeEndpoint:
    """Tests for POST /api/humanize."""

    def test_success(self, client):
        """Humanized HTML comes back with word accounting."""
        response = client.post("/api/humanize", json={
            "html": ARTICLE,
            "model": 1,
            "registered_email": "writer@example.com",
            "frozen_phrases": ["Acme"],
            "style": "Blog",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["status"] == "success"
        assert data["html"] == (
            '<h2>Intro</h2><p>Visit <a href="https://acme.example">Acme</a> right away.</p>'
        )
        assert data["words_used"] == 7
        assert data["remaining_words"] == 993

    def test_client_closed_after_request(self, client):
        """Each request closes the rewrite client it built."""
        response = client.post("/api/humanize", json={
            "html": ARTICLE, "registered_email": "w@example.com",
        })

        assert response.status_code == 200
        assert len(StubClient.instances) == 1
        assert StubClient.instances[0].closed

    def test_email_from_environment(self, client, monkeypatch):
        """The registered email may come from the environment."""
        monkeypatch.setenv("AIHUMANIZE_EMAIL", "env@example.com")
        response = client.post("/api/humanize", json={"html": ARTICLE})
        assert response.status_code == 200

    @pytest.mark.parametrize("payload", [
        {"html": "", "registered_email": "w@example.com"},
        {"html": ARTICLE, "model": 7, "registered_email": "w@example.com"},
        {"html": ARTICLE},
        {"registered_email": "w@example.com"},
        {"html": ARTICLE, "model": "fast", "registered_email": "w@example.com"},
    ])
    def test_invalid_input(self, client, payload):
        """Bad requests answer 400."""
        response = client.post("/api/humanize", json=payload)
        assert response.status_code == 400

    def test_missing_api_key(self, client, monkeypatch):
        """A server without a key answers 500."""
        monkeypatch.delenv("AIHUMANIZE_API_KEY")
        response = client.post("/api/humanize", json={
            "html": ARTICLE, "registered_email": "w@example.com",
        })
        assert response.status_code == 500

    def test_transform_failure_returns_original(self, client):
        """Failures are absorbed: ok with the original HTML."""
        app.dependency_overrides[get_client_factory] = lambda: FailingClient

        response = client.post("/api/humanize", json={
            "html": ARTICLE, "registered_email": "w@example.com",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["status"] == "failed"
        assert data["html"] == ARTICLE
        assert data["user_message"].startswith("Your Humanize balance is empty")


class TestBalanceEndpoint:
    """Tests for GET /api/humanize/balance."""

    def test_balance(self, client):
        response = client.get("/api/humanize/balance", params={"email": "w@example.com"})
        assert response.status_code == 200
        assert response.json() == {"balance": 1234}
        assert StubClient.instances[-1].closed

    def test_missing_email(self, client):
        response = client.get("/api/humanize/balance")
        assert response.status_code == 400

    def test_empty_balance_payment_required(self, client):
        """Code 1006 maps to 402."""
        app.dependency_overrides[get_client_factory] = lambda: FailingClient
        response = client.get("/api/humanize/balance", params={"email": "w@example.com"})
        assert response.status_code == 402
