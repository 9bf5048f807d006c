import pytest

from fastapi.testclient import TestClient

from finguard.config import Settings
from finguard.main import create_app

pytestmark = pytest.mark.httpapi


def test_health_without_provider(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["narrative"] == {"configured": False, "model": "gemma-3-27b-it"}
    assert "version" in body["version"]


def test_health_with_provider_never_echoes_key():
    app = create_app(Settings(GOOGLE_AI_API_KEY="secret-key-123", NARRATIVE_MODEL="gemma-test"))
    with TestClient(app) as c:
        r = c.get("/health")
        assert app.state.provider is not None
    assert r.json()["narrative"] == {"configured": True, "model": "gemma-test"}
    assert "secret-key-123" not in r.text
    # lifespan shutdown releases the provider
    assert app.state.provider is None


def test_metrics_exposes_counters(client):
    client.post(
        "/intervention",
        json={"amount": 200, "category": "food", "description": "coffee", "monthlyBudget": 30000, "monthlySpending": 3000},
    )
    client.post("/intervention", json={"amount": -1})
    r = client.get("/metrics")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    text = r.text
    assert 'finguard_intervention_verdicts_total{severity="low",recommendation="proceed",source="rule-engine"}' in text
    assert 'finguard_request_validation_errors_total{route="/intervention"}' in text
