"""
tests/test_health.py -- Integration tests for GET /api/v1/health.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok', or 'error' with status 'degraded'
  - No authentication required
"""

from __future__ import annotations

from api.main import VERSION


def test_health_returns_200_with_components(client):
    """Health endpoint returns 200 with status, version, and components."""
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["version"] == VERSION
    assert data["components"] == {"app": "ok", "database": "ok"}


def test_health_reports_degraded_database(client, http_verifier, monkeypatch):
    """An unreachable database still answers 200 but flags the component."""
    monkeypatch.setattr(http_verifier.store, "ping", lambda: False)
    data = client.get("/api/v1/health").json()
    assert data["status"] == "degraded"
    assert data["components"]["database"] == "error"


def test_health_no_auth_required(client):
    """Health endpoint is accessible without a session cookie or header."""
    resp = client.get("/api/v1/health", headers={})
    assert resp.status_code == 200
