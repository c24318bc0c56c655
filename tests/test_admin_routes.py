"""
tests/test_admin_routes.py -- Integration tests for /admin/metrics and /admin/reset.

Order matters inside this module: the hit counter starts at zero when the
module's client starts, and the reset test wipes the module's database.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from auth.store import AuthStore
from core.config import get_settings


def test_metrics_counts_non_admin_requests(api_client: tuple[TestClient, AuthStore]) -> None:
    client, _store = api_client
    for _ in range(3):
        client.get("/api/healthz")
    resp = client.get("/admin/metrics")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "Chirpy has been visited 3 times!" in resp.text


def test_reset_forbidden_outside_dev(api_client: tuple[TestClient, AuthStore], monkeypatch) -> None:
    client, store = api_client
    client.post("/api/users", json={"email": "keep@example.com", "password": "pw"})
    monkeypatch.setattr(get_settings(), "platform", "prod")
    resp = client.post("/admin/reset")
    assert resp.status_code == 403
    assert store.get_by_email("keep@example.com") is not None


def test_reset_in_dev_wipes_users_and_counter(api_client: tuple[TestClient, AuthStore], monkeypatch) -> None:
    client, store = api_client
    monkeypatch.setattr(get_settings(), "platform", "dev")
    client.post("/api/users", json={"email": "gone@example.com", "password": "pw"})
    resp = client.post("/admin/reset")
    assert resp.status_code == 200
    assert store.get_by_email("gone@example.com") is None
    assert "visited 0 times" in client.get("/admin/metrics").text
