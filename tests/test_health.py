# tests/test_health.py
from typing import Any


def test_health_reports_ok(client: Any) -> None:
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["connections"] == 0


def test_root_describes_api(client: Any) -> None:
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["docs"] == "/docs"
