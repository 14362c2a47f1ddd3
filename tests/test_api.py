"""HTTP surface tests with the audit runner dependency overridden."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from plainweb.api.router import get_audit_runner, router
from plainweb.audit.runner import AccessibilityAuditRunner
from plainweb.errors import AuditRunFailed, StoreFailed
from plainweb.services.ai_summary import OWNER_SUMMARY_FALLBACK

from .conftest import failing_generator


def _client(runner):
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_audit_runner] = lambda: runner
    return TestClient(app)


@pytest.fixture
def runner(fake_engine, store):
    return AccessibilityAuditRunner(fake_engine, store=store, generator=failing_generator)


def test_healthz(runner):
    r = _client(runner).get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "service": "plainweb-audit"}


def test_audit_returns_report_and_persists(runner, store):
    client = _client(runner)
    r = client.post("/audit", json={"url": "Example.com", "audience": "owner"})
    assert r.status_code == 200
    body = r.json()
    assert body["cached"] is False
    assert body["cachedAt"] is None
    report = body["report"]
    assert report["ownerSummary"] == OWNER_SUMMARY_FALLBACK
    assert report["score"] == 33
    assert report["buckets"]["buckets"]

    # the background task stored the owner report
    again = client.post("/audit", json={"url": "https://example.com/"}).json()
    assert again["cached"] is False  # audience "all" needs the expert guide too
    cached = client.post("/audit", json={"url": "https://example.com", "audience": "owner"}).json()
    assert cached["cached"] is True
    assert cached["cachedAt"]


def test_invalid_url_is_400(runner):
    r = _client(runner).post("/audit", json={"url": "ftp://example.com"})
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_url"


def test_audit_failure_is_502(store):
    class Broken:
        async def __call__(self, url):
            raise AuditRunFailed("Lighthouse audit failed (exit 1)")

    r = _client(AccessibilityAuditRunner(Broken(), store=store)).post("/audit", json={"url": "example.com"})
    assert r.status_code == 502
    assert r.json() == {"error": "audit_run_failed", "detail": "Lighthouse audit failed (exit 1)"}


def test_store_failure_does_not_change_response(fake_engine):
    class FailingStore:
        def get(self, key):
            return None

        def set(self, key, url, report, cached_at=None):
            raise StoreFailed("disk full")

    r = _client(AccessibilityAuditRunner(fake_engine, store=FailingStore())).post("/audit", json={"url": "example.com"})
    assert r.status_code == 200
    assert r.json()["report"]["issues"]


def test_request_validation(runner):
    r = _client(runner).post("/audit", json={"url": "example.com", "audience": "everyone"})
    assert r.status_code == 422
