# tests/unit/adapters/routers/test_leaderboard_router.py
from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from wagerboard_api.adapters.routers import health, leaderboards
from wagerboard_api.application.schemas.dto.ingestion import IngestOutcome, TenantIngestResult
from wagerboard_api.application.schemas.dto.leaderboard import (
    LeaderboardEntryDTO,
    LeaderboardPageDTO,
)
from wagerboard_api.dependencies.leaderboard import get_ingest_tenant_uc, get_query_service
from wagerboard_api.domain.exceptions import StoreError, TenantNotFoundError

TS = datetime(2024, 1, 1, tzinfo=UTC)


class FakeQueryService:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.page_calls: list[tuple[str, str, int, int]] = []
        self.invalidated: list[tuple[str, str]] = []

    async def get_page(self, tenant_id, casino, page=1, page_size=20):
        self.page_calls.append((tenant_id, casino, page, page_size))
        if self.error is not None:
            raise self.error
        entries = [
            LeaderboardEntryDTO(
                tenant_id=tenant_id,
                casino_player_id="alice",
                casino=casino,
                wager_amount=Decimal("1500.25"),
                rank=1,
                timestamp=TS,
                data={"user_id": "alice"},
            )
        ]
        return LeaderboardPageDTO.build(entries, total=45, page=page, page_size=page_size)

    async def get_config(self, tenant_id, casino) -> dict[str, Any]:
        if self.error is not None:
            raise self.error
        return {"prize_pool": 1000} if tenant_id == "t1" else {}

    async def invalidate(self, tenant_id, casino) -> int:
        if self.error is not None:
            raise self.error
        self.invalidated.append((tenant_id, casino))
        return 2


class FakeIngest:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error

    async def ingest_tenant(self, tenant_id: str) -> TenantIngestResult:
        if self.error is not None:
            raise self.error
        return TenantIngestResult(
            tenant_id=tenant_id, casino="stake", outcome=IngestOutcome.SUCCEEDED, rows=3
        )


def _client(service=None, ingest=None) -> TestClient:
    from wagerboard_api.main import _patch_exception_handlers

    app = FastAPI()
    _patch_exception_handlers(app)
    app.include_router(health)
    app.include_router(leaderboards)
    app.dependency_overrides[get_query_service] = lambda: service or FakeQueryService()
    app.dependency_overrides[get_ingest_tenant_uc] = lambda: ingest or FakeIngest()
    return TestClient(app, raise_server_exceptions=False)


def test_healthz():
    resp = _client().get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_get_page_happy_path_uses_default_paging():
    service = FakeQueryService()
    resp = _client(service).get("/v1/leaderboards/t1/stake")

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["total"] == 45
    assert data["page"] == 1
    assert data["page_size"] == 20
    assert data["total_pages"] == 3
    assert data["entries"][0]["casino_player_id"] == "alice"
    assert service.page_calls == [("t1", "stake", 1, 20)]


def test_get_page_forwards_explicit_paging():
    service = FakeQueryService()
    resp = _client(service).get("/v1/leaderboards/t1/stake", params={"page": 3, "page_size": 5})
    assert resp.status_code == 200
    assert service.page_calls == [("t1", "stake", 3, 5)]


@pytest.mark.parametrize(
    "params", [{"page": 0}, {"page_size": 0}, {"page_size": 201}, {"page": "x"}]
)
def test_out_of_range_paging_is_422(params):
    service = FakeQueryService()
    resp = _client(service).get("/v1/leaderboards/t1/stake", params=params)

    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
    assert service.page_calls == []


def test_store_outage_maps_to_503_envelope():
    service = FakeQueryService(error=StoreError("db down", details={"operation": "list_entries"}))
    resp = _client(service).get(
        "/v1/leaderboards/t1/stake", headers={"X-Request-ID": "req-123"}
    )

    assert resp.status_code == 503
    err = resp.json()["error"]
    assert err["code"] == "LEADERBOARD_STORE_UNAVAILABLE"
    assert err["http_status"] == 503
    assert err["details"] == {"operation": "list_entries"}
    assert err["trace_id"] == "req-123"


def test_get_config():
    client = _client()
    assert client.get("/v1/leaderboards/t1/stake/config").json() == {
        "data": {"prize_pool": 1000}
    }
    assert client.get("/v1/leaderboards/t2/stake/config").json() == {"data": {}}


def test_get_config_store_outage_is_503():
    resp = _client(FakeQueryService(error=StoreError("db down"))).get(
        "/v1/leaderboards/t1/stake/config"
    )
    assert resp.status_code == 503


def test_invalidate_acknowledges():
    service = FakeQueryService()
    resp = _client(service).post("/v1/leaderboards/t1/stake/cache/invalidate")
    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    assert service.invalidated == [("t1", "stake")]


def test_invalidate_cache_outage_is_internal_error():
    resp = _client(FakeQueryService(error=ConnectionError("redis down"))).post(
        "/v1/leaderboards/t1/stake/cache/invalidate"
    )
    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "INTERNAL_ERROR"


def test_refresh_returns_ingest_result():
    resp = _client().post("/v1/leaderboards/t1/refresh")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["tenant_id"] == "t1"
    assert data["outcome"] == "succeeded"
    assert data["rows"] == 3


def test_refresh_unknown_tenant_is_404():
    ingest = FakeIngest(error=TenantNotFoundError("Tenant not found: nope"))
    resp = _client(ingest=ingest).post("/v1/leaderboards/nope/refresh")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "TENANT_NOT_FOUND"


def test_refresh_store_outage_is_503():
    resp = _client(ingest=FakeIngest(error=StoreError("db down"))).post(
        "/v1/leaderboards/t1/refresh"
    )
    assert resp.status_code == 503


def test_missing_lifespan_state_is_internal_error():
    from wagerboard_api.main import _patch_exception_handlers

    app = FastAPI()
    _patch_exception_handlers(app)
    app.include_router(leaderboards)
    resp = TestClient(app, raise_server_exceptions=False).get("/v1/leaderboards/t1/stake")
    assert resp.status_code == 500
