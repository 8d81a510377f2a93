# tests/unit/application/use_cases/test_ingest_tenant_leaderboard.py
from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from wagerboard_api.adapters.gateways.partner_registry import PartnerAdapterRegistry
from wagerboard_api.application.schemas.dto.ingestion import IngestOutcome
from wagerboard_api.application.use_cases.ingestion.ingest_tenant_leaderboard import (
    IngestTenantLeaderboard,
    is_transient_fetch_error,
)
from wagerboard_api.domain.entities.tenant import Tenant
from wagerboard_api.domain.exceptions import (
    ConfigurationError,
    FetchError,
    ParseError,
    TenantNotFoundError,
)
from wagerboard_api.infrastructure.resilience.retry import RetryPolicy

OBSERVED = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
NO_WAIT = RetryPolicy(total=2, base=0.0, cap=0.0, jitter=False)

ROWS = [
    {"user_id": "alice", "wagered_amount": "1500.25", "rank": "1", "timestamp": "2024-04-30"},
    {"userId": "bob", "wager": "900", "rank": "2", "timestamp": "2024-04-30"},
    {"id": "carol", "wageredAmount": "n/a"},
]


class StubAdapter:
    """Partner adapter returning scripted results (rows or exceptions)."""

    def __init__(self, *results, casino: str = "stake") -> None:
        self.casino = casino
        self._results = list(results)
        self.calls = 0
        self.configs: list[dict] = []

    async def fetch_rows(self, api_config):
        self.calls += 1
        self.configs.append(dict(api_config))
        result = self._results[min(self.calls, len(self._results)) - 1]
        if isinstance(result, BaseException):
            raise result
        return [dict(r) for r in result]


class RecordingInvalidator:
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, str]] = []
        self._error = error

    async def invalidate(self, tenant_id: str, casino: str) -> int:
        self.calls.append((tenant_id, casino))
        if self._error is not None:
            raise self._error
        return 3


def _registry(adapter) -> PartnerAdapterRegistry:
    registry = PartnerAdapterRegistry()
    registry.register(adapter)
    return registry


def _tenant(tenant_id: str = "t1", casino: str = "stake") -> Tenant:
    return Tenant(
        id=tenant_id, slug=tenant_id, casino=casino, api_config={"url": "https://x/f.csv"}
    )


def _use_case(store, adapter, invalidator=None) -> IngestTenantLeaderboard:
    return IngestTenantLeaderboard(
        store,
        _registry(adapter),
        invalidator,
        fetch_policy=NO_WAIT,
        clock=lambda: OBSERVED,
    )


@pytest.mark.asyncio
async def test_success_persists_entries_rollup_and_invalidates(store, metrics_registry):
    adapter = StubAdapter(ROWS)
    invalidator = RecordingInvalidator()
    uc = _use_case(store, adapter, invalidator)

    result = await uc(_tenant())

    assert result.outcome is IngestOutcome.SUCCEEDED
    assert result.rows == 3
    assert result.error is None
    assert adapter.configs == [{"url": "https://x/f.csv"}]
    assert invalidator.calls == [("t1", "stake")]

    entries, total = await store.list_entries("t1", "stake", offset=0, limit=10)
    assert total == 3
    assert [(e.casino_player_id, e.wager_amount, e.rank) for e in entries] == [
        ("alice", Decimal("1500.25"), 1),
        ("bob", Decimal("900"), 2),
        ("carol", Decimal("0"), 3),
    ]
    assert entries[2].timestamp == OBSERVED

    rollup = await store.get_rollup("t1", "stake")
    assert rollup is not None
    assert [row["casinoPlayerId"] for row in rollup.data] == ["alice", "bob", "carol"]

    assert metrics_registry.get_sample_value(
        "wagerboard_ingest_tenant_runs_total", {"casino": "stake", "outcome": "succeeded"}
    ) == 1.0
    assert metrics_registry.get_sample_value(
        "wagerboard_ingest_rows_total", {"casino": "stake"}
    ) == 3.0


@pytest.mark.asyncio
async def test_rerun_on_unchanged_feed_is_idempotent(store):
    uc = _use_case(store, StubAdapter(ROWS))

    await uc(_tenant())
    first, _ = await store.list_entries("t1", "stake", offset=0, limit=10)
    await uc(_tenant())
    second, total = await store.list_entries("t1", "stake", offset=0, limit=10)

    assert total == 3
    assert first == second


@pytest.mark.asyncio
async def test_empty_feed_writes_nothing(store):
    invalidator = RecordingInvalidator()
    uc = _use_case(store, StubAdapter([]), invalidator)

    result = await uc(_tenant())

    assert result.outcome is IngestOutcome.EMPTY
    assert result.rows == 0
    assert await store.get_rollup("t1", "stake") is None
    assert invalidator.calls == []


@pytest.mark.asyncio
async def test_unsupported_casino_is_skipped(store, metrics_registry):
    adapter = StubAdapter(ROWS)
    uc = _use_case(store, adapter)

    result = await uc(_tenant(casino="Roobet"))

    assert result.outcome is IngestOutcome.SKIPPED
    assert result.casino == "roobet"
    assert result.error_type == "UnsupportedCasinoError"
    assert adapter.calls == 0
    assert metrics_registry.get_sample_value(
        "wagerboard_ingest_tenant_runs_total", {"casino": "roobet", "outcome": "skipped"}
    ) == 1.0


@pytest.mark.asyncio
async def test_casino_tag_is_case_insensitive(store):
    uc = _use_case(store, StubAdapter(ROWS))
    result = await uc(_tenant(casino="  STAKE "))
    assert result.outcome is IngestOutcome.SUCCEEDED
    assert result.casino == "stake"


@pytest.mark.asyncio
async def test_transient_fetch_error_is_retried(store):
    adapter = StubAdapter(FetchError("502"), ROWS)
    uc = _use_case(store, adapter)

    result = await uc(_tenant())

    assert result.outcome is IngestOutcome.SUCCEEDED
    assert adapter.calls == 2


@pytest.mark.asyncio
async def test_fetch_error_exhausts_retries_then_fails(store, metrics_registry):
    adapter = StubAdapter(FetchError("upstream down"))
    uc = _use_case(store, adapter)

    result = await uc(_tenant())

    assert result.outcome is IngestOutcome.FAILED
    assert result.error_type == "FetchError"
    assert result.error == "upstream down"
    assert not result.ok
    assert adapter.calls == NO_WAIT.total + 1
    assert await store.get_rollup("t1", "stake") is None
    assert metrics_registry.get_sample_value(
        "wagerboard_ingest_tenant_runs_total", {"casino": "stake", "outcome": "failed"}
    ) == 1.0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [ConfigurationError("API URL not configured for tenant"), ParseError("bad csv")],
)
async def test_non_transient_errors_fail_without_retry(store, error):
    adapter = StubAdapter(error)
    uc = _use_case(store, adapter)

    result = await uc(_tenant())

    assert result.outcome is IngestOutcome.FAILED
    assert result.error_type == type(error).__name__
    assert adapter.calls == 1


@pytest.mark.asyncio
async def test_invalidation_failure_does_not_fail_the_cycle(store):
    invalidator = RecordingInvalidator(ConnectionError("redis down"))
    uc = _use_case(store, StubAdapter(ROWS), invalidator)

    result = await uc(_tenant())

    assert result.outcome is IngestOutcome.SUCCEEDED
    assert invalidator.calls == [("t1", "stake")]
    _, total = await store.list_entries("t1", "stake", offset=0, limit=10)
    assert total == 3


@pytest.mark.asyncio
async def test_ingest_by_id_loads_tenant_from_store(store, seed_tenant):
    await seed_tenant("t9", casino="Stake", api_config={"url": "https://p/t9.csv", "apiKey": "k"})
    adapter = StubAdapter(ROWS)
    uc = _use_case(store, adapter)

    result = await uc.ingest_tenant("t9")

    assert result.tenant_id == "t9"
    assert result.outcome is IngestOutcome.SUCCEEDED
    assert adapter.configs == [{"url": "https://p/t9.csv", "apiKey": "k"}]


@pytest.mark.asyncio
async def test_ingest_by_unknown_id_raises(store):
    uc = _use_case(store, StubAdapter(ROWS))
    with pytest.raises(TenantNotFoundError) as exc_info:
        await uc.ingest_tenant("ghost")
    assert exc_info.value.details == {"tenant_id": "ghost"}


@pytest.mark.asyncio
async def test_one_extreme_row_does_not_block_the_batch(store):
    rows = [
        {"user_id": "alice", "wager": "10", "rank": "1"},
        {
            "user_id": "x" * 400,
            "wager": "1e30",
            "rank": "99999999999999999999",
            "timestamp": "9999-12-31T23:00:00-05:00",
        },
        {"user_id": "carol", "wager": "5", "rank": "3", "timestamp": "0001-01-01T00:00:00+01:00"},
    ]
    uc = _use_case(store, StubAdapter(rows))

    result = await uc(_tenant())

    assert result.outcome is IngestOutcome.SUCCEEDED
    assert result.rows == 3
    entries, total = await store.list_entries("t1", "stake", offset=0, limit=10)
    assert total == 3
    extreme = next(e for e in entries if e.casino_player_id.startswith("xxx"))
    assert (extreme.rank, extreme.wager_amount, extreme.timestamp) == (2, Decimal("0"), OBSERVED)
    assert len(extreme.casino_player_id) == 255


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403, 404])
async def test_permanent_http_status_is_not_retried(store, status):
    adapter = StubAdapter(FetchError(f"HTTP {status}", details={"status": status}), ROWS)
    uc = _use_case(store, adapter)

    result = await uc(_tenant())

    assert result.outcome is IngestOutcome.FAILED
    assert adapter.calls == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [429, 500, 503])
async def test_throttling_and_server_errors_are_retried(store, status):
    adapter = StubAdapter(FetchError(f"HTTP {status}", details={"status": status}), ROWS)
    uc = _use_case(store, adapter)

    result = await uc(_tenant())

    assert result.outcome is IngestOutcome.SUCCEEDED
    assert adapter.calls == 2


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (FetchError("timed out", details={"timeout_s": 10.0}), True),
        (FetchError("refused"), True),
        (FetchError("HTTP 502", details={"status": 502}), True),
        (FetchError("HTTP 404", details={"status": 404}), False),
        (ParseError("bad csv"), False),
        (RuntimeError("boom"), False),
    ],
)
def test_transient_fetch_error_classification(exc, expected):
    assert is_transient_fetch_error(exc) is expected
