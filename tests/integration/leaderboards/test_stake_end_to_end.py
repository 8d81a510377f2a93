# tests/integration/leaderboards/test_stake_end_to_end.py
"""Feed -> store -> cached read path for the reference ``stake`` partner."""

from __future__ import annotations

from decimal import Decimal

import httpx
import pytest
import respx

from wagerboard_api.application.schemas.dto.ingestion import IngestOutcome
from wagerboard_api.config.settings import Settings
from wagerboard_api.dependencies.core.bootstrap import build_services
from wagerboard_api.infrastructure.caching.memory_cache import InMemoryJsonCache

FEED_URL = "https://partner.example/stake/leaderboard.csv"

FEED_V1 = (
    "user_id,wagered_amount,rank,timestamp\n"
    "alice,1500.25,1,2024-04-30T00:00:00Z\n"
    "bob,900,2,2024-04-30T00:00:00Z\n"
    "carol,12.5,3,2024-04-30T00:00:00Z\n"
)
FEED_V2 = (
    "user_id,wagered_amount,rank,timestamp\n"
    "bob,2100,1,2024-04-30T00:00:00Z\n"
    "alice,1600,2,2024-04-30T00:00:00Z\n"
    "carol,12.5,3,2024-04-30T00:00:00Z\n"
)


@pytest.fixture
def partner():
    with respx.mock(assert_all_called=True) as mock:
        yield mock


@pytest.fixture
def services(db_sessionmaker):
    settings = Settings(ENVIRONMENT="test", PARTNER_FETCH_RETRIES=0)
    return build_services(settings, session_factory=db_sessionmaker, cache=InMemoryJsonCache())


@pytest.mark.asyncio
async def test_ingest_then_read_then_refresh(services, seed_tenant, partner):
    await seed_tenant("t1", casino="stake", api_config={"url": FEED_URL, "apiKey": "secret"})
    route = partner.get(FEED_URL).mock(return_value=httpx.Response(200, text=FEED_V1))

    report = await services.ingest_all.run_all()
    assert report.counts["succeeded"] == 1
    assert route.calls.last.request.headers["Authorization"] == "Bearer secret"

    page = await services.query_service.get_page("t1", "stake", page=1, page_size=2)
    assert page.total == 3
    assert page.total_pages == 2
    assert [(e.casino_player_id, e.rank) for e in page.entries] == [("alice", 1), ("bob", 2)]
    assert page.entries[0].wager_amount == Decimal("1500.25")

    route.mock(return_value=httpx.Response(200, text=FEED_V2))
    result = await services.ingest_tenant.ingest_tenant("t1")
    assert result.outcome is IngestOutcome.SUCCEEDED

    # Ingestion invalidated the cached page, so the new ranking is visible.
    page = await services.query_service.get_page("t1", "stake", page=1, page_size=2)
    assert [(e.casino_player_id, e.rank) for e in page.entries] == [("bob", 1), ("alice", 2)]
    assert page.total == 3


@pytest.mark.asyncio
async def test_one_broken_partner_does_not_block_other_tenants(
    services, seed_tenant, partner
):
    await seed_tenant("good", api_config={"url": FEED_URL})
    await seed_tenant("down", api_config={"url": "https://partner.example/down.csv"})
    await seed_tenant("other", casino="roobet", api_config={"url": FEED_URL})
    partner.get(FEED_URL).mock(return_value=httpx.Response(200, text=FEED_V1))
    partner.get("https://partner.example/down.csv").mock(return_value=httpx.Response(503))

    report = await services.ingest_all.run_all()

    outcomes = {r.tenant_id: r.outcome for r in report.results}
    assert outcomes == {
        "good": IngestOutcome.SUCCEEDED,
        "down": IngestOutcome.FAILED,
        "other": IngestOutcome.SKIPPED,
    }
    good = await services.query_service.get_page("good", "stake")
    down = await services.query_service.get_page("down", "stake")
    assert good.total == 3
    assert (down.total, down.total_pages, down.entries) == (0, 0, [])
