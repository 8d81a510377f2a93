# tests/unit/infrastructure/caching/test_redis_json_cache.py
from __future__ import annotations

import json

import fakeredis.aioredis
import pytest

from wagerboard_api.application.services.leaderboard_query_service import DEFAULT_CACHE_TTL_S
from wagerboard_api.infrastructure.caching import redis_client as redis_client_module
from wagerboard_api.infrastructure.caching.json_cache import RedisJsonCache

NAMESPACE = "wagerboard:leaderboard:v1"


@pytest.fixture
def fake_redis(monkeypatch):
    fake = fakeredis.aioredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr(redis_client_module, "_client", fake)
    return fake


@pytest.mark.asyncio
async def test_key_shape_and_ttl(fake_redis, metrics_registry):
    cache = RedisJsonCache(namespace=NAMESPACE)
    tail = "leaderboard:t1:stake:page:1:size:20"

    await cache.set_json(tail, {"x": 1}, ttl=DEFAULT_CACHE_TTL_S)

    full_key = f"{NAMESPACE}:{tail}"
    assert json.loads(await fake_redis.get(full_key)) == {"x": 1}
    ttl = await fake_redis.ttl(full_key)
    assert 0 < ttl <= DEFAULT_CACHE_TTL_S


@pytest.mark.asyncio
async def test_get_miss_hit_and_non_mapping(fake_redis, metrics_registry):
    cache = RedisJsonCache(namespace=NAMESPACE)
    assert await cache.get_json("nope") is None

    await cache.set_json("k", {"a": [1, 2]}, ttl=30)
    assert await cache.get_json("k") == {"a": [1, 2]}

    await fake_redis.set(f"{NAMESPACE}:list", "[1, 2]")
    assert await cache.get_json("list") is None

    hits = metrics_registry.get_sample_value(
        "wagerboard_cache_operations_total",
        {"operation": "get_json", "namespace": NAMESPACE, "hit": "true"},
    )
    misses = metrics_registry.get_sample_value(
        "wagerboard_cache_operations_total",
        {"operation": "get_json", "namespace": NAMESPACE, "hit": "false"},
    )
    assert hits == 1.0
    assert misses == 2.0


@pytest.mark.asyncio
async def test_non_positive_ttl_skips_write(fake_redis, metrics_registry):
    cache = RedisJsonCache(namespace=NAMESPACE)
    await cache.set_json("k", {"x": 1}, ttl=0)
    assert await fake_redis.get(f"{NAMESPACE}:k") is None


@pytest.mark.asyncio
async def test_delete_is_namespaced(fake_redis, metrics_registry):
    cache = RedisJsonCache(namespace=NAMESPACE)
    other = RedisJsonCache(namespace="other")
    await cache.set_json("k", {"x": 1}, ttl=30)
    await other.set_json("k", {"x": 2}, ttl=30)

    assert await cache.delete("k", "missing") == 1
    assert await cache.delete() == 0
    assert await cache.get_json("k") is None
    assert await other.get_json("k") == {"x": 2}


@pytest.mark.asyncio
async def test_add_members_writes_a_set_with_ttl(fake_redis, metrics_registry):
    cache = RedisJsonCache(namespace=NAMESPACE)
    await cache.add_members("idx", "p1", ttl=30)
    await cache.add_members("idx", "p2", "p1", ttl=60)

    full_key = f"{NAMESPACE}:idx"
    assert await fake_redis.type(full_key) == "set"
    assert 30 < await fake_redis.ttl(full_key) <= 60
    assert await cache.members("idx") == {"p1", "p2"}
    assert await cache.members("missing") == set()

    await cache.add_members("skipped", "p1", ttl=0)
    assert await fake_redis.exists(f"{NAMESPACE}:skipped") == 0
    assert await cache.delete("idx") == 1
