# tests/unit/infrastructure/logging/test_log_context.py
from __future__ import annotations

import asyncio
import json
import logging

import pytest

from wagerboard_api.infrastructure.logging.logger import (
    _JsonFormatter,
    current_log_context,
    log_context,
)


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("wagerboard.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_context_nests_and_resets():
    with log_context(run_id="r1"):
        with log_context(tenant_id="t1", ignored=None):
            assert current_log_context() == {"run_id": "r1", "tenant_id": "t1"}
        assert current_log_context() == {"run_id": "r1"}
    assert current_log_context() == {}


def test_formatter_merges_context_and_structured_extra():
    formatter = _JsonFormatter()
    with log_context(run_id="r1", tenant_id="t1"):
        line = formatter.format(_record("ingest.tenant.done", extra={"rows": 3}))
    payload = json.loads(line)

    assert payload["message"] == "ingest.tenant.done"
    assert payload["level"] == "INFO"
    assert payload["run_id"] == "r1"
    assert payload["tenant_id"] == "t1"
    assert payload["rows"] == 3
    assert "ts" in payload


@pytest.mark.asyncio
async def test_context_propagates_into_gathered_tasks():
    async def read() -> dict[str, str]:
        await asyncio.sleep(0)
        return current_log_context()

    with log_context(run_id="r9"):
        results = await asyncio.gather(read(), read())
    assert results == [{"run_id": "r9"}, {"run_id": "r9"}]
