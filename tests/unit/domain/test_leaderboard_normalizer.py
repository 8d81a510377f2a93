# tests/unit/domain/test_leaderboard_normalizer.py
from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from wagerboard_api.domain.services.leaderboard_normalizer import (
    MAX_PLAYER_ID_LENGTH,
    MAX_RANK,
    MAX_WAGER,
    normalize_row,
    normalize_rows,
)

OBSERVED = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def _one(row, ordinal=0):
    return normalize_row(row, ordinal, casino="stake", observed_at=OBSERVED)


def test_snake_case_row_maps_every_field():
    row = {
        "user_id": "u1",
        "wagered_amount": "1234.50",
        "rank": "1",
        "timestamp": "2024-01-01T00:00:00Z",
    }
    out = _one(row)
    assert out.casino_player_id == "u1"
    assert out.wager_amount == Decimal("1234.50")
    assert out.rank == 1
    assert out.timestamp == datetime(2024, 1, 1, tzinfo=UTC)
    assert out.casino == "stake"
    assert out.data == row


def test_camel_case_aliases_are_accepted():
    out = _one({"userId": "p-9", "wageredAmount": "10", "date": "2024-02-03"})
    assert out.casino_player_id == "p-9"
    assert out.wager_amount == Decimal("10")
    assert out.timestamp == datetime(2024, 2, 3, tzinfo=UTC)


def test_alias_priority_prefers_first_present_value():
    out = _one({"id": "fallback", "user_id": "primary", "wager": "1", "wagered_amount": "2"})
    assert out.casino_player_id == "primary"
    assert out.wager_amount == Decimal("2")


def test_blank_alias_falls_through_to_next():
    out = _one({"user_id": "  ", "userId": "", "id": "z"})
    assert out.casino_player_id == "z"


def test_missing_fields_use_fallbacks():
    out = _one({"wager": "abc"}, ordinal=4)
    assert out.casino_player_id == "unknown-4"
    assert out.wager_amount == Decimal("0")
    assert out.rank == 5
    assert out.timestamp == OBSERVED


@pytest.mark.parametrize("wager", ["-5", "NaN", "Infinity", "", "1,000"])
def test_unusable_wager_becomes_zero(wager):
    assert _one({"user_id": "u", "wager": wager}).wager_amount == Decimal("0")


@pytest.mark.parametrize(
    ("rank", "expected"),
    [("3", 3), ("3.0", 3), ("0", 8), ("-2", 8), ("2.5", 8), ("first", 8)],
)
def test_rank_parsing_and_ordinal_fallback(rank, expected):
    assert _one({"user_id": "u", "rank": rank}, ordinal=7).rank == expected


def test_timestamp_with_offset_is_converted_to_utc():
    out = _one({"user_id": "u", "timestamp": "2024-01-01T02:00:00+02:00"})
    assert out.timestamp == datetime(2024, 1, 1, tzinfo=UTC)
    assert out.timestamp.utcoffset().total_seconds() == 0


def test_epoch_seconds_and_milliseconds():
    secs = _one({"user_id": "u", "timestamp": "1704067200"})
    millis = _one({"user_id": "u", "timestamp": "1704067200000"})
    assert secs.timestamp == datetime(2024, 1, 1, tzinfo=UTC)
    assert millis.timestamp == secs.timestamp


def test_garbage_timestamp_uses_observed_time():
    assert _one({"user_id": "u", "timestamp": "yesterday"}).timestamp == OBSERVED


def test_normalize_rows_preserves_order_count_and_tenant():
    rows = [{"user_id": "a"}, {"bogus": "x"}, {"user_id": "c", "rank": "10"}]
    entries = normalize_rows(rows, tenant_id="t1", casino="STAKE", observed_at=OBSERVED)

    assert [e.casino_player_id for e in entries] == ["a", "unknown-1", "c"]
    assert [e.rank for e in entries] == [1, 2, 10]
    assert {e.tenant_id for e in entries} == {"t1"}
    assert {e.casino for e in entries} == {"stake"}
    assert {e.timestamp for e in entries} == {OBSERVED}


def test_normalize_rows_defaults_observed_time_to_now():
    before = datetime.now(UTC)
    (entry,) = normalize_rows([{"user_id": "a"}], tenant_id="t1", casino="stake")
    assert before <= entry.timestamp <= datetime.now(UTC)


def test_empty_feed_yields_empty_batch():
    assert normalize_rows([], tenant_id="t1", casino="stake", observed_at=OBSERVED) == []


def test_epoch_that_looks_like_a_basic_iso_prefix_is_still_epoch():
    # "17000101..." would parse as a year-1700 basic ISO date if tried first.
    out = _one({"user_id": "u", "timestamp": "1700010100"})
    assert out.timestamp == datetime.fromtimestamp(1700010100, tz=UTC)


@pytest.mark.parametrize("text", ["9999-12-31T23:00:00-05:00", "0001-01-01T00:00:00+01:00"])
def test_offset_past_datetime_range_uses_observed_time(text):
    assert _one({"user_id": "u", "timestamp": text}).timestamp == OBSERVED


@pytest.mark.parametrize(
    ("text", "expected"),
    [(str(MAX_RANK), MAX_RANK), (str(MAX_RANK + 1), 4), ("99999999999999999999", 4), ("1e20", 4)],
)
def test_rank_outside_integer_column_uses_ordinal(text, expected):
    assert _one({"user_id": "u", "rank": text}, ordinal=3).rank == expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("123456789012345678901234567890", Decimal("123456789012345678901234567890")),
        (str(MAX_WAGER), Decimal("0")),
        ("1e30", Decimal("0")),
        ("1e400", Decimal("0")),
    ],
)
def test_wager_outside_numeric_column_is_zero(text, expected):
    assert _one({"user_id": "u", "wager": text}).wager_amount == expected


def test_over_long_player_id_is_shortened_deterministically():
    long_a = "a" * 300
    long_b = "a" * 299 + "b"

    first = _one({"user_id": long_a}).casino_player_id
    again = _one({"user_id": long_a}).casino_player_id
    other = _one({"user_id": long_b}).casino_player_id

    assert len(first) == MAX_PLAYER_ID_LENGTH
    assert first == again
    assert first != other
    assert first.startswith("a" * 100)
    assert _one({"user_id": "b" * MAX_PLAYER_ID_LENGTH}).casino_player_id == "b" * 255
