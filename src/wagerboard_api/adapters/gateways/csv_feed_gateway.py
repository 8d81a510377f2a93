# src/wagerboard_api/adapters/gateways/csv_feed_gateway.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Adapter Gateway: tabular (CSV) partner leaderboard feeds.

This gateway downloads a partner's leaderboard export over HTTP and turns it
into ordered, header-keyed raw rows for the normalizer.

Design principles:
    * Configuration is read from the tenant's opaque ``api_config`` through
      :class:`CsvFeedConfig`; a missing URL fails before any I/O.
    * ``Accept: text/csv`` on every request; ``Authorization: Bearer`` only
      when the tenant has an API key.
    * Transport and HTTP status failures map to :class:`FetchError`; malformed
      payloads map to :class:`ParseError`.
    * No retries here. The ingestion orchestrator owns retry policy.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Mapping
from typing import Any, Final

import httpx

from wagerboard_api.domain.entities.leaderboard import RawRow
from wagerboard_api.domain.entities.tenant import CsvFeedConfig
from wagerboard_api.domain.enums.casino import normalize_casino_tag
from wagerboard_api.domain.exceptions.leaderboard import FetchError, ParseError

__all__ = ["CsvFeedAdapter", "parse_csv_rows", "DEFAULT_TIMEOUT_S"]

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S: Final[float] = 10.0
_BOM: Final[str] = "\ufeff"


def parse_csv_rows(text: str) -> list[RawRow]:
    """Parse a header-delimited CSV document into raw rows.

    Rules:
        * The first non-blank line is the header; names are trimmed.
        * Cell values are trimmed; blank lines and all-blank rows are skipped.
        * Cells missing from a short row are absent from that row's mapping.
        * Cells beyond the header width are dropped.
        * Columns with a blank header name are ignored.

    Args:
        text: Decoded CSV body.

    Returns:
        Rows in document order. Empty or header-only input yields ``[]``.

    Raises:
        ParseError: On malformed CSV or duplicate header names.
    """
    if text.startswith(_BOM):
        text = text[len(_BOM) :]

    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    header: list[str] | None = None
    rows: list[RawRow] = []
    try:
        for record in reader:
            cells = [c.strip() for c in record]
            if not any(cells):
                continue
            if header is None:
                header = cells
                named = [h for h in header if h]
                if len(named) != len(set(named)):
                    raise ParseError(
                        "CSV header contains duplicate column names",
                        details={"header": header},
                    )
                continue
            row = {name: value for name, value in zip(header, cells, strict=False) if name}
            rows.append(row)
    except csv.Error as exc:
        raise ParseError(
            "Malformed CSV payload",
            details={"line": reader.line_num, "error": str(exc)},
        ) from exc
    return rows


class CsvFeedAdapter:
    """Partner adapter for CSV leaderboard exports (reference: ``stake``)."""

    def __init__(
        self,
        casino: str = "stake",
        *,
        http: httpx.AsyncClient | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        """Initialize the adapter.

        Args:
            casino: Casino tag served by this adapter.
            http: Shared client. When ``None`` a short-lived client is opened
                per fetch.
            timeout_s: Per-request timeout in seconds.
        """
        self.casino = normalize_casino_tag(casino)
        self._http = http
        self._timeout_s = timeout_s

    @staticmethod
    def _headers(config: CsvFeedConfig) -> dict[str, str]:
        headers = {"Accept": "text/csv"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
        return headers

    async def _get(self, config: CsvFeedConfig) -> httpx.Response:
        headers = self._headers(config)
        if self._http is not None:
            return await self._http.get(config.url, headers=headers, timeout=self._timeout_s)
        async with httpx.AsyncClient(timeout=self._timeout_s) as client:
            return await client.get(config.url, headers=headers)

    async def fetch_rows(self, api_config: Mapping[str, Any]) -> list[RawRow]:
        """Download and parse the partner feed.

        Args:
            api_config: Tenant ``api_config`` (``url`` plus optional ``apiKey``).

        Returns:
            Raw rows in feed order.

        Raises:
            ConfigurationError: If no feed URL is configured.
            FetchError: On timeouts, transport errors or non-2xx responses.
            ParseError: If the body is not valid CSV text.
        """
        config = CsvFeedConfig.from_api_config(api_config)
        logger.info(
            "partner.fetch.start",
            extra={"extra": {"casino": self.casino, "url": config.url}},
        )

        try:
            response = await self._get(config)
        except httpx.TimeoutException as exc:
            raise FetchError(
                "Partner feed request timed out",
                details={"url": config.url, "timeout_s": self._timeout_s},
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(
                "Partner feed request failed",
                details={"url": config.url, "error": str(exc)},
            ) from exc

        if not response.is_success:
            raise FetchError(
                f"Partner feed returned HTTP {response.status_code}",
                details={"status": response.status_code, "url": config.url},
            )

        try:
            body = response.text
        except (UnicodeDecodeError, LookupError) as exc:
            raise ParseError(
                "Partner feed body is not decodable text",
                details={"url": config.url, "error": str(exc)},
            ) from exc

        rows = parse_csv_rows(body)
        logger.info(
            "partner.fetch.done",
            extra={"extra": {"casino": self.casino, "rows": len(rows), "bytes": len(body)}},
        )
        return rows
