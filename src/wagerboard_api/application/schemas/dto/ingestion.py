# src/wagerboard_api/application/schemas/dto/ingestion.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""Application DTOs for leaderboard ingestion runs.

Layer:
    application/schemas/dto
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from enum import Enum

from pydantic import Field

from wagerboard_api.application.schemas.dto.base import BaseDTO


class IngestOutcome(str, Enum):
    """Terminal state of one tenant's ingestion cycle."""

    SUCCEEDED = "succeeded"
    EMPTY = "empty"
    SKIPPED = "skipped"
    FAILED = "failed"


class TenantIngestResult(BaseDTO):
    """Result of ingesting one tenant.

    Attributes:
        tenant_id: Tenant processed.
        casino: Normalized casino tag.
        outcome: Terminal state.
        rows: Entries persisted (0 unless ``succeeded``).
        error_type: Exception class name for ``failed``/``skipped``.
        error: Exception message for ``failed``/``skipped``.
        duration_s: Wall-clock duration of the cycle.
    """

    tenant_id: str
    casino: str
    outcome: IngestOutcome
    rows: int = Field(default=0, ge=0)
    error_type: str | None = None
    error: str | None = None
    duration_s: float = Field(default=0.0, ge=0)

    @property
    def ok(self) -> bool:
        """True unless the cycle failed."""
        return self.outcome is not IngestOutcome.FAILED


class IngestionRunReport(BaseDTO):
    """Summary of one multi-tenant ingestion run."""

    run_id: str
    started_at: datetime
    finished_at: datetime
    results: list[TenantIngestResult] = Field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        """Number of tenants per outcome (every outcome present, zero if unused)."""
        tally = Counter(r.outcome.value for r in self.results)
        return {o.value: tally.get(o.value, 0) for o in IngestOutcome}

    @property
    def duration_s(self) -> float:
        """Wall-clock duration of the run."""
        return max(0.0, (self.finished_at - self.started_at).total_seconds())
