# src/wagerboard_api/adapters/schemas/http/envelopes.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""HTTP Envelopes (Adapters Layer).

Purpose:
    Canonical transport-facing HTTP envelopes:
      - ErrorEnvelope
      - SuccessEnvelope[T]
      - AckEnvelope
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from wagerboard_api.adapters.schemas.http.base import BaseHTTPSchema

__all__ = [
    "AckEnvelope",
    "ErrorObject",
    "ErrorEnvelope",
    "SuccessEnvelope",
]


class ErrorObject(BaseModel):
    """Structured error object inside ErrorEnvelope.

    Codes are UPPER_SNAKE_CASE and stable across releases, e.g.
    ``LEADERBOARD_STORE_UNAVAILABLE`` or ``TENANT_NOT_FOUND``.
    """

    model_config = ConfigDict(
        title="ErrorObject",
        extra="forbid",
        json_schema_extra={
            "examples": [
                {
                    "code": "LEADERBOARD_STORE_UNAVAILABLE",
                    "http_status": 503,
                    "message": "Leaderboard store operation 'list_entries' failed",
                    "details": {"operation": "list_entries"},
                    "trace_id": "req-123",
                }
            ]
        },
    )

    code: str = Field(..., description="Stable machine-readable error code.")
    http_status: int = Field(..., description="Associated HTTP status.")
    message: str = Field(..., description="Human-readable error description.")
    details: dict[str, Any] | None = Field(
        default=None,
        description="Optional structured details safe for clients.",
    )
    trace_id: str | None = Field(
        default=None,
        description="Request correlation identifier.",
    )


class ErrorEnvelope(BaseHTTPSchema):
    r"""Canonical error envelope: {"error": ErrorObject}."""

    model_config = ConfigDict(title="ErrorEnvelope", extra="forbid")

    error: ErrorObject = Field(..., description="Structured error details.")


class SuccessEnvelope[T](BaseHTTPSchema):
    r"""Success envelope for non-paginated responses: {"data": T}."""

    model_config = ConfigDict(title="SuccessEnvelope", extra="forbid")

    data: T = Field(..., description="Returned resource or value.")


class AckEnvelope(BaseHTTPSchema):
    r"""Acknowledgement for command endpoints: {"success": true}."""

    model_config = ConfigDict(title="AckEnvelope", extra="forbid")

    success: bool = Field(default=True, description="Whether the command was applied.")
