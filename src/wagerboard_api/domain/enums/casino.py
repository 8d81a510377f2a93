# Copyright (c)
# SPDX-License-Identifier: MIT
"""Casino tags known to the ingestion pipeline.

Tenants carry their casino as a free-form string; the pipeline compares tags
case-insensitively, so every tag is normalized with :func:`normalize_casino_tag`
before it is used for adapter dispatch, storage, or cache keys.
"""

from __future__ import annotations

from enum import Enum


class Casino(str, Enum):
    """Partner casinos with a registered reference adapter."""

    STAKE = "stake"


def normalize_casino_tag(value: str) -> str:
    """Return the canonical (trimmed, lower-case) form of a casino tag."""
    return (value or "").strip().lower()
