"""Routers Package Export (Adapters Layer).

Purpose:
    Provide stable, explicit exports for the routers the FastAPI application
    mounts during startup.

Layer:
    adapters/routers
"""

from __future__ import annotations

from .health_router import router as health  # noqa: F401
from .leaderboard_router import router as leaderboards  # noqa: F401
from .metrics_router import router as metrics  # noqa: F401

__all__ = ["health", "leaderboards", "metrics"]
