"""Public entry points for embedding or serving Seriesly."""

from __future__ import annotations

from app.main import app, create_app
from app.media_kinds import MOVIE, SERIES
from app.services.reconciliation import ReconciliationService

__all__ = ["MOVIE", "SERIES", "ReconciliationService", "app", "create_app"]
