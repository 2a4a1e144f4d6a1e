"""Utilities for searching TheTVDB v4 API."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..errors import ProviderError
from ..media_kinds import MediaKind
from ..models import CatalogRecord
from .tvdb_session import TVDBSessionCache

logger = logging.getLogger(__name__)


class TVDBClient:
    """Thin wrapper around TheTVDB search endpoint."""

    _SEARCH_PATH = "/search"

    def __init__(self, http_client: httpx.AsyncClient, session_cache: TVDBSessionCache):
        self._client = http_client
        self._sessions = session_cache

    @property
    def session_cache(self) -> TVDBSessionCache:
        return self._sessions

    async def search(
        self, title: str, api_key: str, kind: MediaKind
    ) -> list[CatalogRecord]:
        """Return the first page of search results tagged as ``kind``.

        Results keep TheTVDB's relevance order. Failures are raised rather
        than retried; a 401 also drops the cached token so the next call
        logs in again.
        """

        token = await self._sessions.get_token(api_key)
        query = title.strip()

        try:
            response = await self._client.get(
                self._SEARCH_PATH,
                params={"query": query},
                headers={
                    "Authorization": f"Bearer {token}",
                    "Accept": "application/json",
                },
            )
        except httpx.HTTPError as exc:
            logger.warning("TheTVDB search for %r failed: %s", query, exc)
            raise ProviderError(
                f"TheTVDB search request failed: {exc}", original_exception=exc
            ) from exc

        if response.status_code == 401:
            self._sessions.invalidate()
        if response.status_code >= 400:
            logger.warning(
                "TheTVDB search for %r (%s) failed with status %s",
                query,
                kind.content_type,
                response.status_code,
            )
            raise ProviderError(
                f"TheTVDB search failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise ProviderError(
                "TheTVDB search returned a non-JSON body",
                status_code=response.status_code,
                original_exception=exc,
            ) from exc

        raw_items = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(raw_items, list):
            return []

        records: list[CatalogRecord] = []
        for entry in raw_items:
            if not isinstance(entry, dict):
                continue
            try:
                record = CatalogRecord.model_validate(entry)
            except ValidationError as exc:
                logger.warning(
                    "Skipping malformed TheTVDB search result %r: %s",
                    entry.get("id"),
                    exc.errors(),
                )
                continue
            if kind.matches(record):
                records.append(record)

        logger.debug(
            "TheTVDB returned %d %s result(s) for %r",
            len(records),
            kind.content_type,
            query,
        )
        return records
