"""Get-or-create workflow merging the local catalogue with TheTVDB."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable

from ..media_kinds import MediaKind
from ..models import CatalogRecord, CatalogueEntity
from .local_store import LocalStoreGateway
from .tvdb import TVDBClient

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(value: datetime) -> datetime:
    # fetched_at columns are naive UTC; aware values would come back changed.
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def dedupe_by_tvdb_id(entities: Iterable[CatalogueEntity]) -> list[CatalogueEntity]:
    """Keep the first entity seen for each ``tvdb_id``, preserving order."""

    seen: set[str] = set()
    unique: list[CatalogueEntity] = []
    for entity in entities:
        if entity.tvdb_id in seen:
            continue
        seen.add(entity.tvdb_id)
        unique.append(entity)
    return unique


class ReconciliationService:
    """Coordinates local search, TheTVDB search and ingestion of new titles.

    Every step runs in order and every collaborator failure propagates to
    the caller untouched; nothing here retries or recovers.
    """

    def __init__(
        self,
        store: LocalStoreGateway,
        tvdb_client: TVDBClient,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._store = store
        self._tvdb = tvdb_client
        self._clock = clock

    async def get_or_create(
        self, title: str, api_key: str, kind: MediaKind
    ) -> list[CatalogueEntity] | None:
        """Return stored and newly ingested matches for ``title``, or ``None``."""

        local = await self._store.fuzzy_search(title, kind)
        remote = await self._tvdb.search(title, api_key, kind)

        if not remote:
            logger.info(
                "No %s results on TheTVDB for %r; %d local match(es)",
                kind.content_type,
                title,
                len(local),
            )
            return local or None

        candidate_ids = list(dict.fromkeys(record.id for record in remote))
        existing = await self._store.find_existing_tvdb_ids(candidate_ids, kind)
        if existing:
            logger.debug(
                "Skipping %d already stored %s id(s): %s",
                len(existing),
                kind.content_type,
                sorted(existing),
            )

        to_insert = self._project_new(remote, existing, kind)
        inserted: list[CatalogueEntity] = []
        if to_insert:
            inserted = await self._store.insert_all(to_insert, kind)

        merged = dedupe_by_tvdb_id([*local, *inserted])
        logger.info(
            "Reconciled %s %r: %d local, %d remote, %d inserted",
            kind.content_type,
            title,
            len(local),
            len(remote),
            len(inserted),
        )
        return merged or None

    def _project_new(
        self,
        remote: list[CatalogRecord],
        existing: set[str],
        kind: MediaKind,
    ) -> list[CatalogueEntity]:
        fetched_at = _as_naive_utc(self._clock())
        pending: dict[str, CatalogueEntity] = {}
        for record in remote:
            if record.id in existing or record.id in pending:
                continue
            pending[record.id] = kind.project(record, fetched_at)
        return list(pending.values())
