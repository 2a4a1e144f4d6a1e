"""Query surface over the locally persisted catalogue."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..errors import ConstraintViolation, StoreError
from ..media_kinds import MediaKind
from ..models import CatalogueEntity

logger = logging.getLogger(__name__)

_LIKE_ESCAPE = "\\"


def _escape_like(term: str) -> str:
    return (
        term.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", f"{_LIKE_ESCAPE}%")
        .replace("_", f"{_LIKE_ESCAPE}_")
    )


class LocalStoreGateway:
    """Fuzzy search, existence checks and batched inserts per media kind."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def fuzzy_search(self, title: str, kind: MediaKind) -> list[CatalogueEntity]:
        """Return stored entities whose titles loosely match ``title``.

        Exact name matches rank first, then name prefixes, then any other
        substring or all-words match.
        """

        term = " ".join(title.split())
        if not term:
            return []

        model = kind.orm_model
        escaped = _escape_like(term)
        contains = f"%{escaped}%"
        name = model.name
        extended_title = model.extended_title

        clauses = [
            name.ilike(contains, escape=_LIKE_ESCAPE),
            extended_title.ilike(contains, escape=_LIKE_ESCAPE),
        ]
        tokens = term.split(" ")
        if len(tokens) > 1:
            clauses.append(
                and_(
                    *(
                        name.ilike(f"%{_escape_like(token)}%", escape=_LIKE_ESCAPE)
                        for token in tokens
                    )
                )
            )

        rank = case(
            (func.lower(name) == term.lower(), 0),
            (name.ilike(f"{escaped}%", escape=_LIKE_ESCAPE), 1),
            else_=2,
        )
        stmt = select(model).where(or_(*clauses)).order_by(rank, name, model.id)

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            logger.exception("Fuzzy search on %s failed for %r", kind.collection, term)
            raise StoreError(
                f"Fuzzy search on {kind.collection} failed", original_exception=exc
            ) from exc

        return [kind.to_entity(row) for row in rows]

    async def find_existing_tvdb_ids(
        self, tvdb_ids: Iterable[str], kind: MediaKind
    ) -> set[str]:
        """Return the subset of ``tvdb_ids`` already stored for ``kind``."""

        candidates = list(dict.fromkeys(tvdb_ids))
        if not candidates:
            return set()

        model = kind.orm_model
        stmt = select(model.tvdb_id).where(model.tvdb_id.in_(candidates))
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return set(result.scalars().all())
        except SQLAlchemyError as exc:
            logger.exception("Existence check on %s failed", kind.collection)
            raise StoreError(
                f"Existence check on {kind.collection} failed", original_exception=exc
            ) from exc

    async def insert_all(
        self, entities: Sequence[CatalogueEntity], kind: MediaKind
    ) -> list[CatalogueEntity]:
        """Insert ``entities`` in a single transaction and return the stored rows.

        Either every row lands or none does. A ``tvdb_id`` collision raises
        :class:`ConstraintViolation`.
        """

        if not entities:
            return []

        rows = [kind.to_row(entity) for entity in entities]
        async with self._session_factory() as session:
            try:
                session.add_all(rows)
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                logger.warning(
                    "Insert into %s violated a constraint: %s", kind.collection, exc.orig
                )
                raise ConstraintViolation(
                    f"Duplicate tvdb_id while inserting into {kind.collection}",
                    original_exception=exc,
                ) from exc
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.exception("Insert into %s failed", kind.collection)
                raise StoreError(
                    f"Insert into {kind.collection} failed", original_exception=exc
                ) from exc

        logger.info("Inserted %d row(s) into %s", len(rows), kind.collection)
        return [kind.to_entity(row) for row in rows]
