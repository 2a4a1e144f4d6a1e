"""Movie and series variants sharing one reconciliation workflow."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from .db_models import CatalogueColumns, MovieRecord, SeriesRecord
from .models import (
    CatalogRecord,
    CatalogueEntity,
    ContentType,
    MovieEntity,
    SeriesEntity,
)


def _common_fields(record: CatalogRecord) -> dict[str, Any]:
    return {
        "tvdb_id": record.id,
        "imdb_id": record.imdb_id(),
        "name": record.name or "",
        "extended_title": record.extended_title,
        "year": record.year,
        "overview": record.overview,
        "country": record.country,
        "director": record.director,
        "poster_url": record.image_url,
        "thumbnail_url": record.thumbnail,
        "genre": list(record.genres) if record.genres is not None else None,
        "first_air_time": record.first_air_time,
        "language": record.primary_language,
        "status": record.status,
    }


def _series_fields(record: CatalogRecord) -> dict[str, Any]:
    return {
        "network": record.network,
        "aliases": list(record.aliases) if record.aliases is not None else None,
    }


def _no_extra_fields(_: CatalogRecord) -> dict[str, Any]:
    return {}


@dataclass(frozen=True, slots=True)
class MediaKind:
    """Everything that differs between reconciling movies and series."""

    content_type: ContentType
    provider_type: str
    orm_model: type[CatalogueColumns]
    entity_model: type[CatalogueEntity]
    extra_fields: Callable[[CatalogRecord], dict[str, Any]]

    @property
    def collection(self) -> str:
        return self.orm_model.__tablename__  # type: ignore[attr-defined]

    def matches(self, record: CatalogRecord) -> bool:
        """Return whether TheTVDB tagged the record as this kind."""

        return record.primary_type == self.provider_type

    def project(self, record: CatalogRecord, fetched_at: datetime) -> CatalogueEntity:
        """Map a TheTVDB record onto a not-yet-persisted catalogue entity."""

        values = _common_fields(record)
        values.update(self.extra_fields(record))
        values["fetched_at"] = fetched_at
        return self.entity_model(**values)

    def to_entity(self, row: CatalogueColumns) -> CatalogueEntity:
        return self.entity_model.model_validate(row)

    def to_row(self, entity: CatalogueEntity) -> CatalogueColumns:
        return self.orm_model(**entity.column_values())


MOVIE = MediaKind(
    content_type="movie",
    provider_type="movie",
    orm_model=MovieRecord,
    entity_model=MovieEntity,
    extra_fields=_no_extra_fields,
)

SERIES = MediaKind(
    content_type="series",
    provider_type="series",
    orm_model=SeriesRecord,
    entity_model=SeriesEntity,
    extra_fields=_series_fields,
)

MEDIA_KINDS: dict[str, MediaKind] = {
    kind.content_type: kind for kind in (MOVIE, SERIES)
}


def get_media_kind(content_type: str) -> MediaKind:
    """Return the variant registered for ``content_type``."""

    try:
        return MEDIA_KINDS[content_type]
    except KeyError as exc:
        raise ValueError(f"Unsupported content type: {content_type}") from exc
