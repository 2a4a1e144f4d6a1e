"""Pydantic models describing TheTVDB payloads and catalogue entities."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

ContentType = Literal["movie", "series"]

IMDB_SOURCE_NAME = "IMDB"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _is_scalar_id(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and bool(value.strip())


class RemoteId(BaseModel):
    """A cross-reference identifier attached to a TheTVDB record."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    type: int | str | None = None
    source_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("sourceName", "source_name"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value


class CatalogRecord(BaseModel):
    """A single item from a TheTVDB ``/search`` response.

    TheTVDB omits fields freely and is not consistent about their types, so
    every field apart from ``id`` is optional and loosely coerced.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str | None = None
    extended_title: str | None = None
    year: str | None = None
    overview: str | None = None
    country: str | None = None
    director: str | None = None
    image_url: str | None = None
    thumbnail: str | None = None
    genres: list[str] | None = None
    first_air_time: str | None = None
    primary_language: str | None = None
    status: str | None = None
    network: str | None = None
    aliases: list[str] | None = None
    remote_ids: list[RemoteId] = Field(default_factory=list)
    primary_type: str | None = Field(
        default=None, validation_alias=AliasChoices("primary_type", "type")
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            value = str(value)
        if isinstance(value, str) and not value.strip():
            raise ValueError("TheTVDB record id must not be blank")
        return value.strip() if isinstance(value, str) else value

    @field_validator("year", mode="before")
    @classmethod
    def _coerce_year(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return _blank_to_none(value)

    @field_validator("status", "network", mode="before")
    @classmethod
    def _coerce_named(cls, value: Any) -> Any:
        # Some endpoints return {"id": 1, "name": "Ended"} instead of a string.
        if isinstance(value, dict):
            value = value.get("name")
        return _blank_to_none(value)

    @field_validator(
        "name",
        "extended_title",
        "overview",
        "country",
        "director",
        "image_url",
        "thumbnail",
        "first_air_time",
        "primary_language",
        "primary_type",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return _blank_to_none(value)

    @field_validator("genres", "aliases", mode="before")
    @classmethod
    def _coerce_string_list(cls, value: Any) -> list[str] | None:
        if not isinstance(value, list):
            return None
        cleaned: list[str] = []
        for entry in value:
            if isinstance(entry, dict):
                entry = entry.get("name")
            if isinstance(entry, str) and entry.strip():
                cleaned.append(entry.strip())
        return cleaned

    @field_validator("remote_ids", mode="before")
    @classmethod
    def _coerce_remote_ids(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        return [
            entry
            for entry in value
            if isinstance(entry, dict) and _is_scalar_id(entry.get("id"))
        ]

    def imdb_id(self) -> str | None:
        """Return the first IMDB cross-reference, if TheTVDB supplied one."""

        for remote_id in self.remote_ids:
            if remote_id.source_name == IMDB_SOURCE_NAME:
                return remote_id.id
        return None


class CatalogueEntity(BaseModel):
    """A locally persisted catalogue row, keyed by ``tvdb_id``."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    tvdb_id: str
    imdb_id: str | None = None
    name: str = ""
    extended_title: str | None = None
    year: str | None = None
    overview: str | None = None
    country: str | None = None
    director: str | None = None
    poster_url: str | None = None
    thumbnail_url: str | None = None
    genre: list[str] | None = None
    first_air_time: str | None = None
    language: str | None = None
    status: str | None = None
    fetched_at: datetime

    def column_values(self) -> dict[str, Any]:
        """Return the values to insert, leaving the primary key to the store."""

        return self.model_dump(exclude={"id"})


class MovieEntity(CatalogueEntity):
    """A row of the ``movies`` table."""


class SeriesEntity(CatalogueEntity):
    """A row of the ``series`` table."""

    network: str | None = None
    aliases: list[str] | None = None
