"""SQLAlchemy ORM models backing the local catalogue."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class CatalogueColumns:
    """Columns shared by the movie and series tables."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tvdb_id: Mapped[str] = mapped_column(String(64), nullable=False)
    imdb_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    name: Mapped[str] = mapped_column(Text, default="")
    extended_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    year: Mapped[str | None] = mapped_column(String(64), nullable=True)
    overview: Mapped[str | None] = mapped_column(Text, nullable=True)
    country: Mapped[str | None] = mapped_column(String(255), nullable=True)
    director: Mapped[str | None] = mapped_column(Text, nullable=True)
    poster_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    genre: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    first_air_time: Mapped[str | None] = mapped_column(String(64), nullable=True)
    language: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str | None] = mapped_column(String(255), nullable=True)
    fetched_at: Mapped[datetime] = mapped_column(DateTime)


class MovieRecord(CatalogueColumns, Base):
    """A movie ingested from TheTVDB."""

    __tablename__ = "movies"
    __table_args__ = (UniqueConstraint("tvdb_id", name="uq_movies_tvdb_id"),)


class SeriesRecord(CatalogueColumns, Base):
    """A series ingested from TheTVDB."""

    __tablename__ = "series"
    __table_args__ = (UniqueConstraint("tvdb_id", name="uq_series_tvdb_id"),)

    network: Mapped[str | None] = mapped_column(String(255), nullable=True)
    aliases: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
