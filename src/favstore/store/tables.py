"""SQLAlchemy Core table definitions for ``SQLEntityStore``."""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """Timestamp stored as naive UTC and returned timezone-aware.

    Naive values passed in are taken to already be UTC.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


metadata = MetaData()

favorites = Table(
    "favorites",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("source_kind", String(16), nullable=False),
    Column("source_id", Text, nullable=False),
    Column("favorited_at", UTCDateTime, nullable=False),
    UniqueConstraint("source_kind", "source_id", name="uq_favorites_source"),
    Index("ix_favorites_favorited_at", "favorited_at"),
)

saved_searches = Table(
    "saved_searches",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False, unique=True),
    Column("query", Text, nullable=False),
    Column("filters", Text, nullable=False, default=""),
)

tags = Table(
    "tags",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False, unique=True),
    Column("category", Text),
    Column("purity", Text),
)

uploaders = Table(
    "uploaders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", Text, nullable=False, unique=True),
    Column("group_name", Text),
    Column("avatar_url", Text),
)

cached_items = Table(
    "cached_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("external_id", Text, nullable=False, unique=True),
    Column("uploader_id", Integer, ForeignKey("uploaders.id", ondelete="SET NULL")),
    Column("url", Text),
    Column("path", Text),
    Column("thumbnail_url", Text),
    Column("width", Integer),
    Column("height", Integer),
    Column("file_size", Integer),
    Column("file_type", Text),
    Column("category", Text),
    Column("purity", Text),
    Column("colors", JSON),
    Column("created_at", UTCDateTime),
)

cached_item_tags = Table(
    "cached_item_tags",
    metadata,
    Column(
        "item_id",
        Integer,
        ForeignKey("cached_items.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        Integer,
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)
