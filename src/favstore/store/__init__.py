"""Entity store package.

Provides the ``EntityStore`` Protocol, the entity models, and the
``SQLEntityStore`` implementation (SQLite via ``aiosqlite`` or PostgreSQL
via ``asyncpg``).

Usage:
    from favstore.store import EntityStore, SQLEntityStore
    from favstore.store import FavoriteReference, SourceKind
"""

from favstore.store.base import EntityStore
from favstore.store.models import (
    CachedItem,
    CachedItemWithRelations,
    FavoriteReference,
    SavedSearch,
    SourceKind,
    Tag,
    Uploader,
    Wallpaper,
)
from favstore.store.sql import SQLEntityStore

__all__ = [
    "EntityStore",
    "SQLEntityStore",
    "CachedItem",
    "CachedItemWithRelations",
    "FavoriteReference",
    "SavedSearch",
    "SourceKind",
    "Tag",
    "Uploader",
    "Wallpaper",
]
