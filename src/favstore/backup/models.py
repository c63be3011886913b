"""Backup snapshot models, options and results.

A snapshot is versioned: ``version`` is always its first field, and
readers dispatch on it before decoding anything else.  Each version has
its own model (``BackupV1`` today).

Wire layout of version 1 (camelCase keys)::

    {
      "version": 1,
      "preferences": {...},
      "favorites": [{"sourceKind": "cached", "sourceId": "abc", "favoritedAt": "..."}],
      "wallhaven": {
        "tags": [...],
        "uploaders": [...],
        "wallpapers": [...],
        "savedSearches": [...]
      }
    }

Unknown fields are ignored within a recognized version.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

from favstore.store.models import (
    CachedItem,
    FavoriteReference,
    SavedSearch,
    Tag,
    Uploader,
    WireModel,
)

LATEST_VERSION = 1


class MalformedSnapshotError(ValueError):
    """Raised when backup text is invalid or has an unsupported version."""

    pass


class BackupOptions(BaseModel):
    """Independent toggles selecting what a backup or restore covers."""

    settings: bool = False
    favorites: bool = False
    saved_searches: bool = False

    @property
    def any_selected(self) -> bool:
        """True if at least one toggle is set."""
        return self.settings or self.favorites or self.saved_searches

    @classmethod
    def everything(cls) -> "BackupOptions":
        """Options with every toggle set."""
        return cls(settings=True, favorites=True, saved_searches=True)


# ============================================================================
# Snapshot Models
# ============================================================================


class WallhavenBundleV1(WireModel):
    """Exportable entities of the cached catalog source."""

    tags: list[Tag] | None = None
    uploaders: list[Uploader] | None = None
    items: list[CachedItem] | None = Field(default=None, alias="wallpapers")
    saved_searches: list[SavedSearch] | None = None


class BackupSnapshot(WireModel):
    """Common base of every snapshot version."""

    version: int


class BackupV1(BackupSnapshot):
    """Version 1 snapshot."""

    version: Literal[1] = 1
    preferences: dict[str, Any] | None = None
    favorites: list[FavoriteReference] | None = None
    wallhaven: WallhavenBundleV1 | None = None


# ============================================================================
# Result Models
# ============================================================================


class SnapshotReport(BaseModel):
    """Result of ``validate_snapshot``."""

    valid: bool
    version: int | None = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class RestoreSummary(BaseModel):
    """What a restore wrote and what it skipped.

    Attributes:
        preferences_restored: Whether preferences were overwritten.
        saved_searches: Saved searches inserted or updated.
        tags: Tags upserted.
        uploaders: Uploaders upserted.
        items: Cached items upserted.
        items_skipped: Cached items not restored because no uploader could
            be remapped.
        favorites_inserted: Favorites newly inserted.
        favorites_existing: Favorites skipped because they already existed.
        dropped_favorites: Favorites whose referent does not exist in the
            destination.
    """

    preferences_restored: bool = False
    saved_searches: int = 0
    tags: int = 0
    uploaders: int = 0
    items: int = 0
    items_skipped: int = 0
    favorites_inserted: int = 0
    favorites_existing: int = 0
    dropped_favorites: list[FavoriteReference] = Field(default_factory=list)
