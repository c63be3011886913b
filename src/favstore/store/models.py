"""Pydantic models for stored entities and hydrated favorites.

Attribute names are snake_case in Python and camelCase on the wire
(``alias_generator=to_camel``).  Store-assigned ``id`` fields are
surrogates: they are only meaningful inside the store that assigned them.
Natural keys (``source_id``, ``external_id``, ``username``, ``name``) are
what survive an export/import cycle.

Usage:
    from favstore.store.models import FavoriteReference, SourceKind

    ref = FavoriteReference(
        source_kind=SourceKind.CACHED,
        source_id="abc123",
        favorited_at=datetime.now(timezone.utc),
    )
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model with camelCase wire aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Favorites
# ============================================================================


class SourceKind(str, Enum):
    """Backing store a favorite points into."""

    CACHED = "cached"   # remote catalog item cached in the entity store
    LOCAL = "local"     # file in the local collection

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class FavoriteReference(WireModel):
    """A user's marking of one item, keyed by ``(source_kind, source_id)``."""

    id: int | None = Field(default=None, exclude=True)  # never exported
    source_kind: SourceKind
    source_id: str
    favorited_at: datetime

    @property
    def key(self) -> tuple[SourceKind, str]:
        """Natural key of the favorite."""
        return (self.source_kind, self.source_id)


# ============================================================================
# Saved searches
# ============================================================================


class SavedSearch(WireModel):
    """Named search query.  ``id`` of ``None`` or ``0`` means not yet stored."""

    id: int | None = None
    name: str = Field(min_length=1)
    query: str
    filters: str = ""


# ============================================================================
# Cached catalog entities
# ============================================================================


class Tag(WireModel):
    """Catalog tag, matched across stores by ``name``."""

    id: int
    name: str
    category: str | None = None
    purity: str | None = None


class Uploader(WireModel):
    """Catalog uploader, matched across stores by ``username``."""

    id: int
    username: str
    group: str | None = None
    avatar_url: str | None = None


class CachedItem(WireModel):
    """Catalog item cached locally, matched across stores by ``external_id``."""

    id: int | None = None
    external_id: str
    uploader_id: int | None = None
    tag_ids: list[int] = Field(default_factory=list)
    url: str | None = None
    path: str | None = None
    thumbnail_url: str | None = None
    width: int | None = None
    height: int | None = None
    file_size: int | None = None
    file_type: str | None = None
    category: str | None = None
    purity: str | None = None
    colors: list[str] = Field(default_factory=list)
    created_at: datetime | None = None


class CachedItemWithRelations(BaseModel):
    """Cached item joined with its uploader and tag rows."""

    item: CachedItem
    uploader: Uploader | None = None
    tags: list[Tag] = Field(default_factory=list)


# ============================================================================
# Hydrated favorites
# ============================================================================


class Wallpaper(BaseModel):
    """Source-agnostic hydrated item produced by a source resolver."""

    source_kind: SourceKind
    source_id: str
    url: str | None = None
    path: str | None = None
    thumbnail_url: str | None = None
    width: int | None = None
    height: int | None = None
    file_size: int | None = None
    file_type: str | None = None
    uploader: Uploader | None = None
    tags: list[Tag] = Field(default_factory=list)

    @classmethod
    def from_cached(cls, cached: CachedItemWithRelations) -> "Wallpaper":
        """Build a wallpaper from a cached item and its relations."""
        item = cached.item
        return cls(
            source_kind=SourceKind.CACHED,
            source_id=item.external_id,
            url=item.url,
            path=item.path,
            thumbnail_url=item.thumbnail_url,
            width=item.width,
            height=item.height,
            file_size=item.file_size,
            file_type=item.file_type,
            uploader=cached.uploader,
            tags=list(cached.tags),
        )
