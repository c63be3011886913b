"""Entity store protocol definition.

Defines the ``EntityStore`` Protocol that every store backend implements.
All methods are ``async def`` -- the library is async-first.

Lookups that take natural keys (``username``, ``external_id``, ``name``)
are the only way the reconciliation code re-links rows; store-assigned ids
returned by these methods are valid for this store only.

Usage:
    from favstore.store.base import EntityStore

    async def count_favorites(store: EntityStore) -> int:
        return len(await store.get_all_favorites())
"""

from collections.abc import Collection
from typing import Protocol

from favstore.store.models import (
    CachedItem,
    CachedItemWithRelations,
    FavoriteReference,
    SavedSearch,
    SourceKind,
    Tag,
    Uploader,
)


class EntityStore(Protocol):
    """Durable keyed storage for favorites and the entities they depend on.

    Uniqueness constraints:

    - favorites: ``(source_kind, source_id)``
    - saved searches: ``name``
    - tags: ``name``
    - uploaders: ``username``
    - cached items: ``external_id``

    Every bulk method runs in a single transaction.  Storage errors are
    raised unchanged to the caller.
    """

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    async def favorites_page(self, offset: int, limit: int) -> list[FavoriteReference]:
        """Return one page of favorites ordered by ``favorited_at`` descending.

        Ties are broken by store id descending so that paging is stable.

        Args:
            offset: Number of rows to skip.
            limit: Maximum number of rows to return.

        Returns:
            Up to ``limit`` favorites.  Fewer rows means the end was reached.
        """
        ...

    async def get_all_favorites(self) -> list[FavoriteReference]:
        """Return every favorite, most recent first."""
        ...

    async def favorite_exists(self, source_kind: SourceKind, source_id: str) -> bool:
        """Check whether a favorite exists for the given natural key."""
        ...

    async def insert_favorites(
        self, favorites: Collection[FavoriteReference]
    ) -> list[FavoriteReference]:
        """Insert favorites and return them with their new store ids.

        Incoming ``id`` values are ignored.

        Raises:
            Exception: If a ``(source_kind, source_id)`` pair already exists.
        """
        ...

    async def delete_favorite(self, source_kind: SourceKind, source_id: str) -> None:
        """Delete a favorite by natural key.  No-op if absent."""
        ...

    async def get_random_favorite(self) -> FavoriteReference | None:
        """Return one favorite chosen at random, or ``None`` if there are none."""
        ...

    # ------------------------------------------------------------------
    # Saved searches
    # ------------------------------------------------------------------

    async def get_saved_search(self, search_id: int) -> SavedSearch | None:
        """Point lookup by store id."""
        ...

    async def get_saved_search_by_name(self, name: str) -> SavedSearch | None:
        """Point lookup by name."""
        ...

    async def get_saved_searches_by_names(
        self, names: Collection[str]
    ) -> list[SavedSearch]:
        """Return the saved searches whose names are in ``names``."""
        ...

    async def get_all_saved_searches(self) -> list[SavedSearch]:
        """Return every saved search ordered by name."""
        ...

    async def upsert_saved_searches(
        self, searches: Collection[SavedSearch]
    ) -> list[SavedSearch]:
        """Insert or update saved searches.

        Rows carrying an id update that row.  Rows without an id are
        inserted, or update the existing row with the same name.

        Returns:
            The stored rows, in input order, with their store ids.
        """
        ...

    async def delete_saved_search_by_name(self, name: str) -> None:
        """Delete a saved search by name.  No-op if absent."""
        ...

    # ------------------------------------------------------------------
    # Cached catalog entities
    # ------------------------------------------------------------------

    async def upsert_tags(self, tags: Collection[Tag]) -> None:
        """Insert or update tags by ``name``.  Incoming ids are ignored."""
        ...

    async def get_tags_by_names(self, names: Collection[str]) -> list[Tag]:
        """Return the tags whose names are in ``names``."""
        ...

    async def upsert_uploaders(self, uploaders: Collection[Uploader]) -> None:
        """Insert or update uploaders by ``username``.  Incoming ids are ignored."""
        ...

    async def get_uploaders_by_usernames(
        self, usernames: Collection[str]
    ) -> list[Uploader]:
        """Return the uploaders whose usernames are in ``usernames``."""
        ...

    async def upsert_cached_items(self, items: Collection[CachedItem]) -> None:
        """Insert or update cached items by ``external_id``.

        ``uploader_id`` and ``tag_ids`` must already be ids of this store.
        The tag links of each upserted item are replaced.
        """
        ...

    async def get_cached_items_with_relations(
        self, external_ids: Collection[str]
    ) -> list[CachedItemWithRelations]:
        """Bulk-fetch cached items with their uploader and tags."""
        ...

    async def get_all_external_ids(self) -> set[str]:
        """Return the external ids of every cached item in the store."""
        ...

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create_schema(self) -> None:
        """Create the store's tables if they do not exist."""
        ...

    async def close(self) -> None:
        """Release connections held by the store."""
        ...
