"""Resolver for favorites of cached catalog items."""

from favstore.store.base import EntityStore
from favstore.store.models import Wallpaper


class CachedItemResolver:
    """Hydrates cached-source favorites from the entity store.

    ``source_id`` is the item's ``external_id``.  An item purged from the
    cache does not resolve.
    """

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    async def resolve(self, source_id: str) -> Wallpaper | None:
        found = await self._store.get_cached_items_with_relations([source_id])
        if not found:
            return None
        return Wallpaper.from_cached(found[0])
