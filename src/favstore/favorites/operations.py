"""Single-favorite operations and bulk insertion.

Favorites are never updated in place: toggling deletes or re-creates the
row, and bulk insertion skips pairs that already exist so the original
``favorited_at`` is kept.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from favstore.sources.base import ResolverRegistry
from favstore.store.base import EntityStore
from favstore.store.models import FavoriteReference, SourceKind, Wallpaper

logger = logging.getLogger(__name__)


async def toggle_favorite(
    store: EntityStore,
    source_kind: SourceKind,
    source_id: str,
) -> bool:
    """Favorite an item, or unfavorite it if it already is.

    Returns:
        ``True`` if the item is favorited after the call.
    """
    if await store.favorite_exists(source_kind, source_id):
        await store.delete_favorite(source_kind, source_id)
        return False
    await store.insert_favorites([_new_favorite(source_kind, source_id)])
    return True


async def add_favorite(
    store: EntityStore,
    source_kind: SourceKind,
    source_id: str,
) -> bool:
    """Favorite an item unless it already is.

    Returns:
        ``True`` if a new favorite was created.
    """
    if await store.favorite_exists(source_kind, source_id):
        return False
    await store.insert_favorites([_new_favorite(source_kind, source_id)])
    return True


async def get_random_favorite(
    store: EntityStore,
    resolvers: ResolverRegistry,
) -> Wallpaper | None:
    """Resolve one favorite picked at random.

    Returns ``None`` when there are no favorites or the picked one does not
    resolve.
    """
    favorite = await store.get_random_favorite()
    if favorite is None:
        return None
    return await resolvers.resolve(favorite.source_kind, favorite.source_id)


async def insert_favorites(
    store: EntityStore,
    favorites: Iterable[FavoriteReference],
) -> list[FavoriteReference]:
    """Insert favorites whose ``(source_kind, source_id)`` is not yet stored.

    Incoming ids are reset.  Duplicate pairs in ``favorites`` collapse to
    the first occurrence.

    Returns:
        The favorites that were inserted, with their new ids.
    """
    existing = {favorite.key for favorite in await store.get_all_favorites()}
    to_insert: dict[tuple[SourceKind, str], FavoriteReference] = {}
    for favorite in favorites:
        if favorite.key in existing or favorite.key in to_insert:
            continue
        to_insert[favorite.key] = favorite.model_copy(update={"id": None})

    if not to_insert:
        return []
    inserted = await store.insert_favorites(list(to_insert.values()))
    logger.debug("Inserted %d favorites", len(inserted))
    return inserted


def _new_favorite(source_kind: SourceKind, source_id: str) -> FavoriteReference:
    return FavoriteReference(
        source_kind=source_kind,
        source_id=source_id,
        favorited_at=datetime.now(timezone.utc),
    )
