"""Saved-search reconciliation by natural key.

Saved searches are merged by ``name``.  When a row with the same name (or,
for single upserts, the same id) already exists, its store id is kept and
only ``name``, ``query`` and ``filters`` are overwritten.  Ids carried by
incoming records are never trusted to identify a row in another store.

Usage:
    from favstore.saved_searches import upsert_saved_searches

    stored = await upsert_saved_searches(store, [
        SavedSearch(name="mountains", query="mountain lake"),
    ])
"""

from collections.abc import Iterable

from favstore.store.base import EntityStore
from favstore.store.models import SavedSearch


async def upsert_saved_search(store: EntityStore, search: SavedSearch) -> SavedSearch:
    """Insert or update one saved search.

    Looks up the existing row by ``search.id`` when it is set, otherwise by
    ``search.name``.

    Args:
        store: Entity store.
        search: Saved search to store.

    Returns:
        The stored saved search with its store id.
    """
    if search.id:
        existing = await store.get_saved_search(search.id)
    else:
        existing = await store.get_saved_search_by_name(search.name)

    stored = await store.upsert_saved_searches([_merge(existing, search)])
    return stored[0]


async def upsert_saved_searches(
    store: EntityStore,
    searches: Iterable[SavedSearch],
) -> list[SavedSearch]:
    """Insert or update many saved searches in one bulk call.

    Existing rows are fetched with a single lookup by name.  When two
    incoming searches share a name, the last one wins.

    Args:
        store: Entity store.
        searches: Saved searches to store.

    Returns:
        The stored saved searches with their store ids.
    """
    by_name = {search.name: search for search in searches}
    if not by_name:
        return []

    existing = await store.get_saved_searches_by_names(list(by_name))
    existing_by_name = {row.name: row for row in existing}
    merged = [
        _merge(existing_by_name.get(name), search)
        for name, search in by_name.items()
    ]
    return await store.upsert_saved_searches(merged)


async def delete_saved_search(store: EntityStore, name: str) -> None:
    """Delete a saved search by name.  No-op if it does not exist."""
    await store.delete_saved_search_by_name(name)


def _merge(existing: SavedSearch | None, search: SavedSearch) -> SavedSearch:
    """Overwrite ``existing`` with ``search``, or prepare ``search`` as new."""
    if existing is not None:
        return existing.model_copy(
            update={
                "name": search.name,
                "query": search.query,
                "filters": search.filters,
            }
        )
    return search.model_copy(update={"id": None})
