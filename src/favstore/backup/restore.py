"""Restore a backup snapshot into an entity store.

Steps run in dependency order, each committed before the next starts:

1. Preferences (overwritten wholesale).
2. Saved searches (merged by name).
3. Favorites and their dependencies:
   a. tags, upserted by name;
   b. uploaders, upserted by username;
   c. cached items, with ``uploader_id`` and ``tag_ids`` remapped to the
      ids this store assigned;
   d. favorites whose referent exists in the store (or on disk).

Store-assigned ids in a snapshot are only meaningful in the store that
wrote it.  Old ids are translated through the natural key: the snapshot
gives ``old id -> name``, a re-query after the upsert gives
``name -> new id``.

A storage failure aborts the remaining steps.  Every step is idempotent,
so a failed restore can simply be run again.

Usage:
    from favstore.backup.restore import restore_snapshot

    summary = await restore_snapshot(store, snapshot, BackupOptions.everything(), prefs)
    print(summary.favorites_inserted, len(summary.dropped_favorites))
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Protocol

from favstore.backup.models import (
    BackupOptions,
    BackupSnapshot,
    BackupV1,
    MalformedSnapshotError,
    RestoreSummary,
    WallhavenBundleV1,
)
from favstore.backup.reader import SNAPSHOT_SCHEMAS
from favstore.favorites.operations import insert_favorites
from favstore.preferences import PreferencesStore
from favstore.saved_searches import upsert_saved_searches
from favstore.sources.local import LocalFileResolver
from favstore.store.base import EntityStore
from favstore.store.models import CachedItem, FavoriteReference, SourceKind, Tag, Uploader

logger = logging.getLogger(__name__)


class LocalProbe(Protocol):
    """Existence/permission check for local-source favorites."""

    async def exists(self, source_id: str) -> bool: ...


async def restore_snapshot(
    store: EntityStore,
    snapshot: BackupSnapshot,
    options: BackupOptions,
    preferences_store: PreferencesStore | None = None,
    local_probe: LocalProbe | None = None,
) -> RestoreSummary:
    """Apply a snapshot to the store.

    Args:
        store: Destination entity store.
        snapshot: Parsed snapshot (see ``read_snapshot``).
        options: What to restore.  Nothing selected means nothing is done.
        preferences_store: Destination of preferences when
            ``options.settings`` is set.
        local_probe: Accessibility check for local favorites.  Defaults to
            ``LocalFileResolver()``.

    Returns:
        Summary of restored and skipped records.

    Raises:
        MalformedSnapshotError: If the snapshot version is not supported.
        ValueError: If settings are to be restored without a
            ``preferences_store``.
    """
    restorer = _RESTORERS.get(snapshot.version)
    if restorer is None or not isinstance(snapshot, SNAPSHOT_SCHEMAS[snapshot.version]):
        raise MalformedSnapshotError(f"Unsupported backup version {snapshot.version}")
    return await restorer(
        store,
        snapshot,
        options,
        preferences_store,
        local_probe or LocalFileResolver(),
    )


async def _restore_v1(
    store: EntityStore,
    snapshot: BackupV1,
    options: BackupOptions,
    preferences_store: PreferencesStore | None,
    local_probe: LocalProbe,
) -> RestoreSummary:
    summary = RestoreSummary()
    if not options.any_selected:
        return summary

    # 1. Preferences
    if options.settings and snapshot.preferences is not None:
        if preferences_store is None:
            raise ValueError("preferences_store is required to restore settings")
        await preferences_store.set(snapshot.preferences)
        summary.preferences_restored = True

    bundle = snapshot.wallhaven or WallhavenBundleV1()

    # 2. Saved searches (no dependencies)
    if options.saved_searches and bundle.saved_searches:
        stored = await upsert_saved_searches(store, bundle.saved_searches)
        summary.saved_searches = len(stored)

    # 3. Favorites and the entities they depend on
    if options.favorites and snapshot.favorites:
        tag_ids = await _restore_tags(store, bundle.tags or [])
        summary.tags = len(bundle.tags or [])

        uploader_ids = await _restore_uploaders(store, bundle.uploaders or [])
        summary.uploaders = len(bundle.uploaders or [])

        items = bundle.items or []
        if uploader_ids:
            summary.items = await _restore_items(store, items, uploader_ids, tag_ids)
        else:
            # Nothing to remap uploaders to; items are not inserted
            summary.items_skipped = len(items)

        existing_external_ids = await store.get_all_external_ids()
        survivors, dropped = await _partition_favorites(
            snapshot.favorites, existing_external_ids, local_probe
        )
        inserted = await insert_favorites(store, survivors)
        summary.favorites_inserted = len(inserted)
        summary.favorites_existing = len({f.key for f in survivors}) - len(inserted)
        summary.dropped_favorites = dropped

    logger.info(
        "Restored backup v1: %d saved searches, %d items, %d favorites (%d dropped)",
        summary.saved_searches,
        summary.items,
        summary.favorites_inserted,
        len(summary.dropped_favorites),
    )
    return summary


# ----------------------------------------------------------------------
# Step helpers
# ----------------------------------------------------------------------


def _remap_ids(
    old_ids_by_key: Iterable[tuple[int, str]],
    new_ids_by_key: dict[str, int],
) -> dict[int, int]:
    """Translate old ids to new ids through their natural keys.

    Args:
        old_ids_by_key: ``(old id, natural key)`` pairs from the snapshot.
        new_ids_by_key: ``natural key -> new id`` as re-queried from the
            store after the upsert.

    Returns:
        ``old id -> new id`` for every key present in the store.
    """
    return {
        old_id: new_ids_by_key[key]
        for old_id, key in old_ids_by_key
        if key in new_ids_by_key
    }


async def _restore_tags(store: EntityStore, tags: list[Tag]) -> dict[int, int]:
    if not tags:
        return {}
    await store.upsert_tags(tags)
    stored = await store.get_tags_by_names({tag.name for tag in tags})
    tag_ids = _remap_ids(
        ((tag.id, tag.name) for tag in tags),
        {tag.name: tag.id for tag in stored},
    )
    logger.debug("Restored %d tags (%d remapped)", len(tags), len(tag_ids))
    return tag_ids


async def _restore_uploaders(
    store: EntityStore, uploaders: list[Uploader]
) -> dict[int, int]:
    if not uploaders:
        return {}
    await store.upsert_uploaders(uploaders)
    stored = await store.get_uploaders_by_usernames({u.username for u in uploaders})
    uploader_ids = _remap_ids(
        ((uploader.id, uploader.username) for uploader in uploaders),
        {uploader.username: uploader.id for uploader in stored},
    )
    logger.debug(
        "Restored %d uploaders (%d remapped)", len(uploaders), len(uploader_ids)
    )
    return uploader_ids


async def _restore_items(
    store: EntityStore,
    items: list[CachedItem],
    uploader_ids: dict[int, int],
    tag_ids: dict[int, int],
) -> int:
    if not items:
        return 0
    remapped = [
        item.model_copy(
            update={
                "id": None,
                # Unmapped uploaders become None rather than a stale id
                "uploader_id": uploader_ids.get(item.uploader_id),
                "tag_ids": [tag_ids[t] for t in item.tag_ids if t in tag_ids],
            }
        )
        for item in items
    ]
    await store.upsert_cached_items(remapped)
    logger.debug("Restored %d cached items", len(remapped))
    return len(remapped)


async def _partition_favorites(
    favorites: list[FavoriteReference],
    existing_external_ids: set[str],
    local_probe: LocalProbe,
) -> tuple[list[FavoriteReference], list[FavoriteReference]]:
    """Split favorites into those whose referent exists and those dropped."""
    survivors: list[FavoriteReference] = []
    dropped: list[FavoriteReference] = []
    for favorite in favorites:
        if favorite.source_kind == SourceKind.CACHED:
            resolvable = favorite.source_id in existing_external_ids
        elif favorite.source_kind == SourceKind.LOCAL:
            try:
                resolvable = await local_probe.exists(favorite.source_id)
            except OSError:
                resolvable = False
        else:
            resolvable = False

        if resolvable:
            survivors.append(favorite)
        else:
            logger.debug(
                "Dropping favorite %s:%s, referent not found",
                favorite.source_kind.value,
                favorite.source_id,
            )
            dropped.append(favorite)
    return survivors, dropped


_Restorer = Callable[..., Awaitable[RestoreSummary]]

# Restore implementation per supported version
_RESTORERS: dict[int, _Restorer] = {1: _restore_v1}
