"""Backup snapshot creation and serialization.

Usage:
    from favstore.backup.writer import create_snapshot, write_snapshot_file

    snapshot = await create_snapshot(store, BackupOptions.everything(), prefs)
    if snapshot is not None:
        path = write_snapshot_file(snapshot)
"""

import logging
from datetime import datetime
from pathlib import Path

from favstore.backup.models import BackupOptions, BackupSnapshot, BackupV1, WallhavenBundleV1
from favstore.preferences import PreferencesStore
from favstore.store.base import EntityStore
from favstore.store.models import CachedItem, SourceKind, Tag, Uploader

logger = logging.getLogger(__name__)


def backup_filename(now: datetime | None = None) -> str:
    """Timestamped backup file name.

    The name is advisory; restore accepts any file name.

    Example:
        >>> backup_filename(datetime(2024, 5, 1, 12, 30, 0))
        'favstore_backup_20240501123000.json'
    """
    now = now or datetime.now()
    return f"favstore_backup_{now.strftime('%Y%m%d%H%M%S')}.json"


async def create_snapshot(
    store: EntityStore,
    options: BackupOptions,
    preferences_store: PreferencesStore | None = None,
) -> BackupV1 | None:
    """Build a snapshot of the selected state.

    When favorites are selected, every cached item referenced by a cached
    favorite is exported together with its uploader and tags (deduplicated
    across items), so the snapshot is self-contained.

    Args:
        store: Entity store to read from.
        options: What to include.
        preferences_store: Source of preferences when ``options.settings``
            is set.

    Returns:
        The snapshot, or ``None`` if ``options`` selects nothing.
    """
    if not options.any_selected:
        return None

    preferences = None
    favorites = None
    items: list[CachedItem] | None = None
    uploaders: list[Uploader] | None = None
    tags: list[Tag] | None = None
    saved_searches = None

    if options.settings and preferences_store is not None:
        preferences = await preferences_store.get()

    if options.favorites:
        favorites = await store.get_all_favorites()
        cached_ids = list(dict.fromkeys(
            favorite.source_id
            for favorite in favorites
            if favorite.source_kind == SourceKind.CACHED
        ))
        if cached_ids:
            related = await store.get_cached_items_with_relations(cached_ids)
            uploaders_by_id: dict[int, Uploader] = {}
            tags_by_id: dict[int, Tag] = {}
            items = []
            for entry in related:
                items.append(entry.item)
                if entry.uploader is not None:
                    uploaders_by_id.setdefault(entry.uploader.id, entry.uploader)
                for tag in entry.tags:
                    tags_by_id.setdefault(tag.id, tag)
            uploaders = list(uploaders_by_id.values())
            tags = list(tags_by_id.values())

    if options.saved_searches:
        saved_searches = await store.get_all_saved_searches()

    snapshot = BackupV1(
        preferences=preferences,
        favorites=favorites,
        wallhaven=WallhavenBundleV1(
            tags=tags,
            uploaders=uploaders,
            items=items,
            saved_searches=saved_searches,
        ),
    )
    logger.info(
        "Created backup snapshot: %d favorites, %d cached items, %d saved searches",
        len(favorites or []),
        len(items or []),
        len(saved_searches or []),
    )
    return snapshot


def dump_snapshot(snapshot: BackupSnapshot) -> str:
    """Serialize a snapshot to JSON text with ``version`` as the first key."""
    return snapshot.model_dump_json(by_alias=True, exclude_none=True, indent=2)


def write_snapshot_file(snapshot: BackupSnapshot, output_path: str | None = None) -> str:
    """Write a snapshot to a JSON file.

    Args:
        snapshot: Snapshot to write.
        output_path: Destination path.  When ``None``, generates a
            timestamped path under ``./backups/``.

    Returns:
        Path of the written file.
    """
    if output_path is None:
        backups_dir = Path.cwd() / "backups"
        backups_dir.mkdir(exist_ok=True)
        output_path = str(backups_dir / backup_filename())

    output_path_obj = Path(output_path)
    output_path_obj.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(dump_snapshot(snapshot))

    logger.info("Wrote backup to %s", output_path)
    return output_path
