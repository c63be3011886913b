"""Tests for backup snapshot creation and serialization."""

import json
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock

from conftest import make_favorite, seed_catalog
from favstore.backup import (
    BackupOptions,
    BackupV1,
    backup_filename,
    create_snapshot,
    dump_snapshot,
    read_snapshot_file,
    write_snapshot_file,
)
from favstore.store.models import CachedItem, SavedSearch, SourceKind, Tag, Uploader


def _prefs(value) -> AsyncMock:
    prefs = AsyncMock()
    prefs.get = AsyncMock(return_value=value)
    return prefs


class TestBackupFilename:
    """Timestamped file names."""

    def test_format(self):
        assert (
            backup_filename(datetime(2024, 5, 1, 12, 30, 5))
            == "favstore_backup_20240501123005.json"
        )

    def test_defaults_to_now(self):
        name = backup_filename()
        assert name.startswith("favstore_backup_")
        assert name.endswith(".json")


class TestCreateSnapshot:
    """Selective snapshot creation."""

    async def test_nothing_selected_returns_none(self):
        store = AsyncMock()

        assert await create_snapshot(store, BackupOptions()) is None
        store.get_all_favorites.assert_not_called()

    async def test_settings_only(self):
        store = AsyncMock()

        snapshot = await create_snapshot(
            store, BackupOptions(settings=True), _prefs({"theme": "dark"})
        )

        assert snapshot.version == 1
        assert snapshot.preferences == {"theme": "dark"}
        assert snapshot.favorites is None
        store.get_all_favorites.assert_not_called()
        store.get_all_saved_searches.assert_not_called()

    async def test_favorites_carry_their_dependencies(self, store):
        await seed_catalog(store, ["abc", "def", "unfavorited"])
        await store.insert_favorites([
            make_favorite("abc", minutes=2),
            make_favorite("def", minutes=1),
        ])

        snapshot = await create_snapshot(store, BackupOptions(favorites=True))

        bundle = snapshot.wallhaven
        assert [f.source_id for f in snapshot.favorites] == ["abc", "def"]
        assert sorted(item.external_id for item in bundle.items) == ["abc", "def"]
        # Shared uploader and tags appear once
        assert [u.username for u in bundle.uploaders] == ["alice"]
        assert sorted(tag.name for tag in bundle.tags) == ["mountain", "nature"]
        assert bundle.saved_searches is None

    async def test_local_favorites_have_no_bundle_items(self, store):
        await store.insert_favorites(
            [make_favorite("/pics/a.jpg", source_kind=SourceKind.LOCAL)]
        )

        snapshot = await create_snapshot(store, BackupOptions(favorites=True))

        assert [f.source_kind for f in snapshot.favorites] == [SourceKind.LOCAL]
        assert snapshot.wallhaven.items is None

    async def test_favorite_of_purged_item_is_still_exported(self, store):
        await store.insert_favorites([make_favorite("purged")])

        snapshot = await create_snapshot(store, BackupOptions(favorites=True))

        assert [f.source_id for f in snapshot.favorites] == ["purged"]
        assert snapshot.wallhaven.items == []

    async def test_saved_searches(self, store):
        await store.upsert_saved_searches([SavedSearch(name="sky", query="blue")])

        snapshot = await create_snapshot(store, BackupOptions(saved_searches=True))

        assert [s.name for s in snapshot.wallhaven.saved_searches] == ["sky"]
        assert snapshot.favorites is None


class TestDumpSnapshot:
    """JSON wire format."""

    def _snapshot(self) -> BackupV1:
        return BackupV1.model_validate({
            "preferences": {"theme": "dark"},
            "favorites": [
                make_favorite("abc").model_copy(update={"id": 12}).model_dump()
            ],
            "wallhaven": {
                "uploaders": [Uploader(id=5, username="alice").model_dump()],
                "items": [CachedItem(id=9, external_id="abc", uploader_id=5).model_dump()],
            },
        })

    def test_version_is_first_key(self):
        text = dump_snapshot(self._snapshot())
        assert list(json.loads(text))[0] == "version"

    def test_camel_case_keys(self):
        data = json.loads(dump_snapshot(self._snapshot()))

        favorite = data["favorites"][0]
        assert set(favorite) == {"sourceKind", "sourceId", "favoritedAt"}
        assert favorite["sourceKind"] == "cached"
        item = data["wallhaven"]["wallpapers"][0]
        assert item["externalId"] == "abc"
        assert item["uploaderId"] == 5

    def test_unselected_sections_omitted(self):
        snapshot = BackupV1(preferences={"a": 1})
        data = json.loads(dump_snapshot(snapshot))
        assert data == {"version": 1, "preferences": {"a": 1}}


class TestWriteSnapshotFile:
    """Writing snapshot files."""

    def test_explicit_path(self, tmp_path):
        output = tmp_path / "out" / "mine.json"

        path = write_snapshot_file(BackupV1(preferences={}), str(output))

        assert path == str(output)
        assert json.loads(output.read_text())["version"] == 1

    def test_default_path(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        path = Path(write_snapshot_file(BackupV1(preferences={})))

        assert path.parent == tmp_path / "backups"
        assert path.name.startswith("favstore_backup_")

    def test_non_ascii_names_written_as_utf8(self, tmp_path):
        output = tmp_path / "unicode.json"
        snapshot = BackupV1.model_validate({
            "wallhaven": {
                "tags": [Tag(id=1, name="природа").model_dump()],
                "uploaders": [Uploader(id=2, username="zoë").model_dump()],
            },
        })

        write_snapshot_file(snapshot, str(output))

        text = output.read_bytes().decode("utf-8")
        assert "природа" in text
        restored = read_snapshot_file(output)
        assert restored.wallhaven.tags[0].name == "природа"
        assert restored.wallhaven.uploaders[0].username == "zoë"
