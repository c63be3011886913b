"""Tests for SQLEntityStore against an in-memory SQLite database.

Covers the favorites cursor, bulk upserts keyed by natural keys, tag
link replacement, relation fetching, timestamp round trips and URL
normalization.
"""

from datetime import timezone

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import BASE_TIME, make_favorite, seed_catalog
from favstore.store.models import CachedItem, SavedSearch, SourceKind, Tag, Uploader
from favstore.store.sql import SQLEntityStore, normalize_database_url


# ------------------------------------------------------------------
# URL normalization
# ------------------------------------------------------------------


class TestNormalizeDatabaseUrl:
    """Driver selection from plain database URLs."""

    def test_postgres_scheme(self):
        assert (
            normalize_database_url("postgres://u:p@host/db")
            == "postgresql+asyncpg://u:p@host/db"
        )

    def test_postgresql_scheme(self):
        assert (
            normalize_database_url("postgresql://u:p@host/db")
            == "postgresql+asyncpg://u:p@host/db"
        )

    def test_sqlite_scheme(self):
        assert normalize_database_url("sqlite:///:memory:") == "sqlite+aiosqlite:///:memory:"

    def test_explicit_driver_unchanged(self):
        url = "sqlite+aiosqlite:////tmp/favs.db"
        assert normalize_database_url(url) == url

    def test_dialect_name(self):
        store = SQLEntityStore("sqlite:///:memory:")
        assert store.dialect_name == "sqlite"


# ------------------------------------------------------------------
# Favorites
# ------------------------------------------------------------------


class TestFavorites:
    """Favorites cursor and single-row operations."""

    async def test_page_is_most_recent_first(self, store):
        await store.insert_favorites([
            make_favorite("a", minutes=1),
            make_favorite("b", minutes=3),
            make_favorite("c", minutes=2),
        ])

        page = await store.favorites_page(0, 10)

        assert [f.source_id for f in page] == ["b", "c", "a"]

    async def test_offset_and_limit(self, store):
        await store.insert_favorites(
            [make_favorite(str(i), minutes=i) for i in range(5)]
        )

        first = await store.favorites_page(0, 2)
        second = await store.favorites_page(2, 2)
        last = await store.favorites_page(4, 2)

        assert [f.source_id for f in first] == ["4", "3"]
        assert [f.source_id for f in second] == ["2", "1"]
        assert [f.source_id for f in last] == ["0"]

    async def test_page_past_end_is_empty(self, store):
        await store.insert_favorites([make_favorite("a")])
        assert await store.favorites_page(5, 10) == []

    async def test_insert_assigns_ids(self, store):
        inserted = await store.insert_favorites([make_favorite("a"), make_favorite("b")])

        assert all(f.id is not None for f in inserted)
        assert len({f.id for f in inserted}) == 2

    async def test_duplicate_pair_rejected(self, store):
        await store.insert_favorites([make_favorite("a")])
        with pytest.raises(IntegrityError):
            await store.insert_favorites([make_favorite("a", minutes=5)])

    async def test_same_id_different_kind_allowed(self, store):
        await store.insert_favorites([
            make_favorite("a"),
            make_favorite("a", source_kind=SourceKind.LOCAL),
        ])
        assert len(await store.get_all_favorites()) == 2

    async def test_exists_and_delete(self, store):
        await store.insert_favorites([make_favorite("a")])

        assert await store.favorite_exists(SourceKind.CACHED, "a")
        assert not await store.favorite_exists(SourceKind.LOCAL, "a")

        await store.delete_favorite(SourceKind.CACHED, "a")
        assert not await store.favorite_exists(SourceKind.CACHED, "a")

    async def test_timestamp_round_trip_is_utc_aware(self, store):
        await store.insert_favorites([make_favorite("a")])

        [favorite] = await store.get_all_favorites()

        assert favorite.favorited_at == BASE_TIME
        assert favorite.favorited_at.tzinfo is not None
        assert favorite.favorited_at.utcoffset() == timezone.utc.utcoffset(None)

    async def test_random_favorite(self, store):
        assert await store.get_random_favorite() is None

        await store.insert_favorites([make_favorite("a")])
        favorite = await store.get_random_favorite()

        assert favorite is not None
        assert favorite.source_id == "a"


# ------------------------------------------------------------------
# Saved searches
# ------------------------------------------------------------------


class TestSavedSearchRows:
    """Row-level saved search storage."""

    async def test_upsert_by_name_keeps_id(self, store):
        [first] = await store.upsert_saved_searches([SavedSearch(name="sky", query="blue")])
        [second] = await store.upsert_saved_searches([SavedSearch(name="sky", query="clouds")])

        assert second.id == first.id
        stored = await store.get_saved_search_by_name("sky")
        assert stored.query == "clouds"

    async def test_upsert_by_id_renames(self, store):
        [first] = await store.upsert_saved_searches([SavedSearch(name="sky", query="blue")])
        await store.upsert_saved_searches(
            [SavedSearch(id=first.id, name="heaven", query="blue")]
        )

        assert await store.get_saved_search_by_name("sky") is None
        renamed = await store.get_saved_search(first.id)
        assert renamed.name == "heaven"

    async def test_lookup_by_names(self, store):
        await store.upsert_saved_searches([
            SavedSearch(name="a", query="1"),
            SavedSearch(name="b", query="2"),
        ])

        found = await store.get_saved_searches_by_names(["a", "missing"])

        assert [s.name for s in found] == ["a"]
        assert await store.get_saved_searches_by_names([]) == []

    async def test_delete_missing_is_noop(self, store):
        await store.delete_saved_search_by_name("nothing")
        assert await store.get_all_saved_searches() == []


# ------------------------------------------------------------------
# Cached catalog entities
# ------------------------------------------------------------------


class TestCatalogEntities:
    """Tags, uploaders and cached items."""

    async def test_tag_upsert_is_idempotent(self, store):
        await store.upsert_tags([Tag(id=40, name="nature")])
        [first] = await store.get_tags_by_names(["nature"])

        await store.upsert_tags([Tag(id=99, name="nature", category="General")])
        [second] = await store.get_tags_by_names(["nature"])

        assert second.id == first.id
        assert second.category == "General"

    async def test_incoming_ids_are_ignored(self, store):
        await store.upsert_uploaders([Uploader(id=5, username="zed")])
        await store.upsert_uploaders([Uploader(id=5, username="alice")])

        stored = await store.get_uploaders_by_usernames(["zed", "alice"])

        assert len({u.id for u in stored}) == 2

    async def test_uploader_fields_round_trip(self, store):
        await store.upsert_uploaders([
            Uploader(id=1, username="alice", group="User", avatar_url="https://a.test/x.png")
        ])

        [alice] = await store.get_uploaders_by_usernames(["alice"])

        assert alice.group == "User"
        assert alice.avatar_url == "https://a.test/x.png"

    async def test_items_with_relations(self, store):
        await seed_catalog(store, ["abc", "def"])

        related = await store.get_cached_items_with_relations(["def", "missing", "abc"])

        assert [r.item.external_id for r in related] == ["def", "abc"]
        entry = related[0]
        assert entry.uploader.username == "alice"
        assert entry.item.uploader_id == entry.uploader.id
        assert sorted(tag.name for tag in entry.tags) == ["mountain", "nature"]
        assert sorted(entry.item.tag_ids) == sorted(tag.id for tag in entry.tags)
        assert entry.item.colors == ["#000000"]

    async def test_item_upsert_replaces_tag_links(self, store):
        await seed_catalog(store, ["abc"])
        [nature] = await store.get_tags_by_names(["nature"])
        [entry] = await store.get_cached_items_with_relations(["abc"])

        await store.upsert_cached_items([
            entry.item.model_copy(update={"tag_ids": [nature.id], "width": 800})
        ])
        [updated] = await store.get_cached_items_with_relations(["abc"])

        assert updated.item.id == entry.item.id
        assert updated.item.width == 800
        assert [tag.name for tag in updated.tags] == ["nature"]

    async def test_item_without_uploader(self, store):
        await store.upsert_cached_items([CachedItem(external_id="lonely")])

        [entry] = await store.get_cached_items_with_relations(["lonely"])

        assert entry.uploader is None
        assert entry.tags == []
        assert entry.item.colors == []

    async def test_all_external_ids(self, store):
        assert await store.get_all_external_ids() == set()
        await seed_catalog(store, ["abc", "def"])
        assert await store.get_all_external_ids() == {"abc", "def"}

    async def test_empty_bulk_calls_are_noops(self, store):
        await store.upsert_tags([])
        await store.upsert_uploaders([])
        await store.upsert_cached_items([])
        assert await store.insert_favorites([]) == []
        assert await store.get_cached_items_with_relations([]) == []
