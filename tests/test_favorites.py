"""Tests for single-favorite operations and bulk insertion."""

from unittest.mock import AsyncMock

from conftest import BASE_TIME, make_favorite, seed_catalog
from favstore.favorites import (
    add_favorite,
    get_random_favorite,
    insert_favorites,
    toggle_favorite,
)
from favstore.sources import default_resolvers
from favstore.store.models import SourceKind


class TestToggleFavorite:
    """toggle_favorite() and add_favorite()."""

    async def test_toggle_on_and_off(self, store):
        assert await toggle_favorite(store, SourceKind.CACHED, "abc") is True
        assert await store.favorite_exists(SourceKind.CACHED, "abc")

        assert await toggle_favorite(store, SourceKind.CACHED, "abc") is False
        assert not await store.favorite_exists(SourceKind.CACHED, "abc")

    async def test_toggle_stamps_utc_time(self, store):
        await toggle_favorite(store, SourceKind.LOCAL, "/pics/a.jpg")

        [favorite] = await store.get_all_favorites()

        assert favorite.favorited_at > BASE_TIME
        assert favorite.favorited_at.tzinfo is not None

    async def test_add_is_idempotent(self, store):
        assert await add_favorite(store, SourceKind.CACHED, "abc") is True
        assert await add_favorite(store, SourceKind.CACHED, "abc") is False
        assert len(await store.get_all_favorites()) == 1


class TestInsertFavorites:
    """insert_favorites() skips pairs that already exist."""

    async def test_existing_pairs_keep_original_timestamp(self, store):
        await store.insert_favorites([make_favorite("a", minutes=1)])

        inserted = await insert_favorites(
            store, [make_favorite("a", minutes=50), make_favorite("b", minutes=2)]
        )

        assert [f.source_id for f in inserted] == ["b"]
        by_id = {f.source_id: f for f in await store.get_all_favorites()}
        assert by_id["a"].favorited_at == make_favorite("a", minutes=1).favorited_at

    async def test_duplicates_collapse_to_first(self, store):
        inserted = await insert_favorites(
            store, [make_favorite("a", minutes=1), make_favorite("a", minutes=9)]
        )

        assert len(inserted) == 1
        assert inserted[0].favorited_at == make_favorite("a", minutes=1).favorited_at

    async def test_incoming_ids_are_reset(self):
        store = AsyncMock()
        store.get_all_favorites = AsyncMock(return_value=[])
        store.insert_favorites = AsyncMock(side_effect=lambda rows: list(rows))

        favorite = make_favorite("a").model_copy(update={"id": 77})
        inserted = await insert_favorites(store, [favorite])

        assert inserted[0].id is None

    async def test_nothing_new_skips_write(self):
        store = AsyncMock()
        store.get_all_favorites = AsyncMock(return_value=[make_favorite("a")])

        assert await insert_favorites(store, [make_favorite("a", minutes=3)]) == []
        store.insert_favorites.assert_not_called()


class TestRandomFavorite:
    """get_random_favorite() resolves the picked favorite."""

    async def test_no_favorites(self, store):
        assert await get_random_favorite(store, default_resolvers(store)) is None

    async def test_resolves_pick(self, store):
        await seed_catalog(store, ["abc"])
        await store.insert_favorites([make_favorite("abc")])

        wallpaper = await get_random_favorite(store, default_resolvers(store))

        assert wallpaper.source_id == "abc"
        assert wallpaper.width == 1920

    async def test_unresolvable_pick(self, store):
        await store.insert_favorites([make_favorite("purged")])
        assert await get_random_favorite(store, default_resolvers(store)) is None
