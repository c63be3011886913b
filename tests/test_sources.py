"""Tests for source resolvers and the resolver registry."""

import os

import pytest

from conftest import seed_catalog
from favstore.sources import CachedItemResolver, LocalFileResolver, default_resolvers
from favstore.sources.base import ResolverRegistry
from favstore.store.models import SourceKind


class TestLocalFileResolver:
    """Filesystem-backed resolution of local favorites."""

    async def test_resolves_existing_file(self, tmp_path):
        image = tmp_path / "sunset.jpg"
        image.write_bytes(b"x" * 10)

        wallpaper = await LocalFileResolver().resolve(str(image))

        assert wallpaper.source_kind == SourceKind.LOCAL
        assert wallpaper.source_id == str(image)
        assert wallpaper.path == str(image)
        assert wallpaper.url == image.as_uri()
        assert wallpaper.file_size == 10
        assert wallpaper.file_type == "image/jpeg"

    async def test_missing_file_does_not_resolve(self, tmp_path):
        resolver = LocalFileResolver()
        assert await resolver.resolve(str(tmp_path / "gone.png")) is None
        assert not await resolver.exists(str(tmp_path / "gone.png"))

    async def test_directory_does_not_resolve(self, tmp_path):
        resolver = LocalFileResolver()
        assert await resolver.resolve(str(tmp_path)) is None
        assert not await resolver.exists(str(tmp_path))

    async def test_file_uri(self, tmp_path):
        image = tmp_path / "with space.png"
        image.write_bytes(b"png")

        resolver = LocalFileResolver()
        wallpaper = await resolver.resolve(image.as_uri())

        assert wallpaper is not None
        assert wallpaper.source_id == image.as_uri()
        assert wallpaper.path == str(image)
        assert await resolver.exists(image.as_uri())

    async def test_relative_path_uses_root(self, tmp_path):
        (tmp_path / "pics").mkdir()
        (tmp_path / "pics" / "a.jpg").write_bytes(b"a")

        resolver = LocalFileResolver(tmp_path)

        assert await resolver.exists("pics/a.jpg")
        assert resolver.to_path("pics/a.jpg") == tmp_path / "pics" / "a.jpg"

    async def test_other_scheme_is_rejected(self):
        resolver = LocalFileResolver()

        with pytest.raises(ValueError):
            resolver.to_path("https://example.test/a.jpg")
        assert await resolver.resolve("https://example.test/a.jpg") is None
        assert not await resolver.exists("https://example.test/a.jpg")

    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="root can read any file",
    )
    async def test_unreadable_file_does_not_resolve(self, tmp_path):
        image = tmp_path / "locked.jpg"
        image.write_bytes(b"x")
        image.chmod(0)
        try:
            resolver = LocalFileResolver()
            assert await resolver.resolve(str(image)) is None
            assert not await resolver.exists(str(image))
        finally:
            image.chmod(0o644)


class TestCachedItemResolver:
    """Cache-backed resolution of cached favorites."""

    async def test_resolves_with_relations(self, store):
        await seed_catalog(store, ["abc"])

        wallpaper = await CachedItemResolver(store).resolve("abc")

        assert wallpaper.source_kind == SourceKind.CACHED
        assert wallpaper.url == "https://example.test/w/abc"
        assert wallpaper.uploader.username == "alice"
        assert {tag.name for tag in wallpaper.tags} == {"nature", "mountain"}

    async def test_purged_item_does_not_resolve(self, store):
        assert await CachedItemResolver(store).resolve("purged") is None


class TestResolverRegistry:
    """Dispatch by source kind."""

    async def test_default_registry(self, store):
        resolvers = default_resolvers(store, local_root="/pics")

        assert isinstance(resolvers.get(SourceKind.CACHED), CachedItemResolver)
        assert isinstance(resolvers.get(SourceKind.LOCAL), LocalFileResolver)

    async def test_kind_without_resolver(self):
        registry = ResolverRegistry({})
        assert registry.get(SourceKind.LOCAL) is None
        assert await registry.resolve(SourceKind.LOCAL, "/pics/a.jpg") is None
