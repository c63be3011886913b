"""Shared fixtures: an in-memory SQLite store and catalog seed data."""

from datetime import datetime, timedelta, timezone

import pytest

from favstore.store.models import (
    CachedItem,
    FavoriteReference,
    SourceKind,
    Tag,
    Uploader,
)
from favstore.store.sql import SQLEntityStore

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_favorite(
    source_id: str,
    minutes: int = 0,
    source_kind: SourceKind = SourceKind.CACHED,
) -> FavoriteReference:
    """Favorite stamped ``minutes`` after ``BASE_TIME``."""
    return FavoriteReference(
        source_kind=source_kind,
        source_id=source_id,
        favorited_at=BASE_TIME + timedelta(minutes=minutes),
    )


async def seed_catalog(store: SQLEntityStore, external_ids: list[str]) -> None:
    """Store one uploader, two tags and a cached item per external id."""
    await store.upsert_uploaders([Uploader(id=1, username="alice", group="User")])
    await store.upsert_tags([
        Tag(id=1, name="nature", category="General", purity="sfw"),
        Tag(id=2, name="mountain", category="General", purity="sfw"),
    ])
    [alice] = await store.get_uploaders_by_usernames(["alice"])
    tags = await store.get_tags_by_names(["nature", "mountain"])
    await store.upsert_cached_items([
        CachedItem(
            external_id=external_id,
            uploader_id=alice.id,
            tag_ids=[tag.id for tag in tags],
            url=f"https://example.test/w/{external_id}",
            width=1920,
            height=1080,
            colors=["#000000"],
        )
        for external_id in external_ids
    ])


@pytest.fixture
async def store():
    """Fresh in-memory store with the schema created."""
    store = SQLEntityStore("sqlite:///:memory:")
    await store.create_schema()
    yield store
    await store.close()


@pytest.fixture
async def other_store():
    """Second, independent in-memory store."""
    store = SQLEntityStore("sqlite:///:memory:")
    await store.create_schema()
    yield store
    await store.close()
