"""Async SQL entity store.

Provides ``SQLEntityStore``, an implementation of the ``EntityStore``
protocol on SQLAlchemy's async engine.  SQLite (through ``aiosqlite``) is
the on-device backend; PostgreSQL (through ``asyncpg``) is supported for
shared deployments.

Usage:
    from favstore.store.sql import SQLEntityStore

    store = SQLEntityStore("sqlite:///./favstore.db")
    await store.create_schema()
    page = await store.favorites_page(offset=0, limit=24)
    await store.close()
"""

from collections.abc import Collection
from typing import Any

from sqlalchemy import delete, func, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from favstore.store import tables as t
from favstore.store.models import (
    CachedItem,
    CachedItemWithRelations,
    FavoriteReference,
    SavedSearch,
    SourceKind,
    Tag,
    Uploader,
)

# Columns overwritten when an existing cached item is upserted
_ITEM_COLUMNS = (
    "uploader_id",
    "url",
    "path",
    "thumbnail_url",
    "width",
    "height",
    "file_size",
    "file_type",
    "category",
    "purity",
    "colors",
    "created_at",
)


def normalize_database_url(database_url: str) -> str:
    """Rewrite a database URL to use an async driver.

    - ``postgres://`` and ``postgresql://`` -> ``postgresql+asyncpg://``
    - ``sqlite://`` -> ``sqlite+aiosqlite://``

    URLs that already name a driver are returned unchanged.
    """
    url = database_url
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        url = "postgresql+asyncpg://" + url[len("postgresql://"):]
    elif url.startswith("sqlite://"):
        url = "sqlite+aiosqlite://" + url[len("sqlite://"):]
    return url


def create_async_engine_pooled(database_url: str, **kwargs: Any) -> AsyncEngine:
    """Create an async SQLAlchemy engine with per-backend pool settings.

    PostgreSQL defaults:

    - ``pool_size=5``: Reasonable default for typical workloads.
    - ``max_overflow=10``: Allow burst connections.
    - ``pool_pre_ping=True``: Validate connections before checkout.
    - ``pool_recycle=300``: Recycle connections every 5 minutes.

    In-memory SQLite databases use a ``StaticPool`` so every checkout sees
    the same database.

    Args:
        database_url: Database URL with an async driver scheme.
        **kwargs: Additional keyword arguments forwarded to
            ``create_async_engine``.

    Returns:
        Configured ``AsyncEngine``.
    """
    url = make_url(database_url)
    defaults: dict[str, Any] = {"echo": False}

    if url.get_backend_name() == "sqlite":
        if url.database in (None, "", ":memory:"):
            defaults["poolclass"] = StaticPool
            defaults["connect_args"] = {"check_same_thread": False}
    else:
        defaults.update(
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            pool_recycle=300,
            connect_args={"timeout": 5},
        )

    # Caller kwargs override defaults
    merged = {**defaults, **kwargs}

    return create_async_engine(url, **merged)


class SQLEntityStore:
    """SQL implementation of the ``EntityStore`` protocol.

    Reads use ``engine.connect()``; every write method uses
    ``engine.begin()`` so a bulk call commits as a whole or rolls back as
    a whole.  Upserts are ``INSERT ... ON CONFLICT`` statements built with
    the dialect's own insert construct.

    Args:
        database_url: Database URL.  Accepts ``sqlite://``, ``postgres://``
            and ``postgresql://`` schemes, which are normalized to their
            async drivers, or a URL that already names one.
        **engine_kwargs: Additional keyword arguments forwarded to
            ``create_async_engine_pooled``.

    Example:
        store = SQLEntityStore("sqlite:///:memory:")
        await store.create_schema()
        await store.upsert_tags([Tag(id=1, name="nature")])
        await store.close()
    """

    def __init__(self, database_url: str, **engine_kwargs: Any) -> None:
        url = normalize_database_url(database_url)
        self._engine: AsyncEngine = create_async_engine_pooled(url, **engine_kwargs)

    @property
    def dialect_name(self) -> str:
        """Name of the SQL dialect in use (``sqlite`` or ``postgresql``)."""
        return self._engine.dialect.name

    def _upsert(self, table):
        """Return the dialect's insert construct (supports ``on_conflict_*``)."""
        if self.dialect_name == "postgresql":
            return pg_insert(table)
        return sqlite_insert(table)

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    async def favorites_page(self, offset: int, limit: int) -> list[FavoriteReference]:
        """Return one page of favorites, most recent first."""
        query = (
            select(t.favorites)
            .order_by(t.favorites.c.favorited_at.desc(), t.favorites.c.id.desc())
            .offset(offset)
            .limit(limit)
        )
        async with self._engine.connect() as conn:
            result = await conn.execute(query)
            return [_favorite_from_row(row) for row in result.mappings()]

    async def get_all_favorites(self) -> list[FavoriteReference]:
        query = select(t.favorites).order_by(
            t.favorites.c.favorited_at.desc(), t.favorites.c.id.desc()
        )
        async with self._engine.connect() as conn:
            result = await conn.execute(query)
            return [_favorite_from_row(row) for row in result.mappings()]

    async def favorite_exists(self, source_kind: SourceKind, source_id: str) -> bool:
        query = (
            select(t.favorites.c.id)
            .where(
                t.favorites.c.source_kind == SourceKind(source_kind).value,
                t.favorites.c.source_id == source_id,
            )
            .limit(1)
        )
        async with self._engine.connect() as conn:
            result = await conn.execute(query)
            return result.scalar() is not None

    async def insert_favorites(
        self, favorites: Collection[FavoriteReference]
    ) -> list[FavoriteReference]:
        """Insert favorites and return them with their new ids."""
        inserted: list[FavoriteReference] = []
        if not favorites:
            return inserted

        async with self._engine.begin() as conn:
            for favorite in favorites:
                stmt = (
                    insert(t.favorites)
                    .values(
                        source_kind=favorite.source_kind.value,
                        source_id=favorite.source_id,
                        favorited_at=favorite.favorited_at,
                    )
                    .returning(t.favorites.c.id)
                )
                result = await conn.execute(stmt)
                inserted.append(favorite.model_copy(update={"id": result.scalar_one()}))
        return inserted

    async def delete_favorite(self, source_kind: SourceKind, source_id: str) -> None:
        stmt = delete(t.favorites).where(
            t.favorites.c.source_kind == SourceKind(source_kind).value,
            t.favorites.c.source_id == source_id,
        )
        async with self._engine.begin() as conn:
            await conn.execute(stmt)

    async def get_random_favorite(self) -> FavoriteReference | None:
        query = select(t.favorites).order_by(func.random()).limit(1)
        async with self._engine.connect() as conn:
            row = (await conn.execute(query)).mappings().first()
            return _favorite_from_row(row) if row is not None else None

    # ------------------------------------------------------------------
    # Saved searches
    # ------------------------------------------------------------------

    async def get_saved_search(self, search_id: int) -> SavedSearch | None:
        query = select(t.saved_searches).where(t.saved_searches.c.id == search_id)
        async with self._engine.connect() as conn:
            row = (await conn.execute(query)).mappings().first()
            return SavedSearch(**row) if row is not None else None

    async def get_saved_search_by_name(self, name: str) -> SavedSearch | None:
        query = select(t.saved_searches).where(t.saved_searches.c.name == name)
        async with self._engine.connect() as conn:
            row = (await conn.execute(query)).mappings().first()
            return SavedSearch(**row) if row is not None else None

    async def get_saved_searches_by_names(
        self, names: Collection[str]
    ) -> list[SavedSearch]:
        if not names:
            return []
        query = select(t.saved_searches).where(t.saved_searches.c.name.in_(list(names)))
        async with self._engine.connect() as conn:
            result = await conn.execute(query)
            return [SavedSearch(**row) for row in result.mappings()]

    async def get_all_saved_searches(self) -> list[SavedSearch]:
        query = select(t.saved_searches).order_by(t.saved_searches.c.name)
        async with self._engine.connect() as conn:
            result = await conn.execute(query)
            return [SavedSearch(**row) for row in result.mappings()]

    async def upsert_saved_searches(
        self, searches: Collection[SavedSearch]
    ) -> list[SavedSearch]:
        """Insert or update saved searches, returning them with store ids."""
        stored: list[SavedSearch] = []
        if not searches:
            return stored

        async with self._engine.begin() as conn:
            for search in searches:
                values = {
                    "name": search.name,
                    "query": search.query,
                    "filters": search.filters,
                }
                if search.id:
                    stmt = self._upsert(t.saved_searches).values(id=search.id, **values)
                    stmt = stmt.on_conflict_do_update(index_elements=["id"], set_=values)
                else:
                    stmt = self._upsert(t.saved_searches).values(**values)
                    stmt = stmt.on_conflict_do_update(
                        index_elements=["name"],
                        set_={"query": search.query, "filters": search.filters},
                    )
                result = await conn.execute(stmt.returning(t.saved_searches.c.id))
                stored.append(search.model_copy(update={"id": result.scalar_one()}))
        return stored

    async def delete_saved_search_by_name(self, name: str) -> None:
        stmt = delete(t.saved_searches).where(t.saved_searches.c.name == name)
        async with self._engine.begin() as conn:
            await conn.execute(stmt)

    # ------------------------------------------------------------------
    # Cached catalog entities
    # ------------------------------------------------------------------

    async def upsert_tags(self, tags: Collection[Tag]) -> None:
        # Last occurrence of a name wins
        rows = {
            tag.name: {"name": tag.name, "category": tag.category, "purity": tag.purity}
            for tag in tags
        }
        if not rows:
            return

        stmt = self._upsert(t.tags)
        stmt = stmt.on_conflict_do_update(
            index_elements=["name"],
            set_={"category": stmt.excluded.category, "purity": stmt.excluded.purity},
        )
        async with self._engine.begin() as conn:
            await conn.execute(stmt, list(rows.values()))

    async def get_tags_by_names(self, names: Collection[str]) -> list[Tag]:
        if not names:
            return []
        query = select(t.tags).where(t.tags.c.name.in_(list(names)))
        async with self._engine.connect() as conn:
            result = await conn.execute(query)
            return [Tag(**row) for row in result.mappings()]

    async def upsert_uploaders(self, uploaders: Collection[Uploader]) -> None:
        rows = {
            uploader.username: {
                "username": uploader.username,
                "group_name": uploader.group,
                "avatar_url": uploader.avatar_url,
            }
            for uploader in uploaders
        }
        if not rows:
            return

        stmt = self._upsert(t.uploaders)
        stmt = stmt.on_conflict_do_update(
            index_elements=["username"],
            set_={
                "group_name": stmt.excluded.group_name,
                "avatar_url": stmt.excluded.avatar_url,
            },
        )
        async with self._engine.begin() as conn:
            await conn.execute(stmt, list(rows.values()))

    async def get_uploaders_by_usernames(
        self, usernames: Collection[str]
    ) -> list[Uploader]:
        if not usernames:
            return []
        query = select(t.uploaders).where(t.uploaders.c.username.in_(list(usernames)))
        async with self._engine.connect() as conn:
            result = await conn.execute(query)
            return [_uploader_from_row(row) for row in result.mappings()]

    async def upsert_cached_items(self, items: Collection[CachedItem]) -> None:
        """Upsert items by ``external_id`` and replace their tag links."""
        by_external_id = {item.external_id: item for item in items}
        if not by_external_id:
            return

        stmt = self._upsert(t.cached_items)
        stmt = stmt.on_conflict_do_update(
            index_elements=["external_id"],
            set_={column: stmt.excluded[column] for column in _ITEM_COLUMNS},
        )

        async with self._engine.begin() as conn:
            await conn.execute(
                stmt, [_item_values(item) for item in by_external_id.values()]
            )

            # Resolve ids assigned (or kept) by the upsert
            result = await conn.execute(
                select(t.cached_items.c.id, t.cached_items.c.external_id).where(
                    t.cached_items.c.external_id.in_(list(by_external_id))
                )
            )
            item_ids = {row.external_id: row.id for row in result}

            await conn.execute(
                delete(t.cached_item_tags).where(
                    t.cached_item_tags.c.item_id.in_(list(item_ids.values()))
                )
            )
            links = [
                {"item_id": item_ids[external_id], "tag_id": tag_id}
                for external_id, item in by_external_id.items()
                for tag_id in dict.fromkeys(item.tag_ids)
            ]
            if links:
                await conn.execute(insert(t.cached_item_tags), links)

    async def get_cached_items_with_relations(
        self, external_ids: Collection[str]
    ) -> list[CachedItemWithRelations]:
        """Bulk-fetch items with uploader and tags, in ``external_ids`` order."""
        wanted = list(dict.fromkeys(external_ids))
        if not wanted:
            return []

        async with self._engine.connect() as conn:
            result = await conn.execute(
                select(t.cached_items).where(t.cached_items.c.external_id.in_(wanted))
            )
            item_rows = {row["external_id"]: row for row in result.mappings()}
            if not item_rows:
                return []

            item_ids = [row["id"] for row in item_rows.values()]
            result = await conn.execute(
                select(t.cached_item_tags.c.item_id, t.tags)
                .select_from(
                    t.cached_item_tags.join(t.tags, t.tags.c.id == t.cached_item_tags.c.tag_id)
                )
                .where(t.cached_item_tags.c.item_id.in_(item_ids))
                .order_by(t.tags.c.name)
            )
            tags_by_item: dict[int, list[Tag]] = {}
            for row in result.mappings():
                tags_by_item.setdefault(row["item_id"], []).append(
                    Tag(
                        id=row["id"],
                        name=row["name"],
                        category=row["category"],
                        purity=row["purity"],
                    )
                )

            uploader_ids = {
                row["uploader_id"] for row in item_rows.values()
                if row["uploader_id"] is not None
            }
            uploaders_by_id: dict[int, Uploader] = {}
            if uploader_ids:
                result = await conn.execute(
                    select(t.uploaders).where(t.uploaders.c.id.in_(list(uploader_ids)))
                )
                uploaders_by_id = {
                    row["id"]: _uploader_from_row(row) for row in result.mappings()
                }

        relations: list[CachedItemWithRelations] = []
        for external_id in wanted:
            row = item_rows.get(external_id)
            if row is None:
                continue
            tags = tags_by_item.get(row["id"], [])
            values = dict(row)
            values["colors"] = values.get("colors") or []
            item = CachedItem(**values, tag_ids=[tag.id for tag in tags])
            relations.append(
                CachedItemWithRelations(
                    item=item,
                    uploader=uploaders_by_id.get(row["uploader_id"]),
                    tags=tags,
                )
            )
        return relations

    async def get_all_external_ids(self) -> set[str]:
        async with self._engine.connect() as conn:
            result = await conn.execute(select(t.cached_items.c.external_id))
            return set(result.scalars())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create_schema(self) -> None:
        """Create all tables that do not exist yet."""
        async with self._engine.begin() as conn:
            await conn.run_sync(t.metadata.create_all)

    async def close(self) -> None:
        """Dispose of the engine and its connection pool."""
        if self._engine:
            await self._engine.dispose()


# ----------------------------------------------------------------------
# Row conversion helpers
# ----------------------------------------------------------------------


def _favorite_from_row(row) -> FavoriteReference:
    return FavoriteReference(
        id=row["id"],
        source_kind=SourceKind(row["source_kind"]),
        source_id=row["source_id"],
        favorited_at=row["favorited_at"],
    )


def _uploader_from_row(row) -> Uploader:
    return Uploader(
        id=row["id"],
        username=row["username"],
        group=row["group_name"],
        avatar_url=row["avatar_url"],
    )


def _item_values(item: CachedItem) -> dict[str, Any]:
    values = item.model_dump(include={"external_id", *_ITEM_COLUMNS})
    values["colors"] = list(item.colors)
    return values
