"""Paged, lazily resolved view over all favorites.

``FavoritePager`` walks the store's favorite cursor (most recent first),
resolves every reference through the resolver for its source kind, and
drops references that no longer resolve.  Pages are never backfilled, so
a page may hold fewer items than were requested.

Usage:
    from favstore.favorites.pager import FavoritePager, PagingConfig

    pager = FavoritePager(store, resolvers, PagingConfig(page_size=24))
    async for wallpaper in pager:
        show(wallpaper)
    print(f"{pager.dropped_count} favorites no longer resolve")
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from pydantic import BaseModel, Field, model_validator

from favstore.sources.base import ResolverRegistry
from favstore.store.base import EntityStore
from favstore.store.models import FavoriteReference, Wallpaper

logger = logging.getLogger(__name__)


class PagingConfig(BaseModel):
    """Page sizing for ``FavoritePager``.

    ``prefetch_distance`` defaults to ``page_size`` and
    ``initial_load_size`` to three pages.
    """

    page_size: int = Field(default=24, gt=0)
    prefetch_distance: int | None = Field(default=None, gt=0)
    initial_load_size: int | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _fill_defaults(self) -> "PagingConfig":
        if self.prefetch_distance is None:
            self.prefetch_distance = self.page_size
        if self.initial_load_size is None:
            self.initial_load_size = self.page_size * 3
        return self


class FavoritePage(BaseModel):
    """One resolved page of favorites.

    Attributes:
        offset: Cursor offset of the first raw reference in the page.
        requested: Number of raw references requested.
        loaded: Number of raw references the store returned.
        items: Resolved items, in cursor order.
        dropped: References that did not resolve.
    """

    offset: int
    requested: int
    loaded: int
    items: list[Wallpaper] = Field(default_factory=list)
    dropped: list[FavoriteReference] = Field(default_factory=list)

    @property
    def is_last(self) -> bool:
        """True when the store returned a short page."""
        return self.loaded < self.requested


class FavoritePager:
    """Lazy, restartable, forward-only stream of resolved favorites.

    Each ``async for`` starts again from the first favorite.  While
    iterating items, the next page is loaded in a background task once
    the consumer is within ``prefetch_distance`` items of the end of the
    current page.  Closing or cancelling the iteration cancels that task.
    ``dropped_count`` counts the references dropped by the current pass
    and is reset whenever iteration or ``pages()`` starts again.

    Args:
        store: Entity store providing the favorites cursor.
        resolvers: Resolver registry used to hydrate references.
        config: Page sizing.  Defaults to ``PagingConfig()``.
    """

    def __init__(
        self,
        store: EntityStore,
        resolvers: ResolverRegistry,
        config: PagingConfig | None = None,
    ) -> None:
        self._store = store
        self._resolvers = resolvers
        self.config = config or PagingConfig()
        self.dropped_count = 0

    async def load_page(self, offset: int, limit: int) -> FavoritePage:
        """Load and resolve one page of favorites.

        Has no side effects, so a failed page can be retried as is.

        Args:
            offset: Cursor offset.
            limit: Number of raw references to read.

        Returns:
            The resolved page.

        Raises:
            Exception: Whatever the store or a resolver raises.
        """
        references = await self._store.favorites_page(offset, limit)
        page = FavoritePage(offset=offset, requested=limit, loaded=len(references))
        for reference in references:
            wallpaper = await self._resolvers.resolve(
                reference.source_kind, reference.source_id
            )
            if wallpaper is None:
                logger.debug(
                    "Dropping unresolvable favorite %s:%s",
                    reference.source_kind.value,
                    reference.source_id,
                )
                page.dropped.append(reference)
            else:
                page.items.append(wallpaper)
        return page

    def _consumed(self, page: FavoritePage) -> None:
        self.dropped_count += len(page.dropped)

    async def pages(self) -> AsyncIterator[FavoritePage]:
        """Yield resolved pages from the start of the cursor.

        The first page holds ``initial_load_size`` raw references, the
        following ones ``page_size``.
        """
        self.dropped_count = 0
        offset = 0
        limit = self.config.initial_load_size
        while True:
            page = await self.load_page(offset, limit)
            self._consumed(page)
            yield page
            if page.is_last:
                return
            offset += page.loaded
            limit = self.config.page_size

    async def __aiter__(self) -> AsyncIterator[Wallpaper]:
        page_size = self.config.page_size
        prefetch_distance = self.config.prefetch_distance
        pending: asyncio.Task[FavoritePage] | None = None

        self.dropped_count = 0
        try:
            page = await self.load_page(0, self.config.initial_load_size)
            while True:
                self._consumed(page)
                next_offset = page.offset + page.loaded
                remaining = len(page.items)
                for item in page.items:
                    if (
                        pending is None
                        and not page.is_last
                        and remaining <= prefetch_distance
                    ):
                        pending = asyncio.create_task(
                            self.load_page(next_offset, page_size)
                        )
                    remaining -= 1
                    yield item

                if page.is_last:
                    return
                if pending is None:
                    # Every reference in the page was dropped
                    pending = asyncio.create_task(self.load_page(next_offset, page_size))
                page = await pending
                pending = None
        finally:
            if pending is not None:
                pending.cancel()
                # Result of an abandoned prefetch is discarded
                with contextlib.suppress(asyncio.CancelledError, Exception):
                    await pending
