"""Source resolver protocol and registry.

A source resolver turns the ``source_id`` of a favorite into a hydrated
``Wallpaper``.  There is one resolver per ``SourceKind``; the registry
dispatches on the kind.

``None`` means "not found": the referent was purged, deleted, or is no
longer readable.  Any other failure is raised.

Usage:
    from favstore.sources.base import ResolverRegistry

    resolvers = ResolverRegistry({
        SourceKind.CACHED: CachedItemResolver(store),
        SourceKind.LOCAL: LocalFileResolver(),
    })
    wallpaper = await resolvers.resolve(SourceKind.LOCAL, "/pics/a.jpg")
"""

from collections.abc import Mapping
from typing import Protocol

from favstore.store.models import SourceKind, Wallpaper


class SourceResolver(Protocol):
    """Resolves source ids of one ``SourceKind``."""

    async def resolve(self, source_id: str) -> Wallpaper | None:
        """Return the hydrated item, or ``None`` if it does not resolve."""
        ...


class ResolverRegistry:
    """Maps each ``SourceKind`` to its resolver.

    Args:
        resolvers: Resolver per source kind.  A kind without a resolver
            never resolves.
    """

    def __init__(self, resolvers: Mapping[SourceKind, SourceResolver]) -> None:
        self._resolvers = dict(resolvers)

    def get(self, source_kind: SourceKind) -> SourceResolver | None:
        return self._resolvers.get(source_kind)

    async def resolve(self, source_kind: SourceKind, source_id: str) -> Wallpaper | None:
        """Resolve ``source_id`` through the resolver registered for its kind."""
        resolver = self._resolvers.get(source_kind)
        if resolver is None:
            return None
        return await resolver.resolve(source_id)
