"""Source resolvers: one per ``SourceKind``.

Usage:
    from favstore.sources import (
        CachedItemResolver,
        LocalFileResolver,
        ResolverRegistry,
        default_resolvers,
    )
"""

from favstore.sources.base import ResolverRegistry, SourceResolver
from favstore.sources.cached import CachedItemResolver
from favstore.sources.local import LocalFileResolver
from favstore.store.base import EntityStore
from favstore.store.models import SourceKind


def default_resolvers(
    store: EntityStore,
    local_root: str | None = None,
) -> ResolverRegistry:
    """Build the registry with the cached-item and local-file resolvers."""
    return ResolverRegistry({
        SourceKind.CACHED: CachedItemResolver(store),
        SourceKind.LOCAL: LocalFileResolver(local_root),
    })


__all__ = [
    "SourceResolver",
    "ResolverRegistry",
    "CachedItemResolver",
    "LocalFileResolver",
    "default_resolvers",
]
