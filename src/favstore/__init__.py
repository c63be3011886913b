"""favstore: favorites aggregation with versioned backup and restore.

Aggregates favorites from a cached remote catalog and a local file
collection into one paged view, and exports/imports them (with the tags,
uploaders and cached items they depend on) as versioned JSON snapshots.

Usage:
    from favstore import SQLEntityStore, FavoritePager, default_resolvers
    from favstore import BackupOptions, create_snapshot, read_snapshot, restore_snapshot
    from favstore import upsert_saved_searches, load_config
"""

__version__ = "0.1.0"

# Store
from favstore.store.base import EntityStore
from favstore.store.models import (
    CachedItem,
    FavoriteReference,
    SavedSearch,
    SourceKind,
    Tag,
    Uploader,
    Wallpaper,
)
from favstore.store.sql import SQLEntityStore

# Sources
from favstore.sources import (
    CachedItemResolver,
    LocalFileResolver,
    ResolverRegistry,
    default_resolvers,
)

# Favorites
from favstore.favorites import (
    FavoritePager,
    PagingConfig,
    add_favorite,
    toggle_favorite,
)

# Saved searches
from favstore.saved_searches import (
    delete_saved_search,
    upsert_saved_search,
    upsert_saved_searches,
)

# Backup
from favstore.backup import (
    BackupOptions,
    MalformedSnapshotError,
    RestoreSummary,
    create_snapshot,
    dump_snapshot,
    read_snapshot,
    restore_snapshot,
)

# Config
from favstore.config import FavstoreConfig, StoreProfile, load_config
from favstore.factory import ProfileNotFoundError

__all__ = [
    # Store
    "EntityStore",
    "SQLEntityStore",
    "CachedItem",
    "FavoriteReference",
    "SavedSearch",
    "SourceKind",
    "Tag",
    "Uploader",
    "Wallpaper",
    # Sources
    "CachedItemResolver",
    "LocalFileResolver",
    "ResolverRegistry",
    "default_resolvers",
    # Favorites
    "FavoritePager",
    "PagingConfig",
    "add_favorite",
    "toggle_favorite",
    # Saved searches
    "upsert_saved_search",
    "upsert_saved_searches",
    "delete_saved_search",
    # Backup
    "BackupOptions",
    "MalformedSnapshotError",
    "RestoreSummary",
    "create_snapshot",
    "dump_snapshot",
    "read_snapshot",
    "restore_snapshot",
    # Config
    "FavstoreConfig",
    "StoreProfile",
    "load_config",
    "ProfileNotFoundError",
]
