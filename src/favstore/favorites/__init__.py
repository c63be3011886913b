"""Favorites: paged aggregation and single-favorite operations.

Usage:
    from favstore.favorites import FavoritePager, PagingConfig
    from favstore.favorites import toggle_favorite, insert_favorites
"""

from favstore.favorites.operations import (
    add_favorite,
    get_random_favorite,
    insert_favorites,
    toggle_favorite,
)
from favstore.favorites.pager import FavoritePage, FavoritePager, PagingConfig

__all__ = [
    "FavoritePager",
    "FavoritePage",
    "PagingConfig",
    "add_favorite",
    "get_random_favorite",
    "insert_favorites",
    "toggle_favorite",
]
