"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from favstore.config import load_config, StoreProfile, FavstoreConfig
"""

from favstore.config.loader import load_config
from favstore.config.models import FavstoreConfig, StoreProfile

__all__ = ["load_config", "FavstoreConfig", "StoreProfile"]
