"""Factory for stores, resolvers and preferences from configuration.

Profile selection priority:

1. Explicit ``profile_name`` argument (CLI ``--profile``)
2. ``{env_prefix}FAVSTORE_PROFILE`` environment variable
3. ``default_profile`` in favstore.toml
4. Raise ``ProfileNotFoundError``

Usage:
    from favstore.factory import get_store, get_resolvers

    config = load_config()
    name, profile = get_active_profile(config)
    store = get_store(profile)
    resolvers = get_resolvers(store, profile)
"""

import logging
import os
from urllib.parse import quote

from favstore.config.models import FavstoreConfig, StoreProfile
from favstore.preferences import JsonPreferencesStore
from favstore.sources import ResolverRegistry, default_resolvers
from favstore.store.base import EntityStore
from favstore.store.sql import SQLEntityStore

logger = logging.getLogger(__name__)


class ProfileNotFoundError(Exception):
    """Raised when no store profile is configured or the name is unknown."""

    pass


def get_active_profile_name(
    config: FavstoreConfig,
    profile_name: str | None = None,
    env_prefix: str = "",
) -> str:
    """Resolve which profile to use.

    Args:
        config: Loaded configuration.
        profile_name: Explicitly requested profile, if any.
        env_prefix: Prefix for the environment variable lookup
            (e.g. ``"APP_"`` reads ``APP_FAVSTORE_PROFILE``).

    Returns:
        Profile name.

    Raises:
        ProfileNotFoundError: If no profile is selected by any source.
    """
    if profile_name:
        return profile_name

    env_profile = os.environ.get(f"{env_prefix}FAVSTORE_PROFILE")
    if env_profile:
        return env_profile

    if config.default_profile:
        return config.default_profile

    raise ProfileNotFoundError(
        "No store profile configured.\n"
        f"Set default_profile in favstore.toml, {env_prefix}FAVSTORE_PROFILE, "
        "or pass --profile.\n"
        f"Available profiles: {', '.join(config.profiles) or '(none)'}"
    )


def get_active_profile(
    config: FavstoreConfig,
    profile_name: str | None = None,
    env_prefix: str = "",
) -> tuple[str, StoreProfile]:
    """Get active profile name and configuration.

    Raises:
        ProfileNotFoundError: If no profile is selected or it is not defined.
    """
    name = get_active_profile_name(config, profile_name, env_prefix)
    if name not in config.profiles:
        raise ProfileNotFoundError(
            f"Profile '{name}' not found in favstore.toml.\n"
            f"Available profiles: {', '.join(config.profiles) or '(none)'}"
        )
    return name, config.profiles[name]


def resolve_url(profile: StoreProfile) -> str:
    """Return the profile URL with the password placeholder substituted."""
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


def get_store(profile: StoreProfile, **engine_kwargs) -> SQLEntityStore:
    """Create the entity store for a profile."""
    store = SQLEntityStore(resolve_url(profile), **engine_kwargs)
    logger.debug("Opened %s store", store.dialect_name)
    return store


def get_resolvers(store: EntityStore, profile: StoreProfile) -> ResolverRegistry:
    """Create the resolver registry for a profile."""
    return default_resolvers(store, local_root=profile.local_root)


def get_preferences_store(profile: StoreProfile) -> JsonPreferencesStore:
    """Create the preferences store for a profile."""
    return JsonPreferencesStore(profile.preferences_file)
