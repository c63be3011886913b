"""Configuration loading from favstore.toml."""

import os
import tomllib
from pathlib import Path

from favstore.config.models import FavstoreConfig, StoreProfile

CONFIG_FILENAME = "favstore.toml"


def load_config(config_path: Path | str | None = None) -> FavstoreConfig:
    """Load favstore configuration from a TOML file.

    Args:
        config_path: Path to the TOML file.  Defaults to the
            ``FAVSTORE_CONFIG`` environment variable, then
            ``./favstore.toml``.

    Returns:
        FavstoreConfig with all profiles.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        pydantic.ValidationError: If the config format is invalid.
    """
    if config_path is None:
        config_path = os.environ.get("FAVSTORE_CONFIG") or Path.cwd() / CONFIG_FILENAME
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(
            f"favstore config not found: {config_path}\n"
            f"Create {CONFIG_FILENAME} with at least one [profiles.<name>] table."
        )

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    profiles = {
        name: StoreProfile(**profile_data)
        for name, profile_data in data.get("profiles", {}).items()
    }

    return FavstoreConfig(
        profiles=profiles,
        default_profile=data.get("default_profile"),
        backups_dir=data.get("backups_dir", "backups"),
        page_size=data.get("page_size", 24),
    )
