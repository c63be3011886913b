"""Pydantic models for favstore configuration."""

from pydantic import BaseModel, Field


class StoreProfile(BaseModel):
    """Store profile from favstore.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    local_root: str | None = None  # Base directory for relative local favorites
    preferences_file: str = "preferences.json"


class FavstoreConfig(BaseModel):
    """Complete configuration from favstore.toml."""

    profiles: dict[str, StoreProfile]
    default_profile: str | None = None
    backups_dir: str = "backups"
    page_size: int = Field(default=24, gt=0)
