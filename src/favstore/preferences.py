"""Application preferences storage.

Preferences are opaque to this library: they are read as a dict when a
backup includes settings and written back wholesale on restore.

Usage:
    from favstore.preferences import JsonPreferencesStore

    prefs = JsonPreferencesStore("preferences.json")
    await prefs.set({"theme": "dark"})
    current = await prefs.get()
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Protocol


class PreferencesStore(Protocol):
    """Storage for the application's preferences document."""

    async def get(self) -> dict[str, Any] | None:
        """Return the stored preferences, or ``None`` if none were saved."""
        ...

    async def set(self, preferences: dict[str, Any]) -> None:
        """Replace the stored preferences."""
        ...


class JsonPreferencesStore:
    """Preferences kept in a JSON file.

    Args:
        path: Location of the JSON file.  Parent directories are created
            on first write.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    async def get(self) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._read)

    async def set(self, preferences: dict[str, Any]) -> None:
        await asyncio.to_thread(self._write, preferences)

    def _read(self) -> dict[str, Any] | None:
        if not self.path.exists():
            return None
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Preferences file is not a JSON object: {self.path}")
        return data

    def _write(self, preferences: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(preferences, f, indent=2, default=str)
        tmp_path.replace(self.path)
