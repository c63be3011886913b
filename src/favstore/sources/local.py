"""Resolver for favorites of files in the local collection.

``source_id`` of a local favorite is a filesystem path or a ``file://``
URI.  Relative paths are resolved against the resolver's ``root``.
Filesystem calls are blocking and run in a worker thread.
"""

import asyncio
import mimetypes
import os
from pathlib import Path
from urllib.parse import unquote, urlparse

from favstore.store.models import SourceKind, Wallpaper


class LocalFileResolver:
    """Hydrates local-source favorites from the filesystem.

    A missing file, a non-regular file, or a permission error means the
    favorite does not resolve.  Other ``OSError``s are raised.

    Args:
        root: Base directory for relative source ids.  Defaults to the
            current working directory.
    """

    def __init__(self, root: str | Path | None = None) -> None:
        self._root = Path(root).expanduser() if root is not None else None

    def to_path(self, source_id: str) -> Path:
        """Convert a source id into a filesystem path.

        Raises:
            ValueError: If ``source_id`` is a URI with a scheme other than
                ``file``.
        """
        parsed = urlparse(source_id)
        if parsed.scheme == "file":
            path = Path(unquote(parsed.path))
        elif parsed.scheme and len(parsed.scheme) > 1:
            raise ValueError(f"Unsupported local source id: {source_id}")
        else:
            # Bare path (a one-letter "scheme" is a Windows drive)
            path = Path(source_id)
        path = path.expanduser()
        if not path.is_absolute() and self._root is not None:
            path = self._root / path
        return path

    async def exists(self, source_id: str) -> bool:
        """Check that the file exists, is a regular file, and is readable.

        Unparseable source ids and filesystem errors count as inaccessible.
        """
        try:
            path = self.to_path(source_id)
        except ValueError:
            return False
        return await asyncio.to_thread(_is_readable_file, path)

    async def resolve(self, source_id: str) -> Wallpaper | None:
        try:
            path = self.to_path(source_id)
        except ValueError:
            return None

        try:
            stat = await asyncio.to_thread(_stat_readable_file, path)
        except (FileNotFoundError, PermissionError, NotADirectoryError):
            return None
        if stat is None:
            return None

        file_type, _ = mimetypes.guess_type(path.name)
        return Wallpaper(
            source_kind=SourceKind.LOCAL,
            source_id=source_id,
            path=str(path),
            url=path.as_uri() if path.is_absolute() else None,
            file_size=stat.st_size,
            file_type=file_type,
        )


def _is_readable_file(path: Path) -> bool:
    try:
        return path.is_file() and os.access(path, os.R_OK)
    except OSError:
        return False


def _stat_readable_file(path: Path) -> os.stat_result | None:
    stat = path.stat()
    if not path.is_file() or not os.access(path, os.R_OK):
        return None
    return stat
