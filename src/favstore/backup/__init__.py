"""Versioned backup and restore of favorites, saved searches and settings.

Usage:
    from favstore.backup import BackupOptions, create_snapshot, write_snapshot_file
    from favstore.backup import read_snapshot_file, restore_snapshot, validate_snapshot
"""

from favstore.backup.models import (
    BackupOptions,
    BackupSnapshot,
    BackupV1,
    MalformedSnapshotError,
    RestoreSummary,
    SnapshotReport,
    WallhavenBundleV1,
)
from favstore.backup.reader import (
    read_snapshot,
    read_snapshot_file,
    validate_snapshot,
    validate_snapshot_file,
)
from favstore.backup.restore import restore_snapshot
from favstore.backup.writer import (
    backup_filename,
    create_snapshot,
    dump_snapshot,
    write_snapshot_file,
)

__all__ = [
    "BackupOptions",
    "BackupSnapshot",
    "BackupV1",
    "WallhavenBundleV1",
    "MalformedSnapshotError",
    "RestoreSummary",
    "SnapshotReport",
    "backup_filename",
    "create_snapshot",
    "dump_snapshot",
    "write_snapshot_file",
    "read_snapshot",
    "read_snapshot_file",
    "validate_snapshot",
    "validate_snapshot_file",
    "restore_snapshot",
]
