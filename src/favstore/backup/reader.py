"""Backup snapshot parsing and validation.

``read_snapshot`` checks the ``version`` field before decoding anything
else and then validates the document against that version's model.
Unknown versions are rejected; there is no silent downgrade.  Within a
recognized version, pydantic's lax mode accepts compatible coercions
(``5.0`` for an int field, ``5`` for a float field) while missing required
fields still fail.

Usage:
    from favstore.backup.reader import read_snapshot, validate_snapshot

    snapshot = read_snapshot(Path("backup.json").read_text())
    report = validate_snapshot(raw_text)
"""

import json
from pathlib import Path

from pydantic import ValidationError

from favstore.backup.models import (
    BackupSnapshot,
    BackupV1,
    MalformedSnapshotError,
    SnapshotReport,
)
from favstore.store.models import SourceKind

# Snapshot model per supported version
SNAPSHOT_SCHEMAS: dict[int, type[BackupSnapshot]] = {
    1: BackupV1,
}


def read_snapshot(raw_text: str | bytes) -> BackupSnapshot:
    """Parse backup text into the snapshot model of its version.

    Args:
        raw_text: Backup document.

    Returns:
        The snapshot model for the document's version.

    Raises:
        MalformedSnapshotError: If the text is not JSON, is not an object,
            has a missing or non-integer ``version``, has an unsupported
            version, or fails validation for its version.
    """
    try:
        data = json.loads(raw_text)
    except (ValueError, RecursionError) as e:
        raise MalformedSnapshotError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedSnapshotError("Backup must be a JSON object")

    if "version" not in data:
        raise MalformedSnapshotError("Missing required field: version")

    version = data["version"]
    if isinstance(version, bool) or not isinstance(version, int):
        raise MalformedSnapshotError(f"Backup version must be an integer, got {version!r}")

    schema = SNAPSHOT_SCHEMAS.get(version)
    if schema is None:
        raise MalformedSnapshotError(f"Unsupported backup version {version}")

    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise MalformedSnapshotError(f"Invalid version {version} backup: {e}") from e


def read_snapshot_file(backup_path: str | Path) -> BackupSnapshot:
    """Read and parse a backup file.  The file name is not interpreted.

    Raises:
        FileNotFoundError: If the file does not exist.
        MalformedSnapshotError: See ``read_snapshot``.
    """
    with open(backup_path, "rb") as f:
        return read_snapshot(f.read())


def validate_snapshot(raw_text: str | bytes) -> SnapshotReport:
    """Validate backup text and report referential problems.

    Errors make the backup unreadable.  Warnings describe records a restore
    would drop: favorites whose cached item is not in the backup, cached
    items whose uploader or tags are missing, and duplicate favorites.

    Example:
        report = validate_snapshot(text)
        if not report.valid:
            print("\\n".join(report.errors))
    """
    try:
        snapshot = read_snapshot(raw_text)
    except MalformedSnapshotError as e:
        return SnapshotReport(valid=False, errors=[str(e)])

    warnings: list[str] = []
    if isinstance(snapshot, BackupV1):
        warnings = _v1_warnings(snapshot)
    return SnapshotReport(valid=True, version=snapshot.version, warnings=warnings)


def validate_snapshot_file(backup_path: str | Path) -> SnapshotReport:
    """Validate a backup file (see ``validate_snapshot``)."""
    try:
        with open(backup_path, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        return SnapshotReport(valid=False, errors=[f"Backup file not found: {backup_path}"])
    return validate_snapshot(raw)


def _v1_warnings(snapshot: BackupV1) -> list[str]:
    warnings: list[str] = []
    bundle = snapshot.wallhaven
    items = (bundle.items if bundle else None) or []
    uploader_ids = {u.id for u in ((bundle.uploaders if bundle else None) or [])}
    tag_ids = {t.id for t in ((bundle.tags if bundle else None) or [])}
    external_ids = {item.external_id for item in items}

    seen: set[tuple[SourceKind, str]] = set()
    for favorite in snapshot.favorites or []:
        label = f"{favorite.source_kind.value}:{favorite.source_id}"
        if favorite.key in seen:
            warnings.append(f"Duplicate favorite '{label}'")
            continue
        seen.add(favorite.key)
        if (
            favorite.source_kind == SourceKind.CACHED
            and favorite.source_id not in external_ids
        ):
            warnings.append(f"Orphaned favorite '{label}': item not in backup")

    if items and not uploader_ids:
        warnings.append(
            f"{len(items)} cached items have no uploaders in backup and will not be restored"
        )
    for item in items:
        if item.uploader_id is not None and item.uploader_id not in uploader_ids:
            warnings.append(
                f"Cached item '{item.external_id}': uploader {item.uploader_id} not in backup"
            )
        missing_tags = [tag_id for tag_id in item.tag_ids if tag_id not in tag_ids]
        if missing_tags:
            warnings.append(
                f"Cached item '{item.external_id}': tags {missing_tags} not in backup"
            )

    return warnings
