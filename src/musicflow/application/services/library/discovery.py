"""File discovery and change detection.

Neither stage opens file contents; change detection only calls ``stat``.
"""

import logging
import os
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path

from musicflow.domain.entities import ChangeSet
from musicflow.domain.exceptions import LibraryPathNotFound
from musicflow.domain.value_objects import is_audio_file

logger = logging.getLogger(__name__)

RecordedTimestamp = str | datetime | None


def discover_audio_files(root: Path) -> list[Path]:
    """Walk ``root`` and return every file with a supported audio extension.

    Symlinks and hidden entries are followed like anything else. The order
    of the result is unspecified.

    Raises:
        LibraryPathNotFound: ``root`` does not exist or is not a directory.
    """
    root = Path(root)
    if not root.is_dir():
        raise LibraryPathNotFound(root)
    root = root.resolve()

    audio_files: list[Path] = []
    total_files_seen = 0

    def _on_error(error: OSError) -> None:
        logger.warning(f"Skipping unreadable directory {error.filename}: {error.strerror}")

    for dirpath, _dirs, files in os.walk(root, followlinks=True, onerror=_on_error):
        for filename in files:
            total_files_seen += 1
            candidate = Path(dirpath) / filename
            if is_audio_file(candidate):
                audio_files.append(candidate)

    logger.debug(f"Total files seen: {total_files_seen}, audio files: {len(audio_files)}")
    return audio_files


def parse_recorded_timestamp(value: RecordedTimestamp) -> datetime | None:
    """Turn a catalog timestamp into an aware UTC datetime, or None if unreadable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip())
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def detect_changes(
    candidates: list[Path], recorded: Mapping[str, RecordedTimestamp]
) -> ChangeSet:
    """Split candidates into files that need extraction and files to skip.

    A file is re-scanned when it is new, when its mtime is strictly later
    than the recorded timestamp, or when the recorded timestamp cannot be
    parsed. A file that cannot be stat'ed is re-scanned as well; extraction
    will then fail and count it.
    """
    changes = ChangeSet()
    for path in candidates:
        key = str(path)
        if key not in recorded:
            changes.to_scan.append(path)
            continue

        recorded_at = parse_recorded_timestamp(recorded[key])
        if recorded_at is None:
            logger.debug(f"Unreadable catalog timestamp for {key}, re-scanning")
            changes.to_scan.append(path)
            continue

        try:
            mtime = datetime.fromtimestamp(path.stat().st_mtime, tz=UTC)
        except OSError:
            changes.to_scan.append(path)
            continue

        if mtime > recorded_at:
            changes.to_scan.append(path)
        else:
            changes.skipped.append(path)

    logger.info(
        f"Change detection: {len(changes.to_scan)} to scan, {len(changes.skipped)} unchanged",
        extra={"to_scan": len(changes.to_scan), "skipped": len(changes.skipped)},
    )
    return changes
