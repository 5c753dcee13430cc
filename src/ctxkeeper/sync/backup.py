"""Backup Service: timestamped snapshots taken before a root is cleared."""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path

from ctxkeeper.config import BackupConfig
from ctxkeeper.sync.errors import BackupError
from ctxkeeper.sync.transcripts import TranscriptStore

logger = logging.getLogger(__name__)


class BackupService:
    """Copies a whole root to a sibling directory named by timestamp."""

    def __init__(self, store: TranscriptStore, config: BackupConfig | None = None) -> None:
        self.store = store
        self.config = config or BackupConfig()

    def _snapshot_path(self, root: Path) -> Path:
        """Sibling path for a new snapshot. Never reuses an existing directory."""
        ts = datetime.now().strftime(self.config.timestamp_format)
        path = root.parent / f"{self.config.prefix}{ts}"
        counter = 2
        while path.exists():
            path = root.parent / f"{self.config.prefix}{ts}-{counter}"
            counter += 1
        return path

    def snapshot(self, root: Path) -> Path | None:
        """Copy root's entire tree into a new snapshot and return its location.

        Returns None without touching the disk when root is missing or holds no
        tracked files. Raises BackupError if the copy fails or is incomplete;
        the source must not be cleared in that case.
        """
        expected = self.store.count(root)
        if expected == 0:
            logger.debug("Nothing to back up in %s", root)
            return None

        dest = self._snapshot_path(root)
        logger.info("Backing up %d transcript(s) to: %s", expected, dest)
        try:
            shutil.copytree(root, dest)
        except (OSError, shutil.Error) as e:
            raise BackupError(f"Backup of {root} to {dest} failed: {e}") from e

        actual = self.store.count(dest)
        if actual != expected:
            raise BackupError(
                f"Backup at {dest} is incomplete ({actual} of {expected} transcript(s))"
            )
        return dest

    def list_snapshots(self, root: Path) -> list[Path]:
        """Existing snapshots of root, oldest first."""
        if not root.parent.is_dir():
            return []
        return sorted(
            p for p in root.parent.glob(f"{self.config.prefix}*") if p.is_dir()
        )
