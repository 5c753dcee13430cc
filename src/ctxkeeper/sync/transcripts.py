"""Transcript Store: enumerate, copy and clear tracked transcript files.

A root is any directory holding transcripts: the single global directory or a
project archive. Files are identified by their path relative to the root, and
that relative path is preserved by every copy. Payloads are never parsed.
"""

from __future__ import annotations

import enum
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


class RootState(enum.Enum):
    MISSING = "missing"
    EMPTY = "empty"
    POPULATED = "populated"


@dataclass(frozen=True)
class TranscriptFile:
    """A tracked file under a root."""

    root: Path
    rel_path: Path

    @property
    def path(self) -> Path:
        return self.root / self.rel_path


class TranscriptStore:
    """Filesystem operations over transcript roots."""

    def __init__(self, pattern: str = "*.json") -> None:
        self.pattern = pattern

    def list_files(self, root: Path) -> list[TranscriptFile]:
        """All tracked files under root (subdirectories followed). Empty if root is absent."""
        if not root.is_dir():
            return []
        files = [
            TranscriptFile(root=root, rel_path=path.relative_to(root))
            for path in root.rglob(self.pattern)
            if path.is_file()
        ]
        return sorted(files, key=lambda f: f.rel_path.as_posix())

    def count(self, root: Path) -> int:
        return len(self.list_files(root))

    def state(self, root: Path) -> RootState:
        if not root.is_dir():
            return RootState.MISSING
        if not self.list_files(root):
            return RootState.EMPTY
        return RootState.POPULATED

    def copy_all(self, src: Path, dst: Path) -> int:
        """Copy every tracked file from src to the same relative path under dst.

        Existing destination files are overwritten. The source is never modified.
        """
        copied = 0
        for transcript in self.list_files(src):
            target = dst / transcript.rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(transcript.path, target)
            copied += 1
        logger.debug("Copied %d file(s) %s -> %s", copied, src, dst)
        return copied

    def clear(self, root: Path) -> int:
        """Delete tracked files under root. Directories and untracked files are kept.

        Callers must snapshot a non-empty root first (see `BackupService`).
        """
        removed = 0
        for transcript in self.list_files(root):
            transcript.path.unlink()
            removed += 1
        logger.debug("Removed %d file(s) from %s", removed, root)
        return removed

    def overlapping(self, src: Path, dst: Path) -> list[Path]:
        """Relative paths present in both roots; these are overwritten by copy_all(src, dst)."""
        existing = {f.rel_path for f in self.list_files(dst)}
        return [f.rel_path for f in self.list_files(src) if f.rel_path in existing]
