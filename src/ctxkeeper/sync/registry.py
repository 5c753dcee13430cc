"""Project Registry: a flat list of project roots, one per line.

Blank lines and lines whose first non-blank character is `#` are ignored.
Paths are stored unquoted; paths containing newlines are not supported.
Entries are never pruned automatically, `list()` marks missing ones instead.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from ctxkeeper.sync.errors import InvalidProjectPath, MissingStateError
from ctxkeeper.sync.project import GitClient, resolve_project_root
from ctxkeeper.sync.transcripts import TranscriptStore

logger = logging.getLogger(__name__)

REGISTRY_HEADER = """\
# Claude Code Projects Configuration
# Add one project path per line.
# Lines starting with # are comments.
#
# Example:
# /home/user/projects/my-app
# /home/user/work/api-service
"""


@dataclass(frozen=True)
class RegistryEntry:
    path: str
    exists: bool
    transcript_count: int = 0


def _is_entry(line: str) -> bool:
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith("#")


class ProjectRegistry:
    """Read/write access to the project registry file."""

    def __init__(
        self,
        path: Path,
        store: TranscriptStore,
        archive_dirname: str = "claude_transcripts",
        git: GitClient | None = None,
    ) -> None:
        self.path = path
        self.store = store
        self.archive_dirname = archive_dirname
        self.git = git

    def exists(self) -> bool:
        return self.path.is_file()

    def init(self) -> bool:
        """Create the registry with a header comment. Returns False if it already exists."""
        if self.exists():
            logger.warning("Configuration file already exists: %s", self.path)
            return False
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(REGISTRY_HEADER, encoding="utf-8")
        logger.info("Created configuration file: %s", self.path)
        return True

    def _require(self) -> None:
        if not self.exists():
            raise MissingStateError(
                f"Configuration file not found: {self.path}. Run 'switch init' first."
            )

    def entries(self) -> list[str]:
        """Registered project paths in file order."""
        self._require()
        lines = self.path.read_text(encoding="utf-8").splitlines()
        return [line.strip() for line in lines if _is_entry(line)]

    def _canonical(self, path: str | Path) -> str:
        return str(resolve_project_root(path, self.git).path)

    def add(self, path: str | Path) -> bool:
        """Append a project. The directory must exist. Returns False for a duplicate."""
        canonical = self._canonical(path)
        if not self.exists():
            self.init()

        if canonical in self.entries():
            logger.warning("Project already in configuration: %s", canonical)
            return False

        text = self.path.read_text(encoding="utf-8")
        if text and not text.endswith("\n"):
            text += "\n"
        self._write(text + canonical + "\n")
        logger.info("Added project: %s", canonical)
        return True

    def remove(self, path: str | Path) -> int:
        """Remove every line equal to the project path. Returns the number removed.

        Existing directories are canonicalized first; otherwise the literal
        input is matched so entries of deleted directories can be removed.
        """
        self._require()
        if not str(path).strip():
            raise InvalidProjectPath("No project path specified")
        key = self._canonical(path) if Path(path).expanduser().is_dir() else str(path)

        lines = self.path.read_text(encoding="utf-8").splitlines(keepends=True)
        kept = [line for line in lines if not (_is_entry(line) and line.strip() == key)]
        removed = len(lines) - len(kept)
        if not removed:
            logger.warning("Project not found in configuration: %s", key)
            return 0

        self._write("".join(kept))
        logger.info("Removed project: %s", key)
        return removed

    def list(self) -> list[RegistryEntry]:
        """Every entry with directory existence and archived transcript count."""
        result = []
        for entry in self.entries():
            project = Path(entry)
            if project.is_dir():
                count = self.store.count(project / self.archive_dirname)
                result.append(RegistryEntry(path=entry, exists=True, transcript_count=count))
            else:
                result.append(RegistryEntry(path=entry, exists=False))
        return result

    def _write(self, text: str) -> None:
        """Replace the registry through a temp file in the same directory."""
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
