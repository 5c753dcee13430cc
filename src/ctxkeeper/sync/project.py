"""Project root resolution and the git collaborator.

A project is identified by its canonical root: the top level of the git work
tree containing the given path, or the resolved absolute path when the path is
not inside a work tree. The same identity is used for archive locations and for
registry membership.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from ctxkeeper.sync.errors import GitError, InvalidProjectPath

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectRoot:
    path: Path
    is_git: bool = False

    @property
    def name(self) -> str:
        return self.path.name


@dataclass
class GitClient:
    """Subprocess wrapper around the `git` executable."""

    executable: str = "git"
    timeout: int = 30

    def _run(self, repo: Path, *args: str) -> subprocess.CompletedProcess:
        cmd = [self.executable, "-C", str(repo), *args]
        logger.debug("Running: %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise GitError(f"git {args[0]} timed out after {self.timeout}s") from e
        except FileNotFoundError as e:
            raise GitError(f"`{self.executable}` not found. Is git installed?") from e

    def toplevel(self, path: Path) -> Path | None:
        """Top level of the work tree containing path, or None."""
        try:
            result = self._run(path, "rev-parse", "--show-toplevel")
        except GitError as e:
            logger.debug("git unavailable for %s: %s", path, e)
            return None
        if result.returncode != 0 or not result.stdout.strip():
            return None
        return Path(result.stdout.strip()).resolve()

    def commit_paths(self, repo: Path, paths: list[Path], message: str) -> bool:
        """Stage and commit only the given paths.

        Returns False when nothing changed. Raises GitError on any git failure.
        """
        rel = [str(p.relative_to(repo)) if p.is_absolute() else str(p) for p in paths]

        result = self._run(repo, "add", "--", *rel)
        if result.returncode != 0:
            raise GitError(f"git add failed: {result.stderr.strip() or 'unknown error'}")

        result = self._run(repo, "diff", "--cached", "--quiet", "--", *rel)
        if result.returncode == 0:
            return False
        if result.returncode != 1:
            raise GitError(f"git diff failed: {result.stderr.strip() or 'unknown error'}")

        result = self._run(repo, "commit", "-m", message, "--", *rel)
        if result.returncode != 0:
            raise GitError(f"git commit failed: {result.stderr.strip() or result.stdout.strip()}")
        return True


def resolve_project_root(path: str | Path | None, git: GitClient | None = None) -> ProjectRoot:
    """Canonicalize a project path (default: current directory).

    None means the current directory; an empty string is rejected.
    """
    if path is None:
        candidate = Path.cwd()
    elif not str(path).strip():
        raise InvalidProjectPath("No project path specified")
    else:
        candidate = Path(path).expanduser()
    if not candidate.is_dir():
        raise InvalidProjectPath(f"Directory does not exist: {path}")
    absolute = candidate.resolve()

    toplevel = git.toplevel(absolute) if git else None
    if toplevel:
        return ProjectRoot(path=toplevel, is_git=True)
    return ProjectRoot(path=absolute, is_git=False)
