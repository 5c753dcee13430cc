"""Error taxonomy for sync operations. Each error carries the CLI exit code."""

from __future__ import annotations

EXIT_ERROR = 1
EXIT_CANCELLED = 2


class SyncError(Exception):
    """Base class for failures that end a sync operation."""

    exit_code = EXIT_ERROR


class MissingStateError(SyncError):
    """Required state (registry, configured projects) does not exist."""


class NoSavedTranscripts(MissingStateError):
    """The project archive is absent or holds no tracked files."""


class InvalidProjectPath(SyncError):
    """A project path argument does not name an existing directory."""


class BackupError(SyncError):
    """A snapshot could not be created or verified. Nothing was cleared."""


class UserCancelled(SyncError):
    """The user declined a confirmation prompt. Nothing was cleared."""

    exit_code = EXIT_CANCELLED


class GitError(Exception):
    """A git subprocess failed. Always downgraded to a warning by callers."""
