"""Configuration loading from environment variables and ctxkeeper.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_CONFIG_FILENAME = "ctxkeeper.toml"
_DEFAULT_COMMIT_MESSAGE = "chore: save Claude Code transcripts before context switch"


def _default_global_dir() -> Path:
    return Path.home() / ".claude" / "transcripts"


def _default_registry_file() -> Path:
    return Path.home() / ".claude-projects.conf"


@dataclass
class GitConfig:
    """Git interaction for project archives."""

    enabled: bool = True
    commit_message: str = _DEFAULT_COMMIT_MESSAGE
    timeout: int = 30


@dataclass
class BackupConfig:
    """Naming of backup snapshots taken before the global directory is cleared."""

    prefix: str = "transcripts_backup_"
    timestamp_format: str = "%Y%m%d_%H%M%S"


@dataclass
class KeeperConfig:
    """Top-level ctxkeeper configuration."""

    global_dir: Path = field(default_factory=_default_global_dir)
    archive_dirname: str = "claude_transcripts"
    registry_file: Path = field(default_factory=_default_registry_file)
    pattern: str = "*.json"
    log_level: str = "INFO"
    git: GitConfig = field(default_factory=GitConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)

    def archive_dir(self, project_root: Path) -> Path:
        """Archive directory for a canonical project root."""
        return project_root / self.archive_dirname


def _as_bool(value: str | bool) -> bool:
    if isinstance(value, bool):
        return value
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_path(value: str | Path) -> Path:
    return Path(value).expanduser()


def load_config(config_path: Path | None = None) -> KeeperConfig:
    """Load configuration from environment variables and optional ctxkeeper.toml.

    Priority: environment variables > ctxkeeper.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text(encoding="utf-8"))
    else:
        # Search current dir and ~/.ctxkeeper/
        for candidate in [
            Path.cwd() / _CONFIG_FILENAME,
            Path.home() / ".ctxkeeper" / _CONFIG_FILENAME,
        ]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text(encoding="utf-8"))
                break

    git_data = file_data.get("git", {})
    backup_data = file_data.get("backup", {})

    config = KeeperConfig(
        global_dir=_as_path(
            os.getenv("CTXKEEPER_GLOBAL_DIR", file_data.get("global_dir", _default_global_dir()))
        ),
        archive_dirname=os.getenv(
            "CTXKEEPER_ARCHIVE_DIRNAME", file_data.get("archive_dirname", "claude_transcripts")
        ),
        registry_file=_as_path(
            os.getenv(
                "CTXKEEPER_REGISTRY", file_data.get("registry_file", _default_registry_file())
            )
        ),
        pattern=os.getenv("CTXKEEPER_PATTERN", file_data.get("pattern", "*.json")),
        log_level=os.getenv("CTXKEEPER_LOG_LEVEL", file_data.get("log_level", "INFO")),
        git=GitConfig(
            enabled=_as_bool(os.getenv("CTXKEEPER_GIT", git_data.get("enabled", True))),
            commit_message=git_data.get("commit_message", _DEFAULT_COMMIT_MESSAGE),
            timeout=int(os.getenv("CTXKEEPER_GIT_TIMEOUT", git_data.get("timeout", 30))),
        ),
        backup=BackupConfig(
            prefix=backup_data.get("prefix", "transcripts_backup_"),
            timestamp_format=backup_data.get("timestamp_format", "%Y%m%d_%H%M%S"),
        ),
    )
    return config
