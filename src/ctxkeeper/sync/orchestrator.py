"""Sync Orchestrator: save, load, switch-all and reset of the global transcripts.

Every operation is a one-shot state transition over the filesystem; nothing is
remembered between calls. Which project currently "owns" the global directory
is only implied by the last load and is never recorded.

Ordering rule for every destructive step: snapshot the global directory, and
clear it only after the snapshot returned successfully.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from ctxkeeper.config import KeeperConfig
from ctxkeeper.sync import records
from ctxkeeper.sync.backup import BackupService
from ctxkeeper.sync.errors import (
    GitError,
    InvalidProjectPath,
    MissingStateError,
    NoSavedTranscripts,
    UserCancelled,
)
from ctxkeeper.sync.project import GitClient, ProjectRoot, resolve_project_root
from ctxkeeper.sync.registry import ProjectRegistry
from ctxkeeper.sync.transcripts import RootState, TranscriptStore

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[str], bool]


def _decline(prompt: str) -> bool:
    return False


@dataclass
class ProjectOutcome:
    """Result of saving into one project archive."""

    path: str
    name: str = ""
    copied: int = 0
    ok: bool = True
    committed: bool = False
    error: str | None = None


@dataclass
class SaveResult:
    projects: list[ProjectOutcome] = field(default_factory=list)
    nothing_to_save: bool = False
    backup: Path | None = None
    cleared: int = 0

    @property
    def saved(self) -> int:
        return sum(1 for p in self.projects if p.ok)

    @property
    def failed(self) -> int:
        return sum(1 for p in self.projects if not p.ok)


@dataclass
class LoadResult:
    project: ProjectRoot
    loaded: int
    last_saved: str | None = None
    backup: Path | None = None
    overwritten: int = 0


@dataclass
class SwitchResult:
    processed: int = 0
    failed: int = 0
    nothing_to_save: bool = False
    backup: Path | None = None
    cleared: int = 0
    projects: list[ProjectOutcome] = field(default_factory=list)


@dataclass
class ResetResult:
    backup: Path | None = None
    cleared: int = 0


class SyncOrchestrator:
    """Composes the transcript store, backups, registry and git collaborator."""

    def __init__(
        self,
        config: KeeperConfig,
        *,
        store: TranscriptStore | None = None,
        backups: BackupService | None = None,
        git: GitClient | None = None,
        registry: ProjectRegistry | None = None,
        confirm: ConfirmFn | None = None,
    ) -> None:
        self.config = config
        self.store = store or TranscriptStore(config.pattern)
        self.backups = backups or BackupService(self.store, config.backup)
        self.git = git or GitClient(timeout=config.git.timeout)
        self.registry = registry or ProjectRegistry(
            config.registry_file, self.store, config.archive_dirname, self.git
        )
        self.confirm = confirm or _decline

    @property
    def global_dir(self) -> Path:
        return self.config.global_dir

    # ── Shared steps ─────────────────────────────────────────

    def _global_has_transcripts(self) -> bool:
        state = self.store.state(self.global_dir)
        if state is RootState.MISSING:
            logger.warning("Claude transcripts directory does not exist: %s", self.global_dir)
            return False
        if state is RootState.EMPTY:
            logger.warning("No transcript files found in %s", self.global_dir)
            return False
        return True

    def _backup_and_clear(self) -> tuple[Path | None, int]:
        """Snapshot the global directory, then delete its tracked files."""
        backup = self.backups.snapshot(self.global_dir)
        if backup is None:
            return None, 0
        logger.info("Clearing global transcripts...")
        cleared = self.store.clear(self.global_dir)
        return backup, cleared

    def _save_project(self, project: ProjectRoot, use_git: bool) -> ProjectOutcome:
        """Copy the global transcripts into one project archive."""
        outcome = ProjectOutcome(path=str(project.path), name=project.name)
        logger.info("Saving transcripts for: %s (%s)", project.name, project.path)

        archive = self.config.archive_dir(project.path)
        if not archive.is_dir():
            logger.info("Creating %s/ directory", self.config.archive_dirname)
            archive.mkdir(parents=True, exist_ok=True)

        outcome.copied = self.store.copy_all(self.global_dir, archive)
        logger.info("Copied %d transcript file(s)", outcome.copied)
        records.write_save_record(archive, project.name, project.path, outcome.copied)

        if project.is_git and use_git:
            try:
                outcome.committed = self.git.commit_paths(
                    project.path, [archive], self.config.git.commit_message
                )
                if not outcome.committed:
                    logger.info("No new changes to commit")
            except GitError as e:
                logger.warning("%s. Transcripts are saved but not committed", e)
        elif not project.is_git:
            logger.debug("Not a git repository, skipping git operations")

        return outcome

    def _confirm_clear(self, prompt: str, force: bool) -> None:
        if force:
            return
        if not self.confirm(prompt):
            raise UserCancelled("Cancelled. Global transcripts were left untouched.")

    # ── Save ─────────────────────────────────────────────────

    def save(
        self,
        paths: list[str] | None = None,
        *,
        reset: bool = False,
        no_git: bool = False,
        force: bool = False,
    ) -> SaveResult:
        """Copy the global transcripts into each project's archive, optionally resetting."""
        result = SaveResult()
        if not self._global_has_transcripts():
            logger.warning("Nothing to save.")
            result.nothing_to_save = True
            return result

        logger.info(
            "Found %d transcript file(s) to save", self.store.count(self.global_dir)
        )
        use_git = self.config.git.enabled and not no_git

        for raw in paths or [None]:
            try:
                project = resolve_project_root(raw, self.git)
            except InvalidProjectPath as e:
                logger.error("%s", e)
                result.projects.append(ProjectOutcome(path=str(raw), ok=False, error=str(e)))
                continue
            result.projects.append(self._save_project(project, use_git))

        if reset:
            if not result.saved:
                logger.warning("No project was saved, skipping reset.")
                return result
            self._confirm_clear(f"Clear global transcripts in {self.global_dir}?", force)
            result.backup, result.cleared = self._backup_and_clear()
            if result.backup:
                logger.info("Global transcripts cleared (backup at %s)", result.backup)

        return result

    # ── Load ─────────────────────────────────────────────────

    def load(
        self,
        path: str | None = None,
        *,
        no_clear: bool = False,
        force: bool = False,
    ) -> LoadResult:
        """Replace (or with no_clear, overlay) the global transcripts with a project's archive.

        `force` is accepted for symmetry with save; load never prompts because
        the previous global set is always snapshotted before it is cleared.
        """
        project = resolve_project_root(path, self.git)
        archive = self.config.archive_dir(project.path)

        if not archive.is_dir():
            raise NoSavedTranscripts(
                f"No {self.config.archive_dirname}/ directory found in {project.path}. "
                "Run 'ctxkeeper save' first."
            )
        available = self.store.count(archive)
        if available == 0:
            raise NoSavedTranscripts(
                f"No transcript files found in {archive}. Run 'ctxkeeper save' first."
            )

        logger.info("Loading context for: %s", project.name)
        logger.info("Found %d saved transcript file(s)", available)

        backup = None
        overwritten = 0
        existing = self.store.count(self.global_dir)
        if not no_clear and existing:
            logger.info("Found %d existing transcript(s) in global directory", existing)
            backup, _ = self._backup_and_clear()
        elif no_clear and existing:
            logger.info("Keeping %d existing transcript(s) (--no-clear mode)", existing)
            overwritten = len(self.store.overlapping(archive, self.global_dir))
            logger.debug("%d existing transcript(s) will be overwritten", overwritten)

        self.global_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Restoring transcripts to %s...", self.global_dir)
        loaded = self.store.copy_all(archive, self.global_dir)

        last_saved = records.read_last_saved(archive)
        records.write_load_record(archive, project.name, project.path, loaded, last_saved)
        logger.info("Generated %s", records.LOAD_RECORD)

        return LoadResult(
            project=project,
            loaded=loaded,
            last_saved=last_saved,
            backup=backup,
            overwritten=overwritten,
        )

    # ── Switch ───────────────────────────────────────────────

    def switch_all(self) -> SwitchResult:
        """Save the global transcripts into every registered project, then clear them once."""
        projects = self.registry.entries()
        if not projects:
            raise MissingStateError("No projects configured.")

        result = SwitchResult()
        if not self._global_has_transcripts():
            logger.warning("Nothing to save.")
            result.nothing_to_save = True
            return result

        logger.info("Processing all configured projects...")
        for entry in projects:
            if not Path(entry).is_dir():
                logger.warning("Skipping missing directory: %s", entry)
                result.failed += 1
                result.projects.append(
                    ProjectOutcome(path=entry, ok=False, error="directory missing")
                )
                continue
            try:
                outcome = self._save_project(resolve_project_root(entry, self.git), use_git=False)
            except (InvalidProjectPath, OSError) as e:
                logger.warning("Failed to save context for %s: %s", entry, e)
                result.failed += 1
                result.projects.append(ProjectOutcome(path=entry, ok=False, error=str(e)))
                continue
            result.processed += 1
            result.projects.append(outcome)

        if result.processed:
            logger.info("Resetting global transcripts...")
            result.backup, result.cleared = self._backup_and_clear()
            if result.backup:
                logger.info("Backup saved to: %s", result.backup)
        return result

    def save_single(self, path: str) -> SaveResult:
        """Save for one existing project directory with default options."""
        if not path.strip():
            raise InvalidProjectPath("No project path specified")
        if not Path(path).expanduser().is_dir():
            raise InvalidProjectPath(f"Directory does not exist: {path}")
        return self.save([path])

    # ── Reset ────────────────────────────────────────────────

    def reset(self, *, force: bool = False) -> ResetResult:
        """Back up and clear the global transcripts without touching any project."""
        count = self.store.count(self.global_dir)
        if count == 0:
            logger.info("No transcript files found. Nothing to reset.")
            return ResetResult()

        self._confirm_clear(f"Back up and clear {count} global transcript(s)?", force)
        backup, cleared = self._backup_and_clear()
        logger.info("Global transcripts cleared. Backup at: %s", backup)
        return ResetResult(backup=backup, cleared=cleared)
