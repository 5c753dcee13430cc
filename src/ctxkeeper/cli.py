"""
ctxkeeper CLI: save, load and switch Claude Code transcript contexts.

Commands:
- save:   copy global transcripts into project archives
- load:   restore a project's archive into the global directory
- reset:  back up and clear the global directory
- switch: registry management (init, add, remove, list) and all/single saves

Exit codes: 0 success, 1 error, 2 confirmation declined.
"""

import logging
import sys
from pathlib import Path
from typing import Callable, Optional, TypeVar

import typer

from ctxkeeper.config import KeeperConfig, load_config
from ctxkeeper.sync.errors import EXIT_ERROR, SyncError
from ctxkeeper.sync.orchestrator import SaveResult, SyncOrchestrator

T = TypeVar("T")

app = typer.Typer(help="Save and restore Claude Code transcripts per project")
switch_app = typer.Typer(help="Manage the project registry and switch all projects at once")
app.add_typer(switch_app, name="switch")


class _BelowWarning(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.WARNING


def _setup_logging(level: str) -> None:
    """Progress goes to stdout, warnings and errors to stderr."""
    out = logging.StreamHandler(sys.stdout)
    out.addFilter(_BelowWarning())
    out.setFormatter(logging.Formatter("%(message)s"))

    err = logging.StreamHandler(sys.stderr)
    err.setLevel(logging.WARNING)
    err.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[out, err],
        force=True,
    )


def _quiet(quiet: bool) -> None:
    if quiet:
        logging.getLogger().setLevel(logging.WARNING)


def _orchestrator(ctx: typer.Context) -> SyncOrchestrator:
    config: KeeperConfig = ctx.obj
    return SyncOrchestrator(config, confirm=lambda prompt: typer.confirm(prompt, default=False))


def _run(fn: Callable[[], T]) -> T:
    """Run an operation, mapping failures to exit codes."""
    try:
        return fn()
    except SyncError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=e.exit_code)
    except OSError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=EXIT_ERROR)


def _report_save(result: SaveResult) -> None:
    if result.nothing_to_save:
        typer.echo("Done! Nothing to save.")
        return
    for project in result.projects:
        if project.ok:
            typer.echo(f"  ✓ {project.name}: {project.copied} transcript(s)")
        else:
            typer.echo(f"  ✗ {project.path}: {project.error}", err=True)
    if result.saved == 0:
        typer.echo(f"❌ Failed to save transcripts for {result.failed} project(s).", err=True)
        raise typer.Exit(code=EXIT_ERROR)
    if result.failed:
        typer.echo(f"⚠️  {result.failed} project(s) failed or skipped.", err=True)
    typer.echo(f"Done! Saved transcripts for {result.saved} project(s).")


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to ctxkeeper.toml"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose logging (DEBUG level)"
    ),
):
    """
    Save and restore Claude Code transcripts per project.
    """
    keeper_config = load_config(config)
    _setup_logging("DEBUG" if verbose else keeper_config.log_level)
    ctx.obj = keeper_config


@app.command()
def save(
    ctx: typer.Context,
    paths: Optional[list[str]] = typer.Argument(
        None, help="Project paths (default: current directory)"
    ),
    reset: bool = typer.Option(False, "--reset", help="Clear global transcripts after saving"),
    no_git: bool = typer.Option(False, "--no-git", help="Skip git add/commit"),
    force: bool = typer.Option(False, "--force", "-y", help="Skip confirmation prompts"),
    quiet: bool = typer.Option(False, "--quiet", help="Suppress informational output"),
):
    """Save global transcripts into one or more project directories."""
    _quiet(quiet)
    orchestrator = _orchestrator(ctx)
    result = _run(
        lambda: orchestrator.save(paths or None, reset=reset, no_git=no_git, force=force)
    )
    _report_save(result)
    if result.backup:
        typer.echo(f"Global transcripts cleared (backup at {result.backup})")


@app.command()
def load(
    ctx: typer.Context,
    path: Optional[str] = typer.Argument(None, help="Project path (default: current directory)"),
    no_clear: bool = typer.Option(
        False, "--no-clear", help="Keep existing global transcripts (merge)"
    ),
    force: bool = typer.Option(False, "--force", "-y", help="Skip confirmation prompts"),
    quiet: bool = typer.Option(False, "--quiet", help="Suppress informational output"),
):
    """Load a project's saved transcripts into the global directory."""
    _quiet(quiet)
    orchestrator = _orchestrator(ctx)
    result = _run(lambda: orchestrator.load(path, no_clear=no_clear, force=force))

    if not quiet:
        typer.echo("")
        typer.echo(f"  Project:     {result.project.name}")
        typer.echo(f"  Path:        {result.project.path}")
        typer.echo(f"  Transcripts: {result.loaded} loaded")
        typer.echo(f"  Last saved:  {result.last_saved or 'unknown'}")
        if result.backup:
            typer.echo(f"  Backup:      {result.backup}")
        typer.echo("")
    typer.echo(f"Done! Context loaded for {result.project.name}.")


@app.command()
def reset(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-y", help="Skip confirmation prompt"),
):
    """Back up and clear the global transcripts."""
    result = _run(lambda: _orchestrator(ctx).reset(force=force))
    if result.backup:
        typer.echo(f"Done! Global transcripts cleared. Backup at: {result.backup}")
    else:
        typer.echo("Done! Nothing to reset.")


# ── switch ───────────────────────────────────────────────────


@switch_app.command("init")
def switch_init(ctx: typer.Context):
    """Create the projects configuration file."""
    registry = _orchestrator(ctx).registry
    if _run(registry.init):
        typer.echo(f"Done! Configuration file created: {registry.path}")
        typer.echo("  Add projects with: ctxkeeper switch add /path/to/project")
        return
    typer.echo("  Current contents:")
    for entry in _run(registry.entries):
        typer.echo(f"    {entry}")
    typer.echo("Done! Configuration file already exists.")


@switch_app.command("add")
def switch_add(
    ctx: typer.Context,
    path: str = typer.Argument(help="Project directory to register"),
):
    """Add a project to the configuration."""
    registry = _orchestrator(ctx).registry
    if _run(lambda: registry.add(path)):
        typer.echo("Done! Project added.")
    else:
        typer.echo("Done! Project was already configured.")


@switch_app.command("remove")
def switch_remove(
    ctx: typer.Context,
    path: str = typer.Argument(help="Project directory (or stale entry) to unregister"),
):
    """Remove a project from the configuration."""
    registry = _orchestrator(ctx).registry
    removed = _run(lambda: registry.remove(path))
    typer.echo(f"Done! Removed {removed} entr{'y' if removed == 1 else 'ies'}.")


@switch_app.command("list")
def switch_list(ctx: typer.Context):
    """List all configured projects."""
    orchestrator = _orchestrator(ctx)
    entries = _run(orchestrator.registry.list)
    snapshots = orchestrator.backups.list_snapshots(orchestrator.global_dir)
    if snapshots:
        typer.echo(f"Global transcript backups: {len(snapshots)} (latest: {snapshots[-1].name})")
    if not entries:
        typer.echo("No projects configured.")
        typer.echo("  Add projects with: ctxkeeper switch add /path/to/project")
        return

    typer.echo("Configured projects:")
    for entry in entries:
        if entry.exists:
            transcripts = (
                f"{entry.transcript_count} file(s)" if entry.transcript_count else "no"
            )
            typer.echo(f"  ✓ {Path(entry.path).name} ({entry.path}) [transcripts: {transcripts}]")
        else:
            typer.echo(f"  ✗ {entry.path} [directory missing]")
    missing = sum(1 for e in entries if not e.exists)
    typer.echo(f"Done! {len(entries)} project(s) configured, {missing} missing.")


@switch_app.command("all")
def switch_all(ctx: typer.Context):
    """Save context for all configured projects, then reset the global transcripts."""
    result = _run(_orchestrator(ctx).switch_all)
    if result.nothing_to_save:
        typer.echo("Done! Nothing to save.")
        return
    if result.failed:
        typer.echo(f"⚠️  {result.failed} project(s) failed or skipped.", err=True)
    typer.echo(f"Done! Processed {result.processed} project(s).")


@switch_app.command("single")
def switch_single(
    ctx: typer.Context,
    path: str = typer.Argument(help="Project directory to save"),
):
    """Save context for a single project."""
    _report_save(_run(lambda: _orchestrator(ctx).save_single(path)))


@switch_app.command("reset")
def switch_reset(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-y", help="Skip confirmation prompt"),
):
    """Back up and clear the global transcripts."""
    reset(ctx, force=force)


if __name__ == "__main__":
    app()
