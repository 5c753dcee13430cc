"""Shared fixtures: isolated global/archive/registry locations and a fake git client."""

from __future__ import annotations

from pathlib import Path

import pytest

from ctxkeeper.config import GitConfig, KeeperConfig
from ctxkeeper.sync.errors import GitError
from ctxkeeper.sync.orchestrator import SyncOrchestrator


class FakeGit:
    """Stands in for GitClient; `repos` maps any path inside a repo to its top level."""

    def __init__(self, repos: list[Path] | None = None, fail: bool = False) -> None:
        self.repos = [r.resolve() for r in repos or []]
        self.fail = fail
        self.commits: list[tuple[Path, list[Path], str]] = []

    def toplevel(self, path: Path) -> Path | None:
        path = path.resolve()
        for repo in self.repos:
            if path == repo or repo in path.parents:
                return repo
        return None

    def commit_paths(self, repo: Path, paths: list[Path], message: str) -> bool:
        if self.fail:
            raise GitError("git commit failed: simulated")
        self.commits.append((repo, list(paths), message))
        return True


class Answers:
    """Confirmation callback returning a fixed answer and recording prompts."""

    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.prompts: list[str] = []

    def __call__(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self.answer


def write_transcripts(root: Path, files: dict[str, str]) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def read_tree(root: Path, pattern: str = "*.json") -> dict[str, str]:
    if not root.is_dir():
        return {}
    return {
        p.relative_to(root).as_posix(): p.read_text(encoding="utf-8")
        for p in root.rglob(pattern)
        if p.is_file()
    }


@pytest.fixture
def config(tmp_path: Path) -> KeeperConfig:
    return KeeperConfig(
        global_dir=tmp_path / "home" / ".claude" / "transcripts",
        registry_file=tmp_path / "home" / ".claude-projects.conf",
        git=GitConfig(enabled=True),
    )


@pytest.fixture
def global_dir(config: KeeperConfig) -> Path:
    return config.global_dir


@pytest.fixture
def project(tmp_path: Path) -> Path:
    path = tmp_path / "work" / "my-app"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def orchestrator(config: KeeperConfig, fake_git: FakeGit) -> SyncOrchestrator:
    return SyncOrchestrator(config, git=fake_git, confirm=Answers(True))
