"""Tests for the project registry."""

from __future__ import annotations

import pytest
from pathlib import Path

from conftest import FakeGit, write_transcripts
from ctxkeeper.sync.errors import InvalidProjectPath, MissingStateError
from ctxkeeper.sync.registry import REGISTRY_HEADER, ProjectRegistry
from ctxkeeper.sync.transcripts import TranscriptStore


@pytest.fixture
def registry(tmp_path: Path) -> ProjectRegistry:
    return ProjectRegistry(tmp_path / "projects.conf", TranscriptStore(), git=FakeGit())


@pytest.fixture
def projects(tmp_path: Path) -> list[Path]:
    paths = [tmp_path / "p" / "alpha", tmp_path / "p" / "beta"]
    for p in paths:
        p.mkdir(parents=True)
    return paths


class TestInit:
    def test_creates_with_header(self, registry: ProjectRegistry):
        assert registry.init() is True
        assert registry.path.read_text(encoding="utf-8") == REGISTRY_HEADER
        assert registry.entries() == []

    def test_existing_is_left_alone(self, registry: ProjectRegistry, projects: list[Path]):
        registry.add(projects[0])
        before = registry.path.read_text(encoding="utf-8")
        assert registry.init() is False
        assert registry.path.read_text(encoding="utf-8") == before
        assert registry.entries() == [str(projects[0].resolve())]


class TestAdd:
    def test_add_creates_registry(self, registry: ProjectRegistry, projects: list[Path]):
        assert registry.add(projects[0]) is True
        assert registry.path.read_text(encoding="utf-8").startswith("# Claude Code Projects")
        assert registry.entries() == [str(projects[0].resolve())]

    def test_duplicate_is_noop(self, registry: ProjectRegistry, projects: list[Path]):
        registry.add(projects[0])
        assert registry.add(projects[0]) is False
        assert registry.entries().count(str(projects[0].resolve())) == 1

    def test_duplicate_through_relative_path(
        self, registry: ProjectRegistry, projects: list[Path], monkeypatch
    ):
        registry.add(projects[0])
        monkeypatch.chdir(projects[0].parent)
        assert registry.add("alpha") is False
        assert len(registry.entries()) == 1

    def test_missing_directory_fails_unchanged(
        self, registry: ProjectRegistry, projects: list[Path], tmp_path: Path
    ):
        registry.add(projects[0])
        before = registry.path.read_text(encoding="utf-8")
        with pytest.raises(InvalidProjectPath):
            registry.add(tmp_path / "does-not-exist")
        assert registry.path.read_text(encoding="utf-8") == before

    def test_missing_directory_does_not_create_registry(
        self, registry: ProjectRegistry, tmp_path: Path
    ):
        with pytest.raises(InvalidProjectPath):
            registry.add(tmp_path / "does-not-exist")
        assert not registry.exists()

    def test_empty_path_is_rejected(
        self, registry: ProjectRegistry, tmp_path: Path, monkeypatch
    ):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(InvalidProjectPath):
            registry.add("")
        assert not registry.exists()

    def test_canonicalizes_to_git_toplevel(self, tmp_path: Path, projects: list[Path]):
        sub = projects[0] / "src" / "pkg"
        sub.mkdir(parents=True)
        registry = ProjectRegistry(
            tmp_path / "projects.conf", TranscriptStore(), git=FakeGit([projects[0]])
        )
        registry.add(sub)
        assert registry.entries() == [str(projects[0].resolve())]
        assert registry.add(projects[0]) is False

    def test_appends_newline_to_unterminated_file(
        self, registry: ProjectRegistry, projects: list[Path]
    ):
        registry.path.write_text("/some/where", encoding="utf-8")
        registry.add(projects[0])
        assert registry.entries() == ["/some/where", str(projects[0].resolve())]


class TestRemove:
    def test_remove_existing(self, registry: ProjectRegistry, projects: list[Path]):
        registry.add(projects[0])
        registry.add(projects[1])
        assert registry.remove(projects[0]) == 1
        assert registry.entries() == [str(projects[1].resolve())]

    def test_remove_deleted_directory_by_literal(self, registry: ProjectRegistry):
        registry.init()
        with registry.path.open("a", encoding="utf-8") as f:
            f.write("/gone/project\n")
        assert registry.remove("/gone/project") == 1
        assert registry.entries() == []

    def test_remove_all_exact_matches_only(self, registry: ProjectRegistry):
        registry.init()
        with registry.path.open("a", encoding="utf-8") as f:
            f.write("/gone/project\n/gone/project-two\n/gone/project\n")
        assert registry.remove("/gone/project") == 2
        assert registry.entries() == ["/gone/project-two"]

    def test_remove_keeps_comments(self, registry: ProjectRegistry, projects: list[Path]):
        registry.add(projects[0])
        registry.remove(projects[0])
        assert registry.path.read_text(encoding="utf-8") == REGISTRY_HEADER

    def test_no_match_is_noop(self, registry: ProjectRegistry, projects: list[Path]):
        registry.add(projects[0])
        before = registry.path.read_text(encoding="utf-8")
        assert registry.remove("/not/registered") == 0
        assert registry.path.read_text(encoding="utf-8") == before

    def test_missing_registry(self, registry: ProjectRegistry):
        with pytest.raises(MissingStateError):
            registry.remove("/x")

    def test_empty_path_is_rejected(
        self, registry: ProjectRegistry, projects: list[Path], monkeypatch
    ):
        registry.add(projects[0])
        monkeypatch.chdir(projects[0])
        before = registry.path.read_text(encoding="utf-8")
        with pytest.raises(InvalidProjectPath):
            registry.remove("")
        assert registry.path.read_text(encoding="utf-8") == before


class TestEntriesAndList:
    def test_ignores_blank_and_comment_lines(self, registry: ProjectRegistry):
        registry.path.write_text(
            "# header\n\n   \n/a/one\n   # indented comment\n  /a/two  \n",
            encoding="utf-8",
        )
        assert registry.entries() == ["/a/one", "/a/two"]

    def test_missing_registry(self, registry: ProjectRegistry):
        with pytest.raises(MissingStateError):
            registry.entries()

    def test_list_reports_existence_and_counts(
        self, registry: ProjectRegistry, projects: list[Path]
    ):
        registry.add(projects[0])
        registry.add(projects[1])
        write_transcripts(projects[0] / "claude_transcripts", {"a.json": "1", "s/b.json": "2"})
        projects[1].rmdir()

        entries = registry.list()
        assert [(e.exists, e.transcript_count) for e in entries] == [(True, 2), (False, 0)]
        # Missing directories are never pruned
        assert len(registry.entries()) == 2
