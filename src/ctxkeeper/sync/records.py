"""Metadata documents written into project archives.

Both documents are markdown with YAML front matter. The front matter holds the
labeled fields consumers should read; the body is free text and may be edited.

- README.md:          save-record, rewritten on every save
- CONTEXT_SUMMARY.md: load-record, front matter refreshed on every load while
                      the body (user notes) is kept
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path

import frontmatter

logger = logging.getLogger(__name__)

SAVE_RECORD = "README.md"
LOAD_RECORD = "CONTEXT_SUMMARY.md"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_LAST_SAVED_RE = re.compile(r"^\*\*Last saved:\*\*\s*(.+)$", re.MULTILINE)
# Header fields that older load-records kept in the body; the front matter replaces them
_LOAD_LABELS_RE = re.compile(
    r"^\*\*(?:Repository|Path|Last context save|Context loaded|Transcripts loaded):\*\*.*\n?",
    re.MULTILINE,
)

_SAVE_BODY = """\
# Claude Code Transcripts

**Project:** {project}
**Path:** {path}
**Last saved:** {last_saved}
**Transcript count:** {count}

## Purpose

These transcript files allow you to restore Claude Code's conversation
context when resuming work on this project.

## Usage

- **Save transcripts here:** `ctxkeeper save`
- **Load transcripts from here:** `ctxkeeper load`

## Notes

- Do not edit transcript files manually.
- You can safely delete old transcripts to save space.
"""

_SUMMARY_BODY = """\
# Context Summary: {project}

## Quick Project Overview

<!-- Add a brief overview of what this project is about -->

## Key Information Claude Should Know

<!-- What context does Claude need to be effective on this project? -->

## Recent Work Summary

<!-- What was done in the last session? -->

## Next Steps

<!-- What should be worked on next? -->

## Important Files

<!-- List key files Claude should be aware of -->

## Known Issues

<!-- Any current bugs or problems? -->
"""


def _now() -> str:
    return datetime.now().strftime(TIMESTAMP_FORMAT)


def _load(path: Path) -> frontmatter.Post | None:
    try:
        return frontmatter.load(str(path))
    except Exception as e:
        logger.debug("Unreadable metadata document %s: %s", path, e)
        return None


def write_save_record(archive: Path, project: str, project_path: Path, count: int) -> Path:
    """Write the save-record for a just-completed save."""
    last_saved = _now()
    post = frontmatter.Post(
        _SAVE_BODY.format(project=project, path=project_path, last_saved=last_saved, count=count),
        project=project,
        path=str(project_path),
        last_saved=last_saved,
        transcript_count=count,
    )
    path = archive / SAVE_RECORD
    path.write_text(frontmatter.dumps(post) + "\n", encoding="utf-8")
    return path


def read_last_saved(archive: Path) -> str | None:
    """Last save time from the save-record, if recoverable."""
    path = archive / SAVE_RECORD
    if not path.is_file():
        return None

    post = _load(path)
    if post is not None:
        value = post.metadata.get("last_saved")
        if value:
            return str(value)
        body = post.content
    else:
        body = path.read_text(encoding="utf-8", errors="replace")

    # Save-records written without front matter carry the label in the body
    match = _LAST_SAVED_RE.search(body)
    return match.group(1).strip() if match else None


def write_load_record(
    archive: Path,
    project: str,
    project_path: Path,
    loaded: int,
    last_saved: str | None,
) -> Path:
    """Write or refresh the load-record, keeping any existing notes."""
    path = archive / LOAD_RECORD
    existing = _load(path) if path.is_file() else None
    body = None
    if existing is not None and existing.content.strip():
        body = re.sub(r"\n{3,}", "\n\n", _LOAD_LABELS_RE.sub("", existing.content))

    post = frontmatter.Post(
        body if body and body.strip() else _SUMMARY_BODY.format(project=project),
        repository=project,
        path=str(project_path),
        last_context_save=last_saved or "unknown",
        context_loaded=_now(),
        transcripts_loaded=loaded,
    )
    path.write_text(frontmatter.dumps(post) + "\n", encoding="utf-8")
    return path


def read_record(path: Path) -> dict:
    """Front matter fields of a metadata document ({} if absent or unreadable)."""
    if not path.is_file():
        return {}
    post = _load(path)
    return dict(post.metadata) if post is not None else {}
