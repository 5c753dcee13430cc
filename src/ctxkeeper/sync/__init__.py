"""Transcript synchronization core.

Layout:
    ~/.claude/
    ├── transcripts/                         # GlobalRoot: the active transcript set
    │   └── **/*.json
    └── transcripts_backup_20261018_093000/  # Snapshot taken before each clear

    <project>/claude_transcripts/            # ProjectArchiveRoot
    ├── **/*.json                            # Saved transcripts (same relative paths)
    ├── README.md                            # Save-record (front matter + notes)
    └── CONTEXT_SUMMARY.md                   # Load-record (front matter + user notes)

    ~/.claude-projects.conf                  # Project registry, one path per line

Projects are identified by their canonical root, see `project.resolve_project_root()`.
"""
