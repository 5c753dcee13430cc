"""Entry point: python -m ctxkeeper [save|load|reset|switch] ...

- save:    global transcripts -> project archive(s)
- load:    project archive -> global transcripts
- reset:   back up and clear global transcripts
- switch:  project registry and save-all
"""

from __future__ import annotations

from ctxkeeper.cli import app


def main() -> None:
    app(prog_name="ctxkeeper")


if __name__ == "__main__":
    main()
