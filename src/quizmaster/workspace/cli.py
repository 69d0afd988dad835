"""CLI entry point for quizmaster workspace bootstrap."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Mapping, Sequence

from quizmaster.core import workspace as workspace_mod


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quizmaster init",
        description=(
            "Create the quizmaster workspace with its config, logs and "
            "history directories."
        ),
    )
    parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Override the workspace root (defaults to QUIZMASTER_DATA_HOME "
            "or ~/.quizmaster-data)."
        ),
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational output on success.",
    )
    return parser


def _status(created: Mapping[str, bool], key: str) -> str:
    return "created" if created.get(key, False) else "exists"


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        layout = workspace_mod.ensure_workspace(path=args.path)
    except workspace_mod.WorkspaceError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1

    if args.quiet:
        return 0

    home_status = _status(layout.created, "home")
    lines = [f"Workspace ready at {layout.home} ({home_status})"]
    width = max((len(name) for name in layout.directories), default=0)
    for name, directory in layout.items():
        status = _status(layout.created, name)
        lines.append(f"  {name.ljust(width)}  {directory} ({status})")

    sys.stdout.write("\n".join(lines) + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
