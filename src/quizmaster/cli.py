"""Unified CLI entry point for quizmaster."""

from __future__ import annotations

import inspect
import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Callable, Iterable, Mapping, Optional, Sequence


CommandHandler = Callable[[Sequence[str]], int]


@dataclass(frozen=True)
class CommandSpec:
    """Represents a quizmaster subcommand."""

    name: str
    summary: str
    handler: Optional[CommandHandler] = None
    is_tui: bool = False


_COMMAND_SPECS: Sequence[CommandSpec] = (
    CommandSpec(
        name="init",
        summary="Bootstrap the quizmaster workspace (config, logs, history).",
        handler=lambda argv: _run_module_command(
            "quizmaster.workspace.cli",
            "main",
            "quizmaster init",
            argv,
        ),
    ),
    CommandSpec(
        name="quiz",
        summary="Run, inspect and review quiz sessions from a question bank.",
        is_tui=True,
        handler=lambda argv: _run_module_command(
            "quizmaster.quizzer._main",
            "main",
            "quizmaster quiz",
            argv,
        ),
    ),
)

COMMANDS: Mapping[str, CommandSpec] = {
    spec.name: spec for spec in _COMMAND_SPECS
}


def _sorted_specs() -> Iterable[CommandSpec]:
    return _COMMAND_SPECS


def _command_name_width() -> int:
    return max(len(spec.name) for spec in _sorted_specs()) if COMMANDS else 0


def format_command_table() -> str:
    """Return a formatted command table for help output."""

    width = _command_name_width()
    lines = ["Available commands:"]
    for spec in _sorted_specs():
        name = spec.name.ljust(width)
        suffix = " (TUI)" if spec.is_tui else ""
        lines.append(f"  {name}  {spec.summary}{suffix}")
    return "\n".join(lines)


def format_usage() -> str:
    """Build the top-level usage banner with command listings."""

    parts = [
        "Usage: quizmaster <command> [args...]",
        "Run `quizmaster list` for commands or "
        "`quizmaster help <name>` for details.",
        "",
        format_command_table(),
    ]
    return "\n".join(parts)


def _print(
    text: str, *, stream: Optional[Callable[[str], None]] = None
) -> None:
    target = stream if stream is not None else sys.stdout.write
    if text:
        target(text + "\n")


def _handle_list() -> int:
    _print(format_command_table())
    return 0


def _handle_version() -> int:
    try:
        version = metadata.version("quizmaster")
    except metadata.PackageNotFoundError:
        version = "unknown"
    _print(version)
    return 0


def _handle_help(argv: Sequence[str]) -> int:
    if not argv:
        _print(format_usage())
        return 0

    command = argv[0]
    spec = COMMANDS.get(command)
    if not spec:
        _print(f"Unknown command '{command}'.", stream=sys.stderr.write)
        _print(format_command_table(), stream=sys.stderr.write)
        return 2

    _print(f"{spec.name}: {spec.summary}")
    _print(f"Run `quizmaster {spec.name} --help` for CLI-specific options.")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(argv if argv is not None else sys.argv[1:])

    if not args:
        _print(format_usage())
        return 2

    head, *tail = args

    if head in ("-h", "--help"):
        _print(format_usage())
        return 0

    if head in ("-V", "--version", "version"):
        return _handle_version()

    if head == "list":
        return _handle_list()

    if head == "help":
        return _handle_help(tail)

    spec = COMMANDS.get(head)
    if spec and spec.handler:
        return spec.handler(tail)

    _print(f"Unknown command '{head}'.", stream=sys.stderr.write)
    _print(format_command_table(), stream=sys.stderr.write)
    return 2


def _run_module_command(
    module_name: str,
    func_name: str,
    prog_name: str,
    argv: Sequence[str],
) -> int:
    module = import_module(module_name)
    target = getattr(module, func_name)
    return _invoke_main(target, prog_name, argv)


def _invoke_main(
    func: Callable[..., object], prog_name: str, argv: Sequence[str]
) -> int:
    accepts_argv = _accepts_argv(func)
    args = list(argv)
    old_argv = sys.argv
    sys.argv = [prog_name, *args]
    try:
        result = func(args) if accepts_argv else func()
    except SystemExit as exc:
        return _normalize_system_exit(exc)
    finally:
        sys.argv = old_argv

    if isinstance(result, int) and not isinstance(result, bool):
        return result
    return 0


def _accepts_argv(func: Callable[..., object]) -> bool:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        return False

    for param in signature.parameters.values():
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
            inspect.Parameter.VAR_POSITIONAL,
        ):
            return True
    return False


def _normalize_system_exit(exc: SystemExit) -> int:
    code = exc.code
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    _print(str(code), stream=sys.stderr.write)
    return 1


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
