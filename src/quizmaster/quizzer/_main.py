import argparse
import logging
import random
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from ..core import config_templates
from ..core import workspace as workspace_mod
from ..core.config_templates import ConfigTemplateError
from ..core.files import matches_extension, parse_extensions, read_text_file
from ..core.logging import configure_logger
from ..core.workspace import WorkspaceError
from .config import (
    BANK_EXTENSIONS,
    CONFIG_FILENAME,
    LOW_TIME_SECONDS,
    ConfigOverrides,
    LoadResult,
    QuizConfigError,
    load_config,
)
from .history import HistoryError, HistoryStore
from .manager.parser import parse_bank
from .manager.sampler import sample_session
from .models import Question
from .session import (
    QuizSessionResult,
    render_history,
    render_review,
    render_summary,
    run_quiz_session,
)
from .timer import SessionTimer
from .view.quiz import QuizApp

InputProvider = Callable[[], str]

EMPTY_BANK_MESSAGE = (
    "No valid questions found in the file. Please check the format."
)
LOGGER_NAME = "quizmaster.quizzer"


def _load(args: argparse.Namespace, console: Console) -> Optional[LoadResult]:
    overrides = ConfigOverrides(
        session_size=getattr(args, "num", None),
        pass_threshold=getattr(args, "pass_threshold", None),
        time_limit_minutes=(
            0 if getattr(args, "no_timer", False)
            else getattr(args, "time_limit", None)
        ),
        log_level=getattr(args, "log_level", None),
    )
    try:
        return load_config(
            config_path=getattr(args, "config", None),
            overrides=overrides,
            workspace_path=getattr(args, "workspace", None),
        )
    except QuizConfigError as exc:
        console.print(f"[red]Error:[/] {exc}")
        return None


def _read_bank(
    path: Path, console: Console, logger: logging.Logger
) -> Optional[List[Question]]:
    if not matches_extension(path, parse_extensions(BANK_EXTENSIONS)):
        allowed = ", ".join(f".{ext}" for ext in BANK_EXTENSIONS)
        console.print(
            f"[red]Unsupported file type:[/] {path.name} (expected {allowed})"
        )
        return None
    try:
        text = read_text_file(path)
    except OSError as exc:
        logger.error(
            "Failed to read question bank",
            extra={"path": str(path), "error": str(exc)},
        )
        console.print(f"[red]Error reading file:[/] {path}")
        return None
    bank = parse_bank(text)
    logger.info(
        "Parsed question bank",
        extra={"path": str(path), "question_count": len(bank)},
    )
    if not bank:
        console.print(f"[yellow]{EMPTY_BANK_MESSAGE}[/]")
        return None
    return bank


def _cmd_start(
    args: argparse.Namespace,
    console: Console,
    input_provider: InputProvider,
) -> int:
    """Parse the bank, then run sessions until the user stops retrying.

    Each completed or expired session is graded once, appended to the
    history file and summarized; the follow-up menu offers review, retry
    with a fresh sample from the same bank, and history.
    """
    loaded = _load(args, console)
    if loaded is None:
        return 2
    config = loaded.config
    logger, _ = configure_logger(
        LOGGER_NAME,
        log_dir=loaded.layout.path_for("logs"),
        level=config.log_level,
        verbose=bool(args.verbose),
    )
    bank = _read_bank(args.file, console, logger)
    if bank is None:
        return 1

    store = HistoryStore(config.history_file, logger=logger)
    rng = random.Random(args.seed) if args.seed is not None else None
    while True:
        session = sample_session(bank, size=config.session_size, rng=rng)
        logger.info(
            "Sampled session",
            extra={"bank_size": len(bank), "session_size": len(session)},
        )
        timer = SessionTimer(
            config.time_limit_seconds,
            low_time_seconds=LOW_TIME_SECONDS,
        )
        result = _run_session(args, session, config.pass_threshold, timer,
                              console, input_provider, logger)
        if result is None or result.summary is None:
            return 0

        summary = result.summary
        logger.info(
            "Graded session",
            extra={
                "total_questions": summary.total_questions,
                "correct_answers": summary.correct_answers,
                "score_percentage": summary.score_percentage,
                "passed": summary.passed,
                "exit_action": result.exit_action,
            },
        )
        try:
            store.append(summary)
        except HistoryError as exc:
            logger.error("History append failed", extra={"error": str(exc)})
            console.print(f"[red]Could not save history:[/] {exc}")
        render_summary(console, summary, pass_threshold=config.pass_threshold)

        if not _after_session_menu(console, input_provider, result, store):
            return 0


def _run_session(
    args: argparse.Namespace,
    session: Sequence[Question],
    pass_threshold: int,
    timer: SessionTimer,
    console: Console,
    input_provider: InputProvider,
    logger: logging.Logger,
) -> Optional[QuizSessionResult]:
    if args.tui:
        app = QuizApp(session, pass_threshold=pass_threshold, timer=timer)
        return app.run()
    return run_quiz_session(
        session,
        console,
        input_provider,
        timer=timer,
        pass_threshold=pass_threshold,
        logger=logger,
    )


def _after_session_menu(
    console: Console,
    input_provider: InputProvider,
    result: QuizSessionResult,
    store: HistoryStore,
) -> bool:
    """Return True when the user asks for a retry."""
    while True:
        console.print(
            "[dim]r (review), t (retry), h (history), q (quit)[/]"
        )
        try:
            choice = input_provider().strip().lower()
        except (EOFError, KeyboardInterrupt, StopIteration):
            return False
        if choice in {"r", "review"}:
            render_review(console, result.outcomes)
        elif choice in {"t", "retry"}:
            return True
        elif choice in {"h", "history"}:
            _render_stored_history(console, store, limit=10)
        elif choice in {"q", "quit", ""}:
            return False
        else:
            console.print("[red]Unrecognized command. Try again.[/]")


def _render_stored_history(
    console: Console, store: HistoryStore, *, limit: Optional[int]
) -> bool:
    try:
        results = store.load(limit=limit)
    except HistoryError as exc:
        console.print(f"[red]Error:[/] {exc}")
        return False
    render_history(console, results)
    return True


def _cmd_inspect(args: argparse.Namespace, console: Console) -> int:
    logger = logging.getLogger(LOGGER_NAME)
    bank = _read_bank(args.file, console, logger)
    if bank is None:
        return 1
    table = Table(
        title=f"{args.file.name}: {len(bank)} question(s)",
        box=box.SIMPLE,
        expand=True,
    )
    table.add_column("#", justify="right")
    table.add_column("Question", overflow="fold")
    table.add_column("Options", justify="right")
    table.add_column("Correct", justify="right")
    for question in bank:
        marker = " (multi)" if question.is_multi_select else ""
        table.add_row(
            str(question.number),
            question.text[:100],
            str(len(question.options)),
            f"{question.correct_count}{marker}",
        )
    console.print(table)
    return 0


def _cmd_history(args: argparse.Namespace, console: Console) -> int:
    loaded = _load(args, console)
    if loaded is None:
        return 2
    store = HistoryStore(loaded.config.history_file)
    return 0 if _render_stored_history(console, store, limit=args.limit) else 1


def _cmd_config_init(args: argparse.Namespace, console: Console) -> int:
    try:
        target = _resolve_config_target(args)
    except WorkspaceError as exc:
        console.print(f"[red]Error:[/] {exc}")
        return 1

    template = config_templates.get_template("quizzer")
    try:
        written = template.write(target, overwrite=args.force)
    except ConfigTemplateError as exc:
        console.print(f"[red]Error:[/] {exc}")
        return 1
    console.print(f"Wrote quizmaster config to {written}")
    return 0


def _resolve_config_target(args: argparse.Namespace) -> Path:
    if args.path is not None:
        candidate = args.path.expanduser()
        if not candidate.is_absolute():
            candidate = (Path.cwd() / candidate).resolve()
        return candidate
    layout = workspace_mod.ensure_workspace(path=args.workspace)
    return layout.path_for("config") / CONFIG_FILENAME


def _add_config_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a TOML config (defaults to the workspace config).",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root for config, logs and history.",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="quizmaster quiz",
        description="Timed multiple-choice sessions from Markdown banks",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp_start = sub.add_parser("start", help="Start a quiz session")
    sp_start.add_argument("file", type=Path, help="Question bank (.md/.txt)")
    sp_start.add_argument(
        "--num", type=int, help="Questions per session (default 40)"
    )
    sp_start.add_argument(
        "--seed", type=int, help="Seed the sampler for repeatable sessions"
    )
    sp_start.add_argument(
        "--time-limit", type=int, help="Session time budget in minutes"
    )
    sp_start.add_argument("--no-timer", action="store_true")
    sp_start.add_argument(
        "--pass-threshold", type=int, help="Minimum passing percentage"
    )
    sp_start.add_argument(
        "--tui", action="store_true", help="Use the full-screen Textual UI"
    )
    sp_start.add_argument("--log-level")
    sp_start.add_argument("--verbose", action="store_true")
    _add_config_args(sp_start)

    sp_inspect = sub.add_parser(
        "inspect", help="Parse a bank and list its questions"
    )
    sp_inspect.add_argument("file", type=Path)

    sp_history = sub.add_parser("history", help="Show past session results")
    sp_history.add_argument("--limit", type=int)
    _add_config_args(sp_history)

    sp_config = sub.add_parser("config", help="Manage quizmaster.toml")
    config_sub = sp_config.add_subparsers(dest="action", required=True)
    sp_c_init = config_sub.add_parser(
        "init", help="Write the default quizmaster.toml template"
    )
    sp_c_init.add_argument("--path", type=Path)
    sp_c_init.add_argument("--workspace", type=Path)
    sp_c_init.add_argument("--force", action="store_true")
    return p


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    console: Optional[Console] = None,
    input_provider: Optional[InputProvider] = None,
) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    out = console or Console()
    provider = input_provider or (lambda: out.input("> "))
    if args.command == "start":
        return _cmd_start(args, out, provider)
    if args.command == "inspect":
        return _cmd_inspect(args, out)
    if args.command == "history":
        return _cmd_history(args, out)
    if args.command == "config" and args.action == "init":
        return _cmd_config_init(args, out)
    parser.print_help(sys.stderr)  # pragma: no cover - argparse guards
    return 2
