from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from quizmaster.core import logging as core_logging


def _console_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [
        handler
        for handler in logger.handlers
        if getattr(handler, "_quizmaster_console", False)
    ]


def test_configure_logger_writes_json(tmp_path):
    log_dir = tmp_path / "logs"
    logger, log_path = core_logging.configure_logger(
        "quizmaster.test",
        log_dir=log_dir,
        level="INFO",
        verbose=False,
        filename="test.log",
    )

    logger.info(
        "Parsed question bank",
        extra={"path": Path("bank.md"), "question_count": 3},
    )
    logger.debug("dropped at INFO")

    class _Helper:
        def __repr__(self):  # noqa: D401
            return "helper"

    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception(
            "with error",
            extra={"obj": _Helper(), "ids": frozenset({"q-0"})},
        )
    for handler in logger.handlers:
        handler.flush()

    contents = log_path.read_text(encoding="utf-8").strip().splitlines()
    assert len(contents) == 2
    first = json.loads(contents[0])
    assert first["message"] == "Parsed question bank"
    assert first["logger"] == "quizmaster.test"
    assert first["extra"] == {"path": "bank.md", "question_count": 3}

    payload = json.loads(contents[-1])
    assert "ValueError" in payload["exception"]
    assert payload["extra"]["obj"] == "helper"
    assert payload["extra"]["ids"] == ["q-0"]

    core_logging.close_logger(logger)
    assert not logger.handlers


def test_configure_logger_default_filename_uses_last_name_part(tmp_path):
    logger, log_path = core_logging.configure_logger(
        "quizmaster.quizzer", log_dir=tmp_path
    )

    assert log_path == tmp_path / "quizzer.log"

    core_logging.close_logger(logger)


def test_configure_logger_reuses_file_handler(tmp_path):
    name = "quizmaster.test_reuse"
    logger, first = core_logging.configure_logger(
        name, log_dir=tmp_path / "a", filename="reuse.log"
    )
    _, second = core_logging.configure_logger(
        name, log_dir=tmp_path / "b", filename="reuse.log"
    )

    assert first == second
    assert len(logger.handlers) == 1

    core_logging.close_logger(logger)


def test_console_handler_toggle(tmp_path):
    log_dir = tmp_path / "logs"
    logger_name = "quizmaster.test_toggle"

    logger, _ = core_logging.configure_logger(
        logger_name, log_dir=log_dir, verbose=True, filename="toggle.log"
    )
    assert len(_console_handlers(logger)) == 1

    core_logging.configure_logger(
        logger_name, log_dir=log_dir, verbose=True, filename="toggle.log"
    )
    assert len(_console_handlers(logger)) == 1

    core_logging.configure_logger(
        logger_name, log_dir=log_dir, verbose=False, filename="toggle.log"
    )
    assert not _console_handlers(logger)

    core_logging.close_logger(logger)


def test_configure_logger_fallback_directory(tmp_path, monkeypatch):
    target = tmp_path / "blocked"
    fallback = tmp_path / "fallback"
    original_mkdir = Path.mkdir

    def fake_mkdir(self, *args, **kwargs):  # noqa: ANN001
        if self == target:
            raise PermissionError("denied")
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)
    monkeypatch.setattr(core_logging, "_fallback_log_dir", lambda: fallback)

    logger, log_path = core_logging.configure_logger(
        "quizmaster.test_blocked", log_dir=target, filename="blocked.log"
    )

    assert log_path.parent == fallback
    assert log_path.exists()

    core_logging.close_logger(logger)


def test_configure_logger_rotating_handler_fallback(tmp_path, monkeypatch):
    calls = {"count": 0}
    fallback_dir = tmp_path / "rotate-fallback"
    original_handler = core_logging.RotatingFileHandler

    def fake_handler(path, *args, **kwargs):  # noqa: ANN001
        calls["count"] += 1
        if calls["count"] == 1:
            raise PermissionError("denied")
        return original_handler(path, *args, **kwargs)

    monkeypatch.setattr(core_logging, "RotatingFileHandler", fake_handler)
    monkeypatch.setattr(core_logging, "_fallback_log_dir", lambda: fallback_dir)

    logger, log_path = core_logging.configure_logger(
        "quizmaster.test_rotating_fallback",
        log_dir=tmp_path / "primary",
        filename="rotate.log",
    )

    assert log_path.parent == fallback_dir
    assert calls["count"] == 2

    core_logging.close_logger(logger)


def test_fallback_log_dir_uses_tempdir(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "gettempdir", lambda: str(tmp_path))

    assert core_logging._fallback_log_dir() == tmp_path / "quizmaster-logs"


def test_coerce_level_defaults():
    assert core_logging._coerce_level("bogus") == logging.INFO
    assert core_logging._coerce_level("debug") == logging.DEBUG
