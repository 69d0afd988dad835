"""Logging helpers shared across quizmaster commands."""

from __future__ import annotations

import json
import logging
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

__all__ = [
    "JsonLogFormatter",
    "configure_logger",
    "close_logger",
]

_FILE_MARK = "_quizmaster_file"
_CONSOLE_MARK = "_quizmaster_console"
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


class JsonLogFormatter(logging.Formatter):
    """Emit log records as one JSON object per line.

    Fields passed through ``extra=`` end up under the ``extra`` key.
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: _coerce_value(value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS
        }
        if extras:
            payload["extra"] = extras
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(payload, ensure_ascii=True)


def configure_logger(
    name: str,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    filename: str | None = None,
) -> tuple[logging.Logger, Path]:
    """Return a namespaced logger writing JSON lines under ``log_dir``.

    Repeated calls reuse the managed file handler. ``verbose`` adds a plain
    stderr handler and lowers the file threshold to DEBUG.
    """

    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    log_name = filename or f"{name.rsplit('.', 1)[-1]}.log"
    handler = _managed_handler(logger, _FILE_MARK)
    if handler is None:
        handler, log_path = _open_file_handler(
            log_dir, log_name, max_bytes, backup_count
        )
        handler.setFormatter(JsonLogFormatter())
        setattr(handler, _FILE_MARK, True)
        logger.addHandler(handler)
    else:
        log_path = Path(handler.baseFilename)  # type: ignore[attr-defined]
    handler.setLevel(logging.DEBUG if verbose else _coerce_level(level))

    console = _managed_handler(logger, _CONSOLE_MARK)
    if verbose and console is None:
        console = logging.StreamHandler(stream=sys.stderr)
        console.setLevel(logging.DEBUG)
        console.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        setattr(console, _CONSOLE_MARK, True)
        logger.addHandler(console)
    elif not verbose and console is not None:
        logger.removeHandler(console)
        console.close()

    return logger, log_path


def close_logger(logger: logging.Logger) -> None:
    """Detach and close every handler owned by ``logger``."""

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def _managed_handler(
    logger: logging.Logger, mark: str
) -> logging.Handler | None:
    for handler in logger.handlers:
        if getattr(handler, mark, False):
            return handler
    return None


def _open_file_handler(
    log_dir: Path, filename: str, max_bytes: int, backup_count: int
) -> tuple[RotatingFileHandler, Path]:
    for directory in (log_dir, _fallback_log_dir()):
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path = directory / filename
            handler = RotatingFileHandler(
                path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        except PermissionError:
            continue
        try:
            path.chmod(0o600)
        except PermissionError:  # pragma: no cover - depends on filesystem
            pass
        return handler, path
    raise PermissionError(f"Unable to open log file {filename!r}")


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / "quizmaster-logs"


def _coerce_level(level: str) -> int:
    numeric = logging.getLevelName(level.upper())
    if isinstance(numeric, int):
        return numeric
    return logging.INFO


def _coerce_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(key): _coerce_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_coerce_value(item) for item in value]
    return repr(value)
