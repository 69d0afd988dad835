"""Configuration loader for quiz sessions."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from quizmaster.core import config as core_config
from quizmaster.core import workspace as workspace_mod

CONFIG_FILENAME = "quizmaster.toml"
CONFIG_ENV = "QUIZMASTER_CONFIG"
ENV_PREFIX = "QUIZMASTER_"

SESSION_SIZE = 40
PASS_THRESHOLD = 80
TIME_LIMIT_MINUTES = 60
LOW_TIME_SECONDS = 300
HISTORY_FILENAME = "results.jsonl"
BANK_EXTENSIONS: tuple[str, ...] = ("md", "txt")

_DEFAULT_LOG_LEVEL = "INFO"


class QuizConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class QuizConfig:
    """Fully resolved configuration for a quiz run."""

    session_size: int
    pass_threshold: int
    time_limit_minutes: int
    history_file: Path
    log_level: str

    @property
    def time_limit_seconds(self) -> int:
        return self.time_limit_minutes * 60


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    session_size: Optional[int] = None
    pass_threshold: Optional[int] = None
    time_limit_minutes: Optional[int] = None
    history_file: Optional[Path] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    """Result of loading configuration, including workspace context."""

    config: QuizConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML defaults."""

    overrides = overrides or ConfigOverrides()
    env_map = env if env is not None else os.environ

    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise QuizConfigError(str(exc)) from exc
    default_path = layout.path_for("config") / CONFIG_FILENAME

    requested_path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=default_path,
    )

    defaults = _default_table()
    loaded_path: Optional[Path]

    if requested_path.exists():
        loaded_path = requested_path
        try:
            parsed = core_config.load_toml(requested_path)
            core_config.merge_defaults(defaults, parsed)
        except core_config.TomlConfigError as exc:
            raise QuizConfigError(str(exc)) from exc
    else:
        loaded_path = None
        if config_path is not None or _has_env_config(env_map):
            raise QuizConfigError(f"Config file not found: {requested_path}")

    session_size = _resolve_int(
        "session.size",
        overrides.session_size,
        _parse_env_int(env_map, "SESSION_SIZE"),
        defaults["session"]["size"],
        minimum=1,
    )
    pass_threshold = _resolve_int(
        "session.pass_threshold",
        overrides.pass_threshold,
        _parse_env_int(env_map, "PASS_THRESHOLD"),
        defaults["session"]["pass_threshold"],
        minimum=0,
        maximum=100,
    )
    time_limit = _resolve_int(
        "session.time_limit_minutes",
        overrides.time_limit_minutes,
        _parse_env_int(env_map, "TIME_LIMIT_MINUTES"),
        defaults["session"]["time_limit_minutes"],
        minimum=0,
    )

    history_file = _resolve_history_file(
        candidate=_pick_first(
            overrides.history_file,
            _parse_env_path(env_map, "HISTORY_FILE"),
            _coerce_optional_path(defaults["history"]["file"]),
        ),
        layout=layout,
    )

    log_level = _resolve_log_level(
        overrides.log_level,
        _parse_env_string(env_map, "LOG_LEVEL"),
        defaults["logging"]["level"],
    )

    config = QuizConfig(
        session_size=session_size,
        pass_threshold=pass_threshold,
        time_limit_minutes=time_limit,
        history_file=history_file,
        log_level=log_level,
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    return {
        "session": {
            "size": SESSION_SIZE,
            "pass_threshold": PASS_THRESHOLD,
            "time_limit_minutes": TIME_LIMIT_MINUTES,
        },
        "history": {"file": None},
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = env_map.get(CONFIG_ENV)
    if env_candidate and env_candidate.strip():
        return Path(env_candidate.strip()).expanduser()
    return default_path


def _has_env_config(env_map: Mapping[str, str]) -> bool:
    env_candidate = env_map.get(CONFIG_ENV)
    return bool(env_candidate and env_candidate.strip())


def _resolve_int(
    key: str,
    *candidates: object,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> int:
    value = _pick_first(*candidates)
    if isinstance(value, bool) or not isinstance(value, int):
        raise QuizConfigError(f"{key} must be an integer.")
    if minimum is not None and value < minimum:
        raise QuizConfigError(f"{key} must be >= {minimum}.")
    if maximum is not None and value > maximum:
        raise QuizConfigError(f"{key} must be <= {maximum}.")
    return value


def _coerce_optional_path(value: object) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        return Path(raw)
    raise QuizConfigError("history.file must be a string when provided.")


def _resolve_history_file(
    *, candidate: object, layout: workspace_mod.WorkspaceLayout
) -> Path:
    if candidate is None:
        return layout.path_for("history") / HISTORY_FILENAME
    path = Path(candidate).expanduser()  # type: ignore[arg-type]
    if not path.is_absolute():
        return (layout.home / path).resolve()
    return path.resolve()


def _resolve_log_level(
    override: Optional[str],
    env_value: Optional[str],
    file_value: object,
) -> str:
    candidate = _pick_first(override, env_value, file_value)
    if not isinstance(candidate, str):
        raise QuizConfigError("logging.level must be a string.")
    level = candidate.strip()
    if not level:
        raise QuizConfigError("logging.level must be a non-empty string.")
    return level.upper()


def _parse_env_int(env_map: Mapping[str, str], key: str) -> Optional[int]:
    raw = _parse_env_string(env_map, key)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise QuizConfigError(
            f"{ENV_PREFIX}{key} must be an integer, got '{raw}'."
        ) from exc


def _parse_env_path(env_map: Mapping[str, str], key: str) -> Optional[Path]:
    raw = _parse_env_string(env_map, key)
    if raw is None:
        return None
    return Path(raw).expanduser()


def _parse_env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
