"""File helpers shared across quizmaster modules."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Sequence, Set

__all__ = [
    "matches_extension",
    "parse_extensions",
    "read_text_file",
]


def parse_extensions(
    values: Optional[Sequence[str]],
    *,
    default: Optional[Iterable[str]] = None,
) -> Set[str]:
    """Normalize extension strings to a lowercase set without leading dots.

    Parameters
    ----------
    values:
        Raw extension inputs (with or without leading dots).
    default:
        Fallback extensions when ``values`` is empty. Defaults to ``{"txt"}``.
    """
    fallback = set(default or {"txt"})
    if not values:
        return fallback

    normalized: Set[str] = set()
    for item in values:
        if not isinstance(item, str):
            continue
        candidate = item.strip().lower().lstrip(".")
        if candidate:
            normalized.add(candidate)
    return normalized or fallback


def matches_extension(path: Path, extensions: Set[str]) -> bool:
    return path.suffix.lower().lstrip(".") in extensions


def read_text_file(path: Path) -> str:
    """Read a text file as UTF-8 with replacement for decode errors."""
    with Path(path).open("r", encoding="utf-8", errors="replace") as fh:
        return fh.read()
