"""Append-only store for graded session results."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from .models import ResultSummary
from .utils import append_jsonl, iter_jsonl


class HistoryError(RuntimeError):
    """Raised when the history file cannot be read or written."""


class HistoryStore:
    """JSON Lines history of :class:`ResultSummary` records.

    Records are only ever appended; ``load`` returns them newest first.
    """

    def __init__(
        self, path: Path, *, logger: Optional[logging.Logger] = None
    ) -> None:
        self.path = Path(path)
        self._logger = logger or logging.getLogger(__name__)

    def append(self, summary: ResultSummary) -> None:
        try:
            append_jsonl(self.path, [summary.to_dict()])
        except OSError as exc:
            raise HistoryError(
                f"Unable to write history file {self.path}: {exc}"
            ) from exc
        self._logger.info(
            "Appended session result",
            extra={
                "history_file": str(self.path),
                "score_percentage": summary.score_percentage,
                "passed": summary.passed,
            },
        )

    def load(self, limit: Optional[int] = None) -> List[ResultSummary]:
        if not self.path.exists():
            return []
        results: List[ResultSummary] = []
        try:
            for lineno, record in iter_jsonl(self.path):
                summary = self._decode(record)
                if summary is None:
                    self._logger.warning(
                        "Skipped malformed history line",
                        extra={"history_file": str(self.path), "line": lineno},
                    )
                    continue
                results.append(summary)
        except OSError as exc:
            raise HistoryError(
                f"Unable to read history file {self.path}: {exc}"
            ) from exc
        results.reverse()
        if limit is not None and limit > 0:
            return results[:limit]
        return results

    @staticmethod
    def _decode(record: object) -> Optional[ResultSummary]:
        if not isinstance(record, dict):
            return None
        try:
            return ResultSummary.from_dict(record)
        except (KeyError, TypeError, ValueError):
            return None


__all__ = ["HistoryError", "HistoryStore"]
