from __future__ import annotations

import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from fixtures import WorkspaceBuilder, banks  # noqa: E402

# Ensure src/ is importable when the package is not installed
ROOT = TESTS_DIR.parent
for extra in (ROOT, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a helper bound to pytest's per-test tmp directory."""

    return WorkspaceBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _isolate_workspace(tmp_path: Path, monkeypatch) -> None:
    """Keep config, logs and history out of the real home directory."""

    monkeypatch.setenv("QUIZMASTER_DATA_HOME", str(tmp_path / "qm-home"))
    for key in (
        "QUIZMASTER_CONFIG",
        "QUIZMASTER_SESSION_SIZE",
        "QUIZMASTER_PASS_THRESHOLD",
        "QUIZMASTER_TIME_LIMIT_MINUTES",
        "QUIZMASTER_LOG_LEVEL",
        "QUIZMASTER_HISTORY_FILE",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def bank_text() -> str:
    return banks.FIVE_QUESTIONS
