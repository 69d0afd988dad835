"""Shared testing fixtures for the quizmaster test suite."""

from . import banks  # noqa: F401
from .workspace import WorkspaceBuilder  # noqa: F401

__all__ = [
    "WorkspaceBuilder",
    "banks",
]
