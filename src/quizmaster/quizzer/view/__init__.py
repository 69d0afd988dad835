"""Textual front end for quiz sessions."""

from .quiz import QuizApp, QuestionView

__all__ = ["QuizApp", "QuestionView"]
