"""Exceptions raised by codestory's service layer."""

from __future__ import annotations


class CodeStoryError(RuntimeError):
    """Base class for errors the web and CLI layers report to the user."""


class LLMError(CodeStoryError):
    """The LLM provider could not be reached or answered with an error."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class AnalysisError(CodeStoryError):
    """The model answered, but not with a usable analysis."""
