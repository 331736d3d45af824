"""Pydantic models for codestory's analysis payloads."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Severity = Literal["low", "medium", "high", "critical"]

SEVERITIES: tuple[str, ...] = ("low", "medium", "high", "critical")

ISSUE_CATEGORIES: tuple[str, ...] = ("performance", "security", "maintainability")


# ---------------------------------------------------------------------------
# Line-range primitives
# ---------------------------------------------------------------------------

class Annotation(BaseModel):
    """A validated line range tied to one walkthrough step.

    Both bounds are 1-based, inclusive and lie within the source text the
    annotation was normalized against; ``end_line >= start_line`` always.
    """

    model_config = ConfigDict(frozen=True)

    start_line: int
    end_line: int
    note: str = ""


class HighlightRange(BaseModel):
    """Lines to paint for a step once blank edges are trimmed off."""

    model_config = ConfigDict(frozen=True)

    start_line: int
    end_line: int


# ---------------------------------------------------------------------------
# Analysis result
# ---------------------------------------------------------------------------

class IssueItem(BaseModel):
    """A single reported problem with a severity label."""

    message: str
    severity: Severity = "medium"
    explanation: str = ""


class Issues(BaseModel):
    """Issues grouped by category."""

    performance: list[IssueItem] = Field(default_factory=list)
    security: list[IssueItem] = Field(default_factory=list)
    maintainability: list[IssueItem] = Field(default_factory=list)

    def by_category(self) -> dict[str, list[IssueItem]]:
        return {name: getattr(self, name) for name in ISSUE_CATEGORIES}


class CodeAnalysis(BaseModel):
    """Structured explanation of a code snippet.

    ``annotations`` is kept as the model sent it: line numbers are only
    trusted after :func:`codestory.normalizer.normalize_annotations`.
    """

    summary: str = ""
    walkthrough: list[str] = Field(default_factory=list)
    risk_overview: str = ""
    issues: Issues = Field(default_factory=Issues)
    suggestions: list[str] = Field(default_factory=list)
    annotations: list[dict[str, Any]] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# HTTP request bodies
# ---------------------------------------------------------------------------

class AnalyzeRequest(BaseModel):
    """Body of ``POST /analyze``.

    ``code`` is left untyped so a missing or non-string value reaches the
    handler and gets the same 400 response as a blank one.
    """

    model_config = ConfigDict(populate_by_name=True)

    code: Any = None
    language: str | None = None
    skill_level: str | None = Field(default=None, alias="skillLevel")
    provider: str | None = None
    model: str | None = None
