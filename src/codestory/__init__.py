"""CodeStory - explain source code as a step-by-step story."""

from .aligner import AlignmentSnapshot, align  # noqa: F401 -- public re-exports
from .analyzer import analyze_code
from .llm import LLMClient
from .models import (
    Annotation,
    CodeAnalysis,
    HighlightRange,
    IssueItem,
    Issues,
)
from .normalizer import normalize_annotations

__version__ = "0.1.0"

__all__ = [
    "AlignmentSnapshot",
    "Annotation",
    "CodeAnalysis",
    "HighlightRange",
    "IssueItem",
    "Issues",
    "LLMClient",
    "align",
    "analyze_code",
    "normalize_annotations",
]
