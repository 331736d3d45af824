"""Canonical aligner -- pair walkthrough steps with line ranges.

Annotations are ordered top-to-bottom by ``start_line`` and the i-th one
becomes the range for walkthrough step i. Any ``step_index`` the model sent
is ignored. The result is an immutable :class:`AlignmentSnapshot` that is
rebuilt for every analysis and never mutated afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .models import Annotation, HighlightRange
from .normalizer import normalize_annotations, split_lines

logger = logging.getLogger(__name__)


def canonicalize(annotations: Sequence[Annotation], num_steps: int) -> list[Annotation]:
    """Keep at most one annotation per step, in file order."""
    if num_steps <= 0 or not annotations:
        return []
    # sorted() is stable: equal start lines keep the order the model used.
    ordered = sorted(annotations, key=lambda ann: ann.start_line)
    return ordered[:num_steps]


def build_line_index(canonical: Sequence[Annotation]) -> dict[int, int]:
    """Map every covered line to the first step that claims it."""
    line_to_step: dict[int, int] = {}
    for step_index, ann in enumerate(canonical):
        for line in range(ann.start_line, ann.end_line + 1):
            line_to_step.setdefault(line, step_index)
    return line_to_step


def _is_blank(lines: Sequence[str], line_number: int) -> bool:
    if 1 <= line_number <= len(lines):
        return not lines[line_number - 1].strip()
    return True


def trim_blank_edges(start_line: int, end_line: int, lines: Sequence[str]) -> tuple[int, int]:
    """Shrink ``[start_line, end_line]`` past blank lines at either edge.

    The range only ever shrinks. A range made entirely of blank lines
    collapses to its original first line.
    """
    first = start_line
    while first <= end_line and _is_blank(lines, first):
        first += 1
    if first > end_line:
        return start_line, start_line

    last = end_line
    while last > first and _is_blank(lines, last):
        last -= 1
    return first, last


@dataclass(frozen=True)
class AlignmentSnapshot:
    """Step/line alignment for one rendered analysis."""

    lines: tuple[str, ...] = ()
    canonical: tuple[Annotation, ...] = ()
    line_to_step: Mapping[int, int] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def total_lines(self) -> int:
        return len(self.lines)

    def step_for_line(self, line_number: int) -> int | None:
        return self.line_to_step.get(line_number)

    def highlight_range_for_step(self, step_index: int) -> HighlightRange | None:
        """Trimmed range to paint for *step_index*, or None if it has none."""
        if not 0 <= step_index < len(self.canonical):
            return None
        ann = self.canonical[step_index]
        start, end = trim_blank_edges(ann.start_line, ann.end_line, self.lines)
        return HighlightRange(start_line=start, end_line=end)

    def highlight_ranges(self) -> list[HighlightRange]:
        ranges: list[HighlightRange] = []
        for ann in self.canonical:
            start, end = trim_blank_edges(ann.start_line, ann.end_line, self.lines)
            ranges.append(HighlightRange(start_line=start, end_line=end))
        return ranges

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready form consumed by the browser code view."""
        return {
            "total_lines": self.total_lines,
            "canonical": [ann.model_dump() for ann in self.canonical],
            # JSON object keys are strings.
            "line_to_step": {str(line): step for line, step in self.line_to_step.items()},
            "highlights": [rng.model_dump() for rng in self.highlight_ranges()],
        }


EMPTY_ALIGNMENT = AlignmentSnapshot()


def align(source_text: str, num_steps: int, raw_annotations: Any) -> AlignmentSnapshot:
    """Build the alignment snapshot for *source_text* and a walkthrough of *num_steps*."""
    lines = split_lines(source_text)
    if not lines:
        return EMPTY_ALIGNMENT
    if num_steps <= 0:
        return AlignmentSnapshot(lines=tuple(lines))

    annotations = normalize_annotations(raw_annotations, len(lines))
    canonical = canonicalize(annotations, num_steps)
    if len(annotations) > len(canonical):
        logger.debug(
            "Dropped %d annotation(s) beyond %d walkthrough step(s).",
            len(annotations) - len(canonical),
            num_steps,
        )

    return AlignmentSnapshot(
        lines=tuple(lines),
        canonical=tuple(canonical),
        line_to_step=MappingProxyType(build_line_index(canonical)),
    )
