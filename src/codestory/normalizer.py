"""Annotation normalizer -- turn untrusted model line ranges into Annotations.

This is the only place where line numbers coming back from the LLM are
coerced. Everything downstream works with :class:`Annotation` values whose
bounds are already inside ``[1, total_lines]``.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from .models import Annotation

logger = logging.getLogger(__name__)


def split_lines(source_text: str) -> list[str]:
    """Split source into the lines the code view draws.

    The empty string has no lines at all.
    """
    if not source_text:
        return []
    return source_text.split("\n")


def count_lines(source_text: str) -> int:
    return len(split_lines(source_text))


def _coerce_number(value: Any) -> int | float | None:
    """Return *value* as a finite number, or None if it cannot be one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        # Integers too large for a float read as infinity in JSON clients.
        try:
            float(value)
        except OverflowError:
            return None
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        # float() also takes digit separators ("1_0"), which JSON numbers never have.
        if "_" in value:
            return None
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def normalize_annotation(raw: Any, total_lines: int) -> Annotation | None:
    """Clamp one raw annotation into ``[1, total_lines]``.

    Returns None only when there are no lines to point at.
    """
    if total_lines < 1:
        return None
    if not isinstance(raw, Mapping):
        raw = {}

    start = _coerce_number(raw.get("start_line"))
    if start is None:
        start = 1
    end = _coerce_number(raw.get("end_line"))
    if end is None:
        end = start

    start_line = int(max(1, min(total_lines, start)))
    end_line = int(max(start_line, min(total_lines, end)))

    note = raw.get("note")
    return Annotation(
        start_line=start_line,
        end_line=end_line,
        note="" if note is None else str(note),
    )


def normalize_annotations(raw_annotations: Any, total_lines: int) -> list[Annotation]:
    """Normalize a list of raw annotations against a source of *total_lines*.

    Never raises: malformed entries are clamped, a non-list input or an
    empty source yields an empty list.
    """
    if total_lines < 1 or not isinstance(raw_annotations, (list, tuple)):
        return []

    normalized: list[Annotation] = []
    for raw in raw_annotations:
        if isinstance(raw, Annotation):
            raw = raw.model_dump()
        ann = normalize_annotation(raw, total_lines)
        if ann is not None:
            normalized.append(ann)

    logger.debug(
        "Normalized %d annotation(s) against %d line(s).", len(normalized), total_lines
    )
    return normalized
