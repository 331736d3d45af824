"""Tests for the annotation normalizer."""

from __future__ import annotations

import pytest

from codestory.models import Annotation
from codestory.normalizer import (
    count_lines,
    normalize_annotation,
    normalize_annotations,
    split_lines,
)


class TestLineCounting:
    def test_empty_source_has_no_lines(self):
        assert split_lines("") == []
        assert count_lines("") == 0

    def test_trailing_newline_counts_as_a_line(self):
        assert split_lines("a\nb\n") == ["a", "b", ""]
        assert count_lines("a\nb\n") == 3

    def test_single_line(self):
        assert count_lines("print('hi')") == 1


class TestCoercion:
    def test_numeric_string_start(self):
        result = normalize_annotations([{"start_line": "3", "end_line": 5}, {"start_line": 1}], 10)
        assert result == [
            Annotation(start_line=3, end_line=5, note=""),
            Annotation(start_line=1, end_line=1, note=""),
        ]

    def test_out_of_range_is_clamped_not_dropped(self):
        result = normalize_annotations([{"start_line": 8, "end_line": 20}], 5)
        assert result == [Annotation(start_line=5, end_line=5)]

    def test_missing_start_defaults_to_first_line(self):
        ann = normalize_annotation({"end_line": 4}, 10)
        assert (ann.start_line, ann.end_line) == (1, 4)

    def test_missing_end_defaults_to_start(self):
        ann = normalize_annotation({"start_line": 7}, 10)
        assert (ann.start_line, ann.end_line) == (7, 7)

    @pytest.mark.parametrize("bad", ["abc", "", None, float("nan"), float("inf"), "1e999", True, [3], {}])
    def test_non_finite_start_defaults_to_one(self, bad):
        ann = normalize_annotation({"start_line": bad, "end_line": 2}, 10)
        assert ann.start_line == 1
        assert ann.end_line == 2

    def test_python_only_literals_are_not_numbers(self):
        result = normalize_annotations([{"start_line": "1_0"}, {"start_line": 10**400}], 20)
        assert [a.start_line for a in result] == [1, 1]

    def test_oversized_end_defaults_to_start(self):
        ann = normalize_annotation({"start_line": 3, "end_line": -(10**400)}, 20)
        assert (ann.start_line, ann.end_line) == (3, 3)

    def test_non_finite_end_defaults_to_start(self):
        ann = normalize_annotation({"start_line": 4, "end_line": "later"}, 10)
        assert (ann.start_line, ann.end_line) == (4, 4)

    def test_end_before_start_is_raised_to_start(self):
        ann = normalize_annotation({"start_line": 6, "end_line": 2}, 10)
        assert (ann.start_line, ann.end_line) == (6, 6)

    def test_negative_and_zero_start(self):
        assert normalize_annotation({"start_line": -4, "end_line": 0}, 10).start_line == 1
        assert normalize_annotation({"start_line": 0}, 10) == Annotation(start_line=1, end_line=1)

    def test_fractional_lines_are_truncated(self):
        ann = normalize_annotation({"start_line": "2.7", "end_line": 4.9}, 10)
        assert (ann.start_line, ann.end_line) == (2, 4)
        assert isinstance(ann.start_line, int)
        assert isinstance(ann.end_line, int)

    def test_whitespace_around_numeric_string(self):
        ann = normalize_annotation({"start_line": " 4 ", "end_line": "6\n"}, 10)
        assert (ann.start_line, ann.end_line) == (4, 6)

    def test_note_is_coerced_to_string(self):
        assert normalize_annotation({"start_line": 1, "note": 42}, 3).note == "42"
        assert normalize_annotation({"start_line": 1, "note": None}, 3).note == ""
        assert normalize_annotation({"start_line": 1}, 3).note == ""

    def test_step_index_is_discarded(self):
        ann = normalize_annotation({"step_index": 4, "start_line": 2, "end_line": 3}, 5)
        assert ann == Annotation(start_line=2, end_line=3)

    def test_non_mapping_item_becomes_first_line(self):
        result = normalize_annotations(["oops", 7, None], 4)
        assert result == [Annotation(start_line=1, end_line=1)] * 3


class TestDegenerateInputs:
    def test_empty_source_returns_empty_list(self):
        assert normalize_annotations([{"start_line": 1, "end_line": 1}], 0) == []

    def test_negative_line_count_returns_empty_list(self):
        assert normalize_annotations([{"start_line": 1}], -3) == []

    @pytest.mark.parametrize("raw", [None, "annotations", 12, {"start_line": 1}])
    def test_non_list_input_returns_empty_list(self, raw):
        assert normalize_annotations(raw, 10) == []

    def test_empty_list(self):
        assert normalize_annotations([], 10) == []


class TestInvariants:
    WEIRD_VALUES = [None, -100, -1, 0, 1, 2, 3, 999, "2", "x", 2.5, float("-inf"), True]

    def test_bounds_hold_for_arbitrary_input(self):
        raw = [
            {"start_line": s, "end_line": e}
            for s in self.WEIRD_VALUES
            for e in self.WEIRD_VALUES
        ]
        for total_lines in (1, 2, 3, 7):
            result = normalize_annotations(raw, total_lines)
            assert len(result) == len(raw)
            for ann in result:
                assert 1 <= ann.start_line <= ann.end_line <= total_lines

    def test_idempotent(self):
        raw = [
            {"start_line": "9", "end_line": 2, "note": "a"},
            {"start_line": 3, "end_line": 40},
            {"start_line": None},
        ]
        once = normalize_annotations(raw, 12)
        twice = normalize_annotations([a.model_dump() for a in once], 12)
        assert twice == once

    def test_accepts_already_normalized_annotations(self):
        once = normalize_annotations([{"start_line": 2, "end_line": 5, "note": "n"}], 6)
        assert normalize_annotations(once, 6) == once
