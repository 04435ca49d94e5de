# tests/unit/test_testing_helpers.py
"""Tests for the record factories and output assertions in streamharness.testing."""

import pytest

from streamharness.contracts import StreamRecord, Watermark
from streamharness.testing import (
    assert_output_equals,
    assert_output_equals_sorted,
    extract_records,
    extract_values,
    extract_watermarks,
    make_record,
    make_records,
)


class TestFactories:
    def test_make_record(self) -> None:
        assert make_record("a", 5) == StreamRecord("a", 5)
        assert not make_record("a").has_timestamp

    def test_make_records_default_timestamps(self) -> None:
        assert make_records(["a", "b", "c"]) == [StreamRecord("a", 1), StreamRecord("b", 2), StreamRecord("c", 3)]

    def test_make_records_explicit_timestamps(self) -> None:
        assert make_records(["a", "b"], [10, None]) == [StreamRecord("a", 10), StreamRecord("b")]

    def test_make_records_length_mismatch(self) -> None:
        with pytest.raises(ValueError, match="2 values but 1 timestamps"):
            make_records(["a", "b"], [1])


class TestExtraction:
    OUTPUT = [StreamRecord("a", 1), Watermark(1), StreamRecord("b", 2), Watermark(2)]

    def test_extract_records(self) -> None:
        assert extract_records(self.OUTPUT) == [StreamRecord("a", 1), StreamRecord("b", 2)]

    def test_extract_values(self) -> None:
        assert extract_values(self.OUTPUT) == ["a", "b"]

    def test_extract_watermarks(self) -> None:
        assert extract_watermarks(self.OUTPUT) == [Watermark(1), Watermark(2)]


class TestAssertions:
    def test_equal_outputs_pass(self) -> None:
        assert_output_equals([StreamRecord("a", 1), Watermark(1)], [StreamRecord("a", 1), Watermark(1)])

    def test_length_difference_fails(self) -> None:
        with pytest.raises(AssertionError, match="length differs"):
            assert_output_equals([StreamRecord("a", 1)], [])

    def test_element_difference_names_index(self) -> None:
        with pytest.raises(AssertionError, match="index 1"):
            assert_output_equals([StreamRecord("a", 1), Watermark(1)], [StreamRecord("a", 1), Watermark(2)])

    def test_sorted_ignores_order_within_segment(self) -> None:
        assert_output_equals_sorted(
            [StreamRecord("a", 1), StreamRecord("b", 2), Watermark(2), StreamRecord("c", 3)],
            [StreamRecord("b", 2), StreamRecord("a", 1), Watermark(2), StreamRecord("c", 3)],
        )

    def test_sorted_does_not_move_records_across_watermarks(self) -> None:
        with pytest.raises(AssertionError, match="before watermark 0"):
            assert_output_equals_sorted(
                [StreamRecord("a", 1), Watermark(1), StreamRecord("b", 2)],
                [StreamRecord("b", 2), Watermark(1), StreamRecord("a", 1)],
            )

    def test_sorted_detects_watermark_count_difference(self) -> None:
        with pytest.raises(AssertionError, match="Watermark count differs"):
            assert_output_equals_sorted([Watermark(1)], [])

    def test_sorted_custom_key(self) -> None:
        assert_output_equals_sorted(
            [StreamRecord(2), StreamRecord(1)],
            [StreamRecord(1), StreamRecord(2)],
            key=lambda r: r.value,
        )
