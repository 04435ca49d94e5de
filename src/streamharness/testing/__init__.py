# src/streamharness/testing/__init__.py
"""Helpers for tests written against the harness.

Factories for records and assertions over captured output. Captured output
interleaves records and watermarks; the helpers here pick them apart and
compare them with useful failure messages.

Usage:
    from streamharness.testing import make_records, assert_output_equals

    harness.process_elements(make_records(["a", "b"], [1, 2]))
    assert_output_equals([StreamRecord("a", 1), StreamRecord("b", 2)], harness.get_output())
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any

from streamharness.contracts.records import OutputElement, StreamRecord, Watermark

# =============================================================================
# Factories
# =============================================================================


def make_record(value: Any, timestamp: int | None = None) -> StreamRecord[Any]:
    """Build a StreamRecord."""
    return StreamRecord(value, timestamp)


def make_records(values: Iterable[Any], timestamps: Iterable[int | None] | None = None) -> list[StreamRecord[Any]]:
    """Build records pairing ``values`` with ``timestamps``.

    Without timestamps, records are timestamped 1, 2, 3, ...

    Raises:
        ValueError: If values and timestamps have different lengths.
    """
    values = list(values)
    stamps: list[int | None] = list(timestamps) if timestamps is not None else list(range(1, len(values) + 1))
    if len(stamps) != len(values):
        raise ValueError(f"Got {len(values)} values but {len(stamps)} timestamps")
    return [StreamRecord(value, ts) for value, ts in zip(values, stamps, strict=True)]


# =============================================================================
# Extraction
# =============================================================================


def extract_records(output: Iterable[OutputElement]) -> list[StreamRecord[Any]]:
    """Keep only the records of a captured output, in order."""
    return [e for e in output if isinstance(e, StreamRecord)]


def extract_values(output: Iterable[OutputElement]) -> list[Any]:
    """Values of the records of a captured output, in order."""
    return [r.value for r in extract_records(output)]


def extract_watermarks(output: Iterable[OutputElement]) -> list[Watermark]:
    """Keep only the watermarks of a captured output, in order."""
    return [e for e in output if isinstance(e, Watermark)]


# =============================================================================
# Assertions
# =============================================================================


def assert_output_equals(expected: Sequence[OutputElement], actual: Sequence[OutputElement]) -> None:
    """Assert two captured outputs are identical, element by element."""
    expected = list(expected)
    actual = list(actual)
    assert len(actual) == len(expected), f"Output length differs: expected {len(expected)}, got {len(actual)}.\nExpected: {expected}\nActual:   {actual}"
    for index, (want, got) in enumerate(zip(expected, actual, strict=True)):
        assert want == got, f"Output differs at index {index}: expected {want!r}, got {got!r}"


def _segments(output: Sequence[OutputElement]) -> list[tuple[list[StreamRecord[Any]], Watermark | None]]:
    segments: list[tuple[list[StreamRecord[Any]], Watermark | None]] = []
    current: list[StreamRecord[Any]] = []
    for element in output:
        if isinstance(element, Watermark):
            segments.append((current, element))
            current = []
        else:
            current.append(element)
    segments.append((current, None))
    return segments


def _default_sort_key(record: StreamRecord[Any]) -> Any:
    return (record.timestamp if record.timestamp is not None else -1, repr(record.value))


def assert_output_equals_sorted(
    expected: Sequence[OutputElement],
    actual: Sequence[OutputElement],
    key: Callable[[StreamRecord[Any]], Any] = _default_sort_key,
) -> None:
    """Assert equal outputs, ignoring record order between watermarks.

    Watermarks must appear in the same positions relative to each other;
    records are compared as sorted lists within each watermark-delimited
    segment. Useful when timer-driven emissions interleave nondeterministically.
    """
    expected_segments = _segments(list(expected))
    actual_segments = _segments(list(actual))
    assert len(actual_segments) == len(expected_segments), (
        f"Watermark count differs: expected {len(expected_segments) - 1}, got {len(actual_segments) - 1}"
    )
    for index, ((want_records, want_mark), (got_records, got_mark)) in enumerate(zip(expected_segments, actual_segments, strict=True)):
        assert want_mark == got_mark, f"Watermark {index} differs: expected {want_mark!r}, got {got_mark!r}"
        assert sorted(want_records, key=key) == sorted(got_records, key=key), (
            f"Records before watermark {index} differ: expected {want_records!r}, got {got_records!r}"
        )
