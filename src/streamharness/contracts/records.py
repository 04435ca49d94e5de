# src/streamharness/contracts/records.py
"""Elements that flow into and out of the operator under test.

StreamRecord and Watermark are the two kinds of element an operator can
emit. The captured output is a sequence of ``OutputElement``, a tagged union
of the two; ``output_kind()`` is the discriminator.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeAlias, TypeVar

from streamharness.contracts.enums import OutputKind

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class StreamRecord(Generic[T]):
    """An immutable timestamped value.

    A record without a timestamp (``timestamp=None``) compares unequal to the
    same value carrying any timestamp, matching how event-time operators
    treat missing timestamps.

    Example:
        record = StreamRecord("a", timestamp=1)
        assert record.has_timestamp
        assert record.replace("b") == StreamRecord("b", timestamp=1)
    """

    value: T
    timestamp: int | None = None

    @property
    def has_timestamp(self) -> bool:
        """Whether the record carries an event timestamp."""
        return self.timestamp is not None

    def replace(self, value: Any) -> StreamRecord[Any]:
        """Return a new record with ``value`` and this record's timestamp."""
        return StreamRecord(value, self.timestamp)

    @property
    def kind(self) -> OutputKind:
        return OutputKind.RECORD


@dataclass(frozen=True, slots=True, order=True)
class Watermark:
    """Progress marker: no record with a smaller timestamp will follow.

    Watermarks are immutable and stored in the captured output as-is.
    """

    MAX: ClassVar[Watermark]

    timestamp: int

    @property
    def kind(self) -> OutputKind:
        return OutputKind.WATERMARK


Watermark.MAX = Watermark(sys.maxsize)

OutputElement: TypeAlias = StreamRecord[Any] | Watermark
"""One captured emission: either a copied record or a watermark."""


def output_kind(element: OutputElement) -> OutputKind:
    """Return the discriminator of a captured output element.

    Raises:
        TypeError: If ``element`` is neither a StreamRecord nor a Watermark.
    """
    match element:
        case StreamRecord():
            return OutputKind.RECORD
        case Watermark():
            return OutputKind.WATERMARK
    raise TypeError(f"Not an output element: {type(element).__name__}")
