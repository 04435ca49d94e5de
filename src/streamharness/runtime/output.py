# src/streamharness/runtime/output.py
"""Capture of everything the operator emits.

OutputCollector is the ordered sequence the test reads. CollectingOutput is
the Output sink handed to the operator: it copies every record's value
before storing it, so an operator that reuses and mutates its output buffer
cannot change what was already captured.

Thread Safety:
    The operator emits from the driving thread and from the timer thread.
    OutputCollector.append() is safe from both; entries from one thread keep
    their order, entries from different threads interleave in arrival order.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from typing import Any

from streamharness.contracts.records import OutputElement, StreamRecord, Watermark
from streamharness.core.config import ExecutionConfig
from streamharness.core.copiers import TypeCopier


class OutputCollector:
    """Ordered, append-only record of captured records and watermarks.

    Readers always get a snapshot; iterating never races a concurrent append.
    """

    def __init__(self) -> None:
        self._entries: list[OutputElement] = []
        self._lock = threading.Lock()

    def append(self, element: OutputElement) -> None:
        with self._lock:
            self._entries.append(element)

    def snapshot(self) -> list[OutputElement]:
        """Copy of the captured sequence, in capture order."""
        with self._lock:
            return list(self._entries)

    def records(self) -> list[StreamRecord[Any]]:
        """Only the captured records, in capture order."""
        return [e for e in self.snapshot() if isinstance(e, StreamRecord)]

    def watermarks(self) -> list[Watermark]:
        """Only the captured watermarks, in capture order."""
        return [e for e in self.snapshot() if isinstance(e, Watermark)]

    def values(self) -> list[Any]:
        """Values of the captured records, in capture order."""
        return [r.value for r in self.records()]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __iter__(self) -> Iterator[OutputElement]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:
        return f"OutputCollector({self.snapshot()!r})"


class CollectingOutput:
    """Output sink bound to an OutputCollector.

    Copiers are resolved lazily from the execution config, once per runtime
    value type, and cached for the lifetime of this output.
    """

    def __init__(self, collector: OutputCollector, execution_config: ExecutionConfig) -> None:
        self._collector = collector
        self._execution_config = execution_config
        self._copiers: dict[type, TypeCopier] = {}

    def collect(self, record: StreamRecord[Any]) -> None:
        value = record.value
        copier = self._copier_for(type(value))
        self._collector.append(StreamRecord(copier.copy(value), record.timestamp))

    def emit_watermark(self, mark: Watermark) -> None:
        self._collector.append(mark)

    def close(self) -> None:
        pass

    def _copier_for(self, value_type: type) -> TypeCopier:
        copier = self._copiers.get(value_type)
        if copier is None:
            copier = self._execution_config.copier_for(value_type)
            self._copiers[value_type] = copier
        return copier
