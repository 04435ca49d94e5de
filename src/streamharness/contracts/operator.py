# src/streamharness/contracts/operator.py
"""Protocols for the operator under test and the objects it talks to.

These protocols define what the harness calls and what it hands out.
They're used for type checking; the harness never discovers capabilities
with isinstance(). The checkpointed-state capability is an explicit flag
(``is_checkpointed``) that the harness reads before snapshot/restore.

Lifecycle (all calls made by the harness while holding the checkpoint lock):
    setup(task, config, output) -> open() -> [process_element / process_watermark]*
    -> [snapshot_state / restore_state / notify_of_completed_checkpoint]*
    -> close() -> dispose()
"""

from __future__ import annotations

from typing import IO, TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from streamharness.contracts.records import StreamRecord, Watermark
    from streamharness.core.config import StreamConfig
    from streamharness.runtime.task import MockStreamTask


class Output(Protocol):
    """Sink the operator emits into."""

    def collect(self, record: StreamRecord[Any]) -> None:
        """Emit a record downstream."""
        ...

    def emit_watermark(self, mark: Watermark) -> None:
        """Emit a watermark downstream."""
        ...

    def close(self) -> None: ...


class Triggerable(Protocol):
    """Target of a processing-time timer."""

    def trigger(self, timestamp: int) -> None:
        """Called (under the checkpoint lock) when the timer fires.

        Args:
            timestamp: The timestamp the timer was registered for.
        """
        ...


class StreamOperator(Protocol):
    """Lifecycle hooks every operator exposes."""

    # Checkpointed-state capability. When True the operator must also
    # implement CheckpointedOperator.
    is_checkpointed: bool

    def setup(self, task: MockStreamTask, config: StreamConfig, output: Output) -> None:
        """Receive the runtime context, configuration and output sink."""
        ...

    def open(self) -> None: ...

    def close(self) -> None:
        """Flush buffered state; called before dispose()."""
        ...

    def dispose(self) -> None:
        """Release resources; called after close()."""
        ...

    def notify_of_completed_checkpoint(self, checkpoint_id: int) -> None: ...


class OneInputStreamOperator(StreamOperator, Protocol):
    """Operator with a single input of records and watermarks."""

    def set_key_context_element(self, record: StreamRecord[Any]) -> None:
        """Select the key context for the record about to be processed."""
        ...

    def process_element(self, record: StreamRecord[Any]) -> None: ...

    def process_watermark(self, mark: Watermark) -> None: ...


class CheckpointedOperator(Protocol):
    """Optional capability: operator state can be written to and read from a stream."""

    def snapshot_state(self, out: IO[bytes], checkpoint_id: int, timestamp: int) -> None:
        """Serialize operator state into ``out``."""
        ...

    def restore_state(self, stream: IO[bytes]) -> None:
        """Replace operator state with what ``stream`` contains."""
        ...
