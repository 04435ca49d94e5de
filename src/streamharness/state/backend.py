# src/streamharness/state/backend.py
"""State backend abstraction used by snapshot() and restore().

A StateBackend creates a CheckpointStreamFactory per (job, operator). The
factory opens a CheckpointStateOutputStream per checkpoint; closing that
stream with close_and_get_handle() yields a StreamStateHandle, which later
opens an input stream for restore.

    backend.create_stream_factory(job_id, "test_op")
        .create_checkpoint_state_output_stream(checkpoint_id, timestamp)
        -> write(...) -> close_and_get_handle() -> handle
    handle.open_input_stream() -> read(...)
"""

from __future__ import annotations

import io
from abc import abstractmethod
from typing import IO, Protocol

from streamharness.contracts.types import JobID


class StreamStateHandle(Protocol):
    """Opaque reference to checkpoint bytes.

    Handles are never mutated after creation. Whether a handle can be
    restored more than once is backend-defined.
    """

    @property
    def state_size(self) -> int:
        """Size of the referenced state in bytes."""
        ...

    def open_input_stream(self) -> IO[bytes]:
        """Open a fresh stream positioned at the start of the state."""
        ...

    def discard_state(self) -> None:
        """Release whatever storage backs this handle."""
        ...


class CheckpointStateOutputStream(io.RawIOBase):
    """Write-only stream that turns into a StreamStateHandle when closed.

    close() without close_and_get_handle() discards everything written.
    Usable as a context manager; leaving the ``with`` block closes (and
    therefore discards) the stream unless a handle was already taken.
    """

    def readable(self) -> bool:
        return False

    def seekable(self) -> bool:
        return False

    def writable(self) -> bool:
        return True

    @abstractmethod
    def close_and_get_handle(self) -> StreamStateHandle:
        """Close the stream and return a handle to the written state."""
        ...


class CheckpointStreamFactory(Protocol):
    """Opens checkpoint output streams for one (job, operator)."""

    def create_checkpoint_state_output_stream(self, checkpoint_id: int, timestamp: int) -> CheckpointStateOutputStream: ...

    def close(self) -> None: ...


class StateBackend(Protocol):
    """Pluggable storage for checkpoint data."""

    def create_stream_factory(self, job_id: JobID, operator_name: str) -> CheckpointStreamFactory:
        """Create the stream factory for one operator of one job."""
        ...
