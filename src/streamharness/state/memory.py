# src/streamharness/state/memory.py
"""In-memory state backend, the harness default.

Checkpoint bytes live in the handle object itself; nothing is persisted and
everything is released with the last reference to the handle. Handles can be
restored any number of times.
"""

from __future__ import annotations

import io
import uuid
from dataclasses import dataclass, field

import structlog

from streamharness.contracts.errors import StateSizeExceededError
from streamharness.contracts.types import JobID
from streamharness.state.backend import CheckpointStateOutputStream

logger = structlog.get_logger(__name__)

DEFAULT_MAX_STATE_SIZE = 5 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class ByteStreamStateHandle:
    """State handle holding the checkpoint bytes directly."""

    handle_name: str
    data: bytes = field(repr=False)

    @property
    def state_size(self) -> int:
        return len(self.data)

    def open_input_stream(self) -> io.BytesIO:
        return io.BytesIO(self.data)

    def discard_state(self) -> None:
        # Bytes are owned by the handle; garbage collection releases them
        pass


class MemoryCheckpointOutputStream(CheckpointStateOutputStream):
    """Buffers checkpoint bytes in memory up to ``max_size``."""

    def __init__(self, max_size: int, checkpoint_id: int, timestamp: int) -> None:
        super().__init__()
        self._buffer: io.BytesIO | None = io.BytesIO()
        self._max_size = max_size
        self.checkpoint_id = checkpoint_id
        self.timestamp = timestamp

    def write(self, b: bytes | bytearray | memoryview) -> int:  # type: ignore[override]
        if self._buffer is None:
            raise ValueError("write to closed checkpoint stream")
        return self._buffer.write(b)

    def tell(self) -> int:
        if self._buffer is None:
            raise ValueError("tell on closed checkpoint stream")
        return self._buffer.tell()

    def close_and_get_handle(self) -> ByteStreamStateHandle:
        """Close the stream and return a handle to the bytes written.

        Raises:
            ValueError: If the stream was already closed.
            StateSizeExceededError: If more than ``max_size`` bytes were written.
                The stream is closed and its bytes discarded.
        """
        if self._buffer is None:
            raise ValueError("checkpoint stream has already been closed")
        data = self._buffer.getvalue()
        self.close()
        if len(data) > self._max_size:
            raise StateSizeExceededError(len(data), self._max_size)
        return ByteStreamStateHandle(handle_name=str(uuid.uuid4()), data=data)

    def close(self) -> None:
        if self._buffer is not None:
            self._buffer.close()
            self._buffer = None
        super().close()


class MemCheckpointStreamFactory:
    """Stream factory of the MemoryStateBackend for one (job, operator)."""

    def __init__(self, max_state_size: int, job_id: JobID, operator_name: str) -> None:
        self._max_state_size = max_state_size
        self.job_id = job_id
        self.operator_name = operator_name

    def create_checkpoint_state_output_stream(self, checkpoint_id: int, timestamp: int) -> MemoryCheckpointOutputStream:
        logger.debug(
            "Opening checkpoint stream",
            operator=self.operator_name,
            checkpoint_id=checkpoint_id,
            timestamp=timestamp,
        )
        return MemoryCheckpointOutputStream(self._max_state_size, checkpoint_id, timestamp)

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"MemCheckpointStreamFactory(job_id={self.job_id!r}, operator_name={self.operator_name!r}, max_state_size={self._max_state_size})"


class MemoryStateBackend:
    """Default state backend: checkpoints are held in memory.

    Args:
        max_state_size: Largest checkpoint (in bytes) a single stream may hold.
    """

    def __init__(self, max_state_size: int = DEFAULT_MAX_STATE_SIZE) -> None:
        if max_state_size <= 0:
            raise ValueError(f"max_state_size must be > 0, got {max_state_size}")
        self._max_state_size = max_state_size

    @property
    def max_state_size(self) -> int:
        return self._max_state_size

    def create_stream_factory(self, job_id: JobID, operator_name: str) -> MemCheckpointStreamFactory:
        return MemCheckpointStreamFactory(self._max_state_size, job_id, operator_name)

    def __repr__(self) -> str:
        return f"MemoryStateBackend(max_state_size={self._max_state_size})"
