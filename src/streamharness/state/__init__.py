# src/streamharness/state/__init__.py
"""Checkpoint storage: backend protocols and the in-memory default."""

from streamharness.state.backend import (
    CheckpointStateOutputStream,
    CheckpointStreamFactory,
    StateBackend,
    StreamStateHandle,
)
from streamharness.state.memory import (
    DEFAULT_MAX_STATE_SIZE,
    ByteStreamStateHandle,
    MemCheckpointStreamFactory,
    MemoryCheckpointOutputStream,
    MemoryStateBackend,
)

__all__ = [
    "DEFAULT_MAX_STATE_SIZE",
    "ByteStreamStateHandle",
    "CheckpointStateOutputStream",
    "CheckpointStreamFactory",
    "MemCheckpointStreamFactory",
    "MemoryCheckpointOutputStream",
    "MemoryStateBackend",
    "StateBackend",
    "StreamStateHandle",
]
