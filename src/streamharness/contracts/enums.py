# src/streamharness/contracts/enums.py
"""Status codes and kinds used across subsystem boundaries."""

from enum import StrEnum


class HarnessState(StrEnum):
    """Lifecycle state of a test harness.

    UNINITIALIZED and CLOSED both accept a fresh setup()/open() cycle.
    Processing calls are only legal in OPEN.
    """

    UNINITIALIZED = "uninitialized"
    SET_UP = "set_up"
    OPEN = "open"
    CLOSED = "closed"


class OutputKind(StrEnum):
    """Discriminator for entries in the captured output sequence."""

    RECORD = "record"
    WATERMARK = "watermark"
