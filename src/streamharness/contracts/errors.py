# src/streamharness/contracts/errors.py
"""Exceptions raised by the harness itself.

Failures raised by the operator under test are never wrapped; they propagate
to the calling test unchanged. Everything here is synthesized by the harness
or by one of its collaborators (state backend, time service).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from streamharness.contracts.enums import HarnessState


class HarnessError(Exception):
    """Base class for errors synthesized by the harness."""


class OperatorCapabilityError(HarnessError):
    """Raised when an operation needs a capability the operator does not declare.

    Snapshot and restore require the checkpointed-state capability. The check
    runs before any checkpoint stream is opened, so no handle or partial state
    is produced.

    Attributes:
        operator_name: Type name of the operator under test
        capability: Name of the missing capability
    """

    def __init__(self, operator_name: str, capability: str) -> None:
        self.operator_name = operator_name
        self.capability = capability
        super().__init__(f"Operator '{operator_name}' does not support {capability}")


class HarnessStateError(HarnessError):
    """Raised when a lifecycle call is made in a state that does not allow it.

    Attributes:
        operation: The harness method that was called
        state: The harness state at the time of the call
    """

    def __init__(self, operation: str, state: HarnessState, hint: str | None = None) -> None:
        self.operation = operation
        self.state = state
        message = f"Cannot call {operation}() while harness is {state.value}"
        if hint:
            message = f"{message}: {hint}"
        super().__init__(message)


class StateSizeExceededError(HarnessError):
    """Raised when a memory-backed checkpoint grows beyond its permitted size.

    Attributes:
        size: Number of bytes written to the stream
        max_size: Configured maximum for the backend
    """

    def __init__(self, size: int, max_size: int) -> None:
        self.size = size
        self.max_size = max_size
        super().__init__(
            f"Size of the state is larger than the maximum permitted memory-backed state. "
            f"Size={size}, maxSize={max_size}. Consider a larger max_state_size for the MemoryStateBackend."
        )


class TimerServiceShutdownError(HarnessError):
    """Raised when a timer is registered on a terminated time service,
    or when the timer thread does not stop within the shutdown timeout."""


class AsynchronousException(HarnessError):
    """Wraps a failure that happened outside the driving thread.

    Timer callbacks run on the time service's worker thread; their failures
    are reported to the task's async-exception handler wrapped in this type.

    Attributes:
        cause: The original exception
    """

    def __init__(self, cause: BaseException, message: str | None = None) -> None:
        self.cause = cause
        super().__init__(message or f"Asynchronous failure: {type(cause).__name__}: {cause}")
        self.__cause__ = cause
