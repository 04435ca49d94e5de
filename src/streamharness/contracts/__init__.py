"""Shared contracts for cross-boundary data types.

Records, watermarks, enums, errors and the operator-facing protocols live
here. This package is a LEAF MODULE: it imports nothing from core, state or
runtime at module level.

Import patterns:
    from streamharness.contracts import StreamRecord, Watermark, HarnessState
    from streamharness.contracts.operator import OneInputStreamOperator
"""

from streamharness.contracts.enums import HarnessState, OutputKind
from streamharness.contracts.errors import (
    AsynchronousException,
    HarnessError,
    HarnessStateError,
    OperatorCapabilityError,
    StateSizeExceededError,
    TimerServiceShutdownError,
)
from streamharness.contracts.operator import (
    CheckpointedOperator,
    OneInputStreamOperator,
    Output,
    StreamOperator,
    Triggerable,
)
from streamharness.contracts.records import OutputElement, StreamRecord, Watermark, output_kind
from streamharness.contracts.types import ClassResolver, JobID, OperatorName

__all__ = [
    "AsynchronousException",
    "CheckpointedOperator",
    "ClassResolver",
    "HarnessError",
    "HarnessState",
    "HarnessStateError",
    "JobID",
    "OneInputStreamOperator",
    "OperatorCapabilityError",
    "OperatorName",
    "Output",
    "OutputElement",
    "OutputKind",
    "StateSizeExceededError",
    "StreamOperator",
    "StreamRecord",
    "TimerServiceShutdownError",
    "Triggerable",
    "Watermark",
    "output_kind",
]
