"""
streamharness: drive a single stream operator through its lifecycle in tests.

Setup, open, element and watermark processing, checkpoint snapshot/restore
and close, without a distributed runtime.
"""

from streamharness.contracts import (
    HarnessState,
    OperatorCapabilityError,
    StreamRecord,
    Watermark,
)
from streamharness.harness import OneInputStreamOperatorTestHarness

__version__ = "0.1.0"

__all__ = [
    "HarnessState",
    "OneInputStreamOperatorTestHarness",
    "OperatorCapabilityError",
    "StreamRecord",
    "Watermark",
    "__version__",
]
