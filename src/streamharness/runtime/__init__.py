# src/streamharness/runtime/__init__.py
"""Simulated runtime: mock task and environment, timers, output capture."""

from streamharness.runtime.environment import MockEnvironment, MockInputSplitProvider
from streamharness.runtime.output import CollectingOutput, OutputCollector
from streamharness.runtime.task import (
    MockStreamTask,
    RecordingAsyncExceptionHandler,
    discard_async_exception,
    resolve_class,
)
from streamharness.runtime.timers import (
    AsyncExceptionHandler,
    DefaultTimeServiceProvider,
    ManualTimeServiceProvider,
    ScheduledTimer,
    TimeServiceProvider,
)

__all__ = [
    "AsyncExceptionHandler",
    "CollectingOutput",
    "DefaultTimeServiceProvider",
    "ManualTimeServiceProvider",
    "MockEnvironment",
    "MockInputSplitProvider",
    "MockStreamTask",
    "OutputCollector",
    "RecordingAsyncExceptionHandler",
    "ScheduledTimer",
    "TimeServiceProvider",
    "discard_async_exception",
    "resolve_class",
]
