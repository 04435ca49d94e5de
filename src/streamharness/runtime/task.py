# src/streamharness/runtime/task.py
"""MockStreamTask: the runtime context handed to the operator at setup.

It exposes exactly what an operator needs while initializing: task name,
checkpoint lock, configuration (typed and raw), environment, execution
config, a class resolver for user code, an async-exception sink, a
checkpoint stream factory and the timer service. All of it is fixed when the
harness is constructed. The state backend and timer service are read through
suppliers so the harness can swap them (set_state_backend(), or a fresh time
service after close()) without rebuilding the task.
"""

from __future__ import annotations

import importlib
import threading
from collections.abc import Callable
from typing import Any

import structlog

from streamharness.contracts.errors import AsynchronousException
from streamharness.contracts.types import ClassResolver, JobID
from streamharness.core.config import Configuration, ExecutionConfig, StreamConfig
from streamharness.runtime.environment import MockEnvironment
from streamharness.runtime.timers import AsyncExceptionHandler, TimeServiceProvider
from streamharness.state.backend import CheckpointStreamFactory, StateBackend

logger = structlog.get_logger(__name__)


def discard_async_exception(exc: AsynchronousException) -> None:
    """Default async-exception sink: drops the exception.

    Asynchronous failures (e.g. from timer callbacks) are NOT surfaced to the
    test by default. Pass a RecordingAsyncExceptionHandler to the harness to
    observe them.
    """
    logger.debug("Discarding asynchronous exception", error=str(exc))


class RecordingAsyncExceptionHandler:
    """Async-exception sink that keeps everything it receives.

    Thread Safety:
        Called from the timer thread while tests read from the driving
        thread; the list is guarded by an internal lock.

    Example:
        handler = RecordingAsyncExceptionHandler()
        harness = OneInputStreamOperatorTestHarness(op, async_exception_handler=handler)
        ...
        assert handler.wait_for(1, timeout=2.0)
        assert isinstance(handler.exceptions[0].cause, ValueError)
    """

    def __init__(self) -> None:
        self._exceptions: list[AsynchronousException] = []
        self._condition = threading.Condition()

    def __call__(self, exc: AsynchronousException) -> None:
        with self._condition:
            self._exceptions.append(exc)
            self._condition.notify_all()

    @property
    def exceptions(self) -> list[AsynchronousException]:
        """Snapshot of the recorded exceptions, oldest first."""
        with self._condition:
            return list(self._exceptions)

    def wait_for(self, count: int, timeout: float) -> bool:
        """Block until at least ``count`` exceptions were recorded.

        Returns:
            True if the count was reached, False on timeout.
        """
        with self._condition:
            return self._condition.wait_for(lambda: len(self._exceptions) >= count, timeout=timeout)

    def raise_first(self) -> None:
        """Re-raise the first recorded exception, if any."""
        with self._condition:
            if self._exceptions:
                raise self._exceptions[0]


def resolve_class(qualified_name: str) -> type:
    """Resolve ``package.module.ClassName`` to the class object.

    Raises:
        ImportError: If the module cannot be imported.
        AttributeError: If the module has no such attribute.
        TypeError: If the attribute is not a class.
    """
    module_name, _, class_name = qualified_name.rpartition(".")
    if not module_name:
        raise ImportError(f"Not a qualified class name: {qualified_name!r}")
    module = importlib.import_module(module_name)
    resolved = getattr(module, class_name)
    if not isinstance(resolved, type):
        raise TypeError(f"{qualified_name!r} is not a class (got {type(resolved).__name__})")
    return resolved


class MockStreamTask:
    """Runtime context of the operator under test."""

    def __init__(
        self,
        *,
        name: str,
        checkpoint_lock: threading.RLock,
        configuration: StreamConfig,
        environment: MockEnvironment,
        execution_config: ExecutionConfig,
        state_backend_supplier: Callable[[], StateBackend],
        timer_service_supplier: Callable[[], TimeServiceProvider],
        async_exception_handler: AsyncExceptionHandler = discard_async_exception,
    ) -> None:
        self._name = name
        self._checkpoint_lock = checkpoint_lock
        self._configuration = configuration
        self._environment = environment
        self._execution_config = execution_config
        self._state_backend_supplier = state_backend_supplier
        self._timer_service_supplier = timer_service_supplier
        self._async_exception_handler = async_exception_handler

    @property
    def name(self) -> str:
        return self._name

    @property
    def checkpoint_lock(self) -> threading.RLock:
        return self._checkpoint_lock

    @property
    def configuration(self) -> StreamConfig:
        return self._configuration

    @property
    def task_configuration(self) -> Configuration:
        return self._environment.task_configuration

    @property
    def environment(self) -> MockEnvironment:
        return self._environment

    @property
    def execution_config(self) -> ExecutionConfig:
        return self._execution_config

    @property
    def job_id(self) -> JobID:
        return self._environment.job_id

    @property
    def user_code_class_loader(self) -> ClassResolver:
        """Resolver for user-code classes by qualified name."""
        return resolve_class

    @property
    def async_exception_handler(self) -> AsyncExceptionHandler:
        return self._async_exception_handler

    def register_async_exception(self, exc: AsynchronousException) -> None:
        """Report a failure that happened off the driving thread."""
        self._async_exception_handler(exc)

    def create_checkpoint_stream_factory(self, operator: Any) -> CheckpointStreamFactory:
        """Stream factory from the current state backend, keyed by the operator's type name."""
        return self._state_backend_supplier().create_stream_factory(self.job_id, type(operator).__name__)

    @property
    def timer_service(self) -> TimeServiceProvider:
        return self._timer_service_supplier()

    def __repr__(self) -> str:
        return f"MockStreamTask(name={self._name!r}, job_id={self.job_id!r})"
