# src/streamharness/harness.py
"""OneInputStreamOperatorTestHarness: drive one operator through its lifecycle.

The harness gives the operator a mock runtime context, pushes records and
watermarks into it, captures what it emits, and snapshots/restores its state
through a pluggable state backend, all without a real execution runtime.

Every operator call made by the harness runs while holding the checkpoint
lock. Timer callbacks fired by the time service take the same lock, so
element processing and timer processing never interleave.

Lifecycle:
    UNINITIALIZED --setup()--> SET_UP --open()--> OPEN --close()--> CLOSED
    CLOSED accepts a fresh setup()/open() cycle.

    - process_element(s)/process_watermark/notify_of_completed_checkpoint: OPEN only
    - snapshot/restore: SET_UP or OPEN, and only for checkpointed operators

Example:
    harness = OneInputStreamOperatorTestHarness(MyOperator())
    harness.open()
    harness.process_element(StreamRecord("a", 1))
    handle = harness.snapshot(checkpoint_id=1, timestamp=10)
    harness.close()
    assert harness.get_output() == [StreamRecord("a", 1)]
"""

from __future__ import annotations

import threading
import uuid
from contextlib import closing
from collections.abc import Iterable
from types import TracebackType
from typing import Any

import structlog

from streamharness.contracts.enums import HarnessState
from streamharness.contracts.errors import HarnessStateError, OperatorCapabilityError
from streamharness.contracts.operator import OneInputStreamOperator
from streamharness.contracts.records import OutputElement, StreamRecord, Watermark
from streamharness.contracts.types import JobID, OperatorName
from streamharness.core.config import Configuration, ExecutionConfig, HarnessSettings, StreamConfig
from streamharness.runtime.environment import MockEnvironment
from streamharness.runtime.output import CollectingOutput, OutputCollector
from streamharness.runtime.task import MockStreamTask, discard_async_exception
from streamharness.runtime.timers import AsyncExceptionHandler, DefaultTimeServiceProvider, TimeServiceProvider
from streamharness.state.backend import StateBackend, StreamStateHandle
from streamharness.state.memory import MemoryStateBackend

logger = structlog.get_logger(__name__)

CHECKPOINTED_STATE = "checkpointed state"

_SET_UP_STATES = frozenset({HarnessState.SET_UP, HarnessState.OPEN})


class OneInputStreamOperatorTestHarness:
    """Test harness for a single-input stream operator.

    Args:
        operator: The operator under test. Held by reference, never copied.
        execution_config: Resolves value copiers for captured records.
            Defaults to a fresh ExecutionConfig.
        checkpoint_lock: The lock shared by the harness, the mock task and the
            time service. Defaults to a fresh RLock.
        time_provider: Time service to fire timers. Defaults to a
            DefaultTimeServiceProvider owned by the harness. An injected
            provider must fire its timers under ``checkpoint_lock``.
        settings: Fixed values for the mock task and environment.
        async_exception_handler: Sink for failures reported off the driving
            thread. Defaults to discarding them.
    """

    def __init__(
        self,
        operator: OneInputStreamOperator,
        execution_config: ExecutionConfig | None = None,
        checkpoint_lock: threading.RLock | None = None,
        time_provider: TimeServiceProvider | None = None,
        *,
        settings: HarnessSettings | None = None,
        async_exception_handler: AsyncExceptionHandler | None = None,
    ) -> None:
        self._operator = operator
        self._settings = settings if settings is not None else HarnessSettings()
        self._execution_config = execution_config if execution_config is not None else ExecutionConfig()
        self._checkpoint_lock = checkpoint_lock if checkpoint_lock is not None else threading.RLock()
        self._async_exception_handler = async_exception_handler if async_exception_handler is not None else discard_async_exception
        self._state_backend: StateBackend = MemoryStateBackend(self._settings.max_state_size)

        self._output = OutputCollector()

        task_configuration = Configuration()
        self._config = StreamConfig(task_configuration)
        self._config.set_checkpointing_enabled(self._settings.checkpointing_enabled)
        self._config.set_number_of_inputs(1)

        self._environment = MockEnvironment.from_settings(
            self._settings,
            task_configuration=task_configuration,
            execution_config=self._execution_config,
            job_id=JobID(uuid.uuid4().hex),
        )

        self._owns_time_service = time_provider is None
        self._time_service: TimeServiceProvider = time_provider if time_provider is not None else self._create_time_service()

        self._task = MockStreamTask(
            name=self._settings.task_name,
            checkpoint_lock=self._checkpoint_lock,
            configuration=self._config,
            environment=self._environment,
            execution_config=self._execution_config,
            state_backend_supplier=lambda: self._state_backend,
            timer_service_supplier=lambda: self._time_service,
            async_exception_handler=self._async_exception_handler,
        )

        self._state = HarnessState.UNINITIALIZED
        self._log = logger.bind(operator=type(operator).__name__)

    def _create_time_service(self) -> DefaultTimeServiceProvider:
        return DefaultTimeServiceProvider(
            self._checkpoint_lock,
            self._async_exception_handler,
            shutdown_timeout=self._settings.timer_shutdown_timeout_seconds,
            thread_name=f"time-service-{type(self._operator).__name__}",
        )

    # -- accessors ---------------------------------------------------------

    @property
    def operator(self) -> OneInputStreamOperator:
        return self._operator

    @property
    def state(self) -> HarnessState:
        return self._state

    @property
    def is_set_up(self) -> bool:
        return self._state in _SET_UP_STATES

    @property
    def settings(self) -> HarnessSettings:
        return self._settings

    @property
    def execution_config(self) -> ExecutionConfig:
        return self._execution_config

    @property
    def checkpoint_lock(self) -> threading.RLock:
        return self._task.checkpoint_lock

    def get_checkpoint_lock(self) -> threading.RLock:
        return self.checkpoint_lock

    def get_shared_lock(self) -> threading.RLock:
        """The lock shared with the operator and the time service; same as checkpoint_lock."""
        return self.checkpoint_lock

    @property
    def environment(self) -> MockEnvironment:
        return self._task.environment

    def get_environment(self) -> MockEnvironment:
        return self.environment

    @property
    def task(self) -> MockStreamTask:
        return self._task

    @property
    def config(self) -> StreamConfig:
        return self._config

    @property
    def time_service(self) -> TimeServiceProvider:
        return self._time_service

    @property
    def state_backend(self) -> StateBackend:
        return self._state_backend

    @property
    def output(self) -> OutputCollector:
        """The live collector. Use get_output() for a stable snapshot."""
        return self._output

    def get_output(self) -> list[OutputElement]:
        """Everything the operator emitted so far: copied records and watermarks, in order."""
        return self._output.snapshot()

    def set_state_backend(self, state_backend: StateBackend) -> None:
        """Replace the state backend. Only allowed before setup().

        Raises:
            HarnessStateError: If the operator was already set up.
        """
        if self.is_set_up:
            raise HarnessStateError("set_state_backend", self._state, "the state backend must be set before setup()")
        self._state_backend = state_backend

    # -- lifecycle ---------------------------------------------------------

    def setup(self) -> None:
        """Call the operator's setup() with the mock task, config and output sink.

        Raises:
            HarnessStateError: If the harness is already open.
        """
        if self._state is HarnessState.OPEN:
            raise HarnessStateError("setup", self._state, "close() the harness before setting it up again")
        if self._owns_time_service and self._time_service.is_terminated:
            # A previous close() shut the owned service down; reuse needs a live one
            self._time_service = self._create_time_service()

        output = CollectingOutput(self._output, self._execution_config)
        with self._checkpoint_lock:
            self._operator.setup(self._task, self._config, output)
        self._state = HarnessState.SET_UP
        self._log.debug("Operator set up", task=self._task.name, job_id=self._task.job_id)

    def open(self) -> None:
        """Call the operator's open(), running setup() first if it has not run yet."""
        if self._state is HarnessState.OPEN:
            raise HarnessStateError("open", self._state)
        if not self.is_set_up:
            self.setup()
        with self._checkpoint_lock:
            self._operator.open()
        self._state = HarnessState.OPEN
        self._log.debug("Operator opened")

    def close(self) -> None:
        """Close and dispose the operator, then shut down the time service.

        The harness always ends CLOSED, even when close(), dispose() or the
        time service shutdown raises; the first such failure propagates.
        The checkpoint lock is released before the time service is shut down
        so an in-flight timer callback can finish.
        """
        try:
            with self._checkpoint_lock:
                try:
                    self._operator.close()
                finally:
                    self._operator.dispose()
        finally:
            try:
                self._shutdown_time_service()
            finally:
                self._state = HarnessState.CLOSED
                self._log.debug("Operator closed")

    def _shutdown_time_service(self) -> None:
        try:
            self._time_service.shutdown_service()
        except Exception as e:
            self._log.error(
                "Time service shutdown failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            raise

    def __enter__(self) -> OneInputStreamOperatorTestHarness:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # -- processing --------------------------------------------------------

    def _require_open(self, operation: str) -> None:
        if self._state is not HarnessState.OPEN:
            raise HarnessStateError(operation, self._state, "call open() first")

    def process_element(self, record: StreamRecord[Any]) -> None:
        """Push one record into the operator (key context first, then processing)."""
        self._require_open("process_element")
        with self._checkpoint_lock:
            self._operator.set_key_context_element(record)
            self._operator.process_element(record)

    def process_elements(self, records: Iterable[StreamRecord[Any]]) -> None:
        """Push records into the operator in iteration order."""
        self._require_open("process_elements")
        for record in records:
            with self._checkpoint_lock:
                self._operator.set_key_context_element(record)
                self._operator.process_element(record)

    def process_watermark(self, mark: Watermark) -> None:
        self._require_open("process_watermark")
        with self._checkpoint_lock:
            self._operator.process_watermark(mark)

    # -- checkpointing -----------------------------------------------------

    def _require_checkpointed(self, operation: str) -> None:
        if not getattr(self._operator, "is_checkpointed", False):
            raise OperatorCapabilityError(type(self._operator).__name__, CHECKPOINTED_STATE)
        if not self.is_set_up:
            raise HarnessStateError(operation, self._state, "call setup() or open() first")

    def snapshot(self, checkpoint_id: int, timestamp: int) -> StreamStateHandle:
        """Write the operator's state to a checkpoint stream and return its handle.

        Raises:
            OperatorCapabilityError: If the operator is not checkpointed.
                Nothing is written and no handle is produced.
            HarnessStateError: If the operator has not been set up.
        """
        self._require_checkpointed("snapshot")
        factory = self._state_backend.create_stream_factory(
            self._task.job_id,
            OperatorName(self._settings.snapshot_operator_name),
        )
        with closing(factory), factory.create_checkpoint_state_output_stream(checkpoint_id, timestamp) as out:
            with self._checkpoint_lock:
                self._operator.snapshot_state(out, checkpoint_id, timestamp)  # type: ignore[attr-defined]
            handle = out.close_and_get_handle()
        self._log.debug(
            "Snapshot taken",
            checkpoint_id=checkpoint_id,
            timestamp=timestamp,
            state_size=handle.state_size,
        )
        return handle

    def restore(self, handle: StreamStateHandle) -> None:
        """Restore the operator's state from a handle returned by snapshot().

        Raises:
            OperatorCapabilityError: If the operator is not checkpointed.
            HarnessStateError: If the operator has not been set up.
        """
        self._require_checkpointed("restore")
        with handle.open_input_stream() as stream:
            with self._checkpoint_lock:
                self._operator.restore_state(stream)  # type: ignore[attr-defined]
        self._log.debug("State restored", state_size=handle.state_size)

    def notify_of_completed_checkpoint(self, checkpoint_id: int) -> None:
        self._require_open("notify_of_completed_checkpoint")
        with self._checkpoint_lock:
            self._operator.notify_of_completed_checkpoint(checkpoint_id)

    def __repr__(self) -> str:
        return f"OneInputStreamOperatorTestHarness(operator={type(self._operator).__name__}, state={self._state.value})"
