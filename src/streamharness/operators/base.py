# src/streamharness/operators/base.py
"""Base class for operators exercised by the harness.

Operators don't have to subclass this; the harness only relies on the
OneInputStreamOperator protocol. The base class keeps what setup() hands
over and provides no-op defaults for the optional hooks.

Checkpointed-state capability:

    class CountingOperator(BaseStreamOperator):
        is_checkpointed = True

        def snapshot_state(self, out, checkpoint_id, timestamp):
            out.write(struct.pack(">q", self.count))

        def restore_state(self, stream):
            (self.count,) = struct.unpack(">q", stream.read(8))
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from streamharness.contracts.records import StreamRecord, Watermark

if TYPE_CHECKING:
    from streamharness.contracts.operator import Output
    from streamharness.core.config import StreamConfig
    from streamharness.runtime.task import MockStreamTask
    from streamharness.runtime.timers import TimeServiceProvider


class BaseStreamOperator(ABC):
    """Single-input operator with lifecycle bookkeeping.

    Subclasses implement process_element(). The default process_watermark()
    forwards the watermark unchanged.
    """

    # Override to True and implement snapshot_state()/restore_state()
    is_checkpointed: bool = False

    def __init__(self) -> None:
        self._task: MockStreamTask | None = None
        self._config: StreamConfig | None = None
        self._output: Output | None = None
        self._current_key: Any = None

    def setup(self, task: MockStreamTask, config: StreamConfig, output: Output) -> None:
        self._task = task
        self._config = config
        self._output = output

    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    def dispose(self) -> None:
        pass

    def notify_of_completed_checkpoint(self, checkpoint_id: int) -> None:
        pass

    def set_key_context_element(self, record: StreamRecord[Any]) -> None:
        """Key selection hook. Keyed operators override get_key()."""
        self._current_key = self.get_key(record)

    def get_key(self, record: StreamRecord[Any]) -> Any:
        return None

    @abstractmethod
    def process_element(self, record: StreamRecord[Any]) -> None: ...

    def process_watermark(self, mark: Watermark) -> None:
        self.output.emit_watermark(mark)

    # -- accessors ---------------------------------------------------------

    @property
    def runtime_context(self) -> MockStreamTask:
        if self._task is None:
            raise RuntimeError(f"{type(self).__name__} accessed its runtime context before setup()")
        return self._task

    @property
    def config(self) -> StreamConfig:
        if self._config is None:
            raise RuntimeError(f"{type(self).__name__} accessed its config before setup()")
        return self._config

    @property
    def output(self) -> Output:
        if self._output is None:
            raise RuntimeError(f"{type(self).__name__} emitted before setup()")
        return self._output

    @property
    def time_service(self) -> TimeServiceProvider:
        return self.runtime_context.timer_service

    @property
    def checkpoint_lock(self) -> threading.RLock:
        return self.runtime_context.checkpoint_lock

    @property
    def current_key(self) -> Any:
        return self._current_key
