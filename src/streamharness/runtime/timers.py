# src/streamharness/runtime/timers.py
"""Processing-time services that fire timers into the operator under test.

Two implementations of the TimeServiceProvider protocol:

- DefaultTimeServiceProvider: owns one background thread that waits for the
  earliest pending timer and fires it. Used when a test does not inject one.
- ManualTimeServiceProvider: no thread; time only moves when the test calls
  set_current_time()/advance(), and due timers fire on the calling thread.

Both fire every timer while holding the checkpoint lock, the same lock the
harness holds around every operator call, so timer callbacks and element
processing never interleave.

Thread Safety (DefaultTimeServiceProvider):
    register_timer() may be called from any thread, including from inside a
    timer callback. The pending-timer heap is guarded by an internal
    condition that is never held while operator code runs.
"""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from collections.abc import Callable
from typing import Protocol

import structlog

from streamharness.contracts.errors import AsynchronousException, TimerServiceShutdownError
from streamharness.contracts.operator import Triggerable

logger = structlog.get_logger(__name__)

AsyncExceptionHandler = Callable[[AsynchronousException], None]


class ScheduledTimer:
    """Handle to a registered timer."""

    __slots__ = ("_cancelled", "_done", "target", "timestamp")

    def __init__(self, timestamp: int, target: Triggerable) -> None:
        self.timestamp = timestamp
        self.target = target
        self._cancelled = False
        self._done = False

    def cancel(self) -> bool:
        """Prevent the timer from firing.

        Returns:
            False if the timer already fired, True otherwise.
        """
        if self._done:
            return False
        self._cancelled = True
        return True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        """Whether the timer fired (or was skipped because it was cancelled)."""
        return self._done

    def _mark_done(self) -> None:
        self._done = True

    def __repr__(self) -> str:
        return f"ScheduledTimer(timestamp={self.timestamp}, cancelled={self._cancelled}, done={self._done})"


class TimeServiceProvider(Protocol):
    """Schedules processing-time timers for the operator under test."""

    def current_processing_time(self) -> int:
        """Return the current processing time in milliseconds."""
        ...

    def register_timer(self, timestamp: int, target: Triggerable) -> ScheduledTimer:
        """Fire ``target.trigger(timestamp)`` once processing time reaches ``timestamp``.

        Raises:
            TimerServiceShutdownError: If the service was shut down.
        """
        ...

    @property
    def is_terminated(self) -> bool: ...

    def shutdown_service(self) -> None:
        """Stop the service. No timer fires after this returns. Idempotent."""
        ...


def _system_time_millis() -> int:
    return time.time_ns() // 1_000_000


class DefaultTimeServiceProvider:
    """Time service backed by a single background scheduling thread.

    Timer failures do not stop the thread: each exception is wrapped in
    AsynchronousException and reported to ``async_exception_handler``.

    Example:
        lock = threading.RLock()
        service = DefaultTimeServiceProvider(lock, discard_async_exception)
        service.register_timer(service.current_processing_time() + 10, operator)
        ...
        service.shutdown_service()
    """

    def __init__(
        self,
        checkpoint_lock: threading.RLock,
        async_exception_handler: AsyncExceptionHandler,
        *,
        shutdown_timeout: float = 5.0,
        thread_name: str = "time-service",
    ) -> None:
        self._checkpoint_lock = checkpoint_lock
        self._async_exception_handler = async_exception_handler
        self._shutdown_timeout = shutdown_timeout

        self._condition = threading.Condition()
        self._queue: list[tuple[float, int, ScheduledTimer]] = []
        self._sequence = itertools.count()
        self._terminated = False

        self._thread_ready = threading.Event()
        self._thread = threading.Thread(target=self._run, name=thread_name, daemon=True)
        self._thread.start()
        # Wait for thread to be running before handing the service out
        self._thread_ready.wait(timeout=5.0)

    def current_processing_time(self) -> int:
        return _system_time_millis()

    def register_timer(self, timestamp: int, target: Triggerable) -> ScheduledTimer:
        delay_ms = max(timestamp - self.current_processing_time(), 0)
        due_at = time.monotonic() + delay_ms / 1000.0
        timer = ScheduledTimer(timestamp, target)
        with self._condition:
            if self._terminated:
                raise TimerServiceShutdownError("Cannot register timer: time service is shut down")
            heapq.heappush(self._queue, (due_at, next(self._sequence), timer))
            self._condition.notify()
        return timer

    @property
    def is_terminated(self) -> bool:
        return self._terminated

    @property
    def num_pending_timers(self) -> int:
        with self._condition:
            return sum(1 for _, _, timer in self._queue if not timer.cancelled)

    def shutdown_service(self) -> None:
        """Reject new timers, drop pending ones and join the worker thread.

        A callback already running finishes first; callers must not hold the
        checkpoint lock here, or a callback waiting for it cannot complete.

        Raises:
            TimerServiceShutdownError: If the worker thread is still alive
                after the shutdown timeout.
        """
        with self._condition:
            already_terminated = self._terminated
            self._terminated = True
            dropped = len(self._queue)
            self._queue.clear()
            self._condition.notify_all()

        if not already_terminated:
            logger.debug("Time service shutting down", dropped_timers=dropped)

        if threading.current_thread() is self._thread:
            # Shutdown from inside a timer callback; the loop exits after it returns
            return

        self._thread.join(timeout=self._shutdown_timeout)
        if self._thread.is_alive():
            logger.error(
                "Time service thread did not exit within timeout",
                thread=self._thread.name,
                timeout_seconds=self._shutdown_timeout,
            )
            raise TimerServiceShutdownError(
                f"Time service thread '{self._thread.name}' did not exit within {self._shutdown_timeout}s"
            )

    def _next_due_timer(self) -> ScheduledTimer | None:
        """Block until the earliest timer is due. Returns None on shutdown."""
        with self._condition:
            while not self._terminated:
                if not self._queue:
                    self._condition.wait()
                    continue
                due_at, _, timer = self._queue[0]
                remaining = due_at - time.monotonic()
                if remaining <= 0:
                    heapq.heappop(self._queue)
                    return timer
                self._condition.wait(remaining)
            return None

    def _run(self) -> None:
        self._thread_ready.set()
        while (timer := self._next_due_timer()) is not None:
            self._fire(timer)

    def _fire(self, timer: ScheduledTimer) -> None:
        with self._checkpoint_lock:
            try:
                # Shutdown or cancel may have happened while we waited for the lock
                if timer.cancelled or self._terminated:
                    return
                timer.target.trigger(timer.timestamp)
            except Exception as e:
                logger.warning(
                    "Timer callback failed",
                    timestamp=timer.timestamp,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                self._report_async_exception(AsynchronousException(e, "Caught exception while processing timer."))
            finally:
                timer._mark_done()

    def _report_async_exception(self, exc: AsynchronousException) -> None:
        try:
            self._async_exception_handler(exc)
        except Exception:
            # The worker must survive a broken handler or later timers never fire
            logger.error("Async exception handler raised", exc_info=True)


class ManualTimeServiceProvider:
    """Deterministic time service for tests.

    Processing time starts at ``start`` and only changes when the test moves
    it. Timers due at the new time fire in timestamp order (registration
    order for equal timestamps) on the calling thread, under the checkpoint
    lock. Exceptions raised by a timer target propagate to the caller.

    Pass the same lock to the harness so timers and processing share it:

        lock = threading.RLock()
        timers = ManualTimeServiceProvider(checkpoint_lock=lock)
        harness = OneInputStreamOperatorTestHarness(op, checkpoint_lock=lock, time_provider=timers)
        harness.open()
        harness.process_element(StreamRecord("a", 1))
        timers.set_current_time(100)  # fires timers registered for <= 100
    """

    def __init__(self, checkpoint_lock: threading.RLock | None = None, start: int = 0) -> None:
        self._checkpoint_lock = checkpoint_lock if checkpoint_lock is not None else threading.RLock()
        self._current_time = start
        self._timers: list[tuple[int, int, ScheduledTimer]] = []
        self._sequence = itertools.count()
        self._terminated = False

    @property
    def checkpoint_lock(self) -> threading.RLock:
        return self._checkpoint_lock

    def current_processing_time(self) -> int:
        return self._current_time

    def register_timer(self, timestamp: int, target: Triggerable) -> ScheduledTimer:
        if self._terminated:
            raise TimerServiceShutdownError("Cannot register timer: time service is shut down")
        timer = ScheduledTimer(timestamp, target)
        heapq.heappush(self._timers, (timestamp, next(self._sequence), timer))
        return timer

    def set_current_time(self, timestamp: int) -> None:
        """Move processing time to ``timestamp`` and fire every due timer.

        Timers registered by a firing callback fire in the same call when
        they are already due.

        Note:
            Unlike advance(), this can move time backwards. Timers only fire
            when their timestamp is <= the new time.
        """
        self._current_time = timestamp
        while self._timers and self._timers[0][0] <= self._current_time:
            _, _, timer = heapq.heappop(self._timers)
            if timer.cancelled:
                timer._mark_done()
                continue
            with self._checkpoint_lock:
                try:
                    timer.target.trigger(timer.timestamp)
                finally:
                    timer._mark_done()

    def advance(self, millis: int) -> None:
        """Advance processing time by ``millis``.

        Raises:
            ValueError: If millis is negative.
        """
        if millis < 0:
            raise ValueError(f"Cannot advance time by negative amount: {millis}")
        self.set_current_time(self._current_time + millis)

    @property
    def num_registered_timers(self) -> int:
        """Pending timers that have not been cancelled."""
        return sum(1 for _, _, timer in self._timers if not timer.cancelled)

    @property
    def is_terminated(self) -> bool:
        return self._terminated

    def shutdown_service(self) -> None:
        self._terminated = True
        self._timers.clear()
