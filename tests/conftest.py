# tests/conftest.py
"""Shared test fixtures.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/

Logging is silent unless requested:
    STREAMHARNESS_LOG_LEVEL=DEBUG STREAMHARNESS_LOG_FORMAT=json pytest
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from hypothesis import HealthCheck, Verbosity, settings

from streamharness.core.logging import configure_logging_from_env
from streamharness.harness import OneInputStreamOperatorTestHarness
from streamharness.runtime.timers import ManualTimeServiceProvider

settings.register_profile("ci", max_examples=100, suppress_health_check=[HealthCheck.too_slow])
settings.register_profile("nightly", max_examples=1000, suppress_health_check=[HealthCheck.too_slow])
settings.register_profile("debug", max_examples=10, verbosity=Verbosity.verbose)
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "ci"))
configure_logging_from_env()


# =============================================================================
# Harness Cleanup Fixture (Thread Leak Prevention)
# =============================================================================


@pytest.fixture(autouse=True)
def _auto_shutdown_time_services() -> Iterator[None]:
    """Shut down the time service of every harness created during a test.

    Each harness that does not get a time provider injected starts a
    background timer thread. Tests that never call close() would leak it.
    Only the time service is stopped here; the operator's close() is the
    test's business.
    """
    created: list[OneInputStreamOperatorTestHarness] = []
    original_init = OneInputStreamOperatorTestHarness.__init__

    def tracking_init(self: OneInputStreamOperatorTestHarness, *args: Any, **kwargs: Any) -> None:
        original_init(self, *args, **kwargs)
        created.append(self)

    OneInputStreamOperatorTestHarness.__init__ = tracking_init  # type: ignore[method-assign]
    try:
        yield
    finally:
        OneInputStreamOperatorTestHarness.__init__ = original_init  # type: ignore[method-assign]
        for harness in created:
            try:
                if not harness.time_service.is_terminated:
                    harness.time_service.shutdown_service()
            except Exception:
                # Best effort - don't fail test teardown
                pass


# =============================================================================
# Harness Factories
# =============================================================================


@pytest.fixture
def checkpoint_lock() -> threading.RLock:
    return threading.RLock()


@pytest.fixture
def manual_time(checkpoint_lock: threading.RLock) -> ManualTimeServiceProvider:
    """Deterministic time service sharing the test's checkpoint lock."""
    return ManualTimeServiceProvider(checkpoint_lock=checkpoint_lock)


@pytest.fixture
def make_harness(
    checkpoint_lock: threading.RLock,
    manual_time: ManualTimeServiceProvider,
) -> Callable[..., OneInputStreamOperatorTestHarness]:
    """Build harnesses over the manual time service.

    Usage:
        harness = make_harness(PassThroughOperator())
        harness = make_harness(op, execution_config=config)
    """

    def _make(operator: Any, **kwargs: Any) -> OneInputStreamOperatorTestHarness:
        kwargs.setdefault("checkpoint_lock", checkpoint_lock)
        kwargs.setdefault("time_provider", manual_time)
        return OneInputStreamOperatorTestHarness(operator, **kwargs)

    return _make
