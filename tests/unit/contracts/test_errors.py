# tests/unit/contracts/test_errors.py
"""Tests for the harness exception hierarchy."""

from streamharness.contracts import (
    AsynchronousException,
    HarnessError,
    HarnessState,
    HarnessStateError,
    OperatorCapabilityError,
    StateSizeExceededError,
    TimerServiceShutdownError,
)


class TestErrorHierarchy:
    def test_all_harness_errors_share_a_base(self) -> None:
        for error_type in (
            OperatorCapabilityError,
            HarnessStateError,
            StateSizeExceededError,
            TimerServiceShutdownError,
            AsynchronousException,
        ):
            assert issubclass(error_type, HarnessError)

    def test_capability_error_names_operator_and_capability(self) -> None:
        error = OperatorCapabilityError("MapOperator", "checkpointed state")

        assert error.operator_name == "MapOperator"
        assert error.capability == "checkpointed state"
        assert str(error) == "Operator 'MapOperator' does not support checkpointed state"

    def test_state_error_message_includes_state_and_hint(self) -> None:
        error = HarnessStateError("process_element", HarnessState.SET_UP, "call open() first")

        assert error.operation == "process_element"
        assert error.state is HarnessState.SET_UP
        assert str(error) == "Cannot call process_element() while harness is set_up: call open() first"

    def test_state_size_error_carries_sizes(self) -> None:
        error = StateSizeExceededError(size=11, max_size=10)

        assert (error.size, error.max_size) == (11, 10)
        assert "Size=11, maxSize=10" in str(error)

    def test_asynchronous_exception_chains_cause(self) -> None:
        cause = ValueError("timer failed")
        error = AsynchronousException(cause)

        assert error.cause is cause
        assert error.__cause__ is cause
        assert "ValueError: timer failed" in str(error)
