# src/streamharness/contracts/types.py
"""Semantic type aliases for compile-time type safety."""

from collections.abc import Callable
from typing import NewType

JobID = NewType("JobID", str)
"""Synthetic job identity handed to state backends (32 hex chars)."""

OperatorName = NewType("OperatorName", str)
"""Name under which checkpoint streams are created (e.g., 'test_op')."""

ClassResolver = Callable[[str], type]
"""Resolves a dotted ``module.ClassName`` path to the class object."""
