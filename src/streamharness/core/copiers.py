# src/streamharness/core/copiers.py
"""Value copiers resolved per runtime type.

The harness stores a copy of every record the operator emits so that an
operator reusing (and mutating) its output buffer cannot rewrite what the
test already captured. ExecutionConfig.copier_for() picks the copier.
"""

from __future__ import annotations

import copy
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from fractions import Fraction
from typing import Any, Protocol
from uuid import UUID


class TypeCopier(Protocol):
    """Produces an independent copy of a value of one runtime type."""

    def copy(self, value: Any) -> Any:
        """Return a value equal to ``value`` that shares no mutable state with it."""
        ...


class ImmutableCopier:
    """Copier for immutable scalar types: the value itself is a safe copy."""

    def copy(self, value: Any) -> Any:
        return value

    def __repr__(self) -> str:
        return "ImmutableCopier()"


class DeepCopier:
    """Fallback copier using copy.deepcopy()."""

    def copy(self, value: Any) -> Any:
        return copy.deepcopy(value)

    def __repr__(self) -> str:
        return "DeepCopier()"


class CallableCopier:
    """Adapts a plain function ``f(value) -> copy`` to the TypeCopier protocol.

    Example:
        config = ExecutionConfig.with_copiers({Buffer: CallableCopier(Buffer.clone)})
    """

    __slots__ = ("_fn",)

    def __init__(self, fn: Any) -> None:
        if not callable(fn):
            raise TypeError(f"copier function must be callable, got {type(fn).__name__}")
        self._fn = fn

    def copy(self, value: Any) -> Any:
        return self._fn(value)

    def __repr__(self) -> str:
        return f"CallableCopier({getattr(self._fn, '__qualname__', self._fn)!r})"


IMMUTABLE_TYPES: frozenset[type] = frozenset(
    {
        type(None),
        bool,
        int,
        float,
        complex,
        str,
        bytes,
        Decimal,
        Fraction,
        UUID,
        date,
        datetime,
        time,
        timedelta,
    }
)
