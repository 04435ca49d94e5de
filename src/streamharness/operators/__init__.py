# src/streamharness/operators/__init__.py
"""Operator base classes."""

from streamharness.operators.base import BaseStreamOperator

__all__ = ["BaseStreamOperator"]
