# src/streamharness/core/__init__.py
"""Core infrastructure: configuration, value copiers, logging."""

from streamharness.core.config import Configuration, ExecutionConfig, HarnessSettings, StreamConfig
from streamharness.core.copiers import CallableCopier, DeepCopier, ImmutableCopier, TypeCopier
from streamharness.core.logging import configure_logging, configure_logging_from_env, get_logger

__all__ = [
    "CallableCopier",
    "Configuration",
    "DeepCopier",
    "ExecutionConfig",
    "HarnessSettings",
    "ImmutableCopier",
    "StreamConfig",
    "TypeCopier",
    "configure_logging",
    "configure_logging_from_env",
    "get_logger",
]
