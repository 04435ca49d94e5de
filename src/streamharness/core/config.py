# src/streamharness/core/config.py
"""
Configuration objects handed to the operator under test.

- HarnessSettings: validated, frozen Pydantic model with the fixed values the
  mock environment is built from (task names, memory budget, parallelism).
- Configuration / StreamConfig: the raw key-value task configuration and the
  typed view the operator receives at setup.
- ExecutionConfig: immutable; resolves a value copier for a runtime type.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, Field, model_validator

from streamharness.core.copiers import IMMUTABLE_TYPES, CallableCopier, DeepCopier, ImmutableCopier, TypeCopier

_IMMUTABLE_COPIER = ImmutableCopier()
_DEEP_COPIER = DeepCopier()


class HarnessSettings(BaseModel):
    """Fixed values the harness builds its mock runtime from.

    The defaults describe a single subtask (index 0 of parallelism 1) of an
    operator whose max parallelism is 10, with a 3 MiB memory budget and a
    5 MiB limit on memory-backed checkpoint state.

    Example:
        settings = HarnessSettings(task_name="Window Task", max_state_size=1024)
        harness = OneInputStreamOperatorTestHarness(op, settings=settings)
    """

    model_config = {"frozen": True, "extra": "forbid"}

    task_name: str = Field(default="Mock Task", min_length=1, description="Name reported by the mock task")
    environment_task_name: str = Field(default="MockTask", min_length=1, description="Task name in the mock environment")
    memory_size: int = Field(default=3 * 1024 * 1024, gt=0, description="Managed memory budget in bytes")
    buffer_size: int = Field(default=1024, gt=0, description="Network buffer size in bytes")
    max_parallelism: int = Field(default=10, gt=0)
    parallelism: int = Field(default=1, gt=0)
    subtask_index: int = Field(default=0, ge=0)
    checkpointing_enabled: bool = True
    snapshot_operator_name: str = Field(
        default="test_op",
        min_length=1,
        description="Operator name used for the stream factory in snapshot()",
    )
    max_state_size: int = Field(default=5 * 1024 * 1024, gt=0, description="Limit for memory-backed checkpoint state")
    timer_shutdown_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="How long close() waits for the timer thread to exit",
    )

    @model_validator(mode="after")
    def validate_parallelism(self) -> HarnessSettings:
        """Parallelism must fit max parallelism and the subtask index must fit parallelism."""
        if self.parallelism > self.max_parallelism:
            raise ValueError(f"parallelism ({self.parallelism}) must not exceed max_parallelism ({self.max_parallelism})")
        if self.subtask_index >= self.parallelism:
            raise ValueError(f"subtask_index ({self.subtask_index}) must be less than parallelism ({self.parallelism})")
        return self


class Configuration:
    """Raw string-keyed task configuration.

    Values are stored as given; typed getters convert and fall back to the
    supplied default when a key is absent.
    """

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(values or {})

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def get_string(self, key: str, default: str | None = None) -> str | None:
        if key not in self._values:
            return default
        return str(self._values[key])

    def get_integer(self, key: str, default: int = 0) -> int:
        if key not in self._values:
            return default
        return int(self._values[key])

    def get_boolean(self, key: str, default: bool = False) -> bool:
        if key not in self._values:
            return default
        value = self._values[key]
        if isinstance(value, str):
            return value.strip().lower() == "true"
        return bool(value)

    def contains_key(self, key: str) -> bool:
        return key in self._values

    def to_dict(self) -> dict[str, Any]:
        """Return a shallow copy of the stored values."""
        return dict(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(dict(self._values))

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Configuration):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"Configuration({self._values!r})"


class StreamConfig:
    """Typed view over a Configuration, as handed to the operator at setup.

    Writes go through to the underlying Configuration, so the raw task
    configuration and the stream config always agree.
    """

    CHECKPOINTING_ENABLED = "checkpointing"
    OPERATOR_NAME = "operatorName"
    NUMBER_OF_INPUTS = "numberOfInputs"

    def __init__(self, config: Configuration) -> None:
        self._config = config

    @property
    def configuration(self) -> Configuration:
        return self._config

    @property
    def checkpointing_enabled(self) -> bool:
        return self._config.get_boolean(self.CHECKPOINTING_ENABLED, False)

    def set_checkpointing_enabled(self, enabled: bool) -> None:
        self._config.set(self.CHECKPOINTING_ENABLED, enabled)

    @property
    def operator_name(self) -> str | None:
        return self._config.get_string(self.OPERATOR_NAME)

    def set_operator_name(self, name: str) -> None:
        self._config.set(self.OPERATOR_NAME, name)

    @property
    def number_of_inputs(self) -> int:
        return self._config.get_integer(self.NUMBER_OF_INPUTS, 0)

    def set_number_of_inputs(self, count: int) -> None:
        self._config.set(self.NUMBER_OF_INPUTS, count)


@dataclass(frozen=True, slots=True)
class ExecutionConfig:
    """Immutable execution options; resolves value copiers by runtime type.

    Resolution order in copier_for():
    1. A copier registered for the type or one of its base classes (MRO order)
    2. The pass-through copier when the exact type is a known immutable
    3. copy.deepcopy()

    Example:
        config = ExecutionConfig.with_copiers({bytearray: CallableCopier(bytearray)})
        config.copier_for(bytearray).copy(buf)
    """

    registered_copiers: Mapping[type, TypeCopier] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        # Freeze the mapping so a caller-held dict cannot change resolution later
        if not isinstance(self.registered_copiers, MappingProxyType):
            object.__setattr__(self, "registered_copiers", MappingProxyType(dict(self.registered_copiers)))

    @classmethod
    def with_copiers(cls, copiers: Mapping[type, Any]) -> ExecutionConfig:
        """Build a config from a mapping of type -> copier or copy function."""
        resolved: dict[type, TypeCopier] = {}
        for value_type, copier in copiers.items():
            # Classes (e.g. bytearray) are copy constructors, not copier instances
            if isinstance(copier, type) or not hasattr(copier, "copy"):
                copier = CallableCopier(copier)
            resolved[value_type] = copier
        return cls(registered_copiers=resolved)

    def copier_for(self, value_type: type) -> TypeCopier:
        """Resolve the copier for values of ``value_type``."""
        for klass in value_type.__mro__:
            copier = self.registered_copiers.get(klass)
            if copier is not None:
                return copier
        if value_type in IMMUTABLE_TYPES:
            return _IMMUTABLE_COPIER
        return _DEEP_COPIER
