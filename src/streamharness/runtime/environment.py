# src/streamharness/runtime/environment.py
"""The mock task environment: fixed facts about the (single) subtask."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from streamharness.contracts.types import JobID
from streamharness.core.config import Configuration, ExecutionConfig, HarnessSettings


class MockInputSplitProvider:
    """Input-split source that never has a split to hand out."""

    def next_input_split(self, class_resolver: Any = None) -> None:
        return None


@dataclass(frozen=True, slots=True)
class MockEnvironment:
    """Environment descriptor of the mock task. Built once, never changed."""

    task_name: str
    memory_size: int
    input_split_provider: MockInputSplitProvider = field(compare=False)
    buffer_size: int
    task_configuration: Configuration = field(compare=False)
    execution_config: ExecutionConfig = field(compare=False)
    max_parallelism: int
    parallelism: int
    subtask_index: int
    job_id: JobID

    @classmethod
    def from_settings(
        cls,
        settings: HarnessSettings,
        *,
        task_configuration: Configuration,
        execution_config: ExecutionConfig,
        job_id: JobID,
    ) -> MockEnvironment:
        return cls(
            task_name=settings.environment_task_name,
            memory_size=settings.memory_size,
            input_split_provider=MockInputSplitProvider(),
            buffer_size=settings.buffer_size,
            task_configuration=task_configuration,
            execution_config=execution_config,
            max_parallelism=settings.max_parallelism,
            parallelism=settings.parallelism,
            subtask_index=settings.subtask_index,
            job_id=job_id,
        )

    @property
    def task_name_with_subtasks(self) -> str:
        """Task name with the 1-based subtask position, e.g. ``MockTask (1/1)``."""
        return f"{self.task_name} ({self.subtask_index + 1}/{self.parallelism})"
