"""
runner.py

Responsibility: Execute tasks from a `TaskGraph` in prerequisite order.

High-level flow for `TaskRunner.run(*names)`:
1) Resolve the requested names to an execution order (validates names first)
2) Execute each task at most once, steps in declared order
3) Stop at the first failing step; nothing after it runs

Failures inside a prerequisite of a requested task surface as
`PrerequisiteFailure`; failures in the requested task itself surface as
`StepExecutionError`.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field

from projman.graph import TaskGraph
from projman.steps import StepContext, StepExecutionError

logger = logging.getLogger(__name__)


class PrerequisiteFailure(RuntimeError):
    def __init__(self, *, task: str, prerequisite: str, cause: StepExecutionError) -> None:
        self.task = task
        self.prerequisite = prerequisite
        self.cause = cause
        self.returncode = cause.returncode
        super().__init__(f"Prerequisite {prerequisite!r} of task {task!r} failed: {cause}")


@dataclass
class RunResult:
    requested: list[str]
    executed: list[str] = field(default_factory=list)


class TaskRunner:
    def __init__(self, graph: TaskGraph, context: StepContext) -> None:
        self.graph = graph
        self.context = context

    def plan(self, *names: str) -> list[str]:
        return self.graph.resolve(*names)

    def run(self, *names: str) -> RunResult:
        """
        Run the requested tasks and everything they depend on.

        A task shared by several requested names runs once.
        """
        order = self.plan(*names)
        result = RunResult(requested=list(names))
        requested = set(names)

        for name in order:
            try:
                self._run_task(name)
            except StepExecutionError as e:
                if name in requested:
                    raise
                raise PrerequisiteFailure(task=self._dependent_of(name, names), prerequisite=name, cause=e) from e
            result.executed.append(name)
        return result

    def _run_task(self, name: str) -> None:
        task = self.graph[name]
        if task.banner:
            logger.info(task.banner, extra={"banner": True})
        logger.debug("Task %s: %d step(s)", name, len(task.steps))
        ctx = dataclasses.replace(self.context, task=name)
        for step in task.steps:
            step.execute(ctx)

    def _dependent_of(self, prerequisite: str, names: tuple[str, ...]) -> str:
        """The first requested task whose resolution includes `prerequisite`."""
        for name in names:
            if prerequisite in self.graph.resolve(name):
                return name
        return names[0]
