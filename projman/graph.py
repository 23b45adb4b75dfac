"""
graph.py

Responsibility: Hold the static task graph and resolve execution order.

Rules:
- The graph is built once and never mutated afterwards.
- Every prerequisite must name a task in the graph.
- The prerequisite relation must be acyclic.
- Resolution is depth-first over prerequisites in declared order; each task
  appears once even when it is reachable through several paths.

This module does NOT execute anything; see `runner.py`.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any


class TaskGraphError(ValueError):
    pass


class UnknownTaskError(TaskGraphError):
    def __init__(self, name: str, *, required_by: str | None = None) -> None:
        self.name = name
        self.required_by = required_by
        if required_by:
            msg = f"Unknown task: {name!r} (prerequisite of {required_by!r})"
        else:
            msg = f"Unknown task: {name!r}"
        super().__init__(msg)


class CycleError(TaskGraphError):
    def __init__(self, path: list[str]) -> None:
        self.path = path
        super().__init__("Task prerequisites form a cycle: " + " -> ".join(path))


@dataclass(frozen=True)
class Task:
    """A named unit of work: prerequisites plus an ordered action."""

    name: str
    prerequisites: tuple[str, ...] = ()
    steps: tuple[Any, ...] = ()
    description: str = ""
    banner: str | None = None


class TaskGraph(Mapping[str, Task]):
    """Immutable mapping of task name -> Task, validated on construction."""

    def __init__(self, tasks: Iterable[Task]) -> None:
        table: dict[str, Task] = {}
        for task in tasks:
            if task.name in table:
                raise TaskGraphError(f"Duplicate task name: {task.name!r}")
            table[task.name] = task
        self._tasks: Mapping[str, Task] = MappingProxyType(table)
        self._validate()

    def __getitem__(self, name: str) -> Task:
        try:
            return self._tasks[name]
        except KeyError:
            raise UnknownTaskError(name) from None

    # Mapping's defaults rely on KeyError; UnknownTaskError is not one.
    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def get(self, name: str, default: Task | None = None) -> Task | None:
        return self._tasks.get(name, default)

    def __iter__(self) -> Iterator[str]:
        return iter(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def _validate(self) -> None:
        for task in self._tasks.values():
            for dep in task.prerequisites:
                if dep not in self._tasks:
                    raise UnknownTaskError(dep, required_by=task.name)

        # Colour marking: 1 = on the current DFS path, 2 = fully explored.
        state: dict[str, int] = {}

        def visit(name: str, path: list[str]) -> None:
            mark = state.get(name)
            if mark == 2:
                return
            if mark == 1:
                start = path.index(name)
                raise CycleError(path[start:] + [name])
            state[name] = 1
            path.append(name)
            for dep in self._tasks[name].prerequisites:
                visit(dep, path)
            path.pop()
            state[name] = 2

        for name in self._tasks:
            visit(name, [])

    def resolve(self, *names: str) -> list[str]:
        """
        Return the execution order for the requested task names.

        All names are checked before anything is resolved, so an unknown name
        fails without producing a partial order.
        """
        for name in names:
            if name not in self._tasks:
                raise UnknownTaskError(name)

        order: list[str] = []
        seen: set[str] = set()

        def visit(name: str) -> None:
            if name in seen:
                return
            seen.add(name)
            for dep in self._tasks[name].prerequisites:
                visit(dep)
            order.append(name)

        for name in names:
            visit(name)
        return order
