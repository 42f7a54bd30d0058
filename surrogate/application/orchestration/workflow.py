"""
Workflow Module

Architectural Intent:
- Dependency-ordered execution of the steps of one image build
- Steps declare what they depend on; the runner validates the graph and
  runs the steps one at a time in a deterministic topological order
- Results of earlier steps are available to later ones

Execution Strategy:
- Strictly sequential: the build core never spawns concurrent work, so a
  step is awaited to completion before the next one starts
- Ties between independent steps are broken by declaration order
- The first failing step stops the run with WorkflowStepError, which keeps
  the step name and the original exception; completed results are kept on
  the runner for whoever has to clean up
- `current` names the step being awaited, so a cancelled run can report
  where it stopped
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from surrogate.domain.errors import WorkflowDefinitionError, WorkflowStepError

logger = logging.getLogger(__name__)

StepCallable = Callable[[dict[str, Any], dict[str, Any]], Awaitable[Any]]


@dataclass
class WorkflowStep:
    name: str
    execute: StepCallable
    depends_on: list[str] = field(default_factory=list)


class Workflow:
    def __init__(self, steps: list[WorkflowStep]) -> None:
        self.steps: dict[str, WorkflowStep] = {}
        for step in steps:
            if step.name in self.steps:
                raise WorkflowDefinitionError(f"Duplicate step name: {step.name}")
            self.steps[step.name] = step
        self.completed: dict[str, Any] = {}
        self.current: str | None = None
        self._order: list[str] | None = None

    def _validate(self) -> None:
        for step in self.steps.values():
            for dep in step.depends_on:
                if dep not in self.steps:
                    raise WorkflowDefinitionError(
                        f"Step {step.name} depends on unknown step: {dep}"
                    )

        visited: set[str] = set()
        rec_stack: set[str] = set()

        def has_cycle(name: str) -> bool:
            visited.add(name)
            rec_stack.add(name)
            for dep in self.steps[name].depends_on:
                if dep not in visited:
                    if has_cycle(dep):
                        return True
                elif dep in rec_stack:
                    return True
            rec_stack.remove(name)
            return False

        for step_name in self.steps:
            if step_name not in visited:
                if has_cycle(step_name):
                    raise WorkflowDefinitionError(
                        f"Circular dependency detected involving step: {step_name}"
                    )

    def order(self) -> list[str]:
        """Topological order of the steps, declaration order breaking ties."""
        if self._order is None:
            self._validate()
            ordered: list[str] = []
            done: set[str] = set()
            pending = list(self.steps)
            while pending:
                ready = next(
                    name
                    for name in pending
                    if all(dep in done for dep in self.steps[name].depends_on)
                )
                ordered.append(ready)
                done.add(ready)
                pending.remove(ready)
            self._order = ordered
        return list(self._order)

    async def run(self, context: dict[str, Any]) -> dict[str, Any]:
        for name in self.order():
            step = self.steps[name]
            self.current = name
            logger.debug("Running step %s", name)
            try:
                self.completed[name] = await step.execute(context, self.completed)
            except Exception as e:
                logger.error("Step %s failed: %s", name, e)
                raise WorkflowStepError(name, e) from e
        self.current = None
        return dict(self.completed)
