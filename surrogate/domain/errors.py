"""
Domain Errors

Architectural Intent:
- One hierarchy for every failure the build core raises itself
- Remote call failures are NOT wrapped here; adapters let them propagate
- Each error keeps its structured fields so callers can inspect them
  without parsing messages
"""

from __future__ import annotations
from typing import Any, Iterable


class SurrogateError(Exception):
    """Base class for errors raised by the image build core."""


class ConfigError(SurrogateError):
    """Configuration cannot be turned into a working build."""


class PreconditionError(SurrogateError):
    """A required lookup returned nothing. Never retried."""

    def __init__(self, resource_kind: str, detail: str) -> None:
        self.resource_kind = resource_kind
        self.detail = detail
        super().__init__(f"No {resource_kind} found: {detail}")


class MissingAddressError(PreconditionError):
    def __init__(self, instance_id: str) -> None:
        self.instance_id = instance_id
        super().__init__(
            "public IP address", f"VNIC of instance {instance_id} has no public IP"
        )


class UnexpectedStateError(SurrogateError):
    """A polled resource reported a state outside the expected contract."""

    def __init__(
        self,
        resource_id: str,
        observed: Any,
        waiting_states: Iterable[Any],
        terminal_state: Any,
    ) -> None:
        self.resource_id = resource_id
        self.observed = observed
        self.waiting_states = tuple(waiting_states)
        self.terminal_state = terminal_state
        waiting = ", ".join(str(s) for s in self.waiting_states)
        super().__init__(
            f"Unexpected state {str(observed)!r} for resource {resource_id}, "
            f"expecting a waiting state [{waiting}] "
            f"or terminal state {str(terminal_state)!r}"
        )


class MaxRetriesExceededError(SurrogateError):
    def __init__(self, resource_id: str, max_retries: int, terminal_state: Any) -> None:
        self.resource_id = resource_id
        self.max_retries = max_retries
        self.terminal_state = terminal_state
        super().__init__(
            f"Maximum number of retries ({max_retries}) exceeded; resource "
            f"{resource_id} did not reach state {str(terminal_state)!r}"
        )


class WorkflowDefinitionError(SurrogateError):
    """A step graph has a cycle or depends on a step that does not exist."""


class WorkflowStepError(SurrogateError):
    """A workflow step failed. The original exception is kept in ``cause``."""

    def __init__(self, step: str, cause: BaseException) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"Step {step} failed: {cause}")
