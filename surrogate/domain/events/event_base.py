"""
Domain Events Module

Architectural Intent:
- Base class for events emitted while an image build progresses
- Events are immutable and capture significant lifecycle occurrences
- Events are collected on the ImageBuild aggregate and dispatched via the
  event bus once the build finishes
"""

from dataclasses import dataclass, field, fields
from datetime import datetime, UTC
from typing import Any


@dataclass(frozen=True)
class DomainEvent:
    occurred_at: str = field(
        default_factory=lambda: datetime.now(UTC).isoformat(), init=False, repr=False
    )
    aggregate_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Flat record of the event: its type plus every field."""
        payload = {f.name: getattr(self, f.name) for f in fields(self)}
        payload["event_type"] = type(self).__name__
        return payload
