"""
Event Model for the Banker's Allocation Simulator.

Records every engine decision so a session can be audited and summarized.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class EventType(Enum):
    """Types of engine events."""
    GRANT = "grant"
    DENIAL = "denial"
    RELEASE = "release"
    DEADLOCK = "deadlock"
    PREEMPTION = "preemption"
    RESOLUTION = "resolution"


@dataclass
class EngineEvent:
    """
    Represents a single engine event.

    Attributes:
        operation: Sequence number of the engine operation that produced it
        event_type: Type of event
        customer: Customer involved (-1 for system-wide events)
        quantities: Per-resource amounts involved (if applicable)
        message: Human-readable description
        reason: Denial kind (if applicable)
    """
    operation: int
    event_type: EventType
    customer: int
    quantities: Optional[List[int]] = None
    message: str = ""
    reason: str = ""

    def __str__(self) -> str:
        """Format event for logging."""
        base = f"#{self.operation}: "
        base += f"Customer {self.customer}" if self.customer >= 0 else "System"

        if self.event_type == EventType.GRANT:
            return f"{base} requests {self.quantities} - GRANTED"
        elif self.event_type == EventType.DENIAL:
            return f"{base} {self.message} - DENIED ({self.reason})"
        elif self.event_type == EventType.RELEASE:
            return f"{base} releases {self.quantities}"
        elif self.event_type == EventType.DEADLOCK:
            return f"{base} - DEADLOCK DETECTED ({self.message})"
        elif self.event_type == EventType.PREEMPTION:
            return f"{base} - PREEMPTED {self.quantities}"
        else:
            return f"{base} - {self.event_type.value}: {self.message}"


@dataclass
class EventLog:
    """Collection of engine events."""
    events: list = None

    def __post_init__(self):
        if self.events is None:
            self.events = []

    def add(self, event: EngineEvent) -> None:
        """Add an event to the log."""
        self.events.append(event)

    def get_events_by_type(self, event_type: EventType) -> list:
        """Get all events of a specific type."""
        return [e for e in self.events if e.event_type == event_type]

    def get_events_by_customer(self, customer: int) -> list:
        """Get all events involving a specific customer."""
        return [e for e in self.events if e.customer == customer]

    def counts(self) -> Dict[EventType, int]:
        """Number of events of each type (every type present, zero if unseen)."""
        totals = {event_type: 0 for event_type in EventType}
        for event in self.events:
            totals[event.event_type] += 1
        return totals

    def display(self) -> str:
        """Format all events for display."""
        return "\n".join(str(event) for event in self.events)
