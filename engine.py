"""
Allocation Engine for the Banker's Allocation Simulator.

Owns one AllocationState and exposes the request, release, safety, detection
and resolution operations. Each call runs to completion and leaves the
tables consistent; the engine is meant for a single caller at a time.
"""

from typing import Dict, List, Optional

import numpy as np

from models.allocation_state import AllocationState
from models.decision import Decision, Resolution
from algorithms.safety import is_safe_state
from algorithms.avoidance import handle_request, handle_release
from algorithms.detection import detect_deadlock
from algorithms.recovery import resolve_deadlock, victim_order
from analysis.events import EngineEvent, EventLog, EventType
from utils.logger import EngineLogger


class AllocationEngine:
    """
    Banker's algorithm engine over a fixed set of customers and resource types.

    Attributes:
        state: The resource tables
        strategy: Victim ordering used by resolve_deadlock
        logger: Logger receiving every decision
        event_log: Audit trail of decisions
    """

    def __init__(
        self,
        state: AllocationState,
        strategy: str = "index",
        logger: Optional[EngineLogger] = None
    ):
        # Fail fast on unknown strategies
        victim_order(state, strategy)

        self.state = state
        self.strategy = strategy
        self.logger = logger if logger is not None else EngineLogger(quiet=True)
        self.event_log = EventLog()
        self._operation = 0

        if state.clamp_negative_need and np.any(state.allocation > state.maximum):
            self.logger.log(
                "Some allocations exceed their maximum claim; Need was clamped to zero",
                "warning"
            )

    @classmethod
    def initialize(
        cls,
        total_available,
        maximum,
        allocation,
        resource_names: Optional[List[str]] = None,
        clamp_negative_need: bool = False,
        strategy: str = "index",
        logger: Optional[EngineLogger] = None
    ) -> "AllocationEngine":
        """
        Create an engine from initial tables.

        Raises:
            InvalidConfiguration: If the tables violate the allocation invariants
        """
        state = AllocationState.initialize(
            total_available,
            maximum,
            allocation,
            resource_names=resource_names,
            clamp_negative_need=clamp_negative_need
        )
        return cls(state, strategy=strategy, logger=logger)

    def _record(self, event_type: EventType, customer: Optional[int], quantities=None,
                message: str = "", reason: str = "") -> None:
        # None marks a system-wide event; invalid customers are kept only in the message
        if customer is None:
            customer = -1
        elif self.state.is_valid_customer(customer):
            customer = int(customer)
        else:
            message = f"customer {customer!r} {message}"
            customer = -1
        self.event_log.add(EngineEvent(
            operation=self._operation,
            event_type=event_type,
            customer=customer,
            quantities=quantities,
            message=message,
            reason=reason
        ))

    def _describe(self, quantities) -> str:
        try:
            return self.state.format_vector(quantities)
        except (TypeError, ValueError):
            return repr(quantities)

    def request(self, customer: int, request) -> Decision:
        """Request resources for a customer; granted only if the result is safe."""
        self._operation += 1
        decision = handle_request(self.state, customer, request)

        self.logger.log_request(customer, self._describe(request), decision)
        if decision.granted:
            self._record(EventType.GRANT, customer, [int(v) for v in request], decision.message)
            self.logger.log_state(self.state.display())
        else:
            self._record(
                EventType.DENIAL,
                customer,
                message=f"requests {self._describe(request)}",
                reason=decision.reason.value
            )

        return decision

    def release(self, customer: int, release) -> Decision:
        """Return resources held by a customer."""
        self._operation += 1
        decision = handle_release(self.state, customer, release)

        self.logger.log_release(customer, self._describe(release), decision)
        if decision.granted:
            self._record(EventType.RELEASE, customer, [int(v) for v in release], decision.message)
            self.logger.log_state(self.state.display())
        else:
            self._record(
                EventType.DENIAL,
                customer,
                message=f"releases {self._describe(release)}",
                reason=decision.reason.value
            )

        return decision

    def is_safe(self) -> bool:
        """True if some completion order satisfies every customer."""
        is_safe, _ = is_safe_state(self.state)
        return is_safe

    def safe_sequence(self) -> Optional[List[int]]:
        """A concrete safe completion order, or None if the state is unsafe."""
        _, sequence = is_safe_state(self.state)
        return sequence

    def detect_deadlock(self) -> bool:
        """True if at least one customer can never complete."""
        deadlock_exists, _ = detect_deadlock(self.state)
        return deadlock_exists

    def deadlocked_customers(self) -> List[int]:
        """Customers that can never complete given current holdings."""
        _, deadlocked = detect_deadlock(self.state)
        return deadlocked

    def resolve_deadlock(self) -> Resolution:
        """Preempt customers in victim order until no deadlock remains."""
        self._operation += 1
        return self._resolve()

    def _resolve(self) -> Resolution:
        before = self.state.allocation.copy()
        resolution = resolve_deadlock(self.state, self.strategy)

        for customer in resolution.preempted:
            self._record(
                EventType.PREEMPTION,
                customer,
                [int(v) for v in before[customer]],
                f"Preempted customer {customer}"
            )
        self._record(
            EventType.RESOLUTION,
            None,
            message="resolved" if resolution.resolved else "unresolved"
        )

        self.logger.log_resolution(resolution)
        self.logger.log_state(self.state.display())
        return resolution

    def check_state(self) -> Optional[Resolution]:
        """
        Detect deadlock and resolve it if present.

        Returns:
            Resolution if a deadlock was found, None otherwise
        """
        deadlock_exists, deadlocked = detect_deadlock(self.state)
        if not deadlock_exists:
            self.logger.log("No deadlock detected.")
            return None

        self._operation += 1
        self._record(EventType.DEADLOCK, None, message=f"customers {deadlocked}")
        self.logger.log_deadlock(deadlocked)
        self.logger.log("Deadlock detected! Resolving...")
        return self._resolve()

    def snapshot(self) -> Dict[str, np.ndarray]:
        """Read-only copy of available, maximum, allocation, need and total."""
        return self.state.snapshot()

    def display(self) -> str:
        """Formatted tables for the console."""
        return self.state.display()
