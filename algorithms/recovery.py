"""
Deadlock Recovery by resource preemption for the Banker's Allocation Simulator.

Victims have their entire allocation reclaimed; their maximum claim is kept,
so their Need grows back to Maximum.
"""

from typing import List, Tuple

from models.allocation_state import AllocationState
from models.decision import Resolution
from algorithms.detection import detect_deadlock


VICTIM_STRATEGIES = ("index", "fewest_resources", "most_resources")


def victim_order(state: AllocationState, strategy: str = "index") -> List[int]:
    """
    Order in which customers are considered for preemption.

    Strategies:
    - "index": Ascending customer index, whether or not the customer is part
      of the deadlock
    - "fewest_resources": Customers holding the fewest units first
    - "most_resources": Customers holding the most units first

    Ties are broken by customer index.

    Args:
        state: Current allocation state
        strategy: Selection strategy

    Returns:
        List of customer indices

    Raises:
        ValueError: If strategy is unknown
    """
    customers = list(range(state.num_customers))

    if strategy == "index":
        return customers

    elif strategy == "fewest_resources":
        held = state.allocation.sum(axis=1)
        return sorted(customers, key=lambda c: (held[c], c))

    elif strategy == "most_resources":
        held = state.allocation.sum(axis=1)
        return sorted(customers, key=lambda c: (-held[c], c))

    else:
        raise ValueError(
            f"Unknown victim strategy '{strategy}' (choose from {', '.join(VICTIM_STRATEGIES)})"
        )


def preempt_customer(state: AllocationState, customer: int) -> Tuple[List[int], str]:
    """
    Forcibly reclaim a customer's entire allocation.

    Behaves like a release of everything the customer holds: Available grows
    by the allocation, Need is restored and Allocation drops to zero.

    Args:
        state: Current allocation state
        customer: Index of the victim

    Returns:
        Tuple of (units reclaimed per resource type, message)
    """
    reclaimed = state.allocation[customer].copy()

    state.available += reclaimed
    state.need[customer] += reclaimed
    state.allocation[customer] = 0

    state.check_invariants(f"after preempting customer {customer}")

    if reclaimed.any():
        message = f"Preempted resources from customer {customer} ({state.format_vector(reclaimed)})"
    else:
        message = f"Preempted resources from customer {customer} (held nothing)"

    return [int(v) for v in reclaimed], message


def resolve_deadlock(state: AllocationState, strategy: str = "index") -> Resolution:
    """
    Break a deadlock by preempting customers one at a time.

    Customers are visited in victim order. Before each preemption the
    deadlock is re-checked, and resolution stops as soon as none remains.
    After every customer has been visited a final check decides the outcome.

    Args:
        state: Current allocation state
        strategy: Victim ordering strategy (see victim_order)

    Returns:
        Resolution with the preempted customers and action messages
    """
    resolution = Resolution(resolved=False)

    for customer in victim_order(state, strategy):
        deadlock_exists, _ = detect_deadlock(state)
        if not deadlock_exists:
            resolution.resolved = True
            resolution.actions.append("Deadlock resolved.")
            return resolution

        _, message = preempt_customer(state, customer)
        resolution.preempted.append(customer)
        resolution.actions.append(message)

    deadlock_exists, remaining = detect_deadlock(state)
    if deadlock_exists:
        resolution.actions.append(
            f"Failed to resolve deadlock (customers still blocked: {remaining})"
        )
    else:
        resolution.resolved = True
        resolution.actions.append("Deadlock resolved.")

    return resolution
