"""
Deadlock Detection Algorithm for the Banker's Allocation Simulator.

Runs the Work/Finish fixed point on the committed state and reports the
customers that can never complete.
"""

from typing import List, Tuple

from models.allocation_state import AllocationState
from algorithms.safety import run_work_finish


def detect_deadlock(state: AllocationState) -> Tuple[bool, List[int]]:
    """
    Detect deadlock using the matrix-based Work/Finish algorithm.

    A customer is deadlocked when its remaining Need can never be covered,
    even after every other finishable customer hands back its allocation.
    This is the same computation as the safety check; the difference is only
    that it is evaluated on the current committed state rather than on a
    tentative grant.

    Args:
        state: Current allocation state (not modified)

    Returns:
        Tuple of (deadlock_exists, list of deadlocked customer indices)
    """
    finish, _ = run_work_finish(state.available, state.allocation, state.need)

    deadlocked = [i for i, is_finished in enumerate(finish) if not is_finished]

    return len(deadlocked) > 0, deadlocked
