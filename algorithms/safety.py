"""
Work/Finish fixed point shared by the Banker's safety check and deadlock detection.

Both questions are the same reachability computation: starting from a work
vector, which customers can have their remaining need met if every customer
that finishes hands its allocation back?
"""

import numpy as np
from typing import List, Optional, Tuple

from models.allocation_state import AllocationState


def run_work_finish(
    work_start: np.ndarray,
    allocation: np.ndarray,
    need: np.ndarray
) -> Tuple[np.ndarray, List[int]]:
    """
    Compute which customers can finish from the given work vector.

    Algorithm:
    1. Initialize Work = work_start.copy(), Finish = [False] * num_customers
    2. Scan unfinished customers in ascending index order; for every i with
       Need[i] <= Work (element-wise): Work += Allocation[i], Finish[i] = True
    3. Repeat the full scan until a pass finishes nobody

    Work and Finish only grow, so at most C passes are made.

    Time Complexity: O(C²×R) where C = customers, R = resource types

    Args:
        work_start: [R] Starting work vector (never modified)
        allocation: [C][R] Allocation table
        need: [C][R] Need table

    Returns:
        Tuple of (finish vector, completion order of customer indices)

    References:
        Silberschatz, A., Galvin, P. B., & Gagne, G. (2018).
        Operating System Concepts (10th ed.). Chapter 8: Deadlocks.
    """
    num_customers = allocation.shape[0]

    work = work_start.copy()
    finish = np.zeros(num_customers, dtype=bool)
    order = []

    made_progress = True
    while made_progress:
        made_progress = False

        for i in range(num_customers):
            if finish[i]:
                continue

            if np.all(need[i] <= work):
                work += allocation[i]
                finish[i] = True
                order.append(i)
                made_progress = True

    return finish, order


def is_safe_state(state: AllocationState) -> Tuple[bool, Optional[List[int]]]:
    """
    Check if the tables describe a safe state (Banker's Algorithm).

    Args:
        state: Current allocation state (not modified)

    Returns:
        Tuple of (is_safe, safe_sequence if exists else None)
    """
    finish, order = run_work_finish(state.available, state.allocation, state.need)

    if np.all(finish):
        return True, order
    return False, None
