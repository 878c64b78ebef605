"""
Deadlock Avoidance (Banker's Algorithm) request and release protocol.

Requests are granted only if the resulting state is safe; releases are
validated as a whole and then applied.
"""

import numpy as np
from typing import Optional, Tuple

from models.allocation_state import AllocationState
from models.decision import Decision, DenialReason
from algorithms.safety import is_safe_state


def _as_vector(values, num_resources: int) -> Tuple[Optional[np.ndarray], str]:
    """
    Convert a per-resource quantity list to an integer vector.

    Returns:
        Tuple of (vector or None, error message if conversion failed)
    """
    try:
        vector = np.asarray(values)
    except ValueError:
        return None, "Quantities must be a flat list of integers"

    if vector.shape != (num_resources,):
        return None, f"Expected {num_resources} quantities (one per resource type), got shape {vector.shape}"
    if not np.issubdtype(vector.dtype, np.integer):
        return None, "Quantities must be integers"

    return vector.astype(int), ""


def handle_request(state: AllocationState, customer: int, request) -> Decision:
    """
    Handle a resource request using Banker's Algorithm.

    Steps:
    1. Validate customer index
    2. Validate 0 <= request <= Need[customer] for every resource
    3. Validate request <= Available for every resource
    4. Tentatively allocate and run the safety algorithm
    5. If safe: keep the allocation
       If unsafe: roll back exactly and deny

    Args:
        state: Current allocation state
        customer: Index of the requesting customer
        request: [R] Units requested of each resource type

    Returns:
        Decision (granted with a safe sequence, or denied with a reason)
    """
    # Step 1: Validate customer
    if not state.is_valid_customer(customer):
        return Decision.denied(
            DenialReason.INVALID_CUSTOMER,
            f"Invalid customer number {customer} (expected 0..{state.num_customers - 1})"
        )

    vector, error = _as_vector(request, state.num_resources)
    if vector is None:
        return Decision.denied(DenialReason.INVALID_QUANTITY, error)

    # Step 2: Validate request doesn't exceed need
    need = state.need[customer]
    for r in range(state.num_resources):
        if vector[r] < 0:
            return Decision.denied(
                DenialReason.INVALID_QUANTITY,
                f"Negative request for {state.resource_names[r]} ({vector[r]})",
                resource=r
            )
        if vector[r] > need[r]:
            return Decision.denied(
                DenialReason.INVALID_QUANTITY,
                f"Request exceeds need for {state.resource_names[r]} "
                f"(requested: {vector[r]}, need: {need[r]})",
                resource=r
            )

    # Step 3: Check availability
    for r in range(state.num_resources):
        if vector[r] > state.available[r]:
            return Decision.denied(
                DenialReason.INVALID_QUANTITY,
                f"Not enough available {state.resource_names[r]} "
                f"(requested: {vector[r]}, available: {state.available[r]})",
                resource=r
            )

    # Step 4: Tentatively allocate resources
    state.available -= vector
    state.allocation[customer] += vector
    state.need[customer] -= vector

    is_safe, safe_seq = is_safe_state(state)

    # Step 5: Commit or roll back
    if is_safe:
        state.check_invariants(f"after granting {state.format_vector(vector)} to customer {customer}")
        seq_str = " -> ".join(f"C{c}" for c in safe_seq)
        return Decision(
            granted=True,
            message=f"GRANTED (Safe state maintained, sequence: {seq_str})",
            safe_sequence=safe_seq
        )

    state.available += vector
    state.allocation[customer] -= vector
    state.need[customer] += vector

    return Decision.denied(
        DenialReason.UNSAFE_STATE,
        "DENIED (Request would enter unsafe state) - rolled back"
    )


def handle_release(state: AllocationState, customer: int, release) -> Decision:
    """
    Release resources held by a customer.

    The whole release is validated before anything is applied, so a bad
    amount for one resource leaves every table untouched. Releasing can only
    grow Available, so no safety check is needed.

    Args:
        state: Current allocation state
        customer: Index of the releasing customer
        release: [R] Units released of each resource type

    Returns:
        Decision (granted, or denied naming the failing resource)
    """
    if not state.is_valid_customer(customer):
        return Decision.denied(
            DenialReason.INVALID_CUSTOMER,
            f"Invalid customer number {customer} (expected 0..{state.num_customers - 1})"
        )

    vector, error = _as_vector(release, state.num_resources)
    if vector is None:
        return Decision.denied(DenialReason.INVALID_QUANTITY, error)

    held = state.allocation[customer]
    for r in range(state.num_resources):
        if vector[r] < 0 or vector[r] > held[r]:
            return Decision.denied(
                DenialReason.INVALID_QUANTITY,
                f"Invalid release amount for resource {state.resource_names[r]} "
                f"(releasing: {vector[r]}, holding: {held[r]})",
                resource=r
            )

    state.allocation[customer] -= vector
    state.available += vector
    state.need[customer] += vector

    state.check_invariants(f"after customer {customer} released {state.format_vector(vector)}")

    return Decision(granted=True, message=f"RELEASED ({state.format_vector(vector)})")
