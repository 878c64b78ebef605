"""
Deadlock Detection and Recovery Tests

Covers detection on committed state, preemption, and resolution outcomes
for every victim ordering strategy.
"""

import sys
from pathlib import Path

import numpy as np

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from models.allocation_state import AllocationState
from algorithms.detection import detect_deadlock
from algorithms.recovery import victim_order, preempt_customer, resolve_deadlock
from utils.config_loader import load_config


CONFIGS_DIR = project_root / "configs"


def deadlocked_state() -> AllocationState:
    """Available = [0, 0]; each customer holds the unit the other needs."""
    return load_config(str(CONFIGS_DIR / "deadlock.json"))


def test_no_deadlock_in_classic_state():
    state = load_config(str(CONFIGS_DIR / "classic.json"))
    deadlock_exists, deadlocked = detect_deadlock(state)
    assert not deadlock_exists
    assert deadlocked == []


def test_detects_circular_hold():
    state = deadlocked_state()
    assert list(state.available) == [0, 0]

    deadlock_exists, deadlocked = detect_deadlock(state)
    print(f"\nDeadlock: {deadlock_exists}, customers: {deadlocked}")

    assert deadlock_exists
    assert deadlocked == [0, 1]
    print("  ✓ Both customers reported")


def test_detection_is_idempotent():
    state = deadlocked_state()
    before = state.snapshot()

    results = [detect_deadlock(state) for _ in range(3)]

    assert results[0] == results[1] == results[2]
    for name in before:
        assert np.array_equal(before[name], state.snapshot()[name])


def test_preempt_customer_reclaims_everything():
    state = deadlocked_state()
    reclaimed, message = preempt_customer(state, 0)
    print(f"\n{message}")

    assert reclaimed == [1, 0]
    assert list(state.allocation[0]) == [0, 0]
    assert list(state.need[0]) == [1, 1]
    assert list(state.maximum[0]) == [1, 1]
    assert list(state.available) == [1, 0]
    state.check_invariants("after preemption")


def test_resolve_deadlock_by_index():
    state = deadlocked_state()
    resolution = resolve_deadlock(state)

    for action in resolution.actions:
        print(f"  {action}")

    assert resolution.resolved
    assert resolution.preempted == [0]
    assert not detect_deadlock(state)[0]
    assert list(state.allocation[1]) == [0, 1], "Customer 1 keeps its holdings"
    state.check_invariants("after resolution")
    print("  ✓ Deadlock resolved after preempting customer 0")


def test_resolve_without_deadlock_preempts_nobody():
    state = load_config(str(CONFIGS_DIR / "classic.json"))
    before = state.snapshot()

    resolution = resolve_deadlock(state)

    assert resolution.resolved
    assert resolution.preempted == []
    assert np.array_equal(before['allocation'], state.allocation)


def test_index_order_preempts_bystanders():
    """Customer 0 is not part of the cycle but is still preempted first."""
    state = AllocationState.initialize(
        [2, 1, 1],
        [[1, 0, 0], [0, 1, 1], [0, 1, 1]],
        [[1, 0, 0], [0, 1, 0], [0, 0, 1]]
    )
    # C0 can finish; C1 and C2 each wait on the other
    assert detect_deadlock(state) == (True, [1, 2])

    resolution = resolve_deadlock(state, "index")

    assert resolution.resolved
    assert resolution.preempted == [0, 1]


def test_unresolvable_deadlock_reports_failure():
    state = load_config(str(CONFIGS_DIR / "unresolvable.json"))
    resolution = resolve_deadlock(state)

    for action in resolution.actions:
        print(f"  {action}")

    assert not resolution.resolved
    assert resolution.preempted == [0, 1]
    assert detect_deadlock(state) == (True, [1])
    assert "Failed" in resolution.actions[-1]
    state.check_invariants("after failed resolution")


def test_victim_order_strategies():
    state = AllocationState.initialize(
        [10, 10],
        [[5, 5], [5, 5], [5, 5]],
        [[2, 2], [0, 1], [3, 3]]
    )
    assert victim_order(state, "index") == [0, 1, 2]
    assert victim_order(state, "fewest_resources") == [1, 0, 2]
    assert victim_order(state, "most_resources") == [2, 0, 1]

    try:
        victim_order(state, "random")
        raised = False
    except ValueError:
        raised = True
    assert raised, "Unknown strategy should raise ValueError"


def test_alternative_strategies_resolve():
    state = AllocationState.initialize(
        [2, 1, 1],
        [[1, 0, 0], [0, 1, 1], [0, 1, 1]],
        [[1, 0, 0], [0, 1, 0], [0, 0, 1]]
    )
    resolution = resolve_deadlock(state, "most_resources")

    # All hold one unit; ties fall back to index order
    assert resolution.resolved
    assert resolution.preempted == [0, 1]

    state = deadlocked_state()
    resolution = resolve_deadlock(state, "fewest_resources")
    assert resolution.resolved
    assert resolution.preempted == [0]


def main():
    """Run all deadlock tests."""
    test_no_deadlock_in_classic_state()
    test_detects_circular_hold()
    test_detection_is_idempotent()
    test_preempt_customer_reclaims_everything()
    test_resolve_deadlock_by_index()
    test_resolve_without_deadlock_preempts_nobody()
    test_index_order_preempts_bystanders()
    test_unresolvable_deadlock_reports_failure()
    test_victim_order_strategies()
    test_alternative_strategies_resolve()
    print("\n✅ Deadlock Tests PASSED")
    return 0


if __name__ == '__main__':
    sys.exit(main())
