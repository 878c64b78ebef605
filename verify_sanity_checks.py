"""
Verify sanity checks are working:
1. Resource conservation after every grant/release/preemption
2. Denied requests leave every table untouched
3. Invariant violations are caught by check_invariants
"""
import sys

import numpy as np

from utils.config_loader import load_config
from algorithms.avoidance import handle_request, handle_release
from algorithms.detection import detect_deadlock
from algorithms.recovery import resolve_deadlock

state = load_config("configs/classic.json")

print("="*60)
print("SANITY CHECK VERIFICATION")
print("="*60)

print("\n1. Initial state conservation check...")
try:
    state.check_invariants("at initial state")
    print("   ✓ Invariants hold at initial state")
except AssertionError as e:
    print(f"   ✗ FAILED: {e}")
    sys.exit(1)

print("\n2. Grant and release...")
decision = handle_request(state, 1, [1, 0, 0, 1])
print(f"   Request C1 [1, 0, 0, 1]: {decision.message}")
decision = handle_release(state, 1, [1, 0, 0, 1])
print(f"   Release C1 [1, 0, 0, 1]: {decision.message}")
state.check_invariants("after grant and release")
print("   ✓ Invariants hold after grant and release")

print("\n3. Denied request leaves tables untouched...")
before = state.snapshot()
decision = handle_request(state, 0, [2, 1, 1, 1])
after = state.snapshot()
if decision.granted or any(not np.array_equal(before[k], after[k]) for k in before):
    print(f"   ✗ FAILED: {decision.message}")
    sys.exit(1)
print(f"   ✓ {decision.message}")

print("\n4. Deadlock resolution keeps conservation...")
deadlocked_state = load_config("configs/deadlock.json")
deadlock_exists, deadlocked = detect_deadlock(deadlocked_state)
print(f"   Deadlock detected: {deadlock_exists}, customers: {deadlocked}")
resolution = resolve_deadlock(deadlocked_state)
for action in resolution.actions:
    print(f"   {action}")
deadlocked_state.check_invariants("after resolution")
print("   ✓ Invariants hold after resolution")

print("\n5. Verify negative available check (simulated violation)...")
try:
    original_available = state.available[0]
    state.available[0] = -1
    state.check_invariants("negative available test")
    print("   ✗ FAILED: Should have caught negative available")
    sys.exit(1)
except AssertionError:
    state.available[0] = original_available
    print("   ✓ Negative available properly detected")

print("\n" + "="*60)
print("ALL SANITY CHECKS PASSED ✓")
print("="*60)
