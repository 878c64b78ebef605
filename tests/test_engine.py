"""
Allocation Engine and Command Loop Tests

Drives the engine facade and the RQ / RL / CS command interface the way a
user session would, then checks the tables and the event log.
"""

import io
import sys
import tempfile
from pathlib import Path

import numpy as np

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from engine import AllocationEngine
from banker import execute_command, run_command_loop, prompt_configuration, main, CommandError
from models.allocation_state import InvalidConfiguration
from models.decision import DenialReason
from analysis.events import EventType
from utils.config_loader import load_config
from utils.logger import EngineLogger


CONFIGS_DIR = project_root / "configs"


def make_engine(name: str = "classic.json", strategy: str = "index") -> AllocationEngine:
    state = load_config(str(CONFIGS_DIR / name))
    return AllocationEngine(state, strategy=strategy, logger=EngineLogger(quiet=True))


def test_initialize_and_snapshot():
    engine = AllocationEngine.initialize([3, 3], [[2, 2], [1, 1]], [[1, 0], [0, 1]])
    snapshot = engine.snapshot()

    assert list(snapshot['available']) == [2, 2]
    assert snapshot['need'].tolist() == [[1, 2], [1, 0]]
    assert engine.is_safe()
    assert engine.safe_sequence() == [0, 1]


def test_initialize_rejects_bad_configuration():
    try:
        AllocationEngine.initialize([1], [[1]], [[2]])
        raise AssertionError("Expected InvalidConfiguration")
    except InvalidConfiguration:
        pass


def test_unknown_strategy_rejected():
    state = load_config(str(CONFIGS_DIR / "classic.json"))
    try:
        AllocationEngine(state, strategy="oldest")
        raise AssertionError("Expected ValueError")
    except ValueError:
        pass


def test_engine_records_events():
    engine = make_engine()

    assert engine.request(1, [2, 0, 0, 0]).reason == DenialReason.INVALID_QUANTITY
    assert engine.request(0, [2, 1, 1, 1]).reason == DenialReason.UNSAFE_STATE
    assert engine.request(1, [1, 0, 0, 1]).granted
    assert engine.release(1, [1, 0, 0, 1]).granted

    counts = engine.event_log.counts()
    print(f"\n{engine.event_log.display()}")

    assert counts[EventType.GRANT] == 1
    assert counts[EventType.DENIAL] == 2
    assert counts[EventType.RELEASE] == 1
    denials = engine.event_log.get_events_by_type(EventType.DENIAL)
    assert [e.reason for e in denials] == ["InvalidQuantity", "UnsafeState"]
    assert len(engine.event_log.get_events_by_customer(1)) == 3


def test_invalid_customer_type_keeps_event_log_printable():
    engine = make_engine()

    assert engine.request("0", [1, 0, 0, 0]).reason == DenialReason.INVALID_CUSTOMER
    assert engine.release(None, [1, 0, 0, 0]).reason == DenialReason.INVALID_CUSTOMER
    assert engine.request(np.int64(1), [1, 0, 0, 1]).granted

    output = engine.event_log.display()
    print(f"\n{output}")

    denials = engine.event_log.get_events_by_type(EventType.DENIAL)
    assert [e.customer for e in denials] == [-1, -1]
    assert "'0'" in denials[0].message
    assert "None" in denials[1].message
    assert engine.event_log.get_events_by_type(EventType.GRANT)[0].customer == 1
    assert "System" in output


def test_check_state_uses_one_operation_number():
    engine = make_engine("deadlock.json")
    engine.request(0, [0, 0])
    engine.check_state()

    resolution_events = [
        e for e in engine.event_log.events
        if e.event_type in (EventType.DEADLOCK, EventType.PREEMPTION, EventType.RESOLUTION)
    ]
    assert len(resolution_events) == 3
    assert {e.operation for e in resolution_events} == {2}

    engine.resolve_deadlock()
    assert engine.event_log.events[-1].operation == 3


def test_engine_detects_and_resolves():
    engine = make_engine("deadlock.json")

    assert engine.detect_deadlock()
    assert engine.detect_deadlock(), "Detection must not change the state"
    assert engine.deadlocked_customers() == [0, 1]

    resolution = engine.check_state()

    assert resolution is not None and resolution.resolved
    assert not engine.detect_deadlock()
    counts = engine.event_log.counts()
    assert counts[EventType.DEADLOCK] == 1
    assert counts[EventType.PREEMPTION] == 1
    assert counts[EventType.RESOLUTION] == 1
    preemption = engine.event_log.get_events_by_type(EventType.PREEMPTION)[0]
    assert preemption.customer == 0
    assert preemption.quantities == [1, 0]


def test_check_state_without_deadlock():
    engine = make_engine()
    assert engine.check_state() is None
    assert engine.event_log.counts()[EventType.DEADLOCK] == 0


def test_execute_command_request_and_release():
    engine = make_engine()

    assert execute_command(engine, "RQ 1 1 0 0 1")
    assert list(engine.state.allocation[1]) == [3, 2, 3, 2]

    assert execute_command(engine, "rl 1 1 0 0 1")
    assert list(engine.state.allocation[1]) == [2, 2, 3, 1]


def test_execute_command_bad_input_leaves_state():
    engine = make_engine()
    before = engine.snapshot()

    for line in ["RQ", "RQ x 1 0 0 0", "RQ 1 1 0", "RL 1 a b c d", "HELLO", "", "RQ 7 0 0 0 0"]:
        assert execute_command(engine, line), f"'{line}' should not stop the loop"

    for name in before:
        assert np.array_equal(before[name], engine.snapshot()[name])


def test_execute_command_cs_resolves_deadlock():
    engine = make_engine("deadlock.json")
    assert execute_command(engine, "CS")
    assert not engine.detect_deadlock()


def test_exit_stops_loop():
    engine = make_engine()
    assert not execute_command(engine, "exit")

    stream = io.StringIO("RQ 3 1 0 0 0\nexit\nRQ 1 1 0 0 1\n")
    run_command_loop(engine, stream, prompt=False)

    assert engine.event_log.counts()[EventType.GRANT] == 1, "Commands after exit are ignored"


def test_prompt_configuration_uses_available_units():
    answers = iter(["0", "0", "1", "1", "1", "1", "1", "0", "0", "1"])
    state = prompt_configuration(2, 2, read=lambda label: next(answers))

    assert list(state.total) == [1, 1]
    assert list(state.available) == [0, 0]
    assert state.allocation.tolist() == [[1, 0], [0, 1]]


def test_prompt_configuration_rejects_non_integer():
    try:
        prompt_configuration(1, 1, read=lambda label: "many")
        raise AssertionError("Expected CommandError")
    except CommandError as e:
        assert "Resource A" in str(e)


def test_main_runs_session_with_log_file():
    with tempfile.TemporaryDirectory() as tmp:
        log_path = Path(tmp) / "session.log"
        status = main(
            ["--config", str(CONFIGS_DIR / "deadlock.json"), "--log-file", str(log_path)],
            input_stream=io.StringIO("CS\nexit\n")
        )
        log_text = log_path.read_text(encoding='utf-8')

    assert status == 0
    assert "DEADLOCK DETECTED" in log_text
    assert "Deadlock resolved." in log_text
    assert "Customers Preempted: 1" in log_text


def test_main_reports_bad_config():
    status = main(["--config", str(CONFIGS_DIR / "missing.json")], input_stream=io.StringIO(""))
    assert status == 1


def main_tests():
    """Run all engine and command loop tests."""
    test_initialize_and_snapshot()
    test_initialize_rejects_bad_configuration()
    test_unknown_strategy_rejected()
    test_engine_records_events()
    test_invalid_customer_type_keeps_event_log_printable()
    test_check_state_uses_one_operation_number()
    test_engine_detects_and_resolves()
    test_check_state_without_deadlock()
    test_execute_command_request_and_release()
    test_execute_command_bad_input_leaves_state()
    test_execute_command_cs_resolves_deadlock()
    test_exit_stops_loop()
    test_prompt_configuration_uses_available_units()
    test_prompt_configuration_rejects_non_integer()
    test_main_runs_session_with_log_file()
    test_main_reports_bad_config()
    print("\n✅ Engine Tests PASSED")
    return 0


if __name__ == '__main__':
    sys.exit(main_tests())
