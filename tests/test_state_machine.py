import queue
import threading

import pytest

from flightcore.state_machine import (
    NullFunctionError,
    RunError,
    StateChangeError,
    StateConfig,
    StateMachine,
    StatesError,
    StatesNumberError,
    TaskConfig,
)

WAIT = 2.0


@pytest.fixture
def calls():
    return queue.Queue()


@pytest.fixture
def machine(calls):
    sm = StateMachine()
    sm.set_states([StateConfig(i, calls.put, f"s{i}") for i in range(3)])
    yield sm
    sm.destroy()


def test_empty_states_rejected():
    with pytest.raises(StatesNumberError):
        StateMachine().set_states([])


def test_none_states_rejected():
    with pytest.raises(StatesError):
        StateMachine().set_states(None)


def test_id_out_of_range_rejected():
    with pytest.raises(StatesError):
        StateMachine().set_states([StateConfig(0), StateConfig(2)])


def test_duplicate_ids_rejected():
    with pytest.raises(StatesError):
        StateMachine().set_states([StateConfig(1), StateConfig(1)])


def test_null_end_function_rejected():
    with pytest.raises(NullFunctionError):
        StateMachine().set_end_function(None, 100)


def test_run_without_states_fails():
    with pytest.raises(RunError):
        StateMachine().run(TaskConfig())


def test_run_invokes_first_callback(machine, calls):
    machine.run()
    assert calls.get(timeout=WAIT) == "s0"
    assert machine.current_state == 0


def test_run_twice_fails(machine, calls):
    machine.run()
    with pytest.raises(RunError):
        machine.run()


def test_change_state_before_run_fails(machine):
    with pytest.raises(StateChangeError):
        machine.change_state(1)
    assert machine.current_state == 0


def test_change_state_advances(machine, calls):
    machine.run()
    assert calls.get(timeout=WAIT) == "s0"
    machine.change_state(1)
    assert calls.get(timeout=WAIT) == "s1"
    assert machine.current_state == 1
    assert machine.previous_state == 0


def test_change_state_wrong_id_fails(machine, calls):
    machine.run()
    calls.get(timeout=WAIT)
    with pytest.raises(StateChangeError):
        machine.change_state(2)
    assert machine.current_state == 0


def test_change_state_past_last_fails(machine, calls):
    machine.run()
    calls.get(timeout=WAIT)
    machine.change_state(1)
    machine.change_state(2)
    with pytest.raises(StateChangeError):
        machine.change_state(3)
    assert machine.current_state == 2


def test_force_change_state(machine, calls):
    machine.run()
    calls.get(timeout=WAIT)
    machine.force_change_state(2)
    assert calls.get(timeout=WAIT) == "s2"
    assert machine.current_state == 2
    assert machine.previous_state == 0


def test_force_change_state_out_of_range(machine):
    with pytest.raises(StateChangeError):
        machine.force_change_state(3)


def test_change_to_previous_without_callback(machine, calls):
    machine.run()
    calls.get(timeout=WAIT)
    machine.change_state(1)
    calls.get(timeout=WAIT)
    machine.change_to_previous_state(False)
    assert machine.current_state == 0
    with pytest.raises(queue.Empty):
        calls.get(timeout=0.1)


def test_change_to_previous_with_callback(machine, calls):
    machine.run()
    calls.get(timeout=WAIT)
    machine.change_state(1)
    calls.get(timeout=WAIT)
    machine.change_to_previous_state(True)
    assert calls.get(timeout=WAIT) == "s0"
    assert machine.current_state == 0


def test_end_function_loops_after_last_state():
    counter = []
    done = threading.Event()

    def end():
        counter.append(1)
        if len(counter) >= 3:
            done.set()

    with StateMachine() as sm:
        sm.set_states([StateConfig(0)])
        sm.set_end_function(end, 10)
        sm.run()
        assert done.wait(WAIT)
        assert sm.current_state == 0
        assert sm.previous_state == 0
    assert len(counter) >= 3


def test_end_function_not_called_before_last_state(calls):
    ended = threading.Event()
    with StateMachine() as sm:
        sm.set_states([StateConfig(0, calls.put, "a"), StateConfig(1)])
        sm.set_end_function(ended.set, 10)
        sm.run()
        calls.get(timeout=WAIT)
        assert not ended.wait(0.1)
        sm.change_state(1)
        assert ended.wait(WAIT)


def test_destroy_resets(machine, calls):
    machine.run()
    calls.get(timeout=WAIT)
    machine.force_change_state(2)
    calls.get(timeout=WAIT)
    machine.destroy()
    assert machine.current_state == 0
    with pytest.raises(RunError):
        machine.run()


def test_context_manager_destroys(calls):
    with StateMachine() as sm:
        sm.set_states([StateConfig(0, calls.put, "x")])
        sm.run()
        assert calls.get(timeout=WAIT) == "x"
    with pytest.raises(RunError):
        sm.run()