# flightcore

`flightcore` has two small building blocks for sequencing a flight or test procedure. Neither needs anything outside the standard library.

- **`flightcore.state_machine`** is a state machine that moves forward through a list of states set by the user. It runs each state's callback on a background worker thread when that state is entered. Once the last state is reached, it can call an "end" function again and again at a set interval.
- **`flightcore.system_timer`** is a fixed registry of timers, each known by an id. A timer can be started as a one-shot or a periodic timer, then stopped, restarted or deleted. A running one-shot timer can be asked for its expiry time. All timer callbacks run one at a time on a single dispatch thread.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## State machine

Each state is a `StateConfig(id, callback=None, arg=None)`. When the state is entered, the callback is called with `arg`.

The ids must be unique and must lie from `0` to `len(states) - 1`. Otherwise `set_states` raises `StatesError`. An empty list raises `StatesNumberError`.

```python
from flightcore.state_machine import StateMachine, StateConfig, TaskConfig, StateChangeError

def on_enter(name):
    print("entered", name)

states = [
    StateConfig(0, on_enter, "INIT"),
    StateConfig(1, on_enter, "ARMED"),
    StateConfig(2, on_enter, "FLIGHT"),
]

with StateMachine() as sm:
    sm.set_states(states)
    sm.set_end_function(lambda: print("idle"), 500)
    sm.run(TaskConfig(name="sequencer"))   # the callback of state 0 runs at once

    sm.change_state(1)           # INIT -> ARMED
    try:
        sm.change_state(0)       # only the next state in the list is allowed
    except StateChangeError:
        pass
    sm.force_change_state(2)     # jump to any valid position
    sm.change_to_previous_state(run_callback=False)
    print(sm.current_state, sm.previous_state)
```

### Rules

- `change_state(new_state)` works only while the machine is running. The state that follows the current one in the list must have the id `new_state`. If either rule is broken, it raises `StateChangeError`.
- `force_change_state(new_state)` accepts any position from `0` to `len(states) - 1`. Any other value raises `StateChangeError`.
- `current_state` and `previous_state` are read-only properties.
- `run(cfg=None)` starts the worker thread. It takes an optional `TaskConfig(name="state_machine", daemon=True)`. It raises `RunError` if no states are set or if the worker is already running.
- `set_end_function(function, freq_ms)` raises `NullFunctionError` when `function` is `None`.
- If a callback or the end function raises an exception, the exception is logged and the worker keeps going.
- `destroy()`, which is also called on leaving a `with` block, does the following:
  - stops the worker;
  - clears the states and the end function;
  - resets the current state to `0`.

Every failure raises a subclass of `StateMachineError`.

## Timers

```python
from flightcore.system_timer import SysTimer, SystemTimers, TimerType, TimerError

def beep(arg):
    print("timer fired", arg)

with SystemTimers([SysTimer(1, beep, "a"), SysTimer(2, beep, "b")]) as timers:
    timers.start(1, 250, TimerType.PERIODIC)
    timers.start(2, 1000)                   # TimerType.ONE_SHOT is the default
    print(timers.is_active(1), timers.expiry_time(2))
    timers.restart(1, 500)                  # new period, still periodic
    timers.stop(1)
    timers.delete(2)
```

### Rules

- A registry holds between 1 and 15 timers (`MAX_NUMBER_OF_TIMERS`). Every timer needs a callback.
- Times are given in milliseconds.
- `expiry_time` returns microseconds on the `time.monotonic_ns` clock. It returns `None` when the timer is not running or is periodic.
- `stop` on an idle timer only logs a warning.
- `restart` and `delete` raise `TimerError` if the timer is not running.
- A deleted timer cannot be started, stopped, restarted or deleted again.
- `TimerError` is raised for each of these:
  - an unknown timer id;
  - an interval that is zero or negative;
  - any use after `close()`.
- `close()`, which is also called on leaving a `with` block, stops every timer and the dispatch thread.

## What this package does not do

It is a library only: it has no command-line program. State and timer settings are kept in memory and are not saved anywhere. Callbacks run on ordinary Python threads, with no timing guarantees beyond those of the `threading` module.