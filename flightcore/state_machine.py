"""Sequential state machine with per-state callbacks run on a worker thread."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

_log = logging.getLogger(__name__)

_POLL_S = 0.010
_LOCK_TIMEOUT_S = 1.0


class StateMachineError(Exception):
    """Base class for state machine failures."""


class StatesError(StateMachineError):
    """The state list is missing or its ids are invalid."""


class StatesNumberError(StateMachineError):
    """The state list is empty."""


class StateChangeError(StateMachineError):
    """The requested transition is not allowed."""


class RunError(StateMachineError):
    """The worker could not be started."""


class NullFunctionError(StateMachineError):
    """A required function was not given."""


@dataclass(frozen=True)
class StateConfig:
    """One state: its id and the callback run on entering it."""

    id: int
    callback: Optional[Callable[[Any], None]] = None
    arg: Any = None


@dataclass(frozen=True)
class TaskConfig:
    """Settings for the worker thread."""

    name: str = "state_machine"
    daemon: bool = True


class StateMachine:
    """States advance one at a time; each entry runs the state's callback.

    Once the last state has been entered, the end function (if any) is
    called repeatedly, every ``freq_ms`` milliseconds.
    """

    def __init__(self) -> None:
        self._states: tuple[StateConfig, ...] = ()
        self._previous = 0
        self._current = 0
        self._end_function: Optional[Callable[[], None]] = None
        self._end_period_ms = 0
        self._lock = threading.Lock()
        self._notify = threading.Event()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def set_states(self, states: Iterable[StateConfig]) -> None:
        """Install the states; ids must be unique and below the state count."""
        if states is None:
            raise StatesError("states must not be None")
        states = tuple(states)
        if not states:
            raise StatesNumberError("at least one state is required")
        ids = [state.id for state in states]
        if any(not 0 <= state_id < len(states) for state_id in ids):
            raise StatesError("state id out of range")
        if len(set(ids)) != len(ids):
            raise StatesError("state ids must be unique")
        self._states = states

    def set_end_function(self, function: Callable[[], None], freq_ms: int) -> None:
        """Set the function looped after the last state is reached."""
        if function is None:
            raise NullFunctionError("end function must not be None")
        self._end_function = function
        self._end_period_ms = freq_ms

    @property
    def current_state(self) -> int:
        with self._lock:
            return self._current

    @property
    def previous_state(self) -> int:
        with self._lock:
            return self._previous

    def _can_advance_to(self, new_state: int) -> bool:
        if self._current >= len(self._states) or self._thread is None:
            return False
        following = self._current + 1
        return following < len(self._states) and self._states[following].id == new_state

    def change_state(self, new_state: int) -> None:
        """Advance to the next state, which must have id ``new_state``."""
        if not self._lock.acquire(timeout=_LOCK_TIMEOUT_S):
            raise StateChangeError("state lock not available")
        try:
            if not self._can_advance_to(new_state):
                raise StateChangeError(f"cannot change state to {new_state}")
            self._previous = self._current
            self._current += 1
            _log.info("Changing state from %d to %d", self._previous, self._current)
        finally:
            self._lock.release()
        self._notify.set()

    def force_change_state(self, new_state: int) -> None:
        """Jump to any state position, skipping the ordering check."""
        if not 0 <= new_state < len(self._states):
            raise StateChangeError(f"no state {new_state}")
        with self._lock:
            _log.info("Changing state from %d to %d", self._current, new_state)
            self._previous = self._current
            self._current = new_state
        self._notify.set()

    def change_to_previous_state(self, run_callback: bool) -> None:
        """Return to the previous state, optionally running its callback."""
        with self._lock:
            _log.info("Changing state from %d to %d", self._current, self._previous)
            self._current = self._previous
        if run_callback:
            self._notify.set()

    def run(self, cfg: Optional[TaskConfig] = None) -> None:
        """Start the worker; the first state's callback runs at once."""
        if not self._states:
            raise RunError("no states set")
        if self._thread is not None and self._thread.is_alive():
            raise RunError("state machine already running")
        cfg = cfg or TaskConfig()
        self._stop.clear()
        self._notify.set()
        self._thread = threading.Thread(target=self._loop, name=cfg.name, daemon=cfg.daemon)
        self._thread.start()

    def _loop(self) -> None:
        completed = False
        while not self._stop.is_set():
            if self._notify.is_set():
                self._notify.clear()
                with self._lock:
                    state = self._current
                config = self._states[state]
                if config.callback is not None:
                    try:
                        config.callback(config.arg)
                    except Exception:
                        _log.exception("State %d callback failed", state)
                if state + 1 >= len(self._states):
                    _log.info("End function enable")
                    completed = True

            if completed and self._end_function is not None:
                try:
                    self._end_function()
                except Exception:
                    _log.exception("End function failed")
                self._stop.wait(max(self._end_period_ms / 1000 - _POLL_S, 0.0))

            self._stop.wait(_POLL_S)

    def destroy(self) -> None:
        """Stop the worker and forget the states and end function."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None
        self._notify.clear()
        with self._lock:
            self._states = ()
            self._current = 0
        self._end_function = None
        self._end_period_ms = 0

    def __enter__(self) -> "StateMachine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.destroy()