"""A fixed set of named software timers with one-shot and periodic modes."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Iterable, Optional

_log = logging.getLogger(__name__)

MAX_NUMBER_OF_TIMERS = 15


class TimerError(Exception):
    """A timer operation failed."""


class TimerType(IntEnum):
    ONE_SHOT = 0
    PERIODIC = 1


@dataclass(frozen=True)
class SysTimer:
    """Description of one timer: its id and the callback it fires."""

    timer_id: int
    callback: Optional[Callable[[Any], None]]
    arg: Any = None


@dataclass
class _Slot:
    spec: SysTimer
    deadline_ns: Optional[int] = None
    period_ns: Optional[int] = None
    deleted: bool = False

    @property
    def active(self) -> bool:
        return self.deadline_ns is not None

    def deactivate(self) -> None:
        self.deadline_ns = None
        self.period_ns = None


class SystemTimers:
    """Owns a group of timers; callbacks run one at a time on a dispatch thread.

    Times are in milliseconds; expiry times are microseconds on the
    ``time.monotonic_ns`` clock.
    """

    def __init__(self, timers: Iterable[SysTimer]) -> None:
        if timers is None:
            raise TimerError("timers must not be None")
        specs = tuple(timers)
        if not specs:
            raise TimerError("at least one timer is required")
        if len(specs) > MAX_NUMBER_OF_TIMERS:
            raise TimerError(f"at most {MAX_NUMBER_OF_TIMERS} timers are allowed")
        for spec in specs:
            if spec.callback is None:
                raise TimerError(f"timer {spec.timer_id} has no callback")
        _log.info("Timers number %d", len(specs))
        self._slots = [_Slot(spec) for spec in specs]
        self._cond = threading.Condition()
        self._closed = False
        self._thread = threading.Thread(target=self._dispatch, name="sys_timer", daemon=True)
        self._thread.start()

    def _find(self, timer_id: int) -> _Slot:
        if self._closed:
            raise TimerError("timers are closed")
        slot = next((s for s in self._slots if s.spec.timer_id == timer_id), None)
        if slot is None:
            raise TimerError(f"invalid timer id {timer_id}")
        return slot

    def _live(self, timer_id: int) -> _Slot:
        slot = self._find(timer_id)
        if slot.deleted:
            raise TimerError(f"timer {timer_id} was deleted")
        return slot

    def start(self, timer_id: int, milliseconds: int, timer_type: TimerType = TimerType.ONE_SHOT) -> None:
        """Start (or restart from scratch) a timer."""
        if milliseconds <= 0:
            raise TimerError("timeout must be positive")
        timer_type = TimerType(timer_type)
        period_ns = milliseconds * 1_000_000
        with self._cond:
            slot = self._live(timer_id)
            slot.deadline_ns = time.monotonic_ns() + period_ns
            slot.period_ns = period_ns if timer_type is TimerType.PERIODIC else None
            self._cond.notify_all()

    def stop(self, timer_id: int) -> None:
        """Stop a timer; stopping an idle timer only logs a warning."""
        with self._cond:
            slot = self._live(timer_id)
            if not slot.active:
                _log.warning("Timer %d was not running", timer_id)
            slot.deactivate()
            self._cond.notify_all()

    def delete(self, timer_id: int) -> None:
        """Stop and delete a running timer; an idle timer cannot be deleted."""
        with self._cond:
            slot = self._live(timer_id)
            if not slot.active:
                raise TimerError(f"timer {timer_id} stop error")
            slot.deactivate()
            slot.deleted = True
            self._cond.notify_all()

    def restart(self, timer_id: int, timeout: int) -> None:
        """Rearm a running timer with a new timeout or period, keeping its type."""
        if timeout <= 0:
            raise TimerError("timeout must be positive")
        with self._cond:
            slot = self._live(timer_id)
            if not slot.active:
                raise TimerError(f"timer {timer_id} restart error")
            timeout_ns = timeout * 1_000_000
            slot.deadline_ns = time.monotonic_ns() + timeout_ns
            if slot.period_ns is not None:
                slot.period_ns = timeout_ns
            self._cond.notify_all()

    def expiry_time(self, timer_id: int) -> Optional[int]:
        """Expiry in microseconds of a running one-shot timer, else None."""
        with self._cond:
            slot = self._find(timer_id)
            if not slot.active or slot.period_ns is not None:
                return None
            return slot.deadline_ns // 1000

    def is_active(self, timer_id: int) -> bool:
        with self._cond:
            return self._find(timer_id).active

    def close(self) -> None:
        """Stop every timer and the dispatch thread."""
        with self._cond:
            self._closed = True
            for slot in self._slots:
                slot.deactivate()
            self._cond.notify_all()
        if self._thread is not threading.current_thread():
            self._thread.join()

    def _next_due(self) -> Optional[_Slot]:
        active = [slot for slot in self._slots if slot.active]
        return min(active, key=lambda slot: slot.deadline_ns, default=None)

    def _dispatch(self) -> None:
        while True:
            with self._cond:
                while True:
                    if self._closed:
                        return
                    due = self._next_due()
                    if due is None:
                        self._cond.wait()
                        continue
                    now = time.monotonic_ns()
                    if due.deadline_ns <= now:
                        break
                    self._cond.wait((due.deadline_ns - now) / 1e9)
                if due.period_ns is None:
                    due.deactivate()
                else:
                    due.deadline_ns += due.period_ns
                callback, arg = due.spec.callback, due.spec.arg
            try:
                callback(arg)
            except Exception:
                _log.exception("Timer %d callback failed", due.spec.timer_id)

    def __enter__(self) -> "SystemTimers":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()