from __future__ import annotations

import threading
from enum import Enum


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOP_REQUESTED = "stop_requested"


class RunGuard:
    """Single-flight run flag with cooperative stop.

    `try_begin()` is an atomic compare-and-set from IDLE to RUNNING, so
    concurrent callers (API handler, scheduler) can never both win. `stop()`
    only flags the run; the traversal notices at its next loop boundary and
    calls `finish()`, which is the only way back to IDLE.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        with self._lock:
            return self._state

    def try_begin(self) -> bool:
        with self._lock:
            if self._state is not RunState.IDLE:
                return False
            self._state = RunState.RUNNING
            return True

    def request_stop(self) -> bool:
        with self._lock:
            if self._state is not RunState.RUNNING:
                return False
            self._state = RunState.STOP_REQUESTED
            return True

    def should_continue(self) -> bool:
        with self._lock:
            return self._state is RunState.RUNNING

    def finish(self) -> None:
        with self._lock:
            self._state = RunState.IDLE
