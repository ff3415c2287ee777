"""
Single-shot re-armable timers for the voting round and the opponent abort watch.

OneShotTimer sits on top of any scheduler exposing call_later(delay, callback) -> handle
with handle.cancel(). Re-arming cancels the pending handle first, and each arm bumps a
generation so a fire that was already queued before cancel() is dropped.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Protocol


class Cancellable(Protocol):
    def cancel(self) -> Any: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class OneShotTimer:
    def __init__(self, scheduler: Scheduler, name: str, delay: float, action: Callable[[], None]):
        self.log = logging.getLogger("OneShotTimer")
        self.scheduler = scheduler
        self.name = name
        self.delay = delay
        self.action = action
        self._handle: Cancellable | None = None
        self._generation = 0

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def arm(self) -> None:
        self.cancel()
        self._generation += 1
        gen = self._generation
        self._handle = self.scheduler.call_later(self.delay, lambda: self._fire(gen))
        self.log.debug("Armed %s timer (%.1fs)", self.name, self.delay)

    def cancel(self) -> None:
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None
        self._generation += 1
        self.log.debug("Cancelled %s timer", self.name)

    def _fire(self, gen: int) -> None:
        if gen != self._generation or self._handle is None:
            self.log.debug("Ignoring stale %s timer fire", self.name)
            return
        self._handle = None
        self.action()
