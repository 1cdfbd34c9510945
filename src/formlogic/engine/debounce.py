"""
FormLogic Debouncer

Keyed, cancelable, stale-guarded deferral of validation work.

Key features:
- Last-write-wins: rescheduling a key cancels its pending call
- Captured-value guard: when a timer fires, the value captured at
  schedule time is compared with the current value and the call is
  discarded if they differ
- Scheduler-agnostic: works with any object offering
  call_later(delay_seconds, callback) -> handle with handle.cancel()

Schedulers:
- ManualScheduler: virtual clock advanced explicitly (tests, sync hosts)
- AsyncioScheduler: asyncio event loop timers
"""
from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable, Optional, Protocol

from .condition_evaluator import strict_equals

logger = logging.getLogger(__name__)


# =============================================================================
# Scheduler Protocol
# =============================================================================

class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback after a delay."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


# =============================================================================
# Manual Scheduler
# =============================================================================

@dataclass(order=True)
class _ManualTimer:
    due_ms: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Scheduler driven by a virtual millisecond clock.

    Timers fire only inside advance(), in due-time order (ties in
    scheduling order). Timers scheduled while advancing fire in the same
    call if they fall due before its end.

    Usage:
        scheduler = ManualScheduler()
        debouncer = Debouncer(scheduler, delay_ms=300)
        ...
        scheduler.advance(300)
    """

    def __init__(self) -> None:
        self.now_ms: float = 0.0
        self._timers: list[_ManualTimer] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualTimer:
        timer = _ManualTimer(
            # rounded so delay_ms / 1000 * 1000 lands back on whole milliseconds
            due_ms=round(self.now_ms + delay * 1000.0, 6),
            seq=next(self._seq),
            callback=callback,
        )
        heapq.heappush(self._timers, timer)
        return timer

    def advance(self, ms: float) -> int:
        """
        Move the clock forward and fire every timer that falls due.

        Returns:
            Number of callbacks fired
        """
        target = self.now_ms + ms
        fired = 0
        while self._timers and self._timers[0].due_ms <= target:
            timer = heapq.heappop(self._timers)
            if timer.cancelled:
                continue
            self.now_ms = timer.due_ms
            timer.callback()
            fired += 1
        self.now_ms = target
        return fired

    def run_all(self) -> int:
        """Advance until no live timer is left."""
        fired = 0
        while self.pending_count:
            last = max(t.due_ms for t in self._timers if not t.cancelled)
            fired += self.advance(last - self.now_ms)
        return fired

    @property
    def pending_count(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)


# =============================================================================
# Asyncio Scheduler
# =============================================================================

class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


# =============================================================================
# Debouncer
# =============================================================================

@dataclass
class _PendingCall:
    handle: TimerHandle
    value: Any
    callback: Callable[[Any], None]
    current_value: Callable[[], Any]


class Debouncer:
    """
    Keyed debouncer with a captured-value guard.

    Usage:
        debouncer.schedule(
            "email",
            value="a@b.co",
            callback=lambda value: validate("email", value),
            current_value=lambda: data.get("email"),
        )
    """

    def __init__(self, scheduler: Scheduler, delay_ms: float = 300) -> None:
        self.scheduler = scheduler
        self.delay_ms = delay_ms
        self._pending: dict[Hashable, _PendingCall] = {}

    def schedule(
        self,
        key: Hashable,
        value: Any,
        callback: Callable[[Any], None],
        current_value: Callable[[], Any],
        delay_ms: Optional[float] = None,
    ) -> None:
        """
        Schedule callback(value) after the delay, replacing any pending call
        for the same key.

        Args:
            key: Field name, or a form-wide key
            value: Value captured now and passed to the callback
            callback: Work to run when the timer fires
            current_value: Returns the live value when the timer fires
            delay_ms: Override of the debouncer's delay
        """
        self.cancel(key)
        delay = self.delay_ms if delay_ms is None else delay_ms
        handle = self.scheduler.call_later(delay / 1000.0, lambda: self._fire(key))
        self._pending[key] = _PendingCall(
            handle=handle,
            value=value,
            callback=callback,
            current_value=current_value,
        )

    def cancel(self, key: Hashable) -> bool:
        """Cancel the pending call for a key. Returns True if one existed."""
        pending = self._pending.pop(key, None)
        if pending is None:
            return False
        pending.handle.cancel()
        return True

    def cancel_all(self) -> int:
        """Cancel every pending call. Returns how many were cancelled."""
        keys = list(self._pending)
        for key in keys:
            self.cancel(key)
        return len(keys)

    def flush(self, key: Hashable) -> bool:
        """Run a pending call now instead of waiting for its timer."""
        pending = self._pending.get(key)
        if pending is None:
            return False
        pending.handle.cancel()
        return self._fire(key)

    def is_pending(self, key: Hashable) -> bool:
        return key in self._pending

    @property
    def pending_keys(self) -> list[Hashable]:
        return list(self._pending)

    def _fire(self, key: Hashable) -> bool:
        pending = self._pending.pop(key, None)
        if pending is None:
            return False
        current = pending.current_value()
        if not strict_equals(pending.value, current):
            logger.debug(
                "Discarding stale debounced call for %r: scheduled with %r, current %r",
                key, pending.value, current,
            )
            return False
        pending.callback(pending.value)
        return True
