"""Scheduler helper that owns one-shot timers for UI-driven flows.

The app layer passes ``schedule`` and ``cancel`` callables into this class
(Tk ``after``/``after_cancel``, or :func:`loop_timer_fns` for an asyncio
loop) so timer state is tracked in one place and canceled safely when a
session changes or the app closes.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple


ScheduleFn = Callable[[int, Callable[[], None]], Any]
CancelFn = Callable[[Any], None]

_log = logging.getLogger(__name__)


@dataclass
class TimerHandle:
    """Timer token associated with a single timer key.

    Attributes:
        key: Timer channel (for example ``session``).
        token: Token returned by the underlying scheduler implementation.
        delay_ms: Delay the timer was armed with.
    """
    key: str
    token: Any
    delay_ms: int


class TimerScheduler:
    """Manage keyed one-shot timers; at most one live handle per key."""

    def __init__(self, schedule: ScheduleFn, cancel: CancelFn) -> None:
        """Store schedule/cancel functions and initialize handle registry.

        Args:
            schedule: Function compatible with ``after(delay_ms, callback)``.
            cancel: Function compatible with ``after_cancel(token)``.
        """
        self._schedule = schedule
        self._cancel = cancel
        self._handles: Dict[str, TimerHandle] = {}

    def schedule(self, key: str, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        """Cancel any timer under ``key``, then arm a new one.

        The handle is released before ``callback`` runs, so a callback may
        re-arm the same key.
        """
        delay = max(0, int(delay_ms))
        self.cancel(key)

        def _fire() -> None:
            current = self._handles.get(key)
            if current is not handle:
                return
            del self._handles[key]
            callback()

        handle = TimerHandle(key=key, token=None, delay_ms=delay)
        handle.token = self._schedule(delay, _fire)
        self._handles[key] = handle
        return handle

    def cancel(self, key: str) -> bool:
        """Cancel a pending timer; return ``True`` when one was live."""
        handle = self._handles.pop(key, None)
        if not handle:
            return False
        try:
            self._cancel(handle.token)
        except Exception as exc:
            _log.debug("Ignoring cancel failure for timer %s: %s", key, exc)
        return True

    def cancel_all(self) -> None:
        """Cancel all pending timers across all keys."""
        for key in list(self._handles.keys()):
            self.cancel(key)

    def handle_for(self, key: str) -> Optional[TimerHandle]:
        """Return the current handle for a key, if armed."""
        return self._handles.get(key)

    def active_count(self) -> int:
        return len(self._handles)


def loop_timer_fns(loop: Optional[asyncio.AbstractEventLoop] = None) -> Tuple[ScheduleFn, CancelFn]:
    """Return ``after``/``after_cancel`` equivalents backed by ``loop.call_later``."""

    def _loop() -> asyncio.AbstractEventLoop:
        return loop or asyncio.get_running_loop()

    def schedule(delay_ms: int, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return _loop().call_later(delay_ms / 1000.0, callback)

    def cancel(token: asyncio.TimerHandle) -> None:
        token.cancel()

    return schedule, cancel


__all__ = ["TimerHandle", "TimerScheduler", "loop_timer_fns"]
