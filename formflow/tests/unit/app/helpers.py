from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from formflow.app.submission_controller import SubmissionController
from formflow.app.timer_scheduler import TimerScheduler
from formflow.usecases.action_registry import ActionRegistry
from formflow.usecases.dispatch_action import DispatchAction
from formflow.viewmodels.form_vm import FormVM
from formflow.viewmodels.forms import FormDefinition


class ManualTimers:
    """``after``/``after_cancel`` double driven by :meth:`advance`."""

    def __init__(self) -> None:
        self.now_ms = 0
        self._next = 0
        self.pending: Dict[int, Tuple[int, Callable[[], None]]] = {}
        self.scheduled: List[int] = []
        self.cancelled: List[int] = []

    def after(self, delay_ms: int, callback: Callable[[], None]) -> int:
        self._next += 1
        self.pending[self._next] = (self.now_ms + delay_ms, callback)
        self.scheduled.append(delay_ms)
        return self._next

    def after_cancel(self, token: int) -> None:
        self.cancelled.append(token)
        self.pending.pop(token, None)

    def advance(self, ms: int) -> None:
        self.now_ms += ms
        due = sorted(
            (at, token) for token, (at, _) in self.pending.items() if at <= self.now_ms
        )
        for _, token in due:
            entry = self.pending.pop(token, None)
            if entry is not None:
                entry[1]()

    def scheduler(self) -> TimerScheduler:
        return TimerScheduler(self.after, self.after_cancel)


class FixedClock:
    def __init__(self, start: Optional[datetime] = None) -> None:
        self.current = start or datetime(2025, 4, 30, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def after(self, **delta: Any) -> datetime:
        return self.current + timedelta(**delta)


class Gate:
    """Handler whose calls stay pending until released one by one."""

    def __init__(self) -> None:
        self.calls: List[Any] = []
        self._futures: List[asyncio.Future] = []

    async def __call__(self, request: Any) -> Any:
        future = asyncio.get_running_loop().create_future()
        self.calls.append(request)
        self._futures.append(future)
        return await future

    def resolve(self, index: int, value: Any = None) -> None:
        self._futures[index].set_result(value)

    def fail(self, index: int, exc: BaseException) -> None:
        self._futures[index].set_exception(exc)


def make_controller(
    form: FormDefinition,
    handler: Any,
    navigation: Any,
    *,
    route_key: Optional[str] = None,
) -> SubmissionController:
    key = route_key or form.route_key
    dispatch = DispatchAction(ActionRegistry({key: handler}))
    return SubmissionController(key, dispatch, navigation, FormVM(form))


async def settle() -> None:
    """Let callbacks scheduled on the running loop execute."""
    for _ in range(5):
        await asyncio.sleep(0)


__all__ = ["FixedClock", "Gate", "ManualTimers", "make_controller", "settle"]
