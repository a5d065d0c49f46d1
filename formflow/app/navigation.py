"""History-backed navigation bridge with programmatic submission."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Mapping, Optional, Set

from formflow.domain.ports import RouteKey
from formflow.domain.results import ActionResult, SubmissionRequest
from formflow.usecases.dispatch_action import DispatchAction

NavigationListener = Callable[[str], None]


class HistoryNavigator:
    """Concrete ``NavigationBridge`` over an in-process history stack.

    ``submit`` goes through the same :class:`DispatchAction` as form
    controllers; a ``Redirect`` result pushes its target onto the history.
    Listeners run after every navigation, including one that lands on the
    current path.
    """

    def __init__(
        self,
        dispatch: DispatchAction,
        *,
        initial_path: str = "/",
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self.dispatch = dispatch
        self._loop = loop
        self._history: List[str] = [_normalize_path(initial_path)]
        self._listeners: List[NavigationListener] = []
        self._tasks: Set[asyncio.Task] = set()
        self.last_result: Optional[ActionResult] = None

    # ------------------------------------------------------------------
    @property
    def history(self) -> List[str]:
        return list(self._history)

    @property
    def current_path(self) -> str:
        return self._history[-1]

    @property
    def pending_tasks(self) -> Set[asyncio.Task]:
        return set(self._tasks)

    def add_listener(self, listener: NavigationListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: NavigationListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    def navigate_to(self, path: str) -> None:
        target = _resolve(self.current_path, path)
        if target == self.current_path:
            self._log.debug("Revalidate %s", target)
        else:
            self._history.append(target)
            self._log.debug("Navigate to %s", target)
        self._notify()

    def navigate_back(self) -> None:
        """Go one entry back (``..``); no-op when already at the first entry."""
        if len(self._history) <= 1:
            parent = _resolve(self.current_path, "..")
            if parent == self.current_path:
                return
            self._history[-1] = parent
        else:
            self._history.pop()
        self._log.debug("Navigate back to %s", self.current_path)
        self._notify()

    def submit(self, route_key: RouteKey, payload: Optional[Mapping[str, Any]]) -> "asyncio.Task[ActionResult]":
        """Dispatch ``route_key`` without a form; returns the running task.

        Raises:
            NotFoundError: No handler is registered (raised before scheduling).
        """
        handler = self.dispatch.resolve(route_key)
        request = SubmissionRequest.of(payload)
        loop = self._loop or asyncio.get_running_loop()
        self._log.debug("Programmatic submit to %s", route_key)
        task = loop.create_task(self._run(handler, request))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    async def _run(self, handler, request: SubmissionRequest) -> ActionResult:
        result = await self.dispatch.invoke(handler, request)
        self.last_result = result
        if result.kind == "redirect":
            self.navigate_to(result.target)
        elif result.is_error:
            self._log.warning("Programmatic submission failed: %s", getattr(result, "message", ""))
        return result

    def _on_task_done(self, task: "asyncio.Task[ActionResult]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._log.error("Programmatic submission raised: %s", exc)

    def _notify(self) -> None:
        path = self.current_path
        for listener in list(self._listeners):
            listener(path)


def _normalize_path(path: str) -> str:
    text = (path or "/").strip()
    if not text.startswith("/"):
        text = "/" + text
    parts = [p for p in text.split("/") if p and p != "."]
    return "/" + "/".join(parts)


def _resolve(current: str, path: str) -> str:
    """Resolve ``path`` against ``current`` (absolute, relative and ``..``)."""
    text = (path or "").strip()
    if text.startswith("/"):
        return _normalize_path(text)
    parts = [p for p in current.split("/") if p]
    for segment in text.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if parts:
                parts.pop()
            continue
        parts.append(segment)
    return "/" + "/".join(parts)


__all__ = ["HistoryNavigator", "NavigationListener"]
