"""Per-form submission state machine.

Phases run ``IDLE -> SUBMITTING -> SETTLED -> IDLE``. Every submit bumps the
controller's generation; a dispatch only applies its result when its
generation is still the newest one and the form is still mounted.

A submit while another dispatch is outstanding supersedes it: the older
handler keeps running but its result is discarded, and the phase stays
``SUBMITTING`` until the newest dispatch resolves.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Mapping, Optional

from formflow.domain.ports import ActionHandler, NavigationBridge, RouteKey
from formflow.domain.results import ActionResult, SubmissionPhase, SubmissionRequest
from formflow.usecases.dispatch_action import DispatchAction
from formflow.viewmodels.form_vm import FormVM

PhaseListener = Callable[[SubmissionPhase], None]


class SubmissionController:
    """Drive one mounted form through dispatch and result application."""

    def __init__(
        self,
        route_key: RouteKey,
        dispatch: DispatchAction,
        navigation: NavigationBridge,
        form_vm: FormVM,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        """Bind a form view model to a route.

        Args:
            route_key: Registry key whose handler receives submissions.
            dispatch: Shared resolve/invoke/normalize plumbing.
            navigation: Bridge used for redirect and cancel navigation.
            form_vm: Render state updated on every phase change.
            loop: Event loop for dispatch tasks; defaults to the running loop.
        """
        self._log = logging.getLogger(__name__)
        self.route_key = route_key
        self.dispatch = dispatch
        self.navigation = navigation
        self.form_vm = form_vm
        self._loop = loop
        self._phase = SubmissionPhase.IDLE
        self._generation = 0
        self._mounted = True
        self._pending: Optional[asyncio.Task] = None
        self._listeners: List[PhaseListener] = []

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------
    @property
    def phase(self) -> SubmissionPhase:
        return self._phase

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def pending_task(self) -> Optional[asyncio.Task]:
        return self._pending

    def add_phase_listener(self, listener: PhaseListener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def submit(self, fields: Optional[Mapping[str, Any]] = None) -> "asyncio.Task[Optional[ActionResult]]":
        """Start a dispatch for ``fields`` (defaults to the form's values).

        Returns:
            The task running the dispatch; it resolves to the applied result,
            or ``None`` when the result was discarded as stale.

        Raises:
            NotFoundError: The route has no handler (before any state change).
            RuntimeError: The form was unmounted.
        """
        if not self._mounted:
            raise RuntimeError("Cannot submit an unmounted form.")
        handler = self.dispatch.resolve(self.route_key)
        request = self.form_vm.snapshot() if fields is None else SubmissionRequest.of(fields)

        if self._phase is SubmissionPhase.SUBMITTING:
            self._log.debug("Superseding generation %d on %s", self._generation, self.route_key)
        self._generation += 1
        generation = self._generation
        self._set_phase(SubmissionPhase.SUBMITTING)
        self.form_vm.show_pending()

        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._run(handler, request, generation))
        self._pending = task
        return task

    def cancel(self) -> None:
        """Leave the form without dispatching anything."""
        self.navigation.navigate_back()

    def reset(self) -> None:
        """``SETTLED -> IDLE`` once the result has been applied."""
        if self._phase is not SubmissionPhase.SETTLED:
            return
        self._set_phase(SubmissionPhase.IDLE)
        if self._mounted:
            self.form_vm.show_idle()

    def unmount(self) -> None:
        """Stop applying results; an in-flight handler still runs to completion."""
        if not self._mounted:
            return
        self._mounted = False
        self._generation += 1
        self._pending = None
        self._set_phase(SubmissionPhase.IDLE)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    async def _run(
        self, handler: ActionHandler, request: SubmissionRequest, generation: int
    ) -> Optional[ActionResult]:
        try:
            result = await self.dispatch.invoke(handler, request)
        except BaseException:
            # wiring errors still propagate; the form must not stay locked
            if self._is_current(generation):
                self._pending = None
                self._set_phase(SubmissionPhase.IDLE)
                self.form_vm.show_idle()
            raise
        if not self._is_current(generation):
            self._log.debug(
                "Discarding stale result of generation %d (current %d) on %s",
                generation,
                self._generation,
                self.route_key,
            )
            return None
        self._pending = None
        self._apply(result)
        return result

    def _is_current(self, generation: int) -> bool:
        return self._mounted and generation == self._generation

    def _apply(self, result: ActionResult) -> None:
        self._set_phase(SubmissionPhase.SETTLED)
        if result.kind == "redirect":
            self.form_vm.clear_errors()
            self.form_vm.last_result = result
            self.navigation.navigate_to(result.target)
        else:
            self.form_vm.show_result(result)
        # navigation listeners may unmount this form
        if self._mounted:
            self.reset()

    def _set_phase(self, phase: SubmissionPhase) -> None:
        if phase is self._phase:
            return
        self._phase = phase
        for listener in list(self._listeners):
            listener(phase)


__all__ = ["PhaseListener", "SubmissionController"]
