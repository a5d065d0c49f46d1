"""Supervisor that forces logout when the session credential lapses.

The surrounding shell calls :meth:`SessionLifecycleSupervisor.on_credential_change`
whenever the credential is (re)loaded and :meth:`teardown` on shutdown.
Exactly one logout timer is live at any time.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from formflow.domain.errors import CredentialError
from formflow.domain.ports import NavigationBridge
from formflow.domain.session import EXPIRED, SessionToken, utc_now

from .timer_scheduler import TimerScheduler

_TIMER_KEY = "session"


class SessionState(Enum):
    NO_SESSION = "no_session"
    ARMED = "armed"
    LOGGED_OUT = "logged_out"


class SessionLifecycleSupervisor:
    """Tracks remaining credential lifetime and owns the single logout timer."""

    def __init__(
        self,
        navigation: NavigationBridge,
        timers: TimerScheduler,
        *,
        clock: Callable[[], datetime] = utc_now,
        logout_route: str = "logout",
    ) -> None:
        self._log = logging.getLogger(__name__)
        self.navigation = navigation
        self.timers = timers
        self.clock = clock
        self.logout_route = logout_route
        self._state = SessionState.NO_SESSION
        self._token: Optional[SessionToken] = None

    # ------------------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def armed(self) -> bool:
        return self.timers.handle_for(_TIMER_KEY) is not None

    @property
    def token(self) -> Optional[SessionToken]:
        return self._token

    def remaining_ms(self) -> Optional[int]:
        """Milliseconds until the armed timer fires, ``None`` when disarmed."""
        if not self.armed or self._token is None:
            return None
        try:
            return self._duration_ms(self._token.expires_at)
        except CredentialError:
            return 0

    # ------------------------------------------------------------------
    def on_credential_change(self, token: Optional[SessionToken]) -> None:
        """Re-evaluate the credential: cancel, then logout now or re-arm."""
        if self.timers.cancel(_TIMER_KEY):
            self._log.debug("Cancelled previous session timer")
        self._token = token

        if token is None or not token.value:
            self._state = SessionState.NO_SESSION
            return

        if token.expires_at is EXPIRED:
            self._log.info("Session credential already expired; logging out")
            self._force_logout()
            return

        try:
            duration = self._duration_ms(token.expires_at)
        except CredentialError as exc:
            self._log.warning("Malformed session credential (%s); logging out", exc.message)
            self._force_logout()
            return

        self.timers.schedule(_TIMER_KEY, duration, self._on_timer_fired)
        self._state = SessionState.ARMED
        self._log.debug("Session timer armed for %d ms", duration)

    def teardown(self) -> None:
        """Cancel any live timer; called on application shutdown."""
        self.timers.cancel(_TIMER_KEY)
        self._state = SessionState.NO_SESSION
        self._token = None

    # ------------------------------------------------------------------
    def _on_timer_fired(self) -> None:
        self._log.info("Session credential expired; logging out")
        self._force_logout()

    def _force_logout(self) -> None:
        self._state = SessionState.LOGGED_OUT
        self.navigation.submit(self.logout_route, None)

    def _duration_ms(self, expires_at: object) -> int:
        expiry = _coerce_expiry(expires_at)
        now = self.clock()
        try:
            delta = expiry - now
        except TypeError as exc:
            raise CredentialError(f"Cannot compare expiry with clock: {exc}") from exc
        return max(0, int(delta.total_seconds() * 1000))


def _coerce_expiry(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise CredentialError(f"Unparsable expiration {value!r}") from exc
    raise CredentialError(f"Unsupported expiration type {type(value).__name__}")


__all__ = ["SessionLifecycleSupervisor", "SessionState"]
