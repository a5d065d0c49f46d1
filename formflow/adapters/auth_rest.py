"""REST-backed login/signup and logout action handlers."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from formflow.domain.ports import TokenStorePort, UseCaseError
from formflow.domain.results import RedirectMarker, SubmissionRequest, redirect
from formflow.domain.session import utc_now

from .api_errors import ApiError, parse_error_payload, raise_for_status
from .http_client import HttpConfig, RetryingSession

AUTH_MODES = ("login", "signup")
# statuses the backend uses for expected, user-recoverable rejections
VALIDATION_STATUSES = (401, 422)


class AuthRestAdapter:
    """Authenticate against ``{base_url}/{mode}`` and manage the stored token."""

    def __init__(
        self,
        base_url: str,
        token_store: TokenStorePort,
        *,
        request_timeout_s: int = 10,
        retries: int = 2,
        token_ttl_s: int = 3600,
        clock: Callable[[], datetime] = utc_now,
        home_path: str = "/",
    ) -> None:
        if not base_url:
            raise ValueError("AuthRestAdapter requires a base URL")
        self._log = logging.getLogger(__name__)
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store
        self.token_ttl = timedelta(seconds=token_ttl_s)
        self.clock = clock
        self.home_path = home_path
        self.cfg = HttpConfig(request_timeout_s=request_timeout_s, retries=retries)
        self.session = RetryingSession(self.cfg)

    async def authenticate(self, request: SubmissionRequest) -> Any:
        """Action handler for the auth form; blocking I/O runs in a worker thread."""
        return await asyncio.to_thread(self.authenticate_sync, request)

    def authenticate_sync(self, request: SubmissionRequest) -> Any:
        mode = request.get_text("mode", "login").strip().lower() or "login"
        if mode not in AUTH_MODES:
            raise UseCaseError("UNSUPPORTED_MODE", "Unsupported mode.")

        body = {
            "email": request.get_text("email"),
            "password": request.get_text("password"),
        }
        url = f"{self.base_url}/{mode}"
        resp = self.session.post(url, json_body=body)
        if resp.status_code in VALIDATION_STATUSES:
            # backend validation payload ({"message", "errors"}) is passed through
            return self._validation_payload(resp)
        raise_for_status(resp, "Could not authenticate user.", context=f"POST {url}")

        token = self._extract_token(resp)
        expires_at = self.clock() + self.token_ttl
        self.token_store.save(token, expires_at)
        self._log.info("Authenticated via %s; token valid until %s", mode, expires_at.isoformat())
        return redirect(self.home_path)

    async def logout(self, request: SubmissionRequest) -> RedirectMarker:
        """Action handler for the logout route: drop the credential, go home."""
        self.token_store.clear()
        self._log.info("Session credential cleared")
        return redirect(self.home_path)

    @staticmethod
    def _validation_payload(resp) -> Dict[str, Any]:
        payload = parse_error_payload(resp)
        if isinstance(payload, dict):
            return payload
        text = payload if isinstance(payload, str) and payload.strip() else "Authentication failed."
        return {"message": text, "errors": {}}

    @staticmethod
    def _extract_token(resp) -> str:
        try:
            data = resp.json()
        except ValueError as exc:
            raise ApiError("Authentication response is not JSON.") from exc
        token: Optional[Any] = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise ApiError("Authentication response did not include a token.")
        return token


__all__ = ["AUTH_MODES", "AuthRestAdapter"]
