from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from formflow.domain.ports import TokenStorePort
from formflow.domain.results import SubmissionRequest, redirect

from .api_errors import parse_error_payload, raise_for_status
from .http_client import HttpConfig, RetryingSession

EVENT_FIELDS = ("title", "image", "date", "description")


class EventsRestAdapter:
    """Create or update events at ``{base_url}/events`` with the session token."""

    def __init__(
        self,
        base_url: str,
        token_store: TokenStorePort,
        *,
        request_timeout_s: int = 10,
        retries: int = 2,
        list_path: str = "/events",
    ) -> None:
        if not base_url:
            raise ValueError("EventsRestAdapter requires a base URL")
        self._log = logging.getLogger(__name__)
        self.base_url = base_url.rstrip("/")
        self.list_path = list_path
        self.cfg = HttpConfig(request_timeout_s=request_timeout_s, retries=retries)
        self.session = RetryingSession(self.cfg, token_provider=token_store.token)

    async def save_event(self, request: SubmissionRequest) -> Any:
        return await asyncio.to_thread(self.save_event_sync, request)

    def save_event_sync(self, request: SubmissionRequest) -> Any:
        body: Dict[str, Any] = {name: request.get_text(name) for name in EVENT_FIELDS}
        event_id = request.get_text("id").strip()
        if event_id:
            url = f"{self.base_url}/events/{event_id}"
            resp = self.session.patch(url, json_body=body, auth=True)
        else:
            url = f"{self.base_url}/events"
            resp = self.session.post(url, json_body=body, auth=True)

        if resp.status_code == 422:
            payload = parse_error_payload(resp)
            if isinstance(payload, dict):
                return payload
        raise_for_status(resp, "Could not save event.", context=url)
        self._log.info("Saved event %s", event_id or "(new)")
        return redirect(self.list_path)


__all__ = ["EVENT_FIELDS", "EventsRestAdapter"]
