from __future__ import annotations

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Sequence

import pytest
from requests import exceptions as req_exc

from formflow.adapters.api_errors import ApiClientError, ApiServerError, ApiTimeoutError
from formflow.adapters.auth_rest import AuthRestAdapter
from formflow.adapters.events_rest import EventsRestAdapter
from formflow.adapters.token_store import TokenStoreMemory
from formflow.domain.ports import UseCaseError
from formflow.domain.results import RedirectMarker, SubmissionRequest

NOW = datetime(2025, 4, 30, 12, 0, tzinfo=timezone.utc)


class _ResponseStub:
    def __init__(self, payload: Any, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code
        self.text = "" if payload is None else str(payload)

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no body")
        return self._payload


class _SessionStub:
    def __init__(self, responses: Sequence[Any]) -> None:
        self._responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def request(self, method: str, url: str, *, data=None, headers=None, timeout=None) -> _ResponseStub:
        self.calls.append(
            {
                "method": method,
                "url": url,
                "body": None if data is None else json.loads(data),
                "headers": dict(headers or {}),
                "timeout": timeout,
            }
        )
        if not self._responses:
            raise RuntimeError("No stub response configured")
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _auth(responses: Sequence[Any]) -> tuple[AuthRestAdapter, TokenStoreMemory, _SessionStub]:
    store = TokenStoreMemory(clock=lambda: NOW)
    adapter = AuthRestAdapter("http://backend.local/", store, clock=lambda: NOW, token_ttl_s=3600)
    stub = _SessionStub(responses)
    adapter.session.session = stub  # type: ignore[assignment]
    return adapter, store, stub


def _events(responses: Sequence[Any], token: str = "tok") -> tuple[EventsRestAdapter, _SessionStub]:
    store = TokenStoreMemory(clock=lambda: NOW)
    store.save(token, NOW + timedelta(hours=1))
    adapter = EventsRestAdapter("http://backend.local", store, retries=1)
    stub = _SessionStub(responses)
    adapter.session.session = stub  # type: ignore[assignment]
    return adapter, stub


def test_login_posts_credentials_and_stores_token() -> None:
    adapter, store, stub = _auth([_ResponseStub({"token": "abc"})])
    request = SubmissionRequest.of({"email": "ikram@example.com", "password": "mypassword", "mode": "login"})

    result = adapter.authenticate_sync(request)

    assert result == RedirectMarker(target="/")
    assert stub.calls[0]["url"] == "http://backend.local/login"
    assert stub.calls[0]["body"] == {"email": "ikram@example.com", "password": "mypassword"}
    assert stub.calls[0]["headers"]["Content-Type"] == "application/json"
    token = store.load()
    assert token.value == "abc"
    assert token.expires_at == NOW + timedelta(hours=1)


def test_signup_validation_payload_is_returned() -> None:
    payload = {"message": "User signup failed due to validation errors.", "errors": {"email": "Email exists already."}}
    adapter, store, stub = _auth([_ResponseStub(payload, status_code=422)])

    result = asyncio.run(adapter.authenticate(SubmissionRequest.of({"mode": "signup", "email": "a@b.c"})))

    assert result == payload
    assert stub.calls[0]["url"] == "http://backend.local/signup"
    assert store.token() is None


def test_unauthorized_without_body_becomes_validation_message() -> None:
    adapter, _, _ = _auth([_ResponseStub(None, status_code=401)])

    result = adapter.authenticate_sync(SubmissionRequest.of({"mode": "login"}))

    assert result == {"message": "Authentication failed.", "errors": {}}


def test_unsupported_mode_raises_use_case_error() -> None:
    adapter, _, stub = _auth([])

    with pytest.raises(UseCaseError) as excinfo:
        adapter.authenticate_sync(SubmissionRequest.of({"mode": "reset"}))

    assert excinfo.value.message == "Unsupported mode."
    assert stub.calls == []


def test_server_failure_raises_could_not_authenticate() -> None:
    adapter, _, _ = _auth([_ResponseStub({"message": "down"}, status_code=500)])

    with pytest.raises(ApiServerError, match="Could not authenticate user."):
        adapter.authenticate_sync(SubmissionRequest.of({"mode": "login"}))


def test_logout_clears_token() -> None:
    adapter, store, _ = _auth([])
    store.save("abc", NOW + timedelta(hours=1))

    result = asyncio.run(adapter.logout(SubmissionRequest.of(None)))

    assert result == RedirectMarker(target="/")
    assert store.token() is None


def test_save_event_posts_with_bearer_token() -> None:
    adapter, stub = _events([_ResponseStub({"message": "Event saved."}, status_code=201)])
    request = SubmissionRequest.of(
        {"title": "Sample Title", "image": "https://example.com/image.jpg", "date": "2025-04-30", "description": "d"}
    )

    result = asyncio.run(adapter.save_event(request))

    assert result == RedirectMarker(target="/events")
    call = stub.calls[0]
    assert (call["method"], call["url"]) == ("POST", "http://backend.local/events")
    assert call["headers"]["Authorization"] == "Bearer tok"
    assert call["body"]["title"] == "Sample Title"


def test_edit_event_uses_patch() -> None:
    adapter, stub = _events([_ResponseStub({}, status_code=200)])

    adapter.save_event_sync(SubmissionRequest.of({"id": "e1", "title": "t"}))

    assert (stub.calls[0]["method"], stub.calls[0]["url"]) == ("PATCH", "http://backend.local/events/e1")


def test_save_event_validation_and_failure() -> None:
    errors = {"message": "Adding the event failed due to validation errors.", "errors": {"title": "Invalid title."}}
    adapter, _ = _events([_ResponseStub(errors, status_code=422), _ResponseStub("nope", status_code=404)])

    assert adapter.save_event_sync(SubmissionRequest.of({"title": ""})) == errors
    with pytest.raises(ApiClientError, match="Could not save event."):
        adapter.save_event_sync(SubmissionRequest.of({"title": "x"}))


def test_transport_timeouts_are_retried_then_raised() -> None:
    adapter, stub = _events([req_exc.Timeout(), req_exc.ConnectionError()])

    with pytest.raises(ApiTimeoutError):
        adapter.save_event_sync(SubmissionRequest.of({"title": "x"}))

    assert len(stub.calls) == 2


def test_transport_timeout_without_retries_raises_after_one_attempt() -> None:
    adapter, stub = _events([req_exc.Timeout("slow")], token="tok")
    adapter.session.cfg.retries = 0

    with pytest.raises(ApiTimeoutError) as excinfo:
        adapter.save_event_sync(SubmissionRequest.of({"title": "x"}))

    assert len(stub.calls) == 1
    assert isinstance(excinfo.value.__cause__, req_exc.Timeout)
