from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, List, Sequence

import pytest

from formflow.adapters.token_store import TokenStoreMemory
from formflow.app.main import App, _parse_fields, form_for_route, main
from formflow.app.session_supervisor import SessionState
from formflow.domain.session import EXPIRED, utc_now
from formflow.domain.settings import AppSettings
from formflow.tests.unit.app.helpers import settle
from formflow.viewmodels.forms import auth_form


class _ResponseStub:
    def __init__(self, payload: Any, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def json(self) -> Any:
        return self._payload


class _SessionStub:
    def __init__(self, responses: Sequence[_ResponseStub]) -> None:
        self._responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> _ResponseStub:
        self.calls.append({"method": method, "url": url, **kwargs})
        return self._responses.pop(0)


def _app(store: TokenStoreMemory) -> App:
    return App(AppSettings(api_base_url="http://backend.local"), token_store=store)


def test_registry_wires_auth_logout_and_event_routes() -> None:
    app = _app(TokenStoreMemory())

    assert set(app.registry.keys()) == {"auth", "logout", "events/new", "events/edit"}


def test_start_with_expired_credential_logs_out() -> None:
    async def scenario() -> None:
        store = TokenStoreMemory()
        store.save("stale", utc_now() - timedelta(minutes=1))
        app = _app(store)

        app.start()
        await settle()

        assert store.token() is None
        assert app.navigator.last_result.kind == "redirect"
        assert app.supervisor.armed is False

    asyncio.run(scenario())


def test_start_with_valid_credential_arms_timer_until_shutdown() -> None:
    async def scenario() -> None:
        store = TokenStoreMemory()
        store.save("live", utc_now() + timedelta(hours=1))
        app = _app(store)

        app.start()
        assert app.supervisor.state is SessionState.ARMED

        app.shutdown()
        assert app.supervisor.armed is False

    asyncio.run(scenario())


def test_login_stores_token_and_rearms_supervisor_on_navigation() -> None:
    async def scenario() -> None:
        store = TokenStoreMemory()
        app = _app(store)
        app.auth.session.session = _SessionStub([_ResponseStub({"token": "abc"})])
        app.start()
        app.navigator.navigate_to("/auth")
        controller = app.mount_form(auth_form("login"))

        result = await controller.submit({"email": "ikram@example.com", "password": "mypassword", "mode": "login"})

        assert result.kind == "redirect"
        assert app.navigator.current_path == "/"
        assert store.token() == "abc"
        assert app.supervisor.state is SessionState.ARMED
        app.shutdown()
        assert controller.mounted is False

    asyncio.run(scenario())


def test_login_from_root_arms_supervisor_on_same_path_redirect() -> None:
    async def scenario() -> None:
        store = TokenStoreMemory()
        app = _app(store)
        app.auth.session.session = _SessionStub([_ResponseStub({"token": "abc"})])
        app.start()
        assert app.supervisor.state is SessionState.NO_SESSION
        controller = app.mount_form(auth_form("login"))

        result = await controller.submit({"email": "ikram@example.com", "password": "mypassword", "mode": "login"})

        assert result.kind == "redirect"
        assert app.navigator.history == ["/"]
        assert store.token() == "abc"
        assert app.supervisor.state is SessionState.ARMED
        assert app.supervisor.armed is True
        app.shutdown()

    asyncio.run(scenario())


def test_main_logs_effective_level(tmp_path, monkeypatch, caplog, capsys) -> None:
    caplog.set_level(logging.DEBUG)
    monkeypatch.setenv("FORMFLOW_DEBUG", "1")
    monkeypatch.delenv("FORMFLOW_LOG_LEVEL", raising=False)

    assert main(["--state-dir", str(tmp_path), "session"]) == 0

    assert "Effective log level: DEBUG" in caplog.text
    assert capsys.readouterr().out.strip() == "no session"


def test_backend_validation_is_rendered_on_auth_form() -> None:
    async def scenario() -> None:
        app = _app(TokenStoreMemory())
        payload = {"message": "Validation failed", "errors": {"email": "Invalid email"}}
        app.auth.session.session = _SessionStub([_ResponseStub(payload, status_code=422)])
        controller = app.mount_form(auth_form("login"))

        await controller.submit({"email": "nope", "password": "x", "mode": "login"})

        assert controller.form_vm.visible_texts() == ["Validation failed", "Invalid email"]

    asyncio.run(scenario())


def test_malformed_stored_credential_is_treated_as_expired() -> None:
    store = TokenStoreMemory()
    store._write({"token": "abc", "expiration": "garbage"})
    app = _app(store)

    token = app.load_credential()

    assert token.expires_at is EXPIRED


def test_form_for_route_and_field_parsing() -> None:
    assert form_for_route("/auth", {"mode": "signup"}).title == "Create a new user"
    assert form_for_route("events/edit", {"id": "e1"}).route_key == "events/edit"
    with pytest.raises(ValueError):
        form_for_route("logout", {})
    assert _parse_fields(["title=A=B", "date=2025-04-30"]) == {"title": "A=B", "date": "2025-04-30"}
