# formflow/app/main.py
from __future__ import annotations
import argparse
import asyncio
import logging
import sys
from typing import Dict, List, Mapping, Optional, Sequence

# ---- ViewModels ----
from ..viewmodels.form_vm import FormVM
from ..viewmodels.forms import FormDefinition, auth_form, event_form

# ---- UseCases & Adapters ----
from ..adapters.auth_rest import AuthRestAdapter
from ..adapters.events_rest import EventsRestAdapter
from ..adapters.token_store import TokenStoreLocal
from ..domain.errors import CredentialError
from ..domain.ports import TokenStorePort
from ..domain.results import ActionResult
from ..domain.session import EXPIRED, SessionToken
from ..domain.settings import AppSettings
from ..usecases.action_registry import ActionRegistry
from ..usecases.dispatch_action import DispatchAction
from ..utils import logging as logging_utils

from .navigation import HistoryNavigator
from .session_supervisor import SessionLifecycleSupervisor
from .submission_controller import SubmissionController
from .timer_scheduler import TimerScheduler, loop_timer_fns


class App:
    """Bootstrap: wire forms <-> controllers, REST handlers, navigation and session timer.

    ``start`` must run inside the event loop the app was built for, since an
    already-expired credential dispatches logout immediately.
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        *,
        token_store: Optional[TokenStorePort] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self.settings = settings or AppSettings()
        self.token_store = token_store or TokenStoreLocal(self.settings.state_dir)

        # ---- Handlers ----
        self.auth = AuthRestAdapter(
            self.settings.api_base_url,
            self.token_store,
            request_timeout_s=self.settings.request_timeout_s,
            retries=self.settings.retries,
            token_ttl_s=self.settings.token_ttl_s,
        )
        self.events = EventsRestAdapter(
            self.settings.api_base_url,
            self.token_store,
            request_timeout_s=self.settings.request_timeout_s,
            retries=self.settings.retries,
        )
        self.registry = ActionRegistry(
            {
                "auth": self.auth.authenticate,
                self.settings.logout_route: self.auth.logout,
                "events/new": self.events.save_event,
                "events/edit": self.events.save_event,
            }
        )
        self.dispatch = DispatchAction(self.registry)

        # ---- Navigation & session ----
        self.navigator = HistoryNavigator(self.dispatch, loop=loop)
        self.timers = TimerScheduler(*loop_timer_fns(loop))
        self.supervisor = SessionLifecycleSupervisor(
            self.navigator,
            self.timers,
            logout_route=self.settings.logout_route,
        )
        self.navigator.add_listener(self._on_navigated)
        self._loop = loop
        self._controllers: List[SubmissionController] = []

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def start(self) -> None:
        self.reload_credential()

    def shutdown(self) -> None:
        self.supervisor.teardown()
        for controller in list(self._controllers):
            self.unmount_form(controller)

    def load_credential(self) -> SessionToken:
        try:
            return self.token_store.load()
        except CredentialError as exc:
            self._log.warning("Stored credential unusable: %s", exc.message)
            return SessionToken(value="malformed", expires_at=EXPIRED)

    def reload_credential(self) -> None:
        self.supervisor.on_credential_change(self.load_credential())

    def _on_navigated(self, path: str) -> None:
        self._log.debug("Navigated to %s; re-evaluating credential", path)
        self.reload_credential()

    # ------------------------------------------------------------------
    # Forms
    # ------------------------------------------------------------------
    def mount_form(self, form: FormDefinition) -> SubmissionController:
        vm = FormVM(
            form,
            submit_label=self.settings.submit_label,
            pending_label=self.settings.pending_label,
        )
        controller = SubmissionController(
            form.route_key,
            self.dispatch,
            self.navigator,
            vm,
            loop=self._loop,
        )
        self._controllers.append(controller)
        return controller

    def unmount_form(self, controller: SubmissionController) -> None:
        controller.unmount()
        if controller in self._controllers:
            self._controllers.remove(controller)


def form_for_route(route_key: str, fields: Mapping[str, str]) -> FormDefinition:
    """Pick the form definition that submits to ``route_key``."""
    key = ActionRegistry.normalize_key(route_key)
    if key == "auth":
        return auth_form(fields.get("mode", "login"))
    if key in ("events/new", "events/edit"):
        return event_form(event_id=fields.get("id") or None)
    raise ValueError(f"No form submits to route '{route_key}'.")


def _parse_fields(pairs: Sequence[str]) -> Dict[str, str]:
    fields: Dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            raise argparse.ArgumentTypeError(f"Expected NAME=VALUE, got {pair!r}")
        fields[name.strip()] = value
    return fields


async def _run_submit(settings: AppSettings, route_key: str, fields: Dict[str, str]) -> int:
    app = App(settings)
    app.start()
    try:
        form = form_for_route(route_key, fields)
        controller = app.mount_form(form)
        controller.form_vm.update({k: v for k, v in fields.items() if form.has_field(k)})
        result: Optional[ActionResult] = await controller.submit()
        for text in controller.form_vm.visible_texts():
            print(text)
        if result is not None and result.kind == "redirect":
            print(f"-> {app.navigator.current_path}")
        return 1 if result is None or result.is_error else 0
    finally:
        app.shutdown()


def _describe_session(settings: AppSettings) -> int:
    store = TokenStoreLocal(settings.state_dir)
    try:
        token = store.load()
    except CredentialError as exc:
        print(f"invalid: {exc.message}")
        return 1
    if not token.value:
        print("no session")
    elif token.expires_at is EXPIRED:
        print("expired")
    else:
        print(f"valid until {token.expires_at.isoformat()}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="formflow", description="Submit forms against the events backend.")
    parser.add_argument("--base-url", help="Backend base URL (default from FORMFLOW_API_BASE_URL)")
    parser.add_argument("--state-dir", help="Directory holding session.json")
    sub = parser.add_subparsers(dest="command", required=True)

    submit = sub.add_parser("submit", help="Submit one form and print the rendered errors")
    submit.add_argument("route", help="Route key, e.g. auth or events/new")
    submit.add_argument("--field", action="append", default=[], metavar="NAME=VALUE")

    sub.add_parser("session", help="Show the stored credential status")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    level = logging_utils.configure_root()
    logging.getLogger(__name__).debug("Effective log level: %s", logging_utils.level_name(level))
    parser = build_parser()
    args = parser.parse_args(argv)
    overrides = {}
    if args.base_url:
        overrides["api_base_url"] = args.base_url
    if args.state_dir:
        overrides["state_dir"] = args.state_dir
    settings = AppSettings.from_mapping({**AppSettings.from_env().to_dict(), **overrides})

    if args.command == "session":
        return _describe_session(settings)
    try:
        fields = _parse_fields(args.field)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))
    return asyncio.run(_run_submit(settings, args.route, fields))


if __name__ == "__main__":
    sys.exit(main())
