"""Declarative form definitions for the auth and event entry screens."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

AUTH_MODES: Tuple[str, ...] = ("login", "signup")


@dataclass(frozen=True)
class FieldDefinition:
    name: str
    label: str
    kind: str = "text"
    required: bool = True


@dataclass(frozen=True)
class FormDefinition:
    """Which fields a form shows and which route its submissions go to."""

    name: str
    route_key: str
    fields: Tuple[FieldDefinition, ...]
    title: str = ""
    toggle_label: Optional[str] = None
    hidden: Tuple[Tuple[str, str], ...] = ()

    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def has_field(self, name: str) -> bool:
        return any(f.name == name for f in self.fields)


def auth_form(mode: str = "login") -> FormDefinition:
    """Login or signup form; the mode travels as a hidden field."""
    normalized = (mode or "").strip().lower()
    if normalized not in AUTH_MODES:
        raise ValueError(f"Unsupported auth mode: {mode!r}")
    is_login = normalized == "login"
    return FormDefinition(
        name="auth",
        route_key="auth",
        fields=(
            FieldDefinition("email", "Email", kind="email"),
            FieldDefinition("password", "Password", kind="password"),
        ),
        title="Log in" if is_login else "Create a new user",
        toggle_label="Create new user" if is_login else "Login",
        hidden=(("mode", normalized),),
    )


def event_form(*, event_id: Optional[str] = None) -> FormDefinition:
    """New-event form, or edit form when ``event_id`` is given."""
    hidden: Tuple[Tuple[str, str], ...] = (("id", event_id),) if event_id else ()
    return FormDefinition(
        name="event",
        route_key="events/edit" if event_id else "events/new",
        fields=(
            FieldDefinition("title", "Title"),
            FieldDefinition("image", "Image", kind="url"),
            FieldDefinition("date", "Date", kind="date"),
            FieldDefinition("description", "Description", kind="textarea"),
        ),
        title="Edit event" if event_id else "New event",
        hidden=hidden,
    )


__all__ = ["AUTH_MODES", "FieldDefinition", "FormDefinition", "auth_form", "event_form"]
