from __future__ import annotations
from typing import Any, Awaitable, Callable, Optional, Protocol, Union

from .results import SubmissionRequest
from .session import SessionToken

RouteKey = str


# ---- Error model ----
class UseCaseError(Exception):
    """Base class for use case level errors (user-presentable)."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


# ---- Ports (Hexagonal boundaries) ----
ActionHandler = Callable[[SubmissionRequest], Union[Any, Awaitable[Any]]]
"""Externally supplied handler: returns a raw result (maybe awaitable) or raises."""


class NavigationBridge(Protocol):
    """Programmatic submission and history navigation for the controller layer.

    ``submit`` must be observably equivalent to a form-driven submission: same
    registry resolution, same result normalization.
    """

    def submit(self, route_key: RouteKey, payload: Optional[Any]) -> Any: ...
    def navigate_back(self) -> None: ...
    def navigate_to(self, path: str) -> None: ...


class TokenStorePort(Protocol):
    """Persistence for the session credential and its expiration."""

    def save(self, token: str, expires_at) -> None: ...
    def clear(self) -> None: ...
    def token(self) -> Optional[str]: ...
    def load(self) -> SessionToken: ...
