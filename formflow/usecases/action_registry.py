"""Lookup table binding route keys to asynchronous action handlers.

Forms and programmatic submissions both resolve their handler here, so a
route key always reaches the same code whichever surface triggered it.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Optional

from ..domain.errors import NotFoundError
from ..domain.ports import ActionHandler, RouteKey

_log = logging.getLogger(__name__)


class ActionRegistry:
    """Registry of route key -> handler; resolution has no side effects."""

    def __init__(self, handlers: Optional[Mapping[RouteKey, ActionHandler]] = None) -> None:
        """Store initial handlers under normalized route keys.

        Args:
            handlers: Optional mapping of route keys (``"auth"``,
                ``"/logout"``) to handler callables.
        """
        self._handlers: Dict[RouteKey, ActionHandler] = {}
        for key, handler in (handlers or {}).items():
            self.register(key, handler)

    @staticmethod
    def normalize_key(route_key: RouteKey) -> RouteKey:
        """Strip whitespace and surrounding slashes: ``/logout`` -> ``logout``."""
        return str(route_key or "").strip().strip("/")

    def register(self, route_key: RouteKey, handler: ActionHandler) -> None:
        """Bind ``handler`` to ``route_key``, replacing any previous binding."""
        if not callable(handler):
            raise TypeError(f"Handler for route '{route_key}' is not callable.")
        key = self.normalize_key(route_key)
        if key in self._handlers:
            _log.debug("Replacing handler for route %r", key)
        self._handlers[key] = handler

    def resolve(self, route_key: RouteKey) -> ActionHandler:
        """Return the handler bound to ``route_key``.

        Raises:
            NotFoundError: No handler is registered for the key.
        """
        key = self.normalize_key(route_key)
        try:
            return self._handlers[key]
        except KeyError:
            raise NotFoundError(key) from None

    def keys(self) -> Iterable[RouteKey]:
        return tuple(self._handlers.keys())

    def __contains__(self, route_key: object) -> bool:
        if not isinstance(route_key, str):
            return False
        return self.normalize_key(route_key) in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)


__all__ = ["ActionRegistry"]
