"""Domain-level error types for dispatch wiring and credential handling.

Both errors cross layer boundaries without leaking transport-specific
exception details. Per-submission faults never use these types; they are
normalized into ``Failure`` results instead.
"""

from __future__ import annotations

from .ports import UseCaseError


class NotFoundError(UseCaseError, LookupError):
    """No handler is registered under the requested route key (wiring bug)."""

    def __init__(self, route_key: str) -> None:
        super().__init__("ROUTE_NOT_FOUND", f"No action registered for route '{route_key}'.")
        self.route_key = route_key


class CredentialError(UseCaseError):
    """Stored credential cannot be interpreted (malformed token or expiry)."""

    def __init__(self, message: str) -> None:
        super().__init__("CREDENTIAL_INVALID", message)


__all__ = ["CredentialError", "NotFoundError"]
