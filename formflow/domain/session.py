"""Session credential value object and the already-expired sentinel."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union


class _ExpiredSentinel:
    """Marker for a credential whose expiration already passed when loaded."""

    _instance: Optional["_ExpiredSentinel"] = None

    def __new__(cls) -> "_ExpiredSentinel":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "EXPIRED"

    def __reduce__(self):
        return (_ExpiredSentinel, ())


EXPIRED = _ExpiredSentinel()

Expiry = Union[datetime, _ExpiredSentinel]


@dataclass(frozen=True)
class SessionToken:
    """Opaque credential plus its expiration (or :data:`EXPIRED`)."""

    value: Optional[str]
    expires_at: object = EXPIRED

    @property
    def is_expired(self) -> bool:
        return self.expires_at is EXPIRED

    @classmethod
    def none(cls) -> "SessionToken":
        return cls(value=None, expires_at=EXPIRED)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


__all__ = ["EXPIRED", "Expiry", "SessionToken", "utc_now"]
