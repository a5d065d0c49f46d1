from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

_ENV_PREFIX = "FORMFLOW_"
_INT_KEYS = ("request_timeout_s", "retries", "token_ttl_s")


@dataclass(frozen=True)
class AppSettings:
    """Typed runtime settings for the form shell and its REST handlers."""

    api_base_url: str = "http://localhost:8080"
    request_timeout_s: int = 10
    retries: int = 2
    token_ttl_s: int = 3600
    logout_route: str = "logout"
    state_dir: str = "."
    submit_label: str = "Save"
    pending_label: str = "Submitting..."

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "AppSettings":
        """Build settings from a flat mapping, rejecting unknown keys."""
        if not isinstance(payload, Mapping):
            raise ValueError("Settings payload must be a mapping of flat keys.")
        allowed = {f.name for f in fields(cls)}
        unknown = set(payload.keys()) - allowed
        if unknown:
            raise ValueError(f"Unsupported settings keys: {', '.join(sorted(str(key) for key in unknown))}")
        updates = {key: _coerce(key, value) for key, value in payload.items()}
        return replace(cls(), **updates)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppSettings":
        """Read ``FORMFLOW_*`` overrides (e.g. ``FORMFLOW_API_BASE_URL``)."""
        env = os.environ if environ is None else environ
        payload: Dict[str, Any] = {}
        for f in fields(cls):
            value = env.get(_ENV_PREFIX + f.name.upper())
            if value is not None and value.strip():
                payload[f.name] = value
        return cls.from_mapping(payload)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _coerce(key: str, value: Any) -> Any:
    if key in _INT_KEYS:
        try:
            number = int(str(value).strip())
        except (TypeError, ValueError):
            raise ValueError(f"{key} must be an integer.") from None
        if number < 0:
            raise ValueError(f"{key} must be >= 0.")
        return number
    text = "" if value is None else str(value).strip()
    if key == "api_base_url":
        return text.rstrip("/")
    if key == "logout_route":
        return text.strip("/")
    return text


__all__ = ["AppSettings"]
