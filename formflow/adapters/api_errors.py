from __future__ import annotations

from typing import Any, Optional


class ApiError(RuntimeError):
    """Base class for REST handler failures."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        hint: Optional[str] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.hint = hint
        self.payload = payload
        self.context = context


class ApiClientError(ApiError):
    """HTTP 4xx from the backend that the handler does not turn into validation."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        hint: Optional[str] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message, status=status, hint=hint, payload=payload, context=context)


class ApiServerError(ApiError):
    """HTTP 5xx from the backend."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message, status=status, payload=payload, context=context)


class ApiTimeoutError(ApiError):
    """Transport level timeout or connectivity failure."""

    def __init__(self, message: str, *, context: Optional[str] = None) -> None:
        super().__init__(message, context=context)


def raise_for_status(resp: Any, message: str, *, context: Optional[str] = None) -> None:
    """Raise the typed error for a non-2xx response, using ``message`` as text."""
    status = int(getattr(resp, "status_code", 0) or 0)
    if 200 <= status < 300:
        return
    payload = parse_error_payload(resp)
    if status >= 500:
        raise ApiServerError(message, status=status, payload=payload, context=context)
    raise ApiClientError(
        message,
        status=status,
        hint=extract_error_hint(payload),
        payload=payload,
        context=context,
    )


def parse_error_payload(resp: Any) -> Any:
    """Best-effort extraction of error payload without raising."""
    try:
        return resp.json()
    except Exception:
        snippet = getattr(resp, "text", "")
        if not snippet:
            return None
        return snippet[:400]


def extract_error_hint(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        for key in ("hint", "detail", "message"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()[:200]
    if isinstance(payload, str):
        return payload.strip()[:200] or None
    return None


__all__ = [
    "ApiClientError",
    "ApiError",
    "ApiServerError",
    "ApiTimeoutError",
    "extract_error_hint",
    "parse_error_payload",
    "raise_for_status",
]
