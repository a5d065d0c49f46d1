"""Translate handler exceptions into user-facing failure descriptions."""

from __future__ import annotations


from typing import Optional

from formflow.adapters.api_errors import (
    ApiClientError,
    ApiError,
    ApiServerError,
    ApiTimeoutError,
    extract_error_hint,
)
from formflow.domain.ports import UseCaseError


def describe_error(exc: BaseException, *, default_message: Optional[str] = None) -> str:
    """Return the message shown to the user for a raised handler failure.

    Args:
        exc (BaseException): Failure raised by the handler.
        default_message (Optional[str]): Text used when the exception carries none.

    Returns:
        str: Non-empty description for ``Failure.message``.
    """
    if isinstance(exc, UseCaseError):
        return exc.message or _fallback(default_message)
    if isinstance(exc, ApiTimeoutError):
        return "Request timed out. Check connection."
    if isinstance(exc, ApiServerError):
        return str(exc) or "Server error, try again."
    if isinstance(exc, ApiClientError):
        status = exc.status or 0
        if status in (401, 403):
            return "Not authenticated."
        if str(exc):
            return str(exc)
        hint = exc.hint or extract_error_hint(exc.payload)
        return _compose_error_message(f"Request failed (HTTP {status})", hint)
    if isinstance(exc, ApiError):
        return str(exc) or _fallback(default_message)

    description = getattr(exc, "description", None)
    if isinstance(description, str) and description.strip():
        return description.strip()
    return str(exc).strip() or _fallback(default_message)


def _fallback(default_message: Optional[str]) -> str:
    return default_message or "Unexpected error."


def _compose_error_message(base: str, hint: Optional[str]) -> str:
    """Compose a user-facing error message with optional hint text.

    Args:
        base (str): Primary message.
        hint (Optional[str]): Extra detail extracted from the error payload.

    Returns:
        str: ``"base: hint"`` or ``base`` terminated with a period.
    """
    hint_text = (hint or "").strip()
    if hint_text:
        return f"{base}: {hint_text}"
    if base.endswith("."):
        return base
    return f"{base}."


__all__ = ["describe_error"]
