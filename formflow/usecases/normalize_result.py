"""Normalize raw handler output into structured :class:`ActionResult` values."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from formflow.domain.results import (
    ActionResult,
    Failure,
    Redirect,
    RedirectMarker,
    Success,
    Validation,
)
from formflow.usecases.error_mapping import describe_error

_log = logging.getLogger(__name__)

DEFAULT_VALIDATION_MESSAGE = "Validation failed."
UNEXPECTED_RESPONSE = "Unexpected response"


class ValidationAggregator:
    """Turn a handler's return value (or raised error) into an ``ActionResult``.

    Accepted shapes:
        - ``None`` -> ``Success(payload=None)``
        - ``{"message": ..., "errors": {...}}`` -> ``Validation``
        - ``{"message": ...}`` without errors -> ``Success(payload=raw)``
        - ``redirect(target)`` or ``{"redirect": target}`` -> ``Redirect``
        - an exception -> ``Failure(message=<description>)``
        - an ``ActionResult`` -> unchanged

    Anything else fails closed to ``Failure("Unexpected response")``.
    """

    def normalize(self, raw: Any) -> ActionResult:
        if raw is None:
            return Success(payload=None)
        if isinstance(raw, ActionResult):
            return raw
        if isinstance(raw, RedirectMarker):
            return Redirect(target=raw.target)
        if isinstance(raw, BaseException):
            return Failure(message=describe_error(raw))
        if isinstance(raw, Mapping):
            return self._from_mapping(raw)
        _log.warning("Handler returned unsupported result type %s", type(raw).__name__)
        return Failure(message=UNEXPECTED_RESPONSE)

    __call__ = normalize

    def _from_mapping(self, raw: Mapping[str, Any]) -> ActionResult:
        target = raw.get("redirect")
        if isinstance(target, str) and target.strip():
            return Redirect(target=target.strip())

        errors = raw.get("errors")
        message = raw.get("message")
        if errors is not None:
            if not isinstance(errors, Mapping):
                _log.warning("Handler returned non-mapping errors: %r", errors)
                return Failure(message=UNEXPECTED_RESPONSE)
            field_errors = _stringify_errors(errors)
            text = str(message).strip() if message is not None else ""
            return Validation(message=text or DEFAULT_VALIDATION_MESSAGE, field_errors=field_errors)
        if message is not None:
            return Success(payload=dict(raw))
        _log.warning("Handler returned mapping without message/errors: keys=%s", sorted(map(str, raw)))
        return Failure(message=UNEXPECTED_RESPONSE)


def _stringify_errors(errors: Mapping[Any, Any]) -> Dict[str, str]:
    # every key is kept, even ones no form field will display
    result: Dict[str, str] = {}
    for key, value in errors.items():
        if isinstance(value, (list, tuple)):
            text = "; ".join(str(item) for item in value if item is not None)
        else:
            text = "" if value is None else str(value)
        result[str(key)] = text
    return result


__all__ = ["DEFAULT_VALIDATION_MESSAGE", "UNEXPECTED_RESPONSE", "ValidationAggregator"]
