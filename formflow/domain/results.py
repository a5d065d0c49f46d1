"""Submission snapshots, handler result variants and the form phase enum.

Handlers return loosely shaped values; ``formflow.usecases.normalize_result``
turns them into one of the frozen :class:`ActionResult` variants defined here
so controllers only ever branch on ``kind``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Dict, Iterator, Mapping, Optional, Union

FieldValue = Union[str, bytes]


class SubmissionPhase(Enum):
    """Lifecycle of a single form controller."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    SETTLED = "settled"


class SubmissionRequest(Mapping[str, FieldValue]):
    """Immutable snapshot of submitted field values taken at submit time."""

    __slots__ = ("_data",)

    def __init__(self, fields: Optional[Mapping[str, Any]] = None) -> None:
        data: Dict[str, FieldValue] = {}
        for name, value in (fields or {}).items():
            data[str(name)] = _coerce_value(value)
        self._data = MappingProxyType(data)

    @classmethod
    def of(cls, fields: Optional[Mapping[str, Any]] = None) -> "SubmissionRequest":
        if isinstance(fields, SubmissionRequest):
            return fields
        return cls(fields)

    def __getitem__(self, key: str) -> FieldValue:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def get_text(self, key: str, default: str = "") -> str:
        """Return a field as text; binary values are decoded as UTF-8."""
        value = self._data.get(key)
        if value is None:
            return default
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        return value

    def to_dict(self) -> Dict[str, FieldValue]:
        return dict(self._data)

    def __repr__(self) -> str:
        return f"SubmissionRequest({dict(self._data)!r})"


def _coerce_value(value: Any) -> FieldValue:
    if value is None:
        return ""
    if isinstance(value, (str, bytes)):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return str(value)


# ---- Handler results ----
@dataclass(frozen=True)
class ActionResult:
    """Base class of the normalized handler result variants."""

    kind: ClassVar[str] = "result"

    @property
    def is_error(self) -> bool:
        return self.kind in ("validation", "failure")


@dataclass(frozen=True)
class Redirect(ActionResult):
    kind: ClassVar[str] = "redirect"
    target: str = "/"


@dataclass(frozen=True)
class Validation(ActionResult):
    """Expected, user-recoverable rejection with per-field messages."""

    kind: ClassVar[str] = "validation"
    message: str = ""
    field_errors: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Success(ActionResult):
    kind: ClassVar[str] = "success"
    payload: Any = None


@dataclass(frozen=True)
class Failure(ActionResult):
    """Produced when a handler raises instead of returning."""

    kind: ClassVar[str] = "failure"
    message: str = ""


@dataclass(frozen=True)
class RedirectMarker:
    """Routing instruction a handler returns to request navigation."""

    target: str


def redirect(target: str) -> RedirectMarker:
    """Return a redirect marker for ``target`` (mirrors router ``redirect()``)."""
    return RedirectMarker(target=str(target))


__all__ = [
    "ActionResult",
    "Failure",
    "FieldValue",
    "Redirect",
    "RedirectMarker",
    "SubmissionPhase",
    "SubmissionRequest",
    "Success",
    "Validation",
    "redirect",
]
