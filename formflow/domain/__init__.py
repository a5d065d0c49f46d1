"""Domain package exports for submission results and session credentials."""

from .errors import CredentialError, NotFoundError
from .ports import UseCaseError
from .results import (
    ActionResult,
    Failure,
    Redirect,
    RedirectMarker,
    SubmissionPhase,
    SubmissionRequest,
    Success,
    Validation,
    redirect,
)
from .session import EXPIRED, SessionToken

__all__ = [
    "ActionResult",
    "CredentialError",
    "EXPIRED",
    "Failure",
    "NotFoundError",
    "Redirect",
    "RedirectMarker",
    "SessionToken",
    "SubmissionPhase",
    "SubmissionRequest",
    "Success",
    "UseCaseError",
    "Validation",
    "redirect",
]
