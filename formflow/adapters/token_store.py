from __future__ import annotations
import json, os
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from formflow.domain.errors import CredentialError
from formflow.domain.ports import TokenStorePort
from formflow.domain.session import EXPIRED, SessionToken, utc_now


class _TokenStoreBase(TokenStorePort):
    """Shared expiry evaluation; subclasses provide raw record access."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self.clock = clock

    def _read(self) -> Dict[str, Any]:
        raise NotImplementedError

    def _write(self, record: Optional[Dict[str, Any]]) -> None:
        raise NotImplementedError

    def save(self, token: str, expires_at: datetime) -> None:
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        self._write({"token": token, "expiration": expires_at.isoformat()})

    def clear(self) -> None:
        self._write(None)

    def token(self) -> Optional[str]:
        value = self._read().get("token")
        return value if isinstance(value, str) and value else None

    def load(self) -> SessionToken:
        """Return the stored credential; a lapsed expiration becomes ``EXPIRED``.

        Raises:
            CredentialError: A token is stored with a missing or unparsable expiration.
        """
        record = self._read()
        token = record.get("token")
        if not token:
            return SessionToken.none()
        if not isinstance(token, str):
            raise CredentialError("Stored token is not a string.")
        raw_expiry = record.get("expiration")
        if not isinstance(raw_expiry, str):
            raise CredentialError("Stored token has no expiration.")
        try:
            expires_at = datetime.fromisoformat(raw_expiry)
        except ValueError as exc:
            raise CredentialError(f"Unparsable expiration {raw_expiry!r}") from exc
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if expires_at <= self.clock():
            return SessionToken(value=token, expires_at=EXPIRED)
        return SessionToken(value=token, expires_at=expires_at)


class TokenStoreMemory(_TokenStoreBase):
    """In-process credential store (tests, headless runs)."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        super().__init__(clock)
        self._record: Dict[str, Any] = {}

    def _read(self) -> Dict[str, Any]:
        return dict(self._record)

    def _write(self, record: Optional[Dict[str, Any]]) -> None:
        self._record = dict(record or {})


class TokenStoreLocal(_TokenStoreBase):
    """Local filesystem credential store (``session.json`` under ``root_dir``)."""

    FILENAME = "session.json"

    def __init__(self, root_dir: str = ".", clock: Callable[[], datetime] = utc_now) -> None:
        super().__init__(clock)
        self.root = root_dir

    @property
    def path(self) -> str:
        return os.path.join(self.root, self.FILENAME)

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError as exc:
            raise CredentialError(f"Corrupt session file: {exc}") from exc
        if not isinstance(data, dict):
            raise CredentialError("Session file must contain an object.")
        return data

    def _write(self, record: Optional[Dict[str, Any]]) -> None:
        if record is None:
            if os.path.exists(self.path):
                os.remove(self.path)
            return
        os.makedirs(self.root, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(record, f, ensure_ascii=False, indent=2)


__all__ = ["TokenStoreLocal", "TokenStoreMemory"]
