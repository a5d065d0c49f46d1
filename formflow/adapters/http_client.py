"""Shared HTTP transport utilities for REST action handlers.

This module provides a thin wrapper around ``requests.Session`` so handler
implementations share timeout policy, retry behavior, and bearer-token
header construction.

Dependencies:
    - ``requests`` for network I/O.
    - ``formflow.adapters.api_errors.ApiTimeoutError`` for typed transport failures.

Call context:
    - Constructed by ``formflow/adapters/auth_rest.py`` and
      ``formflow/adapters/events_rest.py``.
    - Used only inside adapter methods; the dispatch core never sees it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests
from requests import exceptions as req_exc

from formflow.adapters.api_errors import ApiError, ApiTimeoutError

TokenProvider = Callable[[], Optional[str]]


@dataclass
class HttpConfig:
    """Timeout and retry configuration for handler HTTP calls.

    Attributes:
        request_timeout_s: Timeout in seconds for JSON API calls.
        retries: Number of retry attempts after the initial request.
    """
    request_timeout_s: int = 10
    retries: int = 2


class RetryingSession:
    """Shared requests wrapper with bearer headers and retry loops.

    This class is transport-only. Callers provide endpoint URLs and decide
    how to map non-2xx responses into validation results or errors.
    """

    def __init__(self, cfg: HttpConfig, *, token_provider: Optional[TokenProvider] = None) -> None:
        """Create a retry-enabled session.

        Args:
            cfg: Shared timeout and retry settings.
            token_provider: Callable returning the current session token, or
                ``None``; used for ``Authorization: Bearer`` headers.
        """
        self.session = requests.Session()
        self.cfg = cfg
        self.token_provider = token_provider

    def _headers(self, *, json_body: bool = False, auth: bool = False) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if json_body:
            headers["Content-Type"] = "application/json"
        if auth and self.token_provider is not None:
            token = self.token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    def send(
        self,
        method: str,
        url: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        auth: bool = False,
        timeout: Optional[int] = None,
    ) -> requests.Response:
        """Send a JSON request with retries on timeout/connectivity failures.

        Args:
            method: HTTP verb (``POST``, ``PATCH``, ``DELETE``...).
            url: Absolute endpoint URL.
            json_body: Optional payload serialized to JSON text.
            auth: Attach the bearer token from ``token_provider``.
            timeout: Optional timeout override in seconds.

        Returns:
            ``requests.Response`` from the first attempt that reached the server.

        Raises:
            ApiTimeoutError: If all attempts fail with timeout/connection errors.
            ApiError: For other ``requests`` failures.
        """
        context = f"{method} {url}"
        data = None if json_body is None else json.dumps(json_body)
        headers = self._headers(json_body=json_body is not None, auth=auth)
        attempts = self.cfg.retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return self.session.request(
                    method,
                    url,
                    data=data,
                    headers=headers,
                    timeout=timeout or self.cfg.request_timeout_s,
                )
            except (req_exc.Timeout, req_exc.ConnectionError) as exc:
                if attempt >= attempts:
                    raise ApiTimeoutError(f"Timeout contacting {url}", context=context) from exc
            except req_exc.RequestException as exc:
                raise ApiError(str(exc), context=context) from exc
        raise ApiTimeoutError(f"Timeout contacting {url}", context=context)

    def post(self, url: str, *, json_body: Optional[Dict[str, Any]] = None, auth: bool = False) -> requests.Response:
        return self.send("POST", url, json_body=json_body, auth=auth)

    def patch(self, url: str, *, json_body: Optional[Dict[str, Any]] = None, auth: bool = False) -> requests.Response:
        return self.send("PATCH", url, json_body=json_body, auth=auth)


__all__ = ["HttpConfig", "RetryingSession", "TokenProvider"]
