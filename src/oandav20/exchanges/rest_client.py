"""
HTTP layer for the OANDA adapter.

``request_auth_json`` is the single authenticated primitive: it records the
call on the rate limiter, serialises the body, sends the bearer-token
request and decodes whatever JSON comes back, including error payloads on
non-2xx responses. ``get_public_json`` is the unauthenticated GET used for
depth and candle endpoints.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests

from oandav20.core.errors import ProtocolError, TransportError
from oandav20.exchanges.rate_limiter import RateLimiter

_REQUEST_TIMEOUT = 10

logger = logging.getLogger(__name__)


@dataclass
class ApiResponse:
    status_code: int
    data: Any

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class RestClient:
    """
    Parameters
    ----------
    host : str
        Base URL, e.g. ``https://api-fxtrade.oanda.com``.
    secret_key : str
        Bearer token sent on authenticated calls.
    rate_limiter : RateLimiter
        Receives one ``record_call()`` per authenticated request.
    session : requests.Session, optional
        Injected session (useful for testing).
    timeout : float
        Per-request timeout in seconds.
    """

    def __init__(
        self,
        host: str,
        secret_key: str,
        rate_limiter: RateLimiter,
        session: Optional[requests.Session] = None,
        timeout: float = _REQUEST_TIMEOUT,
    ) -> None:
        self._host = host.rstrip("/")
        self._secret_key = secret_key
        self._rate_limiter = rate_limiter
        self._session = session or requests.Session()
        self._timeout = timeout

    def request_auth_json(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[dict] = None,
    ) -> ApiResponse:
        """Send an authenticated request and decode its JSON body."""
        self._rate_limiter.record_call()
        tag = f"[{method} {path}]"

        data = None
        if body is not None:
            try:
                data = json.dumps(body)
            except (TypeError, ValueError) as exc:
                raise TransportError(f"{tag} HTTP Error Info: {exc}") from exc

        headers = {
            "Content-Type": "application/json",
            "Authorization": "Bearer " + self._secret_key,
        }
        logger.debug("%s params=%s", tag, params)
        try:
            response = self._session.request(
                method,
                self._host + path,
                params=params,
                data=data,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{tag} HTTP Error Info: {exc}") from exc

        return ApiResponse(response.status_code, self._decode(tag, response))

    def get_public_json(self, path: str, params: Optional[dict] = None) -> Any:
        """Unauthenticated GET; does not count against the rate limiter."""
        tag = f"[GET {path}]"
        logger.debug("%s params=%s", tag, params)
        try:
            response = self._session.get(
                self._host + path,
                params=params,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{tag} HTTP Error Info: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise ProtocolError(
                f"{tag} HTTP status {response.status_code}",
                status_code=response.status_code,
            )
        return self._decode(tag, response)

    @staticmethod
    def _decode(tag: str, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ProtocolError(
                f"{tag} invalid JSON response: {exc}",
                status_code=response.status_code,
            ) from exc
