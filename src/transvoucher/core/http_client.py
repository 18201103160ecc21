"""
Authenticated HTTP client for the TransVoucher REST API.

Thin wrapper over httpx.AsyncClient that adds credentials and maps HTTP
failures onto the SDK exception hierarchy.
"""

from __future__ import annotations

from typing import Any

import httpx

from transvoucher.core.config import Config
from transvoucher.core.exceptions import (
    ApiError,
    AuthenticationError,
    NetworkError,
    TransVoucherError,
    ValidationError,
)
from transvoucher.core.logging import get_logger

USER_AGENT = "TransVoucher-Python-SDK/0.1.0"

CLIENT_ERROR_STATUSES = frozenset({400, 403, 404, 409, 429})


def error_from_response(response: httpx.Response) -> TransVoucherError:
    """Map a failed API response to the matching SDK exception."""
    status = response.status_code
    try:
        data = response.json()
    except ValueError:
        data = None

    message = None
    if isinstance(data, dict):
        message = data.get("message")
    message = message or response.reason_phrase or "An API error occurred"

    if status == 401:
        return AuthenticationError(message, status_code=status, response=data)
    if status == 422:
        errors = data.get("errors") if isinstance(data, dict) else None
        return ValidationError(message, errors=errors or {}, status_code=status, response=data)
    if status in CLIENT_ERROR_STATUSES:
        return ApiError(message, status_code=status, response=data)
    return TransVoucherError(message, code="API_ERROR", status_code=status, response=data)


class HttpClient:
    """
    Async HTTP client bound to one Config.

    Example:
        >>> http = HttpClient(config)
        >>> data = await http.get("/payment/status/tx_123")
        >>> await http.close()
    """

    def __init__(self, config: Config, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """
        Initialize the client.

        Args:
            config: SDK configuration (credentials, base URL, timeout)
            transport: Optional httpx transport, mainly for tests
        """
        self._config = config
        self._transport = transport
        self._logger = get_logger("http")
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._config.resolved_base_url

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the underlying httpx client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self._config.timeout,
                transport=self._transport,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    "X-API-Key": self._config.api_key,
                    "X-API-Secret": self._config.api_secret,
                    "User-Agent": USER_AGENT,
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        timeout: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Raises:
            AuthenticationError: On HTTP 401
            ValidationError: On HTTP 422
            ApiError: On HTTP 400/403/404/409/429
            TransVoucherError: On any other non-2xx status
            NetworkError: If no response was received
        """
        client = self._get_client()
        self._logger.debug(f"{method} {path}")

        extra: dict[str, Any] = {}
        if timeout is not None:
            extra["timeout"] = timeout
        if headers:
            extra["headers"] = headers

        try:
            response = await client.request(method, path, params=params, json=json, **extra)
        except httpx.TimeoutException as e:
            raise NetworkError("Network error: No response received", url=path) from e
        except httpx.RequestError as e:
            raise NetworkError(f"Request error: {e}", url=path) from e

        if response.is_error:
            error = error_from_response(response)
            self._logger.warning(f"{method} {path} failed with HTTP {response.status_code}")
            raise error

        try:
            return response.json()
        except ValueError as e:
            raise TransVoucherError(
                "Invalid JSON in API response",
                code="API_ERROR",
                status_code=response.status_code,
            ) from e

    async def get(self, path: str, params: dict[str, Any] | None = None, **options: Any) -> Any:
        return await self.request("GET", path, params=params, **options)

    async def post(self, path: str, data: Any = None, **options: Any) -> Any:
        return await self.request("POST", path, json=data, **options)
