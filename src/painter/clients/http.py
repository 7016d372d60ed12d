"""Shared httpx plumbing for provider clients.

Translates transport failures and HTTP status codes into the project's
exception hierarchy so every provider reports errors the same way.
"""

import time
from typing import Any

import httpx

from painter.exceptions import (
    AuthenticationError,
    ExternalApiError,
    NetworkError,
    OperationTimeoutError,
    RateLimitError,
)
from painter.logging import get_logger

logger = get_logger(__name__)


class ProviderHttpClient:
    """Base class for JSON-over-HTTP provider clients.

    Owns an httpx.AsyncClient unless one is injected (tests pass a client
    built on httpx.MockTransport).

    Args:
        provider: Name used in errors and log events.
        timeout_seconds: Per-request timeout.
        http_client: Optional pre-built client; not closed by close().
    """

    def __init__(
        self,
        provider: str,
        timeout_seconds: float,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._provider = provider
        self._timeout = timeout_seconds
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def request_json(
        self, method: str, url: str, timeout: float | None = None, **kwargs: Any
    ) -> Any:
        """Send a request and decode the JSON body.

        timeout overrides the client-wide timeout for this call only.

        Raises:
            OperationTimeoutError: request exceeded the timeout.
            NetworkError: provider unreachable.
            RateLimitError / AuthenticationError / ExternalApiError: HTTP error status.
            ExternalApiError: body is not JSON.
        """
        timeout = timeout or self._timeout
        started = time.monotonic()
        try:
            response = await self._client.request(method, url, timeout=timeout, **kwargs)
        except httpx.TimeoutException as e:
            elapsed = time.monotonic() - started
            logger.warning(
                "provider_timeout",
                provider=self._provider,
                url=url,
                elapsed_seconds=round(elapsed, 2),
            )
            raise OperationTimeoutError(
                f"{self._provider} request timed out after {timeout}s",
                provider=self._provider,
                timeout_seconds=timeout,
                elapsed_seconds=elapsed,
            ) from e
        except httpx.TransportError as e:
            logger.warning("provider_network_error", provider=self._provider, url=url, error=str(e))
            raise NetworkError(
                f"{self._provider} unreachable: {e}", provider=self._provider
            ) from e

        status = response.status_code
        if status >= 400:
            body = response.text[:500]
            logger.warning(
                "provider_http_error",
                provider=self._provider,
                url=url,
                status=status,
                body=body,
            )
            message = f"{self._provider} API error: {status} - {body}"
            if status == 429:
                raise RateLimitError(message, provider=self._provider, status=status)
            if status in (401, 403):
                raise AuthenticationError(message, provider=self._provider, status=status)
            raise ExternalApiError(message, provider=self._provider, status=status)

        try:
            return response.json()
        except ValueError as e:
            raise ExternalApiError(
                f"{self._provider} returned a non-JSON body",
                provider=self._provider,
                status=status,
            ) from e
