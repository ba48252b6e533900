"""Async client for the Lokalise REST API.

Provides a thin request layer used by the domain services.
Handles authentication, retries and error classification.
"""

from typing import Any, Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from shared.config import LokaliseSettings
from shared.logging import get_logger

logger = get_logger(__name__)


class LokaliseClientError(Exception):
    """Base exception for Lokalise API errors."""

    code = "API_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LokaliseConnectionError(LokaliseClientError):
    """Connection to the Lokalise API failed."""
    code = "NETWORK_ERROR"


class LokaliseAuthError(LokaliseClientError):
    """Authentication failed or the API token is missing."""
    code = "AUTH_INVALID"


class LokaliseNotFoundError(LokaliseClientError):
    """The requested object does not exist."""
    code = "NOT_FOUND"


class LokaliseRateLimitError(LokaliseClientError):
    """The API rate limit was exceeded."""
    code = "RATE_LIMIT_EXCEEDED"


class LokaliseClient:
    """
    Client for the Lokalise API.

    The underlying HTTP client is created lazily on first request, so
    constructing a LokaliseClient never touches the network and never
    requires an API token.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.lokalise.com/api2/",
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: Lokalise API token
            base_url: API base URL
            timeout: Request timeout in seconds
            max_retries: Attempts for retryable failures
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self.max_retries = max_retries
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_headers(self) -> dict[str, str]:
        """Get request headers including authentication."""
        if not self.api_key:
            raise LokaliseAuthError(
                "LOKALISE_API_KEY is required but not found in configuration",
                status_code=401
            )
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "X-Api-Token": self.api_key,
        }

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._get_headers(),
                transport=self._transport
            )
            logger.info("Lokalise API client initialized", host=self.base_url)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "LokaliseClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Send a request, retrying connection failures and rate limits.

        Args:
            method: HTTP method
            path: Path relative to the API base URL
            params: Query parameters (None values are dropped)
            json: JSON body

        Returns:
            Decoded JSON response

        Raises:
            LokaliseClientError: On any API failure
        """
        attempt = retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=10),
            retry=retry_if_exception_type(
                (LokaliseConnectionError, LokaliseRateLimitError)
            ),
            reraise=True
        )
        return await attempt(self._send)(method, path, params, json)

    async def _send(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]],
        json: Optional[dict[str, Any]]
    ) -> dict[str, Any]:
        client = self._get_client()
        query = {k: v for k, v in (params or {}).items() if v is not None}

        logger.debug("Lokalise request", method=method, path=path)

        try:
            response = await client.request(
                method, path.lstrip("/"), params=query or None, json=json
            )
        except httpx.TransportError as e:
            raise LokaliseConnectionError(f"Cannot connect to Lokalise API: {e}")

        if response.status_code in (401, 403):
            raise LokaliseAuthError(_error_message(response), response.status_code)
        if response.status_code == 404:
            raise LokaliseNotFoundError(_error_message(response), 404)
        if response.status_code == 429:
            raise LokaliseRateLimitError(_error_message(response), 429)
        if response.status_code >= 400:
            raise LokaliseClientError(_error_message(response), response.status_code)

        if not response.content:
            return {}
        return response.json()

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> dict[str, Any]:
        return await self.request("DELETE", path)


def _error_message(response: httpx.Response) -> str:
    """Extract the API's error message from a failed response."""
    try:
        body = response.json()
    except ValueError:
        return f"Lokalise API returned {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"Lokalise API returned {response.status_code}"


# Clients keyed by (api_key, base_url)
_clients: dict[tuple[Optional[str], str], LokaliseClient] = {}


def get_client(settings: LokaliseSettings) -> LokaliseClient:
    """
    Get or create the client for the given settings.

    Called once at startup; the returned client is injected into domains.
    """
    key = (settings.api_key, settings.api_hostname)
    if key not in _clients:
        _clients[key] = LokaliseClient(
            api_key=settings.api_key,
            base_url=settings.api_hostname,
            timeout=settings.timeout_seconds,
            max_retries=settings.max_retries
        )
    return _clients[key]


def reset_clients() -> None:
    """Forget cached clients so the next get_client() builds a fresh one."""
    if _clients:
        logger.info("Resetting Lokalise API clients", count=len(_clients))
    _clients.clear()
