"""Tests for the Lokalise API client."""

import httpx
import pytest

from lokalise_client import (
    LokaliseAuthError,
    LokaliseClient,
    LokaliseClientError,
    LokaliseConnectionError,
    LokaliseNotFoundError,
    LokaliseRateLimitError,
    get_client,
    reset_clients,
)
from shared.config import LokaliseSettings


def make_client(handler, **kwargs) -> LokaliseClient:
    return LokaliseClient(
        api_key="secret",
        transport=httpx.MockTransport(handler),
        **{"max_retries": 1, **kwargs}
    )


class TestLokaliseClient:
    """Tests for LokaliseClient."""

    @pytest.mark.asyncio
    async def test_get_sends_token_and_drops_empty_params(self):
        """Test auth header, base URL and query handling."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"projects": []})

        client = make_client(handler)
        body = await client.get("projects", params={"limit": 10, "page": None})
        await client.close()

        assert body == {"projects": []}
        request = seen[0]
        assert request.headers["X-Api-Token"] == "secret"
        assert str(request.url) == "https://api.lokalise.com/api2/projects?limit=10"

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        """Test that requests without a token fail before any I/O."""
        client = LokaliseClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))

        with pytest.raises(LokaliseAuthError, match="LOKALISE_API_KEY"):
            await client.get("projects")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code,error_type", [
        (401, LokaliseAuthError),
        (404, LokaliseNotFoundError),
        (429, LokaliseRateLimitError),
        (500, LokaliseClientError),
    ])
    async def test_status_mapping(self, status_code, error_type):
        """Test that error statuses map to exception types with the API message."""
        client = make_client(
            lambda r: httpx.Response(status_code, json={"error": {"message": "nope", "code": status_code}})
        )

        with pytest.raises(error_type, match="nope") as exc_info:
            await client.get("projects/p1")

        assert exc_info.value.status_code == status_code

    @pytest.mark.asyncio
    async def test_retries_rate_limit(self):
        """Test that a rate-limited request is retried."""
        responses = [httpx.Response(429, json={}), httpx.Response(200, json={"ok": True})]
        client = make_client(lambda r: responses.pop(0), max_retries=2)

        assert await client.get("projects") == {"ok": True}
        assert responses == []

    @pytest.mark.asyncio
    async def test_connection_error(self):
        """Test that transport failures become LokaliseConnectionError."""
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler)

        with pytest.raises(LokaliseConnectionError) as exc_info:
            await client.get("projects")

        assert exc_info.value.code == "NETWORK_ERROR"

    @pytest.mark.asyncio
    async def test_empty_body(self):
        """Test that an empty response body decodes to an empty dict."""
        client = make_client(lambda r: httpx.Response(200))

        assert await client.delete("projects/p1/tasks/7") == {}


class TestGetClient:
    """Tests for the keyed client factory."""

    def teardown_method(self):
        """Tear down test fixtures."""
        reset_clients()

    def test_same_settings_same_client(self):
        """Test that one client is built per API key and host."""
        settings = LokaliseSettings(api_key="a")

        assert get_client(settings) is get_client(LokaliseSettings(api_key="a"))
        assert get_client(settings) is not get_client(LokaliseSettings(api_key="b"))

    def test_reset(self):
        """Test that reset_clients forgets cached clients."""
        settings = LokaliseSettings(api_key="a")
        first = get_client(settings)

        reset_clients()

        assert get_client(settings) is not first
