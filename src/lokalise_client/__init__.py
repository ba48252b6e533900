"""Lokalise API client - the remote collaborator injected into domains."""

from lokalise_client.client import (
    LokaliseAuthError,
    LokaliseClient,
    LokaliseClientError,
    LokaliseConnectionError,
    LokaliseNotFoundError,
    LokaliseRateLimitError,
    get_client,
    reset_clients,
)

__all__ = [
    "LokaliseAuthError",
    "LokaliseClient",
    "LokaliseClientError",
    "LokaliseConnectionError",
    "LokaliseNotFoundError",
    "LokaliseRateLimitError",
    "get_client",
    "reset_clients",
]
