"""Capability contracts for domain modules.

A domain may implement any of three capabilities:
- ToolProvider: register_tools(host) against the protocol server
- CommandProvider: register(program) against the CLI program
- ResourceProvider: register_resources(host) against the resource browser

Each provider may also expose get_meta() -> DomainMeta. The base classes
below do not define get_meta, so a provider only "has" metadata when it
implements it. Composition checks the registration operations
structurally, so duck-typed providers work as well.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Protocol

import click
from pydantic import BaseModel, ConfigDict

from lokalise_client import LokaliseClientError
from shared.models import DomainMeta

if TYPE_CHECKING:
    from lokalise_client import LokaliseClient
    from shared.config import Settings


class ToolHost(Protocol):
    """Registration surface of the protocol server."""

    def register_tool(
        self,
        name: str,
        handler: Callable[..., Any],
        *,
        description: str = "",
        input_schema: Optional[dict[str, Any]] = None,
        domain: str = ...
    ) -> Any: ...

    def owner_of(self, name: str) -> Optional[str]: ...


class CommandHost(Protocol):
    """Registration surface of the CLI program."""

    def register_command(self, command: "click.Command", *, domain: str = ...) -> Any: ...

    def owner_of(self, name: str) -> Optional[str]: ...


class ResourceHost(Protocol):
    """Registration surface of the resource browser."""

    def register_resource(
        self,
        name: str,
        uri_template: str,
        handler: Callable[..., Any],
        *,
        description: str = "",
        mime_type: str = "text/markdown",
        domain: str = ...
    ) -> Any: ...

    def owner_of(self, name: str) -> Optional[str]: ...


class DomainContext:
    """
    Dependencies handed to every provider factory.

    The API client is built once at startup and shared; domains never
    look it up through global state.
    """

    def __init__(self, client: "LokaliseClient", settings: Optional["Settings"] = None) -> None:
        self.client = client
        self.settings = settings


class ToolProvider(ABC):
    """Contributes tools to the protocol server."""

    def __init__(self, context: DomainContext) -> None:
        self.context = context

    @abstractmethod
    def register_tools(self, host: ToolHost) -> None:
        """Register all tools of this domain with the host."""


class CommandProvider(ABC):
    """Contributes commands to the CLI program."""

    def __init__(self, context: DomainContext) -> None:
        self.context = context

    @abstractmethod
    def register(self, program: CommandHost) -> None:
        """Register all CLI commands of this domain with the program."""

    def run(self, operation: Awaitable[str]) -> None:
        """
        Run an async domain operation from a click command and print its output.

        The API client is closed inside the same event loop, since every
        command invocation gets a fresh loop.
        """
        async def run_and_close() -> str:
            try:
                return await operation
            finally:
                await self.context.client.close()

        try:
            click.echo(asyncio.run(run_and_close()))
        except LokaliseClientError as e:
            raise click.ClickException(str(e))


class ResourceProvider(ABC):
    """Contributes browsable resources to the resource host."""

    def __init__(self, context: DomainContext) -> None:
        self.context = context

    @abstractmethod
    def register_resources(self, host: ResourceHost) -> None:
        """Register all resources of this domain with the host."""


ProviderFactory = Callable[[DomainContext], Any]


class DomainDescriptor(BaseModel):
    """
    What a domain package exports as ``DOMAIN``.

    Each capability is an optional factory (usually the provider class)
    called with the DomainContext when the domain is loaded.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    description: str = ""
    version: str = "1.0.0"
    tool: Optional[ProviderFactory] = None
    cli: Optional[ProviderFactory] = None
    resource: Optional[ProviderFactory] = None

    @property
    def meta(self) -> DomainMeta:
        return DomainMeta(
            name=self.name,
            description=self.description,
            version=self.version
        )
