"""Core data models for the Lokalise MCP platform.

This module defines the shared data structures used by the domain
registry, the hosts (tool server, CLI program, resource browser) and
the diagnostics surface.
"""

import re
import uuid
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Owner recorded for registrations made by a host itself rather than a domain
CORE_OWNER = "core"


class CapabilityKind(str, Enum):
    """A role a domain may or may not fulfil."""
    TOOLS = "tools"
    CLI = "cli"
    RESOURCES = "resources"


class ToolDefinition(BaseModel):
    """
    A tool registered with the protocol server.

    Tool names form one flat namespace shared by all domains
    (e.g., lokalise_list_tasks).
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(..., description="Unique tool name")
    domain: str = Field(default=CORE_OWNER, description="Owning domain")
    description: str = Field(default="", description="Clear description for LLM usage")
    input_schema: dict[str, Any] = Field(
        default_factory=dict,
        description="JSON Schema for input validation"
    )
    handler: Callable[..., Any] = Field(..., exclude=True)


class ToolCall(BaseModel):
    """A request to execute a specific tool."""
    tool_name: str = Field(..., description="Tool name")
    parameters: dict[str, Any] = Field(default_factory=dict)
    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))


class ToolResultStatus(str, Enum):
    """Status of tool execution."""
    SUCCESS = "success"
    ERROR = "error"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"


class ToolResult(BaseModel):
    """
    Result of a tool execution.

    Contains the output data, status, and any error information.
    """
    tool_name: str
    status: ToolResultStatus
    data: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    execution_time_ms: float = 0


_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def compile_template(uri_template: str) -> re.Pattern[str]:
    """Turn a URI template into a regex with one named group per placeholder."""
    pattern = ""
    position = 0
    for match in _PLACEHOLDER.finditer(uri_template):
        pattern += re.escape(uri_template[position:match.start()])
        pattern += f"(?P<{match.group(1)}>[^/?#]+)"
        position = match.end()
    pattern += re.escape(uri_template[position:])
    return re.compile(f"^{pattern}$")


def template_key(uri_template: str) -> str:
    """
    Shape of a URI template with placeholder names erased.

    Templates with the same key match the same URIs
    (lokalise://tasks/{projectId} and lokalise://tasks/{id}).
    """
    return _PLACEHOLDER.sub("{}", uri_template)


class ResourceDefinition(BaseModel):
    """A browsable resource addressed by a URI template."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    uri_template: str = Field(..., description="URI template, e.g. lokalise://tasks/{projectId}")
    domain: str = Field(default=CORE_OWNER)
    description: str = ""
    mime_type: str = "text/markdown"
    handler: Callable[..., Any] = Field(..., exclude=True)

    @field_validator("uri_template")
    @classmethod
    def check_template(cls, value: str) -> str:
        try:
            compile_template(value)
        except re.error as e:
            raise ValueError(f"Invalid URI template '{value}': {e}")
        return value


class ResourceContent(BaseModel):
    """Content returned when a resource URI is read."""
    uri: str
    text: str
    mime_type: str = "text/markdown"
    resource: str


class DomainSource(BaseModel):
    """A statically declared domain candidate: name and importable module."""
    model_config = ConfigDict(frozen=True)

    name: str
    module: str


class DomainMeta(BaseModel):
    """Descriptive information about a domain. Never drives registration."""
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    version: str = "1.0.0"
    tools_count: Optional[int] = None
    cli_commands_count: Optional[int] = None
    resources_count: Optional[int] = None


class DomainModule(BaseModel):
    """
    Resolved providers of one domain.

    A module without any provider is valid and simply contributes nothing.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    tool: Optional[Any] = None
    cli: Optional[Any] = None
    resource: Optional[Any] = None
    meta: Optional[DomainMeta] = None

    def provider(self, kind: CapabilityKind) -> Optional[Any]:
        """Return the provider object for a capability kind, if any."""
        if kind is CapabilityKind.TOOLS:
            return self.tool
        if kind is CapabilityKind.CLI:
            return self.cli
        return self.resource

    def providers(self) -> list[Any]:
        """Return all present providers in capability order."""
        return [p for p in (self.tool, self.cli, self.resource) if p is not None]


class DomainDiscoveryResult(BaseModel):
    """Outcome of probing one domain candidate. Consumed once by the registry."""
    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    has_tools: bool = False
    has_cli: bool = False
    has_resources: bool = False
    is_valid: bool = False
    error: Optional[str] = None


class DomainRegistryEntry(BaseModel):
    """
    One domain recorded in the registry.

    loaded=False entries keep an empty module and a populated error;
    they stay visible in diagnostics and are skipped by composition.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    module: DomainModule = Field(default_factory=DomainModule)
    loaded: bool = False
    error: Optional[str] = None


class CompositionResult(BaseModel):
    """One attempted registration of a domain capability with a host."""
    model_config = ConfigDict(frozen=True)

    domain: str
    capability: CapabilityKind
    succeeded: bool
    error: Optional[str] = None
    registered: list[str] = Field(default_factory=list)


class CompositionReport(BaseModel):
    """All registration attempts of one startup, in registration order."""
    domains_loaded: int = 0
    results: list[CompositionResult] = Field(default_factory=list)

    @property
    def failures(self) -> list[CompositionResult]:
        return [r for r in self.results if not r.succeeded]

    @property
    def succeeded(self) -> list[CompositionResult]:
        return [r for r in self.results if r.succeeded]

    def for_domain(self, domain: str) -> list[CompositionResult]:
        """Rows recorded for one domain."""
        return [r for r in self.results if r.domain == domain]

    def registered_count(self, kind: CapabilityKind) -> int:
        """Number of identifiers registered for a capability kind."""
        return sum(
            len(r.registered)
            for r in self.results
            if r.capability is kind and r.succeeded
        )

    def summary(self) -> str:
        """Human-readable startup summary."""
        return (
            f"{self.domains_loaded} domains loaded, "
            f"{self.registered_count(CapabilityKind.TOOLS)} tools registered, "
            f"{self.registered_count(CapabilityKind.CLI)} commands registered, "
            f"{self.registered_count(CapabilityKind.RESOURCES)} resources registered, "
            f"{len(self.failures)} failures"
        )
