"""Tool Registry for the MCP Server.

The protocol server's tool host. Domains register tools here through the
composer; tool names form one flat namespace across all domains.
"""

from typing import Any, Callable, Optional

from shared.errors import NameCollisionError
from shared.logging import get_logger
from shared.models import CORE_OWNER, CapabilityKind, ToolDefinition
from shared.schema import validate_schema

logger = get_logger(__name__)


class ToolRegistry:
    """
    Central registry for all MCP tools.

    Responsibilities:
    - Register tools from domains
    - Report which domain owns a tool name
    - Lookup tools by name
    - Validate tool input against its schema
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def register_tool(
        self,
        name: str,
        handler: Callable[..., Any],
        *,
        description: str = "",
        input_schema: Optional[dict[str, Any]] = None,
        domain: str = CORE_OWNER
    ) -> ToolDefinition:
        """
        Register a tool.

        Raises:
            NameCollisionError: If the tool name is already registered
        """
        existing = self._tools.get(name)
        if existing is not None:
            raise NameCollisionError(name, existing.domain, domain, CapabilityKind.TOOLS.value)

        tool = ToolDefinition(
            name=name,
            domain=domain,
            description=description,
            input_schema=input_schema or {},
            handler=handler
        )
        self._tools[name] = tool

        logger.debug("Tool registered", tool=name, domain=domain)
        return tool

    def unregister_tool(self, name: str) -> None:
        """Remove a tool; unknown names are ignored."""
        self._tools.pop(name, None)

    def owner_of(self, name: str) -> Optional[str]:
        """Domain that registered a tool name, or None."""
        tool = self._tools.get(name)
        return tool.domain if tool else None

    def get(self, tool_name: str) -> Optional[ToolDefinition]:
        """Get a tool by name."""
        return self._tools.get(tool_name)

    def list_tools(self, domain: Optional[str] = None) -> list[ToolDefinition]:
        """List registered tools in registration order, optionally filtered by domain."""
        tools = list(self._tools.values())
        if domain:
            tools = [t for t in tools if t.domain == domain]
        return tools

    def list_domains(self) -> list[str]:
        """List all domains that registered at least one tool."""
        return sorted({t.domain for t in self._tools.values()})

    def validate_input(
        self,
        tool_name: str,
        parameters: dict[str, Any]
    ) -> tuple[bool, list[str]]:
        """
        Validate input parameters against a tool's input schema.

        Returns:
            Tuple of (is_valid, list of error messages)
        """
        tool = self.get(tool_name)
        if not tool:
            return False, [f"Tool '{tool_name}' not found"]

        return validate_schema(parameters, tool.input_schema)

    def describe_tools(self, domain: Optional[str] = None) -> list[dict[str, Any]]:
        """Tool listing in MCP ``tools/list`` format."""
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "inputSchema": tool.input_schema or {
                    "type": "object",
                    "properties": {},
                },
            }
            for tool in self.list_tools(domain)
        ]

    def get_tool_count(self) -> dict[str, int]:
        """Get count of tools per domain."""
        counts: dict[str, int] = {}
        for tool in self._tools.values():
            counts[tool.domain] = counts.get(tool.domain, 0) + 1
        return counts
