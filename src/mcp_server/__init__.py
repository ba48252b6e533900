"""MCP Server - tool and resource hosts for the Lokalise domains.

Domains register tools and resources here through the capability
composer; the router executes tools and the FastAPI app serves them.
"""

from mcp_server.registry import ToolRegistry
from mcp_server.resources import ResourceRegistry
from mcp_server.router import ToolRouter

__all__ = [
    "ToolRegistry",
    "ResourceRegistry",
    "ToolRouter",
]
