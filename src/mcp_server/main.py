"""MCP Server - FastAPI Application.

Hosts the tools and resources contributed by the Lokalise domains and
exposes the domain diagnostics. Domains are discovered, loaded and
composed once in the lifespan handler, before requests are served.
"""

from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field

from shared.config import get_settings
from shared.logging import get_logger, setup_logging
from shared.models import ToolCall
from domains import DomainContext, DomainPlatform, load_all_domains
from lokalise_client import LokaliseClient, get_client
from mcp_server.registry import ToolRegistry
from mcp_server.resources import ResourceNotFoundError, ResourceRegistry
from mcp_server.router import ToolRouter

logger = get_logger(__name__)

VERSION = "1.0.0"


# Request/Response Models
class ToolCallRequest(BaseModel):
    """Request to execute a tool."""
    tool_name: str = Field(..., description="Tool name")
    parameters: dict[str, Any] = Field(default_factory=dict)
    request_id: Optional[str] = Field(default=None)


class ToolCallResponse(BaseModel):
    """Response from tool execution."""
    tool_name: str
    status: str
    data: Optional[Any] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    execution_time_ms: float = 0


class ToolListResponse(BaseModel):
    """List of available tools."""
    tools: list[dict[str, Any]]
    count: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    domains: list[str]
    tool_count: int
    resource_count: int
    failures: int


# Global instances
_tools: Optional[ToolRegistry] = None
_resources: Optional[ResourceRegistry] = None
_router: Optional[ToolRouter] = None
_platform: Optional[DomainPlatform] = None
_client: Optional[LokaliseClient] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    global _tools, _resources, _router, _platform, _client

    settings = get_settings()
    setup_logging(settings.log_level, json_output=settings.environment == "production")
    logger.info("Starting MCP Server", version=VERSION)

    _client = get_client(settings.lokalise)
    _tools = ToolRegistry()
    _resources = ResourceRegistry()
    _router = ToolRouter(_tools)

    _platform = load_all_domains(
        DomainContext(_client, settings),
        tool_host=_tools,
        resource_host=_resources
    )

    logger.info(
        "MCP Server started",
        domains=_platform.registry.names(),
        summary=_platform.report.summary()
    )

    yield

    logger.info("Shutting down MCP Server")
    await _client.close()


app = FastAPI(
    title="Lokalise MCP Server",
    description="Lokalise tools and resources contributed by domain modules",
    version=VERSION,
    lifespan=lifespan
)


def _require_started() -> tuple[ToolRegistry, ResourceRegistry, ToolRouter, DomainPlatform]:
    if _tools is None or _resources is None or _router is None or _platform is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server not initialized"
        )
    return _tools, _resources, _router, _platform


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Health check endpoint."""
    tools, resources, _, platform = _require_started()
    return HealthResponse(
        status="degraded" if platform.report.failures or platform.registry.failed() else "healthy",
        version=VERSION,
        domains=[e.name for e in platform.registry.loaded()],
        tool_count=len(tools),
        resource_count=len(resources),
        failures=len(platform.report.failures) + len(platform.registry.failed())
    )


@app.get("/tools", response_model=ToolListResponse, tags=["Tools"])
async def list_tools(domain: Optional[str] = None):
    """List all available tools, optionally filtered by domain."""
    tools, _, _, _ = _require_started()
    described = tools.describe_tools(domain)
    return ToolListResponse(tools=described, count=len(described))


@app.get("/tools/{tool_name}", tags=["Tools"])
async def get_tool(tool_name: str):
    """Get details for a specific tool."""
    tools, _, _, _ = _require_started()
    tool = tools.get(tool_name)

    if not tool:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tool '{tool_name}' not found"
        )

    return tool.model_dump()


@app.post("/execute", response_model=ToolCallResponse, tags=["Execution"])
async def execute_tool(request: ToolCallRequest):
    """Execute a tool."""
    _, _, router, _ = _require_started()

    call = ToolCall(tool_name=request.tool_name, parameters=request.parameters)
    if request.request_id:
        call.request_id = request.request_id

    result = await router.execute(call)

    return ToolCallResponse(
        tool_name=result.tool_name,
        status=result.status.value,
        data=result.data,
        error=result.error,
        error_code=result.error_code,
        execution_time_ms=result.execution_time_ms
    )


@app.get("/resources", tags=["Resources"])
async def list_resources(domain: Optional[str] = None):
    """List all browsable resources."""
    _, resources, _, _ = _require_started()
    listed = [r.model_dump() for r in resources.list_resources(domain)]
    return {"resources": listed, "count": len(listed)}


@app.get("/resources/read", tags=["Resources"])
async def read_resource(uri: str):
    """Read a resource by URI."""
    _, resources, _, _ = _require_started()
    try:
        content = await resources.read(uri)
    except ResourceNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return content.model_dump()


@app.get("/domains", tags=["Domains"])
async def list_domains():
    """Domain diagnostics: load state, per-capability outcome and metadata."""
    _, _, _, platform = _require_started()
    inventory = platform.inventory()
    return {**inventory.model_dump(mode="json"), "problems": inventory.problems}


def main():
    """Run the MCP Server."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "mcp_server.main:app",
        host=settings.server.host,
        port=settings.server.port,
    )


if __name__ == "__main__":
    main()
