"""Tests for MCP Server components."""

import pytest

from shared.errors import NameCollisionError
from shared.models import ToolCall, ToolResultStatus
from shared.schema import build_input_schema


class TestToolRegistry:
    """Tests for the ToolRegistry."""

    def test_register_tool(self):
        """Test registering a tool."""
        from mcp_server.registry import ToolRegistry

        registry = ToolRegistry()
        registry.register_tool("test_action", lambda: "ok", description="A test tool", domain="test")

        assert registry.get("test_action") is not None
        assert registry.owner_of("test_action") == "test"
        assert "test" in registry.list_domains()

    def test_register_duplicate_tool_raises(self):
        """Test that registering a duplicate tool names both owners."""
        from mcp_server.registry import ToolRegistry

        registry = ToolRegistry()
        registry.register_tool("test_action", lambda: "ok", domain="first")

        with pytest.raises(NameCollisionError, match="'first' and 'second'"):
            registry.register_tool("test_action", lambda: "ok", domain="second")

        assert registry.owner_of("test_action") == "first"

    def test_list_tools_by_domain(self):
        """Test listing tools filtered by domain."""
        from mcp_server.registry import ToolRegistry

        registry = ToolRegistry()
        registry.register_tool("action1", lambda: 1, domain="domain1")
        registry.register_tool("action2", lambda: 2, domain="domain1")
        registry.register_tool("action3", lambda: 3, domain="domain2")

        assert len(registry.list_tools(domain="domain1")) == 2
        assert len(registry.list_tools(domain="domain2")) == 1
        assert registry.get_tool_count() == {"domain1": 2, "domain2": 1}

    def test_validate_input(self):
        """Test input validation against schema."""
        from mcp_server.registry import ToolRegistry

        registry = ToolRegistry()
        registry.register_tool(
            "test_action",
            lambda **kwargs: kwargs,
            input_schema=build_input_schema(
                {"name": "projectId", "type": "string", "description": "Project ID"},
                {"name": "limit", "type": "integer", "description": "Page size", "required": False},
            )
        )

        assert registry.validate_input("test_action", {"projectId": "p1"}) == (True, [])

        is_valid, errors = registry.validate_input("test_action", {"limit": "ten"})
        assert not is_valid
        assert len(errors) == 2

        is_valid, errors = registry.validate_input("missing", {})
        assert not is_valid

    def test_describe_tools(self):
        """Test the protocol listing format."""
        from mcp_server.registry import ToolRegistry

        registry = ToolRegistry()
        registry.register_tool("bare", lambda: None, description="No schema")

        assert registry.describe_tools() == [{
            "name": "bare",
            "description": "No schema",
            "inputSchema": {"type": "object", "properties": {}},
        }]


class TestResourceRegistry:
    """Tests for the ResourceRegistry."""

    def setup_method(self):
        """Set up test fixtures."""
        from mcp_server.resources import ResourceRegistry

        self.registry = ResourceRegistry()
        self.registry.register_resource(
            "project-tasks",
            "lokalise://tasks/{projectId}",
            lambda uri, params: f"tasks of {params['projectId']}",
            domain="tasks"
        )

        async def details(uri, params):
            return f"task {params['taskId']} in {params['projectId']}"

        self.registry.register_resource(
            "task-details", "lokalise://tasks/{projectId}/{taskId}", details, domain="tasks"
        )

    def test_match_path_and_query(self):
        """Test that path and query parameters are extracted."""
        resource, params = self.registry.match("lokalise://tasks/p1?page=2&limit=10")

        assert resource.name == "project-tasks"
        assert params == {"projectId": "p1", "page": "2", "limit": "10"}

    def test_match_nested_template(self):
        """Test that a deeper URI matches the deeper template."""
        resource, params = self.registry.match("lokalise://tasks/p1/42")

        assert resource.name == "task-details"
        assert params == {"projectId": "p1", "taskId": "42"}

    def test_no_match(self):
        """Test that unknown URIs raise ResourceNotFoundError."""
        from mcp_server.resources import ResourceNotFoundError

        with pytest.raises(ResourceNotFoundError):
            self.registry.match("lokalise://projects")

    def test_duplicate_name(self):
        """Test that resource names are unique."""
        with pytest.raises(NameCollisionError, match="resources identifier 'task-details'"):
            self.registry.register_resource("task-details", "lokalise://other", lambda uri, params: "")

    def test_duplicate_template(self):
        """Test that a URI template is unique even under another resource name."""
        with pytest.raises(NameCollisionError, match="'tasks' and 'usergroups'"):
            self.registry.register_resource(
                "other-tasks",
                "lokalise://tasks/{projectId}",
                lambda uri, params: "",
                domain="usergroups"
            )

        with pytest.raises(NameCollisionError):
            self.registry.register_resource(
                "renamed-tasks", "lokalise://tasks/{id}", lambda uri, params: ""
            )

        assert "other-tasks" not in self.registry
        assert "renamed-tasks" not in self.registry

    def test_unregister_frees_template(self):
        """Test that an unregistered resource releases its name and template."""
        self.registry.unregister_resource("project-tasks")

        assert self.registry.owner_of("lokalise://tasks/{projectId}") is None
        self.registry.register_resource(
            "project-tasks-v2", "lokalise://tasks/{id}", lambda uri, params: "", domain="tasks"
        )
        assert self.registry.match("lokalise://tasks/p1")[0].name == "project-tasks-v2"

    def test_invalid_template(self):
        """Test that a template repeating a placeholder is rejected."""
        from pydantic import ValidationError

        with pytest.raises(ValidationError, match="Invalid URI template"):
            self.registry.register_resource("bad", "lokalise://x/{id}/{id}", lambda uri, params: "")
        assert "bad" not in self.registry

    @pytest.mark.asyncio
    async def test_read_sync_and_async_handlers(self):
        """Test reading through sync and async handlers."""
        listing = await self.registry.read("lokalise://tasks/p1")
        details = await self.registry.read("lokalise://tasks/p1/42")

        assert listing.text == "tasks of p1"
        assert listing.resource == "project-tasks"
        assert details.text == "task 42 in p1"
        assert details.mime_type == "text/markdown"


class TestToolRouter:
    """Tests for the ToolRouter."""

    def setup_method(self):
        """Set up test fixtures."""
        from mcp_server.registry import ToolRegistry
        from mcp_server.router import ToolRouter

        self.registry = ToolRegistry()
        self.router = ToolRouter(self.registry)
        schema = build_input_schema({"name": "name", "type": "string", "description": "Who"})

        async def greet(**params):
            return f"hello {params['name']}"

        def fail(**params):
            error = RuntimeError("quota exhausted")
            error.code = "RATE_LIMIT_EXCEEDED"
            raise error

        self.registry.register_tool("greet", greet, input_schema=schema)
        self.registry.register_tool("sync_greet", lambda name: f"hi {name}", input_schema=schema)
        self.registry.register_tool("fail", fail)

    @pytest.mark.asyncio
    async def test_execute_async_tool(self):
        """Test executing an async handler."""
        result = await self.router.execute(ToolCall(tool_name="greet", parameters={"name": "Ana"}))

        assert result.status == ToolResultStatus.SUCCESS
        assert result.data == "hello Ana"

    @pytest.mark.asyncio
    async def test_execute_sync_tool(self):
        """Test executing a sync handler."""
        result = await self.router.execute(ToolCall(tool_name="sync_greet", parameters={"name": "Ana"}))

        assert result.data == "hi Ana"

    @pytest.mark.asyncio
    async def test_tool_not_found(self):
        """Test calling an unknown tool."""
        result = await self.router.execute(ToolCall(tool_name="missing"))

        assert result.status == ToolResultStatus.NOT_FOUND
        assert result.error_code == "TOOL_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_validation_error(self):
        """Test that invalid parameters never reach the handler."""
        result = await self.router.execute(ToolCall(tool_name="greet", parameters={}))

        assert result.status == ToolResultStatus.VALIDATION_ERROR
        assert "name" in result.error

    @pytest.mark.asyncio
    async def test_handler_error_code(self):
        """Test that handler exceptions become error results with their code."""
        result = await self.router.execute(ToolCall(tool_name="fail"))

        assert result.status == ToolResultStatus.ERROR
        assert result.error == "quota exhausted"
        assert result.error_code == "RATE_LIMIT_EXCEEDED"


class TestServerApp:
    """Tests for the FastAPI application."""

    def setup_method(self):
        """Set up test fixtures."""
        from lokalise_client import reset_clients
        from shared.config import get_settings

        get_settings.cache_clear()
        reset_clients()

    def teardown_method(self):
        """Tear down test fixtures."""
        from lokalise_client import reset_clients
        from shared.config import get_settings

        get_settings.cache_clear()
        reset_clients()

    @pytest.fixture
    def client(self, monkeypatch):
        from fastapi.testclient import TestClient
        from mcp_server.main import app

        monkeypatch.delenv("LOKALISE_API_KEY", raising=False)
        monkeypatch.setenv("LOKALISE_MCP_CONFIG_PATH", "missing-settings.yaml")

        with TestClient(app) as test_client:
            yield test_client

    def test_health(self, client):
        """Test health once all built-in domains are composed."""
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["domains"] == ["projects", "tasks", "usergroups"]
        assert body["tool_count"] == 8
        assert body["resource_count"] == 6

    def test_list_tools(self, client):
        """Test the tool listing and per-domain filter."""
        response = client.get("/tools", params={"domain": "tasks"})

        names = [t["name"] for t in response.json()["tools"]]
        assert names == [
            "lokalise_list_tasks",
            "lokalise_get_task",
            "lokalise_create_task",
            "lokalise_delete_task",
        ]

    def test_get_unknown_tool(self, client):
        """Test 404 for an unknown tool."""
        assert client.get("/tools/nope").status_code == 404

    def test_domains_diagnostics(self, client):
        """Test the diagnostics endpoint."""
        body = client.get("/domains").json()

        assert body["discovered"] == 3
        assert body["failed"] == 0
        assert body["problems"] == []
        assert {m["name"] for m in body["metadata"]} == {"projects", "tasks", "usergroups"}

    def test_execute_without_api_key(self, client):
        """Test that a missing API token is reported as an auth error."""
        response = client.post(
            "/execute",
            json={"tool_name": "lokalise_get_project", "parameters": {"projectId": "p1"}}
        )

        body = response.json()
        assert body["status"] == "error"
        assert body["error_code"] == "AUTH_INVALID"

    def test_read_unknown_resource(self, client):
        """Test 404 for a URI no resource serves."""
        response = client.get("/resources/read", params={"uri": "lokalise://nothing"})

        assert response.status_code == 404
