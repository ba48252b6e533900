"""End-to-end tests: discovery through composition and diagnostics."""

import click
import pytest

from shared.errors import NameCollisionError
from shared.models import CapabilityKind, DomainSource

from fakes import (
    FakeResolver,
    cli,
    descriptor,
    failing_factory,
    make_context,
    resources,
    tools,
)


class TestStartup:
    """Tests for load_all_domains."""

    def setup_method(self):
        """Set up test fixtures."""
        from mcp_cli.main import CommandRegistry
        from mcp_server.registry import ToolRegistry
        from mcp_server.resources import ResourceRegistry

        self.tools = ToolRegistry()
        self.commands = CommandRegistry(click.Group("test"))
        self.resources = ResourceRegistry()

    def load(self, resolver, sources=None):
        from domains import load_all_domains

        return load_all_domains(
            make_context(),
            tool_host=self.tools,
            command_host=self.commands,
            resource_host=self.resources,
            sources=sources if sources is not None else resolver.sources(),
            resolver=resolver
        )

    def test_broken_loader(self):
        """Test tasks and usergroups loading next to a domain whose module is missing."""
        resolver = FakeResolver({
            "fake.tasks": descriptor(
                "tasks",
                tool=tools("lokalise_list_tasks"),
                cli=cli("list-tasks"),
                resource=resources("lokalise-project-tasks")
            ),
            "fake.usergroups": descriptor(
                "usergroups",
                tool=tools("lokalise_list_usergroups"),
                cli=cli("list-usergroups"),
                resource=resources("lokalise-usergroups")
            ),
            "fake.broken": RuntimeError("module not found"),
        })

        platform = self.load(resolver)
        registry = platform.registry

        assert len(registry) == 3
        assert registry.get("tasks").loaded
        assert registry.get("usergroups").loaded
        broken = registry.get("broken")
        assert broken.loaded is False
        assert broken.error == "module not found"

        assert {"lokalise_list_tasks", "lokalise_list_usergroups"} <= {t.name for t in self.tools.list_tools()}
        assert {"list-tasks", "list-usergroups"} <= set(self.commands.group.commands)
        assert "lokalise-project-tasks" in self.resources
        assert "lokalise-usergroups" in self.resources
        assert platform.report.for_domain("broken") == []

    def test_broken_loader_via_registry(self):
        """Test the same scenario with the loader itself raising."""
        from domains.registry import build_registry
        from shared.models import DomainDiscoveryResult, DomainModule

        def loader(result):
            if result.name == "broken":
                raise RuntimeError("module not found")
            return DomainModule()

        registry = build_registry(
            [
                DomainDiscoveryResult(name=name, path=f"fake.{name}", is_valid=True)
                for name in ("broken", "tasks", "usergroups")
            ],
            loader
        )

        assert len(registry) == 3
        assert registry.get("broken").error == "module not found"
        assert [e.name for e in registry.loaded()] == ["tasks", "usergroups"]

    def test_tools_fail_cli_succeeds(self):
        """Test that a tools failure still leaves the domain's commands registered."""
        resolver = FakeResolver({
            "fake.tasks": descriptor(
                "tasks",
                tool=tools("lokalise_list_tasks", error=RuntimeError("rate limit")),
                cli=cli("list-tasks", "get-task")
            ),
        })

        platform = self.load(resolver)
        rows = {(r.domain, r.capability): r for r in platform.report.results}

        tools_row = rows[("tasks", CapabilityKind.TOOLS)]
        assert tools_row.succeeded is False
        assert tools_row.error == "rate limit"
        cli_row = rows[("tasks", CapabilityKind.CLI)]
        assert cli_row.succeeded is True
        assert cli_row.error is None

        assert "lokalise_list_tasks" not in self.tools
        assert set(self.commands.group.commands) == {"list-tasks", "get-task"}

    @pytest.mark.parametrize("stage", ["discovery", "load", "tools", "cli", "resources"])
    def test_failure_at_any_stage_is_isolated(self, stage):
        """Test that one domain failing at any stage leaves the others complete."""
        def healthy(name):
            return descriptor(
                name,
                tool=tools(f"{name}_tool"),
                cli=cli(f"{name}-command"),
                resource=resources(f"{name}-resource")
            )

        boom = RuntimeError(f"failed at {stage}")
        failing = {
            "discovery": boom,
            "load": descriptor("victim", tool=failing_factory("failed at load")),
            "tools": descriptor("victim", tool=tools("victim_tool", error=boom)),
            "cli": descriptor("victim", cli=cli("victim-command", error=boom)),
            "resources": descriptor("victim", resource=resources("victim-resource", error=boom)),
        }[stage]

        resolver = FakeResolver({
            "fake.alpha": healthy("alpha"),
            "fake.victim": failing,
            "fake.zeta": healthy("zeta"),
        })

        platform = self.load(resolver)

        for name in ("alpha", "zeta"):
            assert platform.registry.get(name).loaded
            assert f"{name}_tool" in self.tools
            assert f"{name}-command" in self.commands.group.commands
            assert f"{name}-resource" in self.resources
            assert all(r.succeeded for r in platform.report.for_domain(name))

        assert platform.inventory().problems
        assert not any(name.startswith("victim") for name in self.commands.group.commands)

    def test_duplicate_domain_names_abort(self):
        """Test that two sources with one domain name abort startup."""
        resolver = FakeResolver({
            "pkg_a.tasks": descriptor("tasks"),
            "pkg_b.tasks": descriptor("tasks"),
        })
        sources = [
            DomainSource(name="tasks", module="pkg_b.tasks"),
            DomainSource(name="tasks", module="pkg_a.tasks"),
        ]

        with pytest.raises(NameCollisionError, match="'pkg_a.tasks' and 'pkg_b.tasks'"):
            self.load(resolver, sources=sources)

    def test_metadata_for_builtin_domains(self):
        """Test metadata of the shipped domains."""
        from domains import DomainContext, load_all_domains
        from fakes import FakeClient

        platform = load_all_domains(
            DomainContext(FakeClient()),
            tool_host=self.tools,
            command_host=self.commands,
            resource_host=self.resources
        )

        metas = {m.name: m for m in platform.metadata()}
        assert list(metas) == ["projects", "tasks", "usergroups"]
        assert metas["tasks"].tools_count == 4
        assert metas["tasks"].cli_commands_count == 4
        assert metas["tasks"].resources_count == 2
        assert platform.report.failures == []
        assert platform.report.summary() == (
            "3 domains loaded, 8 tools registered, 8 commands registered, "
            "6 resources registered, 0 failures"
        )

    def test_explicit_no_timeout_overrides_settings(self):
        """Test that timeout=None disables the configured registration bound."""
        from domains import DomainContext, load_all_domains
        from shared.config import Settings
        from fakes import FakeClient

        settings = Settings(domains={"registration_timeout_seconds": 0.05})
        resolver = FakeResolver({"fake.slow": descriptor("slow", tool=tools("slow_tool", delay=0.2))})

        platform = load_all_domains(
            DomainContext(FakeClient(), settings),
            tool_host=self.tools,
            sources=resolver.sources(),
            resolver=resolver,
            timeout=None
        )

        assert platform.report.failures == []
        assert "slow_tool" in self.tools

    def test_configured_timeout_applies_by_default(self):
        """Test that the configured bound is used when no timeout is passed."""
        from domains import DomainContext, load_all_domains
        from shared.config import Settings
        from fakes import FakeClient

        settings = Settings(domains={"registration_timeout_seconds": 0.05})
        resolver = FakeResolver({"fake.slow": descriptor("slow", tool=tools("slow_tool", delay=0.2))})

        platform = load_all_domains(
            DomainContext(FakeClient(), settings),
            tool_host=self.tools,
            sources=resolver.sources(),
            resolver=resolver
        )

        assert "timed out" in platform.report.failures[0].error
        assert "slow_tool" not in self.tools
