"""Tests for the domain registry."""

import pytest

from shared.errors import NameCollisionError
from shared.models import DomainDiscoveryResult, DomainModule, DomainRegistryEntry


def _valid(name: str) -> DomainDiscoveryResult:
    return DomainDiscoveryResult(name=name, path=f"fake.{name}", is_valid=True)


class TestBuildRegistry:
    """Tests for build_registry."""

    def setup_method(self):
        """Set up test fixtures."""
        self.loaded: list[str] = []

    def loader(self, result):
        self.loaded.append(result.name)
        if result.name == "broken":
            raise RuntimeError("module not found")
        return DomainModule()

    def test_valid_results_are_loaded(self):
        """Test that valid results become loaded entries."""
        from domains.registry import build_registry

        registry = build_registry([_valid("projects"), _valid("tasks")], self.loader)

        assert registry.names() == ["projects", "tasks"]
        assert all(e.loaded and e.error is None for e in registry)

    def test_invalid_result_is_not_loaded(self):
        """Test that invalid results are recorded without a load attempt."""
        from domains.registry import build_registry

        invalid = DomainDiscoveryResult(name="ghost", path="fake.ghost", error="Cannot import")
        registry = build_registry([invalid, _valid("tasks")], self.loader)

        ghost = registry.get("ghost")
        assert not ghost.loaded
        assert ghost.error == "Cannot import"
        assert self.loaded == ["tasks"]

    def test_invalid_result_without_error_gets_one(self):
        """Test that a failed entry always carries error text."""
        from domains.registry import build_registry

        registry = build_registry([DomainDiscoveryResult(name="ghost", path="fake.ghost")], self.loader)

        assert registry.get("ghost").error

    def test_load_failure_is_isolated(self):
        """Test that a loader exception only fails its own domain."""
        from domains.registry import build_registry

        registry = build_registry(
            [_valid("a"), _valid("broken"), _valid("c")],
            self.loader
        )

        assert [e.loaded for e in registry] == [True, False, True]
        assert registry.get("broken").error == "module not found"
        assert registry.get("broken").module == DomainModule()

    def test_duplicate_name_fails_before_loading(self):
        """Test that a duplicate name aborts the build before any load."""
        from domains.registry import build_registry

        first = DomainDiscoveryResult(name="tasks", path="pkg_a.tasks", is_valid=True)
        second = DomainDiscoveryResult(name="tasks", path="pkg_b.tasks", is_valid=True)

        with pytest.raises(NameCollisionError) as exc_info:
            build_registry([_valid("alpha"), first, second], self.loader)

        assert exc_info.value.identifier == "tasks"
        assert exc_info.value.domains == ("pkg_a.tasks", "pkg_b.tasks")
        assert self.loaded == []

    def test_status(self):
        """Test registry status counts and entries."""
        from domains.registry import build_registry

        registry = build_registry([_valid("broken"), _valid("tasks")], self.loader)
        status = registry.status()

        assert status["discovered"] == 2
        assert status["loaded"] == 1
        assert status["failed"] == 1
        assert status["entries"][0] == {
            "name": "broken",
            "path": "fake.broken",
            "loaded": False,
            "error": "module not found",
        }


class TestDomainRegistry:
    """Tests for DomainRegistry itself."""

    def test_rejects_duplicate_entries(self):
        """Test that duplicate entry names are a NameCollisionError."""
        from domains.registry import DomainRegistry

        entries = [
            DomainRegistryEntry(name="tasks", path="a.tasks", loaded=True),
            DomainRegistryEntry(name="tasks", path="b.tasks", loaded=True),
        ]

        with pytest.raises(NameCollisionError, match="claimed by both 'a.tasks' and 'b.tasks'"):
            DomainRegistry(entries)

    def test_is_immutable(self):
        """Test that the registry exposes no way to change its entries."""
        from domains.registry import DomainRegistry

        registry = DomainRegistry([DomainRegistryEntry(name="tasks", path="a.tasks", loaded=True)])

        assert isinstance(registry.entries, tuple)
        with pytest.raises(TypeError):
            registry._by_name["other"] = None
        with pytest.raises(Exception):
            registry.get("tasks").loaded = False

    def test_lookup(self):
        """Test membership, length and lookup."""
        from domains.registry import DomainRegistry

        registry = DomainRegistry([
            DomainRegistryEntry(name="tasks", path="a.tasks", loaded=True),
            DomainRegistryEntry(name="broken", path="a.broken", error="boom"),
        ])

        assert len(registry) == 2
        assert "tasks" in registry
        assert "missing" not in registry
        assert registry.get("missing") is None
        assert [e.name for e in registry.loaded()] == ["tasks"]
        assert [e.name for e in registry.failed()] == ["broken"]
