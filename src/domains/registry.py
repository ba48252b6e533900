"""Domain Registry.

Holds one entry per discovered domain (loaded or failed) and is built
once per process. The registry is immutable: rebuilding after a new
discovery produces a new DomainRegistry instead of mutating this one.
"""

from types import MappingProxyType
from typing import Any, Callable, Iterable, Iterator, Optional

from shared.errors import NameCollisionError
from shared.logging import get_logger
from shared.models import DomainDiscoveryResult, DomainModule, DomainRegistryEntry
from domains.discovery import describe_error

logger = get_logger(__name__)


DomainLoaderFn = Callable[[DomainDiscoveryResult], DomainModule]


class DomainRegistry:
    """
    Read-only collection of domain entries in deterministic order.

    Safe for concurrent readers once built; nothing mutates it.
    """

    def __init__(self, entries: Iterable[DomainRegistryEntry], discovered: Optional[int] = None) -> None:
        self._entries: tuple[DomainRegistryEntry, ...] = tuple(entries)
        by_name: dict[str, DomainRegistryEntry] = {}
        for entry in self._entries:
            if entry.name in by_name:
                raise NameCollisionError(entry.name, by_name[entry.name].path, entry.path)
            by_name[entry.name] = entry
        self._by_name = MappingProxyType(by_name)
        self._discovered = len(self._entries) if discovered is None else discovered

    def __iter__(self) -> Iterator[DomainRegistryEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def entries(self) -> tuple[DomainRegistryEntry, ...]:
        return self._entries

    def get(self, name: str) -> Optional[DomainRegistryEntry]:
        """Get an entry by domain name."""
        return self._by_name.get(name)

    def names(self) -> list[str]:
        return [e.name for e in self._entries]

    def loaded(self) -> list[DomainRegistryEntry]:
        """Entries eligible for composition."""
        return [e for e in self._entries if e.loaded]

    def failed(self) -> list[DomainRegistryEntry]:
        return [e for e in self._entries if not e.loaded]

    def status(self) -> dict[str, Any]:
        """Registry health: discovered, loaded and failed counts plus entries."""
        return {
            "discovered": self._discovered,
            "loaded": len(self.loaded()),
            "failed": len(self.failed()),
            "entries": [
                {
                    "name": e.name,
                    "path": e.path,
                    "loaded": e.loaded,
                    "error": e.error,
                }
                for e in self._entries
            ],
        }


def build_registry(
    results: Iterable[DomainDiscoveryResult],
    loader: DomainLoaderFn
) -> DomainRegistry:
    """
    Build a registry from discovery results.

    Valid results are loaded with ``loader``; a failure while loading one
    domain is recorded on that domain's entry only. Invalid results are
    recorded as failed without a load attempt.

    Raises:
        NameCollisionError: If two results share a name. Checked before
            any domain is loaded.
    """
    results = list(results)

    seen: dict[str, str] = {}
    for result in results:
        if result.name in seen:
            raise NameCollisionError(result.name, seen[result.name], result.path)
        seen[result.name] = result.path

    entries: list[DomainRegistryEntry] = []
    for result in results:
        if not result.is_valid:
            entries.append(DomainRegistryEntry(
                name=result.name,
                path=result.path,
                loaded=False,
                error=result.error or "Domain is not valid"
            ))
            continue

        try:
            module = loader(result)
        except Exception as e:
            error = describe_error(e)
            logger.error("Failed to load domain", domain=result.name, error=error)
            entries.append(DomainRegistryEntry(
                name=result.name,
                path=result.path,
                loaded=False,
                error=error
            ))
            continue

        entries.append(DomainRegistryEntry(
            name=result.name,
            path=result.path,
            module=module,
            loaded=True
        ))
        logger.info("Domain loaded", domain=result.name)

    registry = DomainRegistry(entries, discovered=len(results))
    logger.info(
        "Domain registry built",
        loaded=len(registry.loaded()),
        failed=len(registry.failed())
    )
    return registry
