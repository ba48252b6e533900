"""Lokalise Domains.

Each domain package exports a ``DOMAIN`` descriptor declaring which
capabilities it provides:
- Tools for the protocol server
- Commands for the CLI program
- Resources for the resource browser

Domains are isolated: a domain that fails to import, construct or
register never prevents the others from loading.
"""

from typing import Any, Iterable, Optional

from shared.logging import get_logger
from shared.models import CompositionReport, DomainMeta, DomainSource
from domains.base import DomainContext
from domains.catalog import BUILTIN_DOMAINS
from domains.composer import CapabilityComposer
from domains.discovery import DescriptorResolver, DomainDiscovery, DomainLoader, resolve_descriptor
from domains.metadata import DomainInventory, aggregate, build_inventory
from domains.registry import DomainRegistry, build_registry

logger = get_logger(__name__)


# Default for load_all_domains(timeout=...): take the bound from settings
FROM_SETTINGS: Any = object()


class DomainPlatform:
    """The registry and composition report of one startup. Read-only."""

    def __init__(self, registry: DomainRegistry, report: CompositionReport) -> None:
        self.registry = registry
        self.report = report

    def metadata(self) -> list[DomainMeta]:
        return aggregate(self.registry)

    def inventory(self) -> DomainInventory:
        return build_inventory(self.registry, self.report)


def domain_sources(context: DomainContext) -> list[DomainSource]:
    """Built-in domains filtered and extended by configuration."""
    if context.settings is None:
        return list(BUILTIN_DOMAINS)
    return context.settings.domains.select(list(BUILTIN_DOMAINS))


def load_all_domains(
    context: DomainContext,
    *,
    tool_host: Any = None,
    command_host: Any = None,
    resource_host: Any = None,
    sources: Optional[Iterable[DomainSource]] = None,
    resolver: DescriptorResolver = resolve_descriptor,
    timeout: Optional[float] = FROM_SETTINGS
) -> DomainPlatform:
    """
    Discover, load and compose all domains.

    This is called once at startup by the protocol server and the CLI,
    before either starts handling requests.

    Args:
        timeout: Seconds allowed per registration operation. None
            disables the bound; left out, the configured
            ``domains.registration_timeout_seconds`` applies.

    Raises:
        NameCollisionError: If two domains claim the same name or identifier
    """
    if sources is None:
        sources = domain_sources(context)
    if timeout is FROM_SETTINGS:
        timeout = (
            context.settings.domains.registration_timeout_seconds
            if context.settings is not None else None
        )

    results = DomainDiscovery(sources, resolver=resolver).discover()
    registry = build_registry(results, DomainLoader(context, resolver=resolver))
    report = CapabilityComposer(timeout=timeout).compose(
        registry,
        tool_host=tool_host,
        command_host=command_host,
        resource_host=resource_host
    )
    return DomainPlatform(registry, report)


__all__ = [
    "DomainContext",
    "DomainPlatform",
    "load_all_domains",
]
