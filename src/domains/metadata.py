"""Metadata aggregation and diagnostics for loaded domains.

Metadata is informational only and is recomputed on every call so it
always reflects the registry it is given.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from shared.logging import get_logger
from shared.models import (
    CapabilityKind,
    CompositionReport,
    DomainMeta,
    DomainRegistryEntry,
)
from domains.discovery import describe_error
from domains.registry import DomainRegistry

logger = get_logger(__name__)


COUNT_FIELDS = ("tools_count", "cli_commands_count", "resources_count")


def _provider_meta(domain: str, provider: Any) -> Optional[DomainMeta]:
    get_meta = getattr(provider, "get_meta", None)
    if not callable(get_meta):
        return None
    try:
        meta = get_meta()
        return DomainMeta.model_validate(meta, from_attributes=True)
    except Exception as e:
        logger.warning("Domain metadata unavailable", domain=domain, error=describe_error(e))
        return None


def domain_meta(entry: DomainRegistryEntry) -> Optional[DomainMeta]:
    """
    Merge the metadata of one domain's providers.

    Returns None when no provider implements get_meta.
    """
    metas = [
        meta for meta in (
            _provider_meta(entry.name, p) for p in entry.module.providers()
        )
        if meta is not None
    ]
    if not metas:
        return None

    base = entry.module.meta or metas[0]
    counts: dict[str, int] = {}
    for meta in metas:
        for field in COUNT_FIELDS:
            value = getattr(meta, field)
            if value is not None:
                counts[field] = counts.get(field, 0) + value

    return DomainMeta(
        name=entry.name,
        description=base.description,
        version=base.version,
        **counts
    )


def aggregate(registry: DomainRegistry) -> list[DomainMeta]:
    """Metadata for every loaded domain that exposes get_meta, in registry order."""
    metas = []
    for entry in registry.loaded():
        meta = domain_meta(entry)
        if meta is not None:
            metas.append(meta)
    return metas


class CapabilityStatus(BaseModel):
    """Outcome of one capability of a domain."""
    capability: CapabilityKind
    succeeded: bool
    registered: int = 0
    error: Optional[str] = None


class DomainStatus(BaseModel):
    """Diagnostics row of one domain."""
    name: str
    path: str
    loaded: bool
    error: Optional[str] = None
    capabilities: list[CapabilityStatus] = Field(default_factory=list)


class DomainInventory(BaseModel):
    """What is available at runtime and what failed."""
    discovered: int
    loaded: int
    failed: int
    summary: str
    domains: list[DomainStatus] = Field(default_factory=list)
    metadata: list[DomainMeta] = Field(default_factory=list)

    @property
    def problems(self) -> list[str]:
        """One line per failed domain or capability."""
        lines = []
        for domain in self.domains:
            if not domain.loaded:
                lines.append(f"{domain.name}: {domain.error}")
            for cap in domain.capabilities:
                if not cap.succeeded:
                    lines.append(f"{domain.name} [{cap.capability.value}]: {cap.error}")
        return lines


def build_inventory(registry: DomainRegistry, report: CompositionReport) -> DomainInventory:
    """Combine registry status, composition outcomes and metadata."""
    status = registry.status()
    domains = [
        DomainStatus(
            name=entry.name,
            path=entry.path,
            loaded=entry.loaded,
            error=entry.error,
            capabilities=[
                CapabilityStatus(
                    capability=row.capability,
                    succeeded=row.succeeded,
                    registered=len(row.registered),
                    error=row.error
                )
                for row in report.for_domain(entry.name)
            ]
        )
        for entry in registry
    ]

    return DomainInventory(
        discovered=status["discovered"],
        loaded=status["loaded"],
        failed=status["failed"],
        summary=report.summary(),
        domains=domains,
        metadata=aggregate(registry)
    )
