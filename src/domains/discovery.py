"""Domain discovery and loading.

Discovery walks a statically declared list of domain sources, imports
each module and inspects its ``DOMAIN`` descriptor. The loader then builds
the providers of each valid domain. Both steps are per-domain: one bad
domain never stops the others from being inspected or loaded.
"""

import importlib
from typing import Callable, Iterable

from shared.errors import DiscoveryError, LoadError
from shared.logging import get_logger
from shared.models import DomainDiscoveryResult, DomainModule, DomainSource
from domains.base import DomainContext, DomainDescriptor

logger = get_logger(__name__)


DescriptorResolver = Callable[[str], DomainDescriptor]


def resolve_descriptor(path: str) -> DomainDescriptor:
    """
    Import a domain module and return its DOMAIN descriptor.

    Raises:
        DiscoveryError: If the module cannot be imported or exports no descriptor
    """
    try:
        module = importlib.import_module(path)
    except ImportError as e:
        raise DiscoveryError(f"Cannot import domain module '{path}': {e}")

    descriptor = getattr(module, "DOMAIN", None)
    if descriptor is None:
        raise DiscoveryError(f"Module '{path}' does not export a DOMAIN descriptor")
    if not isinstance(descriptor, DomainDescriptor):
        raise DiscoveryError(
            f"Module '{path}' exports DOMAIN of type "
            f"{type(descriptor).__name__}, expected DomainDescriptor"
        )
    return descriptor


def describe_error(error: BaseException) -> str:
    """Human-readable text for a captured exception."""
    return str(error) or error.__class__.__name__


class DomainDiscovery:
    """
    Enumerates domain candidates and reports their capabilities.

    Results are ordered by name (then module path) so registration order
    is reproducible across runs.
    """

    def __init__(
        self,
        sources: Iterable[DomainSource],
        resolver: DescriptorResolver = resolve_descriptor
    ) -> None:
        self.sources = list(sources)
        self.resolver = resolver

    def discover(self) -> list[DomainDiscoveryResult]:
        """Inspect every source; never raises for a single bad domain."""
        ordered = sorted(self.sources, key=lambda s: (s.name, s.module))
        results = [self._analyze(source) for source in ordered]

        valid = [r.name for r in results if r.is_valid]
        logger.info(
            "Domain discovery completed",
            discovered=len(results),
            valid=valid,
            invalid=[r.name for r in results if not r.is_valid]
        )
        return results

    def _analyze(self, source: DomainSource) -> DomainDiscoveryResult:
        try:
            descriptor = self.resolver(source.module)
            if descriptor.name != source.name:
                raise DiscoveryError(
                    f"Module '{source.module}' declares domain "
                    f"'{descriptor.name}', expected '{source.name}'"
                )
        except Exception as e:
            error = describe_error(e)
            logger.warning("Domain discovery failed", domain=source.name, error=error)
            return DomainDiscoveryResult(
                name=source.name,
                path=source.module,
                is_valid=False,
                error=error
            )

        return DomainDiscoveryResult(
            name=source.name,
            path=source.module,
            has_tools=descriptor.tool is not None,
            has_cli=descriptor.cli is not None,
            has_resources=descriptor.resource is not None,
            is_valid=True
        )


class DomainLoader:
    """
    Builds the DomainModule of a discovered domain.

    Provider construction failures are raised as LoadError; the registry
    builder records them against the failing domain only.
    """

    def __init__(
        self,
        context: DomainContext,
        resolver: DescriptorResolver = resolve_descriptor
    ) -> None:
        self.context = context
        self.resolver = resolver

    def __call__(self, result: DomainDiscoveryResult) -> DomainModule:
        return self.load(result)

    def load(self, result: DomainDiscoveryResult) -> DomainModule:
        descriptor = self.resolver(result.path)

        try:
            module = DomainModule(
                tool=descriptor.tool(self.context) if descriptor.tool else None,
                cli=descriptor.cli(self.context) if descriptor.cli else None,
                resource=descriptor.resource(self.context) if descriptor.resource else None,
                meta=descriptor.meta
            )
        except Exception as e:
            raise LoadError(
                f"Cannot construct providers for domain '{result.name}': {describe_error(e)}",
                domain=result.name
            ) from e

        logger.debug(
            "Domain loaded",
            domain=result.name,
            has_tools=module.tool is not None,
            has_cli=module.cli is not None,
            has_resources=module.resource is not None
        )
        return module
