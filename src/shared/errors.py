"""Error taxonomy for domain discovery, loading and composition.

Per-domain errors are captured on registry entries and composition rows.
Only NameCollisionError is raised out of the pipeline.
"""

from typing import Optional


class DomainError(Exception):
    """Base class for domain pipeline errors."""

    def __init__(self, message: str, domain: Optional[str] = None) -> None:
        super().__init__(message)
        self.domain = domain


class DiscoveryError(DomainError):
    """A domain cannot be located or its export shape is malformed."""


class LoadError(DomainError):
    """A domain resolved but constructing its providers failed."""


class RegistrationError(DomainError):
    """A domain's registration operation failed during composition."""

    def __init__(
        self,
        message: str,
        domain: Optional[str] = None,
        capability: Optional[str] = None
    ) -> None:
        super().__init__(message, domain)
        self.capability = capability


class CapabilityContractViolation(RegistrationError):
    """A domain claims a capability but its registration operation is missing."""


class RegistrationTimeout(RegistrationError):
    """A domain's registration operation did not finish in time."""


class NameCollisionError(DomainError):
    """
    Two domains claim the same name or register the same identifier.

    This is fatal to the whole build.
    """

    def __init__(
        self,
        identifier: str,
        first: str,
        second: str,
        capability: str = "domain"
    ) -> None:
        if capability == "domain":
            message = (
                f"Domain name '{identifier}' is claimed by both "
                f"'{first}' and '{second}'"
            )
        else:
            message = (
                f"{capability} identifier '{identifier}' is registered by both "
                f"'{first}' and '{second}'"
            )
        super().__init__(message, domain=second)
        self.identifier = identifier
        self.domains = (first, second)
        self.capability = capability
