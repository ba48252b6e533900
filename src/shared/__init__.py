"""Shared models, configuration and utilities for the Lokalise MCP platform."""

from shared.models import (
    CapabilityKind,
    CompositionReport,
    CompositionResult,
    DomainDiscoveryResult,
    DomainMeta,
    DomainModule,
    DomainRegistryEntry,
    DomainSource,
    ToolDefinition,
    ToolResult,
)
from shared.config import Settings, get_settings
from shared.errors import (
    CapabilityContractViolation,
    DiscoveryError,
    DomainError,
    LoadError,
    NameCollisionError,
    RegistrationError,
)
from shared.logging import get_logger, setup_logging

__all__ = [
    "CapabilityKind",
    "CompositionReport",
    "CompositionResult",
    "DomainDiscoveryResult",
    "DomainMeta",
    "DomainModule",
    "DomainRegistryEntry",
    "DomainSource",
    "ToolDefinition",
    "ToolResult",
    "Settings",
    "get_settings",
    "CapabilityContractViolation",
    "DiscoveryError",
    "DomainError",
    "LoadError",
    "NameCollisionError",
    "RegistrationError",
    "get_logger",
    "setup_logging",
]
