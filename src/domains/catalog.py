"""Domains known to the platform at build time."""

from shared.models import DomainSource

BUILTIN_DOMAINS: tuple[DomainSource, ...] = (
    DomainSource(name="projects", module="domains.projects"),
    DomainSource(name="tasks", module="domains.tasks"),
    DomainSource(name="usergroups", module="domains.usergroups"),
)
