"""Resource Registry for the MCP Server.

The resource browser's host. Resources are addressed by URI templates
such as ``lokalise://tasks/{projectId}``; query parameters of the read
URI are passed to the handler alongside the path parameters.

Both resource names and URI templates are unique. Two templates that
differ only in placeholder names count as the same template.
"""

import asyncio
import re
from typing import Any, Callable, Optional
from urllib.parse import parse_qsl, urlsplit

from shared.errors import NameCollisionError
from shared.logging import get_logger
from shared.models import (
    CORE_OWNER,
    CapabilityKind,
    ResourceContent,
    ResourceDefinition,
    compile_template,
    template_key,
)

logger = get_logger(__name__)


class ResourceNotFoundError(LookupError):
    """No registered resource matches a URI."""


class ResourceRegistry:
    """Registry of browsable resources, keyed by resource name."""

    def __init__(self) -> None:
        self._resources: dict[str, ResourceDefinition] = {}
        self._patterns: dict[str, re.Pattern[str]] = {}
        # template_key -> resource name
        self._templates: dict[str, str] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._resources

    def __len__(self) -> int:
        return len(self._resources)

    def register_resource(
        self,
        name: str,
        uri_template: str,
        handler: Callable[..., Any],
        *,
        description: str = "",
        mime_type: str = "text/markdown",
        domain: str = CORE_OWNER
    ) -> ResourceDefinition:
        """
        Register a resource.

        Raises:
            NameCollisionError: If the resource name or URI template is
                already registered
        """
        for identifier in (name, uri_template):
            owner = self.owner_of(identifier)
            if owner is not None:
                raise NameCollisionError(identifier, owner, domain, CapabilityKind.RESOURCES.value)

        resource = ResourceDefinition(
            name=name,
            uri_template=uri_template,
            domain=domain,
            description=description,
            mime_type=mime_type,
            handler=handler
        )
        self._resources[name] = resource
        self._patterns[name] = compile_template(uri_template)
        self._templates[template_key(uri_template)] = name

        logger.debug("Resource registered", resource=name, uri_template=uri_template, domain=domain)
        return resource

    def unregister_resource(self, name: str) -> None:
        resource = self._resources.pop(name, None)
        if resource is None:
            return
        self._patterns.pop(name, None)
        self._templates.pop(template_key(resource.uri_template), None)

    def owner_of(self, identifier: str) -> Optional[str]:
        """Domain owning a resource name or URI template, or None."""
        name = identifier if identifier in self._resources else self._templates.get(template_key(identifier))
        resource = self._resources.get(name) if name else None
        return resource.domain if resource else None

    def get(self, name: str) -> Optional[ResourceDefinition]:
        return self._resources.get(name)

    def list_resources(self, domain: Optional[str] = None) -> list[ResourceDefinition]:
        resources = list(self._resources.values())
        if domain:
            resources = [r for r in resources if r.domain == domain]
        return resources

    def match(self, uri: str) -> tuple[ResourceDefinition, dict[str, str]]:
        """
        Find the resource serving a URI.

        Templates are tried in registration order; the first match wins.

        Returns:
            Tuple of (resource, parameters from path and query string)

        Raises:
            ResourceNotFoundError: If no template matches
        """
        parts = urlsplit(uri)
        target = uri.split("?", 1)[0].split("#", 1)[0]

        for name, pattern in self._patterns.items():
            found = pattern.match(target)
            if found:
                params = dict(parse_qsl(parts.query))
                params.update(found.groupdict())
                return self._resources[name], params

        raise ResourceNotFoundError(f"No resource matches '{uri}'")

    async def read(self, uri: str) -> ResourceContent:
        """Read a resource URI through its handler."""
        resource, params = self.match(uri)

        if asyncio.iscoroutinefunction(resource.handler):
            text = await resource.handler(uri, params)
        else:
            loop = asyncio.get_running_loop()
            text = await loop.run_in_executor(None, resource.handler, uri, params)

        return ResourceContent(
            uri=uri,
            text=text,
            mime_type=resource.mime_type,
            resource=resource.name
        )
