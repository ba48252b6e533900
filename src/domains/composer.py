"""Capability Composer.

Registers each loaded domain's capabilities with the shared hosts.

Every domain registers against a staging host that only records calls.
Once all domains have been staged, identifiers are checked for
collisions and only then replayed onto the real host. A failing domain
therefore leaves no partial registrations behind, and a collision aborts
before the host sees anything from the batch.
"""

import asyncio
import inspect
import threading
from typing import Any, Callable, Optional

from shared.errors import (
    CapabilityContractViolation,
    NameCollisionError,
    RegistrationError,
    RegistrationTimeout,
)
from shared.logging import get_logger
from shared.models import (
    CapabilityKind,
    CompositionReport,
    CompositionResult,
    ResourceDefinition,
    ToolDefinition,
    template_key,
)
from domains.discovery import describe_error
from domains.registry import DomainRegistry

logger = get_logger(__name__)


# Registration operation each capability's provider must implement
OPERATIONS: dict[CapabilityKind, str] = {
    CapabilityKind.TOOLS: "register_tools",
    CapabilityKind.CLI: "register",
    CapabilityKind.RESOURCES: "register_resources",
}


class StagingHost:
    """
    Records registrations of one domain for one capability.

    Each call claims one identifier (reported as registered) plus any
    further keys that must be unique on the host, such as a resource's
    URI template. Closed once the domain's registration operation
    returns (or times out); later calls are rejected.
    """

    kind: CapabilityKind
    host_method: str
    unregister_method: str

    def __init__(self, domain: str) -> None:
        self.domain = domain
        self._calls: list[tuple[str, tuple[str, ...], tuple[Any, ...], dict[str, Any]]] = []
        self._closed = False
        self._lock = threading.Lock()

    @property
    def identifiers(self) -> list[str]:
        return [identifier for identifier, _, _, _ in self._calls]

    @property
    def claims(self) -> list[str]:
        """Every key this domain claims on the host, identifiers included."""
        return [key for identifier, extra, _, _ in self._calls for key in (identifier, *extra)]

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def _stage(
        self,
        identifier: str,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        extra_claims: tuple[str, ...] = ()
    ) -> None:
        with self._lock:
            if self._closed:
                raise RegistrationError(
                    f"Registration of '{identifier}' arrived after composition closed",
                    domain=self.domain,
                    capability=self.kind.value
                )
            taken = self.claims
            for key in (identifier, *extra_claims):
                if key in taken:
                    raise RegistrationError(
                        f"{self.kind.value} identifier '{key}' registered twice",
                        domain=self.domain,
                        capability=self.kind.value
                    )
            self._calls.append((identifier, extra_claims, args, kwargs))

    def commit(self, host: Any) -> None:
        """
        Replay the recorded registrations onto the real host.

        If the host rejects one of them, what this domain already
        registered is removed again before the error propagates.
        """
        register = getattr(host, self.host_method)
        done: list[str] = []
        try:
            for identifier, _, args, kwargs in self._calls:
                register(*args, domain=self.domain, **kwargs)
                done.append(identifier)
        except Exception:
            unregister = getattr(host, self.unregister_method, None)
            if callable(unregister):
                for identifier in reversed(done):
                    unregister(identifier)
            raise


class StagedToolHost(StagingHost):
    kind = CapabilityKind.TOOLS
    host_method = "register_tool"
    unregister_method = "unregister_tool"

    def register_tool(
        self,
        name: str,
        handler: Callable[..., Any],
        *,
        description: str = "",
        input_schema: Optional[dict[str, Any]] = None
    ) -> None:
        # Raises on a malformed definition
        ToolDefinition(
            name=name,
            domain=self.domain,
            description=description,
            input_schema=input_schema or {},
            handler=handler
        )
        self._stage(
            name,
            (name, handler),
            {"description": description, "input_schema": input_schema}
        )


class StagedCommandHost(StagingHost):
    kind = CapabilityKind.CLI
    host_method = "register_command"
    unregister_method = "unregister_command"

    def register_command(self, command: Any) -> None:
        if not getattr(command, "name", None):
            raise RegistrationError(
                f"Command {command!r} has no name",
                domain=self.domain,
                capability=self.kind.value
            )
        self._stage(command.name, (command,), {})


class StagedResourceHost(StagingHost):
    kind = CapabilityKind.RESOURCES
    host_method = "register_resource"
    unregister_method = "unregister_resource"

    def register_resource(
        self,
        name: str,
        uri_template: str,
        handler: Callable[..., Any],
        *,
        description: str = "",
        mime_type: str = "text/markdown"
    ) -> None:
        ResourceDefinition(
            name=name,
            uri_template=uri_template,
            domain=self.domain,
            description=description,
            mime_type=mime_type,
            handler=handler
        )
        self._stage(
            name,
            (name, uri_template, handler),
            {"description": description, "mime_type": mime_type},
            extra_claims=(template_key(uri_template),)
        )


STAGING_HOSTS: dict[CapabilityKind, type[StagingHost]] = {
    CapabilityKind.TOOLS: StagedToolHost,
    CapabilityKind.CLI: StagedCommandHost,
    CapabilityKind.RESOURCES: StagedResourceHost,
}


async def _await(awaitable: Any) -> Any:
    return await awaitable


class CapabilityComposer:
    """
    Drives registration of domain capabilities with hosts.

    Domains are processed strictly in registry order, one at a time.
    Each registration operation is bounded by ``timeout`` seconds
    (None disables the bound).
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout

    def compose_tools(self, registry: DomainRegistry, host: Any) -> list[CompositionResult]:
        return self._compose(CapabilityKind.TOOLS, registry, host)

    def compose_cli(self, registry: DomainRegistry, program: Any) -> list[CompositionResult]:
        return self._compose(CapabilityKind.CLI, registry, program)

    def compose_resources(self, registry: DomainRegistry, host: Any) -> list[CompositionResult]:
        return self._compose(CapabilityKind.RESOURCES, registry, host)

    def compose(
        self,
        registry: DomainRegistry,
        *,
        tool_host: Any = None,
        command_host: Any = None,
        resource_host: Any = None
    ) -> CompositionReport:
        """
        Compose every capability for which a host is given.

        Raises:
            NameCollisionError: If two registrations claim one identifier
        """
        results: list[CompositionResult] = []
        if tool_host is not None:
            results.extend(self.compose_tools(registry, tool_host))
        if command_host is not None:
            results.extend(self.compose_cli(registry, command_host))
        if resource_host is not None:
            results.extend(self.compose_resources(registry, resource_host))

        report = CompositionReport(
            domains_loaded=len(registry.loaded()),
            results=results
        )
        logger.info(
            "Domain composition completed",
            summary=report.summary(),
            failures=[f"{r.domain}:{r.capability.value}" for r in report.failures]
        )
        return report

    def _compose(
        self,
        kind: CapabilityKind,
        registry: DomainRegistry,
        host: Any
    ) -> list[CompositionResult]:
        rows: list[CompositionResult] = []
        staged: list[tuple[int, StagingHost]] = []

        for entry in registry.loaded():
            provider = entry.module.provider(kind)
            if provider is None:
                continue

            try:
                staging = self._stage(kind, entry.name, provider)
            except Exception as e:
                rows.append(self._failure(kind, entry.name, e))
                continue

            staged.append((len(rows), staging))
            rows.append(CompositionResult(
                domain=entry.name,
                capability=kind,
                succeeded=True,
                registered=staging.identifiers
            ))

        self._check_collisions(kind, [staging for _, staging in staged], host)

        for position, staging in staged:
            try:
                staging.commit(host)
            except NameCollisionError:
                raise
            except Exception as e:
                rows[position] = self._failure(kind, staging.domain, e)
                continue
            logger.debug(
                "Domain registered",
                domain=staging.domain,
                capability=kind.value,
                count=len(staging.identifiers)
            )

        return rows

    @staticmethod
    def _failure(kind: CapabilityKind, domain: str, error: Exception) -> CompositionResult:
        message = describe_error(error)
        logger.error(
            "Domain registration failed",
            domain=domain,
            capability=kind.value,
            error=message
        )
        return CompositionResult(
            domain=domain,
            capability=kind,
            succeeded=False,
            error=message
        )

    def _stage(self, kind: CapabilityKind, domain: str, provider: Any) -> StagingHost:
        operation = getattr(provider, OPERATIONS[kind], None)
        if not callable(operation):
            raise CapabilityContractViolation(
                f"Domain '{domain}' provides {kind.value} but "
                f"'{OPERATIONS[kind]}' is missing or not callable",
                domain=domain,
                capability=kind.value
            )

        staging = STAGING_HOSTS[kind](domain)
        try:
            self._run(kind, domain, operation, staging)
        finally:
            staging.close()
        return staging

    def _run(
        self,
        kind: CapabilityKind,
        domain: str,
        operation: Callable[[Any], Any],
        staging: StagingHost
    ) -> None:
        """
        Run one registration operation to completion.

        Inline when unbounded and no event loop is running in this thread;
        otherwise in a worker thread, so awaitable registrations get a
        loop of their own.
        """
        if self.timeout is None and not _loop_running():
            self._invoke(operation, staging)
            return

        outcome: dict[str, Exception] = {}

        def target() -> None:
            try:
                self._invoke(operation, staging)
            except Exception as e:
                outcome["error"] = e

        worker = threading.Thread(
            target=target,
            name=f"register-{kind.value}-{domain}",
            daemon=True
        )
        worker.start()
        worker.join(self.timeout)

        if worker.is_alive():
            raise RegistrationTimeout(
                f"Registration of {kind.value} for domain '{domain}' "
                f"timed out after {self.timeout}s",
                domain=domain,
                capability=kind.value
            )
        if "error" in outcome:
            raise outcome["error"]

    @staticmethod
    def _invoke(operation: Callable[[Any], Any], staging: StagingHost) -> None:
        result = operation(staging)
        if inspect.isawaitable(result):
            asyncio.run(_await(result))

    @staticmethod
    def _check_collisions(kind: CapabilityKind, staged: list[StagingHost], host: Any) -> None:
        owners: dict[str, str] = {}
        for staging in staged:
            for identifier in staging.claims:
                owner = owners.get(identifier) or host.owner_of(identifier)
                if owner is not None:
                    logger.error(
                        "Registration name collision",
                        capability=kind.value,
                        identifier=identifier,
                        domains=[owner, staging.domain]
                    )
                    raise NameCollisionError(identifier, owner, staging.domain, kind.value)
                owners[identifier] = staging.domain


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True
