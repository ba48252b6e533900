"""Command-line program for the Lokalise domains.

The root click group is the CLI host: domains register their commands
through the capability composer. The built-in ``domains`` command shows
which domains loaded, what each registered and what failed.
"""

import sys
from typing import Any, Iterable, Optional

import click

from shared.config import Settings, get_settings
from shared.errors import NameCollisionError
from shared.logging import get_logger, setup_logging
from shared.models import CORE_OWNER, CapabilityKind, DomainSource
from domains import DomainContext, DomainPlatform, load_all_domains
from lokalise_client import LokaliseClient, get_client

logger = get_logger(__name__)

CLI_NAME = "lokalise-mcp"
VERSION = "1.0.0"


class ProgramGroup(click.Group):
    """Root group that shows the help text for unknown commands."""

    def resolve_command(self, ctx: click.Context, args: list[str]):
        name = args[0] if args else ""
        if name and not name.startswith("-") and self.get_command(ctx, name) is None:
            click.echo(f"Unknown command '{name}'.\n", err=True)
            click.echo(ctx.get_help())
            ctx.exit(1)
        return super().resolve_command(ctx, args)


class CommandRegistry:
    """CLI host wrapping the root click group."""

    def __init__(self, group: click.Group) -> None:
        self.group = group
        self._owners: dict[str, str] = {}

    def register_command(self, command: click.Command, *, domain: str = CORE_OWNER) -> click.Command:
        """
        Add a command to the program.

        Raises:
            NameCollisionError: If the command name is already taken
        """
        owner = self.owner_of(command.name)
        if owner is not None:
            raise NameCollisionError(command.name, owner, domain, CapabilityKind.CLI.value)

        self.group.add_command(command)
        self._owners[command.name] = domain
        logger.debug("Command registered", command=command.name, domain=domain)
        return command

    def unregister_command(self, name: str) -> None:
        if self._owners.pop(name, None) is not None:
            self.group.commands.pop(name, None)

    def owner_of(self, name: str) -> Optional[str]:
        if name in self._owners:
            return self._owners[name]
        if name in self.group.commands:
            return CORE_OWNER
        return None


@click.command("domains")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.pass_obj
def domains_command(platform: DomainPlatform, json_output: bool) -> None:
    """Show loaded domains, registered capabilities and failures."""
    inventory = platform.inventory()

    if json_output:
        click.echo(inventory.model_dump_json(indent=2))
        return

    click.echo(inventory.summary)
    for domain in inventory.domains:
        state = "loaded" if domain.loaded else f"FAILED: {domain.error}"
        click.echo(f"\n{domain.name} ({domain.path}) - {state}")
        for cap in domain.capabilities:
            if cap.succeeded:
                click.echo(f"  {cap.capability.value}: {cap.registered} registered")
            else:
                click.echo(f"  {cap.capability.value}: FAILED: {cap.error}")

    if inventory.problems:
        click.echo(f"\n{len(inventory.problems)} problem(s) found", err=True)


def create_cli(
    settings: Optional[Settings] = None,
    client: Optional[LokaliseClient] = None,
    sources: Optional[Iterable[DomainSource]] = None
) -> click.Group:
    """
    Build the CLI program with all domain commands registered.

    Raises:
        NameCollisionError: If two domains register the same command name
    """
    settings = settings or get_settings()
    client = client or get_client(settings.lokalise)

    program = ProgramGroup(
        name=CLI_NAME,
        help="Lokalise translation management from the command line.",
        no_args_is_help=True
    )
    click.version_option(version=VERSION, prog_name=CLI_NAME)(program)

    commands = CommandRegistry(program)
    commands.register_command(domains_command)

    platform = load_all_domains(
        DomainContext(client, settings),
        command_host=commands,
        sources=sources
    )
    program.context_settings["obj"] = platform
    return program


def main(argv: Optional[list[str]] = None) -> Any:
    """Console entry point."""
    settings = get_settings()
    setup_logging(
        settings.log_level,
        json_output=settings.environment == "production",
        stream=sys.stderr
    )

    try:
        program = create_cli(settings)
    except NameCollisionError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    return program.main(args=argv, prog_name=CLI_NAME)


if __name__ == "__main__":
    main()
