"""Usergroups Domain - team user groups and their permissions."""

from typing import Any, Optional

import click

from lokalise_client import LokaliseClient
from shared.formatting import format_details, format_heading, format_listing, format_value
from shared.models import DomainMeta
from shared.schema import build_input_schema
from domains.base import (
    CommandProvider,
    DomainDescriptor,
    ResourceProvider,
    ToolProvider,
)


GROUP_COLUMNS = [
    ("group_id", "ID"),
    ("name", "Name"),
    ("members", "Members"),
    ("projects", "Projects"),
]


class UsergroupsService:
    """User group operations against the Lokalise API."""

    def __init__(self, client: LokaliseClient) -> None:
        self.client = client

    async def list_usergroups(
        self,
        team_id: str,
        limit: Optional[int] = None,
        page: Optional[int] = None
    ) -> str:
        body = await self.client.get(
            f"teams/{team_id}/groups",
            params={"limit": limit, "page": page}
        )
        rows = [
            {**group, "members": len(group.get("members") or []), "projects": len(group.get("projects") or [])}
            for group in body.get("user_groups", [])
        ]
        return format_listing("User Groups", rows, GROUP_COLUMNS, f"team {team_id}")

    async def get_usergroup(self, team_id: str, group_id: int) -> str:
        group = await self.client.get(f"teams/{team_id}/groups/{group_id}")
        return format_usergroup(group, team_id)


def format_usergroup(group: dict[str, Any], team_id: str) -> str:
    permissions = group.get("permissions") or {}
    lines = [
        format_heading(f"User Group: {format_value(group.get('name'))}", 1),
        "",
        format_details(
            {**group, "team_id": team_id, "is_admin": permissions.get("is_admin"),
             "is_reviewer": permissions.get("is_reviewer")},
            [
                ("group_id", "ID"),
                ("team_id", "Team"),
                ("is_admin", "Admin"),
                ("is_reviewer", "Reviewer"),
                ("created_at", "Created"),
            ]
        ),
        "",
        f"- **Members**: {format_value(group.get('members'))}",
        f"- **Projects**: {format_value(group.get('projects'))}",
    ]
    admin_rights = permissions.get("admin_rights")
    if admin_rights:
        lines.append(f"- **Admin rights**: {format_value(admin_rights)}")
    return "\n".join(lines)


class UsergroupsTool(ToolProvider):
    """User group tools for the protocol server."""

    def __init__(self, context) -> None:
        super().__init__(context)
        self.service = UsergroupsService(context.client)

    def register_tools(self, host) -> None:
        host.register_tool(
            "lokalise_list_usergroups",
            self.list_usergroups,
            description=(
                "Lists the user groups of a team with member and project counts. "
                "Required: teamId. Optional: limit, page."
            ),
            input_schema=build_input_schema(
                {"name": "teamId", "type": "string", "description": "Team ID"},
                {"name": "limit", "type": "integer", "minimum": 1, "maximum": 5000,
                 "description": "Page size", "required": False},
                {"name": "page", "type": "integer", "minimum": 1, "description": "Page number", "required": False},
            )
        )
        host.register_tool(
            "lokalise_get_usergroup",
            self.get_usergroup,
            description="Shows one user group with permissions, members and projects. Required: teamId, groupId.",
            input_schema=build_input_schema(
                {"name": "teamId", "type": "string", "description": "Team ID"},
                {"name": "groupId", "type": "integer", "description": "User group ID"},
            )
        )

    async def list_usergroups(self, **params: Any) -> str:
        return await self.service.list_usergroups(
            params["teamId"],
            limit=params.get("limit"),
            page=params.get("page")
        )

    async def get_usergroup(self, **params: Any) -> str:
        return await self.service.get_usergroup(params["teamId"], params["groupId"])

    def get_meta(self) -> DomainMeta:
        return DomainMeta(
            name="usergroups",
            description="Usergroups management domain",
            version="1.0.0",
            tools_count=2
        )


class UsergroupsCli(CommandProvider):
    """User group commands for the CLI program."""

    def __init__(self, context) -> None:
        super().__init__(context)
        self.service = UsergroupsService(context.client)

    def register(self, program) -> None:
        service = self.service

        @click.command("list-usergroups")
        @click.option("--team-id", required=True, help="Team ID.")
        @click.option("--limit", type=int, default=None, help="Page size.")
        @click.option("--page", type=int, default=None, help="Page number.")
        def list_usergroups(team_id, limit, page):
            """List user groups of a team."""
            self.run(service.list_usergroups(team_id, limit=limit, page=page))

        @click.command("get-usergroup")
        @click.option("--team-id", required=True, help="Team ID.")
        @click.option("--group-id", required=True, type=int, help="User group ID.")
        def get_usergroup(team_id, group_id):
            """Show one user group."""
            self.run(service.get_usergroup(team_id, group_id))

        program.register_command(list_usergroups)
        program.register_command(get_usergroup)

    def get_meta(self) -> DomainMeta:
        return DomainMeta(
            name="usergroups",
            description="Usergroups management CLI commands",
            version="1.0.0",
            cli_commands_count=2
        )


class UsergroupsResource(ResourceProvider):
    """User group resources for the resource browser."""

    def __init__(self, context) -> None:
        super().__init__(context)
        self.service = UsergroupsService(context.client)

    def register_resources(self, host) -> None:
        host.register_resource(
            "lokalise-usergroups",
            "lokalise://usergroups/{teamId}",
            self.usergroups,
            description="User groups of a team"
        )
        host.register_resource(
            "lokalise-usergroups-details",
            "lokalise://usergroups/{teamId}/{groupId}",
            self.usergroup_details,
            description="Details of one user group"
        )

    async def usergroups(self, uri: str, params: dict[str, str]) -> str:
        return await self.service.list_usergroups(
            params["teamId"],
            limit=int(params["limit"]) if params.get("limit") else None,
            page=int(params["page"]) if params.get("page") else None
        )

    async def usergroup_details(self, uri: str, params: dict[str, str]) -> str:
        return await self.service.get_usergroup(params["teamId"], int(params["groupId"]))

    def get_meta(self) -> DomainMeta:
        return DomainMeta(
            name="usergroups",
            description="Lokalise usergroups domain resources",
            version="1.0.0",
            resources_count=2
        )


DOMAIN = DomainDescriptor(
    name="usergroups",
    description="Team user groups",
    version="1.0.0",
    tool=UsergroupsTool,
    cli=UsergroupsCli,
    resource=UsergroupsResource
)
