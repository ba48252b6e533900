"""Projects Domain - Lokalise projects and their statistics.

Contributes:
- Tools: list projects, get project details
- CLI commands: list-projects, get-project-details
- Resources: lokalise://projects and lokalise://projects/{projectId}
"""

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


PROJECT_COLUMNS = [
    ("project_id", "ID"),
    ("name", "Name"),
    ("base_language_iso", "Base language"),
    ("created_at", "Created"),
]

PROJECT_FIELDS = [
    ("project_id", "ID"),
    ("name", "Name"),
    ("description", "Description"),
    ("project_type", "Type"),
    ("base_language_iso", "Base language"),
    ("team_id", "Team"),
    ("created_at", "Created"),
    ("created_by_email", "Created by"),
]

STATISTICS_FIELDS = [
    ("progress_total", "Progress (%)"),
    ("keys_total", "Keys"),
    ("team", "Contributors"),
    ("base_words", "Base words"),
    ("qa_issues_total", "QA issues"),
]


class ProjectsService:
    """Project operations against the Lokalise API."""

    def __init__(self, client: LokaliseClient) -> None:
        self.client = client

    async def list_projects(
        self,
        filter_names: Optional[list[str]] = None,
        include_statistics: bool = False,
        limit: Optional[int] = None,
        page: Optional[int] = None
    ) -> str:
        body = await self.client.get(
            "projects",
            params={
                "filter_names": ",".join(filter_names) if filter_names else None,
                "include_statistics": 1 if include_statistics else 0,
                "include_settings": 0,
                "limit": limit,
                "page": page,
            }
        )
        return format_listing("Projects", body.get("projects", []), PROJECT_COLUMNS, "this workspace")

    async def get_project(self, project_id: str) -> str:
        project = await self.client.get(f"projects/{project_id}")
        return format_project(project)


def format_project(project: dict[str, Any]) -> str:
    lines = [
        format_heading(f"Project: {format_value(project.get('name'))}", 1),
        "",
        format_details(project, PROJECT_FIELDS),
    ]
    statistics = project.get("statistics")
    if statistics:
        lines.extend(["", format_heading("Statistics", 2), "", format_details(statistics, STATISTICS_FIELDS)])
        for language in statistics.get("languages") or []:
            lines.append(
                f"- {language.get('language_iso')}: "
                f"{format_value(language.get('progress'))}% translated"
            )
    return "\n".join(lines)


class ProjectsTool(ToolProvider):
    """Project tools for the protocol server."""

    def __init__(self, context) -> None:
        super().__init__(context)
        self.service = ProjectsService(context.client)

    def register_tools(self, host) -> None:
        host.register_tool(
            "lokalise_list_projects",
            self.list_projects,
            description=(
                "Portfolio overview of all localization projects. "
                "Optional: filterNames, includeStats, limit, page. "
                "Returns: projects with IDs, names and base languages."
            ),
            input_schema=build_input_schema(
                {"name": "filterNames", "type": "array", "items": {"type": "string"},
                 "description": "Only projects with these names", "required": False},
                {"name": "includeStats", "type": "boolean", "default": False,
                 "description": "Include project statistics"},
                {"name": "limit", "type": "integer", "minimum": 1, "maximum": 5000,
                 "description": "Page size", "required": False},
                {"name": "page", "type": "integer", "minimum": 1, "description": "Page number", "required": False},
            )
        )
        host.register_tool(
            "lokalise_get_project",
            self.get_project,
            description=(
                "Deep dive into one project: settings, languages and progress. "
                "Required: projectId."
            ),
            input_schema=build_input_schema(
                {"name": "projectId", "type": "string", "description": "Project ID"},
            )
        )

    async def list_projects(self, **params: Any) -> str:
        return await self.service.list_projects(
            filter_names=params.get("filterNames"),
            include_statistics=params.get("includeStats", False),
            limit=params.get("limit"),
            page=params.get("page")
        )

    async def get_project(self, **params: Any) -> str:
        return await self.service.get_project(params["projectId"])

    def get_meta(self) -> DomainMeta:
        return DomainMeta(
            name="projects",
            description="Projects management domain",
            version="1.0.0",
            tools_count=2
        )


class ProjectsCli(CommandProvider):
    """Project commands for the CLI program."""

    def __init__(self, context) -> None:
        super().__init__(context)
        self.service = ProjectsService(context.client)

    def register(self, program) -> None:
        service = self.service

        @click.command("list-projects")
        @click.option("--name", "filter_names", multiple=True, help="Filter by name (repeatable).")
        @click.option("--stats", "include_statistics", is_flag=True, help="Include statistics.")
        @click.option("--limit", type=int, default=None, help="Page size.")
        @click.option("--page", type=int, default=None, help="Page number.")
        def list_projects(filter_names, include_statistics, limit, page):
            """List all projects."""
            self.run(service.list_projects(
                filter_names=list(filter_names) or None,
                include_statistics=include_statistics,
                limit=limit,
                page=page
            ))

        @click.command("get-project-details")
        @click.option("--project-id", required=True, help="Project ID.")
        def get_project_details(project_id):
            """Show one project with statistics."""
            self.run(service.get_project(project_id))

        program.register_command(list_projects)
        program.register_command(get_project_details)

    def get_meta(self) -> DomainMeta:
        return DomainMeta(
            name="projects",
            description="Projects management CLI commands",
            version="1.0.0",
            cli_commands_count=2
        )


class ProjectsResource(ResourceProvider):
    """Project resources for the resource browser."""

    def __init__(self, context) -> None:
        super().__init__(context)
        self.service = ProjectsService(context.client)

    def register_resources(self, host) -> None:
        host.register_resource(
            "lokalise-projects",
            "lokalise://projects",
            self.projects,
            description="All projects. Query: includeStats, page, limit"
        )
        host.register_resource(
            "lokalise-project-details",
            "lokalise://projects/{projectId}",
            self.project_details,
            description="Details of one project"
        )

    async def projects(self, uri: str, params: dict[str, str]) -> str:
        return await self.service.list_projects(
            include_statistics=params.get("includeStats") in ("1", "true"),
            limit=int(params["limit"]) if params.get("limit") else None,
            page=int(params["page"]) if params.get("page") else None
        )

    async def project_details(self, uri: str, params: dict[str, str]) -> str:
        return await self.service.get_project(params["projectId"])

    def get_meta(self) -> DomainMeta:
        return DomainMeta(
            name="projects",
            description="Lokalise projects domain resources",
            version="1.0.0",
            resources_count=2
        )


DOMAIN = DomainDescriptor(
    name="projects",
    description="Localization projects",
    version="1.0.0",
    tool=ProjectsTool,
    cli=ProjectsCli,
    resource=ProjectsResource
)
