"""Tasks Domain - Lokalise translation and review tasks.

Contributes:
- Tools: list, get, create and delete tasks
- CLI commands: list-tasks, get-task, create-task, delete-task
- Resources: lokalise://tasks/{projectId} and lokalise://tasks/{projectId}/{taskId}
"""

from typing import Any, Optional

import click

from lokalise_client import LokaliseClient
from shared.formatting import format_details, format_heading, format_listing, format_value
from shared.logging import get_logger
from shared.models import DomainMeta
from shared.schema import build_input_schema
from domains.base import (
    CommandProvider,
    DomainDescriptor,
    ResourceProvider,
    ToolProvider,
)

logger = get_logger(__name__)


TASK_STATUSES = ["completed", "in_progress", "created", "queued"]

TASK_COLUMNS = [
    ("task_id", "ID"),
    ("title", "Title"),
    ("status", "Status"),
    ("task_type", "Type"),
    ("progress", "Progress"),
    ("due_date", "Due"),
]

TASK_FIELDS = [
    ("task_id", "ID"),
    ("title", "Title"),
    ("description", "Description"),
    ("status", "Status"),
    ("task_type", "Type"),
    ("progress", "Progress"),
    ("source_language_iso", "Source language"),
    ("keys_count", "Keys"),
    ("words_count", "Words"),
    ("due_date", "Due date"),
    ("created_at", "Created"),
]


class TasksService:
    """Task operations against the Lokalise API."""

    def __init__(self, client: LokaliseClient) -> None:
        self.client = client

    async def list_tasks(
        self,
        project_id: str,
        filter_title: Optional[str] = None,
        filter_statuses: Optional[list[str]] = None,
        limit: Optional[int] = None,
        page: Optional[int] = None
    ) -> str:
        body = await self.client.get(
            f"projects/{project_id}/tasks",
            params={
                "filter_title": filter_title,
                "filter_statuses": ",".join(filter_statuses) if filter_statuses else None,
                "limit": limit,
                "page": page,
            }
        )
        return format_listing(
            "Tasks", body.get("tasks", []), TASK_COLUMNS, f"project {project_id}"
        )

    async def get_task(self, project_id: str, task_id: int) -> str:
        body = await self.client.get(f"projects/{project_id}/tasks/{task_id}")
        return format_task(body.get("task", {}), project_id)

    async def create_task(
        self,
        project_id: str,
        title: str,
        languages: list[str],
        description: Optional[str] = None,
        due_date: Optional[str] = None,
        assignees: Optional[list[int]] = None,
        task_type: str = "translation"
    ) -> str:
        payload: dict[str, Any] = {
            "title": title,
            "task_type": task_type,
            "languages": [
                {"language_iso": iso, "users": list(assignees or [])}
                for iso in languages
            ],
        }
        if description:
            payload["description"] = description
        if due_date:
            payload["due_date"] = due_date

        body = await self.client.post(f"projects/{project_id}/tasks", json=payload)
        logger.info("Task created", project_id=project_id, task_id=body.get("task", {}).get("task_id"))
        return format_task(body.get("task", {}), project_id, heading="Task Created")

    async def delete_task(self, project_id: str, task_id: int) -> str:
        body = await self.client.delete(f"projects/{project_id}/tasks/{task_id}")
        if not body.get("task_deleted", False):
            return f"Task {task_id} was not deleted from project {project_id}."
        return f"Task {task_id} deleted from project {project_id}."


def format_task(task: dict[str, Any], project_id: str, heading: str = "Task Details") -> str:
    lines = [
        format_heading(heading, 1),
        "",
        f"Project: {project_id}",
        "",
        format_details(task, TASK_FIELDS),
    ]
    languages = task.get("languages") or []
    if languages:
        lines.extend(["", format_heading("Languages", 2), ""])
        for language in languages:
            lines.append(
                f"- {language.get('language_iso')}: "
                f"{format_value(language.get('progress'))}% "
                f"({format_value(language.get('status'))})"
            )
    return "\n".join(lines)


class TasksTool(ToolProvider):
    """Task tools for the protocol server."""

    def __init__(self, context) -> None:
        super().__init__(context)
        self.service = TasksService(context.client)

    def register_tools(self, host) -> None:
        host.register_tool(
            "lokalise_list_tasks",
            self.list_tasks,
            description=(
                "Monitors ongoing translation work and deadlines across the project. "
                "Required: projectId. Optional: filterTitle, filterStatuses, limit, page. "
                "Returns: tasks with status, progress and due dates."
            ),
            input_schema=build_input_schema(
                {"name": "projectId", "type": "string", "description": "Project ID"},
                {"name": "filterTitle", "type": "string", "description": "Filter by title", "required": False},
                {
                    "name": "filterStatuses",
                    "type": "array",
                    "items": {"type": "string", "enum": TASK_STATUSES},
                    "description": "Filter by statuses",
                    "required": False,
                },
                {"name": "limit", "type": "integer", "minimum": 1, "maximum": 5000,
                 "description": "Page size", "required": False},
                {"name": "page", "type": "integer", "minimum": 1, "description": "Page number", "required": False},
            )
        )
        host.register_tool(
            "lokalise_get_task",
            self.get_task,
            description=(
                "Investigates a specific work assignment in detail. "
                "Required: projectId, taskId. Returns: complete task data with language progress."
            ),
            input_schema=build_input_schema(
                {"name": "projectId", "type": "string", "description": "Project ID"},
                {"name": "taskId", "type": "integer", "description": "Task ID"},
            )
        )
        host.register_tool(
            "lokalise_create_task",
            self.create_task,
            description=(
                "Initiates a new batch of translation or review work. "
                "Required: projectId, title, languages. Optional: description, dueDate, "
                "assignees (applied to all languages), taskType."
            ),
            input_schema=build_input_schema(
                {"name": "projectId", "type": "string", "description": "Project ID"},
                {"name": "title", "type": "string", "description": "Task title"},
                {"name": "languages", "type": "array", "items": {"type": "string"},
                 "description": "Language ISO codes"},
                {"name": "description", "type": "string", "description": "Task description", "required": False},
                {"name": "dueDate", "type": "string", "description": "Due date (Y-m-d H:i:s)", "required": False},
                {"name": "assignees", "type": "array", "items": {"type": "integer"},
                 "description": "User IDs assigned to every language", "required": False},
                {"name": "taskType", "type": "string", "enum": ["translation", "review"],
                 "default": "translation", "description": "Task type"},
            )
        )
        host.register_tool(
            "lokalise_delete_task",
            self.delete_task,
            description=(
                "Cancels a work assignment. Required: projectId, taskId. "
                "Keys and translations are left unchanged. Cannot be undone."
            ),
            input_schema=build_input_schema(
                {"name": "projectId", "type": "string", "description": "Project ID"},
                {"name": "taskId", "type": "integer", "description": "Task ID"},
            )
        )

    async def list_tasks(self, **params: Any) -> str:
        return await self.service.list_tasks(
            params["projectId"],
            filter_title=params.get("filterTitle"),
            filter_statuses=params.get("filterStatuses"),
            limit=params.get("limit"),
            page=params.get("page")
        )

    async def get_task(self, **params: Any) -> str:
        return await self.service.get_task(params["projectId"], params["taskId"])

    async def create_task(self, **params: Any) -> str:
        return await self.service.create_task(
            params["projectId"],
            params["title"],
            params["languages"],
            description=params.get("description"),
            due_date=params.get("dueDate"),
            assignees=params.get("assignees"),
            task_type=params.get("taskType", "translation")
        )

    async def delete_task(self, **params: Any) -> str:
        return await self.service.delete_task(params["projectId"], params["taskId"])

    def get_meta(self) -> DomainMeta:
        return DomainMeta(
            name="tasks",
            description="Tasks management domain",
            version="1.0.0",
            tools_count=4
        )


class TasksCli(CommandProvider):
    """Task commands for the CLI program."""

    def __init__(self, context) -> None:
        super().__init__(context)
        self.service = TasksService(context.client)

    def register(self, program) -> None:
        service = self.service

        @click.command("list-tasks")
        @click.option("--project-id", required=True, help="Project ID.")
        @click.option("--title", "filter_title", default=None, help="Filter by title.")
        @click.option("--status", "filter_statuses", multiple=True,
                      type=click.Choice(TASK_STATUSES), help="Filter by status (repeatable).")
        @click.option("--limit", type=int, default=None, help="Page size.")
        @click.option("--page", type=int, default=None, help="Page number.")
        def list_tasks(project_id, filter_title, filter_statuses, limit, page):
            """List tasks of a project."""
            self.run(service.list_tasks(
                project_id,
                filter_title=filter_title,
                filter_statuses=list(filter_statuses) or None,
                limit=limit,
                page=page
            ))

        @click.command("get-task")
        @click.option("--project-id", required=True, help="Project ID.")
        @click.option("--task-id", required=True, type=int, help="Task ID.")
        def get_task(project_id, task_id):
            """Show one task."""
            self.run(service.get_task(project_id, task_id))

        @click.command("create-task")
        @click.option("--project-id", required=True, help="Project ID.")
        @click.option("--title", required=True, help="Task title.")
        @click.option("--language", "languages", required=True, multiple=True,
                      help="Language ISO code (repeatable).")
        @click.option("--description", default=None, help="Task description.")
        @click.option("--due-date", default=None, help="Due date (Y-m-d H:i:s).")
        @click.option("--assignee", "assignees", type=int, multiple=True,
                      help="User ID assigned to every language (repeatable).")
        @click.option("--type", "task_type", type=click.Choice(["translation", "review"]),
                      default="translation", show_default=True)
        def create_task(project_id, title, languages, description, due_date, assignees, task_type):
            """Create a task."""
            self.run(service.create_task(
                project_id,
                title,
                list(languages),
                description=description,
                due_date=due_date,
                assignees=list(assignees),
                task_type=task_type
            ))

        @click.command("delete-task")
        @click.option("--project-id", required=True, help="Project ID.")
        @click.option("--task-id", required=True, type=int, help="Task ID.")
        def delete_task(project_id, task_id):
            """Delete a task."""
            self.run(service.delete_task(project_id, task_id))

        for command in (list_tasks, get_task, create_task, delete_task):
            program.register_command(command)

    def get_meta(self) -> DomainMeta:
        return DomainMeta(
            name="tasks",
            description="Tasks management CLI commands",
            version="1.0.0",
            cli_commands_count=4
        )


class TasksResource(ResourceProvider):
    """Task resources for the resource browser."""

    def __init__(self, context) -> None:
        super().__init__(context)
        self.service = TasksService(context.client)

    def register_resources(self, host) -> None:
        host.register_resource(
            "lokalise-project-tasks",
            "lokalise://tasks/{projectId}",
            self.project_tasks,
            description="Tasks of a project. Query: filterTitle, filterStatuses, page, limit"
        )
        host.register_resource(
            "lokalise-task-details",
            "lokalise://tasks/{projectId}/{taskId}",
            self.task_details,
            description="Details of one task"
        )

    async def project_tasks(self, uri: str, params: dict[str, str]) -> str:
        statuses = params.get("filterStatuses")
        return await self.service.list_tasks(
            params["projectId"],
            filter_title=params.get("filterTitle"),
            filter_statuses=statuses.split(",") if statuses else None,
            limit=int(params["limit"]) if params.get("limit") else None,
            page=int(params["page"]) if params.get("page") else None
        )

    async def task_details(self, uri: str, params: dict[str, str]) -> str:
        return await self.service.get_task(params["projectId"], int(params["taskId"]))

    def get_meta(self) -> DomainMeta:
        return DomainMeta(
            name="tasks",
            description="Lokalise tasks domain resources",
            version="1.0.0",
            resources_count=2
        )


DOMAIN = DomainDescriptor(
    name="tasks",
    description="Translation and review tasks",
    version="1.0.0",
    tool=TasksTool,
    cli=TasksCli,
    resource=TasksResource
)
