"""Markdown helpers used by the domains to render API responses."""

from typing import Any, Iterable, Optional


def format_heading(text: str, level: int = 1) -> str:
    return f"{'#' * max(1, min(level, 6))} {text}"


def format_value(value: Any) -> str:
    if value is None or value == "":
        return "N/A"
    if isinstance(value, (list, tuple)):
        return ", ".join(format_value(v) for v in value) or "N/A"
    return str(value)


def format_details(data: dict[str, Any], fields: Iterable[tuple[str, str]]) -> str:
    """Bullet list of ``label: value`` for the given (key, label) pairs."""
    return "\n".join(
        f"- **{label}**: {format_value(data.get(key))}" for key, label in fields
    )


def format_table(
    rows: list[dict[str, Any]],
    columns: list[tuple[str, str]],
    max_width: int = 40
) -> str:
    """Markdown table of ``rows`` with (key, header) columns."""
    def cell(value: Any) -> str:
        text = format_value(value).replace("|", "\\|").replace("\n", " ")
        if len(text) > max_width:
            text = text[:max_width - 3] + "..."
        return text

    lines = [
        "| " + " | ".join(header for _, header in columns) + " |",
        "| " + " | ".join("---" for _ in columns) + " |",
    ]
    for row in rows:
        lines.append("| " + " | ".join(cell(row.get(key)) for key, _ in columns) + " |")
    return "\n".join(lines)


def format_empty_state(items: str, scope: str, hint: Optional[str] = None) -> str:
    text = f"No {items} found in {scope}."
    if hint:
        text += f" {hint}"
    return text


def format_listing(
    title: str,
    rows: list[dict[str, Any]],
    columns: list[tuple[str, str]],
    scope: str
) -> str:
    """Heading, count and table (or an empty-state line) for a list response."""
    lines = [format_heading(title, 1), ""]
    if not rows:
        lines.append(format_empty_state(title.lower(), scope))
        return "\n".join(lines)

    lines.append(f"**{len(rows)}** found in {scope}.")
    lines.append("")
    lines.append(format_table(rows, columns))
    return "\n".join(lines)
