"""JSON Schema helpers for tool input definitions and validation."""

from typing import Any

from jsonschema import Draft7Validator


def validate_schema(data: Any, schema: dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate data against a JSON Schema.

    Args:
        data: The data to validate
        schema: JSON Schema to validate against

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    if not schema:
        return True, []

    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))

    if not errors:
        return True, []

    error_messages = [
        f"{'.'.join(str(p) for p in e.path)}: {e.message}" if e.path else e.message
        for e in errors
    ]

    return False, error_messages


def build_input_schema(*parameters: dict[str, Any]) -> dict[str, Any]:
    """
    Build an object schema from parameter definitions.

    Each parameter is a dict with ``name``, ``type`` and ``description``;
    ``required`` defaults to True unless a ``default`` is given. ``enum``,
    ``default`` and ``items`` are copied through.

    Returns:
        JSON Schema dictionary
    """
    properties: dict[str, Any] = {}
    required: list[str] = []

    for param in parameters:
        param_schema: dict[str, Any] = {
            "type": param.get("type", "string"),
            "description": param.get("description", ""),
        }
        for key in ("enum", "default", "items", "minimum", "maximum"):
            if key in param:
                param_schema[key] = param[key]

        properties[param["name"]] = param_schema

        if param.get("required", "default" not in param):
            required.append(param["name"])

    return {
        "type": "object",
        "properties": properties,
        "required": required,
    }
