"""Infer JSON Schema fragments from example payloads.

Used by the OpenAPI exporter to describe request bodies. Arrays are
described by their first element only, so heterogeneous arrays come out
under-specified.
"""

from typing import Any


def infer_schema(value: Any) -> dict:
    """Return a JSON Schema fragment describing ``value``."""
    if value is None:
        return {"type": "null"}
    if isinstance(value, str):
        return {"type": "string"}
    # bool is a subclass of int, so it has to be checked first
    if isinstance(value, bool):
        return {"type": "boolean"}
    if isinstance(value, (int, float)):
        return {"type": "number"}

    if isinstance(value, list):
        return {"type": "array", "items": infer_schema(value[0]) if value else {}}

    if isinstance(value, dict):
        properties = {key: infer_schema(item) for key, item in value.items()}
        required = [key for key, item in value.items() if item is not None and item != ""]
        schema: dict = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        return schema

    return {}
