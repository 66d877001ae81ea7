"""Inline ``$ref`` pointers in OpenAPI documents.

Only references inside the document (``#/...``) are followed. A reference
that loops back onto itself is left as its ``{"$ref": ...}`` object at the
point where the loop closes.
"""

import copy
from typing import Any

from gostman_interchange.errors import MalformedInputError


def resolve_refs(spec: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``spec`` with every internal ``$ref`` replaced by its target.

    Raises:
        MalformedInputError: If a reference is external or points at
            nothing in the document.
    """
    root = copy.deepcopy(spec)
    return _resolve(root, root, frozenset())


def _resolve(node: Any, root: dict, active: frozenset[str]) -> Any:
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str):
            if ref in active:
                return node
            return _resolve(_lookup(ref, root), root, active | {ref})
        return {key: _resolve(value, root, active) for key, value in node.items()}
    if isinstance(node, list):
        return [_resolve(item, root, active) for item in node]
    return node


def _lookup(ref: str, root: dict) -> Any:
    """Follow a JSON Pointer (RFC 6901) such as ``#/components/schemas/Pet``."""
    if ref == "#":
        return root
    if not ref.startswith("#/"):
        raise MalformedInputError(f"External $ref not supported: {ref}")

    current: Any = root
    for token in ref[2:].split("/"):
        token = token.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict) and token in current:
            current = current[token]
        elif isinstance(current, list) and token.isdigit() and int(token) < len(current):
            current = current[int(token)]
        else:
            raise MalformedInputError(f"Cannot resolve $ref {ref!r}: {token!r} not found")
    return current
