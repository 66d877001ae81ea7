"""Variable scopes and ``{{name}}`` substitution.

Each scope (local, environment, global) is a flat name -> scalar mapping.
Scopes carry no invariants between each other; merging is last writer wins.
"""

import json
import logging
import re
from typing import Any, Iterable, Mapping

from gostman_interchange.formats.base import Request, dump_mapping

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{([^}]+)\}\}")


def merge_variables(*scopes: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge scopes left to right; a later scope overrides an earlier one."""
    merged: dict[str, Any] = {}
    for scope in scopes:
        merged.update(scope or {})
    return merged


def substitute(text: str, variables: Mapping[str, Any] | None) -> str:
    """Replace ``{{ name }}`` with known values, leaving unknown placeholders as they are."""
    if not text or not isinstance(text, str) or not variables:
        return text

    def replace(match: re.Match) -> str:
        key = match.group(1).strip()
        if key in variables:
            return str(variables[key])
        return match.group(0)

    return _PLACEHOLDER.sub(replace, text)


def parse_variables(text: str | None) -> dict[str, Any]:
    """Decode a JSON object of variables; malformed input gives an empty scope."""
    try:
        data = json.loads(text or "{}")
    except ValueError:
        logger.warning("Failed to parse variables, using an empty scope")
        return {}
    return data if isinstance(data, dict) else {}


def resolve_requests(requests: Iterable[Request], variables: Mapping[str, Any] | None) -> list[Request]:
    """Return copies of ``requests`` with placeholders filled in.

    The URL, the body and every header and query parameter value are
    substituted; the originals are left untouched.
    """
    if not variables:
        return list(requests)
    return [
        request.model_copy(
            update={
                "url": substitute(request.url, variables),
                "body": substitute(request.body, variables),
                "headers": dump_mapping(_substitute_values(request.header_map, variables)),
                "query_params": dump_mapping(_substitute_values(request.query_map, variables)),
            }
        )
        for request in requests
    ]


def _substitute_values(mapping: dict, variables: Mapping[str, Any]) -> dict:
    return {key: substitute(value, variables) if isinstance(value, str) else value for key, value in mapping.items()}
