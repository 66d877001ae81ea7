"""Markdown API documentation exporter.

Renders requests grouped by folder into a human-readable document. The
output is meant for people and is never imported back; header values in
tables are cut to 50 characters.
"""

import logging
import re
from typing import Iterable

from gostman_interchange.options import MarkdownExportOptions, coerce_options

from .base import DEFAULT_REQUEST_NAME, Folder, Request, coerce_folders, coerce_requests, scalar_text

logger = logging.getLogger(__name__)

ROOT_GROUP = "root"
HEADER_VALUE_LIMIT = 50

METHOD_BADGES = {
    "GET": "🟢",
    "POST": "🟢",
    "PUT": "🟠",
    "DELETE": "🔴",
    "PATCH": "🟡",
    "HEAD": "🟣",
    "GRAPHQL": "🩷",
}
DEFAULT_BADGE = "⚪"


def export_to_markdown(
    requests: Iterable[Request | dict],
    options: MarkdownExportOptions | dict | None = None,
    folders: Iterable[Folder | dict] | None = None,
) -> str:
    """Render requests as Markdown documentation.

    Requests are grouped by folder in first-seen order. Requests without a
    folder form a group with no heading and no table of contents entry.
    When ``folders`` is given, group headings use folder names instead of
    folder ids.
    """
    options = coerce_options(MarkdownExportOptions, options)
    names = {folder.id: folder.name for folder in coerce_folders(folders)}

    grouped: dict[str, list[Request]] = {}
    for request in coerce_requests(requests):
        grouped.setdefault(request.folder_id or ROOT_GROUP, []).append(request)

    parts = [f"# {options.title}\n\n"]
    if options.description:
        parts.append(f"{options.description}\n\n")
    if options.base_url:
        parts.append(f"**Base URL:** `{options.base_url}`\n\n")
    parts.append("---\n\n")

    parts.append("## Table of Contents\n\n")
    for group_id in grouped:
        if group_id != ROOT_GROUP:
            name = names.get(group_id, group_id)
            parts.append(f"- [{name}](#{anchor(name)})\n")
    parts.append("\n---\n\n")

    for group_id, group_requests in grouped.items():
        if group_id != ROOT_GROUP:
            name = names.get(group_id, group_id)
            parts.append(f'<a id="{anchor(name)}"></a>\n')
            parts.append(f"## {name}\n\n")
        for request in group_requests:
            parts.append(_render_request(request))

    logger.info("Exported %d groups to Markdown", len(grouped))
    return "".join(parts)


def anchor(name: str) -> str:
    """Heading anchor: lower-cased, whitespace runs replaced by hyphens."""
    return re.sub(r"\s+", "-", name.lower())


def _render_request(request: Request) -> str:
    method = (request.method or "GET").upper()
    parts = [
        f"### {request.name or DEFAULT_REQUEST_NAME}\n\n",
        f"{METHOD_BADGES.get(method, DEFAULT_BADGE)} **{method}** `{request.url}`\n\n",
    ]

    if request.description:
        parts.append(f"{request.description}\n\n")

    headers = request.header_map
    if headers:
        parts.append("**Headers:**\n\n")
        parts.append("| Key | Value |\n|-----|-------|\n")
        for key, value in headers.items():
            parts.append(f"| `{key}` | `{scalar_text(value)[:HEADER_VALUE_LIMIT]}` |\n")
        parts.append("\n")

    params = request.query_map
    if params:
        parts.append("**Query Parameters:**\n\n")
        parts.append("| Parameter | Type | Example |\n|-----------|------|---------|\n")
        for key, value in params.items():
            kind = "number" if isinstance(value, (int, float)) and not isinstance(value, bool) else "string"
            parts.append(f"| `{key}` | {kind} | `{scalar_text(value)}` |\n")
        parts.append("\n")

    if request.body.strip():
        parts.append("**Request Body:**\n\n")
        parts.append(f"```json\n{request.body}\n```\n\n")

    parts.append("---\n\n")
    return "".join(parts)
