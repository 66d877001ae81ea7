"""Canonical collection models shared by every interchange format.

Importers (Postman, native backup) produce these models and exporters
(Postman, OpenAPI, Markdown, native backup) consume them, so no format
needs to know about any other.
"""

import json
import logging
import uuid
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "GRAPHQL")
DEFAULT_REQUEST_NAME = "Untitled Request"


def generate_id() -> str:
    return str(uuid.uuid4())


def dump_mapping(mapping: dict) -> str:
    """Serialize a header/query mapping the way the canonical model stores it."""
    return json.dumps(mapping, indent=2, ensure_ascii=False)


def scalar_text(value: Any) -> str:
    """Render a JSON scalar the way it appears in JSON text (true, 3, null)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def parse_mapping(text: str | dict | None) -> dict:
    """Decode a JSON object string, treating anything malformed as empty."""
    if isinstance(text, dict):
        return dict(text)
    if not text:
        return {}
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        logger.debug("Ignoring malformed mapping: %.40r", text)
        return {}
    if not isinstance(data, dict):
        logger.debug("Ignoring non-object mapping: %.40r", text)
        return {}
    return data


class CanonicalModel(BaseModel):
    # camelCase on the wire, snake_case in Python; unknown keys survive backups
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class Request(CanonicalModel):
    """A single saved API request."""

    id: str = Field(default_factory=generate_id)
    name: str = DEFAULT_REQUEST_NAME
    method: str = "GET"
    url: str = ""
    headers: str = "{}"  # JSON object string: name -> value
    body: str = ""
    query_params: str = "{}"  # JSON object string: name -> value
    folder_id: str | None = None
    description: str = ""
    response: str = ""
    created_at: str | None = None

    @field_validator("headers", "query_params", mode="before")
    @classmethod
    def _serialize_mapping(cls, value: Any) -> Any:
        if value is None:
            return "{}"
        if isinstance(value, dict):
            return dump_mapping(value)
        return value

    @field_validator("url", "body", "description", "response", mode="before")
    @classmethod
    def _empty_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def header_map(self) -> dict:
        return parse_mapping(self.headers)

    @property
    def query_map(self) -> dict:
        return parse_mapping(self.query_params)


class Folder(CanonicalModel):
    """A folder grouping requests; ``parent_id`` links nested folders."""

    id: str = Field(default_factory=generate_id)
    name: str = "Folder"
    is_open: bool = True
    parent_id: str | None = None
    description: str = ""

    @field_validator("description", mode="before")
    @classmethod
    def _empty_text(cls, value: Any) -> Any:
        return "" if value is None else value


class Collection(CanonicalModel):
    """Requests, folders and variables as held by the calling application."""

    requests: list[Request] = []
    folders: list[Folder] = []
    variables: dict[str, Any] = {}
    collection_name: str | None = None


class ImportOutcome(BaseModel):
    """Result of an import: either the imported collection or an error message."""

    success: bool
    format: str | None = None
    error: str | None = None
    requests: list[Request] = []
    folders: list[Folder] = []
    variables: dict[str, Any] = {}
    collection_name: str | None = None

    @classmethod
    def from_collection(cls, collection: Collection, format: str) -> "ImportOutcome":
        return cls(
            success=True,
            format=format,
            requests=collection.requests,
            folders=collection.folders,
            variables=collection.variables,
            collection_name=collection.collection_name,
        )

    @classmethod
    def failure(cls, error: str, format: str | None = None) -> "ImportOutcome":
        return cls(success=False, format=format, error=error)


class ExportOutcome(BaseModel):
    """Result of an export: the exported text, or an error message."""

    success: bool
    format: str
    content: str = ""
    error: str | None = None


def coerce_requests(requests: Iterable[Request | dict]) -> list[Request]:
    """Accept canonical models or their plain-dict (camelCase) form."""
    return [r if isinstance(r, Request) else Request.model_validate(r) for r in requests]


def coerce_folders(folders: Iterable[Folder | dict] | None) -> list[Folder]:
    return [f if isinstance(f, Folder) else Folder.model_validate(f) for f in folders or ()]
