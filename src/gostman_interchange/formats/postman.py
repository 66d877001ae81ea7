"""Postman Collection v2.1 adapter.

Imports Postman collections into the canonical model (folders become a
flat list linked by ``parent_id``) and exports the canonical model back
into a collection with one flat item group per folder. Empty folders are
dropped on export.
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Iterable

from pydantic import ValidationError

from gostman_interchange.errors import MalformedInputError
from gostman_interchange.options import PostmanExportOptions, coerce_options

from .base import (
    DEFAULT_REQUEST_NAME,
    METHODS,
    Collection,
    Folder,
    ImportOutcome,
    Request,
    coerce_folders,
    coerce_requests,
    dump_mapping,
    generate_id,
    scalar_text,
)
from .detect import Format
from .postman_models import (
    POSTMAN_SCHEMA_URL,
    Body,
    Info,
    Item,
    KeyValue,
    PostmanCollection,
    PostmanRequest,
    Url,
)

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION_NAME = "Imported Collection"

_URL_PATTERN = re.compile(
    r"^(?:(?P<protocol>[A-Za-z][A-Za-z0-9+.-]*)://)?"
    r"(?P<host>[^/?#]*)"
    r"(?P<path>[^?#]*)"
    r"(?:\?(?P<query>[^#]*))?"
    r"(?:#(?P<hash>.*))?$",
    re.DOTALL,
)


def parse_postman_collection(text: str | dict) -> ImportOutcome:
    """Parse Postman collection JSON text; failures come back as an unsuccessful outcome."""
    try:
        data = json.loads(text) if isinstance(text, str) else text
        collection = import_postman_collection(data)
    except json.JSONDecodeError as e:
        return ImportOutcome.failure(f"Invalid JSON: {e}", format=Format.POSTMAN.value)
    except MalformedInputError as e:
        return ImportOutcome.failure(str(e), format=Format.POSTMAN.value)
    return ImportOutcome.from_collection(collection, Format.POSTMAN.value)


def import_postman_collection(collection: dict | PostmanCollection) -> Collection:
    """Convert a Postman collection into canonical requests and folders."""
    if not isinstance(collection, PostmanCollection):
        collection = _validate_collection(collection)

    requests: list[Request] = []
    folders: list[Folder] = []
    created_at = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    try:
        _parse_items(collection.item, None, requests, folders, created_at)
    except ValidationError as e:
        raise MalformedInputError(f"Invalid Postman collection: {e}") from e

    name = collection.info.name or DEFAULT_COLLECTION_NAME
    logger.info("Imported Postman collection %r: %d requests, %d folders", name, len(requests), len(folders))
    return Collection(requests=requests, folders=folders, collection_name=name)


def _validate_collection(data: Any) -> PostmanCollection:
    if not isinstance(data, dict):
        raise MalformedInputError("Invalid Postman collection: expected a JSON object")
    try:
        return PostmanCollection.model_validate(data)
    except ValidationError as e:
        raise MalformedInputError(f"Invalid Postman collection: {e}") from e


def _parse_items(
    items: list[Item],
    parent_id: str | None,
    requests: list[Request],
    folders: list[Folder],
    created_at: str,
) -> None:
    """Recursively parse items; a folder is emitted before its children."""
    for item in items:
        if item.is_folder:
            folder = Folder(
                id=generate_id(),
                name=item.name or item.id or "Folder",
                is_open=True,
                parent_id=parent_id,
                description=_description(item.description),
            )
            folders.append(folder)
            _parse_items(item.item, folder.id, requests, folders, created_at)
        elif item.request is not None:
            requests.append(_parse_request(item, parent_id, created_at))
        else:
            logger.debug("Skipping item %r without a request", item.name)


def _parse_request(item: Item, folder_id: str | None, created_at: str) -> Request:
    req = item.request
    if isinstance(req, str):
        req = PostmanRequest(url=req)

    url = url_to_string(req.url)
    url_obj = req.url if isinstance(req.url, Url) else None
    if url_obj is None or (url_obj.query is None and url_obj.raw):
        url_obj = parse_url(url)

    headers = _parse_headers(req.header)
    if req.auth:
        headers.update(_enabled_pairs(req.auth.parameters()))

    method = (req.method or "GET").upper()
    if method not in METHODS:
        logger.debug("Unsupported method %r on %r, using GET", method, item.name)
        method = "GET"

    return Request(
        id=item.id or generate_id(),
        name=item.name or url_path(url_obj) or DEFAULT_REQUEST_NAME,
        method=method,
        url=url,
        headers=dump_mapping(headers),
        body=_parse_body(req.body),
        query_params=dump_mapping(_enabled_pairs(url_obj.query)),
        folder_id=folder_id,
        description=_description(item.description) or _description(req.description),
        created_at=created_at,
    )


def _parse_headers(header: list[KeyValue] | str | None) -> dict[str, str]:
    if isinstance(header, str):
        # v2.1 also allows headers as a single "Key: value" block
        pairs = (line.partition(":") for line in header.splitlines())
        return {key.strip(): value.strip() for key, sep, value in pairs if sep and key.strip()}
    return _enabled_pairs(header)


def _parse_body(body: Body | None) -> str:
    if body is None:
        return ""
    if body.mode == "raw":
        return body.raw or ""
    if body.mode in ("urlencoded", "formdata"):
        return dump_mapping(_enabled_pairs(getattr(body, body.mode)))
    if body.mode == "graphql":
        return str((body.graphql or {}).get("query") or "")
    return ""


def _enabled_pairs(entries: Iterable[KeyValue] | None) -> dict[str, str]:
    return {entry.key: entry.text for entry in entries or () if entry.enabled}


def _description(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        return str(value.get("content") or "")
    return ""


def parse_url(raw: str) -> Url:
    """Split a raw URL string (``{{vars}}`` allowed) into Postman URL parts."""
    match = _URL_PATTERN.match(raw)
    host, port = match["host"], None
    if ":" in host:
        name, _, candidate = host.rpartition(":")
        if candidate.isdigit() or candidate.startswith("{{"):
            host, port = name, candidate
    path = match["path"]
    return Url(
        raw=raw or None,
        protocol=match["protocol"],
        host=host.split(".") if host else None,
        port=port,
        path=path.lstrip("/").split("/") if path else None,
        query=_parse_query(match["query"]) if match["query"] else None,
        hash=match["hash"],
    )


def _parse_query(query: str) -> list[KeyValue]:
    params = []
    for pair in query.split("&"):
        if not pair:
            continue
        key, sep, value = pair.partition("=")
        params.append(KeyValue(key=key, value=value if sep else None))
    return params


def url_to_string(url: Url | str | None) -> str:
    """Return the URL as written (``raw``), or rebuild it from its parts."""
    if url is None:
        return ""
    if isinstance(url, str):
        return url
    if url.raw:
        return url.raw

    text = f"{url.protocol}://" if url.protocol else ""
    text += ".".join(url.host) if isinstance(url.host, list) else (url.host or "")
    if url.port:
        text += f":{url.port}"
    text += url_path(url)
    query = [q for q in url.query or () if not q.disabled and q.key is not None]
    if query:
        text += "?" + "&".join(q.key if q.value is None else f"{q.key}={q.text}" for q in query)
    if url.hash:
        text += f"#{url.hash}"
    return text


def url_path(url: Url | str) -> str:
    """Return the path component of a URL as ``/a/b``, or ``""`` when it has none."""
    if isinstance(url, str):
        url = parse_url(url)
    elif url.path is None and url.raw:
        url = parse_url(url.raw)
    path = url.path
    if not path:
        return ""
    if isinstance(path, str):
        return path if path.startswith("/") else f"/{path}"
    return "/" + "/".join(_segment(s) for s in path)


def _segment(segment: Any) -> str:
    if isinstance(segment, dict):
        return str(segment.get("value") or "")
    return str(segment)


def export_to_postman(
    requests: Iterable[Request | dict],
    folders: Iterable[Folder | dict] | None = None,
    options: PostmanExportOptions | dict | None = None,
) -> dict:
    """Convert canonical requests and folders into a Postman v2.1 collection dict.

    Every folder becomes one item group at the collection root, in folder
    order; ``parent_id`` nesting is not carried over. Requests keep their
    given order: root requests first, then the folder groups. Folders with
    no request assigned to them are omitted.
    """
    options = coerce_options(PostmanExportOptions, options)
    requests = coerce_requests(requests)
    folders = coerce_folders(folders)

    folder_items: dict[str, list[Item]] = {folder.id: [] for folder in folders}
    root_items: list[Item] = []
    for request in requests:
        item = _export_request(request)
        if request.folder_id and request.folder_id in folder_items:
            folder_items[request.folder_id].append(item)
        else:
            root_items.append(item)

    groups = []
    for folder in folders:
        items = folder_items.pop(folder.id, None)
        if not items:
            logger.debug("Omitting empty folder %r", folder.name)
            continue
        groups.append(Item(id=folder.id, name=folder.name, description=folder.description, item=items))

    collection = PostmanCollection(
        info=Info(name=options.name, description=options.description, schema_=POSTMAN_SCHEMA_URL),
        item=root_items + groups,
    )
    logger.info("Exported %d requests to Postman collection %r", len(requests), options.name)
    return collection.to_json()


def _export_request(request: Request) -> Item:
    body_options = None
    if request.body.strip().startswith("{"):
        body_options = {"raw": {"language": "json"}}

    return Item(
        id=request.id,
        name=request.name or DEFAULT_REQUEST_NAME,
        description=request.description,
        request=PostmanRequest(
            method=request.method or "GET",
            header=[KeyValue(key=str(key), value=scalar_text(value)) for key, value in request.header_map.items()],
            body=Body(mode="raw", raw=request.body, options=body_options),
            url=_export_url(request.url, request.query_map) if request.url else None,
        ),
        response=[],
    )


def _export_url(raw: str, query_params: dict) -> Url:
    url = parse_url(raw)
    query = list(url.query or [])
    present = {q.key for q in query}
    query += [KeyValue(key=str(key), value=scalar_text(value)) for key, value in query_params.items() if key not in present]
    url.query = query or None
    return url
