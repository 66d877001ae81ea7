"""OpenAPI 3.0 exporter.

Builds an OpenAPI document from canonical requests: paths grouped in the
order requests are seen, query and path parameters, security schemes
detected from Authorization headers, and request body schemas inferred
from example payloads. Responses are not inferred; every operation gets
the same generic 200/400/500 set.
"""

import json
import logging
import re
from typing import Iterable
from urllib.parse import urlsplit

import yaml

from gostman_interchange.errors import MalformedInputError
from gostman_interchange.options import OpenAPIExportOptions, coerce_options

from .base import Request, coerce_requests
from .schema import infer_schema

logger = logging.getLogger(__name__)

OPENAPI_VERSION = "3.0.3"
HTTP_METHODS = ("get", "post", "put", "delete", "patch", "options", "head", "trace")
DEFAULT_PORTS = {"http": 80, "https": 443}

_COLON_PARAM = re.compile(r":([a-zA-Z0-9_]+)")
# {name} placeholders, but not {{variable}} references
_PATH_PARAM = re.compile(r"(?<!\{)\{([^{}]+)\}(?!\})")

SECURITY_SCHEMES = {
    "Bearer ": ("bearerAuth", {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}),
    "Basic ": ("basicAuth", {"type": "http", "scheme": "basic"}),
    "ApiKey ": ("apiKeyAuth", {"type": "apiKey", "in": "header", "name": "Authorization"}),
}

DEFAULT_RESPONSES = {
    "200": {"description": "Successful response"},
    "400": {"description": "Bad request"},
    "500": {"description": "Server error"},
}


class _NoAliasDumper(yaml.SafeDumper):
    def ignore_aliases(self, data):
        return True


def export_to_openapi(
    requests: Iterable[Request | dict],
    options: OpenAPIExportOptions | dict | None = None,
) -> dict:
    """Convert canonical requests into an OpenAPI 3.0 document."""
    options = coerce_options(OpenAPIExportOptions, options)
    spec: dict = {
        "openapi": OPENAPI_VERSION,
        "info": {
            "title": options.title,
            "version": options.version,
            "description": options.description,
        },
        "servers": [{"url": options.base_url}] if options.base_url else [],
        "paths": {},
        "components": {"schemas": {}, "securitySchemes": {}},
    }

    paths: dict[str, dict] = spec["paths"]
    for request in coerce_requests(requests):
        if not request.url:
            continue

        path = _resolve_path(request.url, spec["servers"], register_origin=not options.base_url)
        operations = paths.setdefault(path, {})

        method = (request.method or "GET").lower()
        if method not in HTTP_METHODS:
            logger.debug("Skipping %r: %s is not an OpenAPI method", request.name, method.upper())
            continue

        headers = request.header_map
        _detect_security(headers, spec["components"]["securitySchemes"])
        operations[method] = _build_operation(request, method, path, headers)

    logger.info("Exported %d paths to OpenAPI", len(paths))
    return spec


def export_to_openapi_json(
    requests: Iterable[Request | dict],
    options: OpenAPIExportOptions | dict | None = None,
) -> str:
    return json.dumps(export_to_openapi(requests, options), indent=2, ensure_ascii=False)


def export_to_openapi_yaml(
    requests: Iterable[Request | dict],
    options: OpenAPIExportOptions | dict | None = None,
) -> str:
    return to_yaml(export_to_openapi(requests, options))


def to_yaml(data: object) -> str:
    """Dump to YAML with 2-space indent, unbounded line width and no anchors."""
    return yaml.dump(
        data,
        Dumper=_NoAliasDumper,
        indent=2,
        width=float("inf"),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


def parse_yaml(text: str) -> object:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise MalformedInputError(f"Invalid YAML: {e}") from e


def _resolve_path(url: str, servers: list[dict], register_origin: bool) -> str:
    origin = _origin(url)
    if origin is None:
        path = url
    else:
        path = urlsplit(url).path
        # First origin seen wins; later requests never replace it
        if register_origin and not any(s["url"] == origin for s in servers):
            servers.append({"url": origin})

    if not path.startswith("/"):
        path = "/" + path
    return _COLON_PARAM.sub(r"{\1}", path)


def _origin(url: str) -> str | None:
    """Return ``scheme://host[:port]`` for an absolute URL, else None.

    Default ports (80 for http, 443 for https) are left out.
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    if not parts.scheme or not parts.hostname:
        return None
    scheme = parts.scheme.lower()
    origin = f"{scheme}://{parts.hostname}"
    if port is None or DEFAULT_PORTS.get(scheme) == port:
        return origin
    return f"{origin}:{port}"


def _header(headers: dict, name: str) -> str | None:
    for key, value in headers.items():
        if str(key).lower() == name:
            return str(value)
    return None


def _detect_security(headers: dict, schemes: dict) -> None:
    auth = _header(headers, "authorization")
    if not auth:
        return
    for prefix, (scheme_id, scheme) in SECURITY_SCHEMES.items():
        if auth.startswith(prefix):
            schemes[scheme_id] = dict(scheme)
            return


def _build_operation(request: Request, method: str, path: str, headers: dict) -> dict:
    query_params = [
        {
            "name": name,
            "in": "query",
            "schema": {"type": _scalar_type(value), "example": value},
            "required": False,
        }
        for name, value in request.query_map.items()
    ]

    query_names = {p["name"] for p in query_params}
    path_params = []
    for name in _PATH_PARAM.findall(path):
        if name in query_names or any(p["name"] == name for p in path_params):
            continue
        path_params.append({"name": name, "in": "path", "required": True, "schema": {"type": "string"}})

    operation = {
        "summary": request.name or f"{method.upper()} {path}",
        "description": request.description or f"Request to {path}",
        "parameters": query_params + path_params,
    }
    request_body = _build_request_body(request.body, headers)
    if request_body:
        operation["requestBody"] = request_body
    operation["responses"] = {code: dict(resp) for code, resp in DEFAULT_RESPONSES.items()}
    return operation


def _build_request_body(body: str, headers: dict) -> dict | None:
    if not body.strip():
        return None

    content_type = "application/json"
    declared = _header(headers, "content-type")
    if declared:
        content_type = declared.split(";")[0].strip() or content_type

    schema: dict = {"type": "string"}
    example: object = body
    if content_type == "application/json":
        try:
            example = json.loads(body)
            schema = infer_schema(example)
        except ValueError:
            logger.debug("Request body is not valid JSON, describing it as a string")

    return {"content": {content_type: {"schema": schema, "example": example}}}


def _scalar_type(value: object) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return "number"
    return "string"
