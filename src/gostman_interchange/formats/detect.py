"""Auto-detect the interchange format of an imported document."""

import json
import logging
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

POSTMAN_SCHEMA_MARKER = "postman.com/json/collection"


class Format(str, Enum):
    POSTMAN = "postman"
    OPENAPI = "openapi"
    GOSTMAN = "gostman"
    UNKNOWN = "unknown"


def detect_format(text: str | dict) -> Format:
    """Detect the format of a JSON document.

    Returns one of Format.POSTMAN, Format.OPENAPI, Format.GOSTMAN or
    Format.UNKNOWN. Never raises: anything that is not a JSON object is
    unknown. YAML is not auto-detected.
    """
    if isinstance(text, dict):
        data: Any = text
    else:
        try:
            data = json.loads(text)
        except (ValueError, TypeError, RecursionError):
            logger.debug("Input is not JSON, format unknown")
            return Format.UNKNOWN

    if not isinstance(data, dict):
        return Format.UNKNOWN

    # First match wins: a document matching several heuristics resolves in this order
    info = data.get("info")
    schema = info.get("schema") if isinstance(info, dict) else None
    if isinstance(schema, str) and POSTMAN_SCHEMA_MARKER in schema:
        return Format.POSTMAN

    if "openapi" in data or ("swagger" in data and "info" in data):
        return Format.OPENAPI

    if "gostman" in data or ("version" in data and "requests" in data):
        return Format.GOSTMAN

    return Format.UNKNOWN
