"""Single entry point for importing and exporting collections.

Import auto-detects the format and export dispatches on the format the
caller asks for. Neither raises: every failure comes back as an
unsuccessful ImportOutcome or ExportOutcome.
"""

import json
import logging
from typing import Any, Iterable

from pydantic import ValidationError

from gostman_interchange.errors import InterchangeError, UnsupportedFormatError
from gostman_interchange.formats.base import ExportOutcome, Folder, ImportOutcome, Request
from gostman_interchange.formats.detect import Format, detect_format
from gostman_interchange.formats.markdown import export_to_markdown
from gostman_interchange.formats.native import export_to_gostman, parse_gostman_backup
from gostman_interchange.formats.openapi import export_to_openapi_json, export_to_openapi_yaml
from gostman_interchange.formats.postman import export_to_postman, parse_postman_collection
from gostman_interchange.options import ExportFormat

logger = logging.getLogger(__name__)

UNKNOWN_FORMAT_ERROR = "Unknown format. Please upload a valid Postman collection or Gostman export."

__all__ = ["detect_format", "import_collection", "export_collection"]


def import_collection(text: str, fmt: str = "auto") -> ImportOutcome:
    """Import a collection from JSON text.

    With ``fmt="auto"`` the format is detected first; otherwise the caller's
    format is trusted.
    """
    if fmt == "auto":
        fmt = detect_format(text)
    logger.debug("Importing document as %s", fmt)

    if fmt == Format.POSTMAN:
        return parse_postman_collection(text)
    elif fmt == Format.GOSTMAN:
        return parse_gostman_backup(text)
    elif fmt == Format.UNKNOWN:
        return ImportOutcome.failure(UNKNOWN_FORMAT_ERROR, format=Format.UNKNOWN.value)
    else:
        name = fmt.value if isinstance(fmt, Format) else str(fmt)
        return ImportOutcome.failure(f'Format "{name}" is not supported yet.', format=name)


def export_collection(
    fmt: str | ExportFormat,
    requests: Iterable[Request | dict],
    folders: Iterable[Folder | dict] | None = None,
    variables: dict[str, Any] | None = None,
    options: Any = None,
) -> ExportOutcome:
    """Export a collection as text in the requested format.

    Never raises for an unknown format or bad options: the outcome carries
    a descriptive error instead.
    """
    try:
        fmt = ExportFormat.parse(fmt)
    except UnsupportedFormatError as e:
        logger.warning("Export requested in unsupported format %r", e.format)
        return ExportOutcome(success=False, format=e.format, error=str(e))

    requests = list(requests)
    folders = list(folders or [])
    try:
        if fmt is ExportFormat.OPENAPI_JSON:
            content = export_to_openapi_json(requests, options)
        elif fmt is ExportFormat.OPENAPI_YAML:
            content = export_to_openapi_yaml(requests, options)
        elif fmt is ExportFormat.POSTMAN:
            content = json.dumps(export_to_postman(requests, folders, options), indent=2, ensure_ascii=False)
        elif fmt is ExportFormat.MARKDOWN:
            content = export_to_markdown(requests, options, folders)
        else:
            content = json.dumps(export_to_gostman(requests, folders, variables), indent=2, ensure_ascii=False)
    except (InterchangeError, ValidationError) as e:
        return ExportOutcome(success=False, format=fmt.value, error=f"Error generating export: {e}")
    return ExportOutcome(success=True, format=fmt.value, content=content)
