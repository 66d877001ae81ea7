"""Native Gostman backup format.

A backup is ``{version, exportedAt, gostman: {requests, folders, variables}}``.
Everything is kept except captured responses, which are always cleared.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from pydantic import ValidationError

from gostman_interchange.errors import MalformedInputError

from .base import Collection, Folder, ImportOutcome, Request, coerce_folders, coerce_requests
from .detect import Format

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0.0"


def export_to_gostman(
    requests: Iterable[Request | dict],
    folders: Iterable[Folder | dict] | None = None,
    variables: dict[str, Any] | None = None,
) -> dict:
    """Build a native backup with every request's response cleared."""
    exported_at = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return {
        "version": BACKUP_VERSION,
        "exportedAt": exported_at,
        "gostman": {
            "requests": [
                r.model_copy(update={"response": ""}).model_dump(by_alias=True)
                for r in coerce_requests(requests)
            ],
            "folders": [f.model_dump(by_alias=True) for f in coerce_folders(folders)],
            "variables": dict(variables or {}),
        },
    }


def import_gostman(data: Any) -> Collection:
    """Read a native backup.

    A document whose ``gostman`` key is missing or empty is rejected.
    Folder references that point at no imported folder are moved to the
    root.
    """
    if not isinstance(data, dict) or not data.get("gostman"):
        raise MalformedInputError("Invalid Gostman export format")

    payload = data["gostman"]
    if not isinstance(payload, dict):
        raise MalformedInputError("Invalid Gostman export format")
    try:
        collection = Collection(
            requests=payload.get("requests") or [],
            folders=payload.get("folders") or [],
            variables=payload.get("variables") or {},
        )
    except ValidationError as e:
        raise MalformedInputError(f"Invalid Gostman export format: {e}") from e

    _place_dangling_at_root(collection)
    logger.info("Imported Gostman backup: %d requests, %d folders", len(collection.requests), len(collection.folders))
    return collection


def _place_dangling_at_root(collection: Collection) -> None:
    folder_ids = {folder.id for folder in collection.folders}
    for request in collection.requests:
        if request.folder_id is not None and request.folder_id not in folder_ids:
            logger.debug("Request %r references missing folder %r, placing it at the root", request.name, request.folder_id)
            request.folder_id = None
    for folder in collection.folders:
        if folder.parent_id is not None and folder.parent_id not in folder_ids:
            folder.parent_id = None


def parse_gostman_backup(text: str | dict) -> ImportOutcome:
    """Parse native backup JSON text; failures come back as an unsuccessful outcome."""
    try:
        data = json.loads(text) if isinstance(text, str) else text
        collection = import_gostman(data)
    except json.JSONDecodeError as e:
        return ImportOutcome.failure(f"Invalid JSON: {e}", format=Format.GOSTMAN.value)
    except MalformedInputError as e:
        return ImportOutcome.failure(str(e), format=Format.GOSTMAN.value)
    return ImportOutcome.from_collection(collection, Format.GOSTMAN.value)
