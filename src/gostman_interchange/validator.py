"""Validates OpenAPI documents against the OpenAPI specification.

Validation and ``$ref`` dereferencing walk the whole document, so they run
in a worker thread and are exposed as coroutines: callers can await them,
bound them with ``asyncio.wait_for`` or cancel them. The document passed in
is never mutated.
"""

import asyncio
import copy
import logging
from typing import Any

from openapi_spec_validator import (
    OpenAPIV2SpecValidator,
    OpenAPIV30SpecValidator,
    OpenAPIV31SpecValidator,
)
from pydantic import BaseModel

from gostman_interchange.errors import MalformedInputError
from gostman_interchange.formats.openapi import parse_yaml
from gostman_interchange.resolver import resolve_refs

logger = logging.getLogger(__name__)


class ValidationResult(BaseModel):
    valid: bool
    spec: dict[str, Any] | None = None
    errors: list[str] = []


async def validate_openapi(spec: dict | str, dereference: bool = False) -> ValidationResult:
    """Validate an OpenAPI document given as a dict or JSON/YAML text.

    With ``dereference=True`` a valid document is returned in ``spec`` with
    its ``$ref`` pointers inlined; an unresolvable pointer makes the
    document invalid.
    """
    if isinstance(spec, str):
        try:
            spec = parse_yaml(spec)
        except MalformedInputError as e:
            return ValidationResult(valid=False, errors=[str(e)])
    if not isinstance(spec, dict):
        return ValidationResult(valid=False, errors=["OpenAPI document must be a mapping"])

    errors = await asyncio.to_thread(validate_spec, copy.deepcopy(spec))
    if errors:
        logger.info("OpenAPI document has %d validation errors", len(errors))
        return ValidationResult(valid=False, spec=spec, errors=errors)

    if dereference:
        try:
            spec = await asyncio.to_thread(resolve_refs, spec)
        except MalformedInputError as e:
            return ValidationResult(valid=False, spec=spec, errors=[str(e)])
    return ValidationResult(valid=True, spec=spec)


async def dereference_openapi(spec: dict | str) -> dict:
    """Return a copy of an OpenAPI document with every internal ``$ref`` inlined.

    Raises:
        MalformedInputError: If the text cannot be parsed, the document is
            not a mapping, or a reference cannot be resolved.
    """
    if isinstance(spec, str):
        spec = parse_yaml(spec)
    if not isinstance(spec, dict):
        raise MalformedInputError("OpenAPI document must be a mapping")
    return await asyncio.to_thread(resolve_refs, spec)


def validate_spec(spec: dict) -> list[str]:
    """Return validation error messages for ``spec``; empty when it is valid."""
    version = str(spec.get("openapi") or "")
    if version.startswith("3.1"):
        validator_cls = OpenAPIV31SpecValidator
    elif "swagger" in spec:
        validator_cls = OpenAPIV2SpecValidator
    else:
        validator_cls = OpenAPIV30SpecValidator
    return [error.message for error in validator_cls(spec).iter_errors()]
