"""Export formats and the immutable per-call option models for each exporter."""

from enum import Enum
from typing import Any, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from gostman_interchange.errors import UnsupportedFormatError

EXPORT_BASENAME = "gostman-export"

DEFAULT_OPENAPI_TITLE = "Gostman API Collection"
DEFAULT_OPENAPI_VERSION = "1.0.0"
DEFAULT_OPENAPI_DESCRIPTION = "API collection exported from Gostman"
DEFAULT_POSTMAN_NAME = "Gostman Collection"
DEFAULT_POSTMAN_DESCRIPTION = "Collection exported from Gostman"
DEFAULT_MARKDOWN_TITLE = "API Documentation"
DEFAULT_MARKDOWN_DESCRIPTION = "Auto-generated documentation from Gostman"


class ExportFormat(str, Enum):
    OPENAPI_JSON = "openapi-json"
    OPENAPI_YAML = "openapi-yaml"
    POSTMAN = "postman"
    MARKDOWN = "markdown"
    GOSTMAN = "gostman"

    @classmethod
    def parse(cls, value: "str | ExportFormat") -> "ExportFormat":
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedFormatError(str(value)) from None

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def filename(self) -> str:
        """Default download file name, e.g. ``gostman-export.yaml``."""
        return f"{EXPORT_BASENAME}.{self.extension}"


_EXTENSIONS = {
    ExportFormat.OPENAPI_JSON: "json",
    ExportFormat.OPENAPI_YAML: "yaml",
    ExportFormat.POSTMAN: "json",
    ExportFormat.MARKDOWN: "md",
    ExportFormat.GOSTMAN: "json",
}


class ExportOptions(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class OpenAPIExportOptions(ExportOptions):
    title: str = DEFAULT_OPENAPI_TITLE
    version: str = DEFAULT_OPENAPI_VERSION
    description: str = DEFAULT_OPENAPI_DESCRIPTION
    base_url: str = Field(default="", validation_alias=AliasChoices("base_url", "baseUrl"))


class PostmanExportOptions(ExportOptions):
    name: str = Field(default=DEFAULT_POSTMAN_NAME, validation_alias=AliasChoices("name", "title"))
    description: str = DEFAULT_POSTMAN_DESCRIPTION


class MarkdownExportOptions(ExportOptions):
    title: str = DEFAULT_MARKDOWN_TITLE
    description: str = DEFAULT_MARKDOWN_DESCRIPTION
    base_url: str = Field(default="", validation_alias=AliasChoices("base_url", "baseUrl"))


OptionsT = TypeVar("OptionsT", bound=ExportOptions)


def coerce_options(options_cls: type[OptionsT], options: Any) -> OptionsT:
    """Build ``options_cls`` from None, a dict, or another options model.

    Keys the target model does not know are ignored, so one set of CLI
    options can feed every exporter.
    """
    if options is None:
        return options_cls()
    if isinstance(options, options_cls):
        return options
    if isinstance(options, BaseModel):
        options = options.model_dump()
    return options_cls.model_validate(options)
