"""Pydantic models for the Postman Collection v2.1 envelope.

Only the parts of the format the adapter reads or writes are typed.
Everything else is kept as extra data, so collections written by other
tools still validate and nothing the adapter ignores gets rejected.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

POSTMAN_SCHEMA_URL = "https://schema.getpostman.com/json/collection/v2.1.0/collection.json"


class PostmanModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class KeyValue(PostmanModel):
    """A header, query parameter, form field or auth parameter."""

    key: str | None = None
    value: Any = None
    disabled: bool | None = None
    type: str | None = None
    description: Any = None

    @property
    def enabled(self) -> bool:
        return not self.disabled and bool(self.key)

    @property
    def text(self) -> str:
        return "" if self.value is None else str(self.value)


class Url(PostmanModel):
    raw: str | None = None
    protocol: str | None = None
    host: list[str] | str | None = None
    port: str | int | None = None
    path: list[Any] | str | None = None
    query: list[KeyValue] | None = None
    hash: str | None = None
    variable: list[KeyValue] | None = None


class Body(PostmanModel):
    mode: str | None = None
    raw: str | None = None
    urlencoded: list[KeyValue] | None = None
    formdata: list[KeyValue] | None = None
    graphql: dict[str, Any] | None = None
    options: dict[str, Any] | None = None
    disabled: bool | None = None


class Auth(PostmanModel):
    """Request auth; the parameters live under a key named after ``type``.

    The parameters are validated together with the rest of the collection,
    so a malformed entry fails the envelope instead of the import walk.
    """

    type: str = "noauth"
    _parameters: list[KeyValue] = PrivateAttr(default_factory=list)

    @model_validator(mode="after")
    def _collect_parameters(self) -> "Auth":
        params = (self.model_extra or {}).get(self.type)
        if isinstance(params, dict):
            # Collection v2.0 stored auth parameters as a plain mapping
            self._parameters = [KeyValue(key=key, value=value) for key, value in params.items()]
        elif isinstance(params, list):
            self._parameters = [KeyValue.model_validate(p) for p in params if isinstance(p, dict)]
        return self

    def parameters(self) -> list[KeyValue]:
        return list(self._parameters)


class PostmanRequest(PostmanModel):
    method: str | None = None
    url: Url | str | None = None
    header: list[KeyValue] | str | None = None
    body: Body | None = None
    auth: Auth | None = None
    description: Any = None


class Item(PostmanModel):
    """A request item, or a folder (item group) when ``item`` is present."""

    id: str | None = None
    name: str | None = None
    description: Any = None
    request: PostmanRequest | str | None = None
    item: list["Item"] | None = None
    response: list[Any] | None = None

    @property
    def is_folder(self) -> bool:
        return self.item is not None


class Info(PostmanModel):
    name: str | None = None
    postman_id: str | None = Field(default=None, alias="_postman_id")
    description: Any = None
    schema_: str | None = Field(default=None, alias="schema")


class PostmanCollection(PostmanModel):
    info: Info = Field(default_factory=Info)
    item: list[Item] = []
    variable: list[KeyValue] | None = None
    auth: Auth | None = None

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
