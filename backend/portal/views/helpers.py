"""Request parsing and response helpers shared by the API handlers."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ValidationError
from starlette.responses import JSONResponse

from vault.auth.models import ClientInfo
from vault.errors import ValidationFailure

if TYPE_CHECKING:
    from starlette.requests import Request

    from portal.views.schemas import ApiRequest

RequestT = TypeVar("RequestT", bound="ApiRequest")


async def _parse_json_body(request: Request) -> dict | None:
    """Parse JSON body from request. Return None on failure."""
    try:
        body = await request.json()
    except (ValueError, json.JSONDecodeError):  # fmt: skip
        return None
    if not isinstance(body, dict):
        return None
    return body


def _field_errors(exc: ValidationError) -> dict[str, str]:
    """Map error locations to messages. Input values are never included."""
    fields: dict[str, str] = {}
    for error in exc.errors(include_input=False, include_url=False):
        loc = ".".join(str(part) for part in error["loc"]) or "body"
        fields.setdefault(loc, error["msg"])
    return fields


async def parse_body(request: Request, model: type[RequestT]) -> RequestT:
    """Validate the JSON body against ``model`` or raise ValidationFailure."""
    body = await _parse_json_body(request)
    if body is None:
        raise ValidationFailure("Invalid JSON body")
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise ValidationFailure(model.invalid_message, _field_errors(e)) from e


def client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def dump(value: BaseModel | list[BaseModel]) -> Any:  # noqa: ANN401
    """Serialize API models with camelCase keys and ``id`` primary keys."""
    if isinstance(value, list):
        return [item.model_dump(mode="json", by_alias=True) for item in value]
    return value.model_dump(mode="json", by_alias=True)


def json_response(value: BaseModel | list[BaseModel], status_code: int = 200) -> JSONResponse:
    return JSONResponse(dump(value), status_code=status_code)
