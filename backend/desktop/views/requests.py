"""JSON body parsing shared by the API handlers."""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel, ValidationError

from core.errors import InvalidInputError

if TYPE_CHECKING:
    from starlette.requests import Request

ModelT = TypeVar("ModelT", bound=BaseModel)


class BodyTooLargeError(InvalidInputError):
    status_code = HTTPStatus.REQUEST_ENTITY_TOO_LARGE


async def parse_body(request: Request, model: type[ModelT]) -> ModelT:
    """Parse the request body into ``model``.

    An empty body is treated as ``{}`` so that every field falls back to its
    default. Raises InvalidInputError for malformed JSON, a non-object body,
    or fields of the wrong type.
    """
    max_bytes: int = request.app.state.settings.max_body_bytes
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > max_bytes:
        raise BodyTooLargeError("Request body too large")

    # chunked bodies carry no length header
    raw_body = await request.body()
    if len(raw_body) > max_bytes:
        raise BodyTooLargeError("Request body too large")

    if not raw_body.strip():
        body = {}
    else:
        try:
            body = json.loads(raw_body)
        except (ValueError, UnicodeDecodeError):
            raise InvalidInputError("Invalid JSON body") from None

    if not isinstance(body, dict):
        raise InvalidInputError("Invalid JSON body")

    try:
        return model.model_validate(body)
    except ValidationError:
        raise InvalidInputError("Invalid request body") from None
