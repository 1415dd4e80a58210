from __future__ import annotations

import json
from typing import Any, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from gateway.core.errors import InvalidRequestError

INVALID_JSON = "Request body must be valid JSON"

ModelT = TypeVar("ModelT", bound=BaseModel)


async def read_json_body(request: Request) -> Any:
    """Parsed JSON body, None when empty; 400 for anything that is not JSON."""
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise InvalidRequestError(INVALID_JSON) from None


def parse_body(model: type[ModelT], payload: Any) -> ModelT:
    """Validate *payload*, treating each ill-typed field as absent.

    Only the offending fields are dropped, so a bad optional value never
    hides a good required one.  A payload that is not an object yields an
    empty model.
    """
    if not isinstance(payload, dict):
        return model()
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        invalid = {err["loc"][0] for err in exc.errors() if err["loc"]}
    return model.model_validate(
        {key: value for key, value in payload.items() if key not in invalid}
    )
