"""Request validation returning a tagged result.

``validate`` never raises on bad input: it returns ``Valid`` with the parsed
model or ``Invalid`` with the first violated constraint only.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from fastapi import Request
from pydantic import BaseModel, ValidationError

from memecached.services.exceptions import ValidationFailedError

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class Valid(Generic[ModelT]):
    """Successful validation."""

    value: ModelT


@dataclass(frozen=True)
class Invalid:
    """Failed validation: the first offending field and its message."""

    field: str
    message: str


ValidationResult = Union[Valid[ModelT], Invalid]


def validate(model: type[ModelT], data: Any) -> ValidationResult[ModelT]:
    """Validate ``data`` against ``model``.

    Args:
        model: Pydantic model class describing the expected shape.
        data: Decoded JSON body or query parameters.

    Returns:
        ``Valid`` holding the model instance, or ``Invalid`` for the first error.
    """
    try:
        return Valid(model.model_validate(data))
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "body"
        return Invalid(field=field, message=first["msg"])


def parse_or_raise(model: type[ModelT], data: Any) -> ModelT:
    """Validate ``data`` and return the model, raising on the first error.

    Raises:
        ValidationFailedError: Carrying the first offending field.
    """
    result = validate(model, data)
    if isinstance(result, Invalid):
        raise ValidationFailedError(result.message, field=result.field)
    return result.value


async def read_json(request: Request) -> Any:
    """Decode a request body as JSON.

    Raises:
        ValidationFailedError: If the body is not valid JSON.
    """
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationFailedError("Invalid JSON body") from e


async def parse_body(request: Request, model: type[ModelT]) -> ModelT:
    """Read and validate a JSON request body."""
    return parse_or_raise(model, await read_json(request))


def parse_query(request: Request, model: type[ModelT]) -> ModelT:
    """Validate the query string of a request."""
    return parse_or_raise(model, dict(request.query_params))
