"""
Schema validator.

Request schemas are declared as Pydantic models in ``input.py`` and looked up
here by name. Validation is all-or-nothing: either the sanitized model comes
back, or a ``ValidationError`` whose message names the first violation.
"""

import json
from typing import Any, Dict, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from crud_service.handlers.utils.errors import ValidationError
from crud_service.models.input import (
    ConfirmSignupRequest,
    FileUploadRequest,
    OrderRequest,
    ProductRequest,
    SigninRequest,
    SignupRequest,
    UploadUrlRequest,
    UserRequest,
)

SCHEMAS: Dict[str, Type[BaseModel]] = {
    'user': UserRequest,
    'product': ProductRequest,
    'order': OrderRequest,
    'file_upload': FileUploadRequest,
    'upload_url': UploadUrlRequest,
    'signup': SignupRequest,
    'signin': SigninRequest,
    'confirm_signup': ConfirmSignupRequest,
}


def _format_location(location: tuple) -> str:
    return '.'.join(str(part) for part in location) or 'body'


def _clean_message(message: str) -> str:
    # pydantic prefixes custom validator messages with "Value error, "
    return message.removeprefix('Value error, ')


def validate(schema_name: str, raw_value: Any) -> BaseModel:
    """
    Validate a parsed request body against a named schema.

    Args:
        schema_name: Key into ``SCHEMAS``
        raw_value: Parsed JSON value

    Returns:
        The sanitized model instance

    Raises:
        ValidationError: On the first schema violation
        KeyError: If the schema name is unknown
    """
    model = SCHEMAS[schema_name]

    if not isinstance(raw_value, dict):
        raise ValidationError(message='body: Request body must be a JSON object')

    try:
        return model.model_validate(raw_value)
    except PydanticValidationError as e:
        field_errors = [
            {"field": _format_location(error["loc"]), "message": _clean_message(error["msg"])}
            for error in e.errors()
        ]
        first = field_errors[0]
        raise ValidationError(
            message=f"{first['field']}: {first['message']}",
            field_errors=field_errors,
        ) from e


def parse_json_body(body: str | None) -> Any:
    """Parse a raw request body, treating a missing body as an empty object."""
    try:
        return json.loads(body or '{}')
    except json.JSONDecodeError as e:
        raise ValidationError(message='Invalid JSON in request body') from e


def validate_body(schema_name: str, body: str | None) -> BaseModel:
    """Parse and validate a raw JSON request body in one step."""
    return validate(schema_name, parse_json_body(body))
