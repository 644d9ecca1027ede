"""Response envelope builder: every body is ``{success, data}`` or ``{success, message}``."""

import json
from typing import Any, Dict

from aws_lambda_powertools.event_handler import Response, content_types

from crud_service.handlers.utils.runtime import peek_runtime
from crud_service.models.output import ErrorEnvelope, SuccessEnvelope

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Content-Type,X-Amz-Date,Authorization,X-Api-Key,X-Amz-Security-Token',
    'Access-Control-Allow-Methods': 'GET,POST,PUT,DELETE,OPTIONS',
    'Access-Control-Allow-Credentials': 'true',
}


def response_headers() -> Dict[str, str]:
    runtime = peek_runtime()
    if runtime is None:
        return dict(CORS_HEADERS)
    return {**CORS_HEADERS, 'Access-Control-Allow-Origin': runtime.settings.CORS_ALLOW_ORIGIN}


def create_api_response(status_code: int, body: Dict[str, Any]) -> Response:
    return Response(
        status_code=status_code,
        content_type=content_types.APPLICATION_JSON,
        body=json.dumps(body, default=str),
        headers=response_headers(),
    )


def success(data: Any, status_code: int = 200) -> Response:
    return create_api_response(status_code, SuccessEnvelope(data=data).model_dump(mode='json'))


def created(data: Any) -> Response:
    return success(data, status_code=201)


def failure(message: str, status_code: int) -> Response:
    return create_api_response(status_code, ErrorEnvelope(message=message).model_dump())


def raw_failure(message: str, status_code: int = 500) -> Dict[str, Any]:
    """Proxy-integration dict for failures outside the resolver."""
    return {
        'statusCode': status_code,
        'headers': {**response_headers(), 'Content-Type': content_types.APPLICATION_JSON},
        'body': json.dumps(ErrorEnvelope(message=message).model_dump()),
    }
