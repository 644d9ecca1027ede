"""
Files Handler - Lambda function for user file storage.

File keys contain slashes (``uploads/{userId}/...``), so the single-file routes
are catch-all regex routes. The key comes from API Gateway's ``{key+}`` path
parameter when present, else from the request path; either may be URL-encoded.
"""

from typing import Any, Dict
from urllib.parse import unquote

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from crud_service.handlers.utils.error_boundary import handle_request
from crud_service.handlers.utils.errors import ValidationError
from crud_service.handlers.utils.observability import logger, metrics, tracer
from crud_service.handlers.utils.responses import created, success
from crud_service.handlers.utils.rest_api_resolver import FILES_PATH, build_resolver, current_caller
from crud_service.handlers.utils.runtime import get_runtime
from crud_service.logic.files import parse_max_keys
from crud_service.models.schemas import validate_body

app = build_resolver()

FILE_KEY_ROUTE = f"{FILES_PATH}/.+"


def _file_key() -> str:
    key = (app.current_event.path_parameters or {}).get('key')
    if not key:
        key = app.current_event.path[len(FILES_PATH) + 1:]
    key = unquote(key)
    if not key:
        raise ValidationError(message='File key is required')
    return key


@app.post(FILES_PATH)
@tracer.capture_method
def upload_file() -> Response:
    caller = current_caller(app)
    request = validate_body('file_upload', app.current_event.body)
    return created(get_runtime().files.upload_file(caller, request))


@app.post(f"{FILES_PATH}/upload-url")
@tracer.capture_method
def create_upload_url() -> Response:
    caller = current_caller(app)
    request = validate_body('upload_url', app.current_event.body)
    return success(get_runtime().files.create_upload_url(caller, request))


@app.get(FILES_PATH)
@tracer.capture_method
def list_files() -> Response:
    caller = current_caller(app)
    params = app.current_event.query_string_parameters or {}
    return success(get_runtime().files.list_files(
        caller,
        prefix=params.get('prefix', ''),
        max_keys=parse_max_keys(params.get('maxKeys')),
        user_only=params.get('userOnly', 'false').lower() == 'true',
    ))


@app.get(FILE_KEY_ROUTE)
@tracer.capture_method
def get_file() -> Response:
    current_caller(app)
    return success(get_runtime().files.get_file(_file_key()))


@app.delete(FILE_KEY_ROUTE)
@tracer.capture_method
def delete_file() -> Response:
    caller = current_caller(app)
    return success(get_runtime().files.delete_file(caller, _file_key()))


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return handle_request(app, event, context)
