"""
Users Handler - Lambda function for user profile records.

Creating a user needs no credential; every other route requires the caller to
be the user the path names.
"""

from typing import Any, Dict

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from crud_service.handlers.utils.error_boundary import handle_request
from crud_service.handlers.utils.observability import logger, metrics, tracer
from crud_service.handlers.utils.responses import created, success
from crud_service.handlers.utils.rest_api_resolver import USERS_PATH, build_resolver, current_caller
from crud_service.handlers.utils.runtime import get_runtime
from crud_service.models.schemas import validate_body

app = build_resolver()


@app.post(USERS_PATH)
@tracer.capture_method
def create_user() -> Response:
    request = validate_body('user', app.current_event.body)
    return created(get_runtime().users.create_user(request))


@app.get(f"{USERS_PATH}/<user_id>")
@tracer.capture_method
def get_user(user_id: str) -> Response:
    caller = current_caller(app)
    return success(get_runtime().users.get_user(caller, user_id))


@app.put(f"{USERS_PATH}/<user_id>")
@tracer.capture_method
def update_user(user_id: str) -> Response:
    caller = current_caller(app)
    request = validate_body('user', app.current_event.body)
    return success(get_runtime().users.update_user(caller, user_id, request))


@app.delete(f"{USERS_PATH}/<user_id>")
@tracer.capture_method
def delete_user(user_id: str) -> Response:
    caller = current_caller(app)
    return success(get_runtime().users.delete_user(caller, user_id))


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return handle_request(app, event, context)
