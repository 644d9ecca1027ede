"""Accounts Handler - Lambda function for sign-up, sign-in and profiles."""

from typing import Any, Dict

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from crud_service.handlers.utils.error_boundary import handle_request
from crud_service.handlers.utils.observability import logger, metrics, tracer
from crud_service.handlers.utils.responses import created, success
from crud_service.handlers.utils.rest_api_resolver import AUTH_PATH, build_resolver, current_caller
from crud_service.handlers.utils.runtime import get_runtime
from crud_service.models.schemas import validate_body

app = build_resolver()


@app.post(f"{AUTH_PATH}/signup")
@tracer.capture_method
def signup() -> Response:
    request = validate_body('signup', app.current_event.body)
    return created(get_runtime().accounts.signup(request))


@app.post(f"{AUTH_PATH}/signin")
@tracer.capture_method
def signin() -> Response:
    request = validate_body('signin', app.current_event.body)
    return success(get_runtime().accounts.signin(request))


@app.post(f"{AUTH_PATH}/confirm")
@tracer.capture_method
def confirm_signup() -> Response:
    request = validate_body('confirm_signup', app.current_event.body)
    return success(get_runtime().accounts.confirm_signup(request))


@app.get(f"{AUTH_PATH}/profile")
@tracer.capture_method
def get_profile() -> Response:
    caller = current_caller(app)
    return success(get_runtime().accounts.get_profile(caller))


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return handle_request(app, event, context)
