"""
Orders Handler - Lambda function for order placement.

Orders are immutable once created; there are no update or delete routes.
"""

from typing import Any, Dict

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from crud_service.handlers.utils.error_boundary import handle_request
from crud_service.handlers.utils.observability import logger, metrics, tracer
from crud_service.handlers.utils.responses import created, success
from crud_service.handlers.utils.rest_api_resolver import ORDERS_PATH, build_resolver, current_caller
from crud_service.handlers.utils.runtime import get_runtime
from crud_service.models.schemas import validate_body

app = build_resolver()


@app.post(ORDERS_PATH)
@tracer.capture_method
def create_order() -> Response:
    caller = current_caller(app)
    request = validate_body('order', app.current_event.body)
    return created(get_runtime().orders.create_order(caller, request))


@app.get(f"{ORDERS_PATH}/<order_id>")
@tracer.capture_method
def get_order(order_id: str) -> Response:
    caller = current_caller(app)
    return success(get_runtime().orders.get_order(caller, order_id))


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return handle_request(app, event, context)
