"""
Products Handler - Lambda function for the product catalogue.

Any authenticated caller may create, read and list products. Only the creator
(``createdBy``) may update or delete one.
"""

from typing import Any, Dict

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from crud_service.handlers.utils.error_boundary import handle_request
from crud_service.handlers.utils.observability import logger, metrics, tracer
from crud_service.handlers.utils.responses import created, success
from crud_service.handlers.utils.rest_api_resolver import PRODUCTS_PATH, build_resolver, current_caller
from crud_service.handlers.utils.runtime import get_runtime
from crud_service.models.schemas import validate_body

app = build_resolver()


@app.post(PRODUCTS_PATH)
@tracer.capture_method
def create_product() -> Response:
    caller = current_caller(app)
    request = validate_body('product', app.current_event.body)
    return created(get_runtime().products.create_product(caller, request))


@app.get(PRODUCTS_PATH)
@tracer.capture_method
def list_products() -> Response:
    current_caller(app)
    return success(get_runtime().products.list_products())


@app.get(f"{PRODUCTS_PATH}/<product_id>")
@tracer.capture_method
def get_product(product_id: str) -> Response:
    current_caller(app)
    return success(get_runtime().products.get_product(product_id))


@app.put(f"{PRODUCTS_PATH}/<product_id>")
@tracer.capture_method
def update_product(product_id: str) -> Response:
    caller = current_caller(app)
    request = validate_body('product', app.current_event.body)
    return success(get_runtime().products.update_product(caller, product_id, request))


@app.delete(f"{PRODUCTS_PATH}/<product_id>")
@tracer.capture_method
def delete_product(product_id: str) -> Response:
    caller = current_caller(app)
    return success(get_runtime().products.delete_product(caller, product_id))


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return handle_request(app, event, context)
