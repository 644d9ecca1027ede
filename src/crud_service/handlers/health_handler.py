"""Health Handler - unauthenticated dependency check."""

from typing import Any, Dict

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.utilities.typing import LambdaContext

from crud_service.handlers.utils.error_boundary import handle_request
from crud_service.handlers.utils.observability import logger, metrics, tracer
from crud_service.handlers.utils.responses import success
from crud_service.handlers.utils.rest_api_resolver import HEALTH_PATH, build_resolver
from crud_service.handlers.utils.runtime import get_runtime

app = build_resolver()


@app.get(HEALTH_PATH)
@tracer.capture_method
def health_check() -> Response:
    report = get_runtime().admin.check_health()
    status_code = 200 if report["status"] == "healthy" else 503
    if status_code != 200:
        logger.warning("Health check failed", extra={"checks": report["checks"]})
    return success(report, status_code=status_code)


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    return handle_request(app, event, context)
