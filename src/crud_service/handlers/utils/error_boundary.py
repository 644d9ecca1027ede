"""
Error boundary.

The one place where exceptions become HTTP responses. It is registered as the
resolver's handler for every exception type, and ``handle_request`` guards
anything that escapes the resolver itself (e.g. an event that is not an API
Gateway event). Neither path ever raises.
"""

from typing import Any, Dict

from aws_lambda_powertools.event_handler import APIGatewayRestResolver, Response
from aws_lambda_powertools.event_handler.exceptions import ServiceError
from aws_lambda_powertools.utilities.typing import LambdaContext

from crud_service.handlers.utils.errors import BaseServiceError, get_http_status_code, log_error_metrics
from crud_service.handlers.utils.observability import count, logger
from crud_service.handlers.utils.responses import failure, raw_failure

INTERNAL_ERROR_MESSAGE = 'Internal server error'


def error_response(error: Exception) -> Response:
    """Classify ``error`` and build the failure envelope."""
    if isinstance(error, BaseServiceError):
        log_error_metrics(error)
        status_code = get_http_status_code(error)
        # 5xx details stay in the logs
        message = error.message if status_code < 500 else INTERNAL_ERROR_MESSAGE
        return failure(message, status_code)

    if isinstance(error, ServiceError):
        # raised by the resolver itself, e.g. unknown route
        count("ErrorVALIDATIONCount" if error.status_code < 500 else "ErrorINFRASTRUCTURECount")
        logger.warning("Resolver error", extra={"status_code": error.status_code, "error_message": error.msg})
        return failure(error.msg, error.status_code)

    count("ErrorCount")
    count("ErrorUNCLASSIFIEDCount")
    logger.exception("Unhandled error", extra={"error_type": type(error).__name__})
    return failure(INTERNAL_ERROR_MESSAGE, 500)


def register_error_boundary(app: APIGatewayRestResolver) -> None:
    @app.exception_handler(Exception)
    def handle_any_error(ex: Exception) -> Response:
        try:
            return error_response(ex)
        except Exception:
            logger.exception("Error boundary failed while handling an error")
            return failure(INTERNAL_ERROR_MESSAGE, 500)


def handle_request(app: APIGatewayRestResolver, event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """Resolve ``event``, turning anything that escapes the resolver into a 500 envelope."""
    count("RequestCount")
    try:
        response = app.resolve(event, context)
    except Exception:
        count("RequestError")
        logger.exception("Unhandled error in lambda handler")
        return raw_failure(INTERNAL_ERROR_MESSAGE)

    count("RequestSuccess" if response.get('statusCode', 500) < 400 else "RequestError")
    return response
