"""API Gateway REST resolver factory and shared request helpers."""

from aws_lambda_powertools.event_handler import APIGatewayRestResolver

from crud_service.handlers.utils.error_boundary import register_error_boundary
from crud_service.handlers.utils.runtime import get_runtime
from crud_service.security import CallerIdentity

# API path constants
USERS_PATH = '/users'
PRODUCTS_PATH = '/products'
ORDERS_PATH = '/orders'
FILES_PATH = '/files'
AUTH_PATH = '/auth'
ADMIN_PATH = '/admin'
HEALTH_PATH = '/health'


def build_resolver() -> APIGatewayRestResolver:
    """A REST resolver with the error boundary installed."""
    app = APIGatewayRestResolver(debug=False)
    register_error_boundary(app)
    return app


def current_caller(app: APIGatewayRestResolver) -> CallerIdentity:
    """Authenticate the request being resolved. Raises AuthenticationError."""
    return get_runtime().context_extractor.extract(app.current_event.raw_event)
