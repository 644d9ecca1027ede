"""
AWS Lambda Handlers Module.

One module per Lambda function. Each REST handler owns a resolver whose routes
run the same pipeline: extract the caller, validate the body, call a logic
service, wrap the result in the success envelope. Failures are turned into the
error envelope by the error boundary registered on the resolver.

Handlers:
- users_handler, products_handler, orders_handler, files_handler: entity APIs
- accounts_handler: sign-up, sign-in, confirmation and profile
- admin_handler: system statistics for the admin group
- health_handler: dependency health checks
- notifications_handler: SNS subscriber that enqueues notifications
"""

__version__ = "1.0.0"

from crud_service.handlers.utils.observability import logger, metrics, tracer
