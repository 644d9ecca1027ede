"""
Shared Powertools instances for the CRUD microservices.

Every layer logs, traces and counts through the objects defined here so that
the correlation id injected by a handler follows the request down into the
logic and data access layers.
"""

from aws_lambda_powertools.logging import Logger
from aws_lambda_powertools.metrics import Metrics, MetricUnit
from aws_lambda_powertools.tracing import Tracer

SERVICE_NAME = 'crud-microservices'
METRICS_NAMESPACE = 'CrudMicroservices'

# POWERTOOLS_SERVICE_NAME and LOG_LEVEL override these at runtime
logger: Logger = Logger(service=SERVICE_NAME)

# Disabled by setting POWERTOOLS_TRACE_DISABLED to "true" (and outside Lambda)
tracer: Tracer = Tracer(service=SERVICE_NAME)

metrics: Metrics = Metrics(namespace=METRICS_NAMESPACE, service=SERVICE_NAME)


def count(name: str, value: int = 1) -> None:
    """Add a Count metric to the current EMF blob."""
    metrics.add_metric(name=name, unit=MetricUnit.Count, value=value)


def duration(name: str, milliseconds: float) -> None:
    """Add a Milliseconds metric to the current EMF blob."""
    metrics.add_metric(name=name, unit=MetricUnit.Milliseconds, value=milliseconds)
