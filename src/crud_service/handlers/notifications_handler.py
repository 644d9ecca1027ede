"""
Notifications Handler - SNS subscriber for lifecycle events.

Each SNS record carries one lifecycle event; known event types are turned into
notifications on the notification queue, unknown ones are skipped. A record
that cannot be parsed or enqueued fails the whole invocation so that SNS
retries it.
"""

from typing import Any, Dict

from aws_lambda_powertools.utilities.data_classes import SNSEvent, event_source
from aws_lambda_powertools.utilities.typing import LambdaContext

from crud_service.events import LifecycleEvent
from crud_service.handlers.utils.observability import count, logger, metrics, tracer
from crud_service.handlers.utils.runtime import get_runtime


@tracer.capture_lambda_handler
@logger.inject_lambda_context
@metrics.log_metrics(capture_cold_start_metric=True)
@event_source(data_class=SNSEvent)
def lambda_handler(event: SNSEvent, context: LambdaContext) -> Dict[str, Any]:
    service = get_runtime().notifications
    processed = 0
    skipped = 0

    for record in event.records:
        message = record.sns.message
        lifecycle_event = LifecycleEvent.from_message(message)
        logger.info("Processing event", extra={
            "event_type": lifecycle_event.eventType,
            "message_id": record.sns.message_id,
        })
        if service.process_event(lifecycle_event) is None:
            skipped += 1
        else:
            processed += 1

    count("NotificationEventsProcessed", processed)
    return {"processed": processed, "skipped": skipped}
