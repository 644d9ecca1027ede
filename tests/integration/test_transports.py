"""
Integration tests for the SNS event publisher and SQS notification queue.
"""

import json

import boto3
import pytest

from crud_service.events import LifecycleEvent, Notification, NotificationType, SnsEventPublisher, SqsNotificationQueue
from crud_service.handlers.utils.errors import UpstreamError


@pytest.fixture
def topic_and_inbox(aws):
    """An SNS topic with an SQS queue subscribed to it."""
    sns = boto3.client("sns", region_name="us-east-1")
    sqs = boto3.client("sqs", region_name="us-east-1")
    topic_arn = sns.create_topic(Name="lifecycle-events")["TopicArn"]
    queue_url = sqs.create_queue(QueueName="event-inbox")["QueueUrl"]
    queue_arn = sqs.get_queue_attributes(QueueUrl=queue_url, AttributeNames=["QueueArn"])["Attributes"]["QueueArn"]
    sns.subscribe(TopicArn=topic_arn, Protocol="sqs", Endpoint=queue_arn)
    return topic_arn, queue_url


@pytest.fixture
def notifications_queue(aws):
    return boto3.client("sqs", region_name="us-east-1").create_queue(QueueName="notifications")["QueueUrl"]


def receive(queue_url):
    messages = boto3.client("sqs", region_name="us-east-1").receive_message(
        QueueUrl=queue_url, MaxNumberOfMessages=10
    )
    return messages.get("Messages", [])


class TestSnsEventPublisher:
    """Integration tests for SnsEventPublisher."""

    def test_publish_reaches_subscribers(self, topic_and_inbox):
        """Test the event is delivered with its type as the subject."""
        topic_arn, queue_url = topic_and_inbox
        publisher = SnsEventPublisher(topic_arn=topic_arn, region_name="us-east-1")

        assert publisher.publish("PRODUCT_CREATED", {"id": "p1", "name": "Lamp", "category": "home"}) is True

        envelope = json.loads(receive(queue_url)[0]["Body"])
        assert envelope["Subject"] == "PRODUCT_CREATED"
        event = LifecycleEvent.from_message(json.dumps(envelope))
        assert event.eventType == "PRODUCT_CREATED"
        assert event.data["name"] == "Lamp"

    def test_missing_topic_is_not_raised(self, aws):
        """Test a publish to a missing topic is dropped without raising."""
        publisher = SnsEventPublisher(
            topic_arn="arn:aws:sns:us-east-1:123456789012:missing", region_name="us-east-1"
        )

        assert publisher.publish("USER_CREATED", {"id": "u1"}) is False

    def test_health_check(self, topic_and_inbox):
        topic_arn, _ = topic_and_inbox

        assert SnsEventPublisher(topic_arn=topic_arn, region_name="us-east-1").health_check()["status"] == "healthy"


class TestSqsNotificationQueue:
    """Integration tests for SqsNotificationQueue."""

    def test_enqueue(self, notifications_queue):
        queue = SqsNotificationQueue(queue_url=notifications_queue, region_name="us-east-1")

        queue.enqueue(Notification(type=NotificationType.USER_WELCOME, userId="u1", message="Welcome Alice!"))

        body = json.loads(receive(notifications_queue)[0]["Body"])
        assert body["type"] == "USER_WELCOME"
        assert body["userId"] == "u1"
        assert "orderId" not in body

    def test_enqueue_to_missing_queue(self, aws):
        queue = SqsNotificationQueue(
            queue_url="https://sqs.us-east-1.amazonaws.com/123456789012/missing", region_name="us-east-1"
        )

        with pytest.raises(UpstreamError):
            queue.enqueue(Notification(type=NotificationType.USER_WELCOME, message="hi"))

    def test_health_check(self, notifications_queue):
        queue = SqsNotificationQueue(queue_url=notifications_queue, region_name="us-east-1")

        assert queue.health_check()["status"] == "healthy"
