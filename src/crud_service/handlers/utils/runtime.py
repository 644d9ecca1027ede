"""
Runtime wiring (composition root).

The runtime is built once per Lambda execution environment from
``ServiceEnvVars`` and holds every collaborator the handlers use. Tests install
their own runtime with ``set_runtime``.
"""

from dataclasses import dataclass
from typing import Optional

import boto3

from crud_service.dal import (
    BaseObjectStore,
    BaseRecordStore,
    DynamoDBRecordStore,
    InMemoryObjectStore,
    InMemoryRecordStore,
    S3ObjectStore,
)
from crud_service.events import (
    BaseEventPublisher,
    BaseNotificationQueue,
    LoggingEventPublisher,
    LoggingNotificationQueue,
    SnsEventPublisher,
    SqsNotificationQueue,
)
from crud_service.handlers.models.env_vars import ServiceEnvVars, get_service_env_vars
from crud_service.handlers.utils.observability import logger
from crud_service.logic import (
    AccountService,
    AdminService,
    FileService,
    NotificationService,
    OrderService,
    ProductService,
    StockPolicy,
    UserService,
)
from crud_service.security import (
    AuthStrategy,
    CallerIdentity,
    JwksTokenVerifier,
    RequestContextExtractor,
    SharedSecretTokenVerifier,
    TokenVerifier,
)


@dataclass
class ServiceRuntime:
    """Every collaborator of one deployment, wired from configuration."""

    settings: ServiceEnvVars
    record_store: BaseRecordStore
    object_store: BaseObjectStore
    publisher: BaseEventPublisher
    notification_queue: BaseNotificationQueue
    context_extractor: RequestContextExtractor
    users: UserService
    products: ProductService
    orders: OrderService
    files: FileService
    accounts: AccountService
    admin: AdminService
    notifications: NotificationService


def _record_store(settings: ServiceEnvVars) -> BaseRecordStore:
    if settings.is_offline and not settings.DYNAMODB_ENDPOINT:
        return InMemoryRecordStore()
    return DynamoDBRecordStore(
        table_names=settings.table_names,
        region_name=settings.AWS_REGION,
        endpoint_url=settings.DYNAMODB_ENDPOINT,
    )


def _object_store(settings: ServiceEnvVars) -> BaseObjectStore:
    if settings.is_offline and not settings.S3_ENDPOINT:
        return InMemoryObjectStore()
    return S3ObjectStore(
        bucket_name=settings.FILES_BUCKET,
        region_name=settings.AWS_REGION,
        endpoint_url=settings.S3_ENDPOINT,
    )


def _publisher(settings: ServiceEnvVars) -> BaseEventPublisher:
    if settings.is_offline or not settings.EVENTS_TOPIC_ARN:
        if not settings.is_offline:
            logger.warning("EVENTS_TOPIC_ARN not set, lifecycle events will only be logged")
        return LoggingEventPublisher()
    return SnsEventPublisher(topic_arn=settings.EVENTS_TOPIC_ARN, region_name=settings.AWS_REGION)


def _notification_queue(settings: ServiceEnvVars) -> BaseNotificationQueue:
    if settings.is_offline or not settings.NOTIFICATIONS_QUEUE_URL:
        if not settings.is_offline:
            logger.warning("NOTIFICATIONS_QUEUE_URL not set, notifications will only be logged")
        return LoggingNotificationQueue()
    return SqsNotificationQueue(queue_url=settings.NOTIFICATIONS_QUEUE_URL, region_name=settings.AWS_REGION)


def _token_verifier(settings: ServiceEnvVars) -> Optional[TokenVerifier]:
    if settings.is_offline:
        return SharedSecretTokenVerifier(secret=settings.JWT_SECRET, offline=True)
    if settings.COGNITO_USER_POOL_ID:
        return JwksTokenVerifier.for_cognito(
            region=settings.AWS_REGION,
            user_pool_id=settings.COGNITO_USER_POOL_ID,
            client_id=settings.COGNITO_CLIENT_ID,
        )
    return None


def fallback_identity(user_id: str) -> CallerIdentity:
    return CallerIdentity(user_id=user_id, email='test@example.com', name='Test User', username='test-user')


def build_runtime(settings: ServiceEnvVars) -> ServiceRuntime:
    """Wire every collaborator for ``settings``."""
    record_store = _record_store(settings)
    object_store = _object_store(settings)
    publisher = _publisher(settings)
    queue = _notification_queue(settings)
    verifier = _token_verifier(settings)

    strategy = AuthStrategy(settings.AUTH_STRATEGY)
    extractor = RequestContextExtractor(
        strategy=strategy,
        verifier=verifier if strategy == AuthStrategy.TOKEN else None,
        fallback_identity=fallback_identity(settings.FALLBACK_USER_ID) if settings.fallback_identity_enabled else None,
    )

    if settings.is_offline:
        accounts = AccountService(record_store, token_issuer=verifier)
    else:
        accounts = AccountService(
            record_store,
            cognito_client=boto3.client('cognito-idp', region_name=settings.AWS_REGION),
            client_id=settings.COGNITO_CLIENT_ID,
        )

    logger.info("Runtime initialized", extra={
        "deployment_mode": settings.DEPLOYMENT_MODE,
        "auth_strategy": settings.AUTH_STRATEGY,
        "record_store": type(record_store).__name__,
        "object_store": type(object_store).__name__,
        "stock_policy": settings.ORDER_STOCK_POLICY,
    })

    return ServiceRuntime(
        settings=settings,
        record_store=record_store,
        object_store=object_store,
        publisher=publisher,
        notification_queue=queue,
        context_extractor=extractor,
        users=UserService(record_store, publisher),
        products=ProductService(record_store, publisher),
        orders=OrderService(record_store, publisher, StockPolicy(settings.ORDER_STOCK_POLICY)),
        files=FileService(object_store),
        accounts=accounts,
        admin=AdminService(record_store, publisher, queue),
        notifications=NotificationService(queue),
    )


_runtime: Optional[ServiceRuntime] = None


def get_runtime() -> ServiceRuntime:
    """Return the process runtime, building it from the environment on first use."""
    global _runtime
    if _runtime is None:
        _runtime = build_runtime(get_service_env_vars())
    return _runtime


def set_runtime(runtime: Optional[ServiceRuntime]) -> None:
    """Install (or clear, with None) the process runtime."""
    global _runtime
    _runtime = runtime


def peek_runtime() -> Optional[ServiceRuntime]:
    return _runtime
