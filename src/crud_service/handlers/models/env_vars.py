"""
Environment variable model for type-safe configuration.

``ServiceEnvVars`` is the only reader of the process environment. It is parsed
once per process, and the runtime is built from it; no other module branches
on environment variables.
"""

from typing import Annotated, Dict, Optional

from aws_lambda_env_modeler import BaseModel, get_environment_variables
from pydantic import Field, model_validator


class ServiceEnvVars(BaseModel):
    """Environment variables shared by every Lambda function of the service."""

    # offline swaps every managed collaborator for an in-process one
    DEPLOYMENT_MODE: Annotated[str, Field(
        default='production',
        description='Deployment mode',
        pattern=r'^(offline|production)$'
    )] = 'production'

    AUTH_STRATEGY: Annotated[str, Field(
        default='authorizer',
        description='Trust API Gateway authorizer claims, or verify bearer tokens locally',
        pattern=r'^(authorizer|token)$'
    )] = 'authorizer'

    # DynamoDB tables
    USERS_TABLE: Annotated[str, Field(default='users', min_length=1)] = 'users'
    PRODUCTS_TABLE: Annotated[str, Field(default='products', min_length=1)] = 'products'
    ORDERS_TABLE: Annotated[str, Field(default='orders', min_length=1)] = 'orders'

    FILES_BUCKET: Annotated[str, Field(
        default='crud-microservices-files',
        description='S3 bucket for user files'
    )] = 'crud-microservices-files'

    EVENTS_TOPIC_ARN: Annotated[Optional[str], Field(
        default=None,
        description='SNS topic receiving lifecycle events'
    )] = None

    NOTIFICATIONS_QUEUE_URL: Annotated[Optional[str], Field(
        default=None,
        description='SQS queue receiving user notifications'
    )] = None

    AWS_REGION: Annotated[str, Field(
        default='us-east-1',
        description='AWS region for service deployment'
    )] = 'us-east-1'

    # Local emulators (DynamoDB Local, LocalStack)
    DYNAMODB_ENDPOINT: Annotated[Optional[str], Field(default=None)] = None
    S3_ENDPOINT: Annotated[Optional[str], Field(default=None)] = None

    COGNITO_USER_POOL_ID: Annotated[Optional[str], Field(default=None)] = None
    COGNITO_CLIENT_ID: Annotated[Optional[str], Field(default=None)] = None

    JWT_SECRET: Annotated[str, Field(
        default='local-development-secret',
        description='HS256 secret for offline tokens; ignored in production'
    )] = 'local-development-secret'

    ALLOW_FALLBACK_IDENTITY: Annotated[str, Field(
        default='false',
        description='Use FALLBACK_USER_ID for requests without credentials (true/false)',
        pattern=r'^(true|false)$'
    )] = 'false'

    FALLBACK_USER_ID: Annotated[str, Field(default='test-user-id', min_length=1)] = 'test-user-id'

    ORDER_STOCK_POLICY: Annotated[str, Field(
        default='reserve',
        description='reserve decrements stock atomically; check only compares',
        pattern=r'^(reserve|check)$'
    )] = 'reserve'

    CORS_ALLOW_ORIGIN: Annotated[str, Field(
        default='*',
        description='CORS allowed origins for API responses'
    )] = '*'

    POWERTOOLS_SERVICE_NAME: Annotated[str, Field(default='crud-microservices')] = 'crud-microservices'

    LOG_LEVEL: Annotated[str, Field(
        default='INFO',
        description='Log level for application logging',
        pattern=r'^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$'
    )] = 'INFO'

    @model_validator(mode='after')
    def check_mode_rules(self) -> 'ServiceEnvVars':
        if self.fallback_identity_enabled and not self.is_offline:
            raise ValueError('ALLOW_FALLBACK_IDENTITY is only allowed in offline mode')
        if not self.is_offline and self.AUTH_STRATEGY == 'token' and not self.COGNITO_USER_POOL_ID:
            raise ValueError('COGNITO_USER_POOL_ID is required for token authentication in production')
        return self

    @property
    def is_offline(self) -> bool:
        return self.DEPLOYMENT_MODE == 'offline'

    @property
    def fallback_identity_enabled(self) -> bool:
        return self.ALLOW_FALLBACK_IDENTITY.lower() == 'true'

    @property
    def table_names(self) -> Dict[str, str]:
        return {
            'users': self.USERS_TABLE,
            'products': self.PRODUCTS_TABLE,
            'orders': self.ORDERS_TABLE,
        }


def get_service_env_vars() -> ServiceEnvVars:
    """Parse (once, cached) and return the service configuration."""
    return get_environment_variables(model=ServiceEnvVars)
