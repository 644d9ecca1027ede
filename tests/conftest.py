"""
Pytest configuration and shared fixtures for the CRUD microservices.

This module provides the offline runtime, API Gateway event factories and the
Lambda context used across unit and integration tests.
"""

import json
import os
from typing import Any, Dict, Optional
from unittest.mock import Mock

import boto3
import pytest
from moto import mock_aws

# Powertools and boto3 read these at import time, so they are set before any
# service module is imported.
os.environ.update({
    "AWS_DEFAULT_REGION": "us-east-1",
    "AWS_REGION": "us-east-1",
    "AWS_ACCESS_KEY_ID": "testing",
    "AWS_SECRET_ACCESS_KEY": "testing",
    "AWS_SECURITY_TOKEN": "testing",
    "AWS_SESSION_TOKEN": "testing",
    "POWERTOOLS_SERVICE_NAME": "test-crud-microservices",
    "POWERTOOLS_METRICS_NAMESPACE": "TestCrudMicroservices",
    "POWERTOOLS_TRACE_DISABLED": "true",
    "LOG_LEVEL": "DEBUG",
    "DEPLOYMENT_MODE": "offline",
    "AUTH_STRATEGY": "authorizer",
})

from crud_service.handlers.models.env_vars import ServiceEnvVars  # noqa: E402
from crud_service.handlers.utils.runtime import ServiceRuntime, build_runtime, set_runtime  # noqa: E402
from crud_service.security import CallerIdentity  # noqa: E402

ALICE = CallerIdentity(user_id="alice-id", email="alice@example.com", name="Alice", username="alice@example.com")
BOB = CallerIdentity(user_id="bob-id", email="bob@example.com", name="Bob", username="bob@example.com")

TEST_TABLES = {"users": "test-users", "products": "test-products", "orders": "test-orders"}
TEST_BUCKET = "test-files-bucket"


def claims_for(identity: CallerIdentity, groups: Optional[str] = None) -> Dict[str, Any]:
    """Authorizer claims as API Gateway delivers them (all strings)."""
    claims = {
        "sub": identity.user_id,
        "email": identity.email,
        "name": identity.name,
        "cognito:username": identity.username,
    }
    if groups is not None:
        claims["cognito:groups"] = groups
    return claims


def api_event(
    method: str,
    path: str,
    body: Any = None,
    path_parameters: Optional[Dict[str, str]] = None,
    query: Optional[Dict[str, str]] = None,
    claims: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Build an API Gateway REST (v1) proxy event."""
    request_context: Dict[str, Any] = {
        "requestId": "test-request-id-123",
        "accountId": "123456789012",
        "stage": "test",
        "httpMethod": method,
        "path": path,
        "protocol": "HTTP/1.1",
        "identity": {"sourceIp": "127.0.0.1", "userAgent": "pytest"},
    }
    if claims is not None:
        request_context["authorizer"] = {"claims": claims}

    if body is not None and not isinstance(body, str):
        body = json.dumps(body)

    return {
        "httpMethod": method,
        "path": path,
        "resource": path,
        "headers": {"Content-Type": "application/json", **(headers or {})},
        "multiValueHeaders": {},
        "body": body,
        "requestContext": request_context,
        "pathParameters": path_parameters,
        "queryStringParameters": query,
        "multiValueQueryStringParameters": None,
        "stageVariables": None,
        "isBase64Encoded": False,
    }


def response_body(response: Dict[str, Any]) -> Dict[str, Any]:
    return json.loads(response["body"])


def response_header(response: Dict[str, Any], name: str) -> Optional[str]:
    """Read a header whether the resolver emitted single or multi-value headers."""
    if name in (response.get("headers") or {}):
        return response["headers"][name]
    values = (response.get("multiValueHeaders") or {}).get(name)
    return values[0] if values else None


def offline_settings(**overrides: str) -> ServiceEnvVars:
    return ServiceEnvVars(**{"DEPLOYMENT_MODE": "offline", "AUTH_STRATEGY": "authorizer", **overrides})


@pytest.fixture
def runtime() -> ServiceRuntime:
    """Offline runtime (in-memory stores, log-only transports) installed for the test."""
    service_runtime = build_runtime(offline_settings())
    set_runtime(service_runtime)
    yield service_runtime
    set_runtime(None)


@pytest.fixture
def check_policy_runtime() -> ServiceRuntime:
    """Offline runtime whose orders only compare stock, never reserve it."""
    service_runtime = build_runtime(offline_settings(ORDER_STOCK_POLICY="check"))
    set_runtime(service_runtime)
    yield service_runtime
    set_runtime(None)


@pytest.fixture
def token_runtime() -> ServiceRuntime:
    """Offline runtime that verifies HS256 bearer tokens."""
    service_runtime = build_runtime(offline_settings(AUTH_STRATEGY="token"))
    set_runtime(service_runtime)
    yield service_runtime
    set_runtime(None)


@pytest.fixture
def lambda_context():
    """Create a mock Lambda context for testing."""
    context = Mock()
    context.function_name = "test-lambda-function"
    context.function_version = "1"
    context.invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:test-lambda-function"
    context.memory_limit_in_mb = 512
    context.get_remaining_time_in_millis = lambda: 30000
    context.aws_request_id = "test-request-id-123"
    context.log_group_name = "/aws/lambda/test-lambda-function"
    context.log_stream_name = "2024/01/01/[$LATEST]test123"
    return context


@pytest.fixture
def mock_client_error():
    """Factory for botocore ClientErrors."""
    from botocore.exceptions import ClientError

    def create_error(error_code: str, message: str = "Test error", operation: str = "TestOperation"):
        return ClientError(
            error_response={"Error": {"Code": error_code, "Message": message}},
            operation_name=operation,
        )

    return create_error


@pytest.fixture
def aws():
    """Mock every AWS service for the duration of the test."""
    with mock_aws():
        yield


@pytest.fixture
def dynamodb_tables(aws):
    """Create the three record tables, each keyed on ``id``."""
    dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
    for table_name in TEST_TABLES.values():
        dynamodb.create_table(
            TableName=table_name,
            KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
    return dict(TEST_TABLES)


@pytest.fixture
def files_bucket(aws):
    boto3.client("s3", region_name="us-east-1").create_bucket(Bucket=TEST_BUCKET)
    return TEST_BUCKET


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
