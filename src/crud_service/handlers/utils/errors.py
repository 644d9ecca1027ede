"""
Error taxonomy for the CRUD microservices.

Handlers, services and adapters raise the typed errors defined here; the error
boundary is the only place that turns them into HTTP status codes.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from crud_service.handlers.utils.observability import count, logger, tracer


class ErrorSeverity(str, Enum):
    """Error severity levels for classification."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ErrorCategory(str, Enum):
    """Error categories for classification."""
    VALIDATION = "VALIDATION"
    SECURITY = "SECURITY"
    BUSINESS_LOGIC = "BUSINESS_LOGIC"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"
    INFRASTRUCTURE = "INFRASTRUCTURE"


class BaseServiceError(Exception):
    """Base exception class for service errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.BUSINESS_LOGIC,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.category = category
        self.error_id = str(uuid.uuid4())

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error_id": self.error_id,
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


class AuthenticationError(BaseServiceError):
    """Raised when no usable credential is present."""

    def __init__(self, message: str = "Unauthorized", error_code: str = "AUTHENTICATION_ERROR"):
        super().__init__(
            message=message,
            error_code=error_code,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.SECURITY,
        )


class InvalidTokenError(AuthenticationError):
    """Token is malformed, badly signed, or issued by the wrong party."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message=message, error_code="INVALID_TOKEN")


class TokenExpiredError(InvalidTokenError):
    """Token has expired."""

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message=message)
        self.error_code = "TOKEN_EXPIRED"


class AuthorizationError(BaseServiceError):
    """Raised when the caller is authenticated but does not own the resource."""

    def __init__(self, message: str = "Unauthorized access"):
        super().__init__(
            message=message,
            error_code="AUTHORIZATION_ERROR",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.SECURITY,
        )


class ValidationError(BaseServiceError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field_errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
        )
        self.field_errors = field_errors or []


class NotFoundError(BaseServiceError):
    """Raised when a requested record or object is absent."""

    def __init__(self, message: str, resource_type: Optional[str] = None, resource_id: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="RESOURCE_NOT_FOUND",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.BUSINESS_LOGIC,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConflictError(BaseServiceError):
    """Raised when the request conflicts with current state, e.g. insufficient stock."""

    def __init__(self, message: str, error_code: str = "CONFLICT"):
        super().__init__(
            message=message,
            error_code=error_code,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.BUSINESS_LOGIC,
        )


class ConditionFailedError(ConflictError):
    """Raised when a conditional write finds the record in an unexpected state."""

    def __init__(self, table_name: str, condition: str):
        super().__init__(
            message=f"Conditional check failed on {table_name}: {condition}",
            error_code="CONDITION_FAILED",
        )
        self.table_name = table_name
        self.condition = condition


class UpstreamError(BaseServiceError):
    """Raised when a managed collaborator is unreachable or erroring."""

    def __init__(self, message: str, service_name: str, error_code: str = "UPSTREAM_ERROR"):
        super().__init__(
            message=message,
            error_code=error_code,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.EXTERNAL_SERVICE,
        )
        self.service_name = service_name


class InternalError(BaseServiceError):
    """Raised for faults that fit no other category."""

    def __init__(self, message: str, error_code: str = "INTERNAL_ERROR"):
        super().__init__(
            message=message,
            error_code=error_code,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.INFRASTRUCTURE,
        )


class ConfigurationError(InternalError):
    """Raised when a component is wired in a way the deployment mode forbids."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="CONFIGURATION_ERROR")


STATUS_BY_ERROR_CODE = {
    "AUTHENTICATION_ERROR": 401,
    "INVALID_TOKEN": 401,
    "TOKEN_EXPIRED": 401,
    "AUTHORIZATION_ERROR": 403,
    "VALIDATION_ERROR": 400,
    "RESOURCE_NOT_FOUND": 404,
    # insufficient stock and lost conditional writes are client errors here
    "CONFLICT": 400,
    "INSUFFICIENT_STOCK": 400,
    "CONDITION_FAILED": 400,
    "UPSTREAM_ERROR": 500,
    "EVENT_PUBLISH_ERROR": 500,
    "INTERNAL_ERROR": 500,
    "CONFIGURATION_ERROR": 500,
}


def get_http_status_code(error: BaseServiceError) -> int:
    """Get appropriate HTTP status code for error."""
    return STATUS_BY_ERROR_CODE.get(error.error_code, 500)


@tracer.capture_method
def log_error_metrics(error: BaseServiceError) -> None:
    """Log error metrics for monitoring and alerting."""
    count("ErrorCount")
    count(f"Error{error.category.value}Count")

    tracer.put_annotation("error_code", error.error_code)
    tracer.put_metadata("error_details", error.to_dict())

    log = logger.error if get_http_status_code(error) >= 500 else logger.warning
    log(
        "Service error occurred",
        extra={
            "error_id": error.error_id,
            "error_code": error.error_code,
            "error_severity": error.severity.value,
            "error_category": error.category.value,
            "error_message": error.message,
        },
    )
