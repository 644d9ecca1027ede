"""
Unit tests for the error boundary and response envelope.
"""

from conftest import ALICE, api_event, claims_for, offline_settings, response_body, response_header

from crud_service.handlers.products_handler import lambda_handler as products_handler
from crud_service.handlers.users_handler import lambda_handler as users_handler
from crud_service.handlers.utils.errors import UpstreamError
from crud_service.handlers.utils.runtime import build_runtime, set_runtime


class TestErrorBoundary:
    """Test cases for error classification at the handler edge."""

    def test_event_outside_api_gateway(self, runtime, lambda_context):
        """Test an unrecognizable event still gets a 500 envelope."""
        response = users_handler({}, lambda_context)

        assert response["statusCode"] == 500
        assert response_body(response) == {"success": False, "message": "Internal server error"}

    def test_unexpected_exception(self, runtime, lambda_context, monkeypatch):
        """Test unexpected exceptions become a generic 500."""
        def boom(*args, **kwargs):
            raise RuntimeError("secret internals")

        monkeypatch.setattr(runtime.users, "get_user", boom)

        response = users_handler(api_event("GET", "/users/alice-id", claims=claims_for(ALICE)), lambda_context)

        assert response["statusCode"] == 500
        assert response_body(response) == {"success": False, "message": "Internal server error"}

    def test_upstream_error_details_hidden(self, runtime, lambda_context, monkeypatch):
        """Test upstream failures are 500 without their detail."""
        def unavailable(*args, **kwargs):
            raise UpstreamError(message="DynamoDB Scan failed: ProvisionedThroughputExceededException",
                                service_name="DynamoDB")

        monkeypatch.setattr(runtime.products, "list_products", unavailable)

        response = products_handler(api_event("GET", "/products", claims=claims_for(ALICE)), lambda_context)

        assert response["statusCode"] == 500
        assert response_body(response)["message"] == "Internal server error"

    def test_unknown_route(self, runtime, lambda_context):
        response = users_handler(api_event("PATCH", "/users/alice-id", claims=claims_for(ALICE)), lambda_context)

        assert response["statusCode"] == 404

    def test_invalid_json(self, runtime, lambda_context):
        response = users_handler(api_event("POST", "/users", body="{not json"), lambda_context)

        assert response["statusCode"] == 400
        assert response_body(response) == {"success": False, "message": "Invalid JSON in request body"}

    def test_non_object_body(self, runtime, lambda_context):
        response = users_handler(api_event("POST", "/users", body=[1, 2]), lambda_context)

        assert response["statusCode"] == 400
        assert response_body(response)["message"] == "body: Request body must be a JSON object"


class TestResponseHeaders:
    """Test cases for CORS headers."""

    def test_default_origin(self, runtime, lambda_context):
        response = products_handler(api_event("GET", "/products", claims=claims_for(ALICE)), lambda_context)

        assert response_header(response, "Access-Control-Allow-Origin") == "*"
        assert response_header(response, "Content-Type") == "application/json"

    def test_configured_origin_on_errors(self, lambda_context):
        """Test failures carry the configured origin too."""
        set_runtime(build_runtime(offline_settings(CORS_ALLOW_ORIGIN="https://shop.example.com")))
        try:
            response = products_handler(api_event("GET", "/products"), lambda_context)
        finally:
            set_runtime(None)

        assert response["statusCode"] == 401
        assert response_header(response, "Access-Control-Allow-Origin") == "https://shop.example.com"


class TestFallbackIdentity:
    """Test cases for the offline fallback identity."""

    def test_fallback_used_without_credential(self, lambda_context):
        set_runtime(build_runtime(offline_settings(ALLOW_FALLBACK_IDENTITY="true")))
        try:
            response = products_handler(
                api_event("POST", "/products", body={"name": "Pen", "price": 1.5, "category": "office"}),
                lambda_context,
            )
        finally:
            set_runtime(None)

        assert response["statusCode"] == 201
        assert response_body(response)["data"]["createdBy"] == "test-user-id"
