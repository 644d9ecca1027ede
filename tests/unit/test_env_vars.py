"""
Unit tests for the environment variable model.
"""

import pytest
from pydantic import ValidationError

from crud_service.handlers.models.env_vars import ServiceEnvVars


class TestServiceEnvVars:
    """Test cases for ServiceEnvVars."""

    def test_defaults(self):
        """Test production defaults."""
        settings = ServiceEnvVars()

        assert settings.DEPLOYMENT_MODE == "production"
        assert settings.AUTH_STRATEGY == "authorizer"
        assert settings.ORDER_STOCK_POLICY == "reserve"
        assert not settings.is_offline
        assert not settings.fallback_identity_enabled
        assert settings.table_names == {"users": "users", "products": "products", "orders": "orders"}

    def test_table_name_overrides(self):
        """Test table names follow their variables."""
        settings = ServiceEnvVars(USERS_TABLE="prod-users", ORDERS_TABLE="prod-orders")

        assert settings.table_names["users"] == "prod-users"
        assert settings.table_names["orders"] == "prod-orders"

    def test_fallback_identity_rejected_in_production(self):
        """Test the fallback identity cannot be enabled outside offline mode."""
        with pytest.raises(ValidationError) as exc_info:
            ServiceEnvVars(DEPLOYMENT_MODE="production", ALLOW_FALLBACK_IDENTITY="true")

        assert "only allowed in offline mode" in str(exc_info.value)

    def test_fallback_identity_allowed_offline(self):
        """Test the fallback identity can be enabled offline."""
        settings = ServiceEnvVars(DEPLOYMENT_MODE="offline", ALLOW_FALLBACK_IDENTITY="true")

        assert settings.fallback_identity_enabled

    def test_token_strategy_needs_user_pool_in_production(self):
        """Test production token verification requires a user pool."""
        with pytest.raises(ValidationError):
            ServiceEnvVars(DEPLOYMENT_MODE="production", AUTH_STRATEGY="token")

        settings = ServiceEnvVars(
            DEPLOYMENT_MODE="production",
            AUTH_STRATEGY="token",
            COGNITO_USER_POOL_ID="us-east-1_abc",
        )
        assert settings.AUTH_STRATEGY == "token"

    @pytest.mark.parametrize("field,value", [
        ("DEPLOYMENT_MODE", "staging"),
        ("AUTH_STRATEGY", "cookie"),
        ("ORDER_STOCK_POLICY", "oversell"),
        ("LOG_LEVEL", "TRACE"),
    ])
    def test_invalid_enumerated_values(self, field, value):
        """Test enumerated settings reject unknown values."""
        with pytest.raises(ValidationError):
            ServiceEnvVars(**{"DEPLOYMENT_MODE": "offline", field: value})

    def test_parses_environment_mapping(self):
        """Test unrelated environment variables are ignored."""
        settings = ServiceEnvVars.model_validate({
            "DEPLOYMENT_MODE": "offline",
            "PRODUCTS_TABLE": "local-products",
            "PATH": "/usr/bin",
        })

        assert settings.is_offline
        assert settings.PRODUCTS_TABLE == "local-products"
