"""Request context extraction: inbound API Gateway event to CallerIdentity."""

from enum import Enum
from typing import Any, Dict, Optional

from crud_service.handlers.utils.errors import AuthenticationError, InvalidTokenError
from crud_service.handlers.utils.observability import logger
from crud_service.security.auth import CallerIdentity, TokenVerifier

BEARER_PREFIX = 'bearer '


class AuthStrategy(str, Enum):
    """How a caller is identified. Chosen once per deployment, never per request."""

    AUTHORIZER = 'authorizer'
    TOKEN = 'token'


def _header(event: Dict[str, Any], name: str) -> Optional[str]:
    for key, value in (event.get('headers') or {}).items():
        if key.lower() == name:
            return value
    return None


class RequestContextExtractor:
    """
    Produces the caller identity for a request.

    With the ``authorizer`` strategy the claims already verified by an upstream
    API Gateway authorizer are trusted; with ``token`` the bearer token is
    verified locally. A fallback identity is only used when the request
    carries no credential at all; a bad credential is always rejected.
    """

    def __init__(
        self,
        strategy: AuthStrategy,
        verifier: Optional[TokenVerifier] = None,
        fallback_identity: Optional[CallerIdentity] = None,
    ):
        if strategy == AuthStrategy.TOKEN and verifier is None:
            raise ValueError("token strategy requires a verifier")
        self.strategy = strategy
        self.verifier = verifier
        self.fallback_identity = fallback_identity

    def extract(self, event: Dict[str, Any]) -> CallerIdentity:
        if self.strategy == AuthStrategy.AUTHORIZER:
            claims = ((event.get('requestContext') or {}).get('authorizer') or {}).get('claims')
            if claims:
                return CallerIdentity.from_claims(claims)
        else:
            authorization = _header(event, 'authorization')
            if authorization:
                if not authorization.lower().startswith(BEARER_PREFIX):
                    raise InvalidTokenError("Malformed authorization header")
                token = authorization[len(BEARER_PREFIX):].strip()
                return CallerIdentity.from_claims(self.verifier.verify(token))

        if self.fallback_identity is not None:
            logger.debug("Using offline fallback identity", extra={"user_id": self.fallback_identity.user_id})
            return self.fallback_identity

        raise AuthenticationError()
