"""
Token verification and caller identity.

Two verifiers implement one contract, ``verify(token) -> claims``:

- ``JwksTokenVerifier``: RS256 tokens checked against the identity provider's
  rotating JSON Web Key Set, with keys cached by key id.
- ``SharedSecretTokenVerifier``: HS256 tokens signed with a local secret. It
  refuses to exist outside offline mode, so a production deployment can never
  be downgraded to a symmetric algorithm.
"""

import json
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from urllib.request import urlopen

import jwt
from cachetools import TTLCache
from jwt.algorithms import RSAAlgorithm

from crud_service.handlers.utils.errors import (
    AuthenticationError,
    ConfigurationError,
    InvalidTokenError,
    TokenExpiredError,
    UpstreamError,
)
from crud_service.handlers.utils.observability import count, duration, logger, tracer

USERNAME_CLAIM = 'cognito:username'
GROUPS_CLAIM = 'cognito:groups'
ADMIN_GROUP = 'admin'
TOKEN_LIFETIME_SECONDS = 24 * 60 * 60

JwksFetcher = Callable[[str], Dict[str, Any]]


def _parse_groups(raw: Any) -> List[str]:
    # authorizer claims arrive flattened to strings, e.g. "[admin, staff]"
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(group) for group in raw]
    text = str(raw).strip().strip('[]')
    return [group for group in text.replace(',', ' ').split() if group]


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated principal for one request. Never persisted."""

    user_id: str
    email: str = ''
    name: str = ''
    username: str = ''
    groups: List[str] = field(default_factory=list)

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> 'CallerIdentity':
        """Map standard claims; the username falls back to the email."""
        user_id = claims.get('sub')
        if not user_id:
            raise AuthenticationError("Token has no subject")
        email = claims.get('email') or ''
        return cls(
            user_id=str(user_id),
            email=email,
            name=claims.get('name') or '',
            username=claims.get(USERNAME_CLAIM) or claims.get('username') or email,
            groups=_parse_groups(claims.get(GROUPS_CLAIM)),
        )

    def is_in_group(self, group: str) -> bool:
        return group in self.groups

    @property
    def is_admin(self) -> bool:
        return self.is_in_group(ADMIN_GROUP)


class TokenVerifier(ABC):
    """Validates a bearer credential and returns its claims."""

    @abstractmethod
    def verify(self, token: str) -> Dict[str, Any]:
        """
        Verify ``token``.

        Raises:
            TokenExpiredError: If ``exp`` is in the past
            InvalidTokenError: On any signature, algorithm, issuer or shape problem
        """


def _decode(token: str, key: Any, algorithm: str, **kwargs) -> Dict[str, Any]:
    started = time.time()
    try:
        claims = jwt.decode(token, key, algorithms=[algorithm], **kwargs)
    except jwt.ExpiredSignatureError as e:
        count("AuthenticationTokenExpired")
        raise TokenExpiredError() from e
    except jwt.InvalidTokenError as e:
        count("AuthenticationInvalidToken")
        logger.warning("Invalid token", extra={"reason": str(e)})
        raise InvalidTokenError() from e

    count("AuthenticationSuccess")
    duration("AuthenticationDuration", (time.time() - started) * 1000)
    return claims


def _unverified_header(token: str, allowed_algorithm: str) -> Dict[str, Any]:
    try:
        header = jwt.get_unverified_header(token)
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError() from e
    if header.get('alg') != allowed_algorithm:
        count("AuthenticationInvalidToken")
        logger.warning("Rejected token algorithm", extra={"alg": header.get('alg')})
        raise InvalidTokenError("Unsupported token algorithm")
    return header


class SharedSecretTokenVerifier(TokenVerifier):
    """HS256 verifier for offline development. Also issues tokens for offline sign-in."""

    ALGORITHM = 'HS256'

    def __init__(self, secret: str, offline: bool):
        if not offline:
            raise ConfigurationError("Shared-secret tokens are only accepted in offline mode")
        if not secret:
            raise ConfigurationError("A shared secret is required")
        self._secret = secret

    def verify(self, token: str) -> Dict[str, Any]:
        _unverified_header(token, self.ALGORITHM)
        return _decode(token, self._secret, self.ALGORITHM, options={"require": ["exp", "sub"]})

    def issue_token(self, claims: Dict[str, Any], expires_in: int = TOKEN_LIFETIME_SECONDS) -> str:
        now = int(time.time())
        payload = {**claims, "iat": now, "exp": now + expires_in}
        return jwt.encode(payload, self._secret, algorithm=self.ALGORITHM)


def fetch_jwks(url: str) -> Dict[str, Any]:
    """Download a JSON Web Key Set."""
    with urlopen(url, timeout=5) as response:
        return json.loads(response.read())


class JwksTokenVerifier(TokenVerifier):
    """
    RS256 verifier backed by a JSON Web Key Set.

    Keys are cached by ``kid``; an unknown ``kid`` triggers one refetch so that
    key rotation is picked up without a restart.
    """

    ALGORITHM = 'RS256'

    def __init__(
        self,
        issuer: str,
        jwks_url: Optional[str] = None,
        audience: Optional[str] = None,
        fetcher: JwksFetcher = fetch_jwks,
        cache_ttl: int = 3600,
        leeway: int = 0,
    ):
        self.issuer = issuer
        self.jwks_url = jwks_url or f"{issuer}/.well-known/jwks.json"
        self.audience = audience
        self.leeway = leeway
        self._fetcher = fetcher
        self._keys: TTLCache = TTLCache(maxsize=32, ttl=cache_ttl)

        logger.info("JWKS verifier initialized", extra={"issuer": issuer, "jwks_url": self.jwks_url})

    @classmethod
    def for_cognito(cls, region: str, user_pool_id: str, client_id: Optional[str] = None) -> 'JwksTokenVerifier':
        issuer = f"https://cognito-idp.{region}.amazonaws.com/{user_pool_id}"
        return cls(issuer=issuer, audience=client_id)

    def _refresh(self) -> None:
        try:
            jwks = self._fetcher(self.jwks_url)
        except (OSError, ValueError) as e:
            count("JwksFetchFailed")
            logger.error("Failed to fetch JWKS", extra={"jwks_url": self.jwks_url, "error": str(e)})
            raise UpstreamError(message="Unable to fetch signing keys", service_name="IdentityProvider") from e

        for jwk in jwks.get('keys', []):
            if jwk.get('kty') == 'RSA' and jwk.get('kid'):
                self._keys[jwk['kid']] = RSAAlgorithm.from_jwk(json.dumps(jwk))

    def _signing_key(self, key_id: Optional[str]) -> Any:
        if not key_id:
            raise InvalidTokenError("Token has no key id")
        if key_id not in self._keys:
            self._refresh()
        key = self._keys.get(key_id)
        if key is None:
            raise InvalidTokenError("Unknown signing key")
        return key

    def _check_client(self, claims: Dict[str, Any]) -> None:
        # access tokens name the app client in client_id and carry no aud
        if claims.get('token_use') == 'access':
            client = claims.get('client_id')
        else:
            client = claims.get('aud')
        if isinstance(client, list):
            matches = self.audience in client
        else:
            matches = client == self.audience
        if not matches:
            count("AuthenticationInvalidToken")
            logger.warning("Token issued for another client", extra={"token_use": claims.get('token_use')})
            raise InvalidTokenError()

    @tracer.capture_method
    def verify(self, token: str) -> Dict[str, Any]:
        header = _unverified_header(token, self.ALGORITHM)
        key = self._signing_key(header.get('kid'))
        claims = _decode(
            token,
            key,
            self.ALGORITHM,
            issuer=self.issuer,
            leeway=self.leeway,
            options={"require": ["exp", "sub", "iss"], "verify_aud": False},
        )
        if self.audience is not None:
            self._check_client(claims)
        return claims
