"""
Security package: token verification, caller identity extraction and
ownership checks.
"""

from .auth import (
    ADMIN_GROUP,
    CallerIdentity,
    JwksTokenVerifier,
    SharedSecretTokenVerifier,
    TokenVerifier,
)
from .context import AuthStrategy, RequestContextExtractor
from .ownership import ensure_group, ensure_owner, ensure_record_owner

__all__ = [
    "ADMIN_GROUP",
    "CallerIdentity",
    "TokenVerifier",
    "JwksTokenVerifier",
    "SharedSecretTokenVerifier",
    "AuthStrategy",
    "RequestContextExtractor",
    "ensure_owner",
    "ensure_record_owner",
    "ensure_group",
]
