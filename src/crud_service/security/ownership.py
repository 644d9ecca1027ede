"""Ownership and group checks."""

from typing import Any, Dict

from crud_service.handlers.utils.errors import AuthorizationError
from crud_service.handlers.utils.observability import count, logger
from crud_service.security.auth import CallerIdentity


def ensure_owner(caller: CallerIdentity, owner_id: Any, resource: str = 'resource') -> None:
    """Raise AuthorizationError unless ``caller`` owns the resource."""
    if owner_id is None or caller.user_id != owner_id:
        count("AuthorizationDenied")
        logger.warning("Ownership check failed", extra={"user_id": caller.user_id, "resource": resource})
        raise AuthorizationError()


def ensure_record_owner(caller: CallerIdentity, record: Dict[str, Any], owner_field: str, resource: str) -> None:
    ensure_owner(caller, record.get(owner_field), resource)


def ensure_group(caller: CallerIdentity, group: str) -> None:
    if not caller.is_in_group(group):
        count("AuthorizationDenied")
        logger.warning("Group check failed", extra={"user_id": caller.user_id, "group": group})
        raise AuthorizationError(f"{group.capitalize()} access required")
