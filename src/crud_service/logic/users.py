"""
Business logic for user records.

A user record is owned by the principal whose id equals the record id, so
every read and mutation is authorized before the store is touched.
"""

from typing import Any, Dict

from crud_service.dal import USERS
from crud_service.dal.record_store import BaseRecordStore
from crud_service.events import BaseEventPublisher, EventType
from crud_service.handlers.utils.errors import NotFoundError
from crud_service.handlers.utils.observability import logger, tracer
from crud_service.models.common import touched_at
from crud_service.models.input import UserRequest
from crud_service.models.user import User
from crud_service.security import CallerIdentity, ensure_owner


class UserService:
    """Business logic service for user management."""

    def __init__(self, store: BaseRecordStore, publisher: BaseEventPublisher):
        self.store = store
        self.publisher = publisher

    def _load(self, user_id: str) -> Dict[str, Any]:
        user = self.store.get(USERS, user_id)
        if user is None:
            raise NotFoundError(message='User not found', resource_type='User', resource_id=user_id)
        return user

    @tracer.capture_method
    def create_user(self, request: UserRequest) -> Dict[str, Any]:
        record = self.store.put(USERS, User.create(request).to_record())
        tracer.put_annotation("user_id", record['id'])
        logger.info("User created", extra={"user_id": record['id']})

        self.publisher.publish(EventType.USER_CREATED.value, record)
        return record

    @tracer.capture_method
    def get_user(self, caller: CallerIdentity, user_id: str) -> Dict[str, Any]:
        ensure_owner(caller, user_id, 'User')
        return self._load(user_id)

    @tracer.capture_method
    def update_user(self, caller: CallerIdentity, user_id: str, request: UserRequest) -> Dict[str, Any]:
        """
        Apply a validated profile to the caller's own user record.

        Raises:
            AuthorizationError: If the path id is not the caller's id
            NotFoundError: If the record does not exist
        """
        ensure_owner(caller, user_id, 'User')
        existing = self._load(user_id)

        patch = request.model_dump(exclude_none=True)
        patch['updatedAt'] = touched_at(existing['createdAt'])
        try:
            updated = self.store.update(USERS, user_id, patch, condition={'id': caller.user_id})
        except NotFoundError:
            raise NotFoundError(message='User not found', resource_type='User', resource_id=user_id)

        logger.info("User updated", extra={"user_id": user_id})
        self.publisher.publish(EventType.USER_UPDATED.value, updated)
        return updated

    @tracer.capture_method
    def delete_user(self, caller: CallerIdentity, user_id: str) -> Dict[str, Any]:
        ensure_owner(caller, user_id, 'User')
        existing = self._load(user_id)

        self.store.delete(USERS, user_id)
        logger.info("User deleted", extra={"user_id": user_id})

        self.publisher.publish(EventType.USER_DELETED.value, existing)
        return {"message": "User deleted successfully"}
