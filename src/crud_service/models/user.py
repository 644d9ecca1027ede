"""
User domain record.

A user record is owned by the principal whose id equals the record id.
"""

from typing import Annotated, Any, Dict, Optional

from pydantic import BaseModel, Field

from crud_service.models.common import new_id, utc_now_iso
from crud_service.models.input import UserRequest


class User(BaseModel):
    """Core User domain model."""

    id: Annotated[str, Field(description='Unique identifier, doubles as the owner id')]
    name: str
    email: str
    age: Optional[int] = None
    phone: Optional[str] = None
    createdAt: str
    updatedAt: str

    @classmethod
    def create(cls, request: UserRequest, user_id: Optional[str] = None) -> 'User':
        """Create a new user with a generated id unless one is supplied."""
        now = utc_now_iso()
        return cls(
            id=user_id or new_id(),
            **request.model_dump(exclude_none=True),
            createdAt=now,
            updatedAt=now,
        )

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
