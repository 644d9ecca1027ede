"""
Product domain record.

``createdBy`` is stamped from the caller at creation and is the only input to
update/delete authorization.
"""

from typing import Annotated, Any, Dict, Optional

from pydantic import BaseModel, Field

from crud_service.models.common import new_id, utc_now_iso
from crud_service.models.input import ProductRequest

OWNER_FIELD = 'createdBy'


class Product(BaseModel):
    """Core Product domain model."""

    id: str
    name: str
    description: Optional[str] = None
    price: Annotated[float, Field(gt=0)]
    category: str
    stock: Annotated[Optional[int], Field(default=None, ge=0)] = None
    createdAt: str
    createdBy: str
    updatedAt: str

    @classmethod
    def create(cls, request: ProductRequest, created_by: str) -> 'Product':
        """Create a new product owned by ``created_by``."""
        now = utc_now_iso()
        return cls(
            id=new_id(),
            **request.model_dump(exclude_none=True),
            createdAt=now,
            createdBy=created_by,
            updatedAt=now,
        )

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
