"""
Order domain model.

Prices are frozen into each line when the order is created; the order total is
the sum of the line totals and is never recomputed from the catalogue.
"""

from typing import Any, Dict, List

from pydantic import BaseModel

from crud_service.models.common import new_id, utc_now_iso
from crud_service.models.input import ShippingAddress

OWNER_FIELD = 'userId'


class OrderLine(BaseModel):
    """A priced order line."""

    productId: str
    productName: str
    quantity: int
    unitPrice: float
    totalPrice: float

    @classmethod
    def price(cls, product: Dict[str, Any], quantity: int) -> 'OrderLine':
        """Freeze the product's current price into a line."""
        unit_price = product['price']
        return cls(
            productId=product['id'],
            productName=product['name'],
            quantity=quantity,
            unitPrice=unit_price,
            totalPrice=unit_price * quantity,
        )


class Order(BaseModel):
    """Core Order domain model."""

    id: str
    userId: str
    products: List[OrderLine]
    shippingAddress: ShippingAddress
    totalAmount: float
    createdAt: str
    updatedAt: str

    @classmethod
    def create(cls, user_id: str, lines: List[OrderLine], shipping_address: ShippingAddress) -> 'Order':
        """
        Create a new order for ``user_id``.

        Args:
            user_id: Owner of the order
            lines: Priced lines, in request order
            shipping_address: Validated shipping address

        Returns:
            Order with a generated id and a total accumulated over the lines
        """
        total_amount = 0.0
        for line in lines:
            total_amount += line.totalPrice

        now = utc_now_iso()
        return cls(
            id=new_id(),
            userId=user_id,
            products=lines,
            shippingAddress=shipping_address,
            totalAmount=total_amount,
            createdAt=now,
            updatedAt=now,
        )

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump()
