"""
Business logic for orders.

Order creation prices every line from the catalogue and checks stock before
anything is written. Two stock policies exist:

- ``reserve``: after the pre-check each tracked line is reserved with an atomic
  conditional decrement. A failed reservation releases the earlier ones and
  rejects the order, so concurrent orders cannot oversell.
- ``check``: stock is only compared, never decremented. Concurrent orders for
  the last unit can both succeed.

Products without a ``stock`` attribute are not inventory-tracked.
"""

from enum import Enum
from typing import Any, Dict, List, Tuple

from crud_service.dal import ORDERS, PRODUCTS
from crud_service.dal.record_store import BaseRecordStore
from crud_service.events import BaseEventPublisher, EventType
from crud_service.handlers.utils.errors import (
    AuthorizationError,
    BaseServiceError,
    ConditionFailedError,
    ConflictError,
    NotFoundError,
)
from crud_service.handlers.utils.observability import count, logger, tracer
from crud_service.models.input import OrderRequest
from crud_service.models.order import OWNER_FIELD, Order, OrderLine
from crud_service.security import CallerIdentity, ensure_record_owner

STOCK_FIELD = 'stock'


class StockPolicy(str, Enum):
    RESERVE = 'reserve'
    CHECK = 'check'


def insufficient_stock(product: Dict[str, Any]) -> ConflictError:
    return ConflictError(message=f"Insufficient stock for product {product['name']}", error_code="INSUFFICIENT_STOCK")


def product_not_found(product_id: str) -> NotFoundError:
    return NotFoundError(
        message=f"Product with ID {product_id} not found",
        resource_type="Product",
        resource_id=product_id,
    )


class OrderService:
    """Business logic service for order placement and retrieval."""

    def __init__(
        self,
        store: BaseRecordStore,
        publisher: BaseEventPublisher,
        stock_policy: StockPolicy = StockPolicy.RESERVE,
    ):
        self.store = store
        self.publisher = publisher
        self.stock_policy = StockPolicy(stock_policy)

        logger.info("Order service initialized", extra={"stock_policy": self.stock_policy.value})

    def _price_lines(self, request: OrderRequest) -> List[Tuple[Dict[str, Any], OrderLine]]:
        priced = []
        for requested in request.products:
            product = self.store.get(PRODUCTS, requested.productId)
            if product is None:
                raise product_not_found(requested.productId)
            stock = product.get(STOCK_FIELD)
            if stock is not None and stock < requested.quantity:
                raise insufficient_stock(product)
            priced.append((product, OrderLine.price(product, requested.quantity)))
        return priced

    def _release(self, reserved: List[OrderLine]) -> None:
        for line in reserved:
            try:
                self.store.increment(PRODUCTS, line.productId, STOCK_FIELD, line.quantity)
            except BaseServiceError as e:
                count("StockReleaseFailed")
                logger.error("Failed to release reserved stock", extra={
                    "product_id": line.productId,
                    "quantity": line.quantity,
                    "error_id": e.error_id,
                })

    def _reserve(self, priced: List[Tuple[Dict[str, Any], OrderLine]]) -> List[OrderLine]:
        reserved: List[OrderLine] = []
        for product, line in priced:
            if product.get(STOCK_FIELD) is None:
                continue
            try:
                self.store.conditional_decrement(PRODUCTS, line.productId, STOCK_FIELD, line.quantity)
            except ConditionFailedError:
                self._release(reserved)
                count("StockReservationRejected")
                raise insufficient_stock(product)
            except NotFoundError:
                # deleted after pricing
                self._release(reserved)
                raise product_not_found(line.productId)
            reserved.append(line)
        return reserved

    @tracer.capture_method
    def create_order(self, caller: CallerIdentity, request: OrderRequest) -> Dict[str, Any]:
        """
        Place an order for the caller.

        Raises:
            AuthorizationError: If ``userId`` in the body is not the caller
            NotFoundError: If a product does not exist
            ConflictError: If a line asks for more than the product's stock
        """
        if request.userId != caller.user_id:
            raise AuthorizationError()

        priced = self._price_lines(request)
        reserved = self._reserve(priced) if self.stock_policy == StockPolicy.RESERVE else []

        order = Order.create(caller.user_id, [line for _, line in priced], request.shippingAddress)
        try:
            record = self.store.put(ORDERS, order.to_record())
        except BaseServiceError:
            self._release(reserved)
            raise

        tracer.put_annotation("order_id", record['id'])
        logger.info("Order created", extra={
            "order_id": record['id'],
            "user_id": caller.user_id,
            "line_count": len(order.products),
            "total_amount": order.totalAmount,
        })
        count("OrdersCreated")

        self.publisher.publish(EventType.ORDER_CREATED.value, record)
        return record

    @tracer.capture_method
    def get_order(self, caller: CallerIdentity, order_id: str) -> Dict[str, Any]:
        order = self.store.get(ORDERS, order_id)
        if order is None:
            raise NotFoundError(message='Order not found', resource_type='Order', resource_id=order_id)
        ensure_record_owner(caller, order, OWNER_FIELD, 'Order')
        return order
