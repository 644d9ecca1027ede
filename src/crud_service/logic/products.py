"""Business logic for the product catalogue."""

from typing import Any, Dict, List

from crud_service.dal import PRODUCTS
from crud_service.dal.record_store import BaseRecordStore
from crud_service.events import BaseEventPublisher, EventType
from crud_service.handlers.utils.errors import AuthorizationError, ConditionFailedError, NotFoundError
from crud_service.handlers.utils.observability import logger, tracer
from crud_service.models.common import touched_at
from crud_service.models.input import ProductRequest
from crud_service.models.product import OWNER_FIELD, Product
from crud_service.security import CallerIdentity, ensure_record_owner


def product_not_found(product_id: str) -> NotFoundError:
    return NotFoundError(message='Product not found', resource_type='Product', resource_id=product_id)


class ProductService:
    """Business logic service for product management."""

    def __init__(self, store: BaseRecordStore, publisher: BaseEventPublisher):
        self.store = store
        self.publisher = publisher

    @tracer.capture_method
    def create_product(self, caller: CallerIdentity, request: ProductRequest) -> Dict[str, Any]:
        record = self.store.put(PRODUCTS, Product.create(request, created_by=caller.user_id).to_record())
        tracer.put_annotation("product_id", record['id'])
        logger.info("Product created", extra={"product_id": record['id'], "created_by": caller.user_id})

        self.publisher.publish(EventType.PRODUCT_CREATED.value, record)
        return record

    @tracer.capture_method
    def get_product(self, product_id: str) -> Dict[str, Any]:
        product = self.store.get(PRODUCTS, product_id)
        if product is None:
            raise product_not_found(product_id)
        return product

    @tracer.capture_method
    def list_products(self) -> List[Dict[str, Any]]:
        return self.store.scan(PRODUCTS)

    @tracer.capture_method
    def update_product(self, caller: CallerIdentity, product_id: str, request: ProductRequest) -> Dict[str, Any]:
        """
        Replace the catalogue fields of a product the caller created.

        The write is conditional on ``createdBy`` still matching the caller, so a
        check-then-write race cannot let a non-owner through.
        """
        existing = self.get_product(product_id)
        ensure_record_owner(caller, existing, OWNER_FIELD, 'Product')

        patch = request.model_dump(exclude_none=True)
        patch['updatedAt'] = touched_at(existing['createdAt'])
        try:
            updated = self.store.update(PRODUCTS, product_id, patch, condition={OWNER_FIELD: caller.user_id})
        except NotFoundError:
            raise product_not_found(product_id)
        except ConditionFailedError:
            raise AuthorizationError()

        logger.info("Product updated", extra={"product_id": product_id})
        self.publisher.publish(EventType.PRODUCT_UPDATED.value, updated)
        return updated

    @tracer.capture_method
    def delete_product(self, caller: CallerIdentity, product_id: str) -> Dict[str, Any]:
        existing = self.get_product(product_id)
        ensure_record_owner(caller, existing, OWNER_FIELD, 'Product')

        try:
            self.store.delete(PRODUCTS, product_id, condition={OWNER_FIELD: caller.user_id})
        except NotFoundError:
            raise product_not_found(product_id)
        except ConditionFailedError:
            raise AuthorizationError()

        logger.info("Product deleted", extra={"product_id": product_id})
        self.publisher.publish(EventType.PRODUCT_DELETED.value, {"id": product_id})
        return {"message": "Product deleted successfully"}
