"""
Data Access Layer (DAL) for the CRUD microservices.

Two interchangeable record stores (in-memory and DynamoDB) and two object
stores (in-memory and S3). The runtime picks one of each from configuration.
"""

from crud_service.dal.dynamodb_handler import DynamoDBRecordStore
from crud_service.dal.object_store import BaseObjectStore, InMemoryObjectStore, S3ObjectStore
from crud_service.dal.record_store import BaseRecordStore, InMemoryRecordStore

USERS = 'users'
PRODUCTS = 'products'
ORDERS = 'orders'

__all__ = [
    "BaseRecordStore",
    "InMemoryRecordStore",
    "DynamoDBRecordStore",
    "BaseObjectStore",
    "InMemoryObjectStore",
    "S3ObjectStore",
    "USERS",
    "PRODUCTS",
    "ORDERS",
]
