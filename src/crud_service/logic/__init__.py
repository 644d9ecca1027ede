"""
Business logic layer.

Services receive their collaborators (record store, object store, publisher)
from the runtime and raise typed service errors; they never build HTTP
responses.
"""

from .accounts import AccountService
from .admin import AdminService
from .files import FileService, generate_file_key
from .notifications import NotificationService
from .orders import OrderService, StockPolicy
from .products import ProductService
from .users import UserService

__all__ = [
    "UserService",
    "ProductService",
    "OrderService",
    "StockPolicy",
    "FileService",
    "generate_file_key",
    "AccountService",
    "AdminService",
    "NotificationService",
]
