"""
Service Models Package

Request schemas and the schema validator, domain records, and the response
envelopes used by every handler.
"""

from .input import (
    ConfirmSignupRequest,
    FileUploadRequest,
    OrderLineRequest,
    OrderRequest,
    ProductRequest,
    ShippingAddress,
    SigninRequest,
    SignupRequest,
    UploadUrlRequest,
    UserRequest,
)
from .order import Order, OrderLine
from .output import ErrorEnvelope, SuccessEnvelope
from .product import Product
from .stored_file import StoredFile
from .user import User

__all__ = [
    # Input models
    "UserRequest",
    "ProductRequest",
    "OrderRequest",
    "OrderLineRequest",
    "ShippingAddress",
    "FileUploadRequest",
    "UploadUrlRequest",
    "SignupRequest",
    "SigninRequest",
    "ConfirmSignupRequest",

    # Domain models
    "User",
    "Product",
    "Order",
    "OrderLine",
    "StoredFile",

    # Output models
    "SuccessEnvelope",
    "ErrorEnvelope",
]
