"""
Input models for request validation using Pydantic.

Every model forbids unknown fields, so ownership attributes such as
``createdBy`` or ``id`` can never be supplied through a request body.
"""

import re
from typing import Annotated, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def _check_email(value: str) -> str:
    if not EMAIL_PATTERN.match(value):
        raise ValueError('must be a valid email')
    return value.lower()


class RequestModel(BaseModel):
    """Base class for request bodies."""

    model_config = ConfigDict(extra='forbid')


class UserRequest(RequestModel):
    """Request model for creating or replacing a user profile."""

    name: Annotated[str, Field(
        min_length=2,
        max_length=50,
        description='Display name',
        examples=['Jane Doe']
    )]

    email: Annotated[str, Field(
        description='Email address',
        examples=['jane@example.com']
    )]

    age: Annotated[int | None, Field(
        default=None,
        ge=18,
        le=120,
        description='Age in years'
    )] = None

    phone: Annotated[str | None, Field(
        default=None,
        pattern=r'^\+?[1-9]\d{1,14}$',
        description='E.164-like phone number',
        examples=['+14155550100']
    )] = None

    @field_validator('email')
    @classmethod
    def validate_email_format(cls, v: str) -> str:
        """Validate email format."""
        return _check_email(v)


class ProductRequest(RequestModel):
    """Request model for creating or replacing a product."""

    name: Annotated[str, Field(
        min_length=2,
        max_length=100,
        description='Product name',
        examples=['Mechanical keyboard']
    )]

    description: Annotated[str | None, Field(
        default=None,
        min_length=10,
        max_length=500,
        description='Long description'
    )] = None

    price: Annotated[float, Field(
        gt=0,
        allow_inf_nan=False,
        description='Unit price',
        examples=[49.99]
    )]

    category: Annotated[str, Field(
        min_length=2,
        max_length=50,
        description='Catalogue category',
        examples=['electronics']
    )]

    stock: Annotated[int | None, Field(
        default=None,
        ge=0,
        description='Units in stock; omitted means inventory is not tracked'
    )] = None


class OrderLineRequest(RequestModel):
    """One line of an order request."""

    productId: Annotated[str, Field(min_length=1)]
    quantity: Annotated[int, Field(ge=1)]


class ShippingAddress(RequestModel):
    """Complete shipping address."""

    street: Annotated[str, Field(min_length=1)]
    city: Annotated[str, Field(min_length=1)]
    zipCode: Annotated[str, Field(min_length=1)]
    country: Annotated[str, Field(min_length=1)]


class OrderRequest(RequestModel):
    """Request model for placing an order."""

    userId: Annotated[str, Field(min_length=1, description='Must equal the caller id')]

    products: Annotated[list[OrderLineRequest], Field(
        min_length=1,
        description='Ordered list of product lines'
    )]

    shippingAddress: ShippingAddress


class FileUploadRequest(RequestModel):
    """Request model for uploading a file inline as base64."""

    fileName: Annotated[str, Field(min_length=1, max_length=255)]
    fileContent: Annotated[str, Field(min_length=1, description='Base64 encoded body')]
    contentType: Annotated[str | None, Field(default=None)] = None
    metadata: Annotated[Dict[str, str], Field(default_factory=dict)]


class UploadUrlRequest(RequestModel):
    """Request model for a presigned upload URL."""

    fileName: Annotated[str, Field(min_length=1, max_length=255)]
    contentType: Annotated[str | None, Field(default=None)] = None
    expiresIn: Annotated[int, Field(default=3600, ge=1, le=604800)] = 3600


class SignupRequest(RequestModel):
    """Request model for account registration."""

    email: str
    password: Annotated[str, Field(min_length=1)]
    name: Annotated[str, Field(min_length=1)]

    @field_validator('email')
    @classmethod
    def validate_email_format(cls, v: str) -> str:
        return _check_email(v)


class SigninRequest(RequestModel):
    """Request model for password sign-in."""

    email: str
    password: Annotated[str, Field(min_length=1)]

    @field_validator('email')
    @classmethod
    def validate_email_format(cls, v: str) -> str:
        return _check_email(v)


class ConfirmSignupRequest(RequestModel):
    """Request model for confirming a registration code."""

    email: str
    confirmationCode: Annotated[str, Field(min_length=1)]

    @field_validator('email')
    @classmethod
    def validate_email_format(cls, v: str) -> str:
        return _check_email(v)
