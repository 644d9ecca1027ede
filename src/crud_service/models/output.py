"""
Output models for API responses using Pydantic.

Every response body is one of two envelopes: ``{success: true, data}`` or
``{success: false, message}``.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class SuccessEnvelope(BaseModel):
    """Envelope for successful responses."""

    success: Literal[True] = True
    data: Annotated[Any, Field(description='Operation result')]


class ErrorEnvelope(BaseModel):
    """Envelope for failed responses."""

    success: Literal[False] = False
    message: Annotated[str, Field(
        description='Human readable failure reason',
        examples=['Unauthorized access', 'Product not found']
    )]
