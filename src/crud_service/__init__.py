"""
CRUD Microservices - Service Package.

This package contains the serverless implementation of the users, products,
orders and files APIs, following the three-layer architecture pattern:

- handlers: API handlers and Lambda entry points
- logic: Business logic and ownership rules
- dal: Data access layer for the record store and object store
- security: Token verification and caller identity extraction
- events: Lifecycle event publishing and notifications
- models: Request schemas, domain records and response envelopes

Every handler runs the same pipeline: authenticate, validate, authorize by
ownership, mutate the record store, publish a lifecycle event.
"""

__version__ = "1.0.0"
__description__ = "Serverless CRUD microservices with ownership-based authorization"

__all__ = [
    "__version__",
    "__description__",
]
