"""
Domain errors raised by the service layer.

Handlers in app.main map them to HTTP responses:
NotFoundError -> 404, ValidationError -> 400, StorageError -> 500.
AuthError never reaches a client from the cart path; the cart identity
resolver downgrades it to the guest flow.
"""
from typing import Any, Optional


class StorefrontError(Exception):
    """Base class for errors raised by the storefront services."""

    message = "Storefront error"

    def __init__(self, message: Optional[str] = None, detail: Any = None):
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message)


class NotFoundError(StorefrontError):
    message = "Resource not found"

    def __init__(self, resource: str, resource_id: Any = None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found", detail=resource_id)


class ValidationError(StorefrontError):
    message = "Invalid data"


class StorageError(StorefrontError):
    message = "Storage operation failed"


class AuthError(StorefrontError):
    message = "Invalid or expired credentials"
