"""
Error types and messages for the cart/session layer.

Messages are kept as constants so tests and callers can match on them.
"""

ERROR_CART_ITEM_NOT_FOUND = "Cart item not found"
ERROR_MALFORMED_CART = "Persisted cart is malformed"
ERROR_REMOTE = "Remote request failed"
ERROR_UNAUTHORIZED = "Unauthorized"
ERROR_STORAGE_UNAVAILABLE = "Storage unavailable"


class CartSessionError(Exception):
    """Base class for all cartsession errors."""


class CartItemNotFound(CartSessionError, LookupError):
    """A mutation referenced a cart line item key that does not exist."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"{ERROR_CART_ITEM_NOT_FOUND}: {key}")


class MalformedCartError(CartSessionError, ValueError):
    """The stored cart could not be decoded."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"{ERROR_MALFORMED_CART}: {detail}")


class RemoteError(CartSessionError):
    """A GraphQL request failed (network, HTTP or GraphQL error)."""

    def __init__(self, message: str = ERROR_REMOTE, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class AuthError(RemoteError):
    """The backend rejected the session token."""

    def __init__(self, message: str = ERROR_UNAUTHORIZED, status_code: int | None = None):
        super().__init__(message, status_code)


class StorageError(CartSessionError):
    """A key-value store read or write failed."""

    def __init__(self, operation: str, key: str, cause: Exception | None = None):
        self.operation = operation
        self.key = key
        detail = f": {cause}" if cause else ""
        super().__init__(f"{ERROR_STORAGE_UNAVAILABLE} ({operation} {key}){detail}")


__all__ = [
    "ERROR_CART_ITEM_NOT_FOUND",
    "ERROR_MALFORMED_CART",
    "ERROR_REMOTE",
    "ERROR_UNAUTHORIZED",
    "ERROR_STORAGE_UNAVAILABLE",
    "CartSessionError",
    "CartItemNotFound",
    "MalformedCartError",
    "RemoteError",
    "AuthError",
    "StorageError",
]
