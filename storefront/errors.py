"""Exceptions raised by the storefront service.

Every error carries the HTTP status it is surfaced with; the handlers in
``storefront.main`` turn them into ``{"success": false, "message": ...}``.
"""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(StorefrontError):
    """Raised when a request is missing data or asks for something illegal."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class NotFoundError(StorefrontError):
    """Raised when a referenced order or product doesn't exist."""

    status_code = 404


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__("Order not found")


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class InsufficientStockError(StorefrontError):
    """Raised when a requested quantity exceeds the available stock."""

    status_code = 400

    def __init__(self, product_name: str, available: int):
        self.product_name = product_name
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_name}. Available: {available}"
        )


class AuthenticationError(StorefrontError):
    status_code = 401

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class PermissionDeniedError(StorefrontError):
    status_code = 403

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message)


class PersistenceError(StorefrontError):
    """Raised when the database fails underneath an operation.

    The original exception is chained; only a generic message reaches the
    caller.
    """

    status_code = 500

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Database failure during {operation}")
