"""Error taxonomy shared by the services and the HTTP layer.

Every error carries a machine-readable ``kind`` and an HTTP status code, plus
structured details the caller can use to render a message (which product, how
much stock is left, which transition was refused).
"""

from typing import Any


class StorefrontError(Exception):
    kind = "StorefrontError"
    status_code = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, **self.details}


class CheckoutError(StorefrontError):
    kind = "CheckoutError"


class EmptyCart(CheckoutError):
    kind = "EmptyCart"

    def __init__(self):
        super().__init__("Cart is empty")


class InvalidQuantity(CheckoutError):
    kind = "InvalidQuantity"

    def __init__(self, product_id: Any, quantity: Any):
        super().__init__(
            f"Quantity for product {product_id} must be a positive integer",
            productId=product_id,
            quantity=quantity,
        )


class MissingCustomerDetails(CheckoutError):
    kind = "MissingCustomerDetails"

    def __init__(self, field: str):
        super().__init__(f"{field} is required", field=field)


class ProductNotFound(CheckoutError):
    kind = "ProductNotFound"
    status_code = 404

    def __init__(self, product_id: Any):
        super().__init__(f"Product {product_id} not found", productId=product_id)


class InsufficientStock(CheckoutError):
    kind = "InsufficientStock"
    status_code = 409

    def __init__(self, product_id: int, product_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {product_name}: requested {requested}, available {available}",
            productId=product_id,
            productName=product_name,
            requested=requested,
            available=available,
        )
        self.product_name = product_name
        self.requested = requested
        self.available = available


class IdempotencyKeyReused(CheckoutError):
    kind = "IdempotencyKeyReused"
    status_code = 409

    def __init__(self, key: str, order_id: int):
        super().__init__(
            "Idempotency key was already used for a different checkout request",
            idempotencyKey=key,
            orderId=order_id,
        )


class TransactionFailed(CheckoutError):
    """Infrastructure failure. The order must be treated as not placed."""

    kind = "TransactionFailed"
    status_code = 503

    def __init__(self, reason: str):
        super().__init__(f"Transaction failed: {reason}")


class OrderNotFound(StorefrontError):
    kind = "OrderNotFound"
    status_code = 404

    def __init__(self, order_id: Any):
        super().__init__(f"Order {order_id} not found", orderId=order_id)


class InvalidTransition(StorefrontError):
    kind = "InvalidTransition"
    status_code = 409

    def __init__(self, order_id: int, current: str, requested: str):
        super().__init__(
            f"Cannot transition order {order_id} from {current} to {requested}",
            orderId=order_id,
            current=current,
            requested=requested,
        )


class InvalidProductData(StorefrontError):
    kind = "InvalidProductData"

    def __init__(self, field: str, value: Any):
        super().__init__(f"Invalid value for {field}: {value!r}", field=field)


class AuthenticationFailed(StorefrontError):
    kind = "AuthenticationFailed"
    status_code = 401


class InvalidToken(StorefrontError):
    kind = "InvalidToken"
    status_code = 403
