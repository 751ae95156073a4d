"""
Error taxonomy shared by the cart, order, payment and delivery components.

Every error carries a stable ``code`` and the ``http_status`` the API layer
answers with. Callers catch the category (ValidationError, NotFoundError,
ConflictError, UnavailableError) or the concrete class.
"""
from typing import Optional


class OrderflowError(Exception):
    code = "COMMON_004"
    http_status = 500
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


# --- validation -----------------------------------------------------------


class ValidationError(OrderflowError):
    code = "COMMON_001"
    http_status = 400
    default_message = "Invalid parameter"


class InvalidQuantityError(ValidationError):
    code = "CART_001"
    default_message = "Quantity must be at least 1"


class EmptyCartError(ValidationError):
    code = "CART_003"
    default_message = "Cart is empty"


class MenuItemStoreMismatchError(ValidationError):
    code = "MENU_005"
    default_message = "Menu item does not belong to the ordered store"


class PaymentAmountMismatchError(ValidationError):
    code = "PAYMENT_004"
    default_message = "Payment amount does not match the order total"


# --- not found ------------------------------------------------------------


class NotFoundError(OrderflowError):
    code = "COMMON_003"
    http_status = 404
    default_message = "Resource not found"


class OrderNotFoundError(NotFoundError):
    code = "ORDER_001"
    default_message = "Order not found"


class PaymentNotFoundError(NotFoundError):
    code = "PAYMENT_005"
    default_message = "Payment not found"


class DeliveryNotFoundError(NotFoundError):
    code = "DELIVERY_001"
    default_message = "Delivery not found"


class MenuItemNotFoundError(NotFoundError):
    code = "MENU_001"
    default_message = "Menu item not found"


# --- conflict -------------------------------------------------------------


class ConflictError(OrderflowError):
    code = "COMMON_007"
    http_status = 409
    default_message = "Conflicting state"


class DifferentStoreError(ConflictError):
    code = "CART_002"
    default_message = (
        "Items from a different store cannot be added; clear the cart first"
    )


class CartConflictError(ConflictError):
    code = "CART_004"
    default_message = "Cart is being modified concurrently, try again"


class PaymentAttemptConflictError(ConflictError):
    code = "PAYMENT_006"
    default_message = "Another payment attempt for this order is being recorded, try again"


class InvalidStateTransitionError(ConflictError):
    code = "STATE_001"
    default_message = "Invalid state transition"

    def __init__(self, entity: str, current, action: str):
        self.entity = entity
        self.current = current
        self.action = action
        state = getattr(current, "value", current)
        super().__init__(f"Cannot {action} {entity} in state {state}")


# --- unavailable ----------------------------------------------------------


class UnavailableError(OrderflowError):
    code = "COMMON_008"
    http_status = 400
    default_message = "Resource unavailable"


class MenuItemUnavailableError(UnavailableError):
    code = "MENU_002"
    default_message = "Menu item is not available for ordering"
