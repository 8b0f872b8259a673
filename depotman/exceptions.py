"""
Exceptions for Depotman.

Every failure is an InventoryError with a structured code for programmatic
handling. Subclasses group the codes by kind so callers can catch
``InsufficientStock`` or ``NotFound`` directly.
"""

from decimal import Decimal
from typing import Any


class BaseError(Exception):
    """
    Exception with a machine-readable code and structured context.

    Args:
        code: Error code, e.g. 'INSUFFICIENT_STOCK'
        message: Human-readable message (defaults per code)
        **data: Context (offending ids, quantities, statuses)
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.data:
            context = ", ".join(f"{k}={v}" for k, v in self.data.items())
            return f"[{self.code}] {self.message} ({context})"
        return f"[{self.code}] {self.message}"


class InventoryError(BaseError):
    """
    Structured exception for inventory and transfer operations.

    Usage:
        try:
            inventory.reserve_for_sale(product, store, 5, principal=cashier)
        except InventoryError as e:
            if e.code == 'INSUFFICIENT_STOCK':
                print(f"Only {e.available} left")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    default_code = 'INVENTORY_ERROR'

    _default_messages = {
        'INVENTORY_ERROR': 'Inventory operation failed',
        'NOT_FOUND': 'Record not found',
        'PRODUCT_NOT_FOUND': 'Product not found',
        'LOCATION_NOT_FOUND': 'Location not found',
        'TRANSFER_NOT_FOUND': 'Transfer not found',
        'TRANSFER_LINE_NOT_FOUND': 'Product is not part of this transfer',
        'INVALID_STATE': 'Operation not allowed in the current status',
        'LOCATION_INACTIVE': 'Location is inactive',
        'INSUFFICIENT_STOCK': 'Requested quantity exceeds stock on hand',
        'INVALID_QUANTITY': 'Invalid quantity',
        'INVALID_SHIPPED_QUANTITY': 'Shipped quantity must be between 0 and the requested quantity',
        'INVALID_RECEIVED_QUANTITY': 'Received quantity exceeds the quantity still in transit',
        'INVALID_ADJUSTMENT_TYPE': 'Adjustment type must be ADD, SUBTRACT or SET',
        'INVALID_TRANSFER': 'Invalid transfer',
        'SAME_LOCATION': 'Source and destination must differ',
        'INVALID_TRANSFER_TYPE': 'Transfer type does not match the locations',
        'DUPLICATE_LINE': 'Product appears more than once in the transfer',
        'EMPTY_TRANSFER': 'Transfer needs at least one line',
        'UNAUTHORIZED': 'Role not allowed to perform this operation',
        'PRINCIPAL_REQUIRED': 'An authenticated principal is required',
        'REASON_REQUIRED': 'A reason is required',
        'INVALID_STOCK_TYPE': 'Unknown stock type filter',
        'INVALID_STATUS': 'Unknown ledger status',
        'INVALID_REASON_CODE': 'Unknown adjustment reason code',
        'INVALID_CONDITION': 'Condition must be GOOD, DAMAGED or EXPIRED',
        'SAME_STATUS': 'Source and target status must differ',
        'COUNT_NOT_FOUND': 'Stock count not found',
        'COUNT_LINE_NOT_FOUND': 'Product is not part of this stock count',
        'EMPTY_COUNT': 'Stock count needs at least one product',
    }

    def __init__(self, code: str | None = None, message: str | None = None, **data):
        super().__init__(code or self.default_code, message, **data)

    @property
    def available(self) -> int:
        """Shortcut for data['available']."""
        return self.data.get('available', 0)

    @property
    def requested(self) -> int:
        """Shortcut for data['requested']."""
        return self.data.get('requested', 0)

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }


class NotFound(InventoryError):
    default_code = 'NOT_FOUND'


class InvalidState(InventoryError):
    default_code = 'INVALID_STATE'


class InsufficientStock(InventoryError):
    default_code = 'INSUFFICIENT_STOCK'


class InvalidQuantity(InventoryError):
    default_code = 'INVALID_QUANTITY'


class InvalidAdjustmentType(InventoryError):
    default_code = 'INVALID_ADJUSTMENT_TYPE'


class InvalidTransfer(InventoryError):
    default_code = 'INVALID_TRANSFER'


class Unauthorized(InventoryError):
    default_code = 'UNAUTHORIZED'
