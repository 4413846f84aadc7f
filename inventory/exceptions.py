"""Domain errors raised by the stock services.

Each error carries a stable ``code`` the API layer exposes alongside the
human readable message.
"""


class InventoryError(Exception):
    """Base class for stock-consistency failures."""

    code = "inventory_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or self.code


class NotFoundError(InventoryError):
    """Referenced product, movement or delivery does not exist."""

    code = "not_found"


class InvalidInputError(InventoryError):
    """Missing field, non-positive quantity or unknown movement type."""

    code = "invalid_input"


class InsufficientStockError(InventoryError):
    """Requested debit exceeds the available balance."""

    code = "insufficient_stock"


class InvalidOperationError(InventoryError):
    """Operation forbidden by the movement's lifecycle rules."""

    code = "invalid_operation"


# EOF
