"""
Domain exceptions for order business logic

These exceptions represent business rule violations and persistence failures
raised by the order services. The presentation layer maps them to responses;
none of them should crash a request handler.
"""


class OrderDomainError(Exception):
    """Base exception for all order domain errors"""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ListingNotFoundError(OrderDomainError):
    """Raised when the referenced inventory listing does not exist"""

    def __init__(self, listing_id):
        super().__init__("Selected book is no longer available.")
        self.listing_id = listing_id


class InvalidQuantityError(OrderDomainError):
    """Raised when the requested quantity is not a positive integer"""

    def __init__(self, quantity):
        super().__init__("Quantity must be greater than 0.")
        self.quantity = quantity


class InsufficientStockError(OrderDomainError):
    """Raised when the requested quantity exceeds the listing's stock on hand"""

    def __init__(self, available, book_title, shop_name):
        super().__init__(
            f"Only {available} copies of '{book_title}' are available in {shop_name}."
        )
        self.available = available
        self.book_title = book_title
        self.shop_name = shop_name


class OrderOperationFailedError(OrderDomainError):
    """Raised when the transaction fails in the persistence layer (retryable by the caller)"""
    pass


class OrderConflictError(OrderOperationFailedError):
    """Raised when a record changed since it was read (version mismatch)"""
    pass


class OrderNotFoundError(OrderDomainError):
    """Raised when an order to edit does not exist"""

    def __init__(self, order_id):
        super().__init__(f"Order {order_id} not found.")
        self.order_id = order_id


class OrderValidationError(OrderDomainError):
    """Raised when order fields fail validation; carries field-level errors"""

    def __init__(self, errors):
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in errors))
        self.errors = errors
