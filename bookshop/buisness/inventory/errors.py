"""
Domain exceptions for inventory listing management
"""


class InventoryDomainError(Exception):
    """Base exception for all inventory domain errors"""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class InventoryListingNotFoundError(InventoryDomainError):
    """Raised when a listing to modify does not exist"""

    def __init__(self, listing_id):
        super().__init__(f"Inventory listing {listing_id} not found.")
        self.listing_id = listing_id


class ListingValidationError(InventoryDomainError):
    """Raised when listing fields fail validation; carries field-level errors"""

    def __init__(self, errors):
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in errors))
        self.errors = errors


class DuplicateListingError(InventoryDomainError):
    """Raised when a shop already lists the book"""

    def __init__(self, book_id, shop_id):
        super().__init__(f"Book {book_id} is already listed at shop {shop_id}.")
        self.book_id = book_id
        self.shop_id = shop_id


class ListingInUseError(InventoryDomainError):
    """Raised when removing a listing that orders still reference"""

    def __init__(self, listing_id, order_count):
        super().__init__(
            f"Inventory listing {listing_id} is referenced by {order_count} order(s) and cannot be removed."
        )
        self.listing_id = listing_id
        self.order_count = order_count


class InventoryOperationFailedError(InventoryDomainError):
    """Raised when a listing operation fails in the persistence layer (retryable by the caller)"""
    pass


class ListingConflictError(InventoryOperationFailedError):
    """Raised when a listing changed since it was read and the change cannot be applied"""
    pass
