"""
Inventory Listing Manager

Staff-side maintenance of (book, shop) listings: adding a book to a shop,
restocking, editing price/notes and removing a listing.

Concurrency behaviour differs per operation:
- restock() is a pure increment, so on a version conflict it re-reads the
  listing and tries again (up to RESTOCK_MAX_RETRIES attempts).
- update_listing() sets absolute values the caller chose from what they last
  saw, so a version mismatch fails with ListingConflictError.

Any other database failure (lock timeout, driver error) is logged and raised
as InventoryOperationFailedError.
"""

from typing import Optional

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from bookshop.buisness.core.entity_validators import FieldError, validate_listing
from bookshop.buisness.inventory.errors import (
    DuplicateListingError,
    InventoryDomainError,
    InventoryListingNotFoundError,
    InventoryOperationFailedError,
    ListingConflictError,
    ListingInUseError,
    ListingValidationError,
)
from bookshop.buisness.orders.pricing import to_money
from bookshop.data.core.book import Book
from bookshop.data.core.shop import Shop
from bookshop.data.inventory.inventory_listing import InventoryListing
from bookshop.data.persistence_gateway import PersistenceGateway
from bookshop.logger import get_logger

logger = get_logger("bookshop.buisness.inventory.listing_manager")

# Sentinel for "leave this field alone" in update_listing
_UNCHANGED = object()

DEFAULT_RESTOCK_MAX_RETRIES = 3


def _operation_failed(action, error):
    """Log a persistence failure and wrap it for the caller"""
    logger.error(f"{action} failed: {type(error).__name__}: {error}", exc_info=True)
    return InventoryOperationFailedError(f"{action} failed. Please try again.")


class InventoryListingManager:
    """
    Listing maintenance operations.

    Every method runs in its own transaction through the gateway and leaves
    the session clean (committed or rolled back) when it returns.
    """

    def __init__(self, gateway: Optional[PersistenceGateway] = None):
        self.gateway = gateway if gateway is not None else PersistenceGateway()

    # -------------------------
    # Add
    # -------------------------
    def add_listing(self, shop_id: int, book_id: int, quantity: int,
                    shop_price=None, notes: Optional[str] = None) -> InventoryListing:
        """
        Offer a book at a shop.

        Raises:
            ListingValidationError: Invalid values, or unknown book/shop
            DuplicateListingError: The shop already lists this book
            InventoryOperationFailedError: Database failure
        """
        data = {
            'shop_id': shop_id,
            'book_id': book_id,
            'quantity': quantity,
            'shop_price': shop_price,
            'notes': notes,
        }
        errors = validate_listing(data)
        if errors:
            logger.warning(f"Listing rejected for shop {shop_id}: {'; '.join(e.message for e in errors)}")
            raise ListingValidationError(errors)

        def _add(gw: PersistenceGateway) -> InventoryListing:
            missing = []
            if gw.get(Book, book_id) is None:
                missing.append(FieldError('book_id', "Book not found"))
            if gw.get(Shop, shop_id) is None:
                missing.append(FieldError('shop_id', "Shop not found"))
            if missing:
                raise ListingValidationError(missing)

            existing = gw.session.execute(
                select(InventoryListing.id).where(
                    InventoryListing.book_id == book_id,
                    InventoryListing.shop_id == shop_id,
                )
            ).first()
            if existing is not None:
                raise DuplicateListingError(book_id, shop_id)

            listing = InventoryListing(
                book_id=book_id,
                shop_id=shop_id,
                quantity=quantity,
                shop_price=self._price_or_none(shop_price),
                notes=self._text_or_none(notes),
            )
            gw.session.add(listing)
            gw.session.flush()
            return listing

        try:
            listing = self.gateway.run_in_transaction(_add)
        except InventoryDomainError as e:
            logger.warning(f"Listing rejected for book {book_id} at shop {shop_id}: {e.message}")
            raise
        except IntegrityError as e:
            # Unique index caught a concurrent insert of the same pair
            logger.warning(f"Duplicate listing for book {book_id} at shop {shop_id} (concurrent insert)")
            raise DuplicateListingError(book_id, shop_id) from e
        except Exception as e:
            raise _operation_failed(f"Adding book {book_id} to shop {shop_id}", e) from e

        logger.info(f"Listing {listing.id} created: book={book_id}, shop={shop_id}, quantity={quantity}")
        return listing

    # -------------------------
    # Restock
    # -------------------------
    def restock(self, listing_id: int, quantity: int) -> InventoryListing:
        """
        Add `quantity` copies to a listing's stock, retrying on version conflicts.

        Raises:
            ListingValidationError: quantity is not a positive integer
            InventoryListingNotFoundError: No such listing
            ListingConflictError: Still conflicting after the last attempt
            InventoryOperationFailedError: Other database failure
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ListingValidationError([FieldError('quantity', "Restock quantity must be greater than 0")])

        max_attempts = max(1, int(current_app.config.get('RESTOCK_MAX_RETRIES', DEFAULT_RESTOCK_MAX_RETRIES)))

        def _restock(gw: PersistenceGateway) -> InventoryListing:
            listing = gw.get(InventoryListing, listing_id)
            if listing is None:
                raise InventoryListingNotFoundError(listing_id)
            return gw.update_listing_quantity(listing.id, listing.quantity + quantity)

        for attempt in range(1, max_attempts + 1):
            try:
                listing = self.gateway.run_in_transaction(_restock)
            except InventoryDomainError:
                raise
            except StaleDataError:
                logger.warning(f"Restock of listing {listing_id} conflicted (attempt {attempt}/{max_attempts})")
                continue
            except Exception as e:
                raise _operation_failed(f"Restock of listing {listing_id}", e) from e
            logger.info(f"Listing {listing_id} restocked by {quantity} to {listing.quantity}")
            return listing

        logger.error(f"Restock of listing {listing_id} gave up after {max_attempts} conflicting attempts")
        raise ListingConflictError(
            f"Inventory listing {listing_id} is being changed by others. Please try again."
        )

    # -------------------------
    # Update
    # -------------------------
    def update_listing(self, listing_id: int, expected_version: int, quantity=_UNCHANGED,
                       shop_price=_UNCHANGED, notes=_UNCHANGED) -> InventoryListing:
        """
        Set quantity, shop price and/or notes on a listing.

        Pass shop_price=None to clear the override so the book's price applies.

        Raises:
            ListingValidationError: Invalid values
            InventoryListingNotFoundError: No such listing
            ListingConflictError: The listing changed since expected_version
            InventoryOperationFailedError: Other database failure
        """
        changes = {
            field: value
            for field, value in (('quantity', quantity), ('shop_price', shop_price), ('notes', notes))
            if value is not _UNCHANGED
        }
        errors = validate_listing(changes, partial=True)
        if errors:
            raise ListingValidationError(errors)
        if 'shop_price' in changes:
            changes['shop_price'] = self._price_or_none(changes['shop_price'])
        if 'notes' in changes:
            changes['notes'] = self._text_or_none(changes['notes'])

        def _update(gw: PersistenceGateway) -> InventoryListing:
            listing = gw.get(InventoryListing, listing_id)
            if listing is None:
                raise InventoryListingNotFoundError(listing_id)
            if listing.version_id != expected_version:
                raise ListingConflictError(
                    f"Inventory listing {listing_id} was modified by someone else. Reload and try again."
                )
            for field, value in changes.items():
                setattr(listing, field, value)
            gw.session.flush()
            return listing

        try:
            listing = self.gateway.run_in_transaction(_update)
        except InventoryDomainError as e:
            logger.warning(f"Listing {listing_id} update rejected: {e.message}")
            raise
        except StaleDataError as e:
            logger.warning(f"Listing {listing_id} update lost a concurrent write: {e}")
            raise ListingConflictError(
                f"Inventory listing {listing_id} was modified by someone else. Reload and try again."
            ) from e
        except Exception as e:
            raise _operation_failed(f"Update of listing {listing_id}", e) from e

        logger.info(f"Listing {listing_id} updated: {', '.join(sorted(changes))}")
        return listing

    # -------------------------
    # Remove
    # -------------------------
    def remove_listing(self, listing_id: int) -> None:
        """
        Delete a listing that no order references.

        Raises:
            InventoryListingNotFoundError: No such listing
            ListingInUseError: Orders still reference the listing
            InventoryOperationFailedError: Database failure
        """
        def _remove(gw: PersistenceGateway) -> None:
            listing = gw.get(InventoryListing, listing_id)
            if listing is None:
                raise InventoryListingNotFoundError(listing_id)
            order_count = gw.count_listing_orders(listing_id)
            if order_count:
                raise ListingInUseError(listing_id, order_count)
            gw.session.delete(listing)
            gw.session.flush()

        try:
            self.gateway.run_in_transaction(_remove)
        except InventoryDomainError as e:
            logger.warning(f"Listing {listing_id} removal rejected: {e.message}")
            raise
        except IntegrityError as e:
            # An order was placed between the count and the delete
            logger.warning(f"Listing {listing_id} removal blocked by a referencing order")
            raise ListingInUseError(listing_id, self.gateway.count_listing_orders(listing_id)) from e
        except Exception as e:
            raise _operation_failed(f"Removal of listing {listing_id}", e) from e

        logger.info(f"Listing {listing_id} removed")

    @staticmethod
    def _price_or_none(value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return to_money(value)

    @staticmethod
    def _text_or_none(value):
        if value is None:
            return None
        return value.strip() or None
