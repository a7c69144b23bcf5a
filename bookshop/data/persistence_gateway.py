"""
Persistence Gateway

Data access used by the order and inventory business services. Relations are
resolved with explicit joins here rather than lazy navigation, and every
mutating business operation runs inside run_in_transaction().

Concurrency:
- get_listing_with_book_and_shop(for_update=True) takes a row lock on
  backends that support SELECT ... FOR UPDATE (PostgreSQL, MySQL). SQLite
  serializes writers on its own.
- InventoryListing and Order carry a version_id column, so an UPDATE built
  from a stale read raises StaleDataError at flush.
- The transaction timeout bounds lock waits; when it expires the database
  raises, the transaction is rolled back and its locks are released.
"""

import math
from typing import Callable, Optional, TypeVar

from flask import current_app
from sqlalchemy import func, select, text
from sqlalchemy.orm import joinedload

from bookshop import db
from bookshop.data.core.record_base import utc_now
from bookshop.data.inventory.inventory_listing import InventoryListing
from bookshop.data.orders.order import Order
from bookshop.logger import get_logger

logger = get_logger("bookshop.data.persistence_gateway")

T = TypeVar('T')

DEFAULT_TIMEOUT_SECONDS = 5.0

# Largest value an INTEGER key column holds, per backend
MAX_KEY_BY_DIALECT = {'sqlite': 2 ** 63 - 1}
DEFAULT_MAX_KEY = 2 ** 31 - 1


class PersistenceGateway:
    """Transaction-scoped access to listings and orders"""

    def __init__(self, session=None, timeout_seconds: Optional[float] = None):
        self.session = session if session is not None else db.session
        if timeout_seconds is None:
            timeout_seconds = current_app.config.get('ORDER_TRANSACTION_TIMEOUT_SECONDS', DEFAULT_TIMEOUT_SECONDS)
        self.timeout_seconds = float(timeout_seconds)

    # -------------------------
    # Reads
    # -------------------------
    def is_storable_key(self, value) -> bool:
        """
        True when value fits the backend's INTEGER key columns.

        Larger ints cannot name an existing row, and some drivers raise
        (e.g. OverflowError from sqlite3) instead of matching nothing.
        """
        if isinstance(value, bool) or not isinstance(value, int):
            return False
        dialect = self.session.get_bind().dialect.name
        limit = MAX_KEY_BY_DIALECT.get(dialect, DEFAULT_MAX_KEY)
        return -limit - 1 <= value <= limit

    def get(self, model, key):
        """Row by primary key, or None (also for keys no row can have)"""
        if not self.is_storable_key(key):
            return None
        return self.session.get(model, key)

    def get_listing_with_book_and_shop(self, listing_id: int, for_update: bool = False) -> Optional[InventoryListing]:
        """
        Load a listing together with its Book and Shop in one query.

        Args:
            listing_id: Listing primary key
            for_update: Lock the listing row until the transaction ends

        Returns:
            InventoryListing or None when no such listing exists
        """
        if not self.is_storable_key(listing_id):
            return None
        query = (
            select(InventoryListing)
            .options(
                joinedload(InventoryListing.book, innerjoin=True),
                joinedload(InventoryListing.shop, innerjoin=True),
            )
            .where(InventoryListing.id == listing_id)
        )
        if for_update:
            query = query.with_for_update(of=InventoryListing)
        return self.session.execute(query).unique().scalar_one_or_none()

    def get_order(self, order_id: int) -> Optional[Order]:
        return self.get(Order, order_id)

    def count_listing_orders(self, listing_id: int) -> int:
        if not self.is_storable_key(listing_id):
            return 0
        query = select(func.count(Order.id)).where(Order.listing_id == listing_id)
        return self.session.execute(query).scalar_one()

    # -------------------------
    # Writes
    # -------------------------
    def insert_order(self, order: Order) -> Order:
        """Add an order and flush so the database assigns its id."""
        if order.order_date is None:
            order.order_date = utc_now()
        self.session.add(order)
        self.session.flush()
        return order

    def update_listing_quantity(self, listing_id: int, new_quantity: int) -> InventoryListing:
        """
        Set a listing's quantity and flush the versioned UPDATE.

        The listing is taken from the session's identity map when it was
        loaded earlier in the transaction, so the version check compares
        against the version that was actually read.

        Raises:
            ValueError: If new_quantity is negative
            sqlalchemy.orm.exc.StaleDataError: If the row changed since it was read
        """
        if new_quantity < 0:
            raise ValueError(f"Listing quantity cannot be negative (got {new_quantity})")
        listing = self.get(InventoryListing, listing_id)
        if listing is None:
            raise ValueError(f"Inventory listing {listing_id} does not exist")
        listing.quantity = new_quantity
        self.session.flush()
        return listing

    # -------------------------
    # Transactions
    # -------------------------
    def run_in_transaction(self, fn: Callable[['PersistenceGateway'], T]) -> T:
        """
        Run fn(gateway) in one transaction: commit on success, roll back on any exception.

        Exceptions are re-raised unchanged after the rollback.
        """
        try:
            self._apply_timeout()
            result = fn(self)
            self.session.commit()
            return result
        except Exception as e:
            self.session.rollback()
            logger.debug(f"Transaction rolled back: {type(e).__name__}: {e}")
            raise

    def _apply_timeout(self) -> None:
        dialect = self.session.get_bind().dialect.name
        timeout_ms = int(self.timeout_seconds * 1000)
        if dialect == 'postgresql':
            self.session.execute(text(f"SET LOCAL lock_timeout = {timeout_ms}"))
            self.session.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))
        elif dialect in ('mysql', 'mariadb'):
            self.session.execute(text(f"SET SESSION innodb_lock_wait_timeout = {max(1, math.ceil(self.timeout_seconds))}"))
        # sqlite: busy timeout is set on the connection by create_app
