"""
Order Placement Service

Turns a customer's purchase request into a committed Order while keeping the
listing's stock consistent. Checks, in order:

1. the listing exists (loaded with its Book and Shop)  -> ListingNotFoundError
2. the quantity is a positive integer                   -> InvalidQuantityError
3. the quantity does not exceed stock on hand           -> InsufficientStockError

Then, in the same transaction, the listing quantity is decremented and the
Order is inserted with the resolved price. Both changes commit together or
not at all.

Concurrency: the listing row is read with FOR UPDATE where the backend
supports it, and the decrement is a versioned UPDATE. A concurrent placement
that committed first therefore either makes this one fail its stock check
(after the lock wait) or fail the version check; the latter surfaces as
OrderOperationFailedError. The service never retries on its own.
"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from bookshop.buisness.orders.errors import (
    InsufficientStockError,
    InvalidQuantityError,
    ListingNotFoundError,
    OrderDomainError,
    OrderOperationFailedError,
)
from bookshop.buisness.orders.order_status import OrderStatus
from bookshop.buisness.orders.pricing import compute_total, resolve_unit_price
from bookshop.data.orders.order import Order
from bookshop.data.persistence_gateway import PersistenceGateway
from bookshop.logger import get_logger

logger = get_logger("bookshop.buisness.orders.placement")


class OrderPlacementService:
    """Executes the order-placement transaction"""

    def __init__(self, gateway: Optional[PersistenceGateway] = None):
        self.gateway = gateway if gateway is not None else PersistenceGateway()

    def place_order(self, customer_id: int, listing_id: int, quantity: int) -> Order:
        """
        Place an order for `quantity` copies from one listing.

        Args:
            customer_id: Ordering customer
            listing_id: Inventory listing to buy from
            quantity: Number of copies requested

        Returns:
            Order: The committed order (id and order_date assigned)

        Raises:
            ListingNotFoundError: The listing does not exist
            InvalidQuantityError: quantity is not a positive integer
            InsufficientStockError: quantity exceeds stock on hand
            OrderOperationFailedError: The transaction failed in the database
                (conflict, lock timeout, unknown customer, storage error)
        """
        context = {'customer_id': customer_id, 'listing_id': listing_id, 'quantity': quantity}
        try:
            order = self.gateway.run_in_transaction(
                lambda gw: self._place(gw, customer_id, listing_id, quantity)
            )
        except OrderDomainError as e:
            logger.warning(
                f"Order placement rejected (customer={customer_id}, listing={listing_id}, "
                f"quantity={quantity!r}): {e.message}",
                extra=context,
            )
            raise
        except StaleDataError as e:
            logger.error(
                f"Concurrent modification of listing {listing_id} while placing order "
                f"for customer {customer_id}: {e}",
                exc_info=True,
                extra=context,
            )
            raise OrderOperationFailedError(
                "The listing was changed by another order. Please try again."
            ) from e
        except SQLAlchemyError as e:
            logger.error(
                f"Order placement failed (customer={customer_id}, listing={listing_id}): {e}",
                exc_info=True,
                extra=context,
            )
            raise OrderOperationFailedError(
                "An error occurred while placing the order. Please try again."
            ) from e
        except Exception as e:
            # Driver errors SQLAlchemy does not wrap (e.g. OverflowError binding a huge id)
            logger.error(
                f"Order placement failed unexpectedly (customer={customer_id}, listing={listing_id}): "
                f"{type(e).__name__}: {e}",
                exc_info=True,
                extra=context,
            )
            raise OrderOperationFailedError(
                "An error occurred while placing the order. Please try again."
            ) from e

        logger.info(
            f"Order {order.id} placed: customer={customer_id}, listing={listing_id}, "
            f"quantity={quantity}, total={order.total_price}",
            extra=dict(context, order_id=order.id),
        )
        return order

    def _place(self, gw: PersistenceGateway, customer_id, listing_id, quantity) -> Order:
        listing = gw.get_listing_with_book_and_shop(listing_id, for_update=True)
        if listing is None:
            raise ListingNotFoundError(listing_id)

        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantityError(quantity)

        if quantity > listing.quantity:
            raise InsufficientStockError(
                available=listing.quantity,
                book_title=listing.book.title,
                shop_name=listing.shop.name,
            )

        unit_price = resolve_unit_price(listing, listing.book)
        total_price = compute_total(unit_price, quantity)

        gw.update_listing_quantity(listing.id, listing.quantity - quantity)

        order = Order(
            customer_id=customer_id,
            listing_id=listing.id,
            quantity=quantity,
            total_price=total_price,
            status=OrderStatus.INITIAL,
        )
        return gw.insert_order(order)
