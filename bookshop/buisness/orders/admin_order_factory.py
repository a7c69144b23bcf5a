"""
Administrative order creation

Records an order on behalf of staff, e.g. to enter a historical sale or a
back-office correction. Unlike OrderPlacementService this path does NOT check
stock and does NOT decrement the listing quantity. It still prices through the
shared rule, so totals are consistent with customer placements.
"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from bookshop.buisness.core.entity_validators import validate_order
from bookshop.buisness.orders.errors import (
    ListingNotFoundError,
    OrderOperationFailedError,
    OrderValidationError,
)
from bookshop.buisness.orders.field_coercion import coerce_order_fields
from bookshop.buisness.orders.order_status import OrderStatus
from bookshop.buisness.orders.pricing import compute_total, resolve_unit_price
from bookshop.data.orders.order import Order
from bookshop.data.persistence_gateway import PersistenceGateway
from bookshop.logger import get_logger

logger = get_logger("bookshop.buisness.orders.admin_factory")


class AdminOrderFactory:
    """Factory for staff-entered orders"""

    @classmethod
    def create_order(
        cls,
        customer_id: int,
        listing_id: int,
        quantity: int,
        status: str = OrderStatus.INITIAL,
        notes: Optional[str] = None,
        shipping_method: Optional[str] = None,
        shipping_cost=None,
        shipped_date=None,
        gateway: Optional[PersistenceGateway] = None,
    ) -> Order:
        """
        Create and commit an order without touching stock.

        Raises:
            OrderValidationError: Field values are invalid
            ListingNotFoundError: The listing does not exist
            OrderOperationFailedError: The insert failed (e.g. unknown customer)
        """
        fields = {
            'customer_id': customer_id,
            'listing_id': listing_id,
            'quantity': quantity,
            'status': status,
            'notes': notes,
            'shipping_method': shipping_method,
            'shipping_cost': shipping_cost,
            'shipped_date': shipped_date,
        }
        errors = validate_order(fields)
        if errors:
            logger.warning(f"Admin order rejected: {'; '.join(e.message for e in errors)}")
            raise OrderValidationError(errors)

        fields = coerce_order_fields(fields)
        if not fields.get('status'):
            fields['status'] = OrderStatus.INITIAL
        gateway = gateway if gateway is not None else PersistenceGateway()

        def _create(gw: PersistenceGateway) -> Order:
            listing = gw.get_listing_with_book_and_shop(listing_id)
            if listing is None:
                raise ListingNotFoundError(listing_id)
            unit_price = resolve_unit_price(listing, listing.book)
            order = Order(
                total_price=compute_total(unit_price, quantity),
                **fields,
            )
            return gw.insert_order(order)

        try:
            order = gateway.run_in_transaction(_create)
        except ListingNotFoundError:
            logger.warning(f"Admin order rejected: listing {listing_id} not found")
            raise
        except SQLAlchemyError as e:
            logger.error(f"Admin order creation failed (customer={customer_id}, listing={listing_id}): {e}",
                         exc_info=True)
            raise OrderOperationFailedError(
                "An error occurred while creating the order. Please try again."
            ) from e
        except Exception as e:
            logger.error(f"Admin order creation failed unexpectedly (customer={customer_id}, listing={listing_id}): "
                         f"{type(e).__name__}: {e}", exc_info=True)
            raise OrderOperationFailedError(
                "An error occurred while creating the order. Please try again."
            ) from e

        logger.warning(
            f"Admin order {order.id} created without stock check: listing={listing_id}, "
            f"quantity={quantity}, total={order.total_price}"
        )
        return order
