"""
Order Edit Manager

Post-placement changes to an order. Fields fall into two groups:

- PLACEMENT_OWNED: fixed by the placement transaction (who ordered what, how
  many, for how much, when). Never editable; quantity changes would have to
  move stock and are not supported here.
- EDITABLE: fulfilment details staff update as the order progresses.

Concurrency: the caller passes the version it last read. A mismatch, or a
concurrent writer winning the versioned UPDATE, raises OrderConflictError.
Edits are not retried.
"""

from typing import Any, Dict, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from bookshop.buisness.core.entity_validators import FieldError, validate_order
from bookshop.buisness.orders.errors import (
    OrderConflictError,
    OrderDomainError,
    OrderNotFoundError,
    OrderOperationFailedError,
    OrderValidationError,
)
from bookshop.buisness.orders.field_coercion import coerce_order_fields
from bookshop.data.orders.order import Order
from bookshop.data.persistence_gateway import PersistenceGateway
from bookshop.logger import get_logger

logger = get_logger("bookshop.buisness.orders.edit_manager")


class OrderFieldPolicy:
    """Which order fields may change after placement"""

    PLACEMENT_OWNED: Set[str] = {
        'customer_id',
        'listing_id',
        'quantity',
        'total_price',
        'order_date',
    }

    EDITABLE: Set[str] = {
        'status',
        'notes',
        'shipped_date',
        'shipping_method',
        'shipping_cost',
    }

    @classmethod
    def check(cls, updates: Dict[str, Any]) -> None:
        """
        Raises:
            OrderValidationError: If updates touch placement-owned or unknown fields
        """
        errors = []
        for field in sorted(set(updates) & cls.PLACEMENT_OWNED):
            errors.append(FieldError(field, "Cannot be changed after the order is placed"))
        for field in sorted(set(updates) - cls.PLACEMENT_OWNED - cls.EDITABLE):
            errors.append(FieldError(field, "Unknown order field"))
        if errors:
            raise OrderValidationError(errors)

    @classmethod
    def is_field_editable(cls, field_name: str) -> bool:
        return field_name in cls.EDITABLE


class OrderEditManager:
    """Applies fulfilment updates to existing orders"""

    def __init__(self, gateway: Optional[PersistenceGateway] = None):
        self.gateway = gateway if gateway is not None else PersistenceGateway()

    def update_order(self, order_id: int, expected_version: int, updates: Dict[str, Any]) -> Order:
        """
        Update editable fields of an order.

        Args:
            order_id: Order to change
            expected_version: version_id the caller last saw
            updates: Field name -> new value (editable fields only)

        Returns:
            Order: The updated, committed order

        Raises:
            OrderValidationError: Locked/unknown fields or invalid values
            OrderNotFoundError: No such order
            OrderConflictError: The order changed since expected_version
            OrderOperationFailedError: Other database failure
        """
        OrderFieldPolicy.check(updates)

        errors = validate_order(updates, partial=True)
        if errors:
            raise OrderValidationError(errors)
        values = coerce_order_fields(updates)

        def _apply(gw: PersistenceGateway) -> Order:
            order = gw.get_order(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            if order.version_id != expected_version:
                raise OrderConflictError(
                    f"Order {order_id} was modified by someone else. Reload and try again."
                )
            for field, value in values.items():
                setattr(order, field, value)
            gw.session.flush()
            return order

        try:
            order = self.gateway.run_in_transaction(_apply)
        except OrderDomainError as e:
            logger.warning(f"Order {order_id} update rejected: {e.message}")
            raise
        except StaleDataError as e:
            logger.warning(f"Order {order_id} update lost a concurrent write: {e}")
            raise OrderConflictError(
                f"Order {order_id} was modified by someone else. Reload and try again."
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"Order {order_id} update failed: {e}", exc_info=True)
            raise OrderOperationFailedError(
                "An error occurred while updating the order. Please try again."
            ) from e
        except Exception as e:
            logger.error(f"Order {order_id} update failed unexpectedly: {type(e).__name__}: {e}", exc_info=True)
            raise OrderOperationFailedError(
                "An error occurred while updating the order. Please try again."
            ) from e

        logger.info(f"Order {order_id} updated: {', '.join(sorted(values))} (version {order.version_id})")
        return order
