"""
Price resolution for orders

The one place the override/fallback rule lives: a listing's shop price wins
when set, otherwise the book's canonical price applies. Every path that
creates an order (customer placement and the administrative path) prices
through here.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bookshop.data.core.book import Book
    from bookshop.data.inventory.inventory_listing import InventoryListing

CENT = Decimal('0.01')


def to_money(value) -> Decimal:
    """
    Convert a stored or submitted amount to a cent-quantized Decimal.

    Floats are converted through their string form so 12.99 stays 12.99.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a monetary amount: {value!r}")
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value).strip()) if isinstance(value, str) else Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Not a monetary amount: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def resolve_unit_price(listing: 'InventoryListing', book: 'Book') -> Decimal:
    """Shop-specific override when present, else the book's canonical price."""
    if listing.shop_price is not None:
        return to_money(listing.shop_price)
    return to_money(book.price)


def compute_total(unit_price: Decimal, quantity: int) -> Decimal:
    """Exact decimal total for `quantity` units."""
    return (to_money(unit_price) * quantity).quantize(CENT, rounding=ROUND_HALF_UP)
