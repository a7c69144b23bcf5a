"""
Converts validated order field values to the types the Order columns store.

Run only after validate_order() has accepted the values.
"""

from datetime import datetime
from typing import Any, Dict

from bookshop.buisness.orders.pricing import to_money


def coerce_order_fields(values: Dict[str, Any]) -> Dict[str, Any]:
    coerced = dict(values)

    shipped_date = coerced.get('shipped_date')
    if isinstance(shipped_date, str):
        coerced['shipped_date'] = datetime.fromisoformat(shipped_date)

    shipping_cost = coerced.get('shipping_cost')
    if isinstance(shipping_cost, str) and not shipping_cost.strip():
        coerced['shipping_cost'] = None
    elif shipping_cost is not None:
        coerced['shipping_cost'] = to_money(shipping_cost)

    for field in ('notes', 'shipping_method'):
        value = coerced.get(field)
        if isinstance(value, str):
            coerced[field] = value.strip() or None

    return coerced
