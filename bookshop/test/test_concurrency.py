"""
Concurrent placements against one listing must never oversell.
Each worker thread runs in its own app context (and so its own session).
"""

import threading

from bookshop import db
from bookshop.buisness.orders.errors import InsufficientStockError, OrderOperationFailedError
from bookshop.buisness.orders.order_placement import OrderPlacementService


def _place_concurrently(app, customer_id, listing_id, quantity, workers=2):
    barrier = threading.Barrier(workers)
    outcomes = []
    lock = threading.Lock()

    def worker():
        with app.app_context():
            barrier.wait()
            try:
                order = OrderPlacementService().place_order(customer_id, listing_id, quantity)
                result = ('ok', order.id)
            except (InsufficientStockError, OrderOperationFailedError) as e:
                result = (type(e).__name__, e.message)
            finally:
                db.session.remove()
            with lock:
                outcomes.append(result)

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return outcomes


def test_two_orders_for_more_than_half_the_stock(app, catalog, listing_quantity, order_count):
    """Two customers each want 6 of 10 copies: exactly one gets them"""
    ids = catalog(quantity=10)

    outcomes = _place_concurrently(app, ids['customer_id'], ids['listing_id'], 6)

    assert len(outcomes) == 2, f"Both workers should finish: {outcomes}"
    successes = [o for o in outcomes if o[0] == 'ok']
    failures = [o for o in outcomes if o[0] != 'ok']
    assert len(successes) == 1, f"Exactly one placement should succeed: {outcomes}"
    assert failures[0][0] in ('InsufficientStockError', 'OrderOperationFailedError', 'OrderConflictError')
    assert listing_quantity(ids['listing_id']) == 4, "Final stock should be 10 - 6"
    assert order_count() == 1


def test_many_small_orders_never_go_negative(app, catalog, listing_quantity, order_count):
    ids = catalog(quantity=3)

    outcomes = _place_concurrently(app, ids['customer_id'], ids['listing_id'], 1, workers=5)

    successes = sum(1 for o in outcomes if o[0] == 'ok')
    remaining = listing_quantity(ids['listing_id'])
    assert len(outcomes) == 5
    assert remaining >= 0, "Stock must never be negative"
    assert successes <= 3, "Cannot sell more copies than were on hand"
    assert remaining == 3 - successes, "Stock and orders must agree"
    assert order_count() == successes
