"""
Tests for post-placement order edits: editable vs placement-owned fields
and version checks.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from bookshop import db
from bookshop.buisness.orders.errors import (
    OrderConflictError,
    OrderNotFoundError,
    OrderOperationFailedError,
    OrderValidationError,
)
from bookshop.buisness.orders.order_edit_manager import OrderEditManager, OrderFieldPolicy
from bookshop.buisness.orders.order_placement import OrderPlacementService
from bookshop.data.orders.order import Order
from bookshop.data.persistence_gateway import PersistenceGateway


@pytest.fixture
def placed_order(catalog):
    ids = catalog(quantity=10)
    order = OrderPlacementService().place_order(ids['customer_id'], ids['listing_id'], 2)
    return order.id, order.version_id


def _reload(order_id):
    db.session.expire_all()
    return db.session.get(Order, order_id)


def test_update_fulfilment_fields(placed_order):
    order_id, version = placed_order

    order = OrderEditManager().update_order(order_id, version, {
        'status': 'Shipped',
        'shipped_date': '2024-06-01T12:00:00',
        'shipping_method': 'Post',
        'shipping_cost': '3.2',
        'notes': 'Left with neighbour',
    })

    assert order.version_id == version + 1, "Each edit bumps the version"
    stored = _reload(order_id)
    assert stored.status == 'Shipped'
    assert stored.shipped_date == datetime(2024, 6, 1, 12, 0)
    assert stored.shipping_method == 'Post'
    assert stored.shipping_cost == Decimal('3.20')
    assert stored.notes == 'Left with neighbour'
    assert stored.total_price == Decimal('25.98'), "Placement-owned values are untouched"


def test_any_known_status_can_follow_any_other(placed_order):
    """Status changes are not restricted to a workflow order"""
    order_id, version = placed_order
    manager = OrderEditManager()

    order = manager.update_order(order_id, version, {'status': 'Completed'})
    order = manager.update_order(order_id, order.version_id, {'status': 'Pending'})

    assert _reload(order_id).status == 'Pending'


@pytest.mark.parametrize('field, value', [
    ('quantity', 5),
    ('total_price', '1.00'),
    ('customer_id', 2),
    ('listing_id', 2),
    ('order_date', '2020-01-01T00:00:00'),
])
def test_placement_owned_fields_are_locked(placed_order, field, value):
    order_id, version = placed_order

    with pytest.raises(OrderValidationError) as exc_info:
        OrderEditManager().update_order(order_id, version, {field: value})

    assert exc_info.value.errors[0].field == field
    assert _reload(order_id).version_id == version, "Rejected edits change nothing"


def test_unknown_fields_are_rejected(placed_order):
    order_id, version = placed_order

    with pytest.raises(OrderValidationError):
        OrderEditManager().update_order(order_id, version, {'gift': True})


def test_invalid_values_are_rejected(placed_order):
    order_id, version = placed_order

    with pytest.raises(OrderValidationError) as exc_info:
        OrderEditManager().update_order(order_id, version, {'status': 'Lost', 'shipping_cost': '-3'})

    assert {e.field for e in exc_info.value.errors} == {'status', 'shipping_cost'}


def test_stale_version_conflicts(placed_order):
    order_id, version = placed_order
    manager = OrderEditManager()
    manager.update_order(order_id, version, {'notes': 'first'})

    with pytest.raises(OrderConflictError) as exc_info:
        manager.update_order(order_id, version, {'notes': 'second'})

    assert isinstance(exc_info.value, OrderOperationFailedError), "Conflicts are operation failures"
    assert _reload(order_id).notes == 'first', "The stale edit must not be applied"


def test_missing_order(app):
    with pytest.raises(OrderNotFoundError):
        OrderEditManager().update_order(9999, 1, {'notes': 'x'})


def test_field_policy():
    assert OrderFieldPolicy.is_field_editable('status')
    assert not OrderFieldPolicy.is_field_editable('quantity')
    OrderFieldPolicy.check({'notes': 'ok', 'shipping_cost': '1.00'})


@pytest.mark.parametrize('status', [None, '', '   '])
def test_status_cannot_be_cleared(placed_order, status):
    order_id, version = placed_order

    with pytest.raises(OrderValidationError) as exc_info:
        OrderEditManager().update_order(order_id, version, {'status': status})

    assert [e.field for e in exc_info.value.errors] == ['status']
    assert _reload(order_id).status == 'Pending'


def test_order_id_beyond_key_range_is_not_found(app):
    with pytest.raises(OrderNotFoundError):
        OrderEditManager().update_order(2 ** 70, 1, {'notes': 'x'})


def test_unwrapped_driver_error_becomes_operation_failure(placed_order, monkeypatch):
    order_id, version = placed_order

    def overflowing_get(self, order_id):
        raise OverflowError("Python int too large to convert to SQLite INTEGER")

    monkeypatch.setattr(PersistenceGateway, 'get_order', overflowing_get)

    with pytest.raises(OrderOperationFailedError):
        OrderEditManager().update_order(order_id, version, {'notes': 'x'})
