"""
Order routes
Customer order placement, staff order entry and order edits
"""

from flask import Blueprint, current_app, jsonify

from bookshop import limiter
from bookshop.buisness.orders.admin_order_factory import AdminOrderFactory
from bookshop.buisness.orders.errors import (
    InsufficientStockError,
    InvalidQuantityError,
    ListingNotFoundError,
    OrderConflictError,
    OrderNotFoundError,
    OrderOperationFailedError,
    OrderValidationError,
)
from bookshop.buisness.orders.order_edit_manager import OrderEditManager
from bookshop.buisness.orders.order_placement import OrderPlacementService
from bookshop.buisness.core.entity_validators import FieldError
from bookshop.logger import get_logger
from bookshop.presentation.routes.api_support import as_int, error_response, get_payload
from bookshop.utils.logging_sanitizer import sanitize_dict

bp = Blueprint('orders', __name__)
logger = get_logger("bookshop.routes.orders")


def _order_rate_limit():
    return current_app.config['ORDER_RATE_LIMIT']


def _order_error_response(e):
    """Map an order domain error to its HTTP response."""
    if isinstance(e, (ListingNotFoundError, OrderNotFoundError)):
        return error_response('NotFound', e.message, 404)
    if isinstance(e, InvalidQuantityError):
        return error_response('InvalidQuantity', e.message, 400)
    if isinstance(e, InsufficientStockError):
        return error_response(
            'InsufficientStock', e.message, 409,
            available=e.available, book_title=e.book_title, shop_name=e.shop_name,
        )
    if isinstance(e, OrderValidationError):
        return error_response('ValidationError', e.message, 400, errors=e.errors)
    if isinstance(e, OrderConflictError):
        return error_response('Conflict', e.message, 409)
    return error_response('OperationFailed', e.message, 503)


@bp.route('/customers/<int:customer_id>/orders', methods=['POST'])
@limiter.limit(_order_rate_limit)
def place_order(customer_id):
    """Place an order for a customer from one inventory listing"""
    payload = get_payload()
    listing_id = as_int(payload.get('listing_id'))
    quantity = as_int(payload.get('quantity'))

    if isinstance(listing_id, bool) or not isinstance(listing_id, int):
        logger.warning(f"Order request without a usable listing_id: {sanitize_dict(payload)}")
        return _order_error_response(ListingNotFoundError(listing_id))

    try:
        order = OrderPlacementService().place_order(customer_id, listing_id, quantity)
    except (ListingNotFoundError, InvalidQuantityError, InsufficientStockError, OrderOperationFailedError) as e:
        return _order_error_response(e)

    return jsonify(order.to_dict()), 201


@bp.route('/admin/orders', methods=['POST'])
def create_admin_order():
    """Record an order without stock checks (staff entry)"""
    payload = get_payload()
    logger.info(f"Admin order request: {sanitize_dict(payload)}")

    try:
        order = AdminOrderFactory.create_order(
            customer_id=as_int(payload.get('customer_id')),
            listing_id=as_int(payload.get('listing_id')),
            quantity=as_int(payload.get('quantity')),
            status=payload.get('status') or None,
            notes=payload.get('notes'),
            shipping_method=payload.get('shipping_method'),
            shipping_cost=payload.get('shipping_cost'),
            shipped_date=payload.get('shipped_date') or None,
        )
    except (OrderValidationError, ListingNotFoundError, OrderOperationFailedError) as e:
        return _order_error_response(e)

    return jsonify(order.to_dict()), 201


@bp.route('/orders/<int:order_id>', methods=['PATCH'])
def update_order(order_id):
    """Edit fulfilment fields of an order; requires the version the client last read"""
    payload = get_payload()
    payload.pop('csrf_token', None)
    expected_version = as_int(payload.pop('version_id', None))

    if isinstance(expected_version, bool) or not isinstance(expected_version, int):
        return _order_error_response(
            OrderValidationError([FieldError('version_id', "Version is required")])
        )

    try:
        order = OrderEditManager().update_order(order_id, expected_version, payload)
    except (OrderValidationError, OrderNotFoundError, OrderOperationFailedError) as e:
        return _order_error_response(e)

    return jsonify(order.to_dict())
