"""
Inventory routes
Shop stock lookups and listing maintenance
"""

from flask import Blueprint, jsonify

from bookshop.buisness.core.entity_validators import FieldError
from bookshop.buisness.inventory.errors import (
    DuplicateListingError,
    InventoryDomainError,
    InventoryListingNotFoundError,
    InventoryOperationFailedError,
    ListingConflictError,
    ListingInUseError,
    ListingValidationError,
)
from bookshop.buisness.inventory.listing_manager import InventoryListingManager
from bookshop.logger import get_logger
from bookshop.presentation.routes.api_support import as_int, error_response, get_payload, to_json_value
from bookshop.services.inventory.listing_search_service import ListingSearchService
from bookshop.utils.logging_sanitizer import sanitize_dict

bp = Blueprint('inventory', __name__)
logger = get_logger("bookshop.routes.inventory")


def _inventory_error_response(e: InventoryDomainError):
    if isinstance(e, InventoryListingNotFoundError):
        return error_response('NotFound', e.message, 404)
    if isinstance(e, ListingValidationError):
        return error_response('ValidationError', e.message, 400, errors=e.errors)
    if isinstance(e, DuplicateListingError):
        return error_response('DuplicateListing', e.message, 409)
    if isinstance(e, ListingInUseError):
        return error_response('ListingInUse', e.message, 409, order_count=e.order_count)
    if isinstance(e, ListingConflictError):
        return error_response('Conflict', e.message, 409)
    if isinstance(e, InventoryOperationFailedError):
        return error_response('OperationFailed', e.message, 503)
    return error_response('InventoryError', e.message, 400)


@bp.route('/shops/<int:shop_id>/books', methods=['GET'])
def available_books(shop_id):
    """Books the shop has in stock, for the order form's book picker"""
    books = ListingSearchService.get_available_books_for_shop(shop_id)
    return jsonify(to_json_value(books))


@bp.route('/shops/<int:shop_id>/listings', methods=['POST'])
def add_listing(shop_id):
    payload = get_payload()
    logger.info(f"Add listing request for shop {shop_id}: {sanitize_dict(payload)}")
    try:
        listing = InventoryListingManager().add_listing(
            shop_id=shop_id,
            book_id=as_int(payload.get('book_id')),
            quantity=as_int(payload.get('quantity')),
            shop_price=payload.get('shop_price'),
            notes=payload.get('notes'),
        )
    except InventoryDomainError as e:
        return _inventory_error_response(e)
    return jsonify(listing.to_dict()), 201


@bp.route('/listings/<int:listing_id>/restock', methods=['POST'])
def restock_listing(listing_id):
    payload = get_payload()
    try:
        listing = InventoryListingManager().restock(listing_id, as_int(payload.get('quantity')))
    except InventoryDomainError as e:
        return _inventory_error_response(e)
    return jsonify(listing.to_dict())


@bp.route('/listings/<int:listing_id>', methods=['PATCH'])
def update_listing(listing_id):
    payload = get_payload()
    expected_version = as_int(payload.get('version_id'))
    if isinstance(expected_version, bool) or not isinstance(expected_version, int):
        return _inventory_error_response(
            ListingValidationError([FieldError('version_id', "Version is required")])
        )

    changes = {field: payload[field] for field in ('quantity', 'shop_price', 'notes') if field in payload}
    if 'quantity' in changes:
        changes['quantity'] = as_int(changes['quantity'])

    try:
        listing = InventoryListingManager().update_listing(listing_id, expected_version, **changes)
    except InventoryDomainError as e:
        return _inventory_error_response(e)
    return jsonify(listing.to_dict())


@bp.route('/listings/<int:listing_id>', methods=['DELETE'])
def remove_listing(listing_id):
    try:
        InventoryListingManager().remove_listing(listing_id)
    except InventoryDomainError as e:
        return _inventory_error_response(e)
    return '', 204
