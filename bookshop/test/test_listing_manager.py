"""
Tests for listing maintenance: add, restock (retrying), update (failing on
conflict) and remove.
"""

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from bookshop import db
from bookshop.buisness.inventory.errors import (
    DuplicateListingError,
    InventoryListingNotFoundError,
    InventoryOperationFailedError,
    ListingConflictError,
    ListingInUseError,
    ListingValidationError,
)
from bookshop.buisness.inventory.listing_manager import InventoryListingManager
from bookshop.buisness.orders.order_placement import OrderPlacementService
from bookshop.data.core.book import Book
from bookshop.data.inventory.inventory_listing import InventoryListing
from bookshop.data.persistence_gateway import PersistenceGateway


def _second_book():
    book = Book(title='1984', author='George Orwell', isbn='9780451524935', price=Decimal('11.99'))
    db.session.add(book)
    db.session.commit()
    return book.id


def test_add_listing(catalog):
    ids = catalog()
    book_id = _second_book()

    listing = InventoryListingManager().add_listing(ids['shop_id'], book_id, 7, shop_price='10.50',
                                                    notes=' Signed copies ')

    assert listing.id is not None
    assert listing.quantity == 7
    assert listing.shop_price == Decimal('10.50')
    assert listing.notes == 'Signed copies'
    assert listing.version_id == 1


def test_add_listing_without_price_override(catalog):
    ids = catalog()
    book_id = _second_book()

    listing = InventoryListingManager().add_listing(ids['shop_id'], book_id, 0)

    assert listing.shop_price is None, "No override means the book price applies"


def test_add_duplicate_listing(catalog):
    ids = catalog()

    with pytest.raises(DuplicateListingError):
        InventoryListingManager().add_listing(ids['shop_id'], ids['book_id'], 3)


def test_add_listing_validation(catalog):
    ids = catalog()

    with pytest.raises(ListingValidationError) as exc_info:
        InventoryListingManager().add_listing(ids['shop_id'], ids['book_id'], -1, shop_price='0')

    assert {e.field for e in exc_info.value.errors} == {'quantity', 'shop_price'}


def test_add_listing_unknown_book_or_shop(catalog):
    ids = catalog()

    with pytest.raises(ListingValidationError) as exc_info:
        InventoryListingManager().add_listing(9999, 8888, 1)

    assert {e.field for e in exc_info.value.errors} == {'book_id', 'shop_id'}


def test_restock_adds_to_stock(catalog, listing_quantity):
    ids = catalog(quantity=4)

    listing = InventoryListingManager().restock(ids['listing_id'], 6)

    assert listing.quantity == 10
    assert listing_quantity(ids['listing_id']) == 10


@pytest.mark.parametrize('quantity', [0, -3, '5', None])
def test_restock_requires_positive_quantity(catalog, quantity):
    ids = catalog()

    with pytest.raises(ListingValidationError):
        InventoryListingManager().restock(ids['listing_id'], quantity)


def test_restock_missing_listing(app):
    with pytest.raises(InventoryListingNotFoundError):
        InventoryListingManager().restock(9999, 1)


def test_restock_retries_after_conflict(catalog, listing_quantity, monkeypatch):
    """A version conflict on the first attempt is retried and the restock lands once"""
    ids = catalog(quantity=4)
    original = PersistenceGateway.update_listing_quantity
    calls = {'n': 0}

    def flaky_update(self, listing_id, new_quantity):
        calls['n'] += 1
        if calls['n'] == 1:
            raise StaleDataError("listing changed")
        return original(self, listing_id, new_quantity)

    monkeypatch.setattr(PersistenceGateway, 'update_listing_quantity', flaky_update)

    InventoryListingManager().restock(ids['listing_id'], 3)

    assert calls['n'] == 2
    assert listing_quantity(ids['listing_id']) == 7


def test_restock_gives_up_after_max_retries(app, catalog, listing_quantity, monkeypatch):
    ids = catalog(quantity=4)
    app.config['RESTOCK_MAX_RETRIES'] = 2
    calls = {'n': 0}

    def always_stale(self, listing_id, new_quantity):
        calls['n'] += 1
        raise StaleDataError("listing changed")

    monkeypatch.setattr(PersistenceGateway, 'update_listing_quantity', always_stale)

    with pytest.raises(ListingConflictError):
        InventoryListingManager().restock(ids['listing_id'], 3)

    assert calls['n'] == 2
    assert listing_quantity(ids['listing_id']) == 4


def test_update_listing(catalog):
    ids = catalog(quantity=4, shop_price='12.99')
    listing = db.session.get(InventoryListing, ids['listing_id'])

    updated = InventoryListingManager().update_listing(
        ids['listing_id'], listing.version_id, quantity=9, shop_price=None, notes='Back in stock'
    )

    assert updated.quantity == 9
    assert updated.shop_price is None, "Clearing the override is allowed"
    assert updated.notes == 'Back in stock'


def test_update_listing_fails_on_stale_version(catalog, listing_quantity):
    ids = catalog(quantity=10)
    version = db.session.get(InventoryListing, ids['listing_id']).version_id

    # A placement moves the listing to a new version
    OrderPlacementService().place_order(ids['customer_id'], ids['listing_id'], 1)

    with pytest.raises(ListingConflictError):
        InventoryListingManager().update_listing(ids['listing_id'], version, quantity=50)

    assert listing_quantity(ids['listing_id']) == 9, "The stale update must not overwrite the sale"


def test_update_listing_validation(catalog):
    ids = catalog()

    with pytest.raises(ListingValidationError):
        InventoryListingManager().update_listing(ids['listing_id'], 1, quantity=-2)


def test_remove_unused_listing(catalog):
    ids = catalog()

    InventoryListingManager().remove_listing(ids['listing_id'])

    db.session.expire_all()
    assert db.session.get(InventoryListing, ids['listing_id']) is None


def test_remove_listing_with_orders_is_refused(catalog):
    ids = catalog(quantity=5)
    OrderPlacementService().place_order(ids['customer_id'], ids['listing_id'], 1)

    with pytest.raises(ListingInUseError) as exc_info:
        InventoryListingManager().remove_listing(ids['listing_id'])

    assert exc_info.value.order_count == 1
    assert db.session.get(InventoryListing, ids['listing_id']) is not None


def test_remove_missing_listing(app):
    with pytest.raises(InventoryListingNotFoundError):
        InventoryListingManager().remove_listing(9999)


def _locked_database(self, fn):
    raise OperationalError("UPDATE inventory_listings ...", {}, Exception("database is locked"))


@pytest.mark.parametrize('operation', ['add', 'restock', 'update', 'remove'])
def test_database_failures_become_operation_failures(catalog, listing_quantity, monkeypatch, operation):
    ids = catalog(quantity=4)
    book_id = _second_book()
    manager = InventoryListingManager()
    monkeypatch.setattr(PersistenceGateway, 'run_in_transaction', _locked_database)

    calls = {
        'add': lambda: manager.add_listing(ids['shop_id'], book_id, 2),
        'restock': lambda: manager.restock(ids['listing_id'], 3),
        'update': lambda: manager.update_listing(ids['listing_id'], 1, quantity=9),
        'remove': lambda: manager.remove_listing(ids['listing_id']),
    }
    with pytest.raises(InventoryOperationFailedError) as exc_info:
        calls[operation]()

    assert not isinstance(exc_info.value, ListingConflictError)
    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert listing_quantity(ids['listing_id']) == 4


def test_conflicts_are_operation_failures(catalog):
    ids = catalog(quantity=4)

    with pytest.raises(InventoryOperationFailedError):
        InventoryListingManager().update_listing(ids['listing_id'], 99, quantity=1)


def test_ids_beyond_key_range(catalog):
    ids = catalog()
    manager = InventoryListingManager()

    with pytest.raises(InventoryListingNotFoundError):
        manager.restock(2 ** 70, 1)
    with pytest.raises(InventoryListingNotFoundError):
        manager.remove_listing(2 ** 70)
    with pytest.raises(ListingValidationError) as exc_info:
        manager.add_listing(2 ** 70, ids['book_id'], 1)
    assert [e.field for e in exc_info.value.errors] == ['shop_id']
