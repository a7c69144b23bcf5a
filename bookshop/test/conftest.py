"""
Pytest configuration and fixtures for the bookshop tests
"""
import os
import tempfile
from decimal import Decimal

# create_app refuses to start without a SECRET_KEY; logs go to a scratch dir
os.environ.setdefault('SECRET_KEY', 'test-secret-key')
os.environ.setdefault('LOG_DIR', tempfile.mkdtemp(prefix='bookshop-test-logs-'))

import pytest
from bookshop import create_app
from bookshop import db as _db


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create Flask application backed by a fresh SQLite file database"""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'bookshop_test.db'}",
        'WTF_CSRF_ENABLED': False,
        'RATELIMIT_ENABLED': False,
    })

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create Flask test client"""
    return app.test_client()


@pytest.fixture(scope='function')
def db(app):
    return _db


@pytest.fixture(scope='function')
def catalog(app):
    """
    Factory building a book, shop, customer and listing.

    Returns a dict of ids plus the objects' key values, e.g.
    catalog(quantity=10, shop_price='12.99', book_price='14.99').
    """
    from bookshop.data.core.book import Book
    from bookshop.data.core.shop import Shop
    from bookshop.data.core.customer import Customer
    from bookshop.data.inventory.inventory_listing import InventoryListing

    counter = {'n': 0}

    def _build(quantity=10, shop_price='12.99', book_price='14.99', title='The Great Gatsby',
               shop_name='Downtown Bookstore'):
        counter['n'] += 1
        n = counter['n']
        book = Book(title=title, author='F. Scott Fitzgerald', isbn=f'97807432735{n:02d}',
                    price=Decimal(book_price))
        shop = Shop(name=shop_name, location='Downtown')
        customer = Customer(first_name='John', last_name='Doe', email=f'john.doe{n}@email.com')
        _db.session.add_all([book, shop, customer])
        _db.session.flush()
        listing = InventoryListing(
            book_id=book.id,
            shop_id=shop.id,
            quantity=quantity,
            shop_price=Decimal(shop_price) if shop_price is not None else None,
        )
        _db.session.add(listing)
        _db.session.commit()
        return {
            'book_id': book.id,
            'shop_id': shop.id,
            'customer_id': customer.id,
            'listing_id': listing.id,
            'book_title': title,
            'shop_name': shop_name,
        }

    return _build


@pytest.fixture(scope='function')
def listing_quantity(app):
    """Returns a function reading a listing's committed stock on hand"""
    from bookshop.data.inventory.inventory_listing import InventoryListing

    def _read(listing_id):
        _db.session.expire_all()
        return _db.session.get(InventoryListing, listing_id).quantity

    return _read


@pytest.fixture(scope='function')
def order_count(app):
    """Returns a function counting committed orders"""
    from sqlalchemy import func, select
    from bookshop.data.orders.order import Order

    def _count():
        return _db.session.execute(select(func.count(Order.id))).scalar_one()

    return _count
