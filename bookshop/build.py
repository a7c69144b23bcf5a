#!/usr/bin/env python3
"""
Database build for the Bookshop Management System
Creates tables and loads the seed catalog
"""

import json
from datetime import timedelta
from pathlib import Path

from bookshop import create_app, db
from bookshop.buisness.core.entity_validators import (
    validate_book,
    validate_customer,
    validate_listing,
    validate_order,
    validate_shop,
)
from bookshop.buisness.orders.pricing import compute_total, resolve_unit_price, to_money
from bookshop.logger import get_logger

logger = get_logger("bookshop.build")

SEED_FILE = Path(__file__).parent / 'data' / 'build_data_seed.json'


class SeedDataError(Exception):
    """Raised when the seed file holds a record that fails validation or references nothing"""
    pass


def _check(kind, key, errors):
    if errors:
        details = '; '.join(f"{e.field}: {e.message}" for e in errors)
        logger.error(f"Invalid seed {kind} '{key}': {details}")
        raise SeedDataError(f"Invalid seed {kind} '{key}': {details}")


def _lookup(model, key, **filters):
    record = model.query.filter_by(**filters).first()
    if record is None:
        raise SeedDataError(f"Seed record '{key}' references missing {model.__name__} {filters}")
    return record


def insert_seed_data(seed_file=None):
    """
    Insert the seed catalog (books, shops, customers, listings, historical orders)

    Records already present are left as they are, so running this twice
    changes nothing. Seeded orders are history: they do not move stock.

    Raises:
        FileNotFoundError: If the seed file is missing
        SeedDataError: If a seed record is invalid
    """
    from bookshop.data.core.book import Book
    from bookshop.data.core.shop import Shop
    from bookshop.data.core.customer import Customer
    from bookshop.data.core.record_base import utc_now
    from bookshop.data.inventory.inventory_listing import InventoryListing
    from bookshop.data.orders.order import Order

    seed_file = Path(seed_file) if seed_file else SEED_FILE
    if not seed_file.exists():
        error_msg = f"Seed data file not found: {seed_file}"
        logger.error(error_msg)
        raise FileNotFoundError(error_msg)

    logger.info(f"Loading seed data from {seed_file.name}...")
    with open(seed_file, 'r') as f:
        seed = json.load(f)

    created = 0
    try:
        for key, data in seed.get('Books', {}).items():
            _check('book', key, validate_book(data))
            data = dict(data, price=to_money(data['price']))
            _, was_created = Book.find_or_create_from_dict(data, lookup_fields=['isbn'], commit=False)
            created += was_created

        for key, data in seed.get('Shops', {}).items():
            _check('shop', key, validate_shop(data))
            _, was_created = Shop.find_or_create_from_dict(data, lookup_fields=['name'], commit=False)
            created += was_created

        for key, data in seed.get('Customers', {}).items():
            _check('customer', key, validate_customer(data))
            _, was_created = Customer.find_or_create_from_dict(data, lookup_fields=['email'], commit=False)
            created += was_created

        for key, data in seed.get('Listings', {}).items():
            book = _lookup(Book, key, isbn=data['book'])
            shop = _lookup(Shop, key, name=data['shop'])
            listing_data = {
                'book_id': book.id,
                'shop_id': shop.id,
                'quantity': data['quantity'],
                'shop_price': data.get('shop_price'),
                'notes': data.get('notes'),
            }
            _check('listing', key, validate_listing(listing_data))
            if listing_data['shop_price'] is not None:
                listing_data['shop_price'] = to_money(listing_data['shop_price'])
            _, was_created = InventoryListing.find_or_create_from_dict(
                listing_data, lookup_fields=['book_id', 'shop_id'], commit=False
            )
            created += was_created

        now = utc_now()
        for key, data in seed.get('Orders', {}).items():
            customer = _lookup(Customer, key, email=data['customer'])
            book = _lookup(Book, key, isbn=data['book'])
            shop = _lookup(Shop, key, name=data['shop'])
            listing = _lookup(InventoryListing, key, book_id=book.id, shop_id=shop.id)
            order_data = {
                'customer_id': customer.id,
                'listing_id': listing.id,
                'quantity': data['quantity'],
                'status': data.get('status'),
            }
            _check('order', key, validate_order(order_data))
            order_data['total_price'] = compute_total(resolve_unit_price(listing, book), data['quantity'])
            order_data['order_date'] = now - timedelta(days=data.get('days_ago', 0))
            _, was_created = Order.find_or_create_from_dict(
                order_data, lookup_fields=['customer_id', 'listing_id', 'quantity'], commit=False
            )
            created += was_created

        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Seed data insertion failed: {e}")
        raise

    logger.info(f"Seed data inserted ({created} new records)")
    return created


def verify_seed_data():
    """
    Check that every seeded book, shop and customer is present

    Returns:
        bool: True if all are present
    """
    from bookshop.data.core.book import Book
    from bookshop.data.core.shop import Shop
    from bookshop.data.core.customer import Customer

    with open(SEED_FILE, 'r') as f:
        seed = json.load(f)

    checks = (
        (Book, 'isbn', seed.get('Books', {})),
        (Shop, 'name', seed.get('Shops', {})),
        (Customer, 'email', seed.get('Customers', {})),
    )
    for model, field, records in checks:
        for key, data in records.items():
            if model.query.filter_by(**{field: data[field]}).first() is None:
                logger.warning(f"Seed {model.__name__} '{key}' not found")
                return False

    logger.info("Seed data verification passed")
    return True


def build_database(seed=True, app=None):
    """
    Create all tables and, unless seed is False, load the seed catalog

    Args:
        seed (bool): Insert seed data (default: True)
        app (Flask, optional): Application to build for; created when omitted
    """
    if app is None:
        app = create_app()

    with app.app_context():
        logger.info(f"Starting database build (seed={seed})")
        db.create_all()
        logger.info("All database tables created")

        if seed:
            insert_seed_data()
            if not verify_seed_data():
                raise SeedDataError("Seed data verification failed after insertion")

        logger.info("Database build completed successfully")
