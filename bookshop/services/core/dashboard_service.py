"""
Dashboard Service
Presentation service for the home dashboard: record counts and recent orders.
"""

from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy import func, select

from bookshop import db
from bookshop.data.core.book import Book
from bookshop.data.core.customer import Customer
from bookshop.data.core.shop import Shop
from bookshop.data.inventory.inventory_listing import InventoryListing
from bookshop.data.orders.order import Order


class DashboardService:

    @staticmethod
    def _count(model) -> int:
        return db.session.execute(select(func.count(model.id))).scalar_one()

    @staticmethod
    def get_recent_orders(limit: int) -> List[Dict[str, Any]]:
        """Most recent orders first, joined to customer and book for display."""
        query = (
            select(Order, Customer, Book)
            .join(Customer, Order.customer_id == Customer.id)
            .join(InventoryListing, Order.listing_id == InventoryListing.id)
            .join(Book, InventoryListing.book_id == Book.id)
            .order_by(Order.order_date.desc(), Order.id.desc())
            .limit(limit)
        )
        return [
            {
                'order_id': order.id,
                'customer_name': customer.full_name,
                'book_title': book.title,
                'quantity': order.quantity,
                'total_price': order.total_price,
                'status': order.status,
                'order_date': order.order_date,
            }
            for order, customer, book in db.session.execute(query).all()
        ]

    @classmethod
    def get_summary(cls, recent_limit: Optional[int] = None) -> Dict[str, Any]:
        """
        Get dashboard counts and the latest orders.

        Args:
            recent_limit: Number of recent orders (defaults to RECENT_ORDERS_LIMIT)
        """
        if recent_limit is None:
            recent_limit = current_app.config.get('RECENT_ORDERS_LIMIT', 5)
        return {
            'total_books': cls._count(Book),
            'total_shops': cls._count(Shop),
            'total_customers': cls._count(Customer),
            'total_orders': cls._count(Order),
            'recent_orders': cls.get_recent_orders(recent_limit),
        }
