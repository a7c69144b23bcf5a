"""
Listing Search Service
Presentation service for what a shop can currently sell.

Used when a customer picks a shop and then a book to order.
"""

from typing import Any, Dict, List

from sqlalchemy import select

from bookshop import db
from bookshop.buisness.orders.pricing import resolve_unit_price
from bookshop.data.core.book import Book
from bookshop.data.inventory.inventory_listing import InventoryListing
from bookshop.data.persistence_gateway import PersistenceGateway


class ListingSearchService:
    """Service for in-stock listing lookups"""

    @staticmethod
    def get_available_books_for_shop(shop_id: int) -> List[Dict[str, Any]]:
        """
        Get the books a shop has in stock.

        Args:
            shop_id: The shop ID

        Returns:
            List of dicts with listing_id, book_title, author,
            available_quantity and price (shop override or book price),
            ordered by title. Empty for an unknown shop.
        """
        if not PersistenceGateway().is_storable_key(shop_id):
            return []
        query = (
            select(InventoryListing, Book)
            .join(Book, InventoryListing.book_id == Book.id)
            .where(InventoryListing.shop_id == shop_id, InventoryListing.quantity > 0)
            .order_by(Book.title, InventoryListing.id)
        )
        return [
            {
                'listing_id': listing.id,
                'book_title': book.title,
                'author': book.author,
                'available_quantity': listing.quantity,
                'price': resolve_unit_price(listing, book),
            }
            for listing, book in db.session.execute(query).all()
        ]
