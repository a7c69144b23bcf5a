from bookshop import db
from bookshop.data.core.record_base import RecordBase


class InventoryListing(RecordBase):
    """
    One book's offering at one shop: stock on hand and optional price override.

    `version_id` is SQLAlchemy's optimistic-concurrency counter. Every UPDATE is
    issued as `... WHERE id = :id AND version_id = :loaded_version`, so a write
    computed from a stale read matches no row and raises StaleDataError.

    Order placement decrements quantity; restocking and staff edits
    go through InventoryListingManager.
    """
    __tablename__ = 'inventory_listings'

    book_id = db.Column(db.Integer, db.ForeignKey('books.id', ondelete='CASCADE'), nullable=False)
    shop_id = db.Column(db.Integer, db.ForeignKey('shops.id', ondelete='CASCADE'), nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    shop_price = db.Column(db.Numeric(18, 2), nullable=True)
    notes = db.Column(db.String(500), nullable=True)

    version_id = db.Column(db.Integer, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('book_id', 'shop_id', name='uix_listing_book_shop'),
        db.CheckConstraint('quantity >= 0', name='ck_listing_quantity_non_negative'),
    )

    __mapper_args__ = {
        'version_id_col': version_id,
    }

    # One-directional references; joins are explicit in the gateway and services
    book = db.relationship('Book')
    shop = db.relationship('Shop')

    def __repr__(self):
        return f'<InventoryListing Book:{self.book_id} Shop:{self.shop_id} Qty:{self.quantity}>'
