from bookshop import db
from bookshop.data.core.record_base import RecordBase, utc_now


class Order(RecordBase):
    """
    A customer's purchase from one inventory listing.

    Customer and listing references are RESTRICT: historical orders must
    survive, so neither side can be deleted while orders point at it.
    """
    __tablename__ = 'orders'

    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id', ondelete='RESTRICT'), nullable=False)
    listing_id = db.Column(db.Integer, db.ForeignKey('inventory_listings.id', ondelete='RESTRICT'), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    order_date = db.Column(db.DateTime, nullable=False, default=utc_now)
    total_price = db.Column(db.Numeric(18, 2), nullable=False)
    status = db.Column(db.String(50), nullable=False, default='Pending')
    notes = db.Column(db.String(500), nullable=True)

    # Shipping (edited after placement)
    shipped_date = db.Column(db.DateTime, nullable=True)
    shipping_method = db.Column(db.String(100), nullable=True)
    shipping_cost = db.Column(db.Numeric(18, 2), nullable=True)

    version_id = db.Column(db.Integer, nullable=False)

    __table_args__ = (
        db.CheckConstraint('quantity >= 1', name='ck_order_quantity_positive'),
    )

    __mapper_args__ = {
        'version_id_col': version_id,
    }

    customer = db.relationship('Customer')
    listing = db.relationship('InventoryListing')

    def __repr__(self):
        return f'<Order {self.id}: Customer {self.customer_id}, Listing {self.listing_id}, Qty {self.quantity}>'
