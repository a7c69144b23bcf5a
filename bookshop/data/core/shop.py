from bookshop.data.core.record_base import RecordBase
from bookshop import db


class Shop(RecordBase):
    __tablename__ = 'shops'

    name = db.Column(db.String(100), nullable=False)
    location = db.Column(db.String(200), nullable=False)
    address = db.Column(db.String(500), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    email = db.Column(db.String(100), nullable=True)
    website = db.Column(db.String(100), nullable=True)
    opening_year = db.Column(db.Integer, nullable=True)

    def __repr__(self):
        return f'<Shop {self.id}: {self.name}>'
