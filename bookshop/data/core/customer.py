from bookshop.data.core.record_base import RecordBase
from bookshop import db


class Customer(RecordBase):
    __tablename__ = 'customers'

    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(100), unique=True, nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    address = db.Column(db.String(200), nullable=True)
    city = db.Column(db.String(100), nullable=True)
    state = db.Column(db.String(50), nullable=True)
    postal_code = db.Column(db.String(20), nullable=True)
    country = db.Column(db.String(50), nullable=True)
    date_of_birth = db.Column(db.Date, nullable=True)

    def __repr__(self):
        return f'<Customer {self.id}: {self.full_name}>'

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"
