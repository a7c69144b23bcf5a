from bookshop.data.core.record_base import RecordBase
from bookshop import db

# A book's catalog entry. Its price is the canonical price used whenever a
# shop listing carries no price override; stock lives on InventoryListing.

class Book(RecordBase):
    __tablename__ = 'books'

    title = db.Column(db.String(200), nullable=False)
    author = db.Column(db.String(100), nullable=False)
    isbn = db.Column(db.String(32), unique=True, nullable=False)
    price = db.Column(db.Numeric(18, 2), nullable=False)
    description = db.Column(db.String(1000), nullable=True)
    publication_year = db.Column(db.Integer, nullable=True)
    genre = db.Column(db.String(50), nullable=True)

    def __repr__(self):
        return f'<Book {self.isbn}: {self.title}>'
