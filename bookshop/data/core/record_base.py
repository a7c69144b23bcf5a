from bookshop import db
from datetime import datetime, timezone
from sqlalchemy.orm import declared_attr
from bookshop.buisness.core.data_insertion_mixin import DataInsertionMixin


def utc_now():
    """Current UTC time as a naive datetime (DateTime columns store no zone)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class RecordBase(db.Model, DataInsertionMixin):
    """Abstract base class for all bookshop records with audit timestamps"""

    __abstract__ = True

    @declared_attr
    def __tablename__(cls):
        return cls.__name__.lower() + 's'

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=utc_now)
    updated_at = db.Column(db.DateTime, default=utc_now, onupdate=utc_now)
