"""
Dict conversion for bookshop models

Seed files and API payloads carry plain JSON values: money as strings, dates
as ISO text. from_dict() converts those to the column types before building a
model, and to_dict() converts back for responses.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Numeric, inspect

from bookshop import db
from bookshop.buisness.orders.pricing import to_money
from bookshop.logger import get_logger

logger = get_logger("bookshop.buisness.core.data_insertion")

AUDIT_FIELDS = ('created_at', 'updated_at')


def _coerce(column, value):
    """JSON value -> Python value for the column's type"""
    if value is None:
        return None
    column_type = column.type
    if isinstance(column_type, Numeric) and not isinstance(value, Decimal):
        return to_money(value)
    if isinstance(column_type, DateTime) and isinstance(value, str):
        return datetime.fromisoformat(value)
    if isinstance(column_type, Date) and isinstance(value, str):
        return date.fromisoformat(value)
    return value


class DataInsertionMixin:
    """
    Adds dict round-tripping to models:

    - from_dict(): unsaved instance from a dict (unknown keys ignored)
    - to_dict(): JSON-ready dict (Decimal as str, dates as ISO text)
    - create_from_dict(): from_dict() + add (+ commit)
    - find_or_create_from_dict(): reuse a row matching lookup fields
    """

    @classmethod
    def from_dict(cls, data_dict, skip_fields=None):
        """
        Args:
            data_dict (dict): Column values, JSON-typed or already converted
            skip_fields (list, optional): Keys to leave out

        Returns:
            Model instance (not added to the session)

        Raises:
            ValueError: A money or date value cannot be converted
        """
        skip = set(skip_fields or ())
        columns = {c.key: c for c in inspect(cls).columns}

        values = {}
        for key, value in data_dict.items():
            if key in skip or key not in columns:
                continue
            if key in AUDIT_FIELDS and value is None:
                continue
            values[key] = _coerce(columns[key], value)
        return cls(**values)

    def to_dict(self, include_audit_fields=True):
        result = {}
        for column in inspect(self.__class__).columns:
            if column.key in AUDIT_FIELDS and not include_audit_fields:
                continue
            value = getattr(self, column.key)
            if isinstance(value, Decimal):
                value = str(value)
            elif isinstance(value, (datetime, date)):
                value = value.isoformat()
            result[column.key] = value
        return result

    @classmethod
    def create_from_dict(cls, data_dict, skip_fields=None, commit=True):
        """
        Build, add and optionally commit a new row.

        With commit=False the caller owns the transaction.
        """
        instance = cls.from_dict(data_dict, skip_fields)
        db.session.add(instance)
        if not commit:
            return instance
        try:
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error creating {cls.__name__}: {e}")
            raise
        logger.info(f"Created {cls.__name__}: {instance}")
        return instance

    @classmethod
    def find_or_create_from_dict(cls, data_dict, skip_fields=None, lookup_fields=None, commit=True):
        """
        Return the row matching lookup_fields, creating it when absent.

        Args:
            lookup_fields (list, optional): Natural key; defaults to the
                model's unique columns present in data_dict

        Returns:
            tuple: (instance, created)
        """
        if lookup_fields is None:
            lookup_fields = [c.key for c in inspect(cls).columns if c.unique and c.key in data_dict]

        criteria = {field: data_dict[field] for field in lookup_fields if field in data_dict}
        existing = cls.query.filter_by(**criteria).first() if criteria else None
        if existing is not None:
            logger.debug(f"Found existing {cls.__name__}: {existing}")
            return existing, False

        return cls.create_from_dict(data_dict, skip_fields, commit), True
