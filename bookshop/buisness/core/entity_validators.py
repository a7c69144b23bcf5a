"""
Field validation for bookshop entities

One function per entity. Each takes a plain dict of submitted values and
returns a list of FieldError (empty when valid). Nothing here touches the
database; uniqueness and existence checks belong to the managers.

With partial=True only the keys present in the dict are checked, which is
what edit operations need.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List
from urllib.parse import urlparse

from bookshop.buisness.orders.order_status import OrderStatus
from bookshop.buisness.orders.pricing import to_money


ISBN_PATTERN = re.compile(
    r"^(?:ISBN(?:-1[03])?:? )?(?=[0-9X]{10}$|(?=(?:[0-9]+[- ]){3})[- 0-9X]{13}$|97[89][0-9]{10}$"
    r"|(?=(?:[0-9]+[- ]){4})[- 0-9X]{17}$)(?:97[89][- ]?)?[0-9]{1,5}[- ]?[0-9]+[- ]?[0-9]+[- ]?[0-9X]$"
)
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^\+?[0-9][0-9 ().\-]{5,18}[0-9]$")


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def to_dict(self):
        return {'field': self.field, 'message': self.message}


class _Checker:
    """Collects errors for one payload"""

    def __init__(self, data: Dict[str, Any], partial: bool):
        self.data = data
        self.partial = partial
        self.errors: List[FieldError] = []

    def _skip(self, field):
        return self.partial and field not in self.data

    def _blank(self, value):
        return value is None or (isinstance(value, str) and not value.strip())

    def error(self, field, message):
        self.errors.append(FieldError(field, message))

    def text(self, field, label, max_length, required=False, pattern=None, pattern_message=None):
        if self._skip(field):
            return
        value = self.data.get(field)
        if self._blank(value):
            if required:
                self.error(field, f"{label} is required")
            return
        if not isinstance(value, str):
            self.error(field, f"{label} must be text")
            return
        if len(value) > max_length:
            self.error(field, f"{label} cannot exceed {max_length} characters")
            return
        if pattern is not None and not pattern.match(value.strip()):
            self.error(field, pattern_message)

    def url(self, field, label, max_length):
        if self._skip(field) or self._blank(self.data.get(field)):
            return
        self.text(field, label, max_length)
        parsed = urlparse(str(self.data[field]).strip())
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            self.error(field, "Please enter a valid URL")

    def integer(self, field, label, minimum=None, required=False, minimum_message=None):
        if self._skip(field):
            return
        value = self.data.get(field)
        if value is None:
            if required:
                self.error(field, f"{label} is required")
            return
        if isinstance(value, bool) or not isinstance(value, int):
            self.error(field, f"{label} must be a whole number")
            return
        if minimum is not None and value < minimum:
            self.error(field, minimum_message)

    def money(self, field, label, required=False, positive=True):
        if self._skip(field):
            return
        value = self.data.get(field)
        if self._blank(value):
            if required:
                self.error(field, f"{label} is required")
            return
        try:
            amount = to_money(value)
        except ValueError:
            self.error(field, f"{label} must be a valid amount")
            return
        if positive and amount <= 0:
            self.error(field, f"{label} must be greater than 0")
        elif not positive and amount < 0:
            self.error(field, f"{label} must be non-negative")

    def temporal(self, field, label, kind):
        if self._skip(field):
            return
        value = self.data.get(field)
        if value is None or isinstance(value, kind):
            return
        if isinstance(value, str):
            try:
                kind.fromisoformat(value)
                return
            except ValueError:
                pass
        self.error(field, f"{label} must be a valid {kind.__name__}")


def validate_book(data: Dict[str, Any], partial: bool = False) -> List[FieldError]:
    check = _Checker(data, partial)
    check.text('title', 'Title', 200, required=True)
    check.text('author', 'Author', 100, required=True)
    check.text('isbn', 'ISBN', 32, required=True, pattern=ISBN_PATTERN,
               pattern_message="Please enter a valid ISBN")
    check.money('price', 'Price', required=True)
    check.text('description', 'Description', 1000)
    check.integer('publication_year', 'Publication year', minimum=0,
                  minimum_message="Publication year must be non-negative")
    check.text('genre', 'Genre', 50)
    return check.errors


def validate_shop(data: Dict[str, Any], partial: bool = False) -> List[FieldError]:
    check = _Checker(data, partial)
    check.text('name', 'Shop name', 100, required=True)
    check.text('location', 'Location', 200, required=True)
    check.text('address', 'Address', 500)
    check.text('phone', 'Phone number', 20, pattern=PHONE_PATTERN,
               pattern_message="Please enter a valid phone number")
    check.text('email', 'Email', 100, pattern=EMAIL_PATTERN,
               pattern_message="Please enter a valid email address")
    check.url('website', 'Website', 100)
    check.integer('opening_year', 'Opening year', minimum=0,
                  minimum_message="Opening year must be non-negative")
    return check.errors


def validate_customer(data: Dict[str, Any], partial: bool = False) -> List[FieldError]:
    check = _Checker(data, partial)
    check.text('first_name', 'First name', 50, required=True)
    check.text('last_name', 'Last name', 50, required=True)
    check.text('email', 'Email', 100, required=True, pattern=EMAIL_PATTERN,
               pattern_message="Please enter a valid email address")
    check.text('phone', 'Phone number', 20, pattern=PHONE_PATTERN,
               pattern_message="Please enter a valid phone number")
    check.text('address', 'Address', 200)
    check.text('city', 'City', 100)
    check.text('state', 'State/Province', 50)
    check.text('postal_code', 'Postal code', 20)
    check.text('country', 'Country', 50)
    check.temporal('date_of_birth', 'Date of birth', date)
    return check.errors


def validate_listing(data: Dict[str, Any], partial: bool = False) -> List[FieldError]:
    check = _Checker(data, partial)
    check.integer('book_id', 'Book', required=True)
    check.integer('shop_id', 'Shop', required=True)
    check.integer('quantity', 'Quantity', minimum=0, required=True,
                  minimum_message="Quantity must be non-negative")
    check.money('shop_price', 'Shop price')
    check.text('notes', 'Notes', 500)
    return check.errors


def validate_order(data: Dict[str, Any], partial: bool = False) -> List[FieldError]:
    check = _Checker(data, partial)
    check.integer('customer_id', 'Customer', required=True)
    check.integer('listing_id', 'Listing', required=True)
    check.integer('quantity', 'Quantity', minimum=1, required=True,
                  minimum_message="Order quantity must be at least 1")
    # Edits may omit status, but cannot clear it
    check.text('status', 'Order status', 50, required=partial and 'status' in data)
    status = data.get('status')
    if isinstance(status, str) and status and not OrderStatus.is_known(status):
        check.error('status', f"Order status must be one of: {', '.join(sorted(OrderStatus.ALL))}")
    check.text('notes', 'Order notes', 500)
    check.temporal('shipped_date', 'Shipped date', datetime)
    check.text('shipping_method', 'Shipping method', 100)
    check.money('shipping_cost', 'Shipping cost', positive=False)
    return check.errors
