"""
Tests for money conversion and the shop-price / book-price rule.
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from bookshop.buisness.orders.pricing import compute_total, resolve_unit_price, to_money


def test_to_money_keeps_cents_exact():
    assert to_money('12.99') == Decimal('12.99')
    assert to_money(12.99) == Decimal('12.99'), "Floats should convert through their text form"
    assert to_money(Decimal('3')) == Decimal('3.00')
    assert to_money(7) == Decimal('7.00')
    assert to_money(' 4.5 ') == Decimal('4.50')


def test_to_money_rounds_half_up():
    assert to_money('0.005') == Decimal('0.01')
    assert to_money('2.344') == Decimal('2.34')


@pytest.mark.parametrize('value', ['abc', '', None, True, float('nan'), 'Infinity'])
def test_to_money_rejects_non_amounts(value):
    with pytest.raises(ValueError):
        to_money(value)


def test_shop_price_overrides_book_price():
    listing = SimpleNamespace(shop_price=Decimal('12.99'))
    book = SimpleNamespace(price=Decimal('14.99'))
    assert resolve_unit_price(listing, book) == Decimal('12.99')


def test_book_price_used_without_override():
    listing = SimpleNamespace(shop_price=None)
    book = SimpleNamespace(price=Decimal('14.99'))
    assert resolve_unit_price(listing, book) == Decimal('14.99')


def test_zero_override_is_still_an_override():
    listing = SimpleNamespace(shop_price=Decimal('0.00'))
    book = SimpleNamespace(price=Decimal('14.99'))
    assert resolve_unit_price(listing, book) == Decimal('0.00')


def test_compute_total_is_exact():
    assert compute_total(Decimal('12.99'), 2) == Decimal('25.98')
    assert compute_total(Decimal('11.99'), 3) == Decimal('35.97')
    assert compute_total(Decimal('0.10'), 3) == Decimal('0.30'), "No binary float drift"
