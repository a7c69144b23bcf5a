"""
Core models package for the Bookshop Management System
"""

from .book import Book
from .shop import Shop
from .customer import Customer
