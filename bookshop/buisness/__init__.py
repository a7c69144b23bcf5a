"""
Domain layer for the bookshop.
Business rules for placing and editing orders and maintaining shop inventory,
separated from data persistence concerns.
"""
