"""
Inventory business layer.

Listing maintenance: adding books to shops, restocking, edits and removal.
"""
