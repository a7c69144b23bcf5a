"""
Orders business layer.

Customer placement (stock-checked), staff order entry and post-placement edits.
Pricing lives in pricing.py and is shared by every path that creates an order.
"""
