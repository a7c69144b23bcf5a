"""
Order status values

Orders are created Pending by placement. Later changes are made through
OrderEditManager, which only checks that a status is one of the known values:
moves between statuses are not restricted (there is no transition table).
"""

from typing import Set


class OrderStatus:
    PENDING = 'Pending'
    PROCESSING = 'Processing'
    SHIPPED = 'Shipped'
    COMPLETED = 'Completed'
    CANCELLED = 'Cancelled'

    INITIAL = PENDING

    ALL: Set[str] = {PENDING, PROCESSING, SHIPPED, COMPLETED, CANCELLED}

    @classmethod
    def is_known(cls, status: str) -> bool:
        return status in cls.ALL
