"""Pending order storage"""

import threading
from typing import Optional

from ..models.checkout import PendingOrder


class PendingOrderDatabase:
    """In-memory pending order storage"""

    def __init__(self):
        self.pending_orders: dict[str, PendingOrder] = {}
        self._lock = threading.Lock()

    def save(self, pending_order: PendingOrder) -> PendingOrder:
        """Create or replace a pending order"""
        with self._lock:
            self.pending_orders[pending_order.id] = pending_order
        return pending_order

    def get(self, pending_order_id: str) -> Optional[PendingOrder]:
        """Get a pending order by ID"""
        return self.pending_orders.get(pending_order_id)

    def get_by_payment_intent(self, payment_intent_id: str) -> Optional[PendingOrder]:
        return next(
            (p for p in self.pending_orders.values() if p.payment_intent_id == payment_intent_id),
            None,
        )

    def claim_for_order(self, pending_order_id: str, order_id: str) -> Optional[PendingOrder]:
        """
        Set order_id if the pending order has not been finalized yet.

        Returns the updated pending order, or None if it does not exist or
        already references an order.
        """
        with self._lock:
            pending_order = self.pending_orders.get(pending_order_id)
            if not pending_order or pending_order.order_id is not None:
                return None
            updated = pending_order.model_copy(update={"order_id": order_id})
            self.pending_orders[pending_order_id] = updated
            return updated

    def clear(self) -> None:
        with self._lock:
            self.pending_orders.clear()


# Singleton instance
pending_order_db = PendingOrderDatabase()
