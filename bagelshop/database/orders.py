"""Order storage"""

import threading
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from ..models.cart import Cart
from ..models.checkout import Order, OrderStatus, ShippingAddress


class OrderDatabase:
    """In-memory order storage"""

    def __init__(self):
        self.orders: dict[str, Order] = {}
        self._lock = threading.Lock()

    def create_order(
        self,
        user_id: str,
        cart: Cart,
        shipping_address: ShippingAddress,
        gift_message: Optional[str] = None,
        payment_intent_id: Optional[str] = None,
        is_club_order: bool = False,
    ) -> Order:
        """Create an order from a cart snapshot"""
        order = Order(
            order_id=f"ORD-{uuid.uuid4().hex[:8].upper()}",
            date_created=datetime.now(timezone.utc),
            user_id=user_id,
            status=OrderStatus.PENDING,
            cart=cart,
            shipping_address=shipping_address,
            gift_message=gift_message,
            payment_intent_id=payment_intent_id,
            is_club_order=is_club_order,
        )

        with self._lock:
            self.orders[order.order_id] = order
        return order

    def get_order(self, order_id: str) -> Optional[Order]:
        """Get an order by ID"""
        return self.orders.get(order_id)

    def update_order(
        self,
        order_id: str,
        status: Optional[OrderStatus] = None,
        tracking_numbers: Optional[list[str]] = None,
    ) -> Optional[Order]:
        """Update order status and/or tracking numbers"""
        with self._lock:
            order = self.orders.get(order_id)
            if not order:
                return None

            changes = {}
            if status is not None:
                changes["status"] = status
            if tracking_numbers is not None:
                changes["tracking_numbers"] = list(tracking_numbers)
            updated = order.model_copy(update=changes)
            self.orders[order_id] = updated
            return updated

    def delete_order(self, order_id: str) -> bool:
        with self._lock:
            if order_id in self.orders:
                del self.orders[order_id]
                return True
            return False

    def list_orders(self, limit: int = 50) -> list[Order]:
        """List recent orders"""
        orders = list(self.orders.values())
        orders.sort(key=lambda o: o.date_created, reverse=True)
        return orders[:limit]

    def list_by_user(self, user_id: str) -> list[Order]:
        orders = [o for o in self.orders.values() if o.user_id == user_id]
        orders.sort(key=lambda o: o.date_created, reverse=True)
        return orders

    def list_by_promo_code(self, code: str) -> list[Order]:
        return [o for o in self.orders.values() if o.cart.promo_code == code]

    def promo_sales_total(self, code: str) -> Decimal:
        """Sum of final prices of all orders whose cart used the code"""
        return sum(
            (o.cart.final_price for o in self.list_by_promo_code(code)),
            Decimal("0"),
        )

    def clear(self) -> None:
        with self._lock:
            self.orders.clear()


# Singleton instance
order_db = OrderDatabase()
