"""In-memory stores, including the atomic counters"""

import threading
from datetime import datetime, timezone
from decimal import Decimal

from bagelshop.database import membership_db, order_db, pending_order_db, promo_code_db
from bagelshop.models.cart import Cart
from bagelshop.models.checkout import OrderStatus, PendingOrder, ShippingAddress
from bagelshop.models.membership import Membership, MembershipTier

from conftest import make_promo

ADDRESS = ShippingAddress(
    full_name="Pat Baker",
    line1="1 Main St",
    city="Brooklyn",
    state="NY",
    postal_code="11201",
    phone="555-0100",
    email="pat@example.com",
)


def _run_concurrently(target, count):
    threads = [threading.Thread(target=target) for _ in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()


class TestPromoCodeDatabase:
    def test_concurrent_increments_respect_cap(self):
        promo_code_db.create(make_promo("LIMITED", total_allowed_uses=10))
        results = []

        def use():
            for _ in range(10):
                results.append(promo_code_db.increment_usage("LIMITED"))

        _run_concurrently(use, 8)

        assert promo_code_db.get_by_code("LIMITED").total_times_used == 10
        assert sum(1 for r in results if r is not None) == 10

    def test_duplicate_create_returns_none(self):
        assert promo_code_db.create(make_promo("DUP")) is not None
        assert promo_code_db.create(make_promo("DUP")) is None

    def test_update_cannot_touch_usage_counter(self):
        promo_code_db.create(make_promo("FIXED"))
        updated = promo_code_db.update("FIXED", {"total_times_used": 99, "description": "new"})
        assert updated.total_times_used == 0
        assert updated.description == "new"

    def test_update_missing(self):
        assert promo_code_db.update("MISSING", {"description": "x"}) is None


class TestMembershipDatabase:
    def test_concurrent_delivery_consumption(self):
        membership_db.upsert(Membership(user_id="u1", tier=MembershipTier.DIAMOND, deliveries_left=4))
        results = []

        def consume():
            results.append(membership_db.consume_delivery("u1"))

        _run_concurrently(consume, 10)

        assert membership_db.get_by_user("u1").deliveries_left == 0
        assert sum(1 for r in results if r is not None) == 4

    def test_no_record(self):
        assert membership_db.consume_delivery("nobody") is None


class TestPendingOrderDatabase:
    def _pending(self):
        return pending_order_db.save(
            PendingOrder(
                cart_token="token",
                cart=Cart(),
                user_id="u1",
                payment_intent_id="pi_1",
                date_created=datetime.now(timezone.utc),
            )
        )

    def test_claim_once(self):
        pending = self._pending()
        assert pending_order_db.claim_for_order(pending.id, "ORD-1").order_id == "ORD-1"
        assert pending_order_db.claim_for_order(pending.id, "ORD-2") is None
        assert pending_order_db.get(pending.id).order_id == "ORD-1"

    def test_lookup_by_intent(self):
        pending = self._pending()
        assert pending_order_db.get_by_payment_intent("pi_1").id == pending.id
        assert pending_order_db.get_by_payment_intent("pi_other") is None


class TestOrderDatabase:
    def _order(self, final_price, promo_code="SAVE"):
        cart = Cart(final_price=Decimal(final_price), promo_code=promo_code)
        return order_db.create_order("u1", cart, ADDRESS)

    def test_promo_sales_total(self):
        self._order("10.00")
        self._order("200.00")
        self._order("25.52")
        self._order("99.99", promo_code=None)
        assert order_db.promo_sales_total("SAVE") == Decimal("235.52")
        assert len(order_db.list_by_promo_code("SAVE")) == 3

    def test_update_status_and_tracking(self):
        order = self._order("10.00")
        updated = order_db.update_order(order.order_id, status=OrderStatus.SHIPPED, tracking_numbers=["1Z999"])
        assert updated.status == OrderStatus.SHIPPED
        assert updated.tracking_numbers == ["1Z999"]
        assert updated.cart == order.cart

    def test_update_missing(self):
        assert order_db.update_order("ORD-NOPE", status=OrderStatus.SHIPPED) is None
