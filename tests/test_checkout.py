"""Checkout orchestrator: pending orders, confirmation and club orders"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from bagelshop.core.config import settings
from bagelshop.core.errors import BadRequestError, ConflictError, ForbiddenError, InternalError, NotFoundError, UnauthorizedError
from bagelshop.database import membership_db, order_db, pending_order_db, promo_code_db
from bagelshop.models.catalog import SelectionKind
from bagelshop.models.checkout import CheckoutRequest, PaymentEvent, ShippingAddress
from bagelshop.models.membership import Membership, MembershipTier
from bagelshop.security.auth import Identity
from bagelshop.security.cart_tokens import CartTokenError, token_service
from bagelshop.services.cart_engine import cart_engine
from bagelshop.services.checkout import PAYMENT_SUCCEEDED, checkout_orchestrator
from bagelshop.services.payments import get_gateway
from bagelshop.services.promo_ledger import PromoCodeRejected

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


def _snapshot(quantity=2, ship_date="2024-12-24", promo=None):
    cart = cart_engine.upsert_line(cart_engine.empty_cart(), "bagel-plain", SelectionKind.DOZEN, quantity)
    if ship_date:
        cart = cart_engine.set_desired_ship_date(cart, ship_date)
    if promo:
        cart = cart_engine.apply_promo_code(cart, promo)
    return token_service.read_cart_token(token_service.issue_cart_token(cart).token)


def _paid(pending_order, amount_cents=None):
    return PaymentEvent(
        type=PAYMENT_SUCCEEDED,
        payment_intent_id=pending_order.payment_intent_id,
        amount_cents=amount_cents if amount_cents is not None else 8990,
        shipping_address=ADDRESS,
    )


class TestBeginCheckout:
    def test_creates_pending_order_and_intent(self):
        snapshot = _snapshot()
        pending, intent, new_token = checkout_orchestrator.begin_checkout(snapshot, None, CheckoutRequest())

        assert intent.amount_cents == 8990
        assert pending.payment_intent_id == intent.id
        assert pending.user_id.startswith("guest-")
        assert not pending.is_finalized
        assert pending_order_db.get(pending.id) == pending
        assert token_service.read_cart_token(new_token).cart == pending.cart

    def test_presented_token_is_revoked(self):
        snapshot = _snapshot()
        checkout_orchestrator.begin_checkout(snapshot, None, CheckoutRequest())
        with pytest.raises(CartTokenError):
            token_service.read_cart_token(snapshot.token)

    def test_requires_ship_date(self):
        with pytest.raises(BadRequestError):
            checkout_orchestrator.begin_checkout(_snapshot(ship_date=None), None, CheckoutRequest())

    def test_requires_items(self):
        cart = cart_engine.set_desired_ship_date(cart_engine.empty_cart(), "2024-12-24")
        snapshot = token_service.read_cart_token(token_service.issue_cart_token(cart).token)
        with pytest.raises(BadRequestError):
            checkout_orchestrator.begin_checkout(snapshot, None, CheckoutRequest())

    def test_reprices_at_member_tier(self):
        membership_db.upsert(Membership(user_id="user-1", tier=MembershipTier.DIAMOND))
        pending, intent, _ = checkout_orchestrator.begin_checkout(
            _snapshot(quantity=1), Identity("user-1"), CheckoutRequest()
        )
        assert pending.cart.lines[0].unit_price == Decimal("38.2075")
        assert intent.amount_cents == 3821

    def test_gift_message_from_request(self):
        pending, _, _ = checkout_orchestrator.begin_checkout(
            _snapshot(), None, CheckoutRequest(gift_message="Mazel tov")
        )
        assert pending.gift_message == "Mazel tov"
        assert pending.cart.gift_message == "Mazel tov"

    def test_promo_disabled_after_attach_is_rejected(self, save25):
        snapshot = _snapshot(promo="SAVE25")
        promo_code_db.update("SAVE25", {"disabled": True})
        with pytest.raises(PromoCodeRejected):
            checkout_orchestrator.begin_checkout(snapshot, None, CheckoutRequest())

    def test_attach_accounting_ignores_cap_consumed_by_this_cart(self):
        promo_code_db.create(make_promo("ONCE", total_allowed_uses=1))
        snapshot = _snapshot(promo="ONCE")
        pending, _, _ = checkout_orchestrator.begin_checkout(snapshot, None, CheckoutRequest())
        assert pending.cart.promo_code == "ONCE"

    def test_finalize_accounting_checks_cap(self, monkeypatch):
        monkeypatch.setattr(settings, "promo_usage_accounting", "finalize")
        promo_code_db.create(make_promo("ONCE", total_allowed_uses=1))
        snapshot = _snapshot(promo="ONCE")
        promo_code_db.increment_usage("ONCE")
        with pytest.raises(PromoCodeRejected):
            checkout_orchestrator.begin_checkout(snapshot, None, CheckoutRequest())

    def test_reuses_intent_and_rebinds_pending_order(self):
        first, intent, token = checkout_orchestrator.begin_checkout(_snapshot(), None, CheckoutRequest())

        snapshot = token_service.read_cart_token(token)
        updated = cart_engine.upsert_line(snapshot.cart, "bagel-plain", SelectionKind.DOZEN, 3)
        snapshot = token_service.read_cart_token(token_service.supersede(snapshot, updated))

        second, same_intent, _ = checkout_orchestrator.begin_checkout(
            snapshot, None, CheckoutRequest(payment_intent_id=intent.id)
        )
        assert second.id == first.id
        assert second.user_id == first.user_id
        assert same_intent.id == intent.id
        assert same_intent.amount_cents == 13485
        assert len(pending_order_db.pending_orders) == 1

    def test_intent_metadata_links_pending_order(self):
        pending, intent, token = checkout_orchestrator.begin_checkout(_snapshot(), None, CheckoutRequest())
        assert get_gateway().get_intent(intent.id).metadata == {
            "pending_order_id": pending.id,
            "user_id": pending.user_id,
            "cart_token": token,
        }

    def test_reused_intent_metadata_follows_new_cart_token(self):
        _, intent, token = checkout_orchestrator.begin_checkout(_snapshot(), None, CheckoutRequest())
        pending, _, new_token = checkout_orchestrator.begin_checkout(
            token_service.read_cart_token(token), None, CheckoutRequest(payment_intent_id=intent.id)
        )
        metadata = get_gateway().get_intent(intent.id).metadata
        assert metadata["cart_token"] == new_token == pending.cart_token
        assert metadata["pending_order_id"] == pending.id

    def test_unknown_intent(self):
        with pytest.raises(NotFoundError):
            checkout_orchestrator.begin_checkout(_snapshot(), None, CheckoutRequest(payment_intent_id="pi_nope"))

    def test_paid_intent_cannot_be_reused(self):
        pending, intent, _ = checkout_orchestrator.begin_checkout(_snapshot(), None, CheckoutRequest())
        checkout_orchestrator.confirm_payment(_paid(pending))
        with pytest.raises(ConflictError):
            checkout_orchestrator.begin_checkout(_snapshot(), None, CheckoutRequest(payment_intent_id=intent.id))

    def test_gateway_failure_is_internal_error(self):
        get_gateway().configure(should_succeed=False)
        with pytest.raises(InternalError):
            checkout_orchestrator.begin_checkout(_snapshot(), None, CheckoutRequest())


class TestConfirmPayment:
    def test_creates_order_once(self):
        pending, _, _ = checkout_orchestrator.begin_checkout(_snapshot(), Identity("user-1"), CheckoutRequest())

        order, created = checkout_orchestrator.confirm_payment(_paid(pending))
        assert created
        assert order.user_id == "user-1"
        assert order.cart == pending.cart
        assert pending_order_db.get(pending.id).order_id == order.order_id

        again, created_again = checkout_orchestrator.confirm_payment(_paid(pending))
        assert not created_again
        assert again.order_id == order.order_id
        assert len(order_db.orders) == 1

    def test_order_built_from_pending_cart_token(self):
        pending, _, token = checkout_orchestrator.begin_checkout(_snapshot(), None, CheckoutRequest())
        # The shopper keeps editing after checkout, which supersedes the pending token
        snapshot = token_service.read_cart_token(token)
        token_service.supersede(snapshot, cart_engine.upsert_line(snapshot.cart, "bagel-plain", SelectionKind.DOZEN, 9))

        order, created = checkout_orchestrator.confirm_payment(_paid(pending))
        assert created
        assert order.cart == token_service.read_cart_token(pending.cart_token, verify_expiry=False).cart
        assert order.cart.total_quantity == 2

    def test_expired_pending_cart_token_still_places_order(self, monkeypatch):
        monkeypatch.setattr(settings, "cart_token_ttl_seconds", -3600)
        pending, _, _ = checkout_orchestrator.begin_checkout(_snapshot(), None, CheckoutRequest())
        with pytest.raises(CartTokenError):
            token_service.read_cart_token(pending.cart_token)

        order, created = checkout_orchestrator.confirm_payment(_paid(pending))
        assert created
        assert order.cart.total_quantity == 2

    def test_unverifiable_pending_cart_token(self):
        pending, _, _ = checkout_orchestrator.begin_checkout(_snapshot(), None, CheckoutRequest())
        pending_order_db.save(pending.model_copy(update={"cart_token": "not-a-token"}))
        with pytest.raises(ForbiddenError):
            checkout_orchestrator.confirm_payment(_paid(pending))
        assert not pending_order_db.get(pending.id).is_finalized
        assert order_db.orders == {}

    def test_unmatched_intent_is_acknowledged(self, caplog):
        event = PaymentEvent(type=PAYMENT_SUCCEEDED, payment_intent_id="pi_orphan", amount_cents=100, shipping_address=ADDRESS)
        order, created = checkout_orchestrator.confirm_payment(event)
        assert order is None
        assert not created
        assert "pi_orphan" in caplog.text

    def test_requires_shipping_address(self):
        pending, _, _ = checkout_orchestrator.begin_checkout(_snapshot(), None, CheckoutRequest())
        event = PaymentEvent(type=PAYMENT_SUCCEEDED, payment_intent_id=pending.payment_intent_id, amount_cents=8990)
        with pytest.raises(BadRequestError):
            checkout_orchestrator.confirm_payment(event)
        assert not pending_order_db.get(pending.id).is_finalized

    def test_amount_mismatch_still_places_order(self, caplog):
        pending, _, _ = checkout_orchestrator.begin_checkout(_snapshot(), None, CheckoutRequest())
        order, created = checkout_orchestrator.confirm_payment(_paid(pending, amount_cents=100))
        assert created
        assert "expected 8990" in caplog.text

    def test_finalize_accounting_records_use_once(self, save25, monkeypatch):
        monkeypatch.setattr(settings, "promo_usage_accounting", "finalize")
        pending, _, _ = checkout_orchestrator.begin_checkout(_snapshot(promo="SAVE25"), None, CheckoutRequest())
        assert promo_code_db.get_by_code("SAVE25").total_times_used == 0

        checkout_orchestrator.confirm_payment(_paid(pending, amount_cents=6743))
        checkout_orchestrator.confirm_payment(_paid(pending, amount_cents=6743))
        assert promo_code_db.get_by_code("SAVE25").total_times_used == 1

    def test_attach_accounting_does_not_record_again(self, save25):
        pending, _, _ = checkout_orchestrator.begin_checkout(_snapshot(promo="SAVE25"), None, CheckoutRequest())
        checkout_orchestrator.confirm_payment(_paid(pending, amount_cents=6743))
        assert promo_code_db.get_by_code("SAVE25").total_times_used == 1


class TestClubOrders:
    def _member(self, tier=MembershipTier.GOLD, deliveries_left=1, expires_in_days=30):
        return membership_db.upsert(
            Membership(
                user_id="user-1",
                tier=tier,
                deliveries_left=deliveries_left,
                expiration_date=datetime.now(timezone.utc) + timedelta(days=expires_in_days),
            )
        )

    def test_club_order_is_free_and_consumes_a_delivery(self):
        self._member(deliveries_left=2)
        pending, intent, _ = checkout_orchestrator.begin_checkout(
            _snapshot(), Identity("user-1"), CheckoutRequest(club_order=True)
        )
        assert intent.amount_cents == 0
        assert all(line.unit_price == 0 for line in pending.cart.lines)

        order, created = checkout_orchestrator.confirm_payment(_paid(pending, amount_cents=0))
        assert created
        assert order.is_club_order
        assert order.cart.final_price == 0
        assert membership_db.get_by_user("user-1").deliveries_left == 1

    def test_duplicate_confirmation_consumes_one_delivery(self):
        self._member(deliveries_left=2)
        pending, _, _ = checkout_orchestrator.begin_checkout(
            _snapshot(), Identity("user-1"), CheckoutRequest(club_order=True)
        )
        checkout_orchestrator.confirm_payment(_paid(pending, amount_cents=0))
        checkout_orchestrator.confirm_payment(_paid(pending, amount_cents=0))
        assert membership_db.get_by_user("user-1").deliveries_left == 1

    def test_regular_order_keeps_deliveries(self):
        self._member(deliveries_left=1)
        pending, _, _ = checkout_orchestrator.begin_checkout(_snapshot(), Identity("user-1"), CheckoutRequest())
        checkout_orchestrator.confirm_payment(_paid(pending))
        assert membership_db.get_by_user("user-1").deliveries_left == 1

    def test_guest_cannot_place_club_order(self):
        with pytest.raises(UnauthorizedError):
            checkout_orchestrator.begin_checkout(_snapshot(), None, CheckoutRequest(club_order=True))

    def test_requires_membership_record(self):
        with pytest.raises(NotFoundError):
            checkout_orchestrator.begin_checkout(_snapshot(), Identity("user-1"), CheckoutRequest(club_order=True))

    def test_expired_membership(self):
        self._member(expires_in_days=-1)
        with pytest.raises(ForbiddenError):
            checkout_orchestrator.begin_checkout(_snapshot(), Identity("user-1"), CheckoutRequest(club_order=True))

    def test_out_of_deliveries(self):
        self._member(deliveries_left=0)
        with pytest.raises(ForbiddenError):
            checkout_orchestrator.begin_checkout(_snapshot(), Identity("user-1"), CheckoutRequest(club_order=True))
