"""
Checkout orchestration.

begin_checkout() binds the presented cart snapshot to a payment intent and
a pending order; confirm_payment() turns the pending order into an Order
when the gateway reports the intent as paid. Confirmation is idempotent
per payment intent.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from ..core.config import settings
from ..core.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
)
from ..database.memberships import MembershipDatabase, membership_db
from ..database.orders import OrderDatabase, order_db
from ..database.pending_orders import PendingOrderDatabase, pending_order_db
from ..models.cart import Cart
from ..models.checkout import CheckoutRequest, Order, PaymentEvent, PendingOrder
from ..models.membership import MembershipTier
from ..security.auth import Identity
from ..security.cart_tokens import CartSnapshot, CartTokenError, TokenService, token_service
from .cart_engine import CartEngine, cart_engine
from .payments import PaymentGatewayError, PaymentIntent, get_gateway
from .pricing import ZERO, effective_tier, to_cents
from .promo_ledger import PromoCodeRejected, PromoLedger, promo_ledger

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"


class CheckoutOrchestrator:
    """Sequences pricing, payment intents and pending orders"""

    def __init__(
        self,
        engine: CartEngine,
        ledger: PromoLedger,
        tokens: TokenService,
        memberships: MembershipDatabase,
        pending_orders: PendingOrderDatabase,
        orders: OrderDatabase,
    ):
        self.engine = engine
        self.ledger = ledger
        self.tokens = tokens
        self.memberships = memberships
        self.pending_orders = pending_orders
        self.orders = orders

    def caller_tier(self, identity: Optional[Identity], now: Optional[datetime] = None) -> MembershipTier:
        if identity is None:
            return MembershipTier.NON_MEMBER
        return effective_tier(self.memberships.get_by_user(identity.user_id), now)

    def create_payment_intent(self, cart: Cart, metadata: Optional[dict[str, str]] = None) -> PaymentIntent:
        """Create an intent for the cart's final price"""
        if cart.is_empty():
            raise BadRequestError("You cannot pay for an empty cart.")
        try:
            return get_gateway().create_intent(to_cents(cart.final_price), settings.currency, metadata=metadata)
        except PaymentGatewayError as e:
            logger.error(f"Payment intent creation failed: {e}")
            raise InternalError("The payment gateway could not create a payment intent.")

    def update_intent_amount(
        self,
        payment_intent_id: str,
        cart: Cart,
        metadata: Optional[dict[str, str]] = None,
    ) -> PaymentIntent:
        """Keep an existing intent in step with the cart's final price"""
        try:
            return get_gateway().update_intent_amount(
                payment_intent_id, to_cents(cart.final_price), metadata=metadata
            )
        except PaymentGatewayError as e:
            logger.error(f"Payment intent {payment_intent_id} update failed: {e}")
            raise InternalError("The payment gateway could not update the payment intent.")

    def _check_club_eligibility(self, identity: Optional[Identity], now: datetime) -> None:
        if identity is None:
            raise UnauthorizedError("Club orders require a login.")
        membership = self.memberships.get_by_user(identity.user_id)
        if membership is None:
            raise NotFoundError("A membership was not found for this user.")
        if effective_tier(membership, now) == MembershipTier.NON_MEMBER:
            raise ForbiddenError("Club orders require an active membership.")
        if membership.deliveries_left <= 0:
            raise ForbiddenError("You are out of club deliveries for this billing cycle.")

    def _club_priced(self, cart: Cart) -> Cart:
        """Club deliveries are covered by the membership"""
        lines = [line.model_copy(update={"unit_price": ZERO}) for line in cart.lines]
        return self.engine.recalculate(cart, lines=lines)

    def begin_checkout(
        self,
        snapshot: CartSnapshot,
        identity: Optional[Identity],
        request: CheckoutRequest,
        now: Optional[datetime] = None,
    ) -> tuple[PendingOrder, PaymentIntent, str]:
        """
        Create (or rebind) the pending order for a cart.

        Returns the pending order, its payment intent and the fresh cart
        token. The presented token is revoked.
        """
        now = now or datetime.now(timezone.utc)
        cart = snapshot.cart

        if cart.is_empty():
            raise BadRequestError("You cannot proceed to checkout with an empty cart.")
        if cart.desired_ship_date is None:
            raise BadRequestError("A ship date must be set before checkout.")

        if request.club_order:
            self._check_club_eligibility(identity, now)

        cart = self.engine.apply_membership_pricing(cart, self.caller_tier(identity, now))

        if cart.promo_code:
            # Usage was already consumed at attach time unless accounting is deferred
            self.ledger.validate(
                cart.promo_code,
                now=now,
                check_usage=settings.promo_usage_accounting == "finalize",
            )

        gift_message = request.gift_message or cart.gift_message
        if gift_message != cart.gift_message:
            cart = self.engine.recalculate(cart, gift_message=gift_message)

        if request.club_order:
            cart = self._club_priced(cart)

        existing = None
        if request.payment_intent_id:
            existing = self.pending_orders.get_by_payment_intent(request.payment_intent_id)
            if existing and existing.is_finalized:
                raise ConflictError("This payment has already been completed.")
            if get_gateway().get_intent(request.payment_intent_id) is None:
                raise NotFoundError(f"Payment intent {request.payment_intent_id} was not found.")

        user_id = identity.user_id if identity else f"guest-{uuid.uuid4().hex[:12]}"
        if existing and identity is None:
            user_id = existing.user_id
        pending_order_id = existing.id if existing else uuid.uuid4().hex

        signed = self.tokens.issue_cart_token(cart)
        metadata = {"pending_order_id": pending_order_id, "user_id": user_id, "cart_token": signed.token}
        if request.payment_intent_id:
            intent = self.update_intent_amount(request.payment_intent_id, cart, metadata=metadata)
        else:
            intent = self.create_payment_intent(cart, metadata=metadata)

        pending_order = PendingOrder(
            id=pending_order_id,
            cart_token=signed.token,
            cart=cart,
            user_id=user_id,
            payment_intent_id=intent.id,
            gift_message=gift_message,
            is_club_order=request.club_order,
            date_created=now,
        )
        self.pending_orders.save(pending_order)
        self.tokens.revoked.revoke(snapshot.jti, snapshot.expires)

        logger.info(
            f"Pending order {pending_order.id} {'rebound' if existing else 'created'} "
            f"for intent {intent.id}: {intent.amount_cents} cents"
            f"{' (club order)' if request.club_order else ''}"
        )
        return pending_order, intent, signed.token

    def confirm_payment(self, event: PaymentEvent) -> tuple[Optional[Order], bool]:
        """
        Finalize the pending order bound to a paid intent.

        Returns (order, created). An unmatched intent is logged for manual
        reconciliation and yields (None, False); a repeated confirmation
        returns the existing order with created=False.
        """
        pending_order = self.pending_orders.get_by_payment_intent(event.payment_intent_id)
        if pending_order is None:
            logger.warning(
                f"No pending order for paid intent {event.payment_intent_id} "
                f"({event.amount_cents} cents); needs manual reconciliation"
            )
            return None, False

        if pending_order.is_finalized:
            logger.info(f"Duplicate confirmation for intent {event.payment_intent_id} ignored")
            return self.orders.get_order(pending_order.order_id), False

        if event.shipping_address is None:
            raise BadRequestError("A shipping address is required to place an order.")

        try:
            # The stored token may have expired or been superseded since checkout
            cart = self.tokens.read_cart_token(pending_order.cart_token, verify_expiry=False).cart
        except CartTokenError as e:
            logger.error(f"Pending order {pending_order.id} holds an unreadable cart token: {e}")
            raise ForbiddenError("The cart for this payment could not be verified.")

        expected_cents = to_cents(cart.final_price)
        if event.amount_cents != expected_cents:
            logger.warning(
                f"Intent {event.payment_intent_id} paid {event.amount_cents} cents, "
                f"pending order {pending_order.id} expected {expected_cents}"
            )

        order = self.orders.create_order(
            user_id=pending_order.user_id,
            cart=cart,
            shipping_address=event.shipping_address,
            gift_message=pending_order.gift_message,
            payment_intent_id=event.payment_intent_id,
            is_club_order=pending_order.is_club_order,
        )

        if self.pending_orders.claim_for_order(pending_order.id, order.order_id) is None:
            # Lost a race with a concurrent confirmation of the same intent
            self.orders.delete_order(order.order_id)
            claimed = self.pending_orders.get(pending_order.id)
            logger.info(f"Concurrent confirmation for intent {event.payment_intent_id} ignored")
            return self.orders.get_order(claimed.order_id) if claimed else None, False

        if cart.promo_code and settings.promo_usage_accounting == "finalize":
            try:
                self.ledger.record_use(cart.promo_code)
            except (PromoCodeRejected, NotFoundError) as e:
                # The customer has already paid; keep the order and flag it
                logger.warning(f"Order {order.order_id} could not record promo {cart.promo_code}: {e.message}")

        if pending_order.is_club_order:
            if self.memberships.consume_delivery(pending_order.user_id) is None:
                logger.warning(f"Club order {order.order_id} placed but no delivery could be consumed")

        logger.info(f"Order {order.order_id} placed from pending order {pending_order.id}")
        return order, True


# Singleton instance
checkout_orchestrator = CheckoutOrchestrator(
    cart_engine,
    promo_ledger,
    token_service,
    membership_db,
    pending_order_db,
    order_db,
)
