"""Checkout and order API routes"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Request
from pydantic import ValidationError

from ..core.errors import BadRequestError, ForbiddenError, NotFoundError, UnauthorizedError
from ..database.orders import order_db
from ..database.pending_orders import pending_order_db
from ..models.checkout import (
    CheckoutRequest,
    CheckoutResponse,
    Order,
    PaymentEvent,
    PaymentIntentResponse,
    PendingOrderStatusResponse,
    WebhookResponse,
)
from ..security.auth import Identity, cart_token, optional_user, require_user
from ..security.cart_tokens import CartSnapshot
from ..services.checkout import PAYMENT_SUCCEEDED, checkout_orchestrator
from ..services.notifications import send_order_placed
from ..services.payments import get_gateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/checkout", tags=["Checkout"])


@router.post("/payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(snapshot: CartSnapshot = Depends(cart_token)):
    """Create a payment intent for the cart's final price"""
    intent = checkout_orchestrator.create_payment_intent(snapshot.cart)
    return PaymentIntentResponse(
        payment_intent_id=intent.id,
        client_secret=intent.client_secret,
        amount_cents=intent.amount_cents,
    )


@router.post("", response_model=CheckoutResponse)
async def checkout(
    request: CheckoutRequest,
    snapshot: CartSnapshot = Depends(cart_token),
    identity: Optional[Identity] = Depends(optional_user),
):
    """
    Begin checkout.

    The cart is re-priced at the caller's tier, bound to a payment intent
    and stored as a pending order. The order itself is created once the
    payment gateway confirms the intent through the webhook.
    """
    pending_order, intent, new_token = checkout_orchestrator.begin_checkout(snapshot, identity, request)
    return CheckoutResponse(
        pending_order_id=pending_order.id,
        payment_intent_id=intent.id,
        client_secret=intent.client_secret,
        amount_cents=intent.amount_cents,
        cart_token=new_token,
    )


@router.post("/webhook", response_model=WebhookResponse)
async def payment_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    payment_signature: Optional[str] = Header(None),
):
    """Payment gateway callback"""
    payload = await request.body()

    if not payment_signature:
        raise UnauthorizedError("Missing Payment-Signature header.")
    if not get_gateway().verify_webhook_signature(payload, payment_signature):
        raise ForbiddenError("Invalid webhook signature.")

    try:
        body = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise BadRequestError("Webhook payload is not valid JSON.")

    event_type = body.get("type") if isinstance(body, dict) else None
    if event_type != PAYMENT_SUCCEEDED:
        logger.info(f"Ignoring webhook event type {event_type}")
        return WebhookResponse(message=f"Ignored event type {event_type}")

    try:
        event = PaymentEvent.model_validate(body)
    except ValidationError as e:
        raise BadRequestError(f"Invalid payment event: {e.error_count()} errors")

    order, created = checkout_orchestrator.confirm_payment(event)
    if order is None:
        return WebhookResponse(message="No pending order for this payment intent")

    if created:
        background_tasks.add_task(send_order_placed, order)
        return WebhookResponse(order_id=order.order_id, message="Order placed")
    return WebhookResponse(order_id=order.order_id, message="Order already placed")


@router.get("/pending/{pending_order_id}", response_model=PendingOrderStatusResponse)
async def get_pending_order(pending_order_id: str):
    """Poll a checkout attempt until its order is placed"""
    pending_order = pending_order_db.get(pending_order_id)
    if not pending_order:
        raise NotFoundError("Pending order not found")
    return PendingOrderStatusResponse(
        pending_order_id=pending_order.id,
        payment_intent_id=pending_order.payment_intent_id,
        finalized=pending_order.is_finalized,
        order_id=pending_order.order_id,
    )


@router.get("/orders", response_model=list[Order])
async def list_my_orders(identity: Identity = Depends(require_user)):
    """List the caller's orders"""
    return order_db.list_by_user(identity.user_id)


@router.get("/orders/{order_id}", response_model=Order)
async def get_order(order_id: str, identity: Identity = Depends(require_user)):
    """Get order details (owner or admin)"""
    order = order_db.get_order(order_id)
    if not order:
        raise NotFoundError("Order not found")
    if order.user_id != identity.user_id and not identity.is_admin:
        raise ForbiddenError("This order belongs to another user.")
    return order
