"""Cart API routes

The cart lives in the X-Cart-Token header. Every mutating route returns
the updated cart together with a fresh token and revokes the one presented.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from ..core.errors import NotFoundError
from ..database.memberships import membership_db
from ..models.cart import (
    ApplyPromoRequest,
    Cart,
    CartResponse,
    GiftMessageRequest,
    ShipDateRequest,
    UpdateCartLineRequest,
)
from ..security.auth import Identity, cart_token, optional_user
from ..security.cart_tokens import CartSnapshot, token_service
from ..services.cart_engine import cart_engine
from ..services.checkout import checkout_orchestrator
from ..services.pricing import effective_tier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["Cart"])


def _superseded(snapshot: CartSnapshot, cart: Cart, message: Optional[str] = None) -> CartResponse:
    """Sign the new cart and retire the presented token"""
    return CartResponse(
        cart_token=token_service.supersede(snapshot, cart),
        cart=cart,
        totals=cart_engine.totals(cart),
        message=message,
    )


@router.post("", response_model=CartResponse)
async def create_cart():
    """Create a new, empty cart"""
    cart = cart_engine.empty_cart()
    signed = token_service.issue_cart_token(cart)
    return CartResponse(
        cart_token=signed.token,
        cart=cart,
        totals=cart_engine.totals(cart),
        message="Cart created",
    )


@router.get("", response_model=CartResponse)
async def get_cart(snapshot: CartSnapshot = Depends(cart_token)):
    """Read the cart carried by the presented token"""
    return CartResponse(
        cart_token=snapshot.token,
        cart=snapshot.cart,
        totals=cart_engine.totals(snapshot.cart),
    )


@router.put("/items", response_model=CartResponse)
async def update_cart_line(
    request: UpdateCartLineRequest,
    snapshot: CartSnapshot = Depends(cart_token),
    identity: Optional[Identity] = Depends(optional_user),
):
    """Set the quantity of an item + selection; 0 removes the line"""
    cart = cart_engine.upsert_line(
        snapshot.cart,
        request.item_id,
        request.selection,
        request.quantity,
        tier=checkout_orchestrator.caller_tier(identity),
    )
    return _superseded(snapshot, cart, message="Cart updated")


@router.post("/promo", response_model=CartResponse)
async def apply_promo_code(
    request: ApplyPromoRequest,
    snapshot: CartSnapshot = Depends(cart_token),
):
    """
    Attach a promo code, replacing any attached one.

    When a payment intent is given, its amount follows the new final price.
    """
    cart = cart_engine.apply_promo_code(snapshot.cart, request.code)
    if request.payment_intent_id:
        checkout_orchestrator.update_intent_amount(request.payment_intent_id, cart)
    return _superseded(snapshot, cart, message=f"Promo code {cart.promo_code} applied")


@router.delete("/promo", response_model=CartResponse)
async def remove_promo_code(
    payment_intent_id: Optional[str] = None,
    snapshot: CartSnapshot = Depends(cart_token),
):
    """Detach the promo code; its consumed use is not given back"""
    cart = cart_engine.remove_promo_code(snapshot.cart)
    if payment_intent_id:
        checkout_orchestrator.update_intent_amount(payment_intent_id, cart)
    return _superseded(snapshot, cart, message="Promo code removed")


@router.post("/membership-pricing", response_model=CartResponse)
async def apply_membership_pricing(
    snapshot: CartSnapshot = Depends(cart_token),
    identity: Optional[Identity] = Depends(optional_user),
):
    """Re-price the cart at the caller's membership tier (guests pay full price)"""
    tier = effective_tier(None)
    if identity is not None:
        membership = membership_db.get_by_user(identity.user_id)
        if membership is None:
            raise NotFoundError("A membership was not found for this user.")
        tier = effective_tier(membership)

    cart = cart_engine.apply_membership_pricing(snapshot.cart, tier)
    return _superseded(snapshot, cart, message=f"Priced as {tier.value}")


@router.put("/ship-date", response_model=CartResponse)
async def set_ship_date(
    request: ShipDateRequest,
    snapshot: CartSnapshot = Depends(cart_token),
):
    cart = cart_engine.set_desired_ship_date(snapshot.cart, request.ship_date)
    return _superseded(snapshot, cart, message="Ship date updated")


@router.put("/gift-message", response_model=CartResponse)
async def set_gift_message(
    request: GiftMessageRequest,
    snapshot: CartSnapshot = Depends(cart_token),
):
    cart = cart_engine.set_gift_message(snapshot.cart, request.message)
    return _superseded(snapshot, cart, message="Gift message updated")
