"""Checkout and order models"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from .cart import Cart


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class ShippingAddress(BaseModel):
    """Shipping address collected by the payment gateway"""
    full_name: str = Field(min_length=1)
    line1: str = Field(min_length=1)
    line2: Optional[str] = None
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = "US"
    phone: str = Field(min_length=1)
    email: str = Field(min_length=3)


class PendingOrder(BaseModel):
    """Checkout attempt bridging a cart snapshot and a payment intent"""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    cart_token: str
    cart: Cart
    user_id: str
    payment_intent_id: str
    gift_message: Optional[str] = None
    is_club_order: bool = False
    date_created: datetime
    order_id: Optional[str] = None

    @property
    def is_finalized(self) -> bool:
        return self.order_id is not None


class Order(BaseModel):
    """Placed order; the cart snapshot is never modified after creation"""
    order_id: str
    date_created: datetime
    user_id: str
    status: OrderStatus = OrderStatus.PENDING
    cart: Cart
    shipping_address: ShippingAddress
    tracking_numbers: list[str] = Field(default_factory=list)
    gift_message: Optional[str] = None
    payment_intent_id: Optional[str] = None
    is_club_order: bool = False


class CheckoutRequest(BaseModel):
    """Request to begin checkout for the presented cart"""
    payment_intent_id: Optional[str] = None
    gift_message: Optional[str] = Field(default=None, max_length=500)
    club_order: bool = False


class PaymentIntentResponse(BaseModel):
    payment_intent_id: str
    client_secret: str
    amount_cents: int


class CheckoutResponse(BaseModel):
    """Response from checkout initiation"""
    pending_order_id: str
    payment_intent_id: str
    client_secret: str
    amount_cents: int
    cart_token: str


class PaymentEvent(BaseModel):
    """Payment gateway webhook event"""
    type: str
    payment_intent_id: str
    amount_cents: int = Field(ge=0)
    shipping_address: Optional[ShippingAddress] = None


class WebhookResponse(BaseModel):
    received: bool = True
    order_id: Optional[str] = None
    message: Optional[str] = None


class PendingOrderStatusResponse(BaseModel):
    pending_order_id: str
    payment_intent_id: str
    finalized: bool
    order_id: Optional[str] = None


class UpdateOrderRequest(BaseModel):
    """Admin request; status and tracking numbers are the only mutable order fields"""
    status: Optional[OrderStatus] = None
    tracking_numbers: Optional[list[str]] = None
