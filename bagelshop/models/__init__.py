# Bagel Shop Models

from .catalog import Item, ItemCategory, SelectionKind, CatalogEntry, ItemListResponse
from .membership import Membership, MembershipTier, DELIVERY_ALLOWANCE
from .promo import (
    PromoCode,
    PromoRejection,
    Perk,
    PercentOff,
    FlatOff,
    FreeShipping,
    parse_perk,
)
from .cart import Cart, CartLine, CartTotals, CartResponse
from .checkout import (
    Order,
    OrderStatus,
    PendingOrder,
    ShippingAddress,
    PaymentEvent,
    CheckoutRequest,
    CheckoutResponse,
)

__all__ = [
    "Item",
    "ItemCategory",
    "SelectionKind",
    "CatalogEntry",
    "ItemListResponse",
    "Membership",
    "MembershipTier",
    "DELIVERY_ALLOWANCE",
    "PromoCode",
    "PromoRejection",
    "Perk",
    "PercentOff",
    "FlatOff",
    "FreeShipping",
    "parse_perk",
    "Cart",
    "CartLine",
    "CartTotals",
    "CartResponse",
    "Order",
    "OrderStatus",
    "PendingOrder",
    "ShippingAddress",
    "PaymentEvent",
    "CheckoutRequest",
    "CheckoutResponse",
]
