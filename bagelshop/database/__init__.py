# Database modules

from .items import item_db, ItemDatabase
from .memberships import membership_db, MembershipDatabase
from .promo_codes import promo_code_db, PromoCodeDatabase
from .pending_orders import pending_order_db, PendingOrderDatabase
from .orders import order_db, OrderDatabase

__all__ = [
    "item_db",
    "ItemDatabase",
    "membership_db",
    "MembershipDatabase",
    "promo_code_db",
    "PromoCodeDatabase",
    "pending_order_db",
    "PendingOrderDatabase",
    "order_db",
    "OrderDatabase",
]
