# API Routes

from .items import router as items_router
from .cart import router as cart_router
from .checkout import router as checkout_router
from .memberships import router as memberships_router
from .admin import router as admin_router

__all__ = ["items_router", "cart_router", "checkout_router", "memberships_router", "admin_router"]
