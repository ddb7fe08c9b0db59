"""Admin API routes: promo codes, orders and memberships"""

import logging

from fastapi import APIRouter, Depends

from ..core.errors import NotFoundError
from ..database.memberships import membership_db
from ..database.orders import order_db
from ..database.promo_codes import promo_code_db
from ..models.checkout import Order, UpdateOrderRequest
from ..models.membership import (
    DELIVERY_ALLOWANCE,
    Membership,
    MembershipResponse,
    UpdateMembershipRequest,
)
from ..models.promo import (
    CreatePromoCodeRequest,
    PromoCode,
    PromoSalesResponse,
    UpdatePromoCodeRequest,
)
from ..security.auth import Identity, require_admin
from ..services.pricing import effective_tier, format_dollars
from ..services.promo_ledger import promo_ledger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


# Promo codes

@router.post("/promo-codes", response_model=PromoCode, status_code=201)
async def create_promo_code(
    request: CreatePromoCodeRequest,
    admin: Identity = Depends(require_admin),
):
    """Create a promo code (disabled unless the request enables it)"""
    promo = PromoCode(created_by_user_id=admin.user_id, **request.model_dump())
    return promo_ledger.create(promo)


@router.get("/promo-codes", response_model=list[PromoCode])
async def list_promo_codes():
    return promo_code_db.list_codes()


@router.get("/promo-codes/{code}", response_model=PromoCode)
async def get_promo_code(code: str):
    promo = promo_code_db.get_by_code(code)
    if not promo:
        raise NotFoundError(f"Promo code {code} was not found.")
    return promo


@router.put("/promo-codes/{code}", response_model=PromoCode)
async def update_promo_code(code: str, request: UpdatePromoCodeRequest):
    """Update description, expiry, cap, disabled flag or perk"""
    return promo_ledger.update(code, request.model_dump(exclude_unset=True))


@router.delete("/promo-codes/{code}")
async def delete_promo_code(code: str):
    if not promo_code_db.delete(code):
        raise NotFoundError(f"Promo code {code} was not found.")
    logger.info(f"Promo code {code} deleted")
    return {"deleted": code}


@router.get("/promo-codes/{code}/sales", response_model=PromoSalesResponse)
async def get_promo_code_sales(code: str):
    """Orders and summed final prices attributed to a code"""
    count, total = promo_ledger.sales_total(code)
    return PromoSalesResponse(code=code, orders=count, total_sales=format_dollars(total))


# Orders

@router.get("/orders", response_model=list[Order])
async def list_orders(limit: int = 50):
    """List recent orders"""
    return order_db.list_orders(limit=limit)


@router.put("/orders/{order_id}", response_model=Order)
async def update_order(order_id: str, request: UpdateOrderRequest):
    """Status and tracking numbers are the only fields admins change"""
    order = order_db.update_order(
        order_id,
        status=request.status,
        tracking_numbers=request.tracking_numbers,
    )
    if not order:
        raise NotFoundError("Order not found")
    return order


# Memberships

@router.put("/memberships/{user_id}", response_model=MembershipResponse)
async def set_membership(user_id: str, request: UpdateMembershipRequest):
    """Set a user's membership; deliveries default to the tier allowance"""
    deliveries_left = request.deliveries_left
    if deliveries_left is None:
        deliveries_left = DELIVERY_ALLOWANCE[request.tier]

    membership = membership_db.upsert(
        Membership(
            user_id=user_id,
            tier=request.tier,
            expiration_date=request.expiration_date,
            deliveries_left=deliveries_left,
        )
    )
    logger.info(f"Membership for {user_id} set to {request.tier.value} ({deliveries_left} deliveries)")
    return MembershipResponse(membership=membership, effective_tier=effective_tier(membership))
