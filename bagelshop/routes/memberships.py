"""Membership API routes"""

from fastapi import APIRouter, Depends

from ..core.errors import NotFoundError
from ..database.memberships import membership_db
from ..models.membership import MembershipResponse
from ..security.auth import Identity, require_user
from ..services.pricing import effective_tier

router = APIRouter(prefix="/api/memberships", tags=["Memberships"])


@router.get("/me", response_model=MembershipResponse)
async def get_my_membership(identity: Identity = Depends(require_user)):
    """The stored membership and the tier it currently prices at"""
    membership = membership_db.get_by_user(identity.user_id)
    if not membership:
        raise NotFoundError("A membership was not found for this user.")
    return MembershipResponse(membership=membership, effective_tier=effective_tier(membership))
