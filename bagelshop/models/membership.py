"""Membership models"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class MembershipTier(str, Enum):
    NON_MEMBER = "Non-Member"
    GOLD = "Gold Member"
    PLATINUM = "Platinum Member"
    DIAMOND = "Diamond Member"


# Club deliveries granted per billing cycle
DELIVERY_ALLOWANCE: dict[MembershipTier, int] = {
    MembershipTier.NON_MEMBER: 0,
    MembershipTier.GOLD: 1,
    MembershipTier.PLATINUM: 2,
    MembershipTier.DIAMOND: 4,
}


class Membership(BaseModel):
    """Membership record for a user"""
    user_id: str
    tier: MembershipTier = MembershipTier.NON_MEMBER
    expiration_date: Optional[datetime] = None
    deliveries_left: int = Field(default=0, ge=0)


class UpdateMembershipRequest(BaseModel):
    """Admin request to set a user's membership"""
    tier: MembershipTier
    expiration_date: Optional[datetime] = None
    deliveries_left: Optional[int] = Field(default=None, ge=0)


class MembershipResponse(BaseModel):
    membership: Membership
    effective_tier: MembershipTier
