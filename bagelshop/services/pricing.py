"""Pricing rules: membership tier discounts, promo perks and money rounding.

All functions are pure. Amounts are Decimal dollars kept at full precision;
round_cents()/to_cents() are applied only when displaying or charging.
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from ..models.membership import Membership, MembershipTier
from ..models.promo import FlatOff, FreeShipping, PercentOff, Perk

CENT = Decimal("0.01")
ZERO = Decimal("0")

TIER_DISCOUNTS: dict[MembershipTier, Decimal] = {
    MembershipTier.NON_MEMBER: Decimal("0"),
    MembershipTier.GOLD: Decimal("0.05"),
    MembershipTier.PLATINUM: Decimal("0.10"),
    MembershipTier.DIAMOND: Decimal("0.15"),
}


def tier_discount_multiplier(tier: MembershipTier) -> Decimal:
    """Fraction of the catalog price a tier takes off"""
    return TIER_DISCOUNTS[tier]


def effective_tier(membership: Optional[Membership], now: Optional[datetime] = None) -> MembershipTier:
    """
    Tier to price and gate by.

    No record, or a record whose expiration date has passed, counts as
    NON_MEMBER regardless of the stored tier.
    """
    if membership is None:
        return MembershipTier.NON_MEMBER
    now = now or datetime.now(timezone.utc)
    expiration = membership.expiration_date
    if expiration is not None:
        if expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=timezone.utc)
        if expiration < now:
            return MembershipTier.NON_MEMBER
    return membership.tier


def tier_adjusted_price(catalog_price: Decimal, tier: MembershipTier) -> Decimal:
    return catalog_price - catalog_price * tier_discount_multiplier(tier)


def promo_discount_amount(perk: Perk, subtotal: Decimal) -> Decimal:
    """
    Discount a perk grants on a (membership-priced) subtotal.

    Never negative and never more than the subtotal.
    """
    if subtotal <= ZERO:
        return ZERO
    if isinstance(perk, PercentOff):
        discount = subtotal * perk.percent / Decimal("100")
    elif isinstance(perk, FlatOff):
        discount = perk.amount
    elif isinstance(perk, FreeShipping):
        # Shipping is not part of the merchandise subtotal
        discount = ZERO
    else:
        raise TypeError(f"Unsupported perk: {perk!r}")
    return max(ZERO, min(discount, subtotal))


def round_cents(amount: Decimal) -> Decimal:
    """Round to cents, half-up"""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Decimal) -> int:
    """Integer cents for payment amounts"""
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_dollars(amount: Decimal) -> str:
    return f"{round_cents(amount):.2f}"
