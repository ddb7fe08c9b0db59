"""Promo code models"""

import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


@dataclass(frozen=True)
class PercentOff:
    """Percentage of the subtotal, e.g. 25 for 25% off"""
    percent: Decimal


@dataclass(frozen=True)
class FlatOff:
    """Fixed dollar amount off the subtotal"""
    amount: Decimal


@dataclass(frozen=True)
class FreeShipping:
    pass


Perk = Union[PercentOff, FlatOff, FreeShipping]

_PERCENT_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)(?:_PERCENT_OFF|% ?OFF)$")
_FLAT_PATTERN = re.compile(r"^\$(\d+(?:\.\d+)?)(?:_OFF| OFF)$")
_FREE_SHIPPING_PATTERN = re.compile(r"^FREE[_ ]SHIPPING$")


def parse_perk(text: str) -> Perk:
    """
    Parse a perk descriptor into its variant.

    Accepts the stored forms ("25_PERCENT_OFF", "$10_OFF", "FREE_SHIPPING")
    as well as the human forms ("25% Off", "$10 Off", "Free Shipping").

    Raises:
        ValueError: if the descriptor is not a known perk
    """
    normalized = text.strip().upper()

    if _FREE_SHIPPING_PATTERN.match(normalized):
        return FreeShipping()

    try:
        percent_match = _PERCENT_PATTERN.match(normalized)
        if percent_match:
            percent = Decimal(percent_match.group(1))
            if percent > 100:
                raise ValueError(f"Percent-off perk cannot exceed 100%: {text}")
            return PercentOff(percent=percent)

        flat_match = _FLAT_PATTERN.match(normalized)
        if flat_match:
            return FlatOff(amount=Decimal(flat_match.group(1)))
    except InvalidOperation:
        pass

    raise ValueError(f"Unknown promo perk: {text}")


class PromoRejection(str, Enum):
    EXPIRED = "expired"
    OUT_OF_USES = "out_of_uses"
    DISABLED = "disabled"


class PromoCode(BaseModel):
    """Promo code document"""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    code: str
    date_of_expiry: datetime
    total_allowed_uses: Optional[int] = Field(default=None, ge=0)
    total_times_used: int = Field(default=0, ge=0)
    created_by_user_id: str
    description: str
    perk: str
    disabled: bool = True

    @field_validator("perk")
    @classmethod
    def perk_must_parse(cls, value: str) -> str:
        parse_perk(value)
        return value

    @model_validator(mode="after")
    def usage_within_cap(self) -> "PromoCode":
        if self.total_allowed_uses is not None and self.total_times_used > self.total_allowed_uses:
            raise ValueError(
                f"total_allowed_uses ({self.total_allowed_uses}) cannot be below "
                f"total_times_used ({self.total_times_used})"
            )
        return self


class CreatePromoCodeRequest(BaseModel):
    """Admin request to create a promo code"""
    code: str = Field(min_length=1)
    date_of_expiry: datetime
    description: str = Field(min_length=1)
    perk: str
    total_allowed_uses: Optional[int] = Field(default=None, ge=0)
    # New codes start disabled unless explicitly enabled
    disabled: bool = True

    @field_validator("perk")
    @classmethod
    def perk_must_parse(cls, value: str) -> str:
        parse_perk(value)
        return value


class UpdatePromoCodeRequest(BaseModel):
    """Admin request to update a promo code; omitted fields are left unchanged"""
    date_of_expiry: Optional[datetime] = None
    description: Optional[str] = Field(default=None, min_length=1)
    perk: Optional[str] = None
    total_allowed_uses: Optional[int] = Field(default=None, ge=0)
    disabled: Optional[bool] = None

    @field_validator("perk")
    @classmethod
    def perk_must_parse(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            parse_perk(value)
        return value

    @model_validator(mode="after")
    def only_cap_may_be_cleared(self) -> "UpdatePromoCodeRequest":
        # null on total_allowed_uses means unlimited; every other field is required
        for name in ("date_of_expiry", "description", "perk", "disabled"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class PromoSalesResponse(BaseModel):
    code: str
    orders: int
    total_sales: str
