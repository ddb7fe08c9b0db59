"""Cart models for the bagel shop"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .catalog import SelectionKind


class CartLine(BaseModel):
    """Line in a shopping cart; unit_price is already tier-adjusted"""
    model_config = ConfigDict(frozen=True)

    item_id: str
    selection: SelectionKind
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    display_name: str

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class Cart(BaseModel):
    """
    Immutable cart snapshot.

    Monetary fields keep full precision; rounding to cents only happens
    for display (see CartTotals) and payment amounts.
    """
    model_config = ConfigDict(frozen=True)

    lines: list[CartLine] = Field(default_factory=list)
    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    final_price: Decimal = Decimal("0")
    total_quantity: int = 0
    promo_code: Optional[str] = None
    promo_perk: Optional[str] = None
    desired_ship_date: Optional[date] = None
    gift_message: Optional[str] = None

    def is_empty(self) -> bool:
        return len(self.lines) == 0

    def find_line(self, item_id: str, selection: SelectionKind) -> Optional[int]:
        """Index of the line for item + selection, if present"""
        for index, line in enumerate(self.lines):
            if line.item_id == item_id and line.selection == selection:
                return index
        return None


class CartTotals(BaseModel):
    """Cent-rounded display values"""
    subtotal: str
    tax: str
    discount: str
    final_price: str
    total_quantity: int


class UpdateCartLineRequest(BaseModel):
    """Set the quantity for an item + selection (0 removes the line)"""
    item_id: str
    selection: SelectionKind
    quantity: int = Field(ge=0)


class ApplyPromoRequest(BaseModel):
    code: str = Field(min_length=1)
    payment_intent_id: Optional[str] = None


class ShipDateRequest(BaseModel):
    ship_date: str


class GiftMessageRequest(BaseModel):
    message: str = Field(max_length=500)


class CartResponse(BaseModel):
    """Cart API response"""
    cart_token: str
    cart: Cart
    totals: CartTotals
    message: Optional[str] = None
