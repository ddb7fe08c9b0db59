"""Catalog models for the bagel shop"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ItemCategory(str, Enum):
    BAGEL = "bagel"
    SPREAD = "spread"
    PASTRY = "pastry"


class SelectionKind(str, Enum):
    """Packaging unit an item is priced by"""
    TWO_PACK = "two"
    SIX_PACK = "six"
    DOZEN = "dozen"
    HALF_POUND = "half_pound"
    ONE_POUND = "one_pound"


SELECTION_LABELS: dict[SelectionKind, str] = {
    SelectionKind.TWO_PACK: "Two Pack(s)",
    SelectionKind.SIX_PACK: "Six Pack(s)",
    SelectionKind.DOZEN: "Dozen(s)",
    SelectionKind.HALF_POUND: "1/2 LB",
    SelectionKind.ONE_POUND: "One Pound",
}


class Item(BaseModel):
    """Item in the catalog, priced per selection kind"""
    id: str
    name: str
    category: ItemCategory
    prices: dict[SelectionKind, Decimal]

    def price_for(self, selection: SelectionKind) -> Optional[Decimal]:
        return self.prices.get(selection)


class CatalogEntry(BaseModel):
    """Resolved catalog price for one item + selection"""
    item_id: str
    selection: SelectionKind
    unit_price: Decimal = Field(ge=0)
    display_name: str


class ItemListResponse(BaseModel):
    items: list[Item]
    total: int
