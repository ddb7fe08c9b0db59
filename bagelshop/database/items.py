"""Item catalog storage"""

from decimal import Decimal
from typing import Optional

from ..models.catalog import Item, ItemCategory, SelectionKind


def _bagel(item_id: str, name: str, two: str, six: str, dozen: str) -> Item:
    return Item(
        id=item_id,
        name=name,
        category=ItemCategory.BAGEL,
        prices={
            SelectionKind.TWO_PACK: Decimal(two),
            SelectionKind.SIX_PACK: Decimal(six),
            SelectionKind.DOZEN: Decimal(dozen),
        },
    )


SEED_ITEMS: list[Item] = [
    _bagel("bagel-plain", "Plain Bagel", "8.95", "24.95", "44.95"),
    _bagel("bagel-everything", "Everything Bagel", "8.95", "24.95", "44.95"),
    _bagel("bagel-sesame", "Sesame Bagel", "8.95", "24.95", "44.95"),
    _bagel("bagel-cinnamon-raisin", "Cinnamon Raisin Bagel", "9.95", "26.95", "47.95"),
    Item(
        id="spread-plain",
        name="Plain Cream Cheese",
        category=ItemCategory.SPREAD,
        prices={
            SelectionKind.HALF_POUND: Decimal("7.95"),
            SelectionKind.ONE_POUND: Decimal("13.95"),
        },
    ),
    Item(
        id="spread-scallion",
        name="Scallion Cream Cheese",
        category=ItemCategory.SPREAD,
        prices={SelectionKind.ONE_POUND: Decimal("15.95")},
    ),
    Item(
        id="pastry-rugelach",
        name="Chocolate Rugelach",
        category=ItemCategory.PASTRY,
        prices={SelectionKind.SIX_PACK: Decimal("19.95")},
    ),
]


class ItemDatabase:
    """In-memory item storage"""

    def __init__(self, items: Optional[list[Item]] = None):
        self.items: dict[str, Item] = {}
        self._seed = items if items is not None else SEED_ITEMS
        self.reset()

    def reset(self) -> None:
        """Restore the seeded catalog"""
        self.items = {item.id: item for item in self._seed}

    def get_item(self, item_id: str) -> Optional[Item]:
        """Get an item by ID"""
        return self.items.get(item_id)

    def list_items(self, category: Optional[ItemCategory] = None) -> list[Item]:
        """List items, optionally filtered by category"""
        items = list(self.items.values())
        if category:
            items = [item for item in items if item.category == category]
        return sorted(items, key=lambda item: item.name)

    def upsert_item(self, item: Item) -> Item:
        self.items[item.id] = item
        return item


# Singleton instance
item_db = ItemDatabase()
