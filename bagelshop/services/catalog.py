"""Catalog lookup: item + selection -> unit price and display name"""

from ..core.errors import NotFoundError
from ..database.items import ItemDatabase, item_db
from ..models.catalog import SELECTION_LABELS, CatalogEntry, SelectionKind


class SelectionNotApplicable(Exception):
    """The item exists but is not sold by the requested selection kind"""

    def __init__(self, item_id: str, selection: SelectionKind):
        super().__init__(f"Item {item_id} is not sold as {selection.value}")
        self.item_id = item_id
        self.selection = selection


class CatalogLookup:
    """Resolves catalog prices for cart lines"""

    def __init__(self, items: ItemDatabase):
        self.items = items

    def lookup(self, item_id: str, selection: SelectionKind) -> CatalogEntry:
        """
        Resolve the catalog price of an item for a selection kind.

        Raises:
            NotFoundError: the item does not exist
            SelectionNotApplicable: the item has no price for the selection
        """
        item = self.items.get_item(item_id)
        if not item:
            raise NotFoundError(f"Item {item_id} was not found")

        price = item.price_for(selection)
        if price is None:
            raise SelectionNotApplicable(item_id, selection)

        return CatalogEntry(
            item_id=item.id,
            selection=selection,
            unit_price=price,
            display_name=f"{item.name} {SELECTION_LABELS[selection]}",
        )


# Singleton instance
catalog = CatalogLookup(item_db)
