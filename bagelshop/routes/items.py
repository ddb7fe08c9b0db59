"""Item catalog API routes"""

from typing import Optional

from fastapi import APIRouter

from ..core.errors import NotFoundError
from ..database.items import item_db
from ..models.catalog import Item, ItemCategory, ItemListResponse

router = APIRouter(prefix="/api/items", tags=["Items"])


@router.get("", response_model=ItemListResponse)
async def list_items(category: Optional[ItemCategory] = None):
    """List catalog items, optionally by category"""
    items = item_db.list_items(category=category)
    return ItemListResponse(items=items, total=len(items))


@router.get("/{item_id}", response_model=Item)
async def get_item(item_id: str):
    item = item_db.get_item(item_id)
    if not item:
        raise NotFoundError("Item not found")
    return item
