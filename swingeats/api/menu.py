"""
SwingEats — Menu API (read-only catalog)
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from swingeats.db.database import get_db
from swingeats.db.storage import Storage
from swingeats.schemas.order import CategoryOut, MenuItemOut, MenuSectionOut, category_slug

router = APIRouter(prefix="/api/menu", tags=["menu"])


async def _categories(storage: Storage) -> list[CategoryOut]:
    names = await storage.get_categories()
    return [CategoryOut(id=i, name=name, slug=category_slug(name)) for i, name in enumerate(names, start=1)]


@router.get("", response_model=list[MenuSectionOut])
async def get_menu(db: AsyncSession = Depends(get_db)):
    """Active menu grouped by category."""
    storage = Storage(db)
    items = await storage.get_menu_items()
    return [
        MenuSectionOut(
            category=category,
            items=[MenuItemOut.from_row(i) for i in items if i.category == category.name],
        )
        for category in await _categories(storage)
    ]


@router.get("/{slug}", response_model=list[MenuItemOut])
async def get_menu_category(slug: str, db: AsyncSession = Depends(get_db)):
    storage = Storage(db)
    category = next((c for c in await _categories(storage) if c.slug == slug), None)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found.")
    return [MenuItemOut.from_row(i) for i in await storage.get_menu_items_by_category(category.name)]
