# src/storefront/routes/menus_api.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.storefront.utils.database import get_db
from src.storefront.utils.menu_cache import get_cached_public_menus

router = APIRouter(prefix="/api/menus", tags=["Public Menus"])


@router.get("")
async def public_menus(
    location: Optional[str] = Query(None),
    handle: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Active menus with their active items as resolved trees."""
    menus = await get_cached_public_menus(db, location=location, handle=handle)

    if handle:
        menu = next((m for m in menus if m["handle"] == handle.strip()), None)
        if not menu:
            raise HTTPException(status_code=404, detail="Menu not found")
        return {"success": True, "menu": menu}

    return {"success": True, "menus": menus}
