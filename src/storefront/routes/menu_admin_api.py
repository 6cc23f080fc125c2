# src/storefront/routes/menu_admin_api.py
from __future__ import annotations

import math
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.storefront.crud.menu import (
    _item_row_to_dict,
    _menu_row_to_dict,
    count_items,
    create_item,
    create_menu,
    delete_item,
    delete_menu,
    get_item,
    get_menu_by_handle,
    get_menu_by_id,
    get_menu_item_tree,
    get_resolved_tree,
    list_menus,
    reorder_items,
    update_item,
    update_menu,
    would_create_cycle,
)
from src.storefront.schemas.menu import (
    MenuCreate,
    MenuItemCreate,
    MenuItemOut,
    MenuItemUpdate,
    MenuOut,
    MenuUpdate,
    ReorderRequest,
)
from src.storefront.utils.auth import get_current_admin
from src.storefront.utils.csrf import csrf_protect
from src.storefront.utils.database import get_db
from src.storefront.utils.menu_cache import invalidate_all_menu_cache
from src.storefront.utils.menu_tree import describe_link, flatten_tree, resolve_url, validate_link_value

router = APIRouter(
    prefix="/api/admin/menus",
    tags=["Admin Menus"],
    dependencies=[Depends(get_current_admin)],
)


async def _menu_or_404(db: AsyncSession, menu_id: str):
    menu = await get_menu_by_id(db, menu_id)
    if not menu:
        raise HTTPException(status_code=404, detail="Menu not found")
    return menu


def _item_out(row) -> Dict[str, Any]:
    d = _item_row_to_dict(row)
    d["link_description"] = describe_link(d)
    d["resolved_url"] = resolve_url(d)
    return MenuItemOut.model_validate(d).model_dump()


async def _check_item_payload(
    db: AsyncSession,
    menu_id: str,
    data: MenuItemCreate | MenuItemUpdate,
    item_id: Optional[str] = None,
) -> None:
    if not validate_link_value(data.link_type, data.link_value):
        raise HTTPException(
            status_code=400,
            detail=f"A link value is required for link type {data.link_type.value}",
        )

    if not data.parent_id:
        return

    if item_id and data.parent_id == item_id:
        raise HTTPException(status_code=400, detail="Menu item cannot be its own parent")

    parent = await get_item(db, menu_id, data.parent_id)
    if not parent:
        raise HTTPException(status_code=400, detail="Invalid parent menu item")

    if item_id and await would_create_cycle(db, menu_id, item_id, data.parent_id):
        raise HTTPException(status_code=400, detail="Menu item cannot be nested inside its own children")


# -----------------------
# Menus
# -----------------------
@router.get("")
async def list_page(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    offset = (page - 1) * limit
    rows, total = await list_menus(db, q=search, location=location, limit=limit, offset=offset)
    return {
        "success": True,
        "menus": [MenuOut.model_validate(r).model_dump() for r in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 1,
        },
    }


@router.post("", dependencies=[Depends(csrf_protect)])
async def create_action(body: MenuCreate, db: AsyncSession = Depends(get_db)):
    if await get_menu_by_handle(db, body.handle):
        raise HTTPException(status_code=400, detail="Menu handle already exists")

    try:
        menu = await create_menu(db, body)
    except IntegrityError:
        raise HTTPException(status_code=400, detail="Menu handle already exists")

    invalidate_all_menu_cache()
    return {
        "success": True,
        "menu": MenuOut.model_validate(_menu_row_to_dict(menu)).model_dump(),
        "message": "Menu created successfully",
    }


@router.get("/{menu_id}")
async def detail_page(menu_id: str, db: AsyncSession = Depends(get_db)):
    menu = await _menu_or_404(db, menu_id)
    tree = await get_menu_item_tree(db, menu_id)
    out = _menu_row_to_dict(menu, await count_items(db, menu_id))
    out["items"] = [MenuItemOut.model_validate(n).model_dump() for n in tree]
    return {"success": True, "menu": out}


@router.put("/{menu_id}", dependencies=[Depends(csrf_protect)])
async def update_action(menu_id: str, body: MenuUpdate, db: AsyncSession = Depends(get_db)):
    existing = await _menu_or_404(db, menu_id)

    if body.handle != existing.handle and await get_menu_by_handle(db, body.handle):
        raise HTTPException(status_code=400, detail="Menu handle already exists")

    try:
        menu = await update_menu(db, menu_id, body)
    except IntegrityError:
        raise HTTPException(status_code=400, detail="Menu handle already exists")
    if not menu:
        raise HTTPException(status_code=404, detail="Menu not found")

    invalidate_all_menu_cache()
    return {
        "success": True,
        "menu": MenuOut.model_validate(_menu_row_to_dict(menu, await count_items(db, menu_id))).model_dump(),
        "message": "Menu updated successfully",
    }


@router.delete("/{menu_id}", dependencies=[Depends(csrf_protect)])
async def delete_action(menu_id: str, db: AsyncSession = Depends(get_db)):
    if not await delete_menu(db, menu_id):
        raise HTTPException(status_code=404, detail="Menu not found")

    invalidate_all_menu_cache()
    return {"success": True, "message": "Menu deleted successfully"}


@router.get("/{menu_id}/preview")
async def preview_page(menu_id: str, db: AsyncSession = Depends(get_db)):
    """What the storefront would render: active items only, URLs resolved."""
    menu = await _menu_or_404(db, menu_id)
    out = _menu_row_to_dict(menu)
    out.pop("item_count", None)
    out["items"] = await get_resolved_tree(db, menu_id, active_only=True)
    return {"success": True, "menu": out}


# -----------------------
# Menu items
# -----------------------
@router.get("/{menu_id}/items")
async def list_items(menu_id: str, db: AsyncSession = Depends(get_db)):
    await _menu_or_404(db, menu_id)
    tree = await get_menu_item_tree(db, menu_id)
    return {"success": True, "data": flatten_tree(tree)}


@router.post("/{menu_id}/items", dependencies=[Depends(csrf_protect)])
async def create_item_action(menu_id: str, body: MenuItemCreate, db: AsyncSession = Depends(get_db)):
    await _menu_or_404(db, menu_id)
    await _check_item_payload(db, menu_id, body)

    try:
        row = await create_item(db, menu_id, body)
    except IntegrityError:
        raise HTTPException(status_code=400, detail="Invalid menu item data")

    invalidate_all_menu_cache()
    return {"success": True, "item": _item_out(row), "message": "Menu item created successfully"}


@router.put("/{menu_id}/items", dependencies=[Depends(csrf_protect)])
async def reorder_action(menu_id: str, body: ReorderRequest, db: AsyncSession = Depends(get_db)):
    await _menu_or_404(db, menu_id)

    try:
        ok, msg = await reorder_items(db, menu_id, [e.model_dump() for e in body.items])
    except IntegrityError:
        raise HTTPException(status_code=400, detail="Failed to reorder menu items")
    if not ok:
        raise HTTPException(status_code=400, detail=msg)

    invalidate_all_menu_cache()
    return {"success": True, "message": msg}


@router.get("/{menu_id}/items/{item_id}")
async def item_detail(menu_id: str, item_id: str, db: AsyncSession = Depends(get_db)):
    row = await get_item(db, menu_id, item_id)
    if not row:
        raise HTTPException(status_code=404, detail="Menu item not found")
    return {"success": True, "item": _item_out(row)}


@router.put("/{menu_id}/items/{item_id}", dependencies=[Depends(csrf_protect)])
async def update_item_action(
    menu_id: str,
    item_id: str,
    body: MenuItemUpdate,
    db: AsyncSession = Depends(get_db),
):
    if not await get_item(db, menu_id, item_id):
        raise HTTPException(status_code=404, detail="Menu item not found")
    await _check_item_payload(db, menu_id, body, item_id=item_id)

    try:
        row = await update_item(db, menu_id, item_id, body)
    except IntegrityError:
        raise HTTPException(status_code=400, detail="Invalid menu item data")
    if not row:
        raise HTTPException(status_code=404, detail="Menu item not found")

    invalidate_all_menu_cache()
    return {"success": True, "item": _item_out(row), "message": "Menu item updated successfully"}


@router.delete("/{menu_id}/items/{item_id}", dependencies=[Depends(csrf_protect)])
async def delete_item_action(menu_id: str, item_id: str, db: AsyncSession = Depends(get_db)):
    removed = await delete_item(db, menu_id, item_id)
    if not removed:
        raise HTTPException(status_code=404, detail="Menu item not found")

    invalidate_all_menu_cache()
    return {"success": True, "message": "Menu item deleted successfully", "deleted": removed}
