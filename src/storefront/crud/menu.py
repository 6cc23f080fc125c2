# src/storefront/crud/menu.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.storefront.models.menu import Menu, MenuItem
from src.storefront.schemas.menu import MenuCreate, MenuItemCreate, MenuItemUpdate, MenuUpdate
from src.storefront.utils.menu_tree import (
    build_tree,
    describe_link,
    find_cycles,
    prune_inactive,
    reorder_positions,
    resolve_tree,
)


def _item_row_to_dict(m: MenuItem) -> Dict[str, Any]:
    return {
        "id": m.id,
        "menu_id": m.menu_id,
        "label": (m.label or "").strip(),
        "url": m.url,
        "link_type": (m.link_type or "CUSTOM").strip(),
        "link_value": m.link_value,
        "target": (m.target or "_self").strip(),
        "css_class": m.css_class,
        "is_active": bool(m.is_active),
        "sort_order": int(m.sort_order or 0),
        "parent_id": m.parent_id,
    }


def _menu_row_to_dict(m: Menu, item_count: int = 0) -> Dict[str, Any]:
    return {
        "id": m.id,
        "name": m.name,
        "handle": m.handle,
        "description": m.description,
        "location": m.location,
        "is_active": bool(m.is_active),
        "created_at": m.created_at,
        "updated_at": m.updated_at,
        "item_count": item_count,
    }


def _with_descriptions(nodes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    for n in nodes:
        n["link_description"] = describe_link(n)
        _with_descriptions(n.get("children") or [])
    return nodes


# ---------------------------------------------------------------------------
# Menus
# ---------------------------------------------------------------------------
async def get_menu_by_id(db: AsyncSession, menu_id: str) -> Optional[Menu]:
    res = await db.execute(select(Menu).where(Menu.id == menu_id))
    return res.scalar_one_or_none()


async def get_menu_by_handle(db: AsyncSession, handle: str) -> Optional[Menu]:
    res = await db.execute(select(Menu).where(Menu.handle == handle))
    return res.scalar_one_or_none()


async def count_items(db: AsyncSession, menu_id: str) -> int:
    res = await db.execute(select(func.count()).select_from(MenuItem).where(MenuItem.menu_id == menu_id))
    return int(res.scalar() or 0)


async def list_menus(
    db: AsyncSession,
    q: Optional[str] = None,
    location: Optional[str] = None,
    limit: int = 10,
    offset: int = 0,
) -> Tuple[List[Dict[str, Any]], int]:
    where = []
    if q:
        like = f"%{q.strip()}%"
        where.append(Menu.name.ilike(like) | Menu.handle.ilike(like))
    if location:
        where.append(Menu.location == location.strip().upper())

    count_res = await db.execute(select(func.count()).select_from(Menu).where(*where))
    total = int(count_res.scalar() or 0)

    item_count = (
        select(func.count(MenuItem.id))
        .where(MenuItem.menu_id == Menu.id)
        .correlate(Menu)
        .scalar_subquery()
    )
    stmt = (
        select(Menu, item_count)
        .where(*where)
        .order_by(Menu.created_at.desc(), Menu.handle)
        .limit(limit)
        .offset(offset)
    )
    res = await db.execute(stmt)
    rows = [_menu_row_to_dict(m, int(n or 0)) for m, n in res.all()]
    return rows, total


async def create_menu(db: AsyncSession, data: MenuCreate) -> Menu:
    row = Menu(
        name=data.name,
        handle=data.handle,
        description=data.description,
        location=data.location,
        is_active=data.is_active,
    )
    db.add(row)
    try:
        await db.commit()
        await db.refresh(row)
    except IntegrityError:
        await db.rollback()
        raise
    return row


async def update_menu(db: AsyncSession, menu_id: str, data: MenuUpdate) -> Optional[Menu]:
    row = await get_menu_by_id(db, menu_id)
    if not row:
        return None

    row.name = data.name
    row.handle = data.handle
    row.description = data.description
    row.location = data.location
    row.is_active = data.is_active

    try:
        await db.commit()
        await db.refresh(row)
    except IntegrityError:
        await db.rollback()
        raise
    return row


async def delete_menu(db: AsyncSession, menu_id: str) -> bool:
    row = await get_menu_by_id(db, menu_id)
    if not row:
        return False
    # explicit: SQLite does not enforce ON DELETE CASCADE unless asked to
    await db.execute(delete(MenuItem).where(MenuItem.menu_id == menu_id))
    await db.execute(delete(Menu).where(Menu.id == menu_id))
    await db.commit()
    return True


# ---------------------------------------------------------------------------
# Menu items
# ---------------------------------------------------------------------------
async def list_item_dicts(db: AsyncSession, menu_id: str, active_only: bool = False) -> List[Dict[str, Any]]:
    stmt = (
        select(MenuItem)
        .where(MenuItem.menu_id == menu_id)
        .order_by(MenuItem.sort_order.asc(), MenuItem.created_at.asc())
    )
    res = await db.execute(stmt)
    flat = [_item_row_to_dict(m) for m in res.scalars().all()]
    return prune_inactive(flat) if active_only else flat


async def get_menu_item_tree(db: AsyncSession, menu_id: str, active_only: bool = False) -> List[Dict[str, Any]]:
    """Built tree with link descriptions, for the admin editor."""
    flat = await list_item_dicts(db, menu_id, active_only=active_only)
    return _with_descriptions(build_tree(flat))


async def get_resolved_tree(db: AsyncSession, menu_id: str, active_only: bool = True) -> List[Dict[str, Any]]:
    flat = await list_item_dicts(db, menu_id, active_only=active_only)
    return resolve_tree(build_tree(flat))


async def get_public_menus(
    db: AsyncSession,
    location: Optional[str] = None,
    handle: Optional[str] = None,
) -> List[Dict[str, Any]]:
    stmt = select(Menu).where(Menu.is_active.is_(True))
    if location:
        stmt = stmt.where(Menu.location == location.strip().upper())
    if handle:
        stmt = stmt.where(Menu.handle == handle.strip())
    stmt = stmt.order_by(Menu.created_at.asc(), Menu.handle)

    res = await db.execute(stmt)
    menus: List[Dict[str, Any]] = []
    for m in res.scalars().all():
        d = _menu_row_to_dict(m)
        d.pop("item_count", None)
        d["items"] = await get_resolved_tree(db, m.id, active_only=True)
        menus.append(d)
    return menus


async def get_item(db: AsyncSession, menu_id: str, item_id: str) -> Optional[MenuItem]:
    res = await db.execute(select(MenuItem).where(MenuItem.id == item_id, MenuItem.menu_id == menu_id))
    return res.scalar_one_or_none()


async def would_create_cycle(db: AsyncSession, menu_id: str, item_id: str, parent_id: Optional[str]) -> bool:
    """True when re-parenting item_id under parent_id loops the parent chain."""
    if not parent_id:
        return False
    if parent_id == item_id:
        return True
    flat = await list_item_dicts(db, menu_id)
    for row in flat:
        if row["id"] == item_id:
            row["parent_id"] = parent_id
    return item_id in find_cycles(flat)


async def create_item(db: AsyncSession, menu_id: str, data: MenuItemCreate) -> MenuItem:
    row = MenuItem(menu_id=menu_id, **data.model_dump())
    row.link_type = data.link_type.value
    db.add(row)
    try:
        await db.commit()
        await db.refresh(row)
    except IntegrityError:
        await db.rollback()
        raise
    return row


async def update_item(db: AsyncSession, menu_id: str, item_id: str, data: MenuItemUpdate) -> Optional[MenuItem]:
    row = await get_item(db, menu_id, item_id)
    if not row:
        return None

    for key, value in data.model_dump().items():
        setattr(row, key, value)
    row.link_type = data.link_type.value

    try:
        await db.commit()
        await db.refresh(row)
    except IntegrityError:
        await db.rollback()
        raise
    return row


async def delete_item(db: AsyncSession, menu_id: str, item_id: str) -> int:
    """Deletes the item and its whole subtree. Returns the number of rows removed."""
    flat = await list_item_dicts(db, menu_id)
    if not any(r["id"] == item_id for r in flat):
        return 0

    subtree = _subtree_ids(flat, item_id)

    await db.execute(delete(MenuItem).where(MenuItem.id.in_(subtree)))
    await db.commit()
    return len(subtree)


def _subtree_ids(flat: Sequence[Dict[str, Any]], root_id: str) -> List[str]:
    children: Dict[Optional[str], List[str]] = {}
    for r in flat:
        children.setdefault(r["parent_id"], []).append(r["id"])

    out: List[str] = []
    stack = [root_id]
    while stack:
        cur = stack.pop()
        if cur in out:
            continue
        out.append(cur)
        stack.extend(children.get(cur, []))
    return out


async def reorder_items(db: AsyncSession, menu_id: str, entries: Sequence[Dict[str, Any]]) -> Tuple[bool, str]:
    """
    Persist an editor reorder in one transaction.

    Every id and parent id must belong to the menu and the resulting parent
    graph must be acyclic.
    """
    known = {r["id"]: r for r in await list_item_dicts(db, menu_id)}
    rows = reorder_positions(entries)

    for iid, pid, _ in rows:
        if iid not in known:
            return False, f"Menu item '{iid}' does not belong to this menu"
        if pid is not None and pid not in known:
            return False, f"Invalid parent menu item '{pid}'"

    proposed = dict(known)
    for iid, pid, _ in rows:
        proposed[iid] = {**known[iid], "parent_id": pid}
    cyclic = find_cycles(proposed.values())
    if cyclic:
        return False, "Menu items cannot be nested inside themselves"

    try:
        for iid, pid, index in rows:
            await db.execute(
                update(MenuItem)
                .where(MenuItem.id == iid, MenuItem.menu_id == menu_id)
                .values(sort_order=index, parent_id=pid)
            )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise
    return True, "Menu items reordered successfully"
