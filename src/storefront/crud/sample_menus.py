# src/storefront/crud/sample_menus.py
"""Demo navigation for a fresh database (``python run.py seed-menus``)."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.storefront.crud.menu import create_item, create_menu, delete_menu, get_menu_by_handle
from src.storefront.schemas.menu import MenuCreate, MenuItemCreate

logger = logging.getLogger(__name__)


def _custom(label: str, url: str) -> Dict[str, Any]:
    return {"label": label, "link_type": "CUSTOM", "url": url}


def _category(label: str, slug: str, children: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    return {"label": label, "link_type": "CATEGORY", "link_value": slug, "children": children or []}


SAMPLE_MENUS: List[Dict[str, Any]] = [
    {
        "name": "Main Menu",
        "handle": "main-menu",
        "description": "Primary navigation menu for the header",
        "location": "HEADER",
        "items": [
            {"label": "Home", "link_type": "HOME"},
            _category("Products", "all-products"),
            _custom("PC Builder", "/build"),
            _custom("Shops", "/shops"),
            {"label": "About", "link_type": "ABOUT"},
            {"label": "Contact", "link_type": "CONTACT"},
        ],
    },
    {
        "name": "Footer Menu",
        "handle": "footer-menu",
        "description": "Navigation links for the footer",
        "location": "FOOTER",
        "items": [
            _custom("Products", "/products"),
            _custom("Categories", "/categories"),
            _custom("PC Builder", "/build"),
            _custom("Shops", "/shops"),
        ],
    },
    {
        "name": "Mobile Menu",
        "handle": "mobile-menu",
        "description": "Navigation menu for mobile devices",
        "location": "MOBILE",
        "items": [
            {"label": "Home", "link_type": "HOME"},
            _custom("Products", "/products"),
            _custom("Categories", "/categories"),
            _custom("PC Builder", "/build"),
            _custom("Shops", "/shops"),
            {"label": "Contact", "link_type": "CONTACT"},
        ],
    },
    {
        "name": "Categories Menu",
        "handle": "categories-menu",
        "description": "Hierarchical menu for product categories",
        "location": "SIDEBAR",
        "items": [
            _category("Components", "components", [
                _category("CPUs", "cpus"),
                _category("GPUs", "gpus"),
                _category("Motherboards", "motherboards"),
            ]),
            _category("Peripherals", "peripherals", [
                _category("Keyboards", "keyboards"),
                _category("Mice", "mice"),
                _category("Monitors", "monitors"),
            ]),
        ],
    },
]


async def _create_items(
    db: AsyncSession,
    menu_id: str,
    items: List[Dict[str, Any]],
    parent_id: Optional[str] = None,
) -> int:
    created = 0
    for index, spec in enumerate(items):
        fields = {k: v for k, v in spec.items() if k != "children"}
        row = await create_item(
            db,
            menu_id,
            MenuItemCreate(**fields, sort_order=index, parent_id=parent_id),
        )
        created += 1
        created += await _create_items(db, menu_id, spec.get("children") or [], parent_id=row.id)
    return created


async def seed_sample_menus(db: AsyncSession) -> List[str]:
    """Create the demo menus whose handle is not taken yet. Returns created handles."""
    created: List[str] = []
    for spec in SAMPLE_MENUS:
        if await get_menu_by_handle(db, spec["handle"]):
            logger.info("Menu '%s' already exists, skipping", spec["handle"])
            continue

        menu = await create_menu(db, MenuCreate(**{k: v for k, v in spec.items() if k != "items"}))
        menu_id, handle = menu.id, menu.handle
        try:
            n = await _create_items(db, menu_id, spec["items"])
        except (SQLAlchemyError, ValidationError):
            # a seeded menu is all-or-nothing
            await db.rollback()
            await delete_menu(db, menu_id)
            logger.error("Seeding menu '%s' failed, removed it", handle)
            raise
        logger.info("Created menu '%s' with %d item(s)", handle, n)
        created.append(handle)
    return created
