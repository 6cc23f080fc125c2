# src/storefront/schemas/menu.py
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.storefront.utils.menu_tree import LinkType

MenuLocation = Literal["HEADER", "FOOTER", "SIDEBAR", "MOBILE"]


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = str(v).strip()
    return v or None


# ---------------------------------------------------------------------------
# Menus
# ---------------------------------------------------------------------------
class MenuBase(BaseModel):
    name: str = Field(..., min_length=1)
    handle: str = Field(..., min_length=1)
    description: Optional[str] = None
    location: MenuLocation = "HEADER"
    is_active: bool = True

    @field_validator("name", "handle", mode="before")
    @classmethod
    def strip_required(cls, v: Optional[str]):
        return (v or "").strip()

    @field_validator("location", mode="before")
    @classmethod
    def upper_location(cls, v: Optional[str]):
        v = (v or "").strip().upper()
        return v or "HEADER"

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, v: Optional[str]):
        return _blank_to_none(v)


class MenuCreate(MenuBase):
    pass


class MenuUpdate(MenuBase):
    pass


class MenuOut(MenuBase):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    item_count: int = 0
    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Menu items
# ---------------------------------------------------------------------------
class MenuItemBase(BaseModel):
    label: str = Field(..., min_length=1)
    url: Optional[str] = None
    link_type: LinkType = LinkType.CUSTOM
    link_value: Optional[str] = None
    target: str = "_self"
    css_class: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0
    parent_id: Optional[str] = None

    @field_validator("label", mode="before")
    @classmethod
    def strip_label(cls, v: Optional[str]):
        return (v or "").strip()

    @field_validator("link_type", mode="before")
    @classmethod
    def upper_link_type(cls, v):
        if isinstance(v, LinkType):
            return v
        v = (v or "").strip().upper()
        return v or LinkType.CUSTOM

    @field_validator("url", "link_value", "css_class", "parent_id", mode="before")
    @classmethod
    def normalize_optional(cls, v: Optional[str]):
        return _blank_to_none(v)

    @field_validator("target", mode="before")
    @classmethod
    def default_target(cls, v: Optional[str]):
        return (v or "").strip() or "_self"


class MenuItemCreate(MenuItemBase):
    pass


class MenuItemUpdate(MenuItemBase):
    pass


class MenuItemOut(BaseModel):
    id: str
    menu_id: Optional[str] = None
    label: str
    url: Optional[str] = None
    # stored as free text; legacy rows may hold values outside LinkType
    link_type: str
    link_value: Optional[str] = None
    target: str = "_self"
    css_class: Optional[str] = None
    is_active: bool = True
    sort_order: int = 0
    parent_id: Optional[str] = None
    link_description: Optional[str] = None
    resolved_url: Optional[str] = None
    children: List["MenuItemOut"] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)


class ReorderEntry(BaseModel):
    id: str
    parent_id: Optional[str] = None

    @field_validator("parent_id", mode="before")
    @classmethod
    def normalize_parent(cls, v: Optional[str]):
        return _blank_to_none(v)


class ReorderRequest(BaseModel):
    items: List[ReorderEntry]


MenuItemOut.model_rebuild()
