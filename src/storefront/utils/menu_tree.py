# src/storefront/utils/menu_tree.py
"""
Menu tree engine.

Pure helpers over a snapshot of menu item records (plain dicts with the keys
produced by ``crud.menu._item_row_to_dict``):

    id, label, url, link_type, link_value, target, css_class,
    is_active, sort_order, parent_id

Nothing here touches the database or mutates the records it is given.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple


class LinkType(str, Enum):
    CUSTOM = "CUSTOM"
    PAGE = "PAGE"
    CATEGORY = "CATEGORY"
    PRODUCT = "PRODUCT"
    SHOP = "SHOP"
    BRAND = "BRAND"
    HOME = "HOME"
    CONTACT = "CONTACT"
    ABOUT = "ABOUT"


STATIC_URLS: Dict[LinkType, str] = {
    LinkType.HOME: "/",
    LinkType.CONTACT: "/contact",
    LinkType.ABOUT: "/about",
}

STATIC_LABELS: Dict[LinkType, str] = {
    LinkType.HOME: "Home Page",
    LinkType.CONTACT: "Contact Page",
    LinkType.ABOUT: "About Page",
}

# link_type -> (url prefix, fallback when link_value is missing)
VALUE_ROUTES: Dict[LinkType, Tuple[str, str]] = {
    LinkType.CATEGORY: ("/categories/", "#"),
    LinkType.PRODUCT: ("/products/", "#"),
    LinkType.SHOP: ("/shop/", "/shops"),   # a shop link without a slug still lands on the listing
    LinkType.BRAND: ("/brands/", "#"),
    LinkType.PAGE: ("/pages/", "#"),
}

VALUE_LABELS: Dict[LinkType, str] = {
    LinkType.CATEGORY: "Category",
    LinkType.PRODUCT: "Product",
    LinkType.SHOP: "Shop",
    LinkType.BRAND: "Brand",
    LinkType.PAGE: "Page",
}

NOT_SPECIFIED = "Not specified"


def _link_type(raw: Any) -> Optional[LinkType]:
    """Map a stored link type onto the enum; None for anything unrecognized."""
    if isinstance(raw, LinkType):
        return raw
    try:
        return LinkType(raw)
    except ValueError:
        return None


def _norm_id(x: Any) -> Optional[str]:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


# ---------------------------------------------------------------------------
# URL resolution / description / validation
# ---------------------------------------------------------------------------
def resolve_url(item: Mapping[str, Any]) -> str:
    lt = _link_type(item.get("link_type"))

    if lt in STATIC_URLS:
        return STATIC_URLS[lt]

    if lt in VALUE_ROUTES:
        prefix, fallback = VALUE_ROUTES[lt]
        value = item.get("link_value")
        return f"{prefix}{value}" if value else fallback

    # CUSTOM and legacy/unknown link types
    return item.get("url") or "#"


def validate_link_value(link_type: Any, link_value: Optional[str]) -> bool:
    """
    Pre-save guard for admin input.

    Static pages and CUSTOM links need no link_value (CUSTOM keeps its target
    in ``url``). Value-based types need a non-blank value. Anything outside
    the enumeration is rejected.
    """
    lt = _link_type(link_type)
    if lt is None:
        return False
    if lt in STATIC_URLS or lt is LinkType.CUSTOM:
        return True
    return bool(link_value) and len(link_value.strip()) > 0


def describe_link(item: Mapping[str, Any]) -> str:
    lt = _link_type(item.get("link_type"))

    if lt in STATIC_LABELS:
        return STATIC_LABELS[lt]
    if lt in VALUE_LABELS:
        return f"{VALUE_LABELS[lt]}: {item.get('link_value') or NOT_SPECIFIED}"
    if lt is LinkType.CUSTOM:
        return f"Custom URL: {item.get('url') or NOT_SPECIFIED}"
    return "Unknown link type"


# ---------------------------------------------------------------------------
# Tree building
# ---------------------------------------------------------------------------
def _sort_key(node: Mapping[str, Any]) -> int:
    try:
        return int(node.get("sort_order") or 0)
    except (TypeError, ValueError):
        return 0


def _sort_nodes(nodes: List[Dict[str, Any]]) -> None:
    # list.sort is stable, so equal sort_order keeps input order
    stack = [nodes]
    while stack:
        level = stack.pop()
        level.sort(key=_sort_key)
        for n in level:
            if n["children"]:
                stack.append(n["children"])


def _loop_head(
    node: Dict[str, Any],
    parent_of: Mapping[int, Dict[str, Any]],
    position: Mapping[int, int],
) -> Dict[str, Any]:
    """Earliest (input order) member of the parent loop above an unreached node."""
    walked: List[Dict[str, Any]] = []
    index: Dict[int, int] = {}
    cur = node
    # unreached nodes always have a parent, so the walk ends on a loop
    while id(cur) not in index:
        index[id(cur)] = len(walked)
        walked.append(cur)
        cur = parent_of[id(cur)]
    loop = walked[index[id(cur)]:]
    return min(loop, key=lambda n: position[id(n)])


def build_tree(items: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """
    Builds an ordered tree from flat menu items.

    - every input item shows up exactly once
    - dangling parent_id => promoted to root
    - parent cycles are broken: for each unreached item, its parent chain is
      followed up to the loop, the loop member earliest in input order is
      promoted to root, and the scan repeats. Items hanging below a loop keep
      their parent.
    """
    nodes: List[Dict[str, Any]] = []
    by_id: Dict[str, Dict[str, Any]] = {}
    seen: Set[str] = set()

    for item in items:
        node = dict(item)
        node["children"] = []
        nid = _norm_id(node.get("id"))
        if nid is not None and nid in seen:
            continue
        if nid is not None:
            seen.add(nid)
            by_id[nid] = node
        nodes.append(node)

    roots: List[Dict[str, Any]] = []
    parent_of: Dict[int, Dict[str, Any]] = {}

    for node in nodes:
        pid = _norm_id(node.get("parent_id"))
        parent = by_id.get(pid) if pid is not None else None
        if parent is None:
            roots.append(node)
            continue
        parent["children"].append(node)
        parent_of[id(node)] = parent

    reached: Set[int] = set()

    def _mark(start: Dict[str, Any]) -> None:
        stack = [start]
        while stack:
            n = stack.pop()
            if id(n) in reached:
                continue
            reached.add(id(n))
            stack.extend(n["children"])

    for r in roots:
        _mark(r)

    if len(reached) < len(nodes):
        position = {id(n): i for i, n in enumerate(nodes)}
        for node in nodes:
            if id(node) in reached:
                continue
            head = _loop_head(node, parent_of, position)
            parent = parent_of.pop(id(head))
            parent["children"] = [c for c in parent["children"] if c is not head]
            roots.append(head)
            _mark(head)

    _sort_nodes(roots)
    return roots


def flatten_tree(roots: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Pre-order walk of a built tree; emits copies without ``children``."""
    result: List[Dict[str, Any]] = []

    def _walk(level: Iterable[Mapping[str, Any]]) -> None:
        for node in level:
            flat = dict(node)
            flat.pop("children", None)
            result.append(flat)
            children = node.get("children") or []
            if children:
                _walk(children)

    _walk(roots)
    return result


def resolve_tree(roots: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Copy of a built tree with ``resolved_url`` on every node."""
    out: List[Dict[str, Any]] = []
    for node in roots:
        copy = dict(node)
        copy["resolved_url"] = resolve_url(node)
        copy["children"] = resolve_tree(node.get("children") or [])
        out.append(copy)
    return out


def prune_inactive(items: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """
    Keep only items that are active and whose parent chain (inside this
    snapshot) is active too. A disabled parent hides its whole subtree.
    Later records reusing an id are dropped, as build_tree does.
    """
    rows = [dict(i) for i in items]
    by_id: Dict[str, Dict[str, Any]] = {}
    for r in rows:
        rid = _norm_id(r.get("id"))
        if rid is not None:
            by_id.setdefault(rid, r)
    visible: Dict[str, bool] = {}

    def _visible(row: Mapping[str, Any]) -> bool:
        chain: List[str] = []
        cur: Optional[Mapping[str, Any]] = row
        ok = True
        while cur is not None:
            cid = _norm_id(cur.get("id"))
            if cid is not None and cid in visible:
                ok = visible[cid]
                break
            if cid is not None and cid in chain:
                break  # cycle; decided by the flags already walked
            if not cur.get("is_active", True):
                ok = False
                if cid is not None:
                    chain.append(cid)
                break
            if cid is not None:
                chain.append(cid)
            pid = _norm_id(cur.get("parent_id"))
            cur = by_id.get(pid) if pid is not None else None
        for cid in chain:
            visible[cid] = ok
        return ok

    kept: List[Dict[str, Any]] = []
    for r in rows:
        rid = _norm_id(r.get("id"))
        if rid is not None and by_id[rid] is not r:
            continue
        if _visible(r):
            kept.append(r)
    return kept


def find_cycles(items: Iterable[Mapping[str, Any]]) -> List[str]:
    """Ids (input order) of items whose parent chain loops back on itself."""
    parent: Dict[str, Optional[str]] = {}
    order: List[str] = []
    for item in items:
        iid = _norm_id(item.get("id"))
        if iid is None or iid in parent:
            continue
        parent[iid] = _norm_id(item.get("parent_id"))
        order.append(iid)

    cyclic: Set[str] = set()
    done: Set[str] = set()
    for start in order:
        if start in done:
            continue
        path: List[str] = []
        pos: Dict[str, int] = {}
        cur: Optional[str] = start
        while cur is not None and cur in parent and cur not in done:
            if cur in pos:
                cyclic.update(path[pos[cur]:])
                break
            pos[cur] = len(path)
            path.append(cur)
            cur = parent[cur]
        done.update(path)

    return [i for i in order if i in cyclic]


def reorder_positions(entries: Iterable[Mapping[str, Any]]) -> List[Tuple[str, Optional[str], int]]:
    """
    Admin reorder payload -> rows to persist.

    ``entries`` is the flattened tree as the editor submits it; position in
    the sequence becomes the new sort_order.
    """
    rows: List[Tuple[str, Optional[str], int]] = []
    for index, entry in enumerate(entries):
        iid = _norm_id(entry.get("id"))
        if iid is None:
            continue
        rows.append((iid, _norm_id(entry.get("parent_id")), index))
    return rows
