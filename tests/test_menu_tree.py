"""Tests for the menu tree engine."""

from typing import Any, Dict, Optional

import pytest

from src.storefront.utils.menu_tree import (
    LinkType,
    build_tree,
    describe_link,
    find_cycles,
    flatten_tree,
    prune_inactive,
    reorder_positions,
    resolve_tree,
    resolve_url,
    validate_link_value,
)


def _item(
    item_id: str,
    sort_order: int = 0,
    parent_id: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    base = {
        "id": item_id,
        "label": item_id.title(),
        "url": None,
        "link_type": "CUSTOM",
        "link_value": None,
        "target": "_self",
        "css_class": None,
        "is_active": True,
        "sort_order": sort_order,
        "parent_id": parent_id,
    }
    base.update(extra)
    return base


def _ids(nodes) -> list:
    return [n["id"] for n in nodes]


class TestBuildTree:
    """Tests for build_tree()."""

    def test__empty_input__returns_empty_list(self) -> None:
        """Empty snapshot gives an empty tree."""
        assert build_tree([]) == []

    def test__nested_items__land_under_parents(self) -> None:
        """Children land under their parent, roots stay top level."""
        items = [
            _item("components", 0),
            _item("cpus", 0, "components"),
            _item("gpus", 1, "components"),
            _item("peripherals", 1),
        ]

        tree = build_tree(items)

        assert _ids(tree) == ["components", "peripherals"]
        assert _ids(tree[0]["children"]) == ["cpus", "gpus"]
        assert tree[1]["children"] == []

    def test__every_level__sorted_by_sort_order(self) -> None:
        """Roots and children are ordered by ascending sort_order."""
        items = [
            _item("b", 2),
            _item("a", 1),
            _item("b2", 5, "b"),
            _item("b1", 3, "b"),
        ]

        tree = build_tree(items)

        assert _ids(tree) == ["a", "b"]
        assert _ids(tree[1]["children"]) == ["b1", "b2"]

    def test__equal_sort_order__keeps_input_order(self) -> None:
        """Ties are broken by original input order."""
        items = [_item("z", 0), _item("m", 0), _item("a", 0), _item("first", -1)]

        tree = build_tree(items)

        assert _ids(tree) == ["first", "z", "m", "a"]

    def test__dangling_parent__becomes_root(self) -> None:
        """A parent_id that is not in the snapshot degrades to top level."""
        items = [_item("home", 0), _item("orphan", 1, "missing-parent")]

        tree = build_tree(items)

        assert _ids(tree) == ["home", "orphan"]
        assert tree[1]["parent_id"] == "missing-parent"

    def test__flat_input__yields_sorted_roots(self) -> None:
        """All top-level items come back sorted with empty children."""
        items = [_item("c", 3), _item("a", 1), _item("b", 2)]

        tree = build_tree(items)

        assert _ids(tree) == ["a", "b", "c"]
        assert all(n["children"] == [] for n in tree)

    def test__input_records__not_mutated(self) -> None:
        """Input records are copied, never modified."""
        items = [_item("root", 0), _item("child", 0, "root")]
        before = [dict(i) for i in items]

        build_tree(items)

        assert items == before
        assert "children" not in items[0]

    def test__unknown_link_type__passes_through(self) -> None:
        """Malformed link types are not rejected at build time."""
        tree = build_tree([_item("legacy", 0, link_type="MEGAMENU")])

        assert tree[0]["link_type"] == "MEGAMENU"

    def test__two_item_cycle__keeps_both_items(self) -> None:
        """A parent loop is broken instead of dropping the items."""
        items = [_item("a", 0, "b"), _item("b", 1, "a"), _item("home", 2)]

        tree = build_tree(items)

        assert _ids(tree) == ["a", "home"]
        assert _ids(tree[0]["children"]) == ["b"]
        assert len(flatten_tree(tree)) == 3

    def test__self_parented_item__becomes_root(self) -> None:
        """An item pointing at itself surfaces as a root with no children."""
        tree = build_tree([_item("loop", 0, "loop")])

        assert _ids(tree) == ["loop"]
        assert tree[0]["children"] == []

    def test__cycle_below_root__is_broken(self) -> None:
        """Items stranded in a loop are recovered and the call terminates."""
        items = [
            _item("root", 0),
            _item("x", 0, "z"),
            _item("y", 0, "x"),
            _item("z", 0, "y"),
        ]

        tree = build_tree(items)

        assert sorted(_ids(flatten_tree(tree))) == ["root", "x", "y", "z"]
        assert _ids(tree) == ["root", "x"]

    def test__duplicate_ids__keep_first_record(self) -> None:
        """Later records reusing an id are ignored."""
        tree = build_tree([_item("dup", 0, label="First"), _item("dup", 1, label="Second")])

        assert len(tree) == 1
        assert tree[0]["label"] == "First"

    def test__child_of_cycle_listed_first__keeps_its_parent(self) -> None:
        """Only loop members are promoted; items below a loop stay attached."""
        items = [_item("c", 0, "a"), _item("a", 1, "b"), _item("b", 2, "a")]

        tree = build_tree(items)

        assert _ids(tree) == ["a"]
        assert _ids(tree[0]["children"]) == ["c", "b"]
        assert tree[0]["children"][1]["children"] == []

    def test__built_tree__matches_parent_ids_outside_loops(self) -> None:
        """Every non-root node sits under the parent its parent_id names."""
        items = [
            _item("leaf", 0, "mid"),
            _item("mid", 0, "x"),
            _item("x", 1, "y"),
            _item("y", 2, "x"),
            _item("home", 3),
        ]

        tree = build_tree(items)

        def _check(nodes, parent_id):
            for n in nodes:
                if parent_id is not None:
                    assert n["parent_id"] == parent_id
                _check(n["children"], n["id"])

        _check(tree, None)
        assert _ids(tree) == ["x", "home"]
        assert sorted(_ids(flatten_tree(tree))) == ["home", "leaf", "mid", "x", "y"]


class TestFlattenTree:
    """Tests for flatten_tree()."""

    def test__empty_tree__returns_empty_list(self) -> None:
        assert flatten_tree([]) == []

    def test__nested_tree__emits_pre_order(self) -> None:
        """Each parent comes right before its subtree."""
        items = [
            _item("b", 1),
            _item("a", 0),
            _item("a2", 1, "a"),
            _item("a1", 0, "a"),
            _item("b1", 0, "b"),
        ]

        flat = flatten_tree(build_tree(items))

        assert _ids(flat) == ["a", "a1", "a2", "b", "b1"]

    def test__flat_copies__drop_children_keep_parent_id(self) -> None:
        """Flat copies drop children but keep the original parent_id."""
        items = [_item("root", 0), _item("child", 0, "root"), _item("grandchild", 0, "child")]

        flat = flatten_tree(build_tree(items))

        assert all("children" not in n for n in flat)
        assert [n["parent_id"] for n in flat] == [None, "root", "child"]

    def test__round_trip__contains_every_item_once(self) -> None:
        """Build then flatten returns each input item exactly once."""
        items = [
            _item("a", 2),
            _item("b", 1),
            _item("b1", 1, "b"),
            _item("b0", 0, "b"),
            _item("a0", 0, "a"),
            _item("b00", 0, "b0"),
        ]

        flat = flatten_tree(build_tree(items))

        assert sorted(_ids(flat)) == sorted(_ids(items))
        assert _ids(flat) == ["b", "b0", "b00", "b1", "a", "a0"]

    def test__tree__not_mutated(self) -> None:
        tree = build_tree([_item("root", 0), _item("child", 0, "root")])

        flatten_tree(tree)

        assert _ids(tree[0]["children"]) == ["child"]


class TestResolveUrl:
    """Tests for resolve_url()."""

    @pytest.mark.parametrize(
        ("link_type", "link_value", "url", "expected"),
        [
            ("HOME", None, None, "/"),
            ("CONTACT", None, None, "/contact"),
            ("ABOUT", "ignored", None, "/about"),
            ("CATEGORY", "gpus", None, "/categories/gpus"),
            ("CATEGORY", None, None, "#"),
            ("PRODUCT", "rtx-4090", None, "/products/rtx-4090"),
            ("PRODUCT", None, None, "#"),
            ("SHOP", "dhaka-store", None, "/shop/dhaka-store"),
            ("SHOP", None, None, "/shops"),
            ("BRAND", "asus", None, "/brands/asus"),
            ("BRAND", "", None, "#"),
            ("PAGE", "warranty", None, "/pages/warranty"),
            ("PAGE", None, None, "#"),
            ("CUSTOM", None, "/promo", "/promo"),
            ("CUSTOM", None, None, "#"),
            ("CUSTOM", "gpus", None, "#"),
        ],
    )
    def test__link_type__resolves_url(self, link_type, link_value, url, expected) -> None:
        item = {"link_type": link_type, "link_value": link_value, "url": url}

        assert resolve_url(item) == expected

    def test__unknown_link_type__falls_back_to_url(self) -> None:
        assert resolve_url({"link_type": "MEGAMENU", "url": "/deals"}) == "/deals"
        assert resolve_url({"link_type": "MEGAMENU", "url": None}) == "#"

    def test__enum_member__accepted(self) -> None:
        assert resolve_url({"link_type": LinkType.CATEGORY, "link_value": "cpus"}) == "/categories/cpus"


class TestValidateLinkValue:
    """Tests for validate_link_value()."""

    @pytest.mark.parametrize("link_type", ["HOME", "CONTACT", "ABOUT", "CUSTOM"])
    def test__static_and_custom__need_no_value(self, link_type: str) -> None:
        assert validate_link_value(link_type, None) is True

    @pytest.mark.parametrize("link_type", ["CATEGORY", "PRODUCT", "SHOP", "BRAND", "PAGE"])
    def test__value_types__require_value(self, link_type: str) -> None:
        assert validate_link_value(link_type, "slug") is True
        assert validate_link_value(link_type, None) is False
        assert validate_link_value(link_type, "") is False

    def test__whitespace_value__rejected(self) -> None:
        assert validate_link_value("PRODUCT", "  ") is False

    def test__unknown_link_type__rejected(self) -> None:
        assert validate_link_value("MEGAMENU", "x") is False


class TestDescribeLink:
    """Tests for describe_link()."""

    def test__static_pages__named_pages(self) -> None:
        assert describe_link({"link_type": "HOME"}) == "Home Page"
        assert describe_link({"link_type": "CONTACT"}) == "Contact Page"
        assert describe_link({"link_type": "ABOUT"}) == "About Page"

    def test__value_types__show_value(self) -> None:
        assert describe_link({"link_type": "CATEGORY", "link_value": "gpus"}) == "Category: gpus"
        assert describe_link({"link_type": "SHOP", "link_value": None}) == "Shop: Not specified"
        assert describe_link({"link_type": "PAGE", "link_value": "faq"}) == "Page: faq"

    def test__custom__shows_url(self) -> None:
        assert describe_link({"link_type": "CUSTOM", "url": "/build"}) == "Custom URL: /build"
        assert describe_link({"link_type": "CUSTOM", "url": None}) == "Custom URL: Not specified"

    def test__unknown__reports_unknown(self) -> None:
        assert describe_link({"link_type": "MEGAMENU"}) == "Unknown link type"


class TestHelpers:
    """Tests for prune_inactive(), resolve_tree(), find_cycles() and reorder_positions()."""

    def test__prune_inactive__hides_disabled_subtree(self) -> None:
        items = [
            _item("root", 0),
            _item("hidden", 0, "root", is_active=False),
            _item("under-hidden", 0, "hidden"),
            _item("visible", 1, "root"),
        ]

        kept = prune_inactive(items)

        assert _ids(kept) == ["root", "visible"]

    def test__prune_inactive__duplicate_ids_keep_first_record(self) -> None:
        items = [
            _item("parent", 0, is_active=False),
            _item("parent", 1, label="Shadow", is_active=True),
            _item("child", 0, "parent"),
        ]

        assert prune_inactive(items) == []

    def test__prune_inactive__drops_later_duplicates(self) -> None:
        kept = prune_inactive([_item("dup", 0, label="First"), _item("dup", 1, label="Second")])

        assert [n["label"] for n in kept] == ["First"]

    def test__prune_inactive__keeps_dangling_parent_items(self) -> None:
        kept = prune_inactive([_item("orphan", 0, "gone")])

        assert _ids(kept) == ["orphan"]

    def test__resolve_tree__adds_urls_recursively(self) -> None:
        tree = build_tree([
            _item("comp", 0, link_type="CATEGORY", link_value="components"),
            _item("gpus", 0, "comp", link_type="CATEGORY", link_value="gpus"),
        ])

        resolved = resolve_tree(tree)

        assert resolved[0]["resolved_url"] == "/categories/components"
        assert resolved[0]["children"][0]["resolved_url"] == "/categories/gpus"
        assert "resolved_url" not in tree[0]

    def test__find_cycles__lists_loop_members(self) -> None:
        items = [
            _item("ok", 0),
            _item("a", 0, "b"),
            _item("b", 0, "a"),
            _item("tail", 0, "a"),
            _item("self", 0, "self"),
        ]

        assert find_cycles(items) == ["a", "b", "self"]

    def test__find_cycles__acyclic_is_empty(self) -> None:
        items = [_item("root", 0), _item("child", 0, "root"), _item("dangling", 0, "nope")]

        assert find_cycles(items) == []

    def test__reorder_positions__uses_sequence_index(self) -> None:
        rows = reorder_positions([
            {"id": "b", "parent_id": None},
            {"id": "b1", "parent_id": "b"},
            {"id": "a", "parent_id": ""},
        ])

        assert rows == [("b", None, 0), ("b1", "b", 1), ("a", None, 2)]
