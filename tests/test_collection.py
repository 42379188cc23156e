"""Tests for collection descriptors: enumerable views, item views and scoping."""

from __future__ import annotations

import copy
from fractions import Fraction

import pytest

from cup_pages import (
    DefinitionError,
    ElementNotFoundError,
    collection,
    create,
    text,
)
from cup_pages.collection import Collection, CollectionDefinition

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _n(id: str, role: str, name: str = "", **kwargs) -> dict:
    """Shorthand node builder."""
    node = {"id": id, "role": role, "name": name}
    node.update(kwargs)
    return node


def _row(id: str, *cells: str) -> dict:
    return _n(id, "row", children=[_n(f"{id}-{i}", "cell", c) for i, c in enumerate(cells)])


def _users_table() -> list[dict]:
    """table "List of users" with rows Mary Watson / John Doe."""
    return [
        _n(
            "e1",
            "table",
            "List of users",
            children=[_row("r0", "Mary", "Watson"), _row("r1", "John", "Doe")],
        )
    ]


def _two_panels() -> list[dict]:
    """A .admins panel with two rows and a .normal panel with one row."""
    return [
        _n(
            "e1",
            "group",
            "Admins",
            attributes={"class": "admins"},
            children=[
                _n("e2", "table", children=[_row("a0", "Mary", "Watson"), _row("a1", "John", "Doe")])
            ],
        ),
        _n(
            "e3",
            "group",
            "Normal",
            attributes={"class": "normal"},
            children=[_n("e4", "table", children=[_row("n0", "Alice", "Smith")])],
        ),
    ]


def _names() -> dict:
    return {
        "first_name": text("td", at=0),
        "last_name": text("td", at=1),
    }


# ---------------------------------------------------------------------------
# Enumerable view
# ---------------------------------------------------------------------------


class TestEnumerable:
    def test_count(self):
        page = create({"users": collection(item_scope="tr", item=_names())}, source=_users_table())
        assert page.users().count == 2

    def test_collection_level_property(self):
        page = create(
            {
                "users": collection(
                    scope="table",
                    item_scope="tr",
                    item=_names(),
                    caption=text(),
                )
            },
            source=_users_table(),
        )
        assert page.users().caption == "List of users"
        assert page.users().count == 2

    def test_literal_count_overrides_live_count(self):
        page = create(
            {"users": collection(item_scope="tr", item=_names(), count=7)},
            source=_users_table(),
        )
        assert page.users().count == 7

    def test_count_zero_when_nothing_matches(self):
        page = create({"users": collection(item_scope="listitem", item={})}, source=_users_table())
        assert page.users().count == 0

    def test_count_is_live(self):
        tree = _users_table()
        page = create({"users": collection(item_scope="tr", item=_names())}, source=tree)
        assert page.users().count == 2
        tree[0]["children"].append(_row("r2", "Ada", "Lovelace"))
        assert page.users().count == 3

    def test_item_scope_not_exposed(self):
        users = create(
            {"users": collection(item_scope="tr", item=_names())}, source=_users_table()
        ).users()
        assert "item_scope" not in users
        assert "item_scope" not in users.keys()
        assert "item_scope" not in dir(users)
        with pytest.raises(AttributeError):
            users.item_scope

    def test_idempotent(self):
        page = create(
            {"users": collection(scope="table", item_scope="tr", item=_names())},
            source=_users_table(),
        )
        first, second = page.users(), page.users()
        assert first is not second
        assert first.count == second.count == 2
        assert first.scope == second.scope == "table"

    def test_parent_is_host(self):
        page = create({"users": collection(item_scope="tr", item=_names())}, source=_users_table())
        assert page.users().parent is page

    def test_non_numeric_argument_gives_enumerable(self):
        page = create({"users": collection(item_scope="tr", item=_names())}, source=_users_table())
        assert page.users("1").count == 2
        assert page.users(True).count == 2
        assert page.users(None).count == 2


# ---------------------------------------------------------------------------
# Item view
# ---------------------------------------------------------------------------


class TestItem:
    def test_item_properties(self):
        page = create({"users": collection(item_scope="tr", item=_names())}, source=_users_table())
        assert page.users(1).first_name == "John"
        assert page.users(1).last_name == "Doe"

    def test_zero_indexed(self):
        page = create({"users": collection(item_scope="tr", item=_names())}, source=_users_table())
        assert page.users(0).first_name == "Mary"

    def test_item_scope_is_indexed_selector(self):
        page = create(
            {"users": collection(scope="table", item_scope="tr", item=_names())},
            source=_users_table(),
        )
        assert page.users(1).scope == "table tr:eq(1)"

    def test_items_are_independent(self):
        page = create({"users": collection(item_scope="tr", item=_names())}, source=_users_table())
        mary, john = page.users(0), page.users(1)
        assert mary is not john
        assert mary.scope != john.scope
        assert mary.first_name == "Mary"
        assert john.first_name == "John"

    def test_out_of_range_does_not_raise_on_generation(self):
        page = create({"users": collection(item_scope="tr", item=_names())}, source=_users_table())
        missing = page.users(5)
        with pytest.raises(ElementNotFoundError):
            missing.first_name

    def test_integral_float_index_selects_item(self):
        page = create({"users": collection(item_scope="tr", item=_names())}, source=_users_table())
        john = page.users(1.0)
        assert "first_name" in john
        assert john.scope == "tr:eq(1)"
        assert john.first_name == "John"

    def test_fractional_index_matches_nothing(self):
        page = create({"users": collection(item_scope="tr", item=_names())}, source=_users_table())
        between = page.users(0.5)
        assert between.scope == "tr:eq(0.5)"
        with pytest.raises(ElementNotFoundError):
            between.first_name

    def test_numeric_index_types(self):
        page = create({"users": collection(item_scope="tr", item=_names())}, source=_users_table())
        assert page.users(Fraction(2, 2)).first_name == "John"
        assert page.users(float("nan")).count == 2

    def test_negative_index_counts_from_end(self):
        page = create({"users": collection(item_scope="tr", item=_names())}, source=_users_table())
        assert page.users(-1).first_name == "John"

    def test_nested_collection(self):
        tree = [
            _n(
                "t",
                "table",
                children=[
                    _n(
                        "r0",
                        "row",
                        children=[
                            _n("c0", "cell", "Mary"),
                            _n(
                                "c1",
                                "cell",
                                children=[
                                    _n(
                                        "l0",
                                        "list",
                                        children=[
                                            _n("t0", "listitem", "admin"),
                                            _n("t1", "listitem", "owner"),
                                        ],
                                    )
                                ],
                            ),
                        ],
                    ),
                    _n(
                        "r1",
                        "row",
                        children=[
                            _n("c2", "cell", "John"),
                            _n("c3", "cell", children=[_n("t2", "listitem", "guest")]),
                        ],
                    ),
                ],
            )
        ]
        page = create(
            {
                "users": collection(
                    item_scope="tr",
                    item={
                        "name": text("td", at=0),
                        "tags": collection(item_scope="li", item={"label": text()}),
                    },
                )
            },
            source=tree,
        )
        assert page.users(0).tags().count == 2
        assert page.users(1).tags().count == 1
        assert page.users(0).tags(1).label == "owner"
        assert page.users(1).tags(0).label == "guest"


# ---------------------------------------------------------------------------
# Scoping
# ---------------------------------------------------------------------------


class TestScoping:
    def _page(self, **users):
        return create(
            {
                "admins": {
                    "scope": ".admins",
                    "users": collection(item_scope="tr", item=_names(), **users),
                }
            },
            source=_two_panels(),
        )

    def test_nested_in_parent_scope(self):
        page = self._page(scope="table")
        assert page.admins.users().count == 2
        assert page.admins.users(1).first_name == "John"
        assert page.admins.users(1).last_name == "Doe"

    def test_parent_scope_excludes_siblings(self):
        page = self._page(scope="table")
        with pytest.raises(ElementNotFoundError):
            page.admins.users(2).first_name

    def test_reset_scope_ignores_parent(self):
        page = self._page(reset_scope=True)
        assert page.admins.users().count == 3
        assert page.admins.users(2).first_name == "Alice"

    def test_reset_scope_with_own_scope(self):
        page = self._page(scope=".normal", reset_scope=True)
        assert page.admins.users().count == 1
        assert page.admins.users(0).first_name == "Alice"

    def test_without_reset_own_scope_nests(self):
        page = self._page(scope=".normal")
        assert page.admins.users().count == 0

    def test_item_mirrors_reset_scope(self):
        page = self._page(scope=".normal", reset_scope=True)
        assert page.admins.users(0).reset_scope is True
        page = self._page(scope="table")
        assert page.admins.users(0).reset_scope is False


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


class TestDefinition:
    def test_definition_not_mutated(self):
        definition = {"scope": "table", "item_scope": "tr", "item": _names()}
        snapshot = copy.copy(definition)
        item_snapshot = dict(definition["item"])

        page = create({"users": collection(definition)}, source=_users_table())
        for i in range(3):
            page.users()
            page.users().count
            page.users(i)
        page.users(0).first_name

        assert definition == snapshot
        assert definition["item"] == item_snapshot
        assert "item_scope" in definition
        assert "count" not in definition

    def test_keywords_override_mapping(self):
        c = collection({"item_scope": "tr", "item": {}}, item_scope="row")
        assert c.definition.item_scope == "row"

    def test_definition_is_read_only(self):
        c = collection(item_scope="tr", item={"a": 1}, caption="x")
        with pytest.raises(TypeError):
            c.definition.item["b"] = 2
        with pytest.raises(TypeError):
            c.definition.extra["y"] = 2
        with pytest.raises(AttributeError):
            c.definition.item_scope = "li"

    def test_as_dict_is_fresh(self):
        definition = CollectionDefinition.from_mapping({"item_scope": "tr", "item": {"a": 1}})
        d = definition.as_dict()
        d["item"]["b"] = 2
        d.pop("item_scope")
        assert definition.as_dict() == {"item_scope": "tr", "item": {"a": 1}}

    @pytest.mark.parametrize(
        "definition",
        [
            {"item": {}},
            {"item_scope": "tr"},
            {"item_scope": "", "item": {}},
            {"item_scope": 3, "item": {}},
            {"item_scope": "tr", "item": "nope"},
            {"item_scope": "tr", "item": {}, "reset_scope": "yes"},
        ],
    )
    def test_invalid_definitions(self, definition):
        with pytest.raises(DefinitionError):
            collection(definition)

    def test_member_names_rejected(self):
        with pytest.raises(DefinitionError, match="parent"):
            collection(item_scope="tr", item=_names(), parent=text("table"))
        with pytest.raises(DefinitionError, match="keys"):
            collection(item_scope="tr", item={"keys": text("cell")})

    def test_definition_error_is_value_error(self):
        with pytest.raises(ValueError, match="item_scope"):
            collection(item={})

    def test_is_descriptor(self):
        c = collection(item_scope="tr", item={})
        assert isinstance(c, Collection)
        assert c.is_descriptor is True
        assert c.invokable is True


# ---------------------------------------------------------------------------
# Injected collaborators
# ---------------------------------------------------------------------------


class TestInjection:
    def _collection(self, calls):
        def fake_create(definition, *, parent=None):
            calls.append((definition, parent))
            return "view"

        def fake_counter(selector):
            return ("counted", selector)

        return collection(
            scope="list",
            item_scope="li",
            reset_scope=True,
            item={"label": "x"},
            title="Tags",
            create=fake_create,
            counter=fake_counter,
        )

    def test_enumerable_uses_injected_create_and_counter(self):
        calls = []
        owner = object()
        assert self._collection(calls).value(owner) == "view"
        definition, parent = calls[-1]
        assert parent is owner
        assert definition == {
            "scope": "list",
            "reset_scope": True,
            "item": {"label": "x"},
            "title": "Tags",
            "count": ("counted", "li"),
        }

    def test_item_uses_injected_create(self):
        calls = []
        owner = object()
        assert self._collection(calls).value(owner, 2) == "view"
        assert calls[-1] == ({"label": "x", "scope": "list li:eq(2)", "reset_scope": True}, owner)
