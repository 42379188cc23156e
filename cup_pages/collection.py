"""Collections: repeating groups of items inside a page object.

A collection is a descriptor.  On a page object it shows up as a callable:

- ``page.users()`` returns the enumerable view, with every collection-level
  property plus ``count``
- ``page.users(1)`` returns the item view for the second matching item
  container, scoped to that element alone

Example::

    # table "Users"
    #   row
    #     cell "Mary"
    #     cell "Watson"
    #   row
    #     cell "John"
    #     cell "Doe"

    page = create(
        {
            "users": collection(
                scope="table",
                item_scope="row",
                item={
                    "first_name": text("cell", at=0),
                    "last_name": text("cell", at=1),
                },
                caption=text(),
            )
        },
        source=tree,
    )

    page.users().count          # 2
    page.users(1).first_name    # "John"
    page.users(1).last_name     # "Doe"
"""

from __future__ import annotations

import logging
import math
import numbers
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from jsonschema import ValidationError, validate

from cup_pages.create import PageObject, check_names
from cup_pages.create import create as default_create
from cup_pages.errors import DefinitionError
from cup_pages.properties import Descriptor
from cup_pages.properties import count as default_count
from cup_pages.selector import build_selector

logger = logging.getLogger(__name__)

DEFINITION_SCHEMA: dict = {
    "type": "object",
    "required": ["item_scope", "item"],
    "properties": {
        "item_scope": {"type": "string", "minLength": 1},
        "item": {"type": "object"},
        "scope": {"type": ["string", "null"]},
        "reset_scope": {"type": ["boolean", "null"]},
    },
}

Composer = Callable[..., PageObject]
Counter = Callable[[str], Any]


@dataclass(frozen=True)
class CollectionDefinition:
    """Immutable snapshot of the mapping a collection was declared with."""

    item_scope: str
    item: Mapping[str, Any]
    scope: str | None = None
    reset_scope: bool | None = None
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_mapping(cls, definition: Mapping[str, Any]) -> CollectionDefinition:
        try:
            checked = dict(definition)
            if isinstance(checked.get("item"), Mapping):
                checked["item"] = dict(checked["item"])
            validate(checked, DEFINITION_SCHEMA)
        except ValidationError as e:
            raise DefinitionError(f"Invalid collection definition: {e.message}") from e

        known = {"item_scope", "item", "scope", "reset_scope"}
        check_names({k: v for k, v in definition.items() if k not in known})
        check_names(definition["item"])
        return cls(
            item_scope=definition["item_scope"],
            item=MappingProxyType(dict(definition["item"])),
            scope=definition.get("scope"),
            reset_scope=definition.get("reset_scope"),
            extra=MappingProxyType({k: v for k, v in definition.items() if k not in known}),
        )

    def as_dict(self) -> dict[str, Any]:
        """Fresh, mutable copy of the full definition."""
        result: dict[str, Any] = dict(self.extra)
        result["item_scope"] = self.item_scope
        result["item"] = dict(self.item)
        if self.scope is not None:
            result["scope"] = self.scope
        if self.reset_scope is not None:
            result["reset_scope"] = self.reset_scope
        return result


class Collection(Descriptor):
    """Descriptor producing enumerable or item views of a collection."""

    invokable = True

    def __init__(
        self,
        definition: CollectionDefinition,
        *,
        create: Composer = default_create,
        counter: Counter = default_count,
    ) -> None:
        self.definition = definition
        self._create = create
        self._counter = counter

    def value(self, owner: Any, index: numbers.Real | None = None) -> PageObject:
        """Return the item view for ``index``, or the enumerable view.

        Any finite real number except a bool selects an item; integral
        values such as ``1.0`` or ``numpy.int64(1)`` become plain ints, and
        a fractional index gives a view that matches nothing.  None, or any
        other argument, gives the enumerable view.
        """
        if (
            isinstance(index, numbers.Real)
            and not isinstance(index, bool)
            and math.isfinite(index)
        ):
            if float(index).is_integer():
                index = int(index)
            return self.generate_item(owner, index)
        return self.generate_enumerable(owner)

    def generate_enumerable(self, owner: Any) -> PageObject:
        enumerable = self.definition.as_dict()
        item_scope = enumerable.pop("item_scope")
        if "count" not in enumerable:
            enumerable["count"] = self._counter(item_scope)
        return self._create(enumerable, parent=owner)

    def generate_item(self, owner: Any, index: int | float) -> PageObject:
        filters = {"scope": self.definition.scope, "at": index}
        scope = build_selector(None, self.definition.item_scope, filters)
        logger.debug("Collection item %s scoped to %r", index, scope)

        item = {**self.definition.item, "scope": scope, "reset_scope": self.definition.reset_scope}
        return self._create(item, parent=owner)

    def __repr__(self) -> str:
        return f"Collection(item_scope={self.definition.item_scope!r}, scope={self.definition.scope!r})"


def collection(
    definition: Mapping[str, Any] | None = None,
    /,
    *,
    create: Composer = default_create,
    counter: Counter = default_count,
    **fields: Any,
) -> Collection:
    """Declare a zero-indexed collection of items.

    Args:
        definition: Collection definition.  Keyword ``fields`` are merged
            over it.  Keys:
            item_scope  -- selector for each item container (required)
            item        -- mapping of the item's properties (required)
            scope       -- nests the collection within the parent's scope
            reset_scope -- ignore the parent's scope (collection and items)
            count       -- literal count, replaces the live element count
            any other key becomes a property of the enumerable view
        create: Object composer used to build views.
        counter: Factory returning a ``count`` descriptor for a selector.

    Raises:
        DefinitionError: If ``item_scope`` or ``item`` is missing or of
            the wrong type, or a property name is reserved.
    """
    merged = {**(definition or {}), **fields}
    return Collection(CollectionDefinition.from_mapping(merged), create=create, counter=counter)
