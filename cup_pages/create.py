"""Object composer: turns a definition mapping into a live page object."""

from __future__ import annotations

import functools
from collections.abc import Mapping
from typing import Any

from cup_pages._base import TreeSource
from cup_pages.errors import DefinitionError, NoTreeSourceError
from cup_pages.sources import as_source


# Definition keys read by the composer itself rather than exposed as properties
STRUCTURAL_KEYS = frozenset({"scope", "reset_scope"})


def is_descriptor(value: Any) -> bool:
    """Return True if ``value`` is a lazily resolved property descriptor."""
    return getattr(value, "is_descriptor", False) is True


class PageObject:
    """A node of a page object tree.

    Properties are resolved on every attribute read, in the context of this
    object, so descriptors always see the current tree and the node's
    current scope chain:

    - descriptors resolve to ``descriptor.value(self)``
    - invokable descriptors (collections) resolve to a callable taking an
      optional index, e.g. ``page.users()`` / ``page.users(1)``
    - nested mappings resolve to child page objects
    - anything else is returned as is

    Page objects are read-only; build a new one to change a definition.
    """

    __slots__ = ("_definition", "_parent", "_source")

    def __init__(
        self,
        definition: Mapping[str, Any],
        *,
        parent: PageObject | None = None,
        source: TreeSource | None = None,
    ) -> None:
        object.__setattr__(self, "_definition", dict(definition))
        object.__setattr__(self, "_parent", parent)
        object.__setattr__(self, "_source", source)

    # -- structure ---------------------------------------------------------

    @property
    def scope(self) -> str | None:
        return self._definition.get("scope")

    @property
    def reset_scope(self) -> bool:
        return bool(self._definition.get("reset_scope"))

    @property
    def parent(self) -> PageObject | None:
        return self._parent

    @property
    def source(self) -> TreeSource:
        """The tree source of this node or its nearest ancestor that has one."""
        node: PageObject | None = self
        while node is not None:
            if node._source is not None:
                return node._source
            node = node._parent
        raise NoTreeSourceError(
            "Page object has no tree source; pass source= to create() on the root"
        )

    def get_tree(self) -> list[dict]:
        return self.source.get_tree()

    # -- properties --------------------------------------------------------

    def keys(self) -> list[str]:
        return [k for k in self._definition if k not in STRUCTURAL_KEYS]

    def __contains__(self, name: object) -> bool:
        return name in self._definition and name not in STRUCTURAL_KEYS

    def __getattr__(self, name: str) -> Any:
        # Only called when normal lookup fails, i.e. for definition keys.
        if name.startswith("_") or name not in self._definition:
            raise AttributeError(f"{type(self).__name__} has no property {name!r}")

        value = self._definition[name]
        if is_descriptor(value):
            if getattr(value, "invokable", False):
                return functools.partial(value.value, self)
            return value.value(self)
        if isinstance(value, Mapping):
            return create(value, parent=self)
        return value

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is read-only")

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self.keys()))

    def __repr__(self) -> str:
        return f"<PageObject scope={self.scope!r} keys={self.keys()!r}>"


# PageObject members that a definition key of the same name would shadow
RESERVED_NAMES = frozenset(n for n in dir(PageObject) if not n.startswith("_")) - STRUCTURAL_KEYS


def check_names(definition: Mapping[str, Any]) -> None:
    """Raise DefinitionError for keys that cannot be page object properties.

    Nested mappings become child page objects, so their keys are checked too.
    """
    bad = [
        k
        for k in definition
        if not isinstance(k, str) or k.startswith("_") or k in RESERVED_NAMES
    ]
    if bad:
        raise DefinitionError(
            f"Invalid property names: {bad!r}; names must not start with '_' "
            f"or be one of {sorted(RESERVED_NAMES)!r}"
        )
    for value in definition.values():
        if isinstance(value, Mapping) and not is_descriptor(value):
            check_names(value)


def create(
    definition: Mapping[str, Any] | None = None,
    /,
    *,
    parent: PageObject | None = None,
    source: Any = None,
    **fields: Any,
) -> PageObject:
    """Build a page object from a definition.

    Args:
        definition: Mapping of property names to descriptors, nested
            mappings or plain values.  ``scope`` and ``reset_scope`` are
            read as the node's own scope settings.
        parent: Parent page object; its scope chain prefixes this node's.
        source: Tree to query: a TreeSource, a CUP envelope, a list of root
            nodes, or a session with ``capture()``.  Only needed on the root.
        **fields: Extra definition entries, merged over ``definition``.

    Raises:
        DefinitionError: If a property name starts with an underscore or
            names a PageObject member (``parent``, ``source``, ``keys``,
            ``get_tree``).

    Example::

        page = create(
            {"title": text("heading"), "users": collection(item_scope="row", item={...})},
            source=load_tree("snapshot.json"),
        )
    """
    merged = {**(definition or {}), **fields}
    check_names(merged)
    if source is not None:
        source = as_source(source)
    return PageObject(merged, parent=parent, source=source)
