"""Query descriptors: properties that read from the tree at access time."""

from __future__ import annotations

from typing import Any

from cup_pages.errors import AmbiguousElementError, ElementNotFoundError
from cup_pages.selector import build_selector, find_elements, text_of


class Descriptor:
    """Base for lazily resolved properties.

    The composer calls ``value(owner)`` on every read.  Descriptors with
    ``invokable`` set are handed out as ``partial(value, owner)`` instead,
    so callers can pass extra arguments.
    """

    is_descriptor = True
    invokable = False

    def value(self, owner: Any, *args: Any) -> Any:
        raise NotImplementedError


class _Query(Descriptor):
    def __init__(self, selector: str = "", **filters: Any) -> None:
        self.selector = selector
        self.filters = {k: v for k, v in filters.items() if v is not None and v is not False}

    def find(self, owner: Any) -> tuple[str, list[dict]]:
        full = build_selector(owner, self.selector, self.filters)
        return full, find_elements(owner.get_tree(), full)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.selector!r}, {self.filters!r})"


class _Count(_Query):
    def value(self, owner: Any) -> int:
        _, nodes = self.find(owner)
        return len(nodes)


class _IsPresent(_Query):
    def value(self, owner: Any) -> bool:
        _, nodes = self.find(owner)
        return bool(nodes)


class _Single(_Query):
    """Reads one field from exactly one match, or from every match."""

    def __init__(self, selector: str = "", *, multiple: bool = False, **filters: Any) -> None:
        super().__init__(selector, **filters)
        self.multiple = multiple

    def read(self, node: dict) -> Any:
        raise NotImplementedError

    def value(self, owner: Any) -> Any:
        full, nodes = self.find(owner)
        if not nodes:
            raise ElementNotFoundError(full)
        if self.multiple:
            return [self.read(n) for n in nodes]
        if len(nodes) > 1:
            raise AmbiguousElementError(full, len(nodes))
        return self.read(nodes[0])


class _Text(_Single):
    def __init__(self, selector: str = "", *, normalize: bool = True, **kwargs: Any) -> None:
        super().__init__(selector, **kwargs)
        self.normalize = normalize

    def read(self, node: dict) -> str:
        content = text_of(node)
        return " ".join(content.split()) if self.normalize else content


class _Value(_Single):
    def read(self, node: dict) -> Any:
        return node.get("value")


# ---------------------------------------------------------------------------
# Public factories
# ---------------------------------------------------------------------------


def count(
    selector: str = "",
    *,
    scope: str | None = None,
    reset_scope: bool = False,
    contains: str | None = None,
    visible: bool = False,
) -> Descriptor:
    """Number of elements matching ``selector`` within the owner's scope.

    Counted against the live tree on every read; zero matches give 0.
    """
    return _Count(selector, scope=scope, reset_scope=reset_scope, contains=contains, visible=visible)


def is_present(selector: str = "", **filters: Any) -> Descriptor:
    """True if at least one element matches ``selector``."""
    return _IsPresent(selector, **filters)


def text(
    selector: str = "",
    *,
    scope: str | None = None,
    reset_scope: bool = False,
    at: int | None = None,
    last: bool = False,
    contains: str | None = None,
    visible: bool = False,
    multiple: bool = False,
    normalize: bool = True,
) -> Descriptor:
    """Text of the element matching ``selector``.

    Raises on read:
        ElementNotFoundError: Nothing matched.
        AmbiguousElementError: Several elements matched and ``multiple``
            is False.
    """
    return _Text(
        selector,
        scope=scope,
        reset_scope=reset_scope,
        at=at,
        last=last,
        contains=contains,
        visible=visible,
        multiple=multiple,
        normalize=normalize,
    )


def value(selector: str = "", *, multiple: bool = False, **filters: Any) -> Descriptor:
    """``value`` field of the matching input-type element."""
    return _Value(selector, multiple=multiple, **filters)
