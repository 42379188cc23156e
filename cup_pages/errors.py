"""Exception types raised by cup_pages."""

from __future__ import annotations


class PageObjectError(Exception):
    """Base class for all cup_pages errors."""


class DefinitionError(PageObjectError, ValueError):
    """A page object or collection definition is malformed."""


class SelectorSyntaxError(PageObjectError, ValueError):
    """A selector string could not be parsed."""


class ElementNotFoundError(PageObjectError, LookupError):
    """A query matched no element in the current tree."""

    def __init__(self, selector: str) -> None:
        super().__init__(f"Element not found: {selector!r}")
        self.selector = selector


class AmbiguousElementError(PageObjectError, LookupError):
    """A single-element query matched more than one element."""

    def __init__(self, selector: str, matches: int) -> None:
        super().__init__(
            f"Selector {selector!r} matched {matches} elements; "
            "pass multiple=True or narrow it with at=/contains="
        )
        self.selector = selector
        self.matches = matches


class NoTreeSourceError(PageObjectError, RuntimeError):
    """A page object was queried but no tree source is attached to it."""


class TreeValidationError(PageObjectError, ValueError):
    """A tree loaded from disk does not look like a CUP tree."""
