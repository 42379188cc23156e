"""
cup-pages -- declarative page objects over CUP accessibility trees.

Describe the parts of a UI once, then query them by name in tests.

Quick start::

    from cup_pages import collection, create, load_tree, text

    page = create(
        {
            "title": text("heading"),
            "users": collection(
                scope="table",
                item_scope="row",
                item={
                    "first_name": text("cell", at=0),
                    "last_name": text("cell", at=1),
                },
            ),
        },
        source=load_tree("snapshot.json"),   # or a live cup.Session()
    )

    page.title                  # text of the single heading
    page.users().count          # number of rows in the table
    page.users(1).first_name    # first cell of the second row
"""

from __future__ import annotations

from cup_pages._base import TreeSource
from cup_pages.collection import Collection, CollectionDefinition, collection
from cup_pages.create import PageObject, create, is_descriptor
from cup_pages.errors import (
    AmbiguousElementError,
    DefinitionError,
    ElementNotFoundError,
    NoTreeSourceError,
    PageObjectError,
    SelectorSyntaxError,
    TreeValidationError,
)
from cup_pages.properties import Descriptor, count, is_present, text, value
from cup_pages.selector import build_selector, count_elements, find_elements
from cup_pages.sources import CaptureTree, StaticTree, as_source, load_tree

__all__ = [
    "create",
    "collection",
    "count",
    "text",
    "value",
    "is_present",
    "PageObject",
    "Collection",
    "CollectionDefinition",
    "Descriptor",
    "is_descriptor",
    # Tree sources
    "TreeSource",
    "StaticTree",
    "CaptureTree",
    "load_tree",
    "as_source",
    # Advanced / building blocks
    "build_selector",
    "find_elements",
    "count_elements",
    # Errors
    "PageObjectError",
    "DefinitionError",
    "SelectorSyntaxError",
    "ElementNotFoundError",
    "AmbiguousElementError",
    "NoTreeSourceError",
    "TreeValidationError",
]
