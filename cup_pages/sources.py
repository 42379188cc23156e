"""Tree sources: where page objects get the rendered UI tree from."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

from jsonschema import ValidationError, validate

from cup_pages._base import TreeSource
from cup_pages.errors import TreeValidationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Schema for saved trees (the subset of the CUP envelope page objects read)
# ---------------------------------------------------------------------------

TREE_SCHEMA: dict = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "$defs": {
        "node": {
            "type": "object",
            "required": ["id", "role"],
            "properties": {
                "id": {"type": "string"},
                "role": {"type": "string"},
                "name": {"type": "string"},
                "description": {"type": "string"},
                "value": {"type": ["string", "number"]},
                "states": {"type": "array", "items": {"type": "string"}},
                "actions": {"type": "array", "items": {"type": "string"}},
                "attributes": {"type": "object"},
                "children": {"type": "array", "items": {"$ref": "#/$defs/node"}},
            },
        },
        "tree": {"type": "array", "items": {"$ref": "#/$defs/node"}},
    },
    "oneOf": [
        {"$ref": "#/$defs/tree"},
        {
            "type": "object",
            "required": ["tree"],
            "properties": {"tree": {"$ref": "#/$defs/tree"}},
        },
    ],
}


def _roots(data: dict | list[dict]) -> list[dict]:
    """Accept a CUP envelope or a bare list of root nodes."""
    if isinstance(data, dict):
        return data["tree"]
    return data


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class StaticTree(TreeSource):
    """A fixed tree held in memory.

    Mutating the wrapped dicts (e.g. appending a row in a test) is seen by
    the next query, since nothing is copied or cached.
    """

    def __init__(self, tree: dict | list[dict]) -> None:
        self._data = tree

    def get_tree(self) -> list[dict]:
        return _roots(self._data)

    def __repr__(self) -> str:
        return f"StaticTree({len(self.get_tree())} roots)"


class CaptureTree(TreeSource):
    """Recapture the tree from a CUP session on every read.

    ``session`` is anything with a ``capture(scope=..., max_depth=...,
    compact=False)`` method returning a CUP envelope, e.g. ``cup.Session``.
    """

    def __init__(self, session: Any, *, scope: str = "foreground", max_depth: int = 999) -> None:
        self._session = session
        self._scope = scope
        self._max_depth = max_depth

    def get_tree(self) -> list[dict]:
        envelope = self._session.capture(
            scope=self._scope,
            max_depth=self._max_depth,
            compact=False,
        )
        return _roots(envelope)


def load_tree(path: str | os.PathLike) -> StaticTree:
    """Load a saved CUP envelope (or list of root nodes) from a JSON file.

    Raises:
        TreeValidationError: If the file does not hold a CUP tree.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    try:
        validate(data, TREE_SCHEMA)
    except ValidationError as e:
        raise TreeValidationError(f"{os.fspath(path)}: {e.message}") from e
    logger.debug("Loaded tree from %s", os.fspath(path))
    return StaticTree(data)


def as_source(obj: Any) -> TreeSource:
    """Coerce a tree, envelope, session or source into a TreeSource."""
    if isinstance(obj, TreeSource):
        return obj
    if isinstance(obj, (list, dict)):
        return StaticTree(obj)
    if hasattr(obj, "capture"):
        return CaptureTree(obj)
    raise TypeError(f"Cannot use {type(obj).__name__} as a tree source")
