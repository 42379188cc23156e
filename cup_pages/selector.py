"""Selector language and query engine for CUP trees.

Selectors read like CSS, evaluated against CUP node dicts:

- Type selectors match CUP roles (``table``, ``row``, ``cell``).  Common
  HTML tag names are accepted as aliases (``tr`` -> ``row``, ``td`` -> ``cell``).
- ``#e14`` matches the node id, ``.admins`` a token in ``attributes["class"]``.
- ``[name="Save"]``, ``[placeholder^=Sea]`` match node fields or attributes.
- ``:focused``, ``:disabled``, ... match CUP states; ``:visible`` means
  neither offscreen nor hidden; ``:contains("John")`` matches text content.
- ``:eq(n)``, ``:first`` and ``:last`` are positional and apply to the whole
  set matched so far, jQuery style: ``table row:eq(1) cell`` means the cells
  of the second row found in any table.
- Combinators: whitespace (descendant) and ``>`` (child).
"""

from __future__ import annotations

import functools
import logging
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from cup_pages.errors import SelectorSyntaxError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

# HTML tag names accepted as type selectors, mapped to the CUP role they
# are exposed as in accessibility trees.
TAG_ROLES: dict[str, str] = {
    "a": "link",
    "article": "region",
    "aside": "complementary",
    "div": "generic",
    "footer": "contentinfo",
    "h1": "heading",
    "h2": "heading",
    "h3": "heading",
    "h4": "heading",
    "h5": "heading",
    "h6": "heading",
    "header": "banner",
    "input": "textbox",
    "li": "listitem",
    "nav": "navigation",
    "ol": "list",
    "p": "paragraph",
    "section": "region",
    "select": "combobox",
    "span": "generic",
    "td": "cell",
    "textarea": "textbox",
    "th": "columnheader",
    "tr": "row",
    "ul": "list",
}

STATES: frozenset[str] = frozenset(
    {
        "busy",
        "checked",
        "collapsed",
        "disabled",
        "editable",
        "expanded",
        "focused",
        "hidden",
        "mixed",
        "modal",
        "multiselectable",
        "offscreen",
        "pressed",
        "readonly",
        "required",
        "selected",
    }
)

# Node fields addressable from [attr] tests without going through "attributes"
_NODE_FIELDS = ("id", "role", "name", "value", "description")

_ATTR_OPS = ("~=", "^=", "$=", "*=", "=")

_IDENT_RE = re.compile(r"-?[A-Za-z_][\w-]*")
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
_WS = " \t\n\r\f"


# ---------------------------------------------------------------------------
# Parsed form
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Compound:
    """One compound selector plus the combinator joining it to the previous one."""

    combinator: str = " "
    role: str | None = None
    ids: tuple[str, ...] = ()
    classes: tuple[str, ...] = ()
    attrs: tuple[tuple[str, str | None, str | None], ...] = ()
    states: tuple[str, ...] = ()
    contains: tuple[str, ...] = ()
    visible: bool = False
    positions: tuple[tuple[str, int | float], ...] = ()


class _Parser:
    def __init__(self, selector: str) -> None:
        self.selector = selector
        self.pos = 0
        self.length = len(selector)

    def error(self, message: str) -> SelectorSyntaxError:
        return SelectorSyntaxError(f"{message} at position {self.pos} in {self.selector!r}")

    def _peek(self) -> str:
        return self.selector[self.pos] if self.pos < self.length else ""

    def _skip_ws(self) -> bool:
        start = self.pos
        while self.pos < self.length and self.selector[self.pos] in _WS:
            self.pos += 1
        return self.pos > start

    def _ident(self, what: str) -> str:
        m = _IDENT_RE.match(self.selector, self.pos)
        if not m:
            raise self.error(f"Expected {what}")
        self.pos = m.end()
        return m.group()

    def _string(self) -> str:
        quote = self._peek()
        self.pos += 1
        chars: list[str] = []
        while self.pos < self.length:
            ch = self.selector[self.pos]
            if ch == "\\" and self.pos + 1 < self.length:
                chars.append(self.selector[self.pos + 1])
                self.pos += 2
                continue
            self.pos += 1
            if ch == quote:
                return "".join(chars)
            chars.append(ch)
        raise self.error("Unterminated string")

    def _value(self, stop: str) -> str:
        """Read a quoted string or a bare value up to one of ``stop``."""
        self._skip_ws()
        if self._peek() in ("'", '"'):
            value = self._string()
            self._skip_ws()
            return value
        start = self.pos
        while self.pos < self.length and self.selector[self.pos] not in stop:
            self.pos += 1
        return self.selector[start : self.pos].strip()

    def parse(self) -> tuple[Compound, ...]:
        self._skip_ws()
        compounds: list[Compound] = []
        combinator = " "
        while True:
            if self._peek() == ">":
                raise self.error("Unexpected combinator")
            compounds.append(self._compound(combinator))
            saw_ws = self._skip_ws()
            if self.pos >= self.length:
                return tuple(compounds)
            if self._peek() == ">":
                self.pos += 1
                self._skip_ws()
                if self.pos >= self.length:
                    raise self.error("Dangling combinator")
                combinator = ">"
            elif saw_ws:
                combinator = " "
            else:
                raise self.error(f"Unexpected character {self._peek()!r}")

    def _compound(self, combinator: str) -> Compound:
        start = self.pos
        role = None
        ids: list[str] = []
        classes: list[str] = []
        attrs: list[tuple[str, str | None, str | None]] = []
        states: list[str] = []
        contains: list[str] = []
        visible = False
        positions: list[tuple[str, int | float]] = []

        if self._peek() == "*":
            self.pos += 1
        elif _IDENT_RE.match(self.selector, self.pos):
            tag = self._ident("type selector").lower()
            role = TAG_ROLES.get(tag, tag)

        while self.pos < self.length:
            ch = self._peek()
            if ch == "#":
                self.pos += 1
                ids.append(self._ident("id after '#'"))
            elif ch == ".":
                self.pos += 1
                classes.append(self._ident("class name after '.'"))
            elif ch == "[":
                self.pos += 1
                attrs.append(self._attribute())
            elif ch == ":":
                self.pos += 1
                name = self._ident("pseudo-class after ':'").lower()
                if name == "eq":
                    positions.append(("eq", self._number_argument()))
                elif name in ("first", "last"):
                    positions.append((name, 0))
                elif name == "contains":
                    contains.append(self._text_argument())
                elif name == "visible":
                    visible = True
                elif name in STATES:
                    states.append(name)
                else:
                    raise self.error(f"Unknown pseudo-class ':{name}'")
            else:
                break

        if self.pos == start:
            raise self.error(f"Unexpected character {self._peek()!r}")

        return Compound(
            combinator=combinator,
            role=role,
            ids=tuple(ids),
            classes=tuple(classes),
            attrs=tuple(attrs),
            states=tuple(states),
            contains=tuple(contains),
            visible=visible,
            positions=tuple(positions),
        )

    def _attribute(self) -> tuple[str, str | None, str | None]:
        self._skip_ws()
        name = self._ident("attribute name")
        self._skip_ws()
        if self._peek() == "]":
            self.pos += 1
            return name, None, None
        for op in _ATTR_OPS:
            if self.selector.startswith(op, self.pos):
                self.pos += len(op)
                break
        else:
            raise self.error("Expected attribute operator")
        value = self._value("]")
        if self._peek() != "]":
            raise self.error("Expected ']'")
        self.pos += 1
        return name, op, value

    def _open_paren(self) -> None:
        if self._peek() != "(":
            raise self.error("Expected '('")
        self.pos += 1

    def _close_paren(self) -> None:
        self._skip_ws()
        if self._peek() != ")":
            raise self.error("Expected ')'")
        self.pos += 1

    def _number_argument(self) -> int | float:
        self._open_paren()
        self._skip_ws()
        m = _NUMBER_RE.match(self.selector, self.pos)
        if not m:
            raise self.error("Expected number")
        self.pos = m.end()
        self._close_paren()
        number = float(m.group())
        return int(number) if number.is_integer() else number

    def _text_argument(self) -> str:
        self._open_paren()
        value = self._value(")")
        self._close_paren()
        return value


@functools.lru_cache(maxsize=512)
def parse_selector(selector: str) -> tuple[Compound, ...]:
    """Parse a selector string into compounds.

    Raises:
        SelectorSyntaxError: If the selector is malformed.
    """
    if not selector.strip():
        return ()
    return _Parser(selector).parse()


# ---------------------------------------------------------------------------
# Selector composition
# ---------------------------------------------------------------------------


def _scope_chain(node: Any) -> list[str]:
    """Collect scopes from ``node`` up through its ancestors, outermost first.

    Walking stops at the first node with ``reset_scope`` set.
    """
    scopes: list[str] = []
    while node is not None:
        scope = getattr(node, "scope", None)
        if scope:
            scopes.append(scope)
        if getattr(node, "reset_scope", False):
            break
        node = getattr(node, "parent", None)
    scopes.reverse()
    return scopes


def _quote(text: str) -> str:
    return '"' + str(text).replace("\\", "\\\\").replace('"', '\\"') + '"'


def _filter_suffix(filters: Mapping[str, Any]) -> str:
    parts = []
    if filters.get("contains") is not None:
        parts.append(f":contains({_quote(filters['contains'])})")
    if filters.get("at") is not None:
        at = filters["at"]
        parts.append(f":eq({int(at) if float(at).is_integer() else float(at)})")
    if filters.get("last"):
        parts.append(":last")
    if filters.get("visible"):
        parts.append(":visible")
    return "".join(parts)


def build_selector(
    node: Any,
    selector: str | None = "",
    filters: Mapping[str, Any] | None = None,
) -> str:
    """Combine a node's inherited scope, a selector and filters into one selector.

    Args:
        node: Page object whose scope chain prefixes the result, or None.
        selector: Selector relative to the node.
        filters: Optional keys:
            scope       -- extra scope nested inside the node's scope
            reset_scope -- ignore the node's scope chain, keep only ``scope``
            contains    -- text the match must contain
            at          -- zero-based index into the matches
            last        -- keep only the last match
            visible     -- keep only visible matches

    Returns:
        The full selector string, or ``":first"`` if everything was empty.
    """
    filters = filters or {}
    target_scope = filters.get("scope") or ""

    if filters.get("reset_scope"):
        scope = target_scope
    else:
        scope = " ".join(s for s in [*_scope_chain(node), target_scope] if s)

    result = f"{scope} {selector or ''}{_filter_suffix(filters)}".strip()
    if not result:
        result = ":first"
    logger.debug("build_selector(%r, %r) -> %r", selector, dict(filters), result)
    return result


# ---------------------------------------------------------------------------
# Node matching
# ---------------------------------------------------------------------------


def text_of(node: dict) -> str:
    """Return the readable text of a node.

    Its name if it has one, else its value, else the text of its
    descendants joined by single spaces.
    """
    parts: list[str] = []
    stack = [node]
    while stack:
        current = stack.pop()
        name = current.get("name")
        value = current.get("value")
        if name:
            parts.append(name)
        elif value:
            parts.append(str(value))
        else:
            stack.extend(reversed(current.get("children", [])))
    return " ".join(parts)


def _text_content(node: dict) -> str:
    """All text in a subtree, including the node's own name and value."""
    parts = []
    for current in _preorder([node]):
        parts.append(current.get("name") or "")
        parts.append(str(current.get("value") or ""))
    return " ".join(p for p in parts if p)


def _field(node: dict, name: str) -> Any:
    if name in _NODE_FIELDS:
        return node.get(name)
    return (node.get("attributes") or {}).get(name)


def _attr_matches(node: dict, name: str, op: str | None, expected: str | None) -> bool:
    actual = _field(node, name)
    if actual is None:
        return False
    if op is None:
        return True
    actual = str(actual)
    if op == "=":
        return actual == expected
    if op == "~=":
        return expected in actual.split()
    if not expected:
        return False
    if op == "^=":
        return actual.startswith(expected)
    if op == "$=":
        return actual.endswith(expected)
    return expected in actual  # *=


def _matches(node: dict, c: Compound) -> bool:
    if c.role is not None and node.get("role", "").lower() != c.role:
        return False
    if c.ids and any(node.get("id") != i for i in c.ids):
        return False
    if c.classes:
        tokens = str((node.get("attributes") or {}).get("class", "")).split()
        if any(cls not in tokens for cls in c.classes):
            return False
    for name, op, expected in c.attrs:
        if not _attr_matches(node, name, op, expected):
            return False
    states = node.get("states", [])
    if any(s not in states for s in c.states):
        return False
    if c.visible and ("offscreen" in states or "hidden" in states):
        return False
    if c.contains:
        content = _text_content(node)
        if any(text not in content for text in c.contains):
            return False
    return True


def _apply_positions(matched: list[dict], positions: Iterable[tuple[str, int | float]]) -> list[dict]:
    for kind, n in positions:
        if kind == "first":
            matched = matched[:1]
        elif kind == "last":
            matched = matched[-1:]
        elif isinstance(n, float):
            # no element sits at a fractional position
            matched = []
        else:
            matched = [matched[n]] if -len(matched) <= n < len(matched) else []
    return matched


# ---------------------------------------------------------------------------
# Tree walking
# ---------------------------------------------------------------------------


def _preorder(roots: list[dict]) -> Iterator[dict]:
    stack = list(reversed(roots))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.get("children", [])))


def _document_order(tree: list[dict]) -> tuple[list[dict], dict[int, int]]:
    """Flatten a forest in pre-order; map id(node) -> position."""
    nodes = list(_preorder(tree))
    return nodes, {id(n): i for i, n in enumerate(nodes)}


def _descendants(node: dict) -> Iterator[dict]:
    return _preorder(node.get("children", []))


def find_elements(tree: list[dict], selector: str) -> list[dict]:
    """Return the nodes of ``tree`` matching ``selector``, in document order.

    Args:
        tree: CUP root nodes.
        selector: Selector string (see module docstring).

    Raises:
        SelectorSyntaxError: If the selector is malformed.
    """
    compounds = parse_selector(selector)
    if not compounds:
        return []

    nodes, order = _document_order(tree)
    context: list[dict] | None = None

    for c in compounds:
        if context is None:
            candidates = nodes
        else:
            seen: dict[int, dict] = {}
            for parent in context:
                related = parent.get("children", []) if c.combinator == ">" else _descendants(parent)
                for node in related:
                    seen.setdefault(id(node), node)
            candidates = sorted(seen.values(), key=lambda n: order[id(n)])

        context = _apply_positions([n for n in candidates if _matches(n, c)], c.positions)
        if not context:
            break

    logger.debug("find_elements(%r) matched %d node(s)", selector, len(context or []))
    return context or []


def count_elements(tree: list[dict], selector: str) -> int:
    """Return how many nodes of ``tree`` match ``selector``."""
    return len(find_elements(tree, selector))
