"""Compact one-line rendering of matched CUP nodes (used by the CLI)."""

from __future__ import annotations

from cup_pages.selector import text_of


def _clip(text: str, limit: int) -> str:
    clipped = text[:limit] + ("..." if len(text) > limit else "")
    return clipped.replace("\\", "\\\\").replace('"', '\\"').replace("\n", " ")


def format_line(node: dict, *, index: int | None = None) -> str:
    """Format a single CUP node as a compact one-liner.

    ``index`` is the node's position in a result set; when given it is
    printed first so it can be fed back as ``at=``.
    """
    parts = []
    if index is not None:
        parts.append(f"{index}:")
    parts.append(f"[{node.get('id', '?')}]")
    parts.append(node.get("role", "?"))

    text = text_of(node)
    if text:
        parts.append(f'"{_clip(text, 80)}"')

    states = node.get("states", [])
    if states:
        parts.append("{" + ",".join(states) + "}")

    value = node.get("value", "")
    if value and node.get("name"):
        parts.append(f'val="{_clip(str(value), 120)}"')

    classes = (node.get("attributes") or {}).get("class")
    if classes:
        parts.append("." + ".".join(str(classes).split()))

    return " ".join(parts)


def format_matches(nodes: list[dict]) -> str:
    """One line per node, each prefixed with its index in ``nodes``."""
    return "\n".join(format_line(n, index=i) for i, n in enumerate(nodes))
