"""Small helpers for walking selectolax (lexbor) DOM trees."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator


def children(node: Any) -> Iterator[Any]:
    """Direct children of ``node``, text nodes included."""
    child = node.child
    while child is not None:
        yield child
        child = child.next


def is_text(node: Any) -> bool:
    # selectolax reports text nodes with the pseudo tag "-text"
    return node.tag == "-text"


def prefixed_class(node: Any, prefix: str) -> str | None:
    """First class token of ``node`` starting with ``prefix``, prefix removed."""
    for cls in (node.attributes.get("class") or "").split():
        if cls.startswith(prefix) and len(cls) > len(prefix):
            return cls.removeprefix(prefix)
    return None


def own_checkbox(li: Any) -> Any | None:
    """The checkbox input belonging to ``li``, ignoring ones in nested lists."""
    for box in li.css("input"):
        if (box.attributes.get("type") or "").lower() != "checkbox":
            continue
        # The nearest enclosing li must be ``li`` itself, not a nested item
        ancestor = box.parent
        while ancestor is not None and ancestor.tag not in ("li", "ul", "ol"):
            ancestor = ancestor.parent
        if ancestor is not None and ancestor.mem_id == li.mem_id:
            return box
    return None
