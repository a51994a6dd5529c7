"""Rich document tree shared by the markdown and CRDT sides of the codec.

Node and mark names are the ProseMirror/TipTap schema names, so the
browser editor binds to the same CRDT fragment this module writes.

The vocabulary is closed: ``NODE_SPECS`` maps every container kind to the
HTML renderer used on the markdown side and the attribute schema used by
the CRDT encoder/decoder. Anything not in the table is dropped by the
decoders.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

type Scalar = str | int | float | bool


class NodeType(StrEnum):
    """Container node kinds."""

    DOC = "doc"
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BULLET_LIST = "bulletList"
    ORDERED_LIST = "orderedList"
    LIST_ITEM = "listItem"
    TASK_LIST = "taskList"
    TASK_ITEM = "taskItem"
    CODE_BLOCK = "codeBlock"
    BLOCKQUOTE = "blockquote"
    HORIZONTAL_RULE = "horizontalRule"
    HARD_BREAK = "hardBreak"


class MarkType(StrEnum):
    """Inline formatting kinds, in the order they nest when rendered."""

    LINK = "link"
    BOLD = "bold"
    ITALIC = "italic"
    STRIKE = "strike"
    CODE = "code"


_NODE_TYPES: dict[str, NodeType] = {t.value: t for t in NodeType}
_MARK_TYPES: dict[str, MarkType] = {t.value: t for t in MarkType}
_MARK_ORDER: dict[MarkType, int] = {t: i for i, t in enumerate(MarkType)}


def node_type_for(name: str) -> NodeType | None:
    """Look up a node kind by its schema name; None if not in the vocabulary."""
    return _NODE_TYPES.get(name)


def mark_type_for(name: str) -> MarkType | None:
    """Look up a mark kind by its schema name; None if not in the vocabulary."""
    return _MARK_TYPES.get(name)


def sort_marks(marks: list[Mark]) -> list[Mark]:
    """Marks in canonical nesting order (outermost first)."""
    return sorted(marks, key=lambda m: _MARK_ORDER[m.type])


@dataclass(frozen=True)
class Mark:
    """Span-level formatting on a text run."""

    type: MarkType
    attrs: dict[str, Scalar] | None = None


@dataclass
class TextRun:
    """A string with an ordered, duplicate-free set of marks."""

    text: str
    marks: list[Mark] = field(default_factory=list)

    def __post_init__(self) -> None:
        seen: set[MarkType] = set()
        unique: list[Mark] = []
        for mark in self.marks:
            if mark.type not in seen:
                seen.add(mark.type)
                unique.append(mark)
        self.marks = unique

    def sorted_marks(self) -> list[Mark]:
        return sort_marks(self.marks)


@dataclass
class Node:
    """Container node: a kind, scalar attributes and ordered children."""

    type: NodeType
    attrs: dict[str, Scalar] = field(default_factory=dict)
    content: list[Node | TextRun] = field(default_factory=list)

    def text(self) -> str:
        """Concatenated text of all descendant runs."""
        parts: list[str] = []
        for child in self.content:
            parts.append(child.text if isinstance(child, TextRun) else child.text())
        return "".join(parts)


@dataclass
class RootNode:
    """Top of a document tree; its children are block nodes."""

    content: list[Node] = field(default_factory=list)

    type: NodeType = field(default=NodeType.DOC, init=False)


def empty_paragraph() -> Node:
    return Node(NodeType.PARAGRAPH)


def empty_document() -> RootNode:
    """The canonical empty document: a single empty paragraph."""
    return RootNode([empty_paragraph()])


# ---------------------------------------------------------------------------
# Attribute coercion
# ---------------------------------------------------------------------------
def _as_int(default: int, low: int | None = None, high: int | None = None):
    def coerce(value: object) -> int:
        # The editor writes JS numbers, which come back as floats
        try:
            if isinstance(value, bool | int | float):
                number = int(value)
            else:
                number = int(float(str(value).strip()))
        except (ValueError, OverflowError):
            return default
        if low is not None and number < low:
            return low
        if high is not None and number > high:
            return high
        return number

    return coerce


def _as_bool(value: object) -> bool:
    if isinstance(value, bool | int | float):
        return bool(value)
    return str(value).strip().lower() in ("true", "1", "yes")


def _as_str(value: object) -> str:
    return str(value)


# ---------------------------------------------------------------------------
# HTML rendering (markdown side)
# ---------------------------------------------------------------------------
type HtmlRenderer = Callable[[Node, str], str]


def _wrap(tag: str) -> HtmlRenderer:
    return lambda _node, inner: f"<{tag}>{inner}</{tag}>"


def _render_heading(node: Node, inner: str) -> str:
    level = node.attrs.get("level", 1)
    return f"<h{level}>{inner}</h{level}>"


def _render_ordered_list(node: Node, inner: str) -> str:
    start = node.attrs.get("start", 1)
    if start != 1:
        return f'<ol start="{start}">{inner}</ol>'
    return f"<ol>{inner}</ol>"


def _render_task_item(node: Node, inner: str) -> str:
    checked = bool(node.attrs.get("checked", False))
    flag = "true" if checked else "false"
    box = '<input type="checkbox" checked>' if checked else '<input type="checkbox">'
    return (
        f'<li data-type="taskItem" data-checked="{flag}">'
        f"<label>{box}</label><div>{inner}</div></li>"
    )


def _render_code_block(node: Node, _inner: str) -> str:
    language = node.attrs.get("language")
    code = html.escape(node.text(), quote=False)
    if language:
        cls = html.escape(f"language-{language}")
        return f'<pre><code class="{cls}">{code}</code></pre>'
    return f"<pre><code>{code}</code></pre>"


@dataclass(frozen=True)
class NodeSpec:
    """Per-kind behaviour.

    Attributes:
        render_html: Renders the node given its already-rendered children.
        attrs: Known attributes and the coercion applied when decoding.
        defaults: Values assumed when a known attribute is absent.
        inline: True for nodes that live inside a text block.
    """

    render_html: HtmlRenderer
    attrs: Mapping[str, Callable[[object], Scalar]] = field(default_factory=dict)
    defaults: Mapping[str, Scalar] = field(default_factory=dict)
    inline: bool = False

    def coerce_attrs(self, raw: Mapping[str, object]) -> dict[str, Scalar]:
        """Convert stored attribute values back to their native types.

        Unknown scalar attributes pass through unchanged; anything else
        becomes a string.
        """
        result: dict[str, Scalar] = dict(self.defaults)
        for key, value in raw.items():
            if value is None:
                continue
            coerce = self.attrs.get(key)
            if coerce is not None:
                result[key] = coerce(value)
            elif isinstance(value, str | int | float | bool):
                result[key] = value
            else:
                result[key] = str(value)
        return result


NODE_SPECS: Mapping[NodeType, NodeSpec] = {
    NodeType.PARAGRAPH: NodeSpec(_wrap("p")),
    NodeType.HEADING: NodeSpec(
        _render_heading,
        attrs={"level": _as_int(1, 1, 6)},
        defaults={"level": 1},
    ),
    NodeType.BULLET_LIST: NodeSpec(_wrap("ul")),
    NodeType.ORDERED_LIST: NodeSpec(
        _render_ordered_list,
        attrs={"start": _as_int(1)},
        defaults={"start": 1},
    ),
    NodeType.LIST_ITEM: NodeSpec(_wrap("li")),
    NodeType.TASK_LIST: NodeSpec(
        lambda _node, inner: f'<ul data-type="taskList">{inner}</ul>'
    ),
    NodeType.TASK_ITEM: NodeSpec(
        _render_task_item,
        attrs={"checked": _as_bool},
        defaults={"checked": False},
    ),
    NodeType.CODE_BLOCK: NodeSpec(_render_code_block, attrs={"language": _as_str}),
    NodeType.BLOCKQUOTE: NodeSpec(_wrap("blockquote")),
    NodeType.HORIZONTAL_RULE: NodeSpec(lambda _node, _inner: "<hr>"),
    NodeType.HARD_BREAK: NodeSpec(lambda _node, _inner: "<br>", inline=True),
}


def spec_for(name: str) -> tuple[NodeType, NodeSpec] | None:
    """Resolve a schema name to its kind and spec; None means "drop it"."""
    node_type = node_type_for(name)
    if node_type is None:
        return None
    spec = NODE_SPECS.get(node_type)
    if spec is None:
        return None
    return node_type, spec
