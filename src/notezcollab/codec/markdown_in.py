"""Markdown → rich document tree.

markdown2 renders the note to HTML (GitHub-flavoured extras), then the DOM
is walked with selectolax and folded into ``Node``/``TextRun`` trees the
way the browser editor would parse that HTML.
"""

# Pattern: Functional Core (pure functions, no I/O)

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

import markdown2
from selectolax.lexbor import LexborHTMLParser

from notezcollab.codec.dom import children, is_text, own_checkbox, prefixed_class
from notezcollab.codec.nodes import (
    Mark,
    MarkType,
    Node,
    NodeType,
    RootNode,
    TextRun,
    empty_document,
    empty_paragraph,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

_MARKDOWN_EXTRAS: dict[str, Any] = {
    "fenced-code-blocks": None,
    # Emit the fence language as a class instead of pygments markup
    "highlightjs-lang": None,
    "task_list": None,
    "strike": None,
    "cuddled-lists": None,
    # GitHub-style: snake_case words are not emphasis
    "middle-word-em": False,
    "breaks": {"on_newline": True},
}

_HEADING_LEVELS = {f"h{n}": n for n in range(1, 7)}

_MARK_TAGS: dict[str, MarkType] = {
    "strong": MarkType.BOLD,
    "b": MarkType.BOLD,
    "em": MarkType.ITALIC,
    "i": MarkType.ITALIC,
    "s": MarkType.STRIKE,
    "del": MarkType.STRIKE,
    "strike": MarkType.STRIKE,
    "code": MarkType.CODE,
    "a": MarkType.LINK,
}

# Elements that start a new block when met inside flowing content
_BLOCK_TAGS = frozenset(
    (
        "p",
        *_HEADING_LEVELS,
        "ul",
        "ol",
        "li",
        "pre",
        "blockquote",
        "hr",
        "div",
        "section",
        "article",
        "table",
        "thead",
        "tbody",
        "tr",
        "td",
        "th",
        "dl",
        "dt",
        "dd",
    )
)

_SKIP_TAGS = frozenset(("script", "style", "noscript", "template", "img", "input"))

# Browser whitespace collapsing; nbsp is content, not whitespace
_WHITESPACE_RUN = re.compile(r"[ \t\r\n\f]+")
_TASK_PREFIX = re.compile(r"^\[([ xX])\]\s+")
_ESCAPED_TILDE = "\\~"

type Inline = TextRun | Node


def decode_markdown_to_tree(markdown: str) -> RootNode:
    """Parse markdown into a document tree.

    Never raises for any string input. Empty or whitespace-only input gives
    the canonical single empty paragraph.
    """
    if not markdown or not markdown.strip():
        return empty_document()

    try:
        html = markdown2.markdown(markdown, extras=_MARKDOWN_EXTRAS, safe_mode="escape")
    except Exception:
        logger.exception("markdown2 failed; keeping note as literal paragraphs")
        return _literal_document(markdown)

    tree = decode_html_to_tree(str(html))
    _unescape_tildes(tree.content)
    return tree


def decode_html_to_tree(html: str) -> RootNode:
    """Fold editor-style HTML into a document tree."""
    tree = LexborHTMLParser(html)
    root = tree.body if tree.body is not None else tree.root
    if root is None:
        return empty_document()

    blocks = _convert_blocks(root)
    if not blocks:
        return empty_document()
    return RootNode(blocks)


def _unescape_tildes(items: Iterable[Node | TextRun]) -> None:
    """Resolve ``\\~`` left by markdown2, which has no escape for ``~``."""
    for item in items:
        if isinstance(item, TextRun):
            if _ESCAPED_TILDE in item.text and not any(
                mark.type is MarkType.CODE for mark in item.marks
            ):
                item.text = item.text.replace(_ESCAPED_TILDE, "~")
        elif item.type is not NodeType.CODE_BLOCK:
            _unescape_tildes(item.content)


def _literal_document(markdown: str) -> RootNode:
    paragraphs = [
        Node(NodeType.PARAGRAPH, content=[TextRun(chunk.strip())])
        for chunk in re.split(r"\n\s*\n", markdown)
        if chunk.strip()
    ]
    return RootNode(paragraphs or [empty_paragraph()])


# ---------------------------------------------------------------------------
# Block level
# ---------------------------------------------------------------------------
def _convert_blocks(parent: Any) -> list[Node]:
    """Convert a node's children to blocks, wrapping stray inline content."""
    blocks: list[Node] = []
    pending: list[Inline] = []

    def flush() -> None:
        inline = _normalise_inline(pending)
        pending.clear()
        if inline:
            blocks.append(Node(NodeType.PARAGRAPH, content=inline))

    for child in children(parent):
        tag = child.tag
        if is_text(child) or tag not in _BLOCK_TAGS:
            pending.extend(_convert_inline(child, ()))
            continue
        flush()
        blocks.extend(_convert_block(child))
    flush()
    return blocks


def _convert_block(el: Any) -> list[Node]:
    tag = el.tag
    if tag == "p":
        inline = _normalise_inline(_convert_inline_children(el, ()))
        return [Node(NodeType.PARAGRAPH, content=inline)] if inline else []
    if tag in _HEADING_LEVELS:
        inline = _normalise_inline(_convert_inline_children(el, ()))
        return [Node(NodeType.HEADING, {"level": _HEADING_LEVELS[tag]}, inline)]
    if tag in ("ul", "ol"):
        return [_convert_list(el, ordered=tag == "ol")]
    if tag == "pre":
        return [_convert_code_block(el)]
    if tag == "blockquote":
        quoted = _convert_blocks(el) or [empty_paragraph()]
        return [Node(NodeType.BLOCKQUOTE, content=quoted)]
    if tag == "hr":
        return [Node(NodeType.HORIZONTAL_RULE)]
    # div, table, stray li and friends: keep their content, lose the wrapper
    return _convert_blocks(el)


def _convert_code_block(el: Any) -> Node:
    code = el.css_first("code")
    source = code if code is not None else el
    text = source.text(deep=True)
    if text.endswith("\n"):
        text = text[:-1]

    attrs: dict[str, str | int | float | bool] = {}
    language = _code_language(code)
    if language:
        attrs["language"] = language
    content: list[Node | TextRun] = [TextRun(text)] if text else []
    return Node(NodeType.CODE_BLOCK, attrs, content)


def _code_language(code: Any) -> str | None:
    if code is None:
        return None
    language = prefixed_class(code, "language-")
    if language:
        return language
    classes = (code.attributes.get("class") or "").split()
    return classes[0] if classes else None


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------
def _convert_list(el: Any, *, ordered: bool) -> Node:
    items = [_convert_list_item(li) for li in children(el) if li.tag == "li"]

    if not ordered and items and all(checked is not None for checked, _ in items):
        return Node(
            NodeType.TASK_LIST,
            content=[
                Node(NodeType.TASK_ITEM, {"checked": bool(checked)}, blocks)
                for checked, blocks in items
            ],
        )

    list_items: list[Node | TextRun] = []
    for checked, blocks in items:
        if checked is not None:
            _restore_task_prefix(blocks, checked=checked)
        list_items.append(Node(NodeType.LIST_ITEM, content=list(blocks)))

    if ordered:
        start = _parse_start(el.attributes.get("start"))
        return Node(NodeType.ORDERED_LIST, {"start": start}, list_items)
    return Node(NodeType.BULLET_LIST, content=list_items)


def _parse_start(value: str | None) -> int:
    try:
        return int(value) if value else 1
    except ValueError:
        return 1


def _convert_list_item(li: Any) -> tuple[bool | None, list[Node]]:
    """Convert an ``li``; the first element is the checkbox state or None."""
    checked: bool | None = None
    box = own_checkbox(li)
    if box is not None:
        checked = "checked" in box.attributes
        box.decompose()

    blocks = _convert_blocks(li)
    if checked is None:
        checked = _strip_task_prefix(blocks)
    if not blocks:
        blocks = [empty_paragraph()]
    return checked, blocks


def _strip_task_prefix(blocks: list[Node]) -> bool | None:
    """Detect a literal ``[ ]``/``[x]`` prefix left by the renderer."""
    if not blocks or blocks[0].type is not NodeType.PARAGRAPH:
        return None
    content = blocks[0].content
    if not content or not isinstance(content[0], TextRun) or content[0].marks:
        return None
    match = _TASK_PREFIX.match(content[0].text)
    if match is None:
        return None
    rest = content[0].text[match.end() :]
    if rest:
        content[0] = TextRun(rest)
    else:
        del content[0]
    return match.group(1) != " "


def _restore_task_prefix(blocks: list[Node], *, checked: bool) -> None:
    prefix = TextRun("[x] " if checked else "[ ] ")
    if blocks and blocks[0].type is NodeType.PARAGRAPH:
        blocks[0].content.insert(0, prefix)
        blocks[0].content[:] = _normalise_inline(blocks[0].content)
    else:
        blocks.insert(0, Node(NodeType.PARAGRAPH, content=[prefix]))


# ---------------------------------------------------------------------------
# Inline level
# ---------------------------------------------------------------------------
def _convert_inline_children(el: Any, marks: tuple[Mark, ...]) -> list[Inline]:
    items: list[Inline] = []
    for child in children(el):
        items.extend(_convert_inline(child, marks))
    return items


def _convert_inline(node: Any, marks: tuple[Mark, ...]) -> list[Inline]:
    if is_text(node):
        text = node.text_content or ""
        return [TextRun(_WHITESPACE_RUN.sub(" ", text), list(marks))] if text else []

    tag = node.tag
    if tag in _SKIP_TAGS or tag == "-comment":
        return []
    if tag == "br":
        return [Node(NodeType.HARD_BREAK)]

    mark_type = _MARK_TAGS.get(tag)
    if mark_type is not None:
        mark = _make_mark(mark_type, node)
        if mark is not None:
            marks = (*marks, mark)
    return _convert_inline_children(node, marks)


def _make_mark(mark_type: MarkType, el: Any) -> Mark | None:
    if mark_type is not MarkType.LINK:
        return Mark(mark_type)
    href = el.attributes.get("href")
    if not href:
        return None
    attrs: dict[str, str | int | float | bool] = {"href": href}
    title = el.attributes.get("title")
    if title:
        attrs["title"] = title
    return Mark(MarkType.LINK, attrs)


def _normalise_inline(items: list[Inline]) -> list[Inline]:
    """Collapse whitespace, trim the edges and merge equally-marked runs.

    Mirrors how a browser lays out a text block: whitespace at the start,
    at the end and around line breaks is not content.
    """
    result: list[Inline] = []
    at_line_start = True
    for item in items:
        if isinstance(item, Node):
            if result and isinstance(result[-1], TextRun):
                _rstrip_last(result)
            result.append(item)
            at_line_start = True
            continue

        text = item.text
        previous = result[-1] if result else None
        after_space = isinstance(previous, TextRun) and previous.text.endswith(" ")
        if at_line_start or after_space:
            text = text.lstrip(" ")
        if not text:
            continue
        if isinstance(previous, TextRun) and previous.marks == item.marks:
            result[-1] = TextRun(previous.text + text, list(item.marks))
        else:
            result.append(TextRun(text, list(item.marks)))
        at_line_start = False

    if result and isinstance(result[-1], TextRun):
        _rstrip_last(result)

    # A break with nothing after it (or before it) carries no content
    while result and isinstance(result[-1], Node):
        result.pop()
    while result and isinstance(result[0], Node):
        result.pop(0)
    return result


def _rstrip_last(result: list[Inline]) -> None:
    last = result[-1]
    assert isinstance(last, TextRun)
    text = last.text.rstrip(" ")
    if text:
        result[-1] = TextRun(text, list(last.marks))
    else:
        result.pop()
        if result and isinstance(result[-1], TextRun):
            _rstrip_last(result)
