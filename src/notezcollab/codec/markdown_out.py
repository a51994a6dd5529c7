"""Rich document tree → markdown.

The tree is rendered to the HTML the browser editor would produce, and
that HTML is converted to markdown by walking it with selectolax. Task
items are recognised from ``data-type="taskItem"`` or from a checkbox
inside the ``li``, so HTML from either source renders as ``- [x] ...``.
"""

# Pattern: Functional Core (pure functions, no I/O)

from __future__ import annotations

import html
import re
from typing import Any

from selectolax.lexbor import LexborHTMLParser

from notezcollab.codec.dom import children, is_text, own_checkbox, prefixed_class
from notezcollab.codec.nodes import (
    NODE_SPECS,
    Mark,
    MarkType,
    Node,
    RootNode,
    TextRun,
)

_INDENT = "    "

_BLOCK_SEPARATOR = "\n\n"

_HEADING_LEVELS = {f"h{n}": n for n in range(1, 7)}

_BLOCK_TAGS = frozenset(
    ("p", *_HEADING_LEVELS, "ul", "ol", "li", "pre", "blockquote", "hr", "div")
)

_EMPHASIS = {
    "strong": "**",
    "b": "**",
    "em": "*",
    "i": "*",
    "s": "~~",
    "del": "~~",
    "strike": "~~",
}

_WHITESPACE_RUN = re.compile(r"[ \t\r\n\f]+")
# Underscores between word characters stay literal (no intraword emphasis)
_INLINE_SPECIALS = re.compile(r"[\\`*\[\]~]|(?<![^\W_])_|_(?![^\W_])")
# Text at the start of a line that markdown would read as block syntax
_LINE_START_SYNTAX = re.compile(
    r"^( *)(#|>|[-+](?= |$)|\d+(?=[.)](?: |$)))", re.MULTILINE
)


# ---------------------------------------------------------------------------
# Tree → HTML
# ---------------------------------------------------------------------------
_MARK_OPEN = {
    MarkType.BOLD: "<strong>",
    MarkType.ITALIC: "<em>",
    MarkType.STRIKE: "<s>",
    MarkType.CODE: "<code>",
}
_MARK_CLOSE = {
    MarkType.LINK: "</a>",
    MarkType.BOLD: "</strong>",
    MarkType.ITALIC: "</em>",
    MarkType.STRIKE: "</s>",
    MarkType.CODE: "</code>",
}


def _open_mark(mark: Mark) -> str:
    if mark.type is not MarkType.LINK:
        return _MARK_OPEN[mark.type]
    attrs = mark.attrs or {}
    href = html.escape(str(attrs.get("href", "")))
    title = attrs.get("title")
    if title:
        return f'<a href="{href}" title="{html.escape(str(title))}">'
    return f'<a href="{href}">'


def render_html(tree: RootNode) -> str:
    """Render a document tree as editor-shaped HTML."""
    return "".join(_render_node(block) for block in tree.content)


def _render_node(node: Node) -> str:
    spec = NODE_SPECS.get(node.type)
    if spec is None:
        return ""
    return spec.render_html(node, _render_content(node.content))


def _render_content(content: list[Node | TextRun]) -> str:
    """Render children, keeping marks shared by neighbouring runs open."""
    parts: list[str] = []
    active: list[Mark] = []

    def close_from(depth: int) -> None:
        while len(active) > depth:
            parts.append(_MARK_CLOSE[active.pop().type])

    for child in content:
        if isinstance(child, Node):
            close_from(0)
            parts.append(_render_node(child))
            continue

        marks = child.sorted_marks()
        keep = 0
        while keep < len(active) and keep < len(marks) and active[keep] == marks[keep]:
            keep += 1
        close_from(keep)
        for mark in marks[keep:]:
            parts.append(_open_mark(mark))
            active.append(mark)
        parts.append(html.escape(child.text, quote=False))
    close_from(0)
    return "".join(parts)


# ---------------------------------------------------------------------------
# HTML → markdown
# ---------------------------------------------------------------------------
def encode_tree_to_markdown(tree: RootNode) -> str:
    """Serialise a document tree to markdown.

    An empty document (one empty paragraph) serialises to ``""``.
    """
    return html_to_markdown(render_html(tree))


def html_to_markdown(source: str) -> str:
    """Convert editor HTML to markdown."""
    parser = LexborHTMLParser(source)
    root = parser.body if parser.body is not None else parser.root
    if root is None:
        return ""
    blocks = _blocks(root)
    if not blocks:
        return ""
    return _BLOCK_SEPARATOR.join(blocks) + "\n"


def _blocks(parent: Any) -> list[str]:
    """Markdown for each block child of ``parent``; empty blocks are skipped."""
    blocks: list[str] = []
    pending: list[Any] = []

    def flush() -> None:
        text = _finish_inline("".join(_inline(node) for node in pending))
        pending.clear()
        if text:
            blocks.append(text)

    for child in children(parent):
        if is_text(child) or child.tag not in _BLOCK_TAGS:
            pending.append(child)
            continue
        flush()
        if child.tag == "div":
            blocks.extend(_blocks(child))
            continue
        block = _block(child)
        if block:
            blocks.append(block)
    flush()
    return blocks


def _block(el: Any) -> str:
    tag = el.tag
    if tag == "p":
        return _finish_inline(_inline_children(el))
    if tag in _HEADING_LEVELS:
        text = _finish_inline(_inline_children(el))
        return f"{'#' * _HEADING_LEVELS[tag]} {text}" if text else ""
    if tag in ("ul", "ol"):
        return _list(el, ordered=tag == "ol")
    if tag == "pre":
        return _code_block(el)
    if tag == "blockquote":
        inner = _BLOCK_SEPARATOR.join(_blocks(el))
        return "\n".join(f"> {line}" if line else ">" for line in inner.split("\n"))
    if tag == "hr":
        return "---"
    return _BLOCK_SEPARATOR.join(_blocks(el))


def _code_block(el: Any) -> str:
    code = el.css_first("code")
    source = code if code is not None else el
    text = source.text(deep=True)
    if text.endswith("\n"):
        text = text[:-1]
    language = prefixed_class(code, "language-") if code is not None else None

    longest = max((len(run) for run in re.findall(r"`+", text)), default=0)
    fence = "`" * max(3, longest + 1)
    return f"{fence}{language or ''}\n{text}\n{fence}"


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------
def _list(el: Any, *, ordered: bool) -> str:
    number = _list_start(el) if ordered else 0
    lines: list[str] = []
    for li in children(el):
        if li.tag != "li":
            continue
        if ordered:
            marker = f"{number}. "
            number += 1
        else:
            marker = "- "
        task_state = _task_state(li)
        if task_state is not None:
            marker += "[x] " if task_state else "[ ] "
        lines.append(_list_item(li, marker))
    return "\n".join(lines)


def _list_start(el: Any) -> int:
    try:
        return int(el.attributes.get("start") or 1)
    except ValueError:
        return 1


def _task_state(li: Any) -> bool | None:
    """Checked state of a task item, or None when ``li`` is not one.

    ``data-checked`` decides for editor-rendered items; a checkbox inside the
    item, when present, takes precedence.
    """
    is_task = li.attributes.get("data-type") == "taskItem"
    checked = li.attributes.get("data-checked") == "true"
    box = own_checkbox(li)
    if box is not None:
        return "checked" in box.attributes
    return checked if is_task else None


def _list_item(li: Any, marker: str) -> str:
    blocks = _blocks(li)
    if not blocks:
        return marker.rstrip()

    first, *rest = blocks
    text = marker + _indent_continuation(first)
    for block in rest:
        # Nested lists stay tight under their parent line
        separator = "\n" if _is_list_markdown(block) else _BLOCK_SEPARATOR
        text += separator + _INDENT + _indent_continuation(block)
    return text


def _is_list_markdown(block: str) -> bool:
    return bool(re.match(r"(- |\d+\. )", block))


def _indent_continuation(block: str) -> str:
    return block.replace("\n", "\n" + _INDENT)


# ---------------------------------------------------------------------------
# Inline content
# ---------------------------------------------------------------------------
def _inline_children(el: Any) -> str:
    return "".join(_inline(child) for child in children(el))


def _inline(node: Any) -> str:
    if is_text(node):
        text = _WHITESPACE_RUN.sub(" ", node.text_content or "")
        return _INLINE_SPECIALS.sub(lambda m: "\\" + m.group(0), text)

    tag = node.tag
    if tag == "br":
        return "  \n"
    if tag in ("input", "label", "img", "script", "style", "-comment"):
        return ""
    if tag == "code":
        return _code_span(node.text(deep=True))
    if tag == "a":
        return _link(node)
    delimiter = _EMPHASIS.get(tag)
    if delimiter is not None:
        return _emphasis(_inline_children(node), delimiter)
    if tag in _BLOCK_TAGS:
        return _finish_inline(_inline_children(node))
    return _inline_children(node)


def _emphasis(inner: str, delimiter: str) -> str:
    """Wrap ``inner`` in ``delimiter``, keeping edge whitespace outside."""
    core = inner.strip(" ")
    if not core:
        return inner
    leading = inner[: len(inner) - len(inner.lstrip(" "))]
    trailing = inner[len(inner.rstrip(" ")) :]
    return f"{leading}{delimiter}{core}{delimiter}{trailing}"


def _code_span(text: str) -> str:
    text = text.replace("\n", " ")
    if not text:
        return ""
    longest = max((len(run) for run in re.findall(r"`+", text)), default=0)
    ticks = "`" * (longest + 1)
    if text.startswith("`") or text.endswith("`"):
        text = f" {text} "
    return f"{ticks}{text}{ticks}"


def _link(el: Any) -> str:
    label = _inline_children(el).strip()
    href = el.attributes.get("href") or ""
    if not href:
        return label
    if re.search(r"[\s()<>]", href):
        href = f"<{href}>"
    title = el.attributes.get("title")
    if title:
        escaped = title.replace('"', '\\"')
        return f'[{label}]({href} "{escaped}")'
    return f"[{label}]({href})"


def _finish_inline(text: str) -> str:
    """Trim a paragraph's markdown and escape accidental block syntax."""
    # Every newline in inline markdown is a hard break
    lines = [line.strip(" ") for line in text.strip(" \n").split("\n")]
    joined = "  \n".join(lines)
    return _LINE_START_SYNTAX.sub(_escape_line_start, joined)


def _escape_line_start(match: re.Match[str]) -> str:
    indent, syntax = match.group(1), match.group(2)
    if syntax[0].isdigit():
        # "1. text" → "1\. text"
        return f"{indent}{syntax}\\"
    return f"{indent}\\{syntax}"

