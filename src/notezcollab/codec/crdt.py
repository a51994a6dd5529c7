"""Rich document tree ⇄ pycrdt XML fragment.

The fragment layout is the one y-prosemirror binds to: container nodes are
``XmlElement``s named after their node kind, text runs are ``XmlText``
leaves whose formatting attributes are keyed by mark name.
"""

# Pattern: Functional Core (pure functions, no I/O)

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pycrdt import Doc, XmlElement, XmlFragment, XmlText

from notezcollab.codec.nodes import (
    Mark,
    Node,
    RootNode,
    TextRun,
    empty_document,
    empty_paragraph,
    mark_type_for,
    sort_marks,
    spec_for,
)

if TYPE_CHECKING:
    from notezcollab.codec.nodes import Scalar

logger = logging.getLogger(__name__)

# Root fragment name the browser editor's collaboration extension uses
FRAGMENT_NAME = "default"


def _mark_attrs(mark: Mark) -> dict[str, Any]:
    return dict(mark.attrs) if mark.attrs else {}


def _append(children: Any, node: XmlElement | XmlText) -> Any:
    """Append ``node`` and return the integrated child."""
    children.append(node)
    return children[len(children) - 1]


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------
def encode_tree_to_crdt(tree: RootNode, doc: Doc | None = None) -> Doc:
    """Write ``tree`` into the ``"default"`` fragment of a CRDT document.

    Args:
        tree: Document to encode.
        doc: Existing empty document to write into; a new one by default.

    Returns:
        The document holding the encoded fragment.
    """
    if doc is None:
        doc = Doc()
    doc[FRAGMENT_NAME] = XmlFragment()
    fragment: XmlFragment = doc[FRAGMENT_NAME]

    blocks = tree.content or [empty_paragraph()]
    with doc.transaction():
        for block in blocks:
            _encode_node(fragment.children, block)
    return doc


def _encode_node(children: Any, node: Node | TextRun) -> None:
    if isinstance(node, TextRun):
        _encode_text(children, node)
        return

    element = _append(children, XmlElement(node.type.value))
    for key, value in node.attrs.items():
        if value is None:
            continue
        element.attributes[key] = value

    for child in node.content:
        _encode_node(element.children, child)


def _encode_text(children: Any, run: TextRun) -> None:
    if not run.text:
        return
    leaf = _append(children, XmlText())
    formatting = {mark.type.value: _mark_attrs(mark) for mark in run.sorted_marks()}
    leaf.insert(0, run.text, formatting or None)


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------
def decode_crdt_to_tree(doc: Doc) -> RootNode:
    """Read the ``"default"`` fragment back into a document tree.

    Unknown element tags are dropped along with their subtree.
    """
    fragment = _fragment_of(doc)
    blocks: list[Node] = []
    for child in fragment.children:
        decoded = _decode_child(child)
        blocks.extend(item for item in decoded if isinstance(item, Node))
    if not blocks:
        return empty_document()
    return RootNode(blocks)


def _fragment_of(doc: Doc) -> XmlFragment:
    try:
        return doc[FRAGMENT_NAME]
    except KeyError:
        doc[FRAGMENT_NAME] = XmlFragment()
        return doc[FRAGMENT_NAME]


def _decode_child(child: Any) -> list[Node | TextRun]:
    if isinstance(child, XmlText):
        return list(_decode_text(child))
    if not isinstance(child, XmlElement):
        return []

    tag = child.tag or ""
    resolved = spec_for(tag)
    if resolved is None:
        logger.debug("Dropping unknown CRDT node %r", tag)
        return []
    node_type, spec = resolved

    content: list[Node | TextRun] = []
    for grandchild in child.children:
        content.extend(_decode_child(grandchild))
    attrs = spec.coerce_attrs(dict(child.attributes))
    return [Node(node_type, attrs, content)]


def _decode_text(leaf: XmlText) -> list[TextRun]:
    runs: list[TextRun] = []
    for chunk, formatting in leaf.diff():
        if not isinstance(chunk, str) or not chunk:
            continue
        runs.append(TextRun(chunk, _decode_marks(formatting)))
    return runs


def _decode_marks(formatting: dict[str, Any] | None) -> list[Mark]:
    marks: list[Mark] = []
    for name, value in (formatting or {}).items():
        mark_type = mark_type_for(name)
        if mark_type is None:
            continue
        attrs = _scalar_attrs(value)
        marks.append(Mark(mark_type, attrs or None))
    return sort_marks(marks)


def _scalar_attrs(value: object) -> dict[str, Scalar]:
    if not isinstance(value, dict):
        return {}
    return {
        str(key): item
        for key, item in value.items()
        if isinstance(item, str | int | float | bool)
    }


# ---------------------------------------------------------------------------
# Binary state
# ---------------------------------------------------------------------------
def load_crdt_state(state: bytes) -> Doc:
    """Build a document from a stored update.

    Raises:
        TypeError: ``state`` is not a binary value.
    """
    if not isinstance(state, bytes | bytearray | memoryview):
        msg = f"CRDT state must be bytes, got {type(state).__name__}"
        raise TypeError(msg)
    doc = Doc()
    # Declare the root type before applying so it comes back as a fragment
    doc[FRAGMENT_NAME] = XmlFragment()
    doc.apply_update(bytes(state))
    return doc


def dump_crdt_state(doc: Doc) -> bytes:
    """Full update of ``doc`` in the Yjs v1 encoding."""
    return doc.get_update()
