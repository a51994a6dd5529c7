"""Document tree codec: markdown ⇄ rich document tree ⇄ CRDT document.

Every function here is pure and synchronous. Malformed markdown and
unknown CRDT nodes degrade to best-effort output instead of raising.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from notezcollab.codec.crdt import (
    FRAGMENT_NAME,
    decode_crdt_to_tree,
    dump_crdt_state,
    encode_tree_to_crdt,
    load_crdt_state,
)
from notezcollab.codec.markdown_in import decode_markdown_to_tree
from notezcollab.codec.markdown_out import encode_tree_to_markdown
from notezcollab.codec.nodes import Mark, MarkType, Node, NodeType, RootNode, TextRun

if TYPE_CHECKING:
    from pycrdt import Doc


def markdown_to_crdt(markdown: str) -> Doc:
    """Parse markdown straight into a new CRDT document."""
    return encode_tree_to_crdt(decode_markdown_to_tree(markdown))


def crdt_to_markdown(doc: Doc) -> str:
    """Serialise a CRDT document's fragment as markdown."""
    return encode_tree_to_markdown(decode_crdt_to_tree(doc))


def markdown_to_crdt_state(markdown: str) -> bytes:
    """Markdown → binary CRDT update, ready to store as a snapshot."""
    return dump_crdt_state(markdown_to_crdt(markdown))


def crdt_state_to_markdown(state: bytes) -> str:
    """Binary CRDT update → markdown.

    Raises:
        TypeError: ``state`` is not a binary value.
    """
    return crdt_to_markdown(load_crdt_state(state))


__all__ = [
    "FRAGMENT_NAME",
    "Mark",
    "MarkType",
    "Node",
    "NodeType",
    "RootNode",
    "TextRun",
    "crdt_state_to_markdown",
    "crdt_to_markdown",
    "decode_crdt_to_tree",
    "decode_markdown_to_tree",
    "encode_tree_to_crdt",
    "encode_tree_to_markdown",
    "load_crdt_state",
    "markdown_to_crdt",
    "markdown_to_crdt_state",
]
