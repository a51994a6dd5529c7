"""Unit tests for serialising document trees (and editor HTML) to markdown."""

from __future__ import annotations

from notezcollab.codec.markdown_out import (
    encode_tree_to_markdown,
    html_to_markdown,
    render_html,
)
from notezcollab.codec.nodes import (
    Mark,
    MarkType,
    Node,
    NodeType,
    RootNode,
    TextRun,
    empty_document,
)
from tests.helpers.trees import (
    bullet_list,
    doc,
    heading,
    link,
    paragraph,
    task_list,
    text,
)


class TestRenderHtml:
    """Tree -> editor-shaped HTML."""

    def test_shared_marks_stay_open(self) -> None:
        tree = doc(
            paragraph(
                text("a", MarkType.BOLD),
                text("b", MarkType.BOLD, MarkType.ITALIC),
            )
        )
        assert render_html(tree) == "<p><strong>a<em>b</em></strong></p>"

    def test_text_is_escaped(self) -> None:
        assert render_html(doc(paragraph(text("a<b>&")))) == "<p>a&lt;b&gt;&amp;</p>"

    def test_task_item_shape(self) -> None:
        html = render_html(doc(task_list((True, "x"))))
        assert 'data-type="taskItem"' in html
        assert 'data-checked="true"' in html
        assert "<input type=\"checkbox\" checked>" in html


class TestEmpty:
    def test_empty_document(self) -> None:
        assert encode_tree_to_markdown(empty_document()) == ""

    def test_no_blocks(self) -> None:
        assert encode_tree_to_markdown(RootNode()) == ""

    def test_empty_html(self) -> None:
        assert html_to_markdown("") == ""


class TestBlocks:
    """Block-level output."""

    def test_heading(self) -> None:
        assert encode_tree_to_markdown(doc(heading(2, "Plan"))) == "## Plan\n"

    def test_paragraphs_separated_by_blank_line(self) -> None:
        tree = doc(paragraph(text("one")), paragraph(text("two")))
        assert encode_tree_to_markdown(tree) == "one\n\ntwo\n"

    def test_horizontal_rule(self) -> None:
        tree = doc(
            paragraph(text("above")),
            Node(NodeType.HORIZONTAL_RULE),
            paragraph(text("below")),
        )
        assert encode_tree_to_markdown(tree) == "above\n\n---\n\nbelow\n"

    def test_blockquote(self) -> None:
        tree = doc(
            Node(
                NodeType.BLOCKQUOTE,
                content=[paragraph(text("one")), paragraph(text("two"))],
            )
        )
        assert encode_tree_to_markdown(tree) == "> one\n>\n> two\n"

    def test_code_block_with_language(self) -> None:
        block = Node(NodeType.CODE_BLOCK, {"language": "python"}, [TextRun("x = 1")])
        tree = doc(block)
        assert encode_tree_to_markdown(tree) == "```python\nx = 1\n```\n"

    def test_code_block_fence_longer_than_content_ticks(self) -> None:
        tree = doc(Node(NodeType.CODE_BLOCK, content=[TextRun("```\nin\n```")]))
        assert encode_tree_to_markdown(tree) == "````\n```\nin\n```\n````\n"

    def test_code_block_keeps_markdown_characters(self) -> None:
        tree = doc(Node(NodeType.CODE_BLOCK, content=[TextRun("a * b <c>")]))
        assert encode_tree_to_markdown(tree) == "```\na * b <c>\n```\n"


class TestLists:
    """List output."""

    def test_bullet_list(self) -> None:
        tree = doc(bullet_list([paragraph(text("a"))], [paragraph(text("b"))]))
        assert encode_tree_to_markdown(tree) == "- a\n- b\n"

    def test_nested_list_indented(self) -> None:
        tree = doc(
            bullet_list(
                [
                    paragraph(text("parent")),
                    bullet_list([paragraph(text("child"))]),
                ]
            )
        )
        assert encode_tree_to_markdown(tree) == "- parent\n    - child\n"

    def test_ordered_list_start(self) -> None:
        tree = doc(
            Node(
                NodeType.ORDERED_LIST,
                {"start": 3},
                [
                    Node(NodeType.LIST_ITEM, content=[paragraph(text("c"))]),
                    Node(NodeType.LIST_ITEM, content=[paragraph(text("d"))]),
                ],
            )
        )
        assert encode_tree_to_markdown(tree) == "3. c\n4. d\n"

    def test_task_list(self) -> None:
        tree = doc(task_list((False, "buy milk"), (True, "pay rent")))
        assert encode_tree_to_markdown(tree) == "- [ ] buy milk\n- [x] pay rent\n"

    def test_item_with_two_paragraphs(self) -> None:
        tree = doc(bullet_list([paragraph(text("a")), paragraph(text("b"))]))
        assert encode_tree_to_markdown(tree) == "- a\n\n    b\n"


class TestInline:
    """Marks, links, breaks and escaping."""

    def test_marks(self) -> None:
        tree = doc(
            paragraph(
                text("b", MarkType.BOLD),
                text(" "),
                text("i", MarkType.ITALIC),
                text(" "),
                text("s", MarkType.STRIKE),
                text(" "),
                text("c", MarkType.CODE),
            )
        )
        assert encode_tree_to_markdown(tree) == "**b** *i* ~~s~~ `c`\n"

    def test_bold_italic(self) -> None:
        tree = doc(paragraph(text("both", MarkType.BOLD, MarkType.ITALIC)))
        assert encode_tree_to_markdown(tree) == "***both***\n"

    def test_edge_whitespace_moves_outside_emphasis(self) -> None:
        tree = doc(paragraph(text("bold ", MarkType.BOLD), text("x")))
        assert encode_tree_to_markdown(tree) == "**bold** x\n"

    def test_code_span_with_backtick(self) -> None:
        tree = doc(paragraph(text("a`b", MarkType.CODE)))
        assert encode_tree_to_markdown(tree) == "``a`b``\n"

    def test_link(self) -> None:
        tree = doc(paragraph(link("site", "https://example.com")))
        assert encode_tree_to_markdown(tree) == "[site](https://example.com)\n"

    def test_link_with_space_and_title(self) -> None:
        mark = Mark(MarkType.LINK, {"href": "a b.html", "title": "T"})
        tree = doc(paragraph(TextRun("x", [mark])))
        assert encode_tree_to_markdown(tree) == '[x](<a b.html> "T")\n'

    def test_hard_break(self) -> None:
        tree = doc(
            paragraph(text("first"), Node(NodeType.HARD_BREAK), text("second"))
        )
        assert encode_tree_to_markdown(tree) == "first  \nsecond\n"

    def test_inline_specials_escaped(self) -> None:
        tree = doc(paragraph(text("*not* [a] snake_case")))
        assert encode_tree_to_markdown(tree) == "\\*not\\* \\[a\\] snake_case\n"

    def test_tilde_escaped(self) -> None:
        tree = doc(paragraph(text("~~x~~")))
        assert encode_tree_to_markdown(tree) == "\\~\\~x\\~\\~\n"

    def test_underscore_at_word_edge_escaped(self) -> None:
        tree = doc(paragraph(text("_lead trail_ a__b")))
        assert encode_tree_to_markdown(tree) == "\\_lead trail\\_ a\\_\\_b\n"

    def test_line_start_syntax_escaped(self) -> None:
        assert encode_tree_to_markdown(doc(paragraph(text("# no")))) == "\\# no\n"
        assert encode_tree_to_markdown(doc(paragraph(text("- no")))) == "\\- no\n"
        assert encode_tree_to_markdown(doc(paragraph(text("> no")))) == "\\> no\n"
        assert encode_tree_to_markdown(doc(paragraph(text("1. no")))) == "1\\. no\n"

    def test_mid_line_syntax_left_alone(self) -> None:
        tree = doc(paragraph(text("a - b # c 1. d")))
        assert encode_tree_to_markdown(tree) == "a - b # c 1. d\n"


class TestHtmlTaskDetection:
    """Task items from HTML that was not rendered from a tree."""

    def test_checkbox_without_data_type(self) -> None:
        source = '<ul><li><input type="checkbox" checked> done</li></ul>'
        assert html_to_markdown(source) == "- [x] done\n"

    def test_checkbox_overrides_data_checked(self) -> None:
        source = (
            '<ul><li data-type="taskItem" data-checked="false">'
            '<label><input type="checkbox" checked></label><div><p>x</p></div>'
            "</li></ul>"
        )
        assert html_to_markdown(source) == "- [x] x\n"

    def test_data_checked_without_checkbox(self) -> None:
        source = (
            '<ul><li data-type="taskItem" data-checked="true"><p>x</p></li></ul>'
        )
        assert html_to_markdown(source) == "- [x] x\n"

    def test_nested_checkbox_not_claimed_by_parent(self) -> None:
        source = (
            "<ul><li>parent<ul>"
            '<li><input type="checkbox"> child</li>'
            "</ul></li></ul>"
        )
        assert html_to_markdown(source) == "- parent\n    - [ ] child\n"
