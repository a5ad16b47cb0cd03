import logging

from CommentBlocks import styles
from CommentBlocks.comment_models import list_item_prefix, substring_or_newline, transform, walk
from CommentBlocks.markdown_parser import MarkdownParseError
from CommentBlocks.model import (
    AttributeSet,
    CodeBlock,
    Element,
    ElementType,
    ImageBlock,
    ParsedDocument,
    TextBlock,
)

WIDTH = 320.0


def _kinds(blocks):
    return [type(block).__name__ for block in blocks]


def _document(source, elements):
    parents = {}

    def register(element):
        for child in element.children:
            parents[child.id] = element
            register(child)

    for element in elements:
        register(element)
    return ParsedDocument(markdown=source, elements=elements, parents=parents)


def test_empty_input_yields_no_blocks():
    assert transform("", WIDTH) == []
    assert transform("   \n\n  ", WIDTH) == []


def test_bulleted_list_is_one_text_block():
    blocks = transform("- a\n- b", WIDTH)
    assert _kinds(blocks) == ["TextBlock"]
    assert blocks[0].text == "• a\n• b"
    assert blocks[0].container_width == WIDTH


def test_numbered_list_is_one_text_block():
    blocks = transform("1. x\n2. y", WIDTH)
    assert _kinds(blocks) == ["TextBlock"]
    assert blocks[0].text == "1. x\n2. y"


def test_code_block_splits_text():
    blocks = transform("before\n```\ncode\n```\nafter", WIDTH)
    assert _kinds(blocks) == ["TextBlock", "CodeBlock", "TextBlock"]
    assert blocks[0].text == "before"
    assert blocks[1] == CodeBlock(raw_text="code", language=None)
    assert blocks[2].text == "after"


def test_image_splits_text():
    blocks = transform("see ![alt](url) here", WIDTH)
    assert _kinds(blocks) == ["TextBlock", "ImageBlock", "TextBlock"]
    assert blocks[0].text == "see"
    assert blocks[1] == ImageBlock(url="url", alt_text="alt")
    assert blocks[2].text == "here"


def test_consecutive_opaque_blocks_get_empty_text_placeholders():
    blocks = transform("```\na\n```\n```js\nb\n```", WIDTH)
    assert _kinds(blocks) == ["TextBlock", "CodeBlock", "TextBlock", "CodeBlock"]
    assert blocks[0].is_empty and blocks[2].is_empty
    assert blocks[3].language == "js"


def test_no_adjacent_text_blocks_and_trimmed_edges():
    md_text = "# Title\n\nintro\n\n![a](b.png)\n\n- one\n- two\n\n```\nx\n```\n\n> quote\n"
    blocks = transform(md_text, WIDTH)
    for previous, current in zip(blocks, blocks[1:]):
        assert not (isinstance(previous, TextBlock) and isinstance(current, TextBlock))
    for block in blocks:
        if isinstance(block, TextBlock):
            assert block.text == block.text.strip()
    assert _kinds(blocks) == ["TextBlock", "ImageBlock", "TextBlock", "CodeBlock", "TextBlock"]
    assert blocks[0].text == "Title\nintro"
    assert blocks[2].text == "• one\n• two"
    assert blocks[4].text == "quote"


def test_loose_list_item_keeps_following_paragraphs():
    blocks = transform("- a\n\n  more\n- b", WIDTH)
    assert blocks[0].text == "• a\nmore\n• b"


def test_task_list_renders_markers():
    blocks = transform("- [ ] todo\n- [x] done", WIDTH)
    assert blocks[0].text == "• [ ] todo\n• [x] done"


def test_entities_and_escapes_render_decoded():
    blocks = transform("AT&amp;T \\*x\\*", WIDTH)
    assert blocks[0].text == "AT&T *x*"


def test_strong_text_gets_bold_run():
    blocks = transform("**bold** plain", WIDTH)
    runs = blocks[0].runs
    assert [run.text for run in runs] == ["bold", " plain"]
    assert runs[0].attributes[styles.BOLD] is True
    assert styles.BOLD not in runs[1].attributes


def test_nested_list_indent_follows_level():
    blocks = transform("- a\n  - b", WIDTH)
    assert blocks[0].text == "• a\n• b"
    indents = {run.text.strip(): run.attributes.get(styles.HEAD_INDENT) for run in blocks[0].runs}
    assert indents["• a"] == styles.LIST_INDENT_PT
    assert indents["• b"] == styles.LIST_INDENT_PT * 2


def test_prefix_uses_item_attributes():
    def derive(current, element_type, list_level):
        if element_type is ElementType.LIST_ITEM:
            return current.merged(color="red")
        return current

    blocks = transform("- a", WIDTH, base_attributes=AttributeSet(color="black"), derive=derive)
    assert len(blocks[0].runs) == 1
    assert blocks[0].runs[0].text == "• a"
    assert blocks[0].runs[0].attributes["color"] == "red"


def test_derive_receives_list_level():
    calls = []

    def derive(current, element_type, list_level):
        calls.append((element_type, list_level))
        return current

    transform("text\n\n- a\n  1. b", WIDTH, base_attributes=AttributeSet(), derive=derive)
    assert (ElementType.PARAGRAPH, 0) in calls
    assert (ElementType.BULLETED_LIST, 1) in calls
    assert (ElementType.NUMBERED_LIST, 2) in calls
    assert (ElementType.LIST_ITEM, 2) in calls


def test_parser_failure_yields_empty(caplog):
    def failing_parser(text):
        raise MarkdownParseError("boom", line=1)

    with caplog.at_level(logging.WARNING):
        assert transform("- a\n- b", WIDTH, parser=failing_parser) == []
    assert "boom" in caplog.text


def test_parser_without_document_yields_empty():
    assert transform("anything", WIDTH, parser=lambda text: None) == []


def test_custom_extractors_are_used():
    blocks = transform(
        "```sh\nls\n```",
        WIDTH,
        extract_code_block=lambda element, markdown: CodeBlock(raw_text="custom", language=element.language),
        extract_image=lambda element: ImageBlock(url="never"),
    )
    assert blocks[1] == CodeBlock(raw_text="custom", language="sh")


def test_transform_is_deterministic():
    md_text = "**a** _b_\n\n1. c\n2. d\n\n![e](f)"
    assert transform(md_text, WIDTH) == transform(md_text, WIDTH)


def test_list_item_without_bullet_parent_or_position_has_no_prefix():
    item = Element(id=2, type=ElementType.LIST_ITEM, children=[Element(id=3, type=ElementType.NONE, range=(0, 4))])
    numbered = Element(id=1, type=ElementType.NUMBERED_LIST, children=[item])
    document = _document("item", [numbered])
    assert list_item_prefix(document, item) == ""
    blocks = walk(document, AttributeSet(), WIDTH)
    assert [block.text for block in blocks] == ["item"]


def test_zero_length_range_becomes_newline():
    assert substring_or_newline("ab", (1, 1)) == "\n"
    paragraph = Element(
        id=1,
        type=ElementType.PARAGRAPH,
        children=[
            Element(id=2, type=ElementType.NONE, range=(0, 1)),
            Element(id=3, type=ElementType.NONE, range=(1, 1)),
            Element(id=4, type=ElementType.NONE, range=(1, 2)),
        ],
    )
    blocks = walk(_document("ab", [paragraph]), AttributeSet(), WIDTH)
    assert blocks[0].text == "a\nb"


def test_unknown_elements_are_traversed():
    other = Element(id=1, type=ElementType.OTHER, children=[Element(id=2, type=ElementType.NONE, range=(0, 5))])
    blocks = walk(_document("hello", [other]), AttributeSet(), WIDTH)
    assert blocks[0].text == "hello"


def test_nesting_limit_stops_walk(caplog):
    leaf = Element(id=10, type=ElementType.NONE, range=(1, 2))
    for element_id in range(5, 9):
        leaf = Element(id=element_id, type=ElementType.OTHER, children=[leaf])
    paragraph = Element(
        id=1,
        type=ElementType.PARAGRAPH,
        children=[Element(id=2, type=ElementType.NONE, range=(0, 1)), leaf],
    )
    with caplog.at_level(logging.WARNING):
        blocks = walk(_document("ab", [paragraph]), AttributeSet(), WIDTH, max_depth=2)
    assert [block.text for block in blocks] == ["a"]
    assert "truncating" in caplog.text


def test_blocks_inside_tight_item_start_new_lines():
    assert transform("- a\n  ***\n  b", WIDTH)[0].text == "• a\nb"
    assert transform("- a\n  # h\n  b", WIDTH)[0].text == "• a\nh\nb"


def test_multiline_code_span_renders_on_one_line():
    blocks = transform("x `a\nb` y", WIDTH)
    assert blocks[0].text == "x a b y"
    code_run = next(run for run in blocks[0].runs if "a b" in run.text)
    assert code_run.attributes[styles.FONT_NAME] == styles.CODE_FONT_NAME


def test_headers_share_one_size():
    blocks = transform("# big\n\n### small", WIDTH)
    assert len(blocks[0].runs) == 1
    assert blocks[0].text == "big\nsmall"
    assert blocks[0].runs[0].attributes[styles.FONT_SIZE] == styles.HEADER_FONT_SIZE_PT
