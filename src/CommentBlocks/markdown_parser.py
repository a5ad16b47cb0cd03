from __future__ import annotations

import itertools
import logging
import re
from typing import Iterable, List

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.tasklists import tasklists_plugin

from .model import Element, ElementType, ParsedDocument

logger = logging.getLogger(__name__)

_CHECKBOX_RE = re.compile(r"\[[ xX]\]")

_CONTAINER_TYPES = {
    "paragraph": ElementType.PARAGRAPH,
    "blockquote": ElementType.BLOCK_QUOTE,
    "em": ElementType.EM,
    "strong": ElementType.STRONG,
    "s": ElementType.STRIKETHROUGH,
    "table": ElementType.TABLE,
    "thead": ElementType.TABLE_HEADER,
    "tbody": ElementType.TABLE_BODY,
    "tr": ElementType.TABLE_ROW,
    "th": ElementType.TABLE_HEADER_CELL,
    "td": ElementType.TABLE_ROW_CELL,
}


class MarkdownParseError(Exception):
    """Raised when markdown-it cannot turn the input into a syntax tree."""

    def __init__(self, message: str, line: int | None = None) -> None:
        super().__init__(message if line is None else f"{message} (line {line})")
        self.message = message
        self.line = line


def create_parser() -> MarkdownIt:
    """CommonMark with the GitHub comment extensions (tables, strikethrough, task lists)."""
    md = MarkdownIt("commonmark").enable(["table", "strikethrough"]).use(tasklists_plugin)
    # keep escapes and entities as separate tokens so text tokens stay verbatim
    md.disable("text_join", ignoreInvalid=True)
    return md


def normalize_source(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n").replace("\0", "�")


def parse_markdown(text: str) -> ParsedDocument:
    source = normalize_source(text)
    try:
        root = SyntaxTreeNode(create_parser().parse(source))
    except Exception as exc:
        raise MarkdownParseError(f"Error parsing markdown: {exc}") from exc
    builder = _TreeBuilder(source)
    elements = builder.convert_all(root.children)
    return ParsedDocument(markdown=source, elements=elements, parents=builder.parents)


class _TreeBuilder:
    """Folds markdown-it syntax nodes into Elements with ranges into the source.

    markdown-it only keeps line maps, so character ranges are recovered with a
    cursor that moves forward through the source in document order.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.cursor = 0
        self.parents: dict[int, Element] = {}
        self._ids = itertools.count(1)
        self._line_offsets = [0] + [match.end() for match in re.finditer("\n", source)]

    def convert_all(self, nodes: Iterable[SyntaxTreeNode]) -> List[Element]:
        elements: List[Element] = []
        for node in nodes:
            elements.extend(self._convert(node))
        return elements

    def _convert(self, node: SyntaxTreeNode) -> List[Element]:
        self._seek_line(node)
        kind = node.type
        if kind == "inline":
            return self.convert_all(node.children)
        if kind == "text":
            return [self._leaf(node.content)]
        if kind == "text_special":
            return [self._special(node)]
        if kind in ("softbreak", "hardbreak"):
            return [self._new(ElementType.LINE_BREAK, range=(self.cursor, self.cursor))]
        if kind == "code_inline":
            return [self._code_span(node)]
        if kind in ("fence", "code_block"):
            return [self._code_block(node)]
        if kind == "image":
            return [self._image(node)]
        if kind == "html_inline":
            return [self._html_inline(node)]
        if kind == "html_block":
            return [self._new(ElementType.HTML, range=self._line_span(node))]
        if kind == "hr":
            return [self._new(ElementType.HORIZONTAL_RULE, range=self._line_span(node))]
        if kind in ("bullet_list", "ordered_list"):
            return [self._list(node)]
        if kind == "heading":
            element = self._new(ElementType.HEADER)
            return [self._attach(element, self.convert_all(node.children))]
        if kind == "link":
            return [self._link(node)]
        element_type = _CONTAINER_TYPES.get(kind)
        if element_type is None:
            logger.debug("Unrecognized markdown node %r", kind)
            element_type = ElementType.OTHER
        return [self._attach(self._new(element_type), self.convert_all(node.children))]

    def _list(self, node: SyntaxTreeNode) -> Element:
        ordered = node.type == "ordered_list"
        element = self._new(ElementType.NUMBERED_LIST if ordered else ElementType.BULLETED_LIST)
        start = max(int(node.attrGet("start") or 1), 1) if ordered else 0
        items = []
        for index, child in enumerate(node.children):
            self._seek_line(child)
            position = start + index if ordered else 0
            items.append(self._list_item(child, position))
        return self._attach(element, items)

    def _list_item(self, node: SyntaxTreeNode, position: int) -> Element:
        element = self._new(ElementType.LIST_ITEM, numbered_list_position=position)
        children: List[Element] = []
        for index, child in enumerate(node.children):
            if index == 0 and child.type == "paragraph":
                # the first paragraph reads inline after the bullet
                self._seek_line(child)
                children.extend(self.convert_all(child.children))
            else:
                children.extend(self._convert(child))
        return self._attach(element, children)

    def _link(self, node: SyntaxTreeNode) -> Element:
        element = self._new(ElementType.LINK, href=_attr(node, "href"), title=_attr(node, "title"))
        children = self.convert_all(node.children)
        if self.source.startswith("](", self.cursor):
            self._skip_destination()
        return self._attach(element, children)

    def _image(self, node: SyntaxTreeNode) -> Element:
        alt = node.content or _attr(node, "alt")
        opener = self.source.find("![", self.cursor)
        if opener >= 0:
            self.cursor = opener + 2
            if alt:
                self._locate(alt)
            self._skip_destination()
        return self._new(ElementType.IMAGE, href=_attr(node, "src") or "", title=_attr(node, "title"), alt=alt)

    def _code_span(self, node: SyntaxTreeNode) -> Element:
        marker = node.markup or "`"
        opener = self.source.find(marker, self.cursor)
        if opener >= 0:
            self.cursor = opener + len(marker)
        span = self._locate(node.content)
        if span is None:
            # newlines inside the span were folded to spaces by the parser
            leaf = self._new(ElementType.ENTITY, range=(self.cursor, self.cursor), literal=node.content)
            closer = self.source.find(marker, self.cursor)
            if closer >= 0:
                self.cursor = closer
        else:
            leaf = self._new(ElementType.NONE, range=span)
        if self.source.startswith(marker, self.cursor):
            self.cursor += len(marker)
        return self._attach(self._new(ElementType.CODE_SPAN), [leaf])

    def _code_block(self, node: SyntaxTreeNode) -> Element:
        info = node.info.strip() if node.type == "fence" else ""
        element = self._new(ElementType.CODE_BLOCK, language=info.split()[0] if info else None)
        if node.type == "fence" and node.map:
            self.cursor = max(self.cursor, self._offset(node.map[0] + 1))
        lines = node.content.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        children = []
        for line in lines:
            if line:
                children.append(self._leaf(line))
            else:
                children.append(self._new(ElementType.NONE, range=(self.cursor, self.cursor)))
        return self._attach(element, children)

    def _html_inline(self, node: SyntaxTreeNode) -> Element:
        if "task-list-item-checkbox" in node.content:
            element = self._new(ElementType.CHECKBOX, checked='checked="checked"' in node.content)
            marker = _CHECKBOX_RE.search(self.source, self.cursor)
            if marker is None:
                return element
            self.cursor = marker.end()
            return self._attach(element, [self._new(ElementType.NONE, range=marker.span())])
        span = self._locate(node.content)
        return self._new(ElementType.HTML, range=span or (self.cursor, self.cursor))

    def _special(self, node: SyntaxTreeNode) -> Element:
        # escapes and entities: the rendered text is the decoded content
        span = self._locate(node.markup) if node.markup else None
        return self._new(ElementType.ENTITY, range=span or (self.cursor, self.cursor), literal=node.content)

    def _leaf(self, text: str) -> Element:
        span = self._locate(text)
        if span is None:
            logger.debug("Text %r not found in source, keeping decoded value", text)
            return self._new(ElementType.ENTITY, range=(self.cursor, self.cursor), literal=text)
        return self._new(ElementType.NONE, range=span)

    def _locate(self, text: str) -> tuple[int, int] | None:
        start = self.source.find(text, self.cursor)
        if start < 0:
            return None
        end = start + len(text)
        self.cursor = end
        return start, end

    def _skip_destination(self) -> None:
        tail = self.source.find("](", self.cursor)
        if tail < 0:
            return
        closer = self.source.find(")", tail + 2)
        if closer >= 0:
            self.cursor = closer + 1

    def _seek_line(self, node: SyntaxTreeNode) -> None:
        line_map = node.map
        if line_map:
            self.cursor = max(self.cursor, self._offset(line_map[0]))

    def _line_span(self, node: SyntaxTreeNode) -> tuple[int, int]:
        line_map = node.map
        if not line_map:
            return self.cursor, self.cursor
        return self._offset(line_map[0]), self._offset(line_map[1])

    def _offset(self, line: int) -> int:
        if line < len(self._line_offsets):
            return self._line_offsets[line]
        return len(self.source)

    def _new(self, element_type: ElementType, **details) -> Element:
        return Element(id=next(self._ids), type=element_type, **details)

    def _attach(self, element: Element, children: List[Element]) -> Element:
        element.children = children
        for child in children:
            self.parents[child.id] = element
        return element


def _attr(node: SyntaxTreeNode, name: str) -> str | None:
    value = node.attrGet(name)
    return None if value is None else str(value)
