from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from .extractors import extract_code_block as _extract_code_block
from .extractors import extract_image as _extract_image
from .markdown_parser import MarkdownParseError, parse_markdown
from .model import (
    AttributeSet,
    CodeBlock,
    Element,
    ElementType,
    ImageBlock,
    Inset,
    ParsedDocument,
    RenderBlock,
    StyledRun,
)
from .styles import DEFAULT_POLICY, TEXT_INSET
from .text_blocks import finalize, trim_runs

logger = logging.getLogger(__name__)

NEWLINE = "\n"
BULLET = "•"
MAX_DEPTH = 64

DeriveAttributes = Callable[[AttributeSet, ElementType, int], AttributeSet]
CodeBlockExtractor = Callable[[Element, str], CodeBlock]
ImageExtractor = Callable[[Element], ImageBlock]
Parser = Callable[[str], Optional[ParsedDocument]]


def transform(
    markdown: str,
    container_width: float,
    base_attributes: AttributeSet | None = None,
    derive: DeriveAttributes | None = None,
    extract_code_block: CodeBlockExtractor | None = None,
    extract_image: ImageExtractor | None = None,
    parser: Parser = parse_markdown,
    inset: Inset = TEXT_INSET,
) -> List[RenderBlock]:
    """Turn a comment body into text, code and image blocks in document order.

    A body that fails to parse renders as nothing.
    """
    try:
        document = parser(markdown)
    except MarkdownParseError as exc:
        logger.warning("Error parsing markdown: %s", exc)
        return []
    if document is None:
        return []
    return walk(
        document,
        base_attributes if base_attributes is not None else DEFAULT_POLICY.base,
        container_width,
        derive=derive or DEFAULT_POLICY.derive,
        extract_code_block=extract_code_block or _extract_code_block,
        extract_image=extract_image or _extract_image,
        inset=inset,
    )


def walk(
    document: ParsedDocument,
    base_attributes: AttributeSet,
    container_width: float,
    derive: DeriveAttributes = DEFAULT_POLICY.derive,
    extract_code_block: CodeBlockExtractor = _extract_code_block,
    extract_image: ImageExtractor = _extract_image,
    inset: Inset = TEXT_INSET,
    max_depth: int = MAX_DEPTH,
) -> List[RenderBlock]:
    builder = _BlockBuilder(
        document=document,
        container_width=container_width,
        derive=derive,
        extract_code_block=extract_code_block,
        extract_image=extract_image,
        inset=inset,
        max_depth=max_depth,
    )
    try:
        for element in document.elements:
            builder.travel(element, base_attributes, list_level=0, depth=0)
    except _NestingLimitReached as exc:
        logger.warning("Markdown nested deeper than %d levels at element %d, truncating", max_depth, exc.element_id)
    return builder.finish()


def substring_or_newline(text: str, text_range: Tuple[int, int]) -> str:
    start, end = text_range
    substring = text[start:end]
    # zero-length ranges are implicit line breaks
    return substring if substring else NEWLINE


def type_needs_newline(element_type: ElementType) -> bool:
    return element_type in (ElementType.PARAGRAPH, ElementType.LIST_ITEM, ElementType.HEADER)


def is_list(element_type: ElementType) -> bool:
    return element_type in (ElementType.BULLETED_LIST, ElementType.NUMBERED_LIST)


def list_item_prefix(document: ParsedDocument, element: Element) -> str:
    parent = document.parent_of(element)
    if parent is not None and parent.type is ElementType.BULLETED_LIST:
        return f"{BULLET} "
    if element.numbered_list_position > 0:
        return f"{element.numbered_list_position}. "
    return ""


class _NestingLimitReached(Exception):
    def __init__(self, element_id: int) -> None:
        super().__init__(element_id)
        self.element_id = element_id


@dataclass
class _BlockBuilder:
    """Pending styled text plus the blocks emitted so far, for one walk."""

    document: ParsedDocument
    container_width: float
    derive: DeriveAttributes
    extract_code_block: CodeBlockExtractor
    extract_image: ImageExtractor
    inset: Inset
    max_depth: int
    runs: List[StyledRun] = field(default_factory=list)
    results: List[RenderBlock] = field(default_factory=list)

    def append(self, text: str, attributes: AttributeSet) -> None:
        if not text:
            return
        if self.runs and self.runs[-1].attributes == attributes:
            self.runs[-1] = StyledRun(self.runs[-1].text + text, attributes)
        else:
            self.runs.append(StyledRun(text, attributes))

    def flush(self) -> None:
        self.results.append(finalize(self.runs, self.container_width, self.inset))
        self.runs = []

    def finish(self) -> List[RenderBlock]:
        # add any remaining text
        if trim_runs(self.runs):
            self.flush()
        return self.results

    def create_model(self, element: Element) -> RenderBlock | None:
        if element.type is ElementType.CODE_BLOCK:
            return self.extract_code_block(element, self.document.markdown)
        if element.type is ElementType.IMAGE:
            return self.extract_image(element)
        return None

    def travel(self, element: Element, attributes: AttributeSet, list_level: int, depth: int) -> None:
        if depth > self.max_depth:
            raise _NestingLimitReached(element.id)
        next_list_level = list_level + (1 if is_list(element.type) else 0)

        # push more text attributes on the stack the deeper we go
        pushed = self.derive(attributes, element.type, next_list_level)

        if type_needs_newline(element.type):
            self.append(NEWLINE, pushed)

        if element.type is ElementType.NONE:
            self.append(substring_or_newline(self.document.markdown, element.range), pushed)
        elif element.type is ElementType.LINE_BREAK:
            self.append(NEWLINE, pushed)
        elif element.type is ElementType.ENTITY:
            self.append(element.literal or "", pushed)
        elif element.type is ElementType.LIST_ITEM:
            self.append(list_item_prefix(self.document, element), pushed)

        model = self.create_model(element)
        if model is not None:
            # emit the pending text _before_ the model, then drain it
            self.flush()
            self.results.append(model)
            return

        for child in element.children:
            self.travel(child, pushed, next_list_level, depth + 1)
