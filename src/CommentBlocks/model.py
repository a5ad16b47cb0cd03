from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union


class ElementType(Enum):
    NONE = "none"
    PARAGRAPH = "paragraph"
    HEADER = "header"
    BLOCK_QUOTE = "block_quote"
    BULLETED_LIST = "bulleted_list"
    NUMBERED_LIST = "numbered_list"
    LIST_ITEM = "list_item"
    CODE_BLOCK = "code_block"
    HORIZONTAL_RULE = "horizontal_rule"
    HTML = "html"
    LINE_BREAK = "line_break"
    STRIKETHROUGH = "strikethrough"
    STRONG = "strong"
    EM = "em"
    CODE_SPAN = "code_span"
    IMAGE = "image"
    LINK = "link"
    ENTITY = "entity"
    CHECKBOX = "checkbox"
    TABLE = "table"
    TABLE_HEADER = "table_header"
    TABLE_BODY = "table_body"
    TABLE_ROW = "table_row"
    TABLE_HEADER_CELL = "table_header_cell"
    TABLE_ROW_CELL = "table_row_cell"
    OTHER = "other"


@dataclass(eq=False)
class Element:
    """One parsed node. Read-only once the parser hands it out."""

    id: int
    type: ElementType
    range: Tuple[int, int] = (0, 0)
    children: List["Element"] = field(default_factory=list)
    numbered_list_position: int = 0
    href: str | None = None
    title: str | None = None
    alt: str | None = None
    language: str | None = None
    checked: bool = False
    literal: str | None = None


@dataclass
class ParsedDocument:
    markdown: str
    elements: List[Element]
    parents: Dict[int, Element] = field(default_factory=dict)

    def parent_of(self, element: Element) -> Optional[Element]:
        return self.parents.get(element.id)

    def text_of(self, element: Element) -> str:
        start, end = element.range
        return self.markdown[start:end]


class AttributeSet(Mapping[str, Any]):
    """Immutable mapping of resolved text attributes."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any] | None = None, **kwargs: Any) -> None:
        merged = dict(values or {})
        merged.update(kwargs)
        self._values = merged

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"AttributeSet({self._values!r})"

    def merged(self, values: Mapping[str, Any] | None = None, **changes: Any) -> "AttributeSet":
        if not values and not changes:
            return self
        updated = dict(self._values)
        updated.update(values or {})
        updated.update(changes)
        return AttributeSet(updated)


@dataclass(frozen=True)
class StyledRun:
    text: str
    attributes: AttributeSet


@dataclass(frozen=True)
class Inset:
    top: float = 0
    left: float = 0
    bottom: float = 0
    right: float = 0


@dataclass(frozen=True)
class TextBlock:
    runs: Tuple[StyledRun, ...]
    container_width: float
    inset: Inset = Inset()

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)

    @property
    def is_empty(self) -> bool:
        return not self.text


@dataclass(frozen=True)
class CodeBlock:
    raw_text: str
    language: str | None = None


@dataclass(frozen=True)
class ImageBlock:
    url: str
    alt_text: str | None = None
    title: str | None = None


RenderBlock = Union[TextBlock, CodeBlock, ImageBlock]
