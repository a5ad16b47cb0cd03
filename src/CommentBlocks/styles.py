from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from .model import AttributeSet, ElementType, Inset

# attribute keys
FONT_NAME = "font_name"
FONT_SIZE = "font_size"
BOLD = "bold"
ITALIC = "italic"
STRIKETHROUGH = "strikethrough"
UNDERLINE = "underline"
FOREGROUND_COLOR = "foreground_color"
BACKGROUND_COLOR = "background_color"
PARAGRAPH_SPACING_BEFORE = "paragraph_spacing_before"
HEAD_INDENT = "head_indent"

BODY_FONT_NAME = "-apple-system"
CODE_FONT_NAME = "Courier"
BODY_FONT_SIZE_PT = 14
HEADER_FONT_SIZE_PT = 18

GRAY_DARK = "#24292e"
GRAY_MEDIUM = "#6a737d"
GRAY_LIGHTER = "#f6f8fa"
BLUE = "#0366d6"
WHITE = "#ffffff"

PARAGRAPH_SPACING_BEFORE_PT = 12
LIST_INDENT_PT = 16

TEXT_INSET = Inset(top=4, left=12, bottom=4, right=12)

_LIST_TYPES = (ElementType.BULLETED_LIST, ElementType.NUMBERED_LIST, ElementType.LIST_ITEM)

DEFAULT_ELEMENT_ATTRIBUTES: Dict[ElementType, Dict[str, Any]] = {
    ElementType.STRONG: {BOLD: True},
    ElementType.EM: {ITALIC: True},
    ElementType.STRIKETHROUGH: {STRIKETHROUGH: True},
    ElementType.CODE_SPAN: {FONT_NAME: CODE_FONT_NAME, BACKGROUND_COLOR: GRAY_LIGHTER},
    ElementType.CHECKBOX: {FONT_NAME: CODE_FONT_NAME},
    ElementType.LINK: {FOREGROUND_COLOR: BLUE, UNDERLINE: True},
    ElementType.HEADER: {BOLD: True, FONT_SIZE: HEADER_FONT_SIZE_PT},
    ElementType.BLOCK_QUOTE: {FOREGROUND_COLOR: GRAY_MEDIUM},
    ElementType.TABLE_HEADER_CELL: {BOLD: True},
}


def base_attributes() -> AttributeSet:
    """Attributes for top-level comment body text."""
    return AttributeSet(
        {
            FONT_NAME: BODY_FONT_NAME,
            FONT_SIZE: BODY_FONT_SIZE_PT,
            FOREGROUND_COLOR: GRAY_DARK,
            BACKGROUND_COLOR: WHITE,
            PARAGRAPH_SPACING_BEFORE: PARAGRAPH_SPACING_BEFORE_PT,
        }
    )


@dataclass(frozen=True)
class StylePolicy:
    base: AttributeSet = field(default_factory=base_attributes)
    element_attributes: Mapping[ElementType, Mapping[str, Any]] = field(
        default_factory=lambda: dict(DEFAULT_ELEMENT_ATTRIBUTES)
    )
    list_indent: float = LIST_INDENT_PT
    inset: Inset = TEXT_INSET

    def derive(self, current: AttributeSet, element_type: ElementType, list_level: int) -> AttributeSet:
        """Layer the attributes of ``element_type`` over ``current``."""
        changes = dict(self.element_attributes.get(element_type, {}))
        if element_type in _LIST_TYPES:
            changes[HEAD_INDENT] = self.list_indent * list_level
        return current.merged(changes)


DEFAULT_POLICY = StylePolicy()


def derive_attributes(current: AttributeSet, element_type: ElementType, list_level: int) -> AttributeSet:
    return DEFAULT_POLICY.derive(current, element_type, list_level)
