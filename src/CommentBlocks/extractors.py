from __future__ import annotations

from .model import CodeBlock, Element, ElementType, ImageBlock


def extract_code_block(element: Element, markdown: str) -> CodeBlock:
    lines = []
    for child in element.children:
        if child.type is ElementType.ENTITY:
            lines.append(child.literal or "")
        else:
            start, end = child.range
            lines.append(markdown[start:end])
    return CodeBlock(raw_text="\n".join(lines), language=element.language)


def extract_image(element: Element) -> ImageBlock:
    return ImageBlock(url=element.href or "", alt_text=element.alt or None, title=element.title or None)
