from __future__ import annotations

import argparse
import logging
from pathlib import Path

from . import comment_models
from .model import CodeBlock, ImageBlock, RenderBlock, TextBlock
from .style_config import read_style_policy
from .styles import DEFAULT_POLICY
from .utils import configure_logging, preview, read_text


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="commentblocks",
        description="Split a markdown comment body into text, code and image blocks.",
    )
    parser.add_argument("input", type=str, help="Path to Markdown file")
    parser.add_argument("-w", "--width", type=float, default=320.0, help="Container width passed to text blocks")
    parser.add_argument("-s", "--style", type=str, help="YAML style theme")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def describe_block(block: RenderBlock) -> str:
    if isinstance(block, TextBlock):
        return f"text  ({len(block.runs)} runs) {preview(block.text)}"
    if isinstance(block, CodeBlock):
        return f"code  [{block.language or '-'}] {preview(block.raw_text)}"
    if isinstance(block, ImageBlock):
        return f"image {block.url} alt={block.alt_text!r}"
    raise TypeError(f"Unknown render block {block!r}")


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    input_path = Path(args.input).expanduser()
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    policy = DEFAULT_POLICY
    if args.style:
        logging.info("Loading style %s", args.style)
        policy = read_style_policy(Path(args.style).expanduser())

    logging.info("Reading %s", input_path)
    markdown_text = read_text(input_path)
    logging.debug("Markdown length: %d chars", len(markdown_text))

    blocks = comment_models.transform(
        markdown_text,
        args.width,
        base_attributes=policy.base,
        derive=policy.derive,
        inset=policy.inset,
    )
    for block in blocks:
        print(describe_block(block))

    logging.info("Done. %d blocks", len(blocks))


if __name__ == "__main__":
    main()
