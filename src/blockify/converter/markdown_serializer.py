"""Block document to Markdown serializer.

Produces the flat Markdown string that legacy consumers read instead of
the block tree.  One unit per block, units separated by a blank line,
empty units dropped.

Usage::

    from blockify.converter.markdown_serializer import MarkdownSerializer

    md = MarkdownSerializer().serialize(blocks)

MediaText blocks have no Markdown form and are omitted.
"""

from __future__ import annotations

from collections.abc import Callable as _Callable

from blockify.config import BlockifyConfig
from blockify.models import (
    Block,
    BlockType,
    CodeBlock,
    DividerBlock,
    FaqBlock,
    HeadingBlock,
    ImageBlock,
    ListBlock,
    ListStyle,
    MediaTextBlock,
    ParagraphBlock,
    QuoteBlock,
    TableBlock,
)


class MarkdownSerializer:
    """Stateless serializer from blocks to Markdown.

    Parameters
    ----------
    config:
        Supplies ``default_code_language`` for code blocks with an
        empty language.
    """

    def __init__(self, config: BlockifyConfig | None = None) -> None:
        self._config = config or BlockifyConfig()

    def serialize(self, blocks: list[Block]) -> str:
        """Serialize *blocks* to a Markdown string (no trailing newline)."""
        units = (self.serialize_block(block) for block in blocks)
        return "\n\n".join(unit for unit in units if unit)

    def serialize_block(self, block: Block) -> str:
        """Serialize one block; returns ``""`` for blocks with no Markdown form."""
        return _BLOCK_SERIALIZERS[block.type](self, block)

    # ------------------------------------------------------------------
    # Block type serializers
    # ------------------------------------------------------------------

    def _heading(self, block: HeadingBlock) -> str:
        if not block.text:
            return ""
        return f"{'#' * block.level} {block.text}"

    def _paragraph(self, block: ParagraphBlock) -> str:
        return block.text

    def _image(self, block: ImageBlock) -> str:
        md = f"![{block.alt}]({block.url})"
        if block.caption:
            md += f" {block.caption}"
        return md

    def _list(self, block: ListBlock) -> str:
        items = [item for item in block.items if item]
        if block.style == ListStyle.ORDERED:
            return "\n".join(f"{n}. {item}" for n, item in enumerate(items, start=1))
        return "\n".join(f"- {item}" for item in items)

    def _code(self, block: CodeBlock) -> str:
        language = block.language or self._config.default_code_language
        fence = "````" if "```" in block.code else "```"
        return f"{fence}{language}\n{block.code}\n{fence}"

    def _quote(self, block: QuoteBlock) -> str:
        if not block.text:
            return ""
        return "\n".join(f"> {line}" for line in block.text.split("\n"))

    def _divider(self, block: DividerBlock) -> str:
        return "---"

    def _table(self, block: TableBlock) -> str:
        """Render a GFM pipe table.

        Every row is padded to the widest of the header and all rows so
        that the column count is consistent.
        """
        width = max([len(block.headers)] + [len(row) for row in block.rows])
        if width == 0:
            return ""
        headers = _pad([_cell(h) for h in block.headers], width)
        lines = [
            _row(headers),
            _row(["---"] * width),
        ]
        for row in block.rows:
            lines.append(_row(_pad([_cell(c) for c in row], width)))
        return "\n".join(lines)

    def _faq(self, block: FaqBlock) -> str:
        if not block.question and not block.answer:
            return ""
        return f"**Q: {block.question}**\n\nA: {block.answer}"

    def _media_text(self, block: MediaTextBlock) -> str:
        return ""


_BlockSerializer = _Callable[[MarkdownSerializer, Block], str]

_BLOCK_SERIALIZERS: dict[BlockType, _BlockSerializer] = {
    BlockType.HEADING: MarkdownSerializer._heading,
    BlockType.PARAGRAPH: MarkdownSerializer._paragraph,
    BlockType.IMAGE: MarkdownSerializer._image,
    BlockType.LIST: MarkdownSerializer._list,
    BlockType.CODE: MarkdownSerializer._code,
    BlockType.QUOTE: MarkdownSerializer._quote,
    BlockType.DIVIDER: MarkdownSerializer._divider,
    BlockType.TABLE: MarkdownSerializer._table,
    BlockType.FAQ: MarkdownSerializer._faq,
    BlockType.MEDIA_TEXT: MarkdownSerializer._media_text,
}


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _cell(text: str) -> str:
    """Escape pipes and flatten line breaks inside a table cell."""
    return text.replace("|", "\\|").replace("\r\n", " ").replace("\n", " ").strip()


def _pad(cells: list[str], width: int) -> list[str]:
    return cells + [""] * (width - len(cells))


def _row(cells: list[str]) -> str:
    return "| " + " | ".join(cells) + " |"


def blocks_to_markdown(blocks: list[Block], config: BlockifyConfig | None = None) -> str:
    """Shortcut for ``MarkdownSerializer(config).serialize(blocks)``."""
    return MarkdownSerializer(config).serialize(blocks)
