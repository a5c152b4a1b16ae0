"""Document metrics: table of contents, word count, reading time.

All values are derived on demand from the block list and never stored
as authoritative data.
"""

from __future__ import annotations

import math

from blockify.config import BlockifyConfig
from blockify.models import (
    Block,
    BlockType,
    DocumentMetrics,
    TocEntry,
    TocNode,
)
from blockify.utils.slug import generate_anchor


def build_toc(blocks: list[Block], max_level: int = 6) -> list[TocEntry]:
    """Return one entry per heading (level <= *max_level*) in document order.

    The entry anchor is the heading's own anchor, or one derived from its
    text when the heading has none.  Headings with empty text are skipped.
    """
    entries: list[TocEntry] = []
    for block in blocks:
        if block.type != BlockType.HEADING or block.level > max_level:
            continue
        if not block.text.strip():
            continue
        anchor = block.anchor or generate_anchor(block.text)
        entries.append(TocEntry(
            id=f"h{block.level}-{anchor}",
            level=block.level,
            text=block.text,
            anchor=anchor,
        ))
    return entries


def build_toc_tree(entries: list[TocEntry]) -> list[TocNode]:
    """Nest TOC entries under the nearest preceding entry of a lower level.

    Examples
    --------
    ``h2 A, h3 B, h3 C, h2 D`` becomes ``A(B, C), D``.  A deeper heading
    with no shallower predecessor becomes a root.
    """
    roots: list[TocNode] = []
    stack: list[TocNode] = []
    for entry in entries:
        node = TocNode(entry=entry)
        while stack and stack[-1].entry.level >= entry.level:
            stack.pop()
        if stack:
            stack[-1].children.append(node)
        else:
            roots.append(node)
        stack.append(node)
    return roots


def count_words(blocks: list[Block]) -> int:
    """Count whitespace-delimited tokens in the text-bearing blocks.

    Counted: paragraph, quote and heading text, list items, and FAQ
    question plus answer.  Code, tables, images and MediaText are not.
    """
    total = 0
    for block in blocks:
        for text in _WORD_SOURCES.get(block.type, _no_text)(block):
            total += len(text.split())
    return total


def estimate_reading_time(word_count: int, words_per_minute: int = 200) -> int:
    """Minutes to read *word_count* words; never less than 1."""
    return max(1, math.ceil(word_count / words_per_minute))


def compute_document_metrics(
    blocks: list[Block],
    config: BlockifyConfig | None = None,
) -> DocumentMetrics:
    """Compute TOC, word count and reading time in one call."""
    config = config or BlockifyConfig()
    words = count_words(blocks)
    return DocumentMetrics(
        toc=build_toc(blocks, config.toc_max_level),
        word_count=words,
        reading_time=estimate_reading_time(words, config.words_per_minute),
    )


def _no_text(block: Block) -> list[str]:
    return []


_WORD_SOURCES = {
    BlockType.PARAGRAPH: lambda b: [b.text],
    BlockType.QUOTE: lambda b: [b.text],
    BlockType.HEADING: lambda b: [b.text],
    BlockType.LIST: lambda b: list(b.items),
    BlockType.FAQ: lambda b: [b.question, b.answer],
}
