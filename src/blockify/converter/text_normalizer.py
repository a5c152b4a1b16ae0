"""Plain-text to blocks normalizer.

A single line-oriented pass that recognises the Markdown-like syntax
people type or paste as plain text:

======================  =========================================
Line                    Result
======================  =========================================
``## Title``            Heading (level clamped to 2..6)
``---`` / ``***``       Divider
``- item``              item of a pending unordered List
``1. item``             item of a pending ordered List
``> text``              Quote
```` ```lang ````       Code, up to the closing fence
``![alt](url) caption`` Image
blank                   ends a pending List
anything else           Paragraph (one per line)
======================  =========================================

Lines are not merged: two adjacent plain lines become two paragraphs.
"""

from __future__ import annotations

import re

from blockify.blocks import clamp_heading_level
from blockify.config import BlockifyConfig
from blockify.models import (
    Block,
    CodeBlock,
    ConversionResult,
    ConversionWarning,
    DividerBlock,
    HeadingBlock,
    ImageBlock,
    ListBlock,
    ListStyle,
    ParagraphBlock,
    QuoteBlock,
)
from blockify.utils.slug import generate_anchor

from .results import build_result

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
_DIVIDER_RE = re.compile(r"^[-*_]{3,}$")
_UNORDERED_RE = re.compile(r"^[-*+]\s+(.+)$")
_ORDERED_RE = re.compile(r"^\d+[.)]\s+(.+)$")
_QUOTE_RE = re.compile(r"^>\s?(.*)$")
_FENCE_RE = re.compile(r"^```\s*([^`\s]*)")
_IMAGE_RE = re.compile(r"^!\[([^\]]*)\]\(([^)]+)\)(.*)$")


class _TextState:
    """Mutable state for one normalization pass."""

    def __init__(self) -> None:
        self.blocks: list[Block] = []
        self.warnings: list[ConversionWarning] = []
        self.list_style: ListStyle | None = None
        self.list_items: list[str] = []

    def add_list_item(self, style: ListStyle, item: str) -> None:
        if self.list_style is not None and self.list_style != style:
            self.flush_list()
        self.list_style = style
        self.list_items.append(item)

    def flush_list(self) -> None:
        if self.list_style is not None and self.list_items:
            self.blocks.append(ListBlock(style=self.list_style, items=self.list_items))
        self.list_style = None
        self.list_items = []

    def emit(self, block: Block) -> None:
        self.flush_list()
        self.blocks.append(block)


class TextNormalizer:
    """Convert plain or Markdown-like text into blocks.

    Parameters
    ----------
    config:
        Supplies ``default_code_language`` for unlabelled fences.
    """

    def __init__(self, config: BlockifyConfig | None = None) -> None:
        self._config = config or BlockifyConfig()

    def normalize(self, text: str | None) -> ConversionResult:
        """Convert *text*; non-string input is treated as empty."""
        state = _TextState()
        lines = text.splitlines() if isinstance(text, str) else []

        i = 0
        while i < len(lines):
            line = lines[i].strip()

            fence = _FENCE_RE.match(line)
            if fence:
                i = self._consume_fence(lines, i, fence.group(1), state)
                continue

            if not line:
                state.flush_list()
            else:
                self._line(line, state)
            i += 1

        state.flush_list()
        return build_result(state.blocks, state.warnings, "text")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _line(self, line: str, state: _TextState) -> None:
        m = _HEADING_RE.match(line)
        if m:
            text = m.group(2).strip()
            state.emit(HeadingBlock(
                level=clamp_heading_level(len(m.group(1))),
                text=text,
                anchor=generate_anchor(text),
            ))
            return

        if _DIVIDER_RE.match(line):
            state.emit(DividerBlock())
            return

        m = _UNORDERED_RE.match(line)
        if m:
            state.add_list_item(ListStyle.UNORDERED, m.group(1).strip())
            return

        m = _ORDERED_RE.match(line)
        if m:
            state.add_list_item(ListStyle.ORDERED, m.group(1).strip())
            return

        m = _QUOTE_RE.match(line)
        if m:
            state.emit(QuoteBlock(text=m.group(1).strip()))
            return

        m = _IMAGE_RE.match(line)
        if m:
            caption = m.group(3).strip()
            state.emit(ImageBlock(
                url=m.group(2).strip(),
                alt=m.group(1),
                caption=caption or None,
            ))
            return

        state.emit(ParagraphBlock(text=line))

    def _consume_fence(
        self, lines: list[str], start: int, label: str, state: _TextState,
    ) -> int:
        """Emit a code block from the fence at *start*; return the next index."""
        body: list[str] = []
        i = start + 1
        closed = False
        while i < len(lines):
            if lines[i].strip().startswith("```"):
                closed = True
                i += 1
                break
            body.append(lines[i])
            i += 1

        if not closed:
            state.warnings.append(ConversionWarning(
                code="UNTERMINATED_CODE_FENCE",
                message="Code fence was not closed; consumed to end of input",
                context={"line": start + 1},
            ))

        state.emit(CodeBlock(
            language=label or self._config.default_code_language,
            code="\n".join(body),
        ))
        return i


def text_to_blocks(text: str | None, config: BlockifyConfig | None = None) -> list[Block]:
    """Shortcut returning only the blocks of ``TextNormalizer(config).normalize(text)``."""
    return TextNormalizer(config).normalize(text).blocks
