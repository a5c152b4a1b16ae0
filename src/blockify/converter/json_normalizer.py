"""Loose JSON to blocks normalizer.

Uploaded JSON documents come from many generators (CMS exports, LLM
output, hand-written files), so the normalizer accepts any decoded JSON
value and recognises a fixed set of shapes.  Each shape is a rule
function returning a list of blocks, or ``None`` when it does not apply;
rules are tried in priority order and the first match wins, so fields
that would satisfy several rules on one object never stack.

Array elements
    1. arrays recurse;
    2. ``{"type": ...}`` with a known type is taken as a block;
    3. ``text`` / ``content`` / ``value`` / ``body`` gives a Paragraph;
    4. ``title`` / ``heading`` gives a Heading;
    5. ``question`` + ``answer`` gives a Faq;
    6. ``item`` / ``name`` / ``label`` gives a Paragraph;
    7. strings give a Heading (``"## "`` / ``"### "``) or a Paragraph.

Objects (top level, or elements matching none of 2-6)
    8. the first array found under a known container key is recursed
       into (an ``items`` array of strings becomes one List); only when
       there is none are ``title``, ``body``/``content``/``text``,
       ``faq``/``faqs`` and ``headers``+``rows`` inspected and their
       blocks accumulated.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable as _Callable
from typing import Any

from blockify.blocks import block_from_dict, clamp_heading_level, resolve_block_type
from blockify.config import BlockifyConfig
from blockify.errors import BlockifyJSONDecodeError
from blockify.models import (
    Block,
    ConversionResult,
    ConversionWarning,
    FaqBlock,
    HeadingBlock,
    ListBlock,
    ListStyle,
    ParagraphBlock,
)
from blockify.utils.slug import generate_anchor

from .results import build_result

# Searched in this order for the array holding the document body.
CONTAINER_KEYS: tuple[str, ...] = (
    "contentBlocks",
    "blocks",
    "content",
    "sections",
    "items",
    "data",
    "posts",
    "paragraphs",
    "elements",
)

_PARAGRAPH_KEYS = ("text", "content", "value", "body")
_HEADING_KEYS = ("title", "heading")
_LABEL_KEYS = ("item", "name", "label")
_BODY_KEYS = ("body", "content", "text")
_FAQ_KEYS = ("faq", "faqs")

_BLANK_LINES_RE = re.compile(r"\n\s*\n+")


def parse_json_text(text: str) -> Any:
    """Decode a JSON document.

    Raises
    ------
    BlockifyJSONDecodeError
        If *text* is not valid JSON, or is too deeply nested or holds an
        integer too long for the interpreter to decode.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise BlockifyJSONDecodeError(
            message=f"Invalid JSON: {exc.msg}",
            context={"line": exc.lineno, "column": exc.colno, "reason": exc.msg},
            cause=exc,
        ) from exc
    except (RecursionError, ValueError) as exc:
        raise BlockifyJSONDecodeError(
            message=f"Undecodable JSON: {exc}",
            context={"reason": type(exc).__name__},
            cause=exc,
        ) from exc


def _first_truthy(obj: dict, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = obj.get(key)
        if value:
            return value
    return None


def _scalar_text(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _heading(text: str, level: Any = None) -> HeadingBlock:
    text = text.strip()
    return HeadingBlock(
        level=clamp_heading_level(level or 2),
        text=text,
        anchor=generate_anchor(text),
    )


class _JsonContext:
    """Warnings collected during one normalization pass."""

    def __init__(self) -> None:
        self.warnings: list[ConversionWarning] = []
        self.depth_warned = False


class JsonNormalizer:
    """Convert a decoded JSON value of unknown shape into blocks.

    Never raises on a decoded JSON value.

    Parameters
    ----------
    config:
        Supplies ``json_max_depth``.
    """

    def __init__(self, config: BlockifyConfig | None = None) -> None:
        self._config = config or BlockifyConfig()

    def normalize(self, value: Any) -> ConversionResult:
        """Convert *value* (as returned by :func:`json.loads`)."""
        ctx = _JsonContext()
        if isinstance(value, dict):
            blocks = self._object(value, ctx, 0)
        else:
            blocks = self._element(value, ctx, 0)
        return build_result(blocks, ctx.warnings, "json")

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _too_deep(self, ctx: _JsonContext, depth: int) -> bool:
        if depth <= self._config.json_max_depth:
            return False
        if not ctx.depth_warned:
            ctx.depth_warned = True
            ctx.warnings.append(ConversionWarning(
                code="JSON_MAX_DEPTH",
                message=(
                    f"JSON nesting deeper than {self._config.json_max_depth} "
                    f"levels was skipped"
                ),
                context={"max_depth": self._config.json_max_depth},
            ))
        return True

    def _element(self, value: Any, ctx: _JsonContext, depth: int) -> list[Block]:
        if self._too_deep(ctx, depth):
            return []
        if isinstance(value, list):
            return self._array(value, ctx, depth)
        if isinstance(value, str):
            return self._string(value)
        if isinstance(value, dict):
            for rule in _ELEMENT_RULES:
                blocks = rule(self, value, ctx, depth)
                if blocks is not None:
                    return blocks
            return self._object(value, ctx, depth)
        return []

    def _array(self, values: list, ctx: _JsonContext, depth: int) -> list[Block]:
        if self._too_deep(ctx, depth):
            return []
        blocks: list[Block] = []
        for item in values:
            blocks.extend(self._element(item, ctx, depth + 1))
        return blocks

    def _string(self, value: str) -> list[Block]:
        if value.startswith("## "):
            return [_heading(value[3:], 2)]
        if value.startswith("### "):
            return [_heading(value[4:], 3)]
        if not value.strip():
            return []
        return [ParagraphBlock(text=value)]

    # ------------------------------------------------------------------
    # Element rules (2-6)
    # ------------------------------------------------------------------

    def _rule_typed(self, obj: dict, ctx: _JsonContext, depth: int) -> list[Block] | None:
        raw_type = obj.get("type")
        if not raw_type:
            return None
        if resolve_block_type(raw_type) is None:
            ctx.warnings.append(ConversionWarning(
                code="UNKNOWN_BLOCK_TYPE",
                message=f"Unknown block type {raw_type!r}; trying other shapes",
                context={"block_type": str(raw_type)},
            ))
            return None
        return [block_from_dict(obj)]

    def _rule_text(self, obj: dict, ctx: _JsonContext, depth: int) -> list[Block] | None:
        value = _first_truthy(obj, _PARAGRAPH_KEYS)
        if value is None:
            return None
        if isinstance(value, list):
            return self._array(value, ctx, depth + 1)
        if isinstance(value, dict):
            return self._object(value, ctx, depth + 1)
        text = _scalar_text(value)
        return [ParagraphBlock(text=text)] if text is not None else None

    def _rule_heading(self, obj: dict, ctx: _JsonContext, depth: int) -> list[Block] | None:
        text = _scalar_text(_first_truthy(obj, _HEADING_KEYS))
        if text is None:
            return None
        return [_heading(text, obj.get("level"))]

    def _rule_faq(self, obj: dict, ctx: _JsonContext, depth: int) -> list[Block] | None:
        question = _scalar_text(obj.get("question"))
        answer = _scalar_text(obj.get("answer"))
        if not question or not answer:
            return None
        return [FaqBlock(question=question, answer=answer)]

    def _rule_label(self, obj: dict, ctx: _JsonContext, depth: int) -> list[Block] | None:
        text = _scalar_text(_first_truthy(obj, _LABEL_KEYS))
        if text is None:
            return None
        return [ParagraphBlock(text=text)]

    # ------------------------------------------------------------------
    # Object rule (8)
    # ------------------------------------------------------------------

    def _object(self, obj: dict, ctx: _JsonContext, depth: int) -> list[Block]:
        if self._too_deep(ctx, depth):
            return []

        for key in CONTAINER_KEYS:
            value = obj.get(key)
            if not isinstance(value, list):
                continue
            if key == "items" and value and all(isinstance(i, str) for i in value):
                style = ListStyle.ORDERED if obj.get("ordered") is True else ListStyle.UNORDERED
                return [ListBlock(style=style, items=list(value))]
            return self._array(value, ctx, depth + 1)

        blocks: list[Block] = []
        title = _scalar_text(obj.get("title")) if obj.get("title") else None
        if title is not None:
            blocks.append(_heading(title, obj.get("level")))

        body = _first_truthy(obj, _BODY_KEYS)
        if isinstance(body, list):
            blocks.extend(self._array(body, ctx, depth + 1))
        elif isinstance(body, str):
            for part in _BLANK_LINES_RE.split(body):
                if part.strip():
                    blocks.append(ParagraphBlock(text=part.strip()))

        faqs = _first_truthy(obj, _FAQ_KEYS)
        if isinstance(faqs, list):
            for faq in faqs:
                if isinstance(faq, dict):
                    blocks.extend(self._rule_faq(faq, ctx, depth + 1) or [])

        if obj.get("headers") and obj.get("rows"):
            blocks.append(block_from_dict({
                "type": "table", "headers": obj["headers"], "rows": obj["rows"],
            }))

        return blocks


_ElementRule = _Callable[[JsonNormalizer, dict, _JsonContext, int], "list[Block] | None"]

_ELEMENT_RULES: tuple[_ElementRule, ...] = (
    JsonNormalizer._rule_typed,
    JsonNormalizer._rule_text,
    JsonNormalizer._rule_heading,
    JsonNormalizer._rule_faq,
    JsonNormalizer._rule_label,
)


def json_to_blocks(value: Any, config: BlockifyConfig | None = None) -> list[Block]:
    """Shortcut returning only the blocks of ``JsonNormalizer(config).normalize(value)``."""
    return JsonNormalizer(config).normalize(value).blocks
