"""Block factories and the dict/JSON wire form.

The wire form of a block is a flat JSON object with camelCase keys, the
``id`` and the ``type`` discriminant::

    {"id": "3f2a...", "type": "image", "url": "https://...", "alt": "",
     "sourceUrl": "https://..."}

Optional fields that are ``None`` are left out.  :func:`block_from_dict`
is deliberately tolerant because block dicts arrive from hand-written
JSON files and other generators: it coerces scalars, clamps ranges and
fills defaults, and only rejects an unknown ``type``.
"""

from __future__ import annotations

import copy
import dataclasses
import json
import math
import re
from typing import Any, Callable

from blockify.errors import BlockifyUnknownBlockTypeError
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
    MediaPosition,
    MediaTextBlock,
    ParagraphBlock,
    QuoteBlock,
    TableBlock,
    VerticalAlign,
    new_block_id,
)
from blockify.utils.slug import generate_anchor

__all__ = [
    "block_from_dict",
    "block_to_dict",
    "blocks_to_json",
    "clamp_heading_level",
    "create_empty",
    "duplicate_block",
    "new_block_id",
    "resolve_block_type",
]

MIN_HEADING_LEVEL = 2
MAX_HEADING_LEVEL = 6

# Alternative spellings seen in hand-written documents.
_TYPE_ALIASES: dict[str, BlockType] = {
    "media_text": BlockType.MEDIA_TEXT,
    "mediaText": BlockType.MEDIA_TEXT,
    "mediatext": BlockType.MEDIA_TEXT,
}

# At most nine digits: longer runs are not plausible sizes or levels.
_LEADING_INT_RE = re.compile(r"^\s*(\d{1,9})(?!\d)")
_CAMEL_BOUNDARY_RE = re.compile(r"_([a-z])")


def resolve_block_type(value: Any) -> BlockType | None:
    """Map a ``type`` value (enum, wire name or alias) to a :class:`BlockType`.

    Returns ``None`` for anything unrecognised.
    """
    if isinstance(value, BlockType):
        return value
    if not isinstance(value, str):
        return None
    try:
        return BlockType(value)
    except ValueError:
        return _TYPE_ALIASES.get(value)


def clamp_heading_level(level: Any) -> int:
    """Coerce *level* to an int in [2, 6]; unparseable values become 2."""
    parsed = _parse_int(level)
    if parsed is None:
        return MIN_HEADING_LEVEL
    return max(MIN_HEADING_LEVEL, min(MAX_HEADING_LEVEL, parsed))


# ---------------------------------------------------------------------------
# Empty blocks
# ---------------------------------------------------------------------------

_EMPTY_FACTORIES: dict[BlockType, Callable[[], Block]] = {
    BlockType.HEADING: lambda: HeadingBlock(level=2, text="", anchor=""),
    BlockType.PARAGRAPH: lambda: ParagraphBlock(text=""),
    BlockType.IMAGE: lambda: ImageBlock(url="", alt=""),
    BlockType.LIST: lambda: ListBlock(style=ListStyle.UNORDERED, items=[""]),
    BlockType.CODE: lambda: CodeBlock(language="text", code=""),
    BlockType.QUOTE: lambda: QuoteBlock(text=""),
    BlockType.DIVIDER: DividerBlock,
    BlockType.TABLE: lambda: TableBlock(
        headers=["Column 1", "Column 2"], rows=[["", ""]],
    ),
    BlockType.FAQ: lambda: FaqBlock(question="", answer=""),
    BlockType.MEDIA_TEXT: lambda: MediaTextBlock(
        media_position=MediaPosition.LEFT,
        media_width=50,
        vertical_align=VerticalAlign.CENTER,
    ),
}


def create_empty(block_type: BlockType | str) -> Block:
    """Return the zero value of a block variant with a fresh id.

    Parameters
    ----------
    block_type:
        A :class:`BlockType` or its wire name (``"media-text"`` etc.).

    Raises
    ------
    BlockifyUnknownBlockTypeError
        If *block_type* names no known variant.
    """
    resolved = resolve_block_type(block_type)
    if resolved is None:
        raise BlockifyUnknownBlockTypeError(
            f"Unknown block type: {block_type!r}",
            context={"block_type": str(block_type)},
        )
    return _EMPTY_FACTORIES[resolved]()


def duplicate_block(block: Block) -> Block:
    """Deep-copy *block* and give the copy a fresh id."""
    return dataclasses.replace(copy.deepcopy(block), id=new_block_id())


# ---------------------------------------------------------------------------
# Block -> dict
# ---------------------------------------------------------------------------

def _camel(name: str) -> str:
    return _CAMEL_BOUNDARY_RE.sub(lambda m: m.group(1).upper(), name)


def _wire_value(value: Any) -> Any:
    if isinstance(value, (ListStyle, MediaPosition, VerticalAlign)):
        return value.value
    if isinstance(value, list):
        return [_wire_value(v) for v in value]
    return value


def block_to_dict(block: Block) -> dict[str, Any]:
    """Serialise *block* to its camelCase wire dict.

    Examples
    --------
    >>> block_to_dict(ParagraphBlock(text="Hi", id="p1"))
    {'id': 'p1', 'type': 'paragraph', 'text': 'Hi'}
    """
    data: dict[str, Any] = {"id": block.id, "type": block.type.value}
    for f in dataclasses.fields(block):
        if f.name == "id":
            continue
        value = getattr(block, f.name)
        if value is None:
            continue
        data[_camel(f.name)] = _wire_value(value)
    return data


def blocks_to_json(blocks: list[Block], indent: int | None = 2) -> str:
    """Serialise a document to a JSON array of block dicts."""
    return json.dumps(
        [block_to_dict(b) for b in blocks], indent=indent, ensure_ascii=False,
    )


# ---------------------------------------------------------------------------
# dict -> Block
# ---------------------------------------------------------------------------

def _parse_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        # json.loads yields inf for 1e400 and accepts NaN.
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        m = _LEADING_INT_RE.match(value)
        if m:
            return int(m.group(1))
    return None


def _text(value: Any, default: str = "") -> str:
    """Coerce a scalar to ``str``; containers and ``None`` give *default*."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return default


def _opt_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return None
    return _text(value)


def _get(data: dict, camel: str, snake: str | None = None) -> Any:
    if camel in data:
        return data[camel]
    if snake is not None:
        return data.get(snake)
    return None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _cell_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [_text(cell) for cell in value]


def _enum(enum_cls: type, value: Any, default: Any) -> Any:
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        return default


def _heading_from_dict(data: dict) -> HeadingBlock:
    text = _text(data.get("text"))
    anchor = data.get("anchor")
    return HeadingBlock(
        level=clamp_heading_level(data.get("level", MIN_HEADING_LEVEL)),
        text=text,
        anchor=anchor if isinstance(anchor, str) and anchor else generate_anchor(text),
    )


def _paragraph_from_dict(data: dict) -> ParagraphBlock:
    return ParagraphBlock(text=_text(data.get("text")))


def _image_from_dict(data: dict) -> ImageBlock:
    loading = _opt_text(data.get("loading"))
    return ImageBlock(
        url=_text(_get(data, "url", "src")),
        alt=_text(data.get("alt")),
        caption=_opt_text(data.get("caption")),
        link=_opt_text(data.get("link")),
        title=_opt_text(data.get("title")),
        width=_parse_int(data.get("width")),
        height=_parse_int(data.get("height")),
        srcset=_opt_text(data.get("srcset")),
        sizes=_opt_text(data.get("sizes")),
        loading=loading if loading in ("lazy", "eager") else None,
        source=_opt_text(data.get("source")),
        source_url=_opt_text(_get(data, "sourceUrl", "source_url")),
    )


def _list_from_dict(data: dict) -> ListBlock:
    if data.get("ordered") is True:
        style = ListStyle.ORDERED
    else:
        style = _enum(ListStyle, data.get("style"), ListStyle.UNORDERED)
    return ListBlock(style=style, items=_string_list(data.get("items")))


def _code_from_dict(data: dict) -> CodeBlock:
    return CodeBlock(
        language=_text(data.get("language")) or "text",
        code=_text(data.get("code")),
    )


def _quote_from_dict(data: dict) -> QuoteBlock:
    return QuoteBlock(text=_text(data.get("text")))


def _divider_from_dict(data: dict) -> DividerBlock:
    return DividerBlock()


def _table_from_dict(data: dict) -> TableBlock:
    rows = data.get("rows")
    return TableBlock(
        headers=_cell_list(data.get("headers")),
        rows=[_cell_list(row) for row in rows if isinstance(row, list)]
        if isinstance(rows, list) else [],
    )


def _faq_from_dict(data: dict) -> FaqBlock:
    return FaqBlock(
        question=_text(data.get("question")),
        answer=_text(data.get("answer")),
    )


def _media_text_from_dict(data: dict) -> MediaTextBlock:
    width = _parse_int(_get(data, "mediaWidth", "media_width"))
    return MediaTextBlock(
        image_url=_text(_get(data, "imageUrl", "image_url")),
        image_alt=_text(_get(data, "imageAlt", "image_alt")),
        image_caption=_opt_text(_get(data, "imageCaption", "image_caption")),
        image_link=_opt_text(_get(data, "imageLink", "image_link")),
        title=_opt_text(data.get("title")),
        text=_text(data.get("text")),
        media_position=_enum(
            MediaPosition, _get(data, "mediaPosition", "media_position"),
            MediaPosition.LEFT,
        ),
        media_width=50 if width is None else max(0, min(100, width)),
        vertical_align=_enum(
            VerticalAlign, _get(data, "verticalAlign", "vertical_align"),
            VerticalAlign.CENTER,
        ),
        background_color=_opt_text(_get(data, "backgroundColor", "background_color")),
        border_radius=_opt_text(_get(data, "borderRadius", "border_radius")),
        padding=_opt_text(data.get("padding")),
    )


_FROM_DICT: dict[BlockType, Callable[[dict], Block]] = {
    BlockType.HEADING: _heading_from_dict,
    BlockType.PARAGRAPH: _paragraph_from_dict,
    BlockType.IMAGE: _image_from_dict,
    BlockType.LIST: _list_from_dict,
    BlockType.CODE: _code_from_dict,
    BlockType.QUOTE: _quote_from_dict,
    BlockType.DIVIDER: _divider_from_dict,
    BlockType.TABLE: _table_from_dict,
    BlockType.FAQ: _faq_from_dict,
    BlockType.MEDIA_TEXT: _media_text_from_dict,
}


def block_from_dict(data: dict[str, Any]) -> Block:
    """Build a block from its wire dict.

    Keys may be camelCase (the wire form) or snake_case.  A missing or
    empty ``id`` gets a fresh one.

    Raises
    ------
    BlockifyUnknownBlockTypeError
        If ``data["type"]`` is not a known block type or alias.
    """
    raw_type = data.get("type")
    block_type = resolve_block_type(raw_type)
    if block_type is None:
        raise BlockifyUnknownBlockTypeError(
            f"Unknown block type: {raw_type!r}",
            context={"block_type": str(raw_type)},
        )
    block = _FROM_DICT[block_type](data)
    block_id = data.get("id")
    if isinstance(block_id, (str, int)) and not isinstance(block_id, bool) and block_id != "":
        block.id = str(block_id)
    return block
