"""Public data models for blockify.

This module contains the block variants that make up a document, every
result type and warning type returned by the public API, and the enums
they reference.  All types are plain dataclasses with no behaviour
beyond what is needed for structural equality.

A document is simply ``list[Block]``; list order is rendering order.
``Block`` is a closed union of ten independent dataclasses.  Each
variant carries its wire discriminant as the class attribute ``type``,
so code dispatches on ``block.type`` through per-type tables instead of
through a class hierarchy.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union


def new_block_id() -> str:
    """Return a fresh opaque block id."""
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class BlockType(str, Enum):
    """Block discriminant.  Values are the wire names used in JSON."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    IMAGE = "image"
    LIST = "list"
    CODE = "code"
    QUOTE = "quote"
    DIVIDER = "divider"
    TABLE = "table"
    FAQ = "faq"
    MEDIA_TEXT = "media-text"


class ListStyle(str, Enum):
    """Marker style of a :class:`ListBlock`."""

    ORDERED = "ordered"
    UNORDERED = "unordered"


class MediaPosition(str, Enum):
    """Side of a :class:`MediaTextBlock` that holds the image."""

    LEFT = "left"
    RIGHT = "right"


class VerticalAlign(str, Enum):
    """Vertical alignment of the text column in a :class:`MediaTextBlock`."""

    TOP = "top"
    CENTER = "center"
    BOTTOM = "bottom"


class ImageSourceType(str, Enum):
    """Classification of an image ``url``."""

    EXTERNAL_URL = "external_url"
    """An ``http://`` or ``https://`` URL.  Durable."""

    DATA_URI = "data_uri"
    """Inline ``data:image/...`` content.  Must be uploaded."""

    BLOB_URL = "blob_url"
    """A ``blob:`` reference to in-memory browser data.  Must be uploaded."""

    RELATIVE = "relative"
    """A site-relative path such as ``/uploads/a.png``.  Durable."""

    UNKNOWN = "unknown"
    """The url is empty or could not be classified."""


class LayoutChoice(str, Enum):
    """The caller's decision for one image+text layout candidate."""

    SEPARATE = "separate"
    """Keep both blocks as they are (the default)."""

    MEDIA_LEFT = "media-left"
    """Merge into a MediaText block with the image on the left."""

    MEDIA_RIGHT = "media-right"
    """Merge into a MediaText block with the image on the right."""


# ---------------------------------------------------------------------------
# Block variants
# ---------------------------------------------------------------------------

@dataclass
class HeadingBlock:
    """Section heading.  ``level`` is kept in 2..6; level 1 is the page title."""

    type: ClassVar[BlockType] = BlockType.HEADING

    level: int = 2
    text: str = ""
    anchor: str = ""
    id: str = field(default_factory=new_block_id)


@dataclass
class ParagraphBlock:
    type: ClassVar[BlockType] = BlockType.PARAGRAPH

    text: str = ""
    id: str = field(default_factory=new_block_id)


@dataclass
class ImageBlock:
    """A single image with optional caption, credit and responsive hints.

    Attributes
    ----------
    url:
        Image location.  ``data:`` and ``blob:`` urls are transient and
        must be resolved through an asset store before the document is
        saved.
    caption:
        Visible caption text, credit excluded.
    link:
        Target of an anchor wrapping the image.
    source, source_url:
        Credit line and its link, taken from a ``.source``/``.credit``
        element inside a ``figcaption``.
    loading:
        ``"lazy"`` or ``"eager"``.
    """

    type: ClassVar[BlockType] = BlockType.IMAGE

    url: str = ""
    alt: str = ""
    caption: str | None = None
    link: str | None = None
    title: str | None = None
    width: int | None = None
    height: int | None = None
    srcset: str | None = None
    sizes: str | None = None
    loading: str | None = None
    source: str | None = None
    source_url: str | None = None
    id: str = field(default_factory=new_block_id)


@dataclass
class ListBlock:
    type: ClassVar[BlockType] = BlockType.LIST

    style: ListStyle = ListStyle.UNORDERED
    items: list[str] = field(default_factory=list)
    id: str = field(default_factory=new_block_id)


@dataclass
class CodeBlock:
    type: ClassVar[BlockType] = BlockType.CODE

    language: str = "text"
    code: str = ""
    id: str = field(default_factory=new_block_id)


@dataclass
class QuoteBlock:
    type: ClassVar[BlockType] = BlockType.QUOTE

    text: str = ""
    id: str = field(default_factory=new_block_id)


@dataclass
class DividerBlock:
    type: ClassVar[BlockType] = BlockType.DIVIDER

    id: str = field(default_factory=new_block_id)


@dataclass
class TableBlock:
    """Simple grid.  Rows may be shorter or longer than ``headers``."""

    type: ClassVar[BlockType] = BlockType.TABLE

    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)
    id: str = field(default_factory=new_block_id)


@dataclass
class FaqBlock:
    type: ClassVar[BlockType] = BlockType.FAQ

    question: str = ""
    answer: str = ""
    id: str = field(default_factory=new_block_id)


@dataclass
class MediaTextBlock:
    """Image and text side by side.

    ``media_width`` is the image column width in percent (0-100).
    ``background_color``, ``border_radius`` and ``padding`` are opaque
    presentation hints passed through to the renderer.
    """

    type: ClassVar[BlockType] = BlockType.MEDIA_TEXT

    image_url: str = ""
    image_alt: str = ""
    image_caption: str | None = None
    image_link: str | None = None
    title: str | None = None
    text: str = ""
    media_position: MediaPosition = MediaPosition.LEFT
    media_width: int = 50
    vertical_align: VerticalAlign = VerticalAlign.CENTER
    background_color: str | None = None
    border_radius: str | None = None
    padding: str | None = None
    id: str = field(default_factory=new_block_id)


Block = Union[
    HeadingBlock,
    ParagraphBlock,
    ImageBlock,
    ListBlock,
    CodeBlock,
    QuoteBlock,
    DividerBlock,
    TableBlock,
    FaqBlock,
    MediaTextBlock,
]
"""Any block variant."""

BLOCK_CLASSES: dict[BlockType, type] = {
    BlockType.HEADING: HeadingBlock,
    BlockType.PARAGRAPH: ParagraphBlock,
    BlockType.IMAGE: ImageBlock,
    BlockType.LIST: ListBlock,
    BlockType.CODE: CodeBlock,
    BlockType.QUOTE: QuoteBlock,
    BlockType.DIVIDER: DividerBlock,
    BlockType.TABLE: TableBlock,
    BlockType.FAQ: FaqBlock,
    BlockType.MEDIA_TEXT: MediaTextBlock,
}
"""Variant class for every :class:`BlockType`."""


# ---------------------------------------------------------------------------
# Conversion results
# ---------------------------------------------------------------------------

@dataclass
class ConversionWarning:
    """A non-fatal issue encountered while converting or resolving content.

    Warnings are accumulated in result objects so callers can inspect
    them after the operation completes.

    Attributes
    ----------
    code:
        A machine-readable warning code (e.g. ``"NO_IMPORTABLE_CONTENT"``).
    message:
        A human-readable description of the issue.
    context:
        Arbitrary structured data for diagnostics.
    """

    code: str
    message: str
    context: dict = field(default_factory=dict)


@dataclass
class PendingImage:
    """An image block whose url still has to be uploaded.

    Attributes
    ----------
    block_id:
        ``id`` of the image block.  Upload results are written back by id.
    block_index:
        Position of the block in the conversion output at the time it
        was reported.
    url:
        The transient ``data:`` or ``blob:`` url.
    source_type:
        Classification of *url*.
    """

    block_id: str
    block_index: int
    url: str
    source_type: ImageSourceType


@dataclass
class ConversionResult:
    """Output of one normalizer run.

    Attributes
    ----------
    blocks:
        Converted blocks in document order.
    pending_images:
        Image blocks carrying transient urls.
    warnings:
        Non-fatal issues discovered during conversion.
    """

    blocks: list[Block] = field(default_factory=list)
    pending_images: list[PendingImage] = field(default_factory=list)
    warnings: list[ConversionWarning] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """``True`` when no importable content was found."""
        return not self.blocks


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LayoutCandidate:
    """An adjacent image/text pair that could become one MediaText block.

    The two indexes are always consecutive; either may come first.
    """

    image_index: int
    text_index: int

    @property
    def first_index(self) -> int:
        return min(self.image_index, self.text_index)


# ---------------------------------------------------------------------------
# Document metrics
# ---------------------------------------------------------------------------

@dataclass
class TocEntry:
    """One table-of-contents line.  ``id`` is ``h{level}-{anchor}``."""

    id: str
    level: int
    text: str
    anchor: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "level": self.level, "text": self.text, "anchor": self.anchor}


@dataclass
class TocNode:
    entry: TocEntry
    children: list[TocNode] = field(default_factory=list)


@dataclass
class DocumentMetrics:
    """Derived, non-authoritative data computed from a document.

    Attributes
    ----------
    toc:
        Flat TOC entries in document order.
    word_count:
        Whitespace-delimited tokens across the text-bearing blocks.
    reading_time:
        Estimated minutes, never less than 1.
    """

    toc: list[TocEntry] = field(default_factory=list)
    word_count: int = 0
    reading_time: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "toc": [entry.to_dict() for entry in self.toc],
            "wordCount": self.word_count,
            "readingTime": self.reading_time,
        }


# ---------------------------------------------------------------------------
# Assets and clipboard
# ---------------------------------------------------------------------------

@dataclass
class AssetUpload:
    """What an asset store returns for one upload.

    Attributes
    ----------
    url:
        Durable, fetchable url of the stored asset.
    alt_text_guess:
        Optional alt text suggested by the store (e.g. from the filename).
    """

    url: str
    alt_text_guess: str | None = None


@dataclass
class ResolveReport:
    """Outcome of one asset-resolution pass.

    Attributes
    ----------
    uploaded:
        Number of images whose url was replaced with a durable one.
    failed:
        Number of images left with an empty url and the failure marker.
    warnings:
        One ``IMAGE_UPLOAD_FAILED`` warning per failure.
    """

    uploaded: int = 0
    failed: int = 0
    warnings: list[ConversionWarning] = field(default_factory=list)


@dataclass
class ClipboardImage:
    """A binary image file placed on the clipboard."""

    data: bytes
    mime_type: str
    filename: str | None = None


@dataclass
class ClipboardPayload:
    """Everything a paste event delivered.

    Attributes
    ----------
    html:
        The ``text/html`` flavour, if any.
    text:
        The ``text/plain`` flavour, if any.
    images:
        Image files on the clipboard.  When present they take precedence
        over both text flavours.
    blobs:
        Bytes and MIME type for ``blob:`` urls referenced by *html*.
    """

    html: str | None = None
    text: str | None = None
    images: list[ClipboardImage] = field(default_factory=list)
    blobs: dict[str, tuple[bytes, str]] = field(default_factory=dict)


@dataclass
class PasteResult:
    """Blocks produced by a paste, with their layout candidates."""

    blocks: list[Block] = field(default_factory=list)
    candidates: list[LayoutCandidate] = field(default_factory=list)
    warnings: list[ConversionWarning] = field(default_factory=list)
    images_uploaded: int = 0


@dataclass
class ExportBundle:
    """Everything persisted on save: blocks plus the derived artifacts.

    ``to_dict()`` produces the legacy payload shape
    ``{contentBlocks, content, contentStructure}``.
    """

    blocks: list[Block] = field(default_factory=list)
    markdown: str = ""
    metrics: DocumentMetrics = field(default_factory=DocumentMetrics)

    def to_dict(self) -> dict[str, Any]:
        from blockify.blocks import block_to_dict

        return {
            "contentBlocks": [block_to_dict(b) for b in self.blocks],
            "content": self.markdown,
            "contentStructure": self.metrics.to_dict(),
        }
