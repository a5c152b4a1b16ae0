"""blockify: content blocks for a long-form editor (paste, convert, export).

Public re-exports
-----------------

* **Clients:** :class:`BlockifyClient`, :class:`AsyncBlockifyClient`
* **Editing:** :class:`EditingSession`
* **Configuration:** :class:`BlockifyConfig`
* **Errors:** Every :class:`BlockifyError` subclass and :class:`ErrorCode`
* **Models:** Block variants, result dataclasses, enums and supporting types
* **Functions:** Block (de)serialisation, conversion, layout and metrics helpers

Usage::

    from blockify import BlockifyClient

    client = BlockifyClient()
    result = client.convert_html("<h2>Hello</h2><p>World</p>")
    print(client.to_markdown(result.blocks))
"""

from __future__ import annotations

# ── Analysis ────────────────────────────────────────────────────────────
from blockify.analysis import (
    build_toc,
    build_toc_tree,
    compute_document_metrics,
    count_words,
    estimate_reading_time,
)
from blockify.async_client import AsyncBlockifyClient

# ── Blocks ──────────────────────────────────────────────────────────────
from blockify.blocks import (
    block_from_dict,
    block_to_dict,
    blocks_to_json,
    clamp_heading_level,
    create_empty,
    duplicate_block,
    resolve_block_type,
)

# ── Clients ────────────────────────────────────────────────────────────
from blockify.client import BlockifyClient

# ── Configuration ───────────────────────────────────────────────────────
from blockify.config import DEFAULT_UPLOAD_MIMES, BlockifyConfig

# ── Converters ──────────────────────────────────────────────────────────
from blockify.converter import (
    blocks_to_html,
    blocks_to_markdown,
    html_to_blocks,
    json_to_blocks,
    parse_json_text,
    text_to_blocks,
)

# ── Errors ──────────────────────────────────────────────────────────────
from blockify.errors import (
    BlockifyAuthError,
    BlockifyConversionError,
    BlockifyError,
    BlockifyImageError,
    BlockifyImageParseError,
    BlockifyImageSizeError,
    BlockifyImageTypeError,
    BlockifyImageUnavailableError,
    BlockifyJSONDecodeError,
    BlockifyRetryExhaustedError,
    BlockifyUnknownBlockTypeError,
    BlockifyUploadError,
    BlockifyUploadTransportError,
    BlockifyValidationError,
    ErrorCode,
)

# ── Layout ──────────────────────────────────────────────────────────────
from blockify.layout import apply_layout_choices, find_image_text_pairs, merge_pair

# ── Models ──────────────────────────────────────────────────────────────
from blockify.models import (
    BLOCK_CLASSES,
    AssetUpload,
    Block,
    BlockType,
    ClipboardImage,
    ClipboardPayload,
    CodeBlock,
    ConversionResult,
    ConversionWarning,
    DividerBlock,
    DocumentMetrics,
    ExportBundle,
    FaqBlock,
    HeadingBlock,
    ImageBlock,
    ImageSourceType,
    LayoutCandidate,
    LayoutChoice,
    ListBlock,
    ListStyle,
    MediaPosition,
    MediaTextBlock,
    ParagraphBlock,
    PasteResult,
    PendingImage,
    QuoteBlock,
    ResolveReport,
    TableBlock,
    TocEntry,
    TocNode,
    VerticalAlign,
)
from blockify.session import EditingSession
from blockify.utils.slug import generate_anchor

__all__ = [
    # Clients
    "AsyncBlockifyClient",
    "BlockifyClient",
    "EditingSession",
    # Configuration
    "BlockifyConfig",
    "DEFAULT_UPLOAD_MIMES",
    # Errors
    "BlockifyAuthError",
    "BlockifyConversionError",
    "BlockifyError",
    "BlockifyImageError",
    "BlockifyImageParseError",
    "BlockifyImageSizeError",
    "BlockifyImageTypeError",
    "BlockifyImageUnavailableError",
    "BlockifyJSONDecodeError",
    "BlockifyRetryExhaustedError",
    "BlockifyUnknownBlockTypeError",
    "BlockifyUploadError",
    "BlockifyUploadTransportError",
    "BlockifyValidationError",
    "ErrorCode",
    # Models
    "AssetUpload",
    "BLOCK_CLASSES",
    "Block",
    "BlockType",
    "ClipboardImage",
    "ClipboardPayload",
    "CodeBlock",
    "ConversionResult",
    "ConversionWarning",
    "DividerBlock",
    "DocumentMetrics",
    "ExportBundle",
    "FaqBlock",
    "HeadingBlock",
    "ImageBlock",
    "ImageSourceType",
    "LayoutCandidate",
    "LayoutChoice",
    "ListBlock",
    "ListStyle",
    "MediaPosition",
    "MediaTextBlock",
    "ParagraphBlock",
    "PasteResult",
    "PendingImage",
    "QuoteBlock",
    "ResolveReport",
    "TableBlock",
    "TocEntry",
    "TocNode",
    "VerticalAlign",
    # Functions
    "apply_layout_choices",
    "block_from_dict",
    "block_to_dict",
    "blocks_to_html",
    "blocks_to_json",
    "blocks_to_markdown",
    "build_toc",
    "build_toc_tree",
    "clamp_heading_level",
    "compute_document_metrics",
    "count_words",
    "create_empty",
    "duplicate_block",
    "estimate_reading_time",
    "find_image_text_pairs",
    "generate_anchor",
    "html_to_blocks",
    "json_to_blocks",
    "merge_pair",
    "parse_json_text",
    "resolve_block_type",
    "text_to_blocks",
]

__version__ = "1.0.0"
