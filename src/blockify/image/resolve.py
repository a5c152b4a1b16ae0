"""Asset resolution: replace transient image urls with durable ones.

Normalizers accept ``data:image/...`` and ``blob:`` urls as-is so that
parsing stays pure and synchronous.  Before a document is saved, every
image block carrying such a url goes through this stage:

1. Load the bytes (decode the data URI, or ask the blob source).
2. Validate MIME type and size against :class:`BlockifyConfig`.
3. Upload through the asset store and put the returned url on the block.

A failed image is never dropped.  The block keeps its place with an
empty ``url`` and ``config.upload_failure_marker`` appended to its
caption, and an ``IMAGE_UPLOAD_FAILED`` warning is recorded.

Results are written back by block id, so the async variant can finish
uploads in any order without perturbing the document.
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import time
from typing import Any

from blockify.config import BlockifyConfig
from blockify.errors import BlockifyError, BlockifyImageUnavailableError
from blockify.models import (
    AssetUpload,
    Block,
    BlockType,
    ConversionWarning,
    ImageBlock,
    ImageSourceType,
    ResolveReport,
)
from blockify.observability import get_logger, resolve_metrics

from .detect import detect_image_source
from .validate import parse_data_uri, truncate_src, validate_image_bytes

log = get_logger("blockify.image")

UPLOAD_FAILED = "IMAGE_UPLOAD_FAILED"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def pending_image_blocks(blocks: list[Block]) -> list[ImageBlock]:
    """Return the image blocks whose url must be uploaded, in document order."""
    return [
        b for b in blocks
        if b.type == BlockType.IMAGE
        and detect_image_source(b.url) in (ImageSourceType.DATA_URI, ImageSourceType.BLOB_URL)
    ]


def _load_bytes(url: str, config: BlockifyConfig, blob_source: Any) -> tuple[bytes, str]:
    """Return validated ``(data, mime_type)`` for a transient url."""
    if detect_image_source(url) == ImageSourceType.DATA_URI:
        mime_type, data = parse_data_uri(url)
    else:
        found = blob_source(url) if blob_source is not None else None
        if found is None:
            raise BlockifyImageUnavailableError(
                message="Blob data is no longer available",
                context={"src": truncate_src(url)},
            )
        data, mime_type = found
    return data, validate_image_bytes(data, mime_type, config, src=url)


async def _async_load_bytes(
    url: str, config: BlockifyConfig, blob_source: Any,
) -> tuple[bytes, str]:
    if detect_image_source(url) == ImageSourceType.BLOB_URL and blob_source is not None:
        found = blob_source(url)
        if inspect.isawaitable(found):
            found = await found
        return _load_bytes(url, config, lambda _url: found)
    return _load_bytes(url, config, blob_source)


def _uploaded_block(block: ImageBlock, upload: AssetUpload) -> ImageBlock:
    alt = block.alt or upload.alt_text_guess or ""
    return dataclasses.replace(block, url=upload.url, alt=alt)


def failed_image_block(block: ImageBlock, marker: str) -> ImageBlock:
    """Return *block* with its url cleared and *marker* appended to the caption."""
    caption = f"{block.caption} {marker}" if block.caption else marker
    return dataclasses.replace(block, url="", caption=caption)


def _failure_warning(block: ImageBlock, exc: Exception) -> ConversionWarning:
    if isinstance(exc, BlockifyError):
        code = str(getattr(exc.code, "value", exc.code))
        message = exc.message
    else:
        code = type(exc).__name__
        message = str(exc)
    return ConversionWarning(
        code=UPLOAD_FAILED,
        message=f"Image upload failed: {message}",
        context={"block_id": block.id, "src": truncate_src(block.url, 80), "error": code},
    )


class _Resolution:
    """Collects per-block outcomes and writes them back by id."""

    def __init__(self, config: BlockifyConfig) -> None:
        self.config = config
        self.metrics = resolve_metrics(config.metrics)
        self.replacements: dict[str, ImageBlock] = {}
        self.report = ResolveReport()

    def succeeded(self, block: ImageBlock, upload: AssetUpload, started: float) -> None:
        self.replacements[block.id] = _uploaded_block(block, upload)
        self.report.uploaded += 1
        self.metrics.increment("blockify.upload_success_total")
        self.metrics.timing("blockify.upload_duration_ms", (time.monotonic() - started) * 1000)

    def failed(self, block: ImageBlock, exc: Exception) -> None:
        warning = _failure_warning(block, exc)
        self.replacements[block.id] = failed_image_block(block, self.config.upload_failure_marker)
        self.report.failed += 1
        self.report.warnings.append(warning)
        self.metrics.increment(
            "blockify.upload_failure_total", tags={"reason": warning.context["error"]},
        )
        log.warning(
            "Image upload failed",
            extra={
                "extra_fields": {
                    "op": "resolve_assets",
                    "block_id": block.id,
                    "src": warning.context["src"],
                    "error": warning.context["error"],
                }
            },
        )

    def apply(self, blocks: list[Block]) -> ResolveReport:
        for i, block in enumerate(blocks):
            replacement = self.replacements.get(block.id)
            if replacement is not None:
                blocks[i] = replacement
        return self.report


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------

def resolve_assets(
    blocks: list[Block],
    store: Any,
    config: BlockifyConfig | None = None,
    blob_source: Any | None = None,
) -> ResolveReport:
    """Upload every transient image in *blocks*, one after another.

    *blocks* is updated in place: resolved image blocks are swapped for
    copies carrying the durable url (or the failure marker).

    Parameters
    ----------
    blocks:
        The document.  Non-image blocks are never touched.
    store:
        An :class:`~blockify.assets.AssetStore`.
    config:
        Validation limits and the failure marker.
    blob_source:
        ``blob_source(url) -> (data, mime_type) | None`` for ``blob:`` urls.

    Returns
    -------
    ResolveReport
        Upload and failure counts plus one warning per failure.
    """
    config = config or BlockifyConfig()
    state = _Resolution(config)

    for block in pending_image_blocks(blocks):
        started = time.monotonic()
        try:
            data, mime_type = _load_bytes(block.url, config, blob_source)
            upload = store.upload(data, mime_type)
        except Exception as exc:
            state.failed(block, exc)
        else:
            state.succeeded(block, upload, started)

    return state.apply(blocks)


def upload_image_bytes(
    store: Any,
    data: bytes,
    mime_type: str | None,
    config: BlockifyConfig | None = None,
) -> AssetUpload:
    """Validate and upload image bytes pasted directly from the clipboard.

    Raises
    ------
    BlockifyImageError
        If the bytes fail MIME or size validation.
    Exception
        Whatever the asset store raises.
    """
    config = config or BlockifyConfig()
    mime = validate_image_bytes(data, mime_type, config)
    return store.upload(data, mime)


# ---------------------------------------------------------------------------
# Async
# ---------------------------------------------------------------------------

async def async_resolve_assets(
    blocks: list[Block],
    store: Any,
    config: BlockifyConfig | None = None,
    blob_source: Any | None = None,
) -> ResolveReport:
    """Async equivalent of :func:`resolve_assets` with bounded concurrency.

    At most ``config.upload_max_concurrent`` uploads run at once.  A
    *blob_source* may be a plain callable or return an awaitable.
    """
    config = config or BlockifyConfig()
    state = _Resolution(config)
    pending = pending_image_blocks(blocks)
    if not pending:
        return state.report

    semaphore = asyncio.Semaphore(config.upload_max_concurrent)

    async def _resolve_one(block: ImageBlock) -> None:
        async with semaphore:
            started = time.monotonic()
            try:
                data, mime_type = await _async_load_bytes(block.url, config, blob_source)
                upload = await store.upload(data, mime_type)
            except Exception as exc:
                state.failed(block, exc)
            else:
                state.succeeded(block, upload, started)

    await asyncio.gather(*(_resolve_one(block) for block in pending))

    # Warnings follow document order regardless of completion order.
    order = {block.id: i for i, block in enumerate(pending)}
    state.report.warnings.sort(key=lambda w: order.get(w.context.get("block_id"), 0))
    return state.apply(blocks)


async def async_upload_image_bytes(
    store: Any,
    data: bytes,
    mime_type: str | None,
    config: BlockifyConfig | None = None,
) -> AssetUpload:
    """Async equivalent of :func:`upload_image_bytes`."""
    config = config or BlockifyConfig()
    mime = validate_image_bytes(data, mime_type, config)
    return await store.upload(data, mime)
