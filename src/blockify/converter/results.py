"""Assemble :class:`ConversionResult` objects for the normalizers."""

from __future__ import annotations

from blockify.image.detect import detect_image_source
from blockify.models import (
    Block,
    BlockType,
    ConversionResult,
    ConversionWarning,
    ImageSourceType,
    PendingImage,
)

NO_IMPORTABLE_CONTENT = "NO_IMPORTABLE_CONTENT"

_TRANSIENT = (ImageSourceType.DATA_URI, ImageSourceType.BLOB_URL)


def build_result(
    blocks: list[Block],
    warnings: list[ConversionWarning],
    source: str,
) -> ConversionResult:
    """Wrap normalizer output, reporting transient images and empty results.

    Parameters
    ----------
    blocks:
        Converted blocks in document order.
    warnings:
        Warnings collected during conversion.
    source:
        Input kind (``"html"``, ``"json"``, ``"text"``) for the
        empty-result warning.
    """
    pending: list[PendingImage] = []
    for index, block in enumerate(blocks):
        if block.type != BlockType.IMAGE:
            continue
        source_type = detect_image_source(block.url)
        if source_type in _TRANSIENT:
            pending.append(PendingImage(
                block_id=block.id,
                block_index=index,
                url=block.url,
                source_type=source_type,
            ))

    if not blocks:
        warnings.append(ConversionWarning(
            code=NO_IMPORTABLE_CONTENT,
            message=f"No importable content found in {source} input",
            context={"source": source},
        ))

    return ConversionResult(blocks=blocks, pending_images=pending, warnings=warnings)
