"""Synchronous blockify client.

:class:`BlockifyClient` wires the normalizers, the layout advisor, the
asset-resolution stage, the serializers and the metrics together behind
one object.

Usage::

    from blockify import BlockifyClient, ClipboardPayload

    with BlockifyClient(media_base_url="https://cms.example.com/api",
                        token="secret") as client:
        pasted = client.paste(ClipboardPayload(html=html, text=text))
        bundle = client.export(pasted.blocks)
"""

from __future__ import annotations

import json
import sys
import time
from collections.abc import Mapping
from typing import Any

from blockify.analysis import compute_document_metrics
from blockify.assets.media_api import MediaStore
from blockify.blocks import block_to_dict
from blockify.config import BlockifyConfig
from blockify.converter.html_normalizer import HtmlNormalizer
from blockify.converter.html_renderer import HtmlRenderer
from blockify.converter.json_normalizer import JsonNormalizer, parse_json_text
from blockify.converter.markdown_serializer import MarkdownSerializer
from blockify.converter.text_normalizer import TextNormalizer
from blockify.image.resolve import UPLOAD_FAILED, resolve_assets, upload_image_bytes
from blockify.layout import apply_layout_choices, find_image_text_pairs
from blockify.models import (
    Block,
    ClipboardImage,
    ClipboardPayload,
    ConversionResult,
    ConversionWarning,
    DocumentMetrics,
    ExportBundle,
    ImageBlock,
    LayoutCandidate,
    LayoutChoice,
    PasteResult,
    ResolveReport,
)
from blockify.observability import get_logger, resolve_metrics
from blockify.utils.redact import redact

log = get_logger("blockify.client")


class _ClientCore:
    """Conversion, layout and export operations shared by both clients."""

    def __init__(self, config: BlockifyConfig | None, **kwargs: Any) -> None:
        if config is not None and kwargs:
            raise TypeError("Pass either a BlockifyConfig or keyword options, not both")
        self._config = config or BlockifyConfig(**kwargs)
        self._metrics = resolve_metrics(self._config.metrics)
        self._html = HtmlNormalizer(self._config)
        self._json = JsonNormalizer(self._config)
        self._text = TextNormalizer(self._config)
        self._markdown = MarkdownSerializer(self._config)
        self._renderer = HtmlRenderer()

    @property
    def config(self) -> BlockifyConfig:
        return self._config

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def convert_html(self, html: str | None) -> ConversionResult:
        """Convert an HTML fragment.  Never raises."""
        return self._convert("html", self._html.normalize, html)

    def convert_json(self, value: Any) -> ConversionResult:
        """Convert an already-decoded JSON value.  Never raises."""
        return self._convert("json", self._json.normalize, value)

    def convert_json_text(self, text: str) -> ConversionResult:
        """Decode and convert a JSON document.

        Raises
        ------
        BlockifyJSONDecodeError
            If *text* is not valid JSON.
        """
        return self.convert_json(parse_json_text(text))

    def convert_text(self, text: str | None) -> ConversionResult:
        """Convert plain or Markdown-like text.  Never raises."""
        return self._convert("text", self._text.normalize, text)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def suggest_layouts(self, blocks: list[Block]) -> list[LayoutCandidate]:
        """Adjacent image/text pairs that could become MediaText blocks."""
        return find_image_text_pairs(blocks)

    def apply_layouts(
        self,
        blocks: list[Block],
        candidates: list[LayoutCandidate],
        choices: Mapping[int, LayoutChoice | str] | None = None,
    ) -> list[Block]:
        """Merge the accepted candidates; see :func:`apply_layout_choices`."""
        return apply_layout_choices(blocks, candidates, choices, self._config)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_markdown(self, blocks: list[Block]) -> str:
        return self._markdown.serialize(blocks)

    def to_html(self, blocks: list[Block]) -> str:
        return self._renderer.render(blocks)

    def metrics(self, blocks: list[Block]) -> DocumentMetrics:
        return compute_document_metrics(blocks, self._config)

    def export(self, blocks: list[Block]) -> ExportBundle:
        """Blocks plus the Markdown and metrics legacy consumers read."""
        blocks = list(blocks)
        return ExportBundle(
            blocks=blocks,
            markdown=self.to_markdown(blocks),
            metrics=self.metrics(blocks),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _convert(self, source: str, normalize: Any, value: Any) -> ConversionResult:
        t0 = time.monotonic()
        result = normalize(value)
        self._metrics.increment(
            "blockify.blocks_converted_total", len(result.blocks), tags={"source": source},
        )
        if result.warnings:
            self._metrics.increment(
                "blockify.conversion_warnings_total",
                len(result.warnings),
                tags={"source": source},
            )
        log.info(
            "conversion complete",
            extra={
                "extra_fields": {
                    "op": f"convert_{source}",
                    "blocks": len(result.blocks),
                    "pending_images": len(result.pending_images),
                    "warnings": len(result.warnings),
                    "duration_ms": round((time.monotonic() - t0) * 1000, 3),
                }
            },
        )
        self._dump_blocks(result.blocks, source)
        return result

    def _dump_blocks(self, blocks: list[Block], source: str) -> None:
        """Write the redacted block dicts to stderr when enabled."""
        if not self._config.debug_dump_blocks:
            return
        dump = {"source": source, "blocks": [block_to_dict(b) for b in blocks]}
        print(
            json.dumps(redact(dump, self._config.token), indent=2, ensure_ascii=False),
            file=sys.stderr,
        )

    def _failed_paste_image(
        self, image: ClipboardImage, exc: Exception, warnings: list[ConversionWarning],
    ) -> ImageBlock:
        warnings.append(ConversionWarning(
            code=UPLOAD_FAILED,
            message=f"Pasted image upload failed: {exc}",
            context={"mime_type": image.mime_type, "filename": image.filename},
        ))
        self._metrics.increment(
            "blockify.upload_failure_total", tags={"reason": type(exc).__name__},
        )
        log.warning(
            "Pasted image upload failed",
            extra={
                "extra_fields": {
                    "op": "paste",
                    "mime_type": image.mime_type,
                    "error": str(exc),
                }
            },
        )
        return ImageBlock(url="", alt="", caption=self._config.upload_failure_marker)

    def _paste_result(
        self,
        blocks: list[Block],
        warnings: list[ConversionWarning],
        uploaded: int,
    ) -> PasteResult:
        return PasteResult(
            blocks=blocks,
            candidates=find_image_text_pairs(blocks),
            warnings=warnings,
            images_uploaded=uploaded,
        )


class BlockifyClient(_ClientCore):
    """Synchronous blockify client.

    Parameters
    ----------
    config:
        A complete :class:`BlockifyConfig`.  Mutually exclusive with
        *kwargs*.
    asset_store:
        Any :class:`~blockify.assets.AssetStore`.  When omitted a
        :class:`~blockify.assets.MediaStore` is created on first use
        and closed by :meth:`close`.
    **kwargs:
        Forwarded to :class:`BlockifyConfig` when *config* is omitted.
    """

    def __init__(
        self,
        config: BlockifyConfig | None = None,
        asset_store: Any | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(config, **kwargs)
        self._store = asset_store
        self._owns_store = asset_store is None

    @property
    def asset_store(self) -> Any:
        if self._store is None:
            self._store = MediaStore(self._config)
        return self._store

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def resolve_assets(
        self, blocks: list[Block], blob_source: Any | None = None,
    ) -> ResolveReport:
        """Upload transient images in *blocks* (in place), one at a time."""
        report = resolve_assets(blocks, self.asset_store, self._config, blob_source)
        self._log_resolve(report)
        return report

    def paste(self, payload: ClipboardPayload) -> PasteResult:
        """Turn a clipboard payload into blocks.

        Image files win over both text flavours.  Otherwise the HTML is
        converted and its inline images resolved; when that yields
        nothing the plain text is converted instead.
        """
        if payload.images:
            warnings: list[ConversionWarning] = []
            blocks: list[Block] = []
            uploaded = 0
            for image in payload.images:
                try:
                    upload = upload_image_bytes(
                        self.asset_store, image.data, image.mime_type, self._config,
                    )
                except Exception as exc:
                    blocks.append(self._failed_paste_image(image, exc, warnings))
                else:
                    self._metrics.increment("blockify.upload_success_total")
                    blocks.append(ImageBlock(url=upload.url, alt=upload.alt_text_guess or ""))
                    uploaded += 1
            return self._paste_result(blocks, warnings, uploaded)

        result = self.convert_html(payload.html) if payload.html else ConversionResult()
        if result.blocks:
            report = ResolveReport()
            if result.pending_images:
                report = self.resolve_assets(result.blocks, payload.blobs.get)
            return self._paste_result(
                result.blocks, result.warnings + report.warnings, report.uploaded,
            )

        result = self.convert_text(payload.text)
        return self._paste_result(result.blocks, result.warnings, 0)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the asset store if this client created it."""
        if self._owns_store and self._store is not None:
            self._store.close()
            self._store = None

    def __enter__(self) -> BlockifyClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _log_resolve(self, report: ResolveReport) -> None:
        log.info(
            "assets resolved",
            extra={
                "extra_fields": {
                    "op": "resolve_assets",
                    "uploaded": report.uploaded,
                    "failed": report.failed,
                }
            },
        )
