"""Asynchronous blockify client.

Usage::

    from blockify import AsyncBlockifyClient, ClipboardPayload

    async with AsyncBlockifyClient(token="secret") as client:
        pasted = await client.paste(ClipboardPayload(html=html))
        blocks = client.apply_layouts(pasted.blocks, pasted.candidates, {0: "media-left"})

Conversion, layout and export are CPU-only and stay synchronous; only
the operations that talk to the asset store are coroutines.
"""

from __future__ import annotations

import asyncio
from typing import Any

from blockify.assets.media_api import AsyncMediaStore
from blockify.client import _ClientCore, log
from blockify.config import BlockifyConfig
from blockify.image.resolve import async_resolve_assets, async_upload_image_bytes
from blockify.models import (
    AssetUpload,
    Block,
    ClipboardPayload,
    ConversionResult,
    ConversionWarning,
    ImageBlock,
    PasteResult,
    ResolveReport,
)


class AsyncBlockifyClient(_ClientCore):
    """Async blockify client.

    Parameters
    ----------
    config:
        A complete :class:`BlockifyConfig`.  Mutually exclusive with
        *kwargs*.
    asset_store:
        Any :class:`~blockify.assets.AsyncAssetStore`.  When omitted an
        :class:`~blockify.assets.AsyncMediaStore` is created on first use
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
            self._store = AsyncMediaStore(self._config)
        return self._store

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    async def resolve_assets(
        self, blocks: list[Block], blob_source: Any | None = None,
    ) -> ResolveReport:
        """Upload transient images in *blocks* (in place) concurrently.

        At most ``config.upload_max_concurrent`` uploads are in flight.
        """
        report = await async_resolve_assets(
            blocks, self.asset_store, self._config, blob_source,
        )
        log.info(
            "assets resolved",
            extra={
                "extra_fields": {
                    "op": "async_resolve_assets",
                    "uploaded": report.uploaded,
                    "failed": report.failed,
                }
            },
        )
        return report

    async def paste(self, payload: ClipboardPayload) -> PasteResult:
        """Async equivalent of :meth:`BlockifyClient.paste`.

        Pasted image files are uploaded concurrently under the same
        concurrency limit; the resulting blocks keep the clipboard order.
        """
        if payload.images:
            semaphore = asyncio.Semaphore(self._config.upload_max_concurrent)

            async def _upload(image: Any) -> AssetUpload | Exception:
                async with semaphore:
                    try:
                        return await async_upload_image_bytes(
                            self.asset_store, image.data, image.mime_type, self._config,
                        )
                    except Exception as exc:
                        return exc

            outcomes = await asyncio.gather(*(_upload(img) for img in payload.images))
            warnings: list[ConversionWarning] = []
            blocks: list[Block] = []
            uploaded = 0
            for image, outcome in zip(payload.images, outcomes):
                if isinstance(outcome, Exception):
                    blocks.append(self._failed_paste_image(image, outcome, warnings))
                    continue
                self._metrics.increment("blockify.upload_success_total")
                blocks.append(ImageBlock(url=outcome.url, alt=outcome.alt_text_guess or ""))
                uploaded += 1
            return self._paste_result(blocks, warnings, uploaded)

        result = self.convert_html(payload.html) if payload.html else ConversionResult()
        if result.blocks:
            report = ResolveReport()
            if result.pending_images:
                report = await self.resolve_assets(result.blocks, payload.blobs.get)
            return self._paste_result(
                result.blocks, result.warnings + report.warnings, report.uploaded,
            )

        result = self.convert_text(payload.text)
        return self._paste_result(result.blocks, result.warnings, 0)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the asset store if this client created it."""
        if self._owns_store and self._store is not None:
            await self._store.close()
            self._store = None

    async def __aenter__(self) -> AsyncBlockifyClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
