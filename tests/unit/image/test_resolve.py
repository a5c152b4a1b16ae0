"""Tests for image/resolve.py: the asset-resolution stage."""

from __future__ import annotations

import asyncio
import base64

import pytest

from blockify.config import BlockifyConfig
from blockify.image.resolve import (
    async_resolve_assets,
    async_upload_image_bytes,
    failed_image_block,
    pending_image_blocks,
    resolve_assets,
    upload_image_bytes,
)
from blockify.errors import BlockifyImageTypeError
from blockify.models import AssetUpload, ImageBlock, ParagraphBlock

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 8


def _data_uri(data: bytes = PNG, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode()}"


class TestHelpers:
    def test_pending_image_blocks(self):
        a = ImageBlock(url=_data_uri())
        b = ImageBlock(url="blob:https://x/1")
        blocks = [a, ImageBlock(url="https://x/a.png"), ParagraphBlock(text="data:image/"), b]
        assert pending_image_blocks(blocks) == [a, b]

    def test_failed_image_block_appends_marker(self):
        block = ImageBlock(url="blob:x", caption="Chart", id="i")
        failed = failed_image_block(block, "[Upload failed]")
        assert failed.url == ""
        assert failed.caption == "Chart [Upload failed]"
        assert failed.id == "i"
        assert block.url == "blob:x"

    def test_failed_image_block_without_caption(self):
        failed = failed_image_block(ImageBlock(url="blob:x"), "[!]")
        assert failed.caption == "[!]"


class TestResolveAssets:
    def test_data_uri_uploaded_and_replaced_in_place(self, store, config):
        image = ImageBlock(url=_data_uri(), alt="", id="img")
        blocks = [ParagraphBlock(text="p"), image]
        report = resolve_assets(blocks, store, config)

        assert report.uploaded == 1
        assert report.failed == 0
        assert blocks[1].url == "https://cdn.example.com/img-0.png"
        assert blocks[1].id == "img"
        assert store.calls == [(PNG, "image/png")]

    def test_durable_urls_untouched(self, store, config):
        blocks = [ImageBlock(url="https://x/a.png"), ImageBlock(url="/local.png")]
        report = resolve_assets(blocks, store, config)
        assert report.uploaded == 0
        assert store.calls == []

    def test_blob_read_through_source(self, store, config):
        blobs = {"blob:https://app/1": (PNG, "image/png")}
        blocks = [ImageBlock(url="blob:https://app/1")]
        report = resolve_assets(blocks, store, config, blob_source=blobs.get)
        assert report.uploaded == 1
        assert blocks[0].url.startswith("https://cdn.example.com/")

    def test_missing_blob_fails_with_marker(self, store, config):
        blocks = [ImageBlock(url="blob:https://app/gone", caption="Fig 1", id="b1")]
        report = resolve_assets(blocks, store, config, blob_source={}.get)
        assert report.failed == 1
        assert blocks[0].url == ""
        assert blocks[0].caption == "Fig 1 [Upload failed]"
        warning = report.warnings[0]
        assert warning.code == "IMAGE_UPLOAD_FAILED"
        assert warning.context["block_id"] == "b1"
        assert warning.context["error"] == "IMAGE_UNAVAILABLE"
        assert store.calls == []

    def test_store_failure_keeps_block(self, config):
        class FailingStore:
            def upload(self, data, content_hint):
                raise RuntimeError("disk full")

        blocks = [ImageBlock(url=_data_uri(), id="x"), ParagraphBlock(text="after")]
        report = resolve_assets(blocks, FailingStore(), config)
        assert len(blocks) == 2
        assert blocks[0].id == "x"
        assert blocks[0].caption == config.upload_failure_marker
        assert report.warnings[0].context["error"] == "RuntimeError"

    def test_disallowed_mime_fails(self, store, config):
        blocks = [ImageBlock(url=_data_uri(b"GIF89a", "image/tiff"))]
        report = resolve_assets(blocks, store, config)
        assert report.failed == 1
        assert report.warnings[0].context["error"] == "IMAGE_TYPE_ERROR"

    def test_partial_failure(self, store, config):
        store.fail_on = {1}
        blocks = [
            ImageBlock(url=_data_uri(), id="a"),
            ImageBlock(url=_data_uri(), id="b"),
            ImageBlock(url=_data_uri(), id="c"),
        ]
        report = resolve_assets(blocks, store, config)
        assert (report.uploaded, report.failed) == (2, 1)
        assert [b.url != "" for b in blocks] == [True, False, True]

    def test_store_alt_text_used_only_when_block_has_none(self, config):
        class AltStore:
            def upload(self, data, content_hint):
                return AssetUpload(url="https://cdn/x.png", alt_text_guess="guessed")

        blocks = [ImageBlock(url=_data_uri(), alt=""), ImageBlock(url=_data_uri(), alt="mine")]
        resolve_assets(blocks, AltStore(), config)
        assert [b.alt for b in blocks] == ["guessed", "mine"]

    def test_metrics_emitted(self, store, metrics):
        cfg = BlockifyConfig(metrics=metrics)
        store.fail_on = {0}
        resolve_assets([ImageBlock(url=_data_uri()), ImageBlock(url=_data_uri())], store, cfg)
        assert metrics.count("blockify.upload_success_total") == 1
        assert metrics.count("blockify.upload_failure_total") == 1
        assert [name for name, _, _ in metrics.timings] == ["blockify.upload_duration_ms"]


class TestUploadImageBytes:
    def test_validates_then_uploads(self, store, config):
        upload = upload_image_bytes(store, PNG, None, config)
        assert upload.url == "https://cdn.example.com/img-0.png"
        assert store.calls == [(PNG, "image/png")]

    def test_invalid_bytes_not_uploaded(self, store, config):
        with pytest.raises(BlockifyImageTypeError):
            upload_image_bytes(store, b"text", "text/plain", config)
        assert store.calls == []


class _SlowAsyncStore:
    """Async store whose uploads finish in reverse order of submission."""

    def __init__(self, fail_urls: set[bytes] | None = None) -> None:
        self.in_flight = 0
        self.max_in_flight = 0
        self.fail = fail_urls or set()

    async def upload(self, data, content_hint):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            index = data[-1]
            await asyncio.sleep(0.01 * (10 - index))
            if data in self.fail:
                raise RuntimeError("rejected")
            return AssetUpload(url=f"https://cdn/{index}.png")
        finally:
            self.in_flight -= 1


def _numbered_png(n: int) -> bytes:
    return PNG + bytes([n])


class TestAsyncResolveAssets:
    @pytest.mark.asyncio
    async def test_results_written_back_by_id_despite_out_of_order_completion(self, config):
        store = _SlowAsyncStore()
        blocks = []
        for n in range(5):
            blocks.append(ImageBlock(url=_data_uri(_numbered_png(n)), id=f"img{n}"))
            blocks.append(ParagraphBlock(text=f"p{n}", id=f"p{n}"))

        report = await async_resolve_assets(blocks, store, config)

        assert report.uploaded == 5
        assert [b.id for b in blocks] == [x for n in range(5) for x in (f"img{n}", f"p{n}")]
        assert [b.url for b in blocks[::2]] == [f"https://cdn/{n}.png" for n in range(5)]

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self):
        store = _SlowAsyncStore()
        cfg = BlockifyConfig(upload_max_concurrent=2)
        blocks = [ImageBlock(url=_data_uri(_numbered_png(n))) for n in range(6)]
        await async_resolve_assets(blocks, store, cfg)
        assert store.max_in_flight <= 2

    @pytest.mark.asyncio
    async def test_failures_reported_in_document_order(self, config):
        store = _SlowAsyncStore(fail_urls={_numbered_png(1), _numbered_png(3)})
        blocks = [ImageBlock(url=_data_uri(_numbered_png(n)), id=f"i{n}") for n in range(4)]

        report = await async_resolve_assets(blocks, store, config)

        assert (report.uploaded, report.failed) == (2, 2)
        assert [w.context["block_id"] for w in report.warnings] == ["i1", "i3"]
        assert blocks[1].url == ""
        assert blocks[1].caption == config.upload_failure_marker

    @pytest.mark.asyncio
    async def test_async_blob_source(self, config):
        store = _SlowAsyncStore()

        async def blob_source(url):
            return (_numbered_png(7), "image/png")

        blocks = [ImageBlock(url="blob:https://app/7")]
        report = await async_resolve_assets(blocks, store, config, blob_source)
        assert report.uploaded == 1
        assert blocks[0].url == "https://cdn/7.png"

    @pytest.mark.asyncio
    async def test_nothing_pending(self, config):
        store = _SlowAsyncStore()
        report = await async_resolve_assets([ParagraphBlock(text="x")], store, config)
        assert report.uploaded == 0
        assert store.max_in_flight == 0

    @pytest.mark.asyncio
    async def test_async_upload_image_bytes(self, config):
        upload = await async_upload_image_bytes(_SlowAsyncStore(), _numbered_png(2), "image/png", config)
        assert upload.url == "https://cdn/2.png"
