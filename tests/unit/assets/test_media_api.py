"""Tests for the httpx-based media store, using httpx.MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from blockify.assets.media_api import (
    UPLOAD_PATH,
    AsyncMediaStore,
    MediaStore,
    _client_kwargs,
)
from blockify.assets.store import AssetStore, AsyncAssetStore
from blockify.config import BlockifyConfig
from blockify.errors import (
    BlockifyAuthError,
    BlockifyRetryExhaustedError,
    BlockifyUploadError,
    BlockifyUploadTransportError,
    ErrorCode,
)

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 8


def _ok(url: str = "https://cdn.test/posts/a.png", alt: str | None = None) -> httpx.Response:
    body = {"url": url}
    if alt is not None:
        body["altText"] = alt
    return httpx.Response(200, json=body)


class _Script:
    """Transport handler that replays queued responses and records requests."""

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _store(config: BlockifyConfig, script: _Script) -> MediaStore:
    client = httpx.Client(transport=httpx.MockTransport(script), **_client_kwargs(config))
    return MediaStore(config, client=client)


def _async_store(config: BlockifyConfig, script: _Script) -> AsyncMediaStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(script), **_client_kwargs(config))
    return AsyncMediaStore(config, client=client)


class TestClientKwargs:
    def test_bearer_token_and_base_url(self):
        cfg = BlockifyConfig(media_base_url="https://cms.test/api/", token="tok")
        kwargs = _client_kwargs(cfg)
        assert kwargs["base_url"] == "https://cms.test/api"
        assert kwargs["headers"]["Authorization"] == "Bearer tok"
        assert kwargs["proxy"] is None

    def test_no_token_no_auth_header(self):
        assert "Authorization" not in _client_kwargs(BlockifyConfig())["headers"]


class TestMediaStoreUpload:
    def test_success(self, config):
        script = _Script(_ok(alt="A cat"))
        with _store(config, script) as store:
            upload = store.upload(PNG, "image/png")

        assert upload.url == "https://cdn.test/posts/a.png"
        assert upload.alt_text_guess == "A cat"
        request = script.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api" + UPLOAD_PATH
        assert request.headers["Authorization"] == "Bearer test_token_1234"
        body = request.read()
        assert b'name="file"; filename="pasted-image.png"' in body
        assert b'name="folder"' in body
        assert b"posts" in body
        assert PNG in body

    def test_explicit_filename(self, config):
        script = _Script(_ok())
        _store(config, script).upload(PNG, "image/png", filename="diagram.png")
        assert b'filename="diagram.png"' in script.requests[0].read()

    def test_satisfies_protocol(self, config):
        assert isinstance(_store(config, _Script()), AssetStore)

    def test_retries_server_errors_then_succeeds(self, config, metrics):
        cfg = BlockifyConfig(
            token="t", retry_base_delay=0, retry_jitter=False, metrics=metrics,
        )
        script = _Script(httpx.Response(503), httpx.Response(429), _ok())
        upload = _store(cfg, script).upload(PNG, "image/png")
        assert upload.url.endswith("a.png")
        assert len(script.requests) == 3
        reasons = [tags["reason"] for name, _, tags in metrics.increments if name == "blockify.retries_total"]
        assert reasons == ["server_error", "rate_limited"]
        statuses = [tags["status"] for name, _, tags in metrics.increments if name == "blockify.requests_total"]
        assert statuses == ["503", "429", "200"]

    def test_retry_exhausted(self, config):
        script = _Script(httpx.Response(500), httpx.Response(502), httpx.Response(503))
        with pytest.raises(BlockifyRetryExhaustedError) as exc_info:
            _store(config, script).upload(PNG, "image/png")
        assert exc_info.value.context == {"attempts": 3, "last_status_code": 503}
        assert len(script.requests) == 3

    def test_network_errors_exhausted(self, config):
        script = _Script(*(httpx.ConnectError("refused") for _ in range(3)))
        with pytest.raises(BlockifyUploadTransportError) as exc_info:
            _store(config, script).upload(PNG, "image/png")
        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    def test_network_error_then_success(self, config):
        script = _Script(httpx.ReadTimeout("slow"), _ok())
        assert _store(config, script).upload(PNG, "image/png").url

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_errors_not_retried(self, config, status):
        script = _Script(httpx.Response(status, json={"error": "Unauthorized"}))
        with pytest.raises(BlockifyAuthError) as exc_info:
            _store(config, script).upload(PNG, "image/png")
        assert exc_info.value.code == ErrorCode.AUTH_ERROR
        assert exc_info.value.context["token_prefix"] == "1234"
        assert "Unauthorized" in exc_info.value.message
        assert len(script.requests) == 1

    def test_client_error_not_retried(self, config):
        script = _Script(httpx.Response(413, json={"error": "File too large"}))
        with pytest.raises(BlockifyUploadError) as exc_info:
            _store(config, script).upload(PNG, "image/png")
        assert exc_info.value.context["status_code"] == 413
        assert "File too large" in exc_info.value.message
        assert len(script.requests) == 1

    def test_non_json_error_body(self, config):
        script = _Script(httpx.Response(400, text="bad request"))
        with pytest.raises(BlockifyUploadError) as exc_info:
            _store(config, script).upload(PNG, "image/png")
        assert "bad request" in exc_info.value.message

    @pytest.mark.parametrize(
        "response",
        [httpx.Response(200, text="<html>"), httpx.Response(200, json={"altText": "x"})],
    )
    def test_unusable_success_body(self, config, response):
        with pytest.raises(BlockifyUploadError):
            _store(config, _Script(response)).upload(PNG, "image/png")

    def test_injected_client_left_open(self, config):
        client = httpx.Client(transport=httpx.MockTransport(_Script()))
        MediaStore(config, client=client).close()
        assert not client.is_closed
        client.close()

    def test_owned_client_closed(self, config):
        store = MediaStore(config)
        store.close()
        assert store._client.is_closed


class TestAsyncMediaStore:
    @pytest.mark.asyncio
    async def test_success(self, config):
        script = _Script(_ok())
        async with _async_store(config, script) as store:
            upload = await store.upload(PNG, "image/png")
        assert upload.url == "https://cdn.test/posts/a.png"
        assert upload.alt_text_guess is None

    @pytest.mark.asyncio
    async def test_retries(self, config):
        script = _Script(httpx.Response(504), httpx.ConnectError("x"), _ok())
        upload = await _async_store(config, script).upload(PNG, "image/png")
        assert upload.url
        assert len(script.requests) == 3

    @pytest.mark.asyncio
    async def test_exhausted(self, config):
        script = _Script(httpx.Response(503), httpx.Response(503), httpx.Response(503))
        with pytest.raises(BlockifyRetryExhaustedError):
            await _async_store(config, script).upload(PNG, "image/png")

    @pytest.mark.asyncio
    async def test_auth_error(self, config):
        script = _Script(httpx.Response(401, content=json.dumps({"message": "nope"}).encode()))
        with pytest.raises(BlockifyAuthError):
            await _async_store(config, script).upload(PNG, "image/png")

    def test_satisfies_protocol(self, config):
        assert isinstance(_async_store(config, _Script()), AsyncAssetStore)
