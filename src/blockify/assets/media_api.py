"""HTTP asset store backed by the media service.

:class:`MediaStore` and :class:`AsyncMediaStore` implement the
:class:`~blockify.assets.store.AssetStore` protocols over httpx.  Each
upload follows the same lifecycle:

1. ``POST {media_base_url}/media/upload`` as ``multipart/form-data`` with
   a ``file`` part and a ``folder`` field, plus a bearer token when one
   is configured.
2. On ``2xx``, read ``{"url": ..., "altText": ...}`` from the JSON body.
3. On ``429`` / ``5xx`` / network error, back off and retry.
4. On ``401`` / ``403``, raise :class:`BlockifyAuthError`.
5. On any other ``4xx``, raise :class:`BlockifyUploadError` immediately.
6. When attempts run out, raise :class:`BlockifyRetryExhaustedError`
   (last failure was a status) or :class:`BlockifyUploadTransportError`
   (last failure was a network error).
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from blockify.config import BlockifyConfig
from blockify.errors import (
    BlockifyAuthError,
    BlockifyRetryExhaustedError,
    BlockifyUploadError,
    BlockifyUploadTransportError,
)
from blockify.image.detect import mime_to_extension
from blockify.models import AssetUpload
from blockify.observability import get_logger, resolve_metrics

from .retries import (
    RETRYABLE_EXCEPTIONS,
    RETRYABLE_STATUSES,
    compute_backoff,
    parse_retry_after,
    should_retry,
)

log = get_logger("blockify.media_api")

UPLOAD_PATH = "/media/upload"


# ---------------------------------------------------------------------------
# Helpers shared by the sync and async stores
# ---------------------------------------------------------------------------

def _client_kwargs(config: BlockifyConfig) -> dict[str, Any]:
    headers = {"Accept": "application/json"}
    if config.token:
        headers["Authorization"] = f"Bearer {config.token}"
    return {
        "base_url": config.media_base_url.rstrip("/"),
        "headers": headers,
        "timeout": httpx.Timeout(config.timeout_seconds),
        "proxy": config.http_proxy,
    }


def _multipart(
    data: bytes, content_hint: str, folder: str, filename: str | None,
) -> dict[str, Any]:
    filename = filename or f"pasted-image{mime_to_extension(content_hint)}"
    return {
        "files": {"file": (filename, data, content_hint)},
        "data": {"folder": folder} if folder else {},
    }


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] or "Upload failed"
    if isinstance(body, dict):
        message = body.get("error") or body.get("message")
        if isinstance(message, str) and message:
            return message
    return "Upload failed"


def _parse_upload(response: httpx.Response) -> AssetUpload:
    try:
        body = response.json()
    except ValueError as exc:
        raise BlockifyUploadError(
            message="Media service returned a non-JSON upload response",
            context={"status_code": response.status_code, "url": str(response.url)},
            cause=exc,
        ) from exc
    url = body.get("url") if isinstance(body, dict) else None
    if not isinstance(url, str) or not url:
        raise BlockifyUploadError(
            message="Media service response has no url",
            context={"status_code": response.status_code, "url": str(response.url)},
        )
    alt = body.get("altText")
    return AssetUpload(url=url, alt_text_guess=alt if isinstance(alt, str) and alt else None)


def _raise_for_status(response: httpx.Response, token: str) -> None:
    """Raise the matching error for a non-retryable 4xx response."""
    status = response.status_code
    message = _error_message(response)
    if status in (401, 403):
        raise BlockifyAuthError(
            message=f"Media service rejected credentials ({status}): {message}",
            context={"status_code": status, "token_prefix": token[-4:] if token else ""},
        )
    raise BlockifyUploadError(
        message=f"Upload rejected with status {status}: {message}",
        context={"status_code": status, "url": str(response.url)},
    )


class _RetryState:
    """Bookkeeping shared by both retry loops."""

    def __init__(self, config: BlockifyConfig, metrics: Any) -> None:
        self.config = config
        self.metrics = metrics
        self.last_status: int | None = None
        self.last_exception: Exception | None = None

    def on_network_error(self, exc: Exception, attempt: int) -> float | None:
        """Return a delay if the upload should be retried, else ``None``."""
        self.last_exception = exc
        self.last_status = None
        self.metrics.increment("blockify.requests_total", tags={"status": "error"})
        log.warning(
            "Upload network error",
            extra={"extra_fields": {"op": "upload", "attempt": attempt + 1, "error": str(exc)}},
        )
        if not should_retry(None, exc, attempt, self.config.retry_max_attempts):
            return None
        self.metrics.increment("blockify.retries_total", tags={"reason": "network_error"})
        return compute_backoff(
            attempt,
            base=self.config.retry_base_delay,
            maximum=self.config.retry_max_delay,
            jitter=self.config.retry_jitter,
        )

    def on_response(self, response: httpx.Response, attempt: int) -> float | None:
        """Classify a non-2xx response; return a delay or ``None`` to stop.

        Non-retryable statuses raise immediately.
        """
        status = response.status_code
        self.last_status = status
        self.last_exception = None
        if status not in RETRYABLE_STATUSES:
            _raise_for_status(response, self.config.token)
        if not should_retry(status, None, attempt, self.config.retry_max_attempts):
            return None

        retry_after = parse_retry_after(response) if status == 429 else None
        reason = "rate_limited" if status == 429 else "server_error"
        log.warning(
            "Upload failed with retryable status",
            extra={
                "extra_fields": {
                    "op": "upload",
                    "status_code": status,
                    "retry_after": retry_after,
                    "attempt": attempt + 1,
                }
            },
        )
        self.metrics.increment("blockify.retries_total", tags={"reason": reason})
        return compute_backoff(
            attempt,
            base=self.config.retry_base_delay,
            maximum=self.config.retry_max_delay,
            jitter=self.config.retry_jitter,
            retry_after=retry_after,
        )

    def exhausted(self) -> Exception:
        attempts = self.config.retry_max_attempts
        ctx: dict[str, Any] = {"attempts": attempts, "last_status_code": self.last_status}
        if self.last_exception is not None:
            return BlockifyUploadTransportError(
                message=(
                    f"Upload failed after {attempts} attempts "
                    f"(last error: {self.last_exception})"
                ),
                context={"url": UPLOAD_PATH, "attempt": attempts},
                cause=self.last_exception,
            )
        return BlockifyRetryExhaustedError(
            message=(
                f"Upload failed after {attempts} attempts "
                f"(last status: {self.last_status})"
            ),
            context=ctx,
        )


# ---------------------------------------------------------------------------
# Sync store
# ---------------------------------------------------------------------------

class MediaStore:
    """Synchronous media-service asset store.

    Parameters
    ----------
    config:
        Supplies ``media_base_url``, ``token``, ``upload_folder``, the
        timeout and the retry settings.
    client:
        Optional pre-built :class:`httpx.Client`.  When given, its
        ``base_url`` and headers are used as-is and :meth:`close` leaves
        it open.
    """

    def __init__(
        self,
        config: BlockifyConfig | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._config = config or BlockifyConfig()
        self._metrics = resolve_metrics(self._config.metrics)
        self._owns_client = client is None
        self._client = client or httpx.Client(**_client_kwargs(self._config))

    def upload(
        self, data: bytes, content_hint: str, filename: str | None = None,
    ) -> AssetUpload:
        """Upload *data* and return its durable url.

        Raises
        ------
        BlockifyAuthError
            On 401 / 403.
        BlockifyUploadError
            On other 4xx responses or an unusable response body.
        BlockifyRetryExhaustedError
            When retryable statuses persist past ``retry_max_attempts``.
        BlockifyUploadTransportError
            When network errors persist past ``retry_max_attempts``.
        """
        state = _RetryState(self._config, self._metrics)
        for attempt in range(self._config.retry_max_attempts):
            t0 = time.monotonic()
            try:
                response = self._client.post(
                    UPLOAD_PATH,
                    **_multipart(data, content_hint, self._config.upload_folder, filename),
                )
            except RETRYABLE_EXCEPTIONS as exc:
                delay = state.on_network_error(exc, attempt)
                if delay is None:
                    break
                time.sleep(delay)
                continue

            self._metrics.increment(
                "blockify.requests_total", tags={"status": str(response.status_code)},
            )
            if response.is_success:
                self._metrics.timing(
                    "blockify.upload_duration_ms", (time.monotonic() - t0) * 1000,
                )
                return _parse_upload(response)

            delay = state.on_response(response, attempt)
            if delay is None:
                break
            time.sleep(delay)

        raise state.exhausted()

    def close(self) -> None:
        """Close the underlying HTTP client if this store created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> MediaStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Async store
# ---------------------------------------------------------------------------

class AsyncMediaStore:
    """Asynchronous media-service asset store.

    Mirrors :class:`MediaStore` over :class:`httpx.AsyncClient`.
    """

    def __init__(
        self,
        config: BlockifyConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or BlockifyConfig()
        self._metrics = resolve_metrics(self._config.metrics)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(**_client_kwargs(self._config))

    async def upload(
        self, data: bytes, content_hint: str, filename: str | None = None,
    ) -> AssetUpload:
        """Async equivalent of :meth:`MediaStore.upload`."""
        state = _RetryState(self._config, self._metrics)
        for attempt in range(self._config.retry_max_attempts):
            t0 = time.monotonic()
            try:
                response = await self._client.post(
                    UPLOAD_PATH,
                    **_multipart(data, content_hint, self._config.upload_folder, filename),
                )
            except RETRYABLE_EXCEPTIONS as exc:
                delay = state.on_network_error(exc, attempt)
                if delay is None:
                    break
                await asyncio.sleep(delay)
                continue

            self._metrics.increment(
                "blockify.requests_total", tags={"status": str(response.status_code)},
            )
            if response.is_success:
                self._metrics.timing(
                    "blockify.upload_duration_ms", (time.monotonic() - t0) * 1000,
                )
                return _parse_upload(response)

            delay = state.on_response(response, attempt)
            if delay is None:
                break
            await asyncio.sleep(delay)

        raise state.exhausted()

    async def close(self) -> None:
        """Close the underlying HTTP client if this store created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncMediaStore:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
