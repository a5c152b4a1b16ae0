"""Asset-store collaborator protocols.

An asset store turns raw image bytes into a durable, fetchable url.
blockify never stores anything itself: the asset-resolution stage calls
whatever object satisfies :class:`AssetStore` (sync) or
:class:`AsyncAssetStore` (async).  :class:`~blockify.assets.media_api.MediaStore`
is the bundled HTTP implementation; tests and embedding applications can
pass any object with a matching ``upload`` method.

A blob reader is the second collaborator: it returns the bytes and MIME
type behind a ``blob:`` url, or ``None`` when they are gone.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol, Tuple, runtime_checkable

from blockify.models import AssetUpload

BlobSource = Callable[[str], Optional[Tuple[bytes, str]]]
"""``blob_source(url) -> (data, mime_type) | None``."""


@runtime_checkable
class AssetStore(Protocol):
    """Synchronous asset store."""

    def upload(self, data: bytes, content_hint: str) -> AssetUpload:
        """Store *data* and return its durable url.

        Parameters
        ----------
        data:
            Raw image bytes.
        content_hint:
            MIME type of *data* (e.g. ``"image/png"``).

        Raises
        ------
        Exception
            Any failure.  Callers treat every exception as a failed upload.
        """
        ...


@runtime_checkable
class AsyncAssetStore(Protocol):
    """Asynchronous asset store."""

    async def upload(self, data: bytes, content_hint: str) -> AssetUpload:
        """Async equivalent of :meth:`AssetStore.upload`."""
        ...
