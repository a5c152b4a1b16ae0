"""Asset-store collaborators.

Exports
-------
AssetStore / AsyncAssetStore
    Protocols for objects that turn image bytes into durable urls.
BlobSource
    Callable type returning the bytes behind a ``blob:`` url.
MediaStore / AsyncMediaStore
    httpx-based implementation over the media service upload endpoint.
"""

from .media_api import AsyncMediaStore, MediaStore
from .store import AssetStore, AsyncAssetStore, BlobSource

__all__ = [
    "AssetStore",
    "AsyncAssetStore",
    "AsyncMediaStore",
    "BlobSource",
    "MediaStore",
]
