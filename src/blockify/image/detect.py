"""Image url classification.

Classifies an image block's ``url`` into one of the
:class:`ImageSourceType` variants so the asset-resolution stage knows
which images need uploading.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from urllib.parse import urlparse

from blockify.models import ImageSourceType

_DATA_IMAGE_RE = re.compile(r"^data:image/", re.IGNORECASE)
_BLOB_RE = re.compile(r"^blob:", re.IGNORECASE)

_MIME_EXTENSIONS: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
    "image/bmp": ".bmp",
    "image/avif": ".avif",
}


def detect_image_source(url: str | None) -> ImageSourceType:
    """Classify an image url.

    Parameters
    ----------
    url:
        The ``url`` of an image block, as produced by a normalizer.

    Returns
    -------
    ImageSourceType
        ``DATA_URI`` for ``data:image/...``, ``BLOB_URL`` for ``blob:``,
        ``EXTERNAL_URL`` for http(s) and protocol-relative urls,
        ``RELATIVE`` for site paths, ``UNKNOWN`` otherwise.
    """
    if not url or not url.strip():
        return ImageSourceType.UNKNOWN

    url = url.strip()

    if _DATA_IMAGE_RE.match(url):
        return ImageSourceType.DATA_URI
    if _BLOB_RE.match(url):
        return ImageSourceType.BLOB_URL

    if url.startswith("//"):
        return ImageSourceType.EXTERNAL_URL
    parsed = urlparse(url)
    if parsed.scheme in ("http", "https"):
        return ImageSourceType.EXTERNAL_URL
    if parsed.scheme:
        return ImageSourceType.UNKNOWN

    if url.startswith(("/", "./", "../")) or PurePosixPath(parsed.path).suffix:
        return ImageSourceType.RELATIVE

    return ImageSourceType.UNKNOWN


def needs_upload(url: str | None) -> bool:
    """``True`` when *url* is transient and must go through an asset store."""
    return detect_image_source(url) in (
        ImageSourceType.DATA_URI,
        ImageSourceType.BLOB_URL,
    )


def mime_to_extension(mime_type: str) -> str:
    """Return a file extension (with dot) for an image MIME type."""
    return _MIME_EXTENSIONS.get(mime_type.lower(), ".bin")
