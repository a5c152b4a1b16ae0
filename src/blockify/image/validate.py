"""Inline image decoding and validation.

Turns a pasted ``data:`` URI into bytes and checks the bytes against the
configured MIME allowlist and maximum size before the asset-resolution
stage hands them to an asset store.
"""

from __future__ import annotations

import base64
import binascii
import re
from urllib.parse import unquote_to_bytes

from blockify.config import BlockifyConfig
from blockify.errors import (
    BlockifyImageParseError,
    BlockifyImageSizeError,
    BlockifyImageTypeError,
)

# data:[<mediatype>][;base64],<data>
_DATA_URI_RE = re.compile(
    r"^data:(?P<mime>[^;,]+)?(?P<params>(?:;[^;,]*)*?)(?:;(?P<encoding>base64))?,(?P<data>.*)$",
    re.IGNORECASE | re.DOTALL,
)

_MAGIC_BYTES: list[tuple[bytes, str]] = [
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"RIFF", "image/webp"),
    (b"<svg", "image/svg+xml"),
    (b"<?xml", "image/svg+xml"),
    (b"BM", "image/bmp"),
]


def sniff_mime(data: bytes) -> str | None:
    """Detect an image MIME type from leading magic bytes."""
    for magic, mime in _MAGIC_BYTES:
        if data[:len(magic)] == magic:
            # RIFF....WEBP
            if magic == b"RIFF" and data[8:12] != b"WEBP":
                continue
            return mime
    if data[4:12] in (b"ftypavif", b"ftypavis"):
        return "image/avif"
    return None


def parse_data_uri(src: str) -> tuple[str, bytes]:
    """Parse a data URI and return ``(mime_type, decoded_bytes)``.

    Raises
    ------
    BlockifyImageParseError
        If the data URI is malformed or its payload cannot be decoded.
    """
    match = _DATA_URI_RE.match(src.strip())
    if not match:
        raise BlockifyImageParseError(
            message="Invalid data URI format",
            context={"src": truncate_src(src), "reason": "regex_no_match"},
        )

    mime_type = (match.group("mime") or "application/octet-stream").lower()
    raw_data = match.group("data")

    if match.group("encoding"):
        try:
            decoded = base64.b64decode(raw_data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise BlockifyImageParseError(
                message="Failed to decode base64 data URI",
                context={"src": truncate_src(src), "reason": "base64_decode_error"},
                cause=exc,
            ) from exc
    else:
        decoded = unquote_to_bytes(raw_data)

    return mime_type, decoded


def validate_image_bytes(
    data: bytes,
    mime_type: str | None,
    config: BlockifyConfig,
    src: str = "",
) -> str:
    """Check *data* against the upload allowlist and size limit.

    Parameters
    ----------
    data:
        Raw image bytes.
    mime_type:
        Declared MIME type, if any.  When absent or generic the type is
        sniffed from *data*.
    config:
        Supplies ``upload_allowed_mimes`` and ``upload_max_size_bytes``.
    src:
        Original url, used only for error context.

    Returns
    -------
    str
        The validated MIME type.

    Raises
    ------
    BlockifyImageTypeError
        If the MIME type is not in the allowlist.
    BlockifyImageSizeError
        If *data* exceeds ``config.upload_max_size_bytes``.
    """
    mime = (mime_type or "").lower()
    if not mime or mime == "application/octet-stream":
        mime = sniff_mime(data) or "application/octet-stream"

    if mime not in config.upload_allowed_mimes:
        raise BlockifyImageTypeError(
            message=f"Image MIME type {mime!r} is not allowed",
            context={
                "src": truncate_src(src),
                "detected_mime": mime,
                "allowed_mimes": list(config.upload_allowed_mimes),
            },
        )

    if len(data) > config.upload_max_size_bytes:
        raise BlockifyImageSizeError(
            message=(
                f"Image size {len(data)} bytes exceeds "
                f"maximum {config.upload_max_size_bytes} bytes"
            ),
            context={
                "src": truncate_src(src),
                "size_bytes": len(data),
                "max_bytes": config.upload_max_size_bytes,
            },
        )

    return mime


def truncate_src(src: str, max_len: int = 200) -> str:
    """Truncate a url for inclusion in error context and logs."""
    if len(src) <= max_len:
        return src
    return src[:max_len] + "..."
