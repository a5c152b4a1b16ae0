"""Image pipeline: classify, validate and resolve transient image urls.

Exports
-------
detect_image_source
    Classify an image url as external, relative, data URI, blob or unknown.
needs_upload
    ``True`` for urls that must go through an asset store.
parse_data_uri / validate_image_bytes
    Decode inline images and enforce the MIME allowlist and size limit.
resolve_assets / async_resolve_assets
    Upload transient images and write durable urls back by block id.
upload_image_bytes / async_upload_image_bytes
    Validate and upload image files pasted directly.
"""

from .detect import detect_image_source, mime_to_extension, needs_upload
from .resolve import (
    async_resolve_assets,
    async_upload_image_bytes,
    failed_image_block,
    pending_image_blocks,
    resolve_assets,
    upload_image_bytes,
)
from .validate import parse_data_uri, sniff_mime, validate_image_bytes

__all__ = [
    "async_resolve_assets",
    "async_upload_image_bytes",
    "detect_image_source",
    "failed_image_block",
    "mime_to_extension",
    "needs_upload",
    "parse_data_uri",
    "pending_image_blocks",
    "resolve_assets",
    "sniff_mime",
    "upload_image_bytes",
    "validate_image_bytes",
]
