"""Configuration for blockify.

:class:`BlockifyConfig` is a plain dataclass that captures every tuneable
knob exposed by the package.  Instances are passed to the normalizers,
the serializers, the asset-resolution stage, and both clients.

:data:`DEFAULT_UPLOAD_MIMES` defines the MIME allowlist for inline
(``data:`` / ``blob:``) images sent to the asset store.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# MIME allowlist
# ---------------------------------------------------------------------------

DEFAULT_UPLOAD_MIMES: list[str] = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
    "image/bmp",
    "image/avif",
]
"""MIME types accepted for pasted and embedded image uploads."""


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class BlockifyConfig:
    """Complete configuration for blockify.

    Every parameter has a sensible default; ``BlockifyConfig()`` is a
    valid configuration for offline conversion.

    Parameters
    ----------
    words_per_minute:
        Reading speed used for the reading-time estimate.
    toc_max_level:
        Deepest heading level (2-6) included in the table of contents.
    default_code_language:
        Language assigned to code blocks without a detectable language.
    media_text_width:
        ``mediaWidth`` percentage given to merged image+text blocks.
    json_max_depth:
        Maximum nesting depth the loose-JSON normalizer descends into.
        Deeper values are skipped with a ``JSON_MAX_DEPTH`` warning.
    upload_max_concurrent:
        Maximum number of parallel uploads (async client only).
    upload_failure_marker:
        Text appended to an image caption when its upload fails.
    upload_folder:
        Media-library folder passed to the asset store.
    upload_allowed_mimes:
        MIME types accepted for inline-image uploads.
    upload_max_size_bytes:
        Maximum decoded size of an inline image.  Default is 10 MiB.
    media_base_url:
        API root of the media service used by :class:`MediaStore`.
    token:
        Bearer token for the media service.  Never logged.
    timeout_seconds:
        HTTP request timeout in seconds.
    retry_max_attempts:
        Maximum total attempts per upload for retryable failures.
    retry_base_delay:
        Base delay (seconds) for exponential backoff.
    retry_max_delay:
        Upper cap (seconds) on computed backoff delay.
    retry_jitter:
        Randomly scale backoff delays to 50-100 %.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        A :class:`~blockify.observability.MetricsHook` implementation.
    debug_dump_blocks:
        Write the (redacted) converted block dicts to *stderr*.
    """

    # ── Documents ───────────────────────────────────────────────────────
    words_per_minute: int = 200

    toc_max_level: int = 6

    default_code_language: str = "text"

    media_text_width: int = 50

    json_max_depth: int = 64

    # ── Uploads ─────────────────────────────────────────────────────────
    upload_max_concurrent: int = 4

    upload_failure_marker: str = "[Upload failed]"

    upload_folder: str = "posts"

    upload_allowed_mimes: list[str] = field(
        default_factory=lambda: list(DEFAULT_UPLOAD_MIMES),
    )

    upload_max_size_bytes: int = 10 * 1024 * 1024  # 10 MiB

    # ── Media service HTTP ──────────────────────────────────────────────
    media_base_url: str = "http://localhost:5445/api"

    token: str = ""

    timeout_seconds: float = 30.0

    retry_max_attempts: int = 3

    retry_base_delay: float = 0.5

    retry_max_delay: float = 10.0

    retry_jitter: bool = True

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_blocks: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.words_per_minute <= 0:
            raise ValueError(f"words_per_minute must be > 0, got {self.words_per_minute}")
        if not 2 <= self.toc_max_level <= 6:
            raise ValueError(f"toc_max_level must be between 2 and 6, got {self.toc_max_level}")
        if not 0 <= self.media_text_width <= 100:
            raise ValueError(
                f"media_text_width must be between 0 and 100, got {self.media_text_width}"
            )
        if self.json_max_depth < 1:
            raise ValueError(f"json_max_depth must be >= 1, got {self.json_max_depth}")
        if self.upload_max_concurrent < 1:
            raise ValueError(
                f"upload_max_concurrent must be >= 1, got {self.upload_max_concurrent}"
            )
        if self.upload_max_size_bytes <= 0:
            raise ValueError(
                f"upload_max_size_bytes must be > 0, got {self.upload_max_size_bytes}"
            )
        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.retry_base_delay < 0:
            raise ValueError(f"retry_base_delay must be >= 0, got {self.retry_base_delay}")
        if self.retry_max_delay < 0:
            raise ValueError(f"retry_max_delay must be >= 0, got {self.retry_max_delay}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if not self.default_code_language:
            raise ValueError("default_code_language must not be empty")

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"BlockifyConfig({', '.join(parts)})"
