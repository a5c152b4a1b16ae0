"""Tests for image/validate.py"""

from __future__ import annotations

import base64

import pytest

from blockify.config import BlockifyConfig
from blockify.errors import (
    BlockifyImageParseError,
    BlockifyImageSizeError,
    BlockifyImageTypeError,
    ErrorCode,
)
from blockify.image.validate import (
    parse_data_uri,
    sniff_mime,
    truncate_src,
    validate_image_bytes,
)

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 16
WEBP = b"RIFF\x00\x00\x00\x00WEBPVP8 "
AVIF = b"\x00\x00\x00\x1cftypavif" + b"\x00" * 8


class TestSniffMime:
    @pytest.mark.parametrize(
        "data, mime",
        [
            (PNG, "image/png"),
            (JPEG, "image/jpeg"),
            (b"GIF89a...", "image/gif"),
            (WEBP, "image/webp"),
            (b"<svg xmlns=''>", "image/svg+xml"),
            (b"BM\x00\x00", "image/bmp"),
            (AVIF, "image/avif"),
        ],
    )
    def test_known_signatures(self, data, mime):
        assert sniff_mime(data) == mime

    def test_riff_that_is_not_webp(self):
        assert sniff_mime(b"RIFF\x00\x00\x00\x00WAVEfmt ") is None

    def test_unknown(self):
        assert sniff_mime(b"hello world") is None
        assert sniff_mime(b"") is None


class TestParseDataUri:
    def test_base64(self):
        uri = "data:image/png;base64," + base64.b64encode(PNG).decode()
        assert parse_data_uri(uri) == ("image/png", PNG)

    def test_with_parameters(self):
        uri = "data:image/png;name=a.png;base64," + base64.b64encode(b"xyz").decode()
        assert parse_data_uri(uri) == ("image/png", b"xyz")

    def test_url_encoded_payload(self):
        assert parse_data_uri("data:image/svg+xml,%3Csvg%3E") == ("image/svg+xml", b"<svg>")

    def test_mime_lowercased(self):
        mime, _ = parse_data_uri("data:IMAGE/PNG;base64,AAAA")
        assert mime == "image/png"

    def test_missing_mime_defaults(self):
        mime, data = parse_data_uri("data:;base64,AAAA")
        assert mime == "application/octet-stream"
        assert data == b"\x00\x00\x00"

    def test_malformed_header(self):
        with pytest.raises(BlockifyImageParseError) as exc_info:
            parse_data_uri("data:image/png;base64")
        assert exc_info.value.context["reason"] == "regex_no_match"

    def test_bad_base64(self):
        with pytest.raises(BlockifyImageParseError) as exc_info:
            parse_data_uri("data:image/png;base64,!!!not base64")
        assert exc_info.value.code == ErrorCode.IMAGE_PARSE_ERROR
        assert exc_info.value.context["reason"] == "base64_decode_error"


class TestValidateImageBytes:
    def test_declared_mime_accepted(self, config):
        assert validate_image_bytes(PNG, "image/png", config) == "image/png"

    def test_declared_mime_case_insensitive(self, config):
        assert validate_image_bytes(PNG, "Image/PNG", config) == "image/png"

    def test_missing_mime_sniffed(self, config):
        assert validate_image_bytes(JPEG, None, config) == "image/jpeg"
        assert validate_image_bytes(JPEG, "application/octet-stream", config) == "image/jpeg"

    def test_disallowed_mime(self, config):
        with pytest.raises(BlockifyImageTypeError) as exc_info:
            validate_image_bytes(b"%PDF", "application/pdf", config, src="data:application/pdf")
        ctx = exc_info.value.context
        assert ctx["detected_mime"] == "application/pdf"
        assert "image/png" in ctx["allowed_mimes"]

    def test_unsniffable_bytes_rejected(self, config):
        with pytest.raises(BlockifyImageTypeError):
            validate_image_bytes(b"plain text", None, config)

    def test_custom_allowlist(self):
        cfg = BlockifyConfig(upload_allowed_mimes=["image/png"])
        with pytest.raises(BlockifyImageTypeError):
            validate_image_bytes(JPEG, "image/jpeg", cfg)

    def test_size_limit(self):
        cfg = BlockifyConfig(upload_max_size_bytes=10)
        assert validate_image_bytes(PNG[:10], "image/png", cfg) == "image/png"
        with pytest.raises(BlockifyImageSizeError) as exc_info:
            validate_image_bytes(PNG, "image/png", cfg)
        assert exc_info.value.context["size_bytes"] == len(PNG)
        assert exc_info.value.context["max_bytes"] == 10


class TestTruncateSrc:
    def test_short_unchanged(self):
        assert truncate_src("abc") == "abc"

    def test_long_truncated(self):
        assert truncate_src("x" * 300, max_len=10) == "x" * 10 + "..."
