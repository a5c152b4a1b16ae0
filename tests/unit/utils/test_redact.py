"""Tests for utils/redact.py"""

from __future__ import annotations

import base64

from blockify.utils.redact import redact


def _data_uri(payload: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(payload).decode()}"


class TestRedact:
    def test_data_uri_replaced_with_size(self):
        result = redact({"url": _data_uri(b"hello")})
        assert result == {"url": "<data_uri:5_bytes>"}

    def test_data_uri_inside_text(self):
        text = f"before {_data_uri(b'abcdef')} after"
        assert redact(text) == "before <data_uri:6_bytes> after"

    def test_sensitive_keys_masked(self):
        result = redact({"Authorization": "Bearer abc", "api_key": 42, "name": "ok"})
        assert result["Authorization"] == "<redacted>"
        assert result["api_key"] == "<redacted>"
        assert result["name"] == "ok"

    def test_known_token_masked_everywhere(self):
        token = "secret-token-9876"
        result = redact({"note": f"sent {token}", "token": token}, token=token)
        assert result["note"] == "sent <redacted:...9876>"
        assert result["token"] == "<redacted:...9876>"
        assert token not in repr(result)

    def test_bytes_replaced(self):
        assert redact({"data": b"\x89PNG"}) == {"data": "<binary:4_bytes>"}

    def test_nested_lists_and_dicts(self):
        payload = {"blocks": [{"type": "image", "url": _data_uri(b"xy")}]}
        result = redact(payload)
        assert result["blocks"][0]["url"] == "<data_uri:2_bytes>"
        assert result["blocks"][0]["type"] == "image"

    def test_original_not_mutated(self):
        payload = {"url": _data_uri(b"hello")}
        redact(payload)
        assert payload["url"].startswith("data:image/png;base64,")

    def test_scalars_pass_through(self):
        assert redact(5) == 5
        assert redact(None) is None
