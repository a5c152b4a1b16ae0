"""Payload redaction for safe logging.

Pasted documents routinely carry multi-megabyte ``data:`` image URIs and
upload requests carry a bearer token.  Before any block payload or
request context is written to logs or debug output :func:`redact` must
be applied:

* **Base64 data URIs** (``data:<mime>;base64,...``) are replaced with
  ``<data_uri:N_bytes>``.
* **Sensitive keys** (``token``, ``authorization``, ...) are masked,
  showing at most the last four characters of the known token.
* **Raw bytes** are replaced with ``<binary:N_bytes>``.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Any

# Matches RFC 2397 data URIs with base64 encoding.
_DATA_URI_RE = re.compile(
    r"data:[a-zA-Z0-9_.+-]+/[a-zA-Z0-9_.+-]+;base64,[A-Za-z0-9+/=]+"
)

_SENSITIVE_KEY_PATTERNS: frozenset[str] = frozenset({
    "token",
    "secret",
    "password",
    "authorization",
    "cookie",
    "api_key",
})


def _estimate_data_uri_bytes(uri: str) -> int:
    """Return the approximate decoded byte length of a data URI."""
    b64_part = uri.split(";base64,", 1)[-1]
    try:
        return len(base64.b64decode(b64_part, validate=True))
    except (binascii.Error, ValueError):
        return len(b64_part) * 3 // 4


def _mask(value: str, token: str | None) -> str:
    if token and token in value:
        suffix = token[-4:] if len(token) >= 4 else "****"
        return value.replace(token, f"<redacted:...{suffix}>")
    return "<redacted>"


def _redact_value(value: Any, token: str | None) -> Any:
    if isinstance(value, dict):
        return _redact_dict(value, token)
    if isinstance(value, (list, tuple)):
        return [_redact_value(item, token) for item in value]
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    if isinstance(value, str):
        if _DATA_URI_RE.search(value):
            value = _DATA_URI_RE.sub(
                lambda m: f"<data_uri:{_estimate_data_uri_bytes(m.group(0))}_bytes>",
                value,
            )
        if token and token in value:
            value = _mask(value, token)
        return value
    return value


def _redact_dict(d: dict, token: str | None) -> dict:
    result: dict = {}
    for key, value in d.items():
        key_lower = key.lower() if isinstance(key, str) else ""
        if any(pat in key_lower for pat in _SENSITIVE_KEY_PATTERNS):
            result[key] = _mask(value, token) if isinstance(value, str) else "<redacted>"
        else:
            result[key] = _redact_value(value, token)
    return result


def redact(payload: Any, token: str | None = None) -> Any:
    """Return a copy of *payload* with inline image data and secrets elided.

    *payload* may be a dict, a list (e.g. a list of block dicts), or a
    scalar.  The original is never mutated.

    Examples
    --------
    >>> redact({"url": "data:image/png;base64,aGVsbG8="})
    {'url': '<data_uri:5_bytes>'}
    >>> redact({"Authorization": "Bearer abc"})
    {'Authorization': '<redacted>'}
    """
    return _redact_value(payload, token)
