"""Anchor (URL-fragment slug) generation for headings and the TOC."""

from __future__ import annotations

import re

# Everything that is not an ASCII word character, a hyphen, whitespace,
# or a Latin-1 Supplement / Latin Extended-A/B / Latin Extended Additional
# letter.  The extended ranges keep Vietnamese and other accented text.
_DISALLOWED_RE = re.compile(r"[^A-Za-z0-9_\-\sÀ-ɏḀ-ỿ]")
_WHITESPACE_RE = re.compile(r"\s+")
_HYPHEN_RUN_RE = re.compile(r"-{2,}")


def generate_anchor(text: str | None) -> str:
    """Derive a URL-fragment-safe anchor from heading text.

    Lower-cases, drops disallowed characters, turns whitespace runs into
    single hyphens and trims hyphens from both ends.  The function is
    total and idempotent: ``generate_anchor(generate_anchor(t)) ==
    generate_anchor(t)``.

    Examples
    --------
    >>> generate_anchor("Hello, World!")
    'hello-world'
    >>> generate_anchor("  Cách làm   bánh mì ")
    'cách-làm-bánh-mì'
    >>> generate_anchor("")
    ''
    """
    if not text:
        return ""
    slug = _DISALLOWED_RE.sub("", text.lower())
    slug = _WHITESPACE_RE.sub("-", slug)
    slug = _HYPHEN_RUN_RE.sub("-", slug)
    return slug.strip("-")
