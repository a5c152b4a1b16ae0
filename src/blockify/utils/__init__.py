"""Small helpers shared across blockify."""

from blockify.utils.redact import redact
from blockify.utils.slug import generate_anchor

__all__ = ["generate_anchor", "redact"]
