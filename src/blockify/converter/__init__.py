"""Converters between external content formats and blocks.

Exports
-------
HtmlNormalizer / html_to_blocks
    HTML fragment to blocks.
JsonNormalizer / json_to_blocks / parse_json_text
    Loosely shaped JSON to blocks.
TextNormalizer / text_to_blocks
    Plain or Markdown-like text to blocks.
MarkdownSerializer / blocks_to_markdown
    Blocks to flat Markdown.
HtmlRenderer / blocks_to_html
    Blocks to unstyled semantic HTML.
"""

from .html_normalizer import HtmlNormalizer, html_to_blocks
from .html_renderer import HtmlRenderer, blocks_to_html
from .json_normalizer import JsonNormalizer, json_to_blocks, parse_json_text
from .markdown_serializer import MarkdownSerializer, blocks_to_markdown
from .text_normalizer import TextNormalizer, text_to_blocks

__all__ = [
    "HtmlNormalizer",
    "HtmlRenderer",
    "JsonNormalizer",
    "MarkdownSerializer",
    "TextNormalizer",
    "blocks_to_html",
    "blocks_to_markdown",
    "html_to_blocks",
    "json_to_blocks",
    "parse_json_text",
    "text_to_blocks",
]
