"""Blocks to semantic HTML renderer.

Renders unstyled, escaped markup for previews and for round-tripping
through :class:`~blockify.converter.html_normalizer.HtmlNormalizer`.
The markup uses only elements the normalizer maps back to the same
block type: ``<details>``/``<summary>`` for FAQs, ``<figure>`` for
images, ``<pre><code class="language-x">`` for code.

Public page styling is out of scope; MediaText is rendered as a
``div.media-text`` wrapper that consumers style themselves.
"""

from __future__ import annotations

from collections.abc import Callable as _Callable
from html import escape

from blockify.models import (
    Block,
    BlockType,
    CodeBlock,
    DividerBlock,
    FaqBlock,
    HeadingBlock,
    ImageBlock,
    ListBlock,
    ListStyle,
    MediaTextBlock,
    ParagraphBlock,
    QuoteBlock,
    TableBlock,
)


def _attrs(**attrs: object) -> str:
    """Render ``key="value"`` pairs, skipping ``None``; ``_`` becomes ``-``."""
    parts = [
        f'{key.rstrip("_").replace("_", "-")}="{escape(str(value))}"'
        for key, value in attrs.items()
        if value is not None
    ]
    return (" " + " ".join(parts)) if parts else ""


class HtmlRenderer:
    """Render blocks to semantic HTML, one element per block, newline-joined."""

    def render(self, blocks: list[Block]) -> str:
        return "\n".join(self.render_block(block) for block in blocks)

    def render_block(self, block: Block) -> str:
        return _BLOCK_RENDERERS[block.type](self, block)

    # ------------------------------------------------------------------
    # Block type renderers
    # ------------------------------------------------------------------

    def _heading(self, block: HeadingBlock) -> str:
        tag = f"h{block.level}"
        return f"<{tag}{_attrs(id=block.anchor or None)}>{escape(block.text)}</{tag}>"

    def _paragraph(self, block: ParagraphBlock) -> str:
        return f"<p>{escape(block.text)}</p>"

    def _image(self, block: ImageBlock) -> str:
        img = "<img" + _attrs(
            src=block.url,
            alt=block.alt,
            title=block.title,
            width=block.width,
            height=block.height,
            srcset=block.srcset,
            sizes=block.sizes,
            loading=block.loading,
        ) + ">"
        if block.link:
            img = f"<a{_attrs(href=block.link)}>{img}</a>"

        caption_parts: list[str] = []
        if block.caption:
            caption_parts.append(escape(block.caption))
        if block.source or block.source_url:
            credit = escape(block.source or block.source_url or "")
            if block.source_url:
                credit = f"<a{_attrs(href=block.source_url)}>{credit}</a>"
            caption_parts.append(f'<span class="source">{credit}</span>')
        figcaption = (
            f"<figcaption>{' '.join(caption_parts)}</figcaption>" if caption_parts else ""
        )
        return f"<figure>{img}{figcaption}</figure>"

    def _list(self, block: ListBlock) -> str:
        tag = "ol" if block.style == ListStyle.ORDERED else "ul"
        items = "".join(f"<li>{escape(item)}</li>" for item in block.items)
        return f"<{tag}>{items}</{tag}>"

    def _code(self, block: CodeBlock) -> str:
        cls = f"language-{block.language}" if block.language else None
        return f"<pre><code{_attrs(class_=cls)}>{escape(block.code)}</code></pre>"

    def _quote(self, block: QuoteBlock) -> str:
        return f"<blockquote>{escape(block.text)}</blockquote>"

    def _divider(self, block: DividerBlock) -> str:
        return "<hr>"

    def _table(self, block: TableBlock) -> str:
        head = ""
        if block.headers:
            cells = "".join(f"<th>{escape(h)}</th>" for h in block.headers)
            head = f"<thead><tr>{cells}</tr></thead>"
        rows = "".join(
            "<tr>" + "".join(f"<td>{escape(c)}</td>" for c in row) + "</tr>"
            for row in block.rows
        )
        return f"<table>{head}<tbody>{rows}</tbody></table>"

    def _faq(self, block: FaqBlock) -> str:
        return (
            f"<details><summary>{escape(block.question)}</summary>"
            f"<p>{escape(block.answer)}</p></details>"
        )

    def _media_text(self, block: MediaTextBlock) -> str:
        image = self._image(ImageBlock(
            url=block.image_url,
            alt=block.image_alt,
            caption=block.image_caption,
            link=block.image_link,
        ))
        text = ""
        if block.title:
            text += f"<h3>{escape(block.title)}</h3>"
        if block.text:
            text += f"<p>{escape(block.text)}</p>"
        style = "; ".join(
            f"{prop}: {value}" for prop, value in (
                ("background-color", block.background_color),
                ("border-radius", block.border_radius),
                ("padding", block.padding),
            ) if value
        )
        attrs = _attrs(
            class_=f"media-text media-{block.media_position.value}",
            data_media_width=block.media_width,
            data_vertical_align=block.vertical_align.value,
            style=style or None,
        )
        return f'<div{attrs}>{image}<div class="media-text-body">{text}</div></div>'


_BlockRenderer = _Callable[[HtmlRenderer, Block], str]

_BLOCK_RENDERERS: dict[BlockType, _BlockRenderer] = {
    BlockType.HEADING: HtmlRenderer._heading,
    BlockType.PARAGRAPH: HtmlRenderer._paragraph,
    BlockType.IMAGE: HtmlRenderer._image,
    BlockType.LIST: HtmlRenderer._list,
    BlockType.CODE: HtmlRenderer._code,
    BlockType.QUOTE: HtmlRenderer._quote,
    BlockType.DIVIDER: HtmlRenderer._divider,
    BlockType.TABLE: HtmlRenderer._table,
    BlockType.FAQ: HtmlRenderer._faq,
    BlockType.MEDIA_TEXT: HtmlRenderer._media_text,
}


def blocks_to_html(blocks: list[Block]) -> str:
    """Shortcut for ``HtmlRenderer().render(blocks)``."""
    return HtmlRenderer().render(blocks)
