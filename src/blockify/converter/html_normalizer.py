"""HTML fragment to blocks normalizer.

Converts the ``text/html`` flavour of a clipboard paste (or any HTML
fragment) into blocks.  The fragment is parsed with BeautifulSoup's
``html.parser`` and walked in pre-order; each element is dispatched by
tag name through :data:`_TAG_HANDLERS`.  Generic containers and unknown
elements are transparent: their children are walked in turn.

After the structural walk a post-pass picks up every ``<img>`` the walk
did not turn into an image block (images nested in spans, list items,
table cells, ...), de-duplicated by url.

``data:`` and ``blob:`` image urls are kept as-is and reported in
:attr:`ConversionResult.pending_images`; uploading them is a separate
stage (:mod:`blockify.image.resolve`).
"""

from __future__ import annotations

import re
from collections.abc import Callable as _Callable
from typing import Union

from bs4 import BeautifulSoup, NavigableString, ParserRejectedMarkup, Tag

from blockify.blocks import clamp_heading_level
from blockify.config import BlockifyConfig
from blockify.models import (
    Block,
    BlockType,
    CodeBlock,
    ConversionResult,
    ConversionWarning,
    DividerBlock,
    FaqBlock,
    HeadingBlock,
    ImageBlock,
    ListBlock,
    ListStyle,
    ParagraphBlock,
    QuoteBlock,
    TableBlock,
)
from blockify.observability import get_logger
from blockify.utils.slug import generate_anchor

from .results import build_result

log = get_logger("blockify.converter.html")

HTML_PARSE_FAILED = "HTML_PARSE_FAILED"

# Elements walked through without emitting anything themselves.
CONTAINER_TAGS: frozenset[str] = frozenset({
    "div", "span", "section", "article", "main", "aside", "header", "footer",
})

# Elements whose content is never document content.
SKIPPED_TAGS: frozenset[str] = frozenset({
    "script", "style", "noscript", "template", "head", "meta", "link", "title",
})

# Inline emphasis kept as a paragraph only when it is a top-level child.
_EMPHASIS_TAGS: frozenset[str] = frozenset({"strong", "em", "b", "i"})

_LANGUAGE_CLASS_RE = re.compile(r"^(?:language|lang)-([\w+#.-]+)$")
# At most nine digits: longer runs are not plausible sizes or levels.
_LEADING_INT_RE = re.compile(r"^\s*(\d{1,9})(?!\d)")

_Root = Union[BeautifulSoup, Tag]


# ---------------------------------------------------------------------------
# Attribute helpers
# ---------------------------------------------------------------------------

def _attr(el: Tag, name: str) -> str | None:
    """Return an attribute as a string (multi-valued attributes joined)."""
    value = el.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        value = " ".join(value)
    return value or None


def _int_attr(el: Tag, name: str) -> int | None:
    value = _attr(el, name)
    if value is None:
        return None
    m = _LEADING_INT_RE.match(value)
    return int(m.group(1)) if m else None


def _text(node: Tag) -> str:
    return node.get_text().strip()


def _is_text(node: object) -> bool:
    # Comments, doctypes and CDATA are NavigableString subclasses.
    return type(node) is NavigableString


def _wrapping_link(img: Tag, stop: _Root | None = None) -> str | None:
    """``href`` of the nearest ``<a>`` ancestor of *img*, below *stop*."""
    for parent in img.parents:
        if parent is stop:
            return None
        if parent.name == "a":
            return _attr(parent, "href")
    return None


def _image_block(img: Tag, link: str | None) -> ImageBlock:
    loading = _attr(img, "loading")
    return ImageBlock(
        url=_attr(img, "src") or "",
        alt=_attr(img, "alt") or "",
        title=_attr(img, "title"),
        link=link,
        width=_int_attr(img, "width"),
        height=_int_attr(img, "height"),
        srcset=_attr(img, "srcset"),
        sizes=_attr(img, "sizes"),
        loading=loading.lower() if loading and loading.lower() in ("lazy", "eager") else None,
    )


def _code_language(*elements: Tag | None) -> str | None:
    for el in elements:
        if el is None:
            continue
        for cls in el.get("class") or []:
            m = _LANGUAGE_CLASS_RE.match(cls)
            if m:
                return m.group(1)
    return None


def _in_skipped(el: Tag) -> bool:
    return any(parent.name in SKIPPED_TAGS for parent in el.parents)


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------

class _HtmlContext:
    """Accumulator for one normalization pass."""

    def __init__(self, root: _Root) -> None:
        self.root = root
        self.blocks: list[Block] = []
        self.warnings: list[ConversionWarning] = []
        # Nodes still to visit, next one last.
        self.pending: list[object] = []


class HtmlNormalizer:
    """Convert an HTML fragment into blocks.

    Accepts any string and never raises; anything that is not a string
    is treated as an empty fragment.

    Parameters
    ----------
    config:
        Supplies ``default_code_language`` for ``<pre>`` blocks without a
        ``language-xxx`` class.
    """

    def __init__(self, config: BlockifyConfig | None = None) -> None:
        self._config = config or BlockifyConfig()

    def normalize(self, html: str | None) -> ConversionResult:
        """Convert *html* to a :class:`ConversionResult`."""
        if not isinstance(html, str) or not html.strip():
            return build_result([], [], "html")

        try:
            soup = BeautifulSoup(html, "html.parser")
        except ParserRejectedMarkup as exc:
            log.warning(
                "html rejected by parser",
                extra={"extra_fields": {"op": "html_normalize", "error": str(exc)}},
            )
            return build_result([], [ConversionWarning(
                code=HTML_PARSE_FAILED,
                message=f"HTML could not be parsed: {exc}",
                context={"length": len(html)},
            )], "html")
        root: _Root = soup.body or soup
        ctx = _HtmlContext(root)

        self._walk_children(root, ctx)
        while ctx.pending:
            self._walk(ctx.pending.pop(), ctx)
        self._collect_missed_images(ctx)

        log.debug(
            "html normalized",
            extra={"extra_fields": {"op": "html_normalize", "blocks": len(ctx.blocks)}},
        )
        return build_result(ctx.blocks, ctx.warnings, "html")

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _walk_children(self, el: _Root, ctx: _HtmlContext) -> None:
        """Schedule *el*'s children to be visited next, in document order.

        Handlers only descend as their last action, so deferring the
        children onto the explicit stack keeps the pre-order and lets
        arbitrarily deep markup through without recursion.
        """
        ctx.pending.extend(reversed(list(el.children)))

    def _walk(self, node: object, ctx: _HtmlContext) -> None:
        if _is_text(node):
            text = str(node).strip()
            if text:
                ctx.blocks.append(ParagraphBlock(text=text))
            return
        if not isinstance(node, Tag):
            return

        name = node.name.lower()
        if name in SKIPPED_TAGS:
            return
        if name in CONTAINER_TAGS:
            self._walk_children(node, ctx)
            return

        handler = _TAG_HANDLERS.get(name)
        if handler is not None:
            handler(self, node, ctx)
            return

        self._walk_children(node, ctx)

    def _is_top_level(self, el: Tag, ctx: _HtmlContext) -> bool:
        return el.parent is ctx.root

    # ------------------------------------------------------------------
    # Tag handlers
    # ------------------------------------------------------------------

    def _heading(self, el: Tag, ctx: _HtmlContext) -> None:
        text = _text(el)
        ctx.blocks.append(HeadingBlock(
            level=clamp_heading_level(int(el.name[1])),
            text=text,
            anchor=generate_anchor(text),
        ))

    def _paragraph(self, el: Tag, ctx: _HtmlContext) -> None:
        if el.find("img") is None:
            text = _text(el)
            if text:
                ctx.blocks.append(ParagraphBlock(text=text))
            return

        for img in el.find_all("img"):
            if not _attr(img, "src"):
                continue
            ctx.blocks.append(_image_block(img, _wrapping_link(img)))

        parts: list[str] = []
        for child in el.children:
            if _is_text(child):
                parts.append(str(child).strip())
            elif isinstance(child, Tag) and child.name != "img":
                parts.append(_text(child))
        text = " ".join(part for part in parts if part)
        if text:
            ctx.blocks.append(ParagraphBlock(text=text))

    def _img(self, el: Tag, ctx: _HtmlContext) -> None:
        if not _attr(el, "src"):
            return
        parent = el.parent
        link = _attr(parent, "href") if isinstance(parent, Tag) and parent.name == "a" else None
        ctx.blocks.append(_image_block(el, link))

    def _figure(self, el: Tag, ctx: _HtmlContext) -> None:
        img = el.find("img")
        if img is None or not _attr(img, "src"):
            self._walk_children(el, ctx)
            return

        block = _image_block(img, _wrapping_link(img, stop=el))
        figcaption = el.find("figcaption")
        if figcaption is not None:
            caption = _text(figcaption)
            credit = figcaption.select_one(".source, .credit")
            source = _text(credit) if credit is not None else ""
            if source:
                caption = caption.replace(source, "", 1).strip()
            source_link = figcaption.find("a")
            block.caption = caption or None
            block.source = source or None
            block.source_url = _attr(source_link, "href") if source_link is not None else None
        ctx.blocks.append(block)

    def _list(self, el: Tag, ctx: _HtmlContext) -> None:
        items = [text for text in (_text(li) for li in el.find_all("li")) if text]
        if items:
            style = ListStyle.ORDERED if el.name == "ol" else ListStyle.UNORDERED
            ctx.blocks.append(ListBlock(style=style, items=items))

    def _blockquote(self, el: Tag, ctx: _HtmlContext) -> None:
        text = _text(el)
        if text:
            ctx.blocks.append(QuoteBlock(text=text))

    def _pre(self, el: Tag, ctx: _HtmlContext) -> None:
        code = el.find("code")
        text = _text(code if code is not None else el)
        ctx.blocks.append(CodeBlock(
            language=_code_language(code, el) or self._config.default_code_language,
            code=text,
        ))

    def _inline_code(self, el: Tag, ctx: _HtmlContext) -> None:
        text = _text(el)
        if text:
            ctx.blocks.append(ParagraphBlock(text=f"`{text}`"))

    def _table(self, el: Tag, ctx: _HtmlContext) -> None:
        thead = el.find("thead")
        headers: list[str] = []
        if thead is not None:
            headers = [_text(cell) for cell in thead.find_all(["th", "td"])]

        body_rows = [
            tr for tr in el.find_all("tr")
            if thead is None or thead not in tr.parents
        ]
        if not headers and thead is None and body_rows:
            headers = [_text(cell) for cell in body_rows[0].find_all(["th", "td"])]
            if headers:
                body_rows = body_rows[1:]

        rows = [
            row for row in ([_text(cell) for cell in tr.find_all(["td", "th"])] for tr in body_rows)
            if row
        ]
        if not headers and rows:
            headers = [f"Col {i + 1}" for i in range(len(rows[0]))]
        if headers or rows:
            ctx.blocks.append(TableBlock(headers=headers, rows=rows))

    def _hr(self, el: Tag, ctx: _HtmlContext) -> None:
        ctx.blocks.append(DividerBlock())

    def _details(self, el: Tag, ctx: _HtmlContext) -> None:
        summary = el.find("summary")
        if summary is None:
            self._walk_children(el, ctx)
            return
        parts: list[str] = []
        for child in el.children:
            if child is summary:
                continue
            if _is_text(child):
                parts.append(str(child).strip())
            elif isinstance(child, Tag):
                parts.append(_text(child))
        ctx.blocks.append(FaqBlock(
            question=_text(summary),
            answer=" ".join(part for part in parts if part),
        ))

    def _anchor(self, el: Tag, ctx: _HtmlContext) -> None:
        img = el.find("img")
        if img is not None:
            if _attr(img, "src"):
                ctx.blocks.append(_image_block(img, _attr(el, "href")))
            return
        text = _text(el)
        if text and self._is_top_level(el, ctx):
            ctx.blocks.append(ParagraphBlock(text=text))

    def _emphasis(self, el: Tag, ctx: _HtmlContext) -> None:
        text = _text(el)
        if text and self._is_top_level(el, ctx):
            ctx.blocks.append(ParagraphBlock(text=text))

    # ------------------------------------------------------------------
    # Post-pass
    # ------------------------------------------------------------------

    def _collect_missed_images(self, ctx: _HtmlContext) -> None:
        seen = {b.url for b in ctx.blocks if b.type == BlockType.IMAGE}
        for img in ctx.root.find_all("img"):
            src = _attr(img, "src")
            if not src or src in seen or _in_skipped(img):
                continue
            seen.add(src)
            ctx.blocks.append(_image_block(img, _wrapping_link(img)))


_TagHandler = _Callable[[HtmlNormalizer, Tag, _HtmlContext], None]

_TAG_HANDLERS: dict[str, _TagHandler] = {
    **{f"h{n}": HtmlNormalizer._heading for n in range(1, 7)},
    "p": HtmlNormalizer._paragraph,
    "img": HtmlNormalizer._img,
    "figure": HtmlNormalizer._figure,
    "ul": HtmlNormalizer._list,
    "ol": HtmlNormalizer._list,
    "blockquote": HtmlNormalizer._blockquote,
    "pre": HtmlNormalizer._pre,
    "code": HtmlNormalizer._inline_code,
    "table": HtmlNormalizer._table,
    "hr": HtmlNormalizer._hr,
    "details": HtmlNormalizer._details,
    "a": HtmlNormalizer._anchor,
    **{tag: HtmlNormalizer._emphasis for tag in _EMPHASIS_TAGS},
}


def html_to_blocks(html: str | None, config: BlockifyConfig | None = None) -> list[Block]:
    """Shortcut returning only the blocks of ``HtmlNormalizer(config).normalize(html)``."""
    return HtmlNormalizer(config).normalize(html).blocks
