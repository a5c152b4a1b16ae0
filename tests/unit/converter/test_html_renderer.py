"""Tests for the semantic HTML renderer."""

from __future__ import annotations

from blockify.converter.html_normalizer import html_to_blocks
from blockify.converter.html_renderer import HtmlRenderer, blocks_to_html
from blockify.models import (
    CodeBlock,
    DividerBlock,
    FaqBlock,
    HeadingBlock,
    ImageBlock,
    ListBlock,
    ListStyle,
    MediaPosition,
    MediaTextBlock,
    ParagraphBlock,
    QuoteBlock,
    TableBlock,
)


class TestRenderBlock:
    def setup_method(self):
        self.renderer = HtmlRenderer()

    def test_heading_with_anchor(self):
        html = self.renderer.render_block(HeadingBlock(level=3, text="A & B", anchor="a-b"))
        assert html == '<h3 id="a-b">A &amp; B</h3>'

    def test_paragraph_escaped(self):
        assert self.renderer.render_block(ParagraphBlock(text="<b>x</b>")) == (
            "<p>&lt;b&gt;x&lt;/b&gt;</p>"
        )

    def test_image_figure(self):
        block = ImageBlock(
            url="a.png", alt="A", caption="Cap", link="https://l.test",
            source="Src", source_url="https://s.test", width=10,
        )
        html = self.renderer.render_block(block)
        assert html.startswith('<figure><a href="https://l.test"><img src="a.png" alt="A" width="10">')
        assert "<figcaption>Cap <span class=\"source\"><a href=\"https://s.test\">Src</a></span>" in html

    def test_plain_image_has_no_figcaption(self):
        html = self.renderer.render_block(ImageBlock(url="a.png", alt=""))
        assert html == '<figure><img src="a.png" alt=""></figure>'

    def test_lists(self):
        assert self.renderer.render_block(ListBlock(items=["a"])) == "<ul><li>a</li></ul>"
        ordered = ListBlock(style=ListStyle.ORDERED, items=["a", "b"])
        assert self.renderer.render_block(ordered) == "<ol><li>a</li><li>b</li></ol>"

    def test_code(self):
        html = self.renderer.render_block(CodeBlock(language="py", code="a < b"))
        assert html == '<pre><code class="language-py">a &lt; b</code></pre>'

    def test_quote_and_divider(self):
        assert self.renderer.render_block(QuoteBlock(text="q")) == "<blockquote>q</blockquote>"
        assert self.renderer.render_block(DividerBlock()) == "<hr>"

    def test_table(self):
        html = self.renderer.render_block(TableBlock(headers=["A"], rows=[["1"]]))
        assert html == (
            "<table><thead><tr><th>A</th></tr></thead>"
            "<tbody><tr><td>1</td></tr></tbody></table>"
        )

    def test_table_without_headers_has_no_thead(self):
        html = self.renderer.render_block(TableBlock(rows=[["1"]]))
        assert "<thead>" not in html

    def test_faq(self):
        html = self.renderer.render_block(FaqBlock(question="Q", answer="A"))
        assert html == "<details><summary>Q</summary><p>A</p></details>"

    def test_media_text(self):
        block = MediaTextBlock(
            image_url="a.png", title="T", text="Body",
            media_position=MediaPosition.RIGHT, media_width=40, padding="1rem",
        )
        html = self.renderer.render_block(block)
        assert html.startswith('<div class="media-text media-right" data-media-width="40"')
        assert 'data-vertical-align="center"' in html
        assert 'style="padding: 1rem"' in html
        assert "<h3>T</h3><p>Body</p>" in html


class TestRoundTrip:
    def test_renders_back_to_same_blocks(self):
        blocks = [
            HeadingBlock(level=2, text="Title", anchor="title"),
            ParagraphBlock(text="Some <text> & more"),
            ListBlock(style=ListStyle.ORDERED, items=["x", "y"]),
            CodeBlock(language="python", code="if a < b:\n    pass"),
            QuoteBlock(text="quoted"),
            DividerBlock(),
            TableBlock(headers=["A", "B"], rows=[["1", "2"]]),
            FaqBlock(question="Q?", answer="A."),
        ]
        restored = html_to_blocks(blocks_to_html(blocks))
        assert [b.type for b in restored] == [b.type for b in blocks]
        for before, after in zip(blocks, restored):
            after.id = before.id
            assert after == before

    def test_image_round_trip_keeps_caption_and_credit(self):
        block = ImageBlock(
            url="https://x.test/a.png", alt="A", caption="Cap",
            link="https://l.test", source="Src", source_url="https://s.test",
        )
        restored = html_to_blocks(blocks_to_html([block]))[0]
        restored.id = block.id
        assert restored == block
