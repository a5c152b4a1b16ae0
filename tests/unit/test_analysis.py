"""Tests for document metrics: TOC, word count and reading time."""

from __future__ import annotations

import pytest

from blockify.analysis import (
    build_toc,
    build_toc_tree,
    compute_document_metrics,
    count_words,
    estimate_reading_time,
)
from blockify.config import BlockifyConfig
from blockify.models import (
    CodeBlock,
    FaqBlock,
    HeadingBlock,
    ImageBlock,
    ListBlock,
    ParagraphBlock,
    QuoteBlock,
    TableBlock,
    TocEntry,
)


class TestToc:
    def test_entries_in_document_order(self):
        blocks = [
            HeadingBlock(level=2, text="Intro", anchor="intro"),
            ParagraphBlock(text="x"),
            HeadingBlock(level=3, text="Details Here", anchor=""),
        ]
        toc = build_toc(blocks)
        assert toc == [
            TocEntry(id="h2-intro", level=2, text="Intro", anchor="intro"),
            TocEntry(id="h3-details-here", level=3, text="Details Here", anchor="details-here"),
        ]

    def test_max_level_filters(self):
        blocks = [HeadingBlock(level=2, text="A"), HeadingBlock(level=4, text="B")]
        assert [e.text for e in build_toc(blocks, max_level=3)] == ["A"]

    def test_empty_headings_skipped(self):
        assert build_toc([HeadingBlock(text="   ")]) == []

    def test_entry_to_dict(self):
        entry = TocEntry(id="h2-a", level=2, text="A", anchor="a")
        assert entry.to_dict() == {"id": "h2-a", "level": 2, "text": "A", "anchor": "a"}


class TestTocTree:
    def _entries(self, *levels):
        return [TocEntry(id=f"e{i}", level=lvl, text=f"t{i}", anchor=f"a{i}") for i, lvl in enumerate(levels)]

    def test_nesting(self):
        roots = build_toc_tree(self._entries(2, 3, 3, 2))
        assert [r.entry.id for r in roots] == ["e0", "e3"]
        assert [c.entry.id for c in roots[0].children] == ["e1", "e2"]
        assert roots[1].children == []

    def test_deep_then_shallow(self):
        roots = build_toc_tree(self._entries(2, 3, 4, 3))
        assert [c.entry.id for c in roots[0].children] == ["e1", "e3"]
        assert [c.entry.id for c in roots[0].children[0].children] == ["e2"]

    def test_orphan_deep_heading_is_root(self):
        roots = build_toc_tree(self._entries(4, 2))
        assert [r.entry.id for r in roots] == ["e0", "e1"]


class TestWordCount:
    def test_counted_block_types(self):
        blocks = [
            ParagraphBlock(text="one two"),
            QuoteBlock(text="three"),
            HeadingBlock(text="four five"),
            ListBlock(items=["six", "seven eight"]),
            FaqBlock(question="nine?", answer="ten"),
        ]
        assert count_words(blocks) == 10

    def test_ignored_block_types(self):
        blocks = [
            CodeBlock(code="a b c"),
            TableBlock(headers=["a b"], rows=[["c d"]]),
            ImageBlock(url="x", alt="alt words", caption="cap words"),
        ]
        assert count_words(blocks) == 0

    def test_whitespace_runs(self):
        assert count_words([ParagraphBlock(text="  a \n\t b  ")]) == 2


class TestReadingTime:
    @pytest.mark.parametrize(
        "words, expected",
        [(0, 1), (1, 1), (200, 1), (201, 2), (1000, 5)],
    )
    def test_default_rate(self, words, expected):
        assert estimate_reading_time(words) == expected

    def test_custom_rate(self):
        assert estimate_reading_time(300, words_per_minute=100) == 3


class TestDocumentMetrics:
    def test_four_words_read_in_one_minute(self):
        metrics = compute_document_metrics([ParagraphBlock(text="one two three four")])
        assert metrics.word_count == 4
        assert metrics.reading_time == 1

    def test_config_applied(self):
        blocks = [HeadingBlock(level=4, text="deep"), ParagraphBlock(text="w " * 30)]
        metrics = compute_document_metrics(
            blocks, BlockifyConfig(words_per_minute=10, toc_max_level=3),
        )
        assert metrics.toc == []
        assert metrics.word_count == 31
        assert metrics.reading_time == 4

    def test_to_dict_uses_legacy_keys(self):
        metrics = compute_document_metrics([HeadingBlock(text="A", anchor="a")])
        assert metrics.to_dict() == {
            "toc": [{"id": "h2-a", "level": 2, "text": "A", "anchor": "a"}],
            "wordCount": 1,
            "readingTime": 1,
        }
