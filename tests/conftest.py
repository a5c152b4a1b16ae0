"""Shared test fixtures for the blockify test suite."""

from __future__ import annotations

import pytest

from blockify.config import BlockifyConfig
from blockify.converter.html_normalizer import HtmlNormalizer
from blockify.converter.json_normalizer import JsonNormalizer
from blockify.converter.markdown_serializer import MarkdownSerializer
from blockify.converter.text_normalizer import TextNormalizer
from blockify.models import AssetUpload


@pytest.fixture
def config() -> BlockifyConfig:
    """Default test configuration with a dummy token and no retry delay."""
    return BlockifyConfig(
        token="test_token_1234",
        retry_base_delay=0.0,
        retry_jitter=False,
    )


@pytest.fixture
def html_normalizer(config: BlockifyConfig) -> HtmlNormalizer:
    return HtmlNormalizer(config)


@pytest.fixture
def json_normalizer(config: BlockifyConfig) -> JsonNormalizer:
    return JsonNormalizer(config)


@pytest.fixture
def text_normalizer(config: BlockifyConfig) -> TextNormalizer:
    return TextNormalizer(config)


@pytest.fixture
def serializer(config: BlockifyConfig) -> MarkdownSerializer:
    return MarkdownSerializer(config)


class RecordingStore:
    """In-memory asset store that records every upload."""

    def __init__(self, fail_on: set[int] | None = None) -> None:
        self.calls: list[tuple[bytes, str]] = []
        self.fail_on = fail_on or set()

    def upload(self, data: bytes, content_hint: str) -> AssetUpload:
        index = len(self.calls)
        self.calls.append((data, content_hint))
        if index in self.fail_on:
            raise RuntimeError(f"upload {index} refused")
        return AssetUpload(url=f"https://cdn.example.com/img-{index}.png", alt_text_guess=None)


class RecordingMetrics:
    """MetricsHook that keeps every data point for assertions."""

    def __init__(self) -> None:
        self.increments: list[tuple[str, int, dict | None]] = []
        self.timings: list[tuple[str, float, dict | None]] = []
        self.gauges: list[tuple[str, float, dict | None]] = []

    def increment(self, name, value=1, tags=None):
        self.increments.append((name, value, tags))

    def timing(self, name, ms, tags=None):
        self.timings.append((name, ms, tags))

    def gauge(self, name, value, tags=None):
        self.gauges.append((name, value, tags))

    def count(self, name: str) -> int:
        return sum(value for n, value, _ in self.increments if n == name)


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def metrics() -> RecordingMetrics:
    return RecordingMetrics()
