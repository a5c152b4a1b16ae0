"""Tests for assets/retries.py"""

from __future__ import annotations

import httpx
import pytest

from blockify.assets.retries import compute_backoff, parse_retry_after, should_retry


class TestShouldRetry:
    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_retryable_statuses(self, status):
        assert should_retry(status, None, 0, 3)

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 413, 422])
    def test_client_errors_not_retried(self, status):
        assert not should_retry(status, None, 0, 3)

    def test_network_errors_retried(self):
        assert should_retry(None, httpx.ConnectError("x"), 0, 3)
        assert should_retry(None, httpx.ReadTimeout("x"), 1, 3)

    def test_other_exceptions_not_retried(self):
        assert not should_retry(None, ValueError("x"), 0, 3)

    def test_last_attempt_never_retried(self):
        assert not should_retry(503, None, 2, 3)
        assert not should_retry(503, None, 0, 1)

    def test_nothing_to_go_on(self):
        assert not should_retry(None, None, 0, 3)


class TestComputeBackoff:
    def test_exponential_without_jitter(self):
        assert [compute_backoff(n, base=0.5, jitter=False) for n in range(4)] == [0.5, 1.0, 2.0, 4.0]

    def test_capped_at_maximum(self):
        assert compute_backoff(10, base=1.0, maximum=5.0, jitter=False) == 5.0

    def test_retry_after_wins_but_is_capped(self):
        assert compute_backoff(0, retry_after=3.0, jitter=False) == 3.0
        assert compute_backoff(0, maximum=2.0, retry_after=30.0, jitter=False) == 2.0

    def test_jitter_range(self):
        for _ in range(50):
            delay = compute_backoff(2, base=1.0, maximum=100.0, jitter=True)
            assert 2.0 <= delay <= 4.0


class TestParseRetryAfter:
    def _response(self, **headers):
        return httpx.Response(429, headers=headers)

    def test_seconds(self):
        assert parse_retry_after(self._response(**{"Retry-After": "2.5"})) == 2.5

    def test_missing(self):
        assert parse_retry_after(self._response()) is None

    @pytest.mark.parametrize("value", ["soon", "-1", "Wed, 21 Oct 2015 07:28:00 GMT"])
    def test_unusable(self, value):
        assert parse_retry_after(self._response(**{"Retry-After": value})) is None
