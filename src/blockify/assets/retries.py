"""Retry decisions and backoff for asset-store uploads.

Two pure functions drive the retry loop in :mod:`blockify.assets.media_api`:

* :func:`should_retry` decides whether a failed upload may be retried.
* :func:`compute_backoff` computes the delay before the next attempt.

:func:`parse_retry_after` reads the server's ``Retry-After`` hint.
"""

from __future__ import annotations

import random

import httpx

RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
)


def should_retry(
    status_code: int | None,
    exception: Exception | None,
    attempt: int,
    max_attempts: int,
) -> bool:
    """Decide whether an upload attempt should be retried.

    Parameters
    ----------
    status_code:
        HTTP status of the response, or ``None`` when no response arrived.
    exception:
        The transport exception raised, or ``None`` when a response arrived.
    attempt:
        The current attempt number (0-indexed).
    max_attempts:
        Maximum total attempts, including the first.

    Returns
    -------
    bool
        ``True`` if another attempt is allowed and the failure is transient.
    """
    if attempt + 1 >= max_attempts:
        return False
    if exception is not None:
        return isinstance(exception, RETRYABLE_EXCEPTIONS)
    if status_code is not None:
        return status_code in RETRYABLE_STATUSES
    return False


def compute_backoff(
    attempt: int,
    base: float = 0.5,
    maximum: float = 10.0,
    jitter: bool = True,
    retry_after: float | None = None,
) -> float:
    """Compute the delay in seconds before the next attempt.

    A server-supplied *retry_after* wins (still capped at *maximum*);
    otherwise the delay is ``base * 2**attempt`` capped at *maximum*.
    With *jitter* the delay is scaled to a random 50-100 % of itself.
    """
    if retry_after is not None:
        delay = min(retry_after, maximum)
    else:
        delay = min(base * (2 ** attempt), maximum)

    if jitter:
        delay *= 0.5 + random.random() * 0.5

    return delay


def parse_retry_after(response: httpx.Response) -> float | None:
    """Return the ``Retry-After`` header in seconds, or ``None``."""
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        value = float(raw)
    except (ValueError, TypeError):
        return None
    return value if value >= 0 else None
