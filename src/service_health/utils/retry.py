"""Retry policy for webhook delivery.

A delivery is attempted again when the connection fails, the request times
out, or the webhook answers 429 or a 5xx gateway error. The server's
``Retry-After`` header, or the ``retry_after`` field Discord puts in a 429
body, sets the wait; otherwise the wait doubles from ``initial_delay``.
Any other 4xx is a bad payload or URL and fails at once. Health checks
themselves are single-shot and never go through here.

Usage:
    from service_health.utils.retry import raise_for_retryable_status, retry_with_backoff

    @retry_with_backoff(max_retries=3)
    def post_alert(url, payload):
        response = requests.post(url, json=payload, timeout=10)
        raise_for_retryable_status(response)
        return response
"""

import time
import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from functools import wraps
from typing import Callable, Optional, TypeVar

import requests

T = TypeVar('T')

MAX_DELAY = 30.0
BACKOFF_FACTOR = 2.0
RETRY_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class RetryableHTTPError(requests.exceptions.HTTPError):
    """Webhook answered with a status that may succeed later."""

    def __init__(self, *args, retry_after: Optional[float] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.retry_after = retry_after


RETRYABLE_ERRORS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    RetryableHTTPError,
)


def _header_seconds(value: str) -> Optional[float]:
    """Seconds from a Retry-After header (delta-seconds or HTTP-date)."""
    try:
        return max(float(value), 0.0)
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max((when - datetime.now(timezone.utc)).total_seconds(), 0.0)


def parse_retry_after(response: requests.Response) -> Optional[float]:
    """How long the server asked us to wait, in seconds, if it said."""
    header = response.headers.get("Retry-After")
    if header:
        seconds = _header_seconds(header)
        if seconds is not None:
            return seconds

    try:
        body = response.json()
    except ValueError:
        return None

    value = body.get("retry_after") if isinstance(body, dict) else None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return max(float(value), 0.0)
    return None


def raise_for_retryable_status(response: requests.Response) -> None:
    """Raise RetryableHTTPError for 429/5xx, HTTPError for other failures."""
    if response.status_code in RETRY_STATUS_CODES:
        raise RetryableHTTPError(
            f"{response.status_code} from webhook",
            response=response,
            retry_after=parse_retry_after(response),
        )
    response.raise_for_status()


def retry_with_backoff(max_retries: int = 3, initial_delay: float = 1.0) -> Callable:
    """Decorator retrying webhook calls on transient failures.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        initial_delay: Delay before the first retry when the server gives
            no Retry-After (default: 1.0)

    Returns:
        Decorated function that retries on connection errors, timeouts and
        RetryableHTTPError
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            logger = logging.getLogger(func.__module__)
            delay = initial_delay

            for attempt in range(max_retries + 1):  # +1 for initial attempt
                try:
                    return func(*args, **kwargs)
                except RETRYABLE_ERRORS as e:
                    if attempt == max_retries:
                        logger.error(
                            f"{func.__name__} failed after {max_retries + 1} attempts: {e}"
                        )
                        raise

                    retry_after = getattr(e, "retry_after", None)
                    wait = delay if retry_after is None else min(retry_after, MAX_DELAY)

                    logger.warning(
                        f"{func.__name__} attempt {attempt + 1}/{max_retries + 1} failed: {e}. "
                        f"Retrying in {wait:.1f}s..."
                    )

                    time.sleep(wait)
                    delay = min(delay * BACKOFF_FACTOR, MAX_DELAY)

        return wrapper
    return decorator
