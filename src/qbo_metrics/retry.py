"""Rate-limit retry and request pacing for report fetch loops."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Iterator
from typing import TypeVar

from qbo_metrics.qbo_client import QBORateLimitError

log = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRY_AFTER = 1.0
INTER_CALL_DELAY = 0.125  # ~8 requests/s, under QBO's 10-concurrent ceiling


def call_with_rate_limit_retry(
    fn: Callable[..., T],
    *args,
    retries: int = 1,
    default_delay: float = DEFAULT_RETRY_AFTER,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs,
) -> T:
    """Call ``fn(*args, **kwargs)``, retrying after a QBORateLimitError.

    Waits the server's Retry-After (or *default_delay* when none was sent)
    before each retry. Once *retries* are used up the last rate-limit error
    propagates. Any other exception propagates on the first occurrence.
    """
    attempt = 0
    while True:
        try:
            return fn(*args, **kwargs)
        except QBORateLimitError as exc:
            if attempt >= retries:
                raise
            attempt += 1
            delay = exc.retry_after if exc.retry_after is not None else default_delay
            log.info("Rate limited, retry %d/%d in %.2fs", attempt, retries, delay)
            sleep(delay)


def paced(
    items: Iterable[T],
    delay: float = INTER_CALL_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[T]:
    """Yield *items*, sleeping *delay* seconds between consecutive ones.

    The pause happens when the next item is requested, so nothing waits
    after the last item and work done per item is fully serialised.
    """
    first = True
    for item in items:
        if not first and delay > 0:
            sleep(delay)
        first = False
        yield item
