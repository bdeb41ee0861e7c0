"""
Bounded retry for outbound Epson Connect requests.

Only transient failures are retried:
    - requests.ConnectionError (including ConnectTimeout)
    - requests.ReadTimeout, for idempotent calls only
    - HTTP 429 and 5xx responses

A read timeout means the request may already have reached the provider, so
it is not replayed for calls that create or start a job.

Any other 4xx is the provider rejecting the request and is returned to the
caller on the first attempt. The default policy makes a single attempt.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class RetryPolicy:
    """
    How many times to try a request and how long to wait in between.

    Attributes:
        max_attempts: Total attempts including the first (>= 1)
        backoff_seconds: Wait before the second attempt
        backoff_factor: Multiplier applied to the wait after each retry
    """

    max_attempts: int = 1
    backoff_seconds: float = 1.0
    backoff_factor: float = 2.0

    @classmethod
    def from_retries(cls, max_retries: int, backoff_seconds: float = 1.0) -> "RetryPolicy":
        """Build a policy from a retry count (0 = single attempt)."""
        return cls(max_attempts=max(1, max_retries + 1), backoff_seconds=backoff_seconds)

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return self.backoff_seconds * (self.backoff_factor ** (attempt - 1))


def is_retryable_response(response: requests.Response) -> bool:
    return response.status_code in RETRYABLE_STATUS_CODES


def send_with_retry(
    send: Callable[[], requests.Response],
    policy: RetryPolicy,
    logger: logging.Logger,
    description: str,
    sleep: Optional[Callable[[float], None]] = None,
    idempotent: bool = True,
) -> requests.Response:
    """
    Call ``send`` until it yields a non-transient result or attempts run out.

    Args:
        send: Zero-argument callable performing one HTTP request
        policy: Retry policy to apply
        logger: Logger for retry warnings
        description: Short label for log messages (e.g. "create_job")
        sleep: Sleep function (injectable for tests)
        idempotent: False for requests that must not be replayed once sent

    Returns:
        The last response received

    Raises:
        requests.RequestException: The last transport error, if every
            attempt failed without a response
    """
    sleep = sleep or time.sleep

    for attempt in range(1, policy.max_attempts + 1):
        is_last = attempt == policy.max_attempts
        try:
            response = send()
        except (requests.ConnectionError, requests.Timeout) as e:
            if is_last or not (idempotent or isinstance(e, requests.ConnectionError)):
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                f"{description}: transport error on attempt {attempt}/{policy.max_attempts} "
                f"({e}), retrying in {delay:.1f}s"
            )
            sleep(delay)
            continue

        if is_last or not is_retryable_response(response):
            return response

        delay = policy.delay_for(attempt)
        logger.warning(
            f"{description}: HTTP {response.status_code} on attempt "
            f"{attempt}/{policy.max_attempts}, retrying in {delay:.1f}s"
        )
        sleep(delay)

    # max_attempts >= 1 guarantees the loop returns or raises
    raise RuntimeError("unreachable")
