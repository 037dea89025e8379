from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """
    Backoff policy for a single HTTP fetch.

    - max_attempts counts the first request; the default of 1 never retries.
    - delays double from base_delay_seconds up to max_delay_seconds.
    - a server Retry-After wins over the computed delay, capped by
      retry_after_cap_seconds (0 disables the cap).
    """

    max_attempts: int = 1
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 10.0
    jitter_ratio: float = 0.2
    retry_after_cap_seconds: float = 30.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must be >= 0")
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        if not (0.0 <= self.jitter_ratio <= 1.0):
            raise ValueError("jitter_ratio must be between 0 and 1")
        if self.retry_after_cap_seconds < 0:
            raise ValueError("retry_after_cap_seconds must be >= 0")


@dataclass(frozen=True)
class RetryEvent:
    url: str
    failure_attempt: int
    max_attempts: int
    delay_seconds: float
    reason: str
    error_type: str
    error_message: str


# (retryable, retry_after_seconds, reason)
Classification = tuple[bool, float | None, str]
ClassifyFn = Callable[[BaseException], Classification]
OnRetryFn = Callable[[RetryEvent], None]
SleepFn = Callable[[float], None]


def backoff_delay(
    failure_attempt: int, cfg: RetryConfig, retry_after: float | None = None
) -> float:
    delay = cfg.base_delay_seconds * (2 ** max(0, failure_attempt - 1))
    delay = min(cfg.max_delay_seconds, delay)

    if retry_after is not None and retry_after >= 0:
        ra = retry_after
        if cfg.retry_after_cap_seconds > 0:
            ra = min(ra, cfg.retry_after_cap_seconds)
        delay = max(delay, ra)

    if delay > 0 and cfg.jitter_ratio > 0:
        delay *= random.uniform(1.0 - cfg.jitter_ratio, 1.0 + cfg.jitter_ratio)
    return max(0.0, delay)


def call_with_retries(
    fn: Callable[[], T],
    *,
    cfg: RetryConfig,
    classify: ClassifyFn,
    url: str,
    on_retry: OnRetryFn | None = None,
    sleep_fn: SleepFn | None = None,
) -> T:
    """
    Call fn(), retrying while classify(exc) says the failure is transient.

    The last exception propagates unchanged once attempts run out.
    """
    sleeper = sleep_fn or time.sleep
    attempt = 1

    while True:
        try:
            return fn()
        except Exception as exc:
            retryable, retry_after, reason = classify(exc)
            if not retryable or attempt >= cfg.max_attempts:
                raise

            delay = backoff_delay(attempt, cfg, retry_after)
            if on_retry is not None:
                on_retry(
                    RetryEvent(
                        url=url,
                        failure_attempt=attempt,
                        max_attempts=cfg.max_attempts,
                        delay_seconds=delay,
                        reason=reason,
                        error_type=type(exc).__name__,
                        error_message=(str(exc) or "").strip(),
                    )
                )
            if delay > 0:
                sleeper(delay)
            attempt += 1
