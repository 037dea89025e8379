from __future__ import annotations

import unittest

import requests

from datview.http_retry import classify_http_exception
from datview.retry import RetryConfig, backoff_delay, call_with_retries


def _http_error(status: int, headers: dict[str, str] | None = None) -> requests.HTTPError:
    resp = requests.Response()
    resp.status_code = status
    resp.headers.update(headers or {})
    return requests.HTTPError(str(status), response=resp)


def _always_retry(exc: BaseException) -> tuple[bool, float | None, str]:
    return True, None, "test"


class TestRetryConfig(unittest.TestCase):
    def test_validation(self) -> None:
        with self.assertRaises(ValueError):
            RetryConfig(max_attempts=0)
        with self.assertRaises(ValueError):
            RetryConfig(base_delay_seconds=5.0, max_delay_seconds=1.0)
        with self.assertRaises(ValueError):
            RetryConfig(jitter_ratio=1.5)


class TestBackoff(unittest.TestCase):
    def test_doubles_and_caps(self) -> None:
        cfg = RetryConfig(base_delay_seconds=1.0, max_delay_seconds=5.0, jitter_ratio=0.0)
        self.assertEqual([backoff_delay(n, cfg) for n in (1, 2, 3, 4)], [1.0, 2.0, 4.0, 5.0])

    def test_retry_after_wins_but_is_capped(self) -> None:
        cfg = RetryConfig(
            base_delay_seconds=1.0,
            max_delay_seconds=5.0,
            jitter_ratio=0.0,
            retry_after_cap_seconds=8.0,
        )
        self.assertEqual(backoff_delay(1, cfg, 3.0), 3.0)
        self.assertEqual(backoff_delay(1, cfg, 60.0), 8.0)


class TestCallWithRetries(unittest.TestCase):
    def test_returns_after_transient_failures(self) -> None:
        calls: list[int] = []

        def fn() -> str:
            calls.append(1)
            if len(calls) < 3:
                raise ConnectionError("boom")
            return "ok"

        cfg = RetryConfig(max_attempts=3, base_delay_seconds=0.0, jitter_ratio=0.0)
        result = call_with_retries(
            fn, cfg=cfg, classify=_always_retry, url="u", sleep_fn=lambda _: None
        )
        self.assertEqual(result, "ok")
        self.assertEqual(len(calls), 3)

    def test_reraises_when_exhausted(self) -> None:
        def fn() -> str:
            raise ConnectionError("boom")

        cfg = RetryConfig(max_attempts=2, base_delay_seconds=0.0, jitter_ratio=0.0)
        with self.assertRaises(ConnectionError):
            call_with_retries(fn, cfg=cfg, classify=_always_retry, url="u")

    def test_non_retryable_raises_immediately(self) -> None:
        calls: list[int] = []

        def fn() -> str:
            calls.append(1)
            raise ValueError("bad")

        cfg = RetryConfig(max_attempts=5)
        with self.assertRaises(ValueError):
            call_with_retries(
                fn, cfg=cfg, classify=lambda e: (False, None, "no"), url="u"
            )
        self.assertEqual(len(calls), 1)


class TestClassifyHttpException(unittest.TestCase):
    def test_status_codes(self) -> None:
        self.assertEqual(classify_http_exception(_http_error(503)), (True, None, "http_503"))
        self.assertEqual(
            classify_http_exception(_http_error(429, {"Retry-After": "7"})),
            (True, 7.0, "http_429"),
        )
        self.assertEqual(classify_http_exception(_http_error(404)), (False, None, "http_404"))

    def test_network_errors(self) -> None:
        self.assertTrue(classify_http_exception(requests.ConnectionError("x"))[0])
        self.assertTrue(classify_http_exception(requests.Timeout("x"))[0])

    def test_other_errors(self) -> None:
        self.assertEqual(classify_http_exception(ValueError("x")), (False, None, "ValueError"))


if __name__ == "__main__":
    unittest.main()
