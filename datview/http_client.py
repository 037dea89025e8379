from __future__ import annotations

import base64
import re
from typing import Any

import requests

from .config_schema import SourceConfig
from .errors import FetchError, SchemaError
from .http_retry import classify_http_exception
from .retry import OnRetryFn, RetryConfig, SleepFn, call_with_retries

MIN_THREAD_ID_CHARS = 4
DEFAULT_IMAGE_TYPE = "image/jpeg"

_CHARSET_RE = re.compile(r"charset\s*=\s*\"?([^\s;\"]+)", re.IGNORECASE)


def _charset_from_content_type(value: str | None) -> str | None:
    m = _CHARSET_RE.search(value or "")
    return m.group(1) if m else None


def dat_path(thread_id: str, *, thread_dir: str = "thread", dat_suffix: str = ".dat") -> str:
    """
    Relative path of a thread's dat file: ``thread/{id[:4]}/{id}.dat``.

    Raises FetchError for empty or too-short ids, before anything is fetched.
    """
    tid = thread_id or ""
    if not tid:
        raise FetchError("Thread id is required")
    if len(tid) < MIN_THREAD_ID_CHARS:
        raise FetchError(
            f"Thread id is too short (need at least {MIN_THREAD_ID_CHARS} characters): {tid!r}"
        )
    return f"{thread_dir}/{tid[:MIN_THREAD_ID_CHARS]}/{tid}{dat_suffix}"


class ThreadSourceClient:
    """
    Thin HTTP wrapper for the board's subject.json and dat files.

    Every failure surfaces as a single FetchError or SchemaError naming the URL.
    """

    def __init__(
        self,
        source: SourceConfig,
        *,
        session: requests.Session | None = None,
        retry: RetryConfig | None = None,
        on_retry: OnRetryFn | None = None,
        sleep_fn: SleepFn | None = None,
    ) -> None:
        self._source = source
        self._session = session or requests.Session()
        self._retry = retry or RetryConfig(max_attempts=source.max_attempts)
        self._on_retry = on_retry
        self._sleep_fn = sleep_fn

        if source.user_agent:
            self._session.headers["User-Agent"] = source.user_agent

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "ThreadSourceClient":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def list_url(self) -> str:
        return f"{self._source.base_url}/{self._source.list_path}"

    def dat_url(self, thread_id: str) -> str:
        path = dat_path(
            thread_id,
            thread_dir=self._source.thread_dir,
            dat_suffix=self._source.dat_suffix,
        )
        return f"{self._source.base_url}/{path}"

    def fetch_json(self, url: str) -> Any:
        response = self._get(url)
        try:
            return response.json()
        except ValueError as e:
            raise SchemaError(f"Response is not valid JSON (URL: {url}): {e}") from e

    def fetch_text(self, url: str) -> str:
        response = self._get(url)
        encoding = (
            self._source.encoding
            or _charset_from_content_type(response.headers.get("Content-Type"))
            or "utf-8"
        )
        try:
            return response.content.decode(encoding, errors="replace")
        except LookupError as e:
            raise FetchError(f"Unknown text encoding {encoding!r} (URL: {url})") from e

    def fetch_image_as_data_url(self, url: str) -> str:
        response = self._get(url)
        content_type = (response.headers.get("Content-Type") or "").strip() or DEFAULT_IMAGE_TYPE
        encoded = base64.b64encode(response.content).decode("ascii")
        return f"data:{content_type};base64,{encoded}"

    def _get(self, url: str) -> requests.Response:
        def _do_get() -> requests.Response:
            resp = self._session.get(url, timeout=self._source.timeout_secs)
            if not 200 <= resp.status_code < 300:
                raise requests.HTTPError(
                    f"{resp.status_code} {resp.reason or ''}".strip(), response=resp
                )
            return resp

        try:
            return call_with_retries(
                _do_get,
                cfg=self._retry,
                classify=classify_http_exception,
                url=url,
                on_retry=self._on_retry,
                sleep_fn=self._sleep_fn,
            )
        except requests.HTTPError as e:
            raise FetchError(f"HTTP error: {e} (URL: {url})") from e
        except requests.RequestException as e:
            raise FetchError(f"Request failed (URL: {url}): {e}") from e
