from __future__ import annotations

import requests

from .retry import Classification


def _retry_after_seconds(response: requests.Response | None) -> float | None:
    if response is None:
        return None
    raw = (response.headers.get("Retry-After") or "").strip()
    if not raw:
        return None
    try:
        return max(0.0, float(raw))
    except ValueError:
        # HTTP-date form; fall back to computed backoff.
        return None


def classify_http_exception(exc: BaseException) -> Classification:
    """
    Transient failures worth another attempt:
    - connection errors and timeouts
    - HTTP 429 and 5xx
    """
    if isinstance(exc, requests.HTTPError):
        response = exc.response
        code = response.status_code if response is not None else None
        if code == 429 or (code is not None and code >= 500):
            return True, _retry_after_seconds(response), f"http_{code}"
        return False, None, f"http_{code}" if code is not None else "http_status"

    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True, None, "network_error"

    return False, None, type(exc).__name__
