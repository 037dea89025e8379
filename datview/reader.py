from __future__ import annotations

from typing import Any, Protocol

from .assemble import ResponseRecord, build_responses
from .config_schema import AppConfig
from .run_log import RunLogger
from .thread_list import ThreadSummary, normalize_thread_list


class ThreadSource(Protocol):
    def list_url(self) -> str: ...

    def dat_url(self, thread_id: str) -> str: ...

    def fetch_json(self, url: str) -> Any: ...

    def fetch_text(self, url: str) -> str: ...


def fetch_threads(
    config: AppConfig,
    *,
    source: ThreadSource,
    logger: RunLogger | None = None,
) -> list[ThreadSummary]:
    url = source.list_url()
    if logger is not None:
        logger.info("threads_fetch_started", url=url)

    payload = source.fetch_json(url)
    threads = normalize_thread_list(payload, display=config.display)

    if logger is not None:
        logger.info("threads_fetch_completed", url=url, count=len(threads))
    return threads


def fetch_thread_content(
    thread_id: str,
    config: AppConfig,
    *,
    source: ThreadSource,
    logger: RunLogger | None = None,
) -> list[ResponseRecord]:
    """
    Fetch one thread's dat file and return its annotated responses.

    The id is validated by ``source.dat_url`` before any request is made.
    Malformed lines are skipped and logged, never raised.
    """
    url = source.dat_url(thread_id)
    if logger is not None:
        logger.info("thread_fetch_started", url=url, thread_id=thread_id)

    text = source.fetch_text(url)
    result = build_responses(text, parsing=config.parsing)

    if logger is not None:
        for diag in result.diagnostics:
            logger.warning(
                "dat_line_skipped",
                url=url,
                thread_id=thread_id,
                line_no=diag.line_no,
                reason=diag.reason,
                excerpt=diag.excerpt,
            )
        logger.info(
            "thread_fetch_completed",
            url=url,
            thread_id=thread_id,
            responses=len(result.records),
            skipped_lines=len(result.diagnostics),
        )

    return list(result.records)
