from __future__ import annotations

from .assemble import ResponseRecord, build_responses
from .config import load_config
from .config_schema import AppConfig
from .errors import ConfigError, FetchError, SchemaError
from .reader import fetch_thread_content, fetch_threads
from .thread_list import ThreadSummary, normalize_thread_list

__all__ = [
    "AppConfig",
    "ConfigError",
    "FetchError",
    "ResponseRecord",
    "SchemaError",
    "ThreadSummary",
    "build_responses",
    "fetch_thread_content",
    "fetch_threads",
    "load_config",
    "normalize_thread_list",
]
