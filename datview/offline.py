from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Mapping

from .errors import FetchError
from .http_client import dat_path

OFFLINE_BASE_URL = "offline://board"

_DEFAULT_SUBJECTS: list[dict[str, Any]] = [
    {
        "thread": 1700000000,
        "title": "Offline &amp; test thread",
        "number": 4,
        "date": 1700000000,
    },
    {
        "thread": "1700000100",
        "title": "&lt;Second&gt; thread",
        "number": 1,
        "date": 1700000100,
    },
]

_DEFAULT_DATS: dict[str, str] = {
    "1700000000": (
        "Alice<>sage<>2023/11/15(水) 07:13:20 ID:abc123<>First post<>Offline &amp; test thread\n"
        "Bob<><>2023/11/15(水) 07:14:02 ID:zzz999<>Second post\n"
        "broken line<>with only two fields\n"
        "Alice<>sage<>2023/11/15(水) 07:15:45 ID:abc123<>Third post\n"
    ),
    "1700000100": "Carol<><>2023/11/15(水) 07:15:00<>No id here<>&lt;Second&gt; thread\n",
}


@dataclass
class OfflineThreadSource:
    """
    Network-free stand-in for ThreadSourceClient.

    Serves a tiny fixed subject list and dat files so the CLI can be exercised
    without a board.
    """

    subjects: list[dict[str, Any]] = field(
        default_factory=lambda: copy.deepcopy(_DEFAULT_SUBJECTS)
    )
    dats: Mapping[str, str] = field(default_factory=lambda: dict(_DEFAULT_DATS))

    def list_url(self) -> str:
        return f"{OFFLINE_BASE_URL}/subject.json"

    def dat_url(self, thread_id: str) -> str:
        return f"{OFFLINE_BASE_URL}/{dat_path(thread_id)}"

    def fetch_json(self, url: str) -> Any:
        if url != self.list_url():
            raise FetchError(f"HTTP error: 404 Not Found (URL: {url})")
        return copy.deepcopy(self.subjects)

    def fetch_text(self, url: str) -> str:
        for thread_id, text in self.dats.items():
            if url == self.dat_url(thread_id):
                return text
        raise FetchError(f"HTTP error: 404 Not Found (URL: {url})")
