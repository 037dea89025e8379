from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

from .dat_parser import ParsedPost


@dataclass(frozen=True)
class IdCount:
    occurrence: int = 0
    total: int = 0


_NO_ID = IdCount()


def count_id_occurrences(
    posts: Sequence[ParsedPost],
    tally: Mapping[str, int],
) -> list[IdCount]:
    """
    Second pass over the parsed posts, in thread order.

    Each post carrying an ID gets its 1-based rank among that ID's posts plus
    the thread-wide total from ``tally``, which must come from a completed
    first pass. Posts without an ID get zeros.
    """
    running: dict[str, int] = {}
    out: list[IdCount] = []

    for post in posts:
        uid = post.user_id
        if uid is None:
            out.append(_NO_ID)
            continue

        running[uid] = running.get(uid, 0) + 1
        out.append(IdCount(occurrence=running[uid], total=int(tally.get(uid, 0))))

    return out
