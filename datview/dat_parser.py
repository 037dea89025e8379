from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Iterator, Mapping, Sequence

DEFAULT_DELIMITER = "<>"

_ID_MARKER = " ID:"
_ID_PREFIX = "ID:"
_ID_TOKEN_RE = re.compile(r"[A-Za-z0-9_-]*")

_MIN_SEGMENTS = 4
_MAX_SEGMENTS = 5
_EXCERPT_CHARS = 80


@dataclass(frozen=True)
class DateIdSplit:
    date: str
    id_info: str


@dataclass(frozen=True)
class ParsedPost:
    """One valid dat line; the order of these records is the thread order."""

    author: str
    mail: str
    date: str
    id_info: str
    user_id: str | None
    body: str


@dataclass(frozen=True)
class ParseDiagnostic:
    line_no: int
    reason: str
    excerpt: str


@dataclass(frozen=True)
class ParseResult:
    posts: tuple[ParsedPost, ...]
    tally: Mapping[str, int] = field(default_factory=dict)
    diagnostics: tuple[ParseDiagnostic, ...] = ()


SplitStrategy = Callable[[str], DateIdSplit | None]


def split_on_id_marker(segment: str) -> DateIdSplit | None:
    pos = segment.rfind(_ID_MARKER)
    if pos < 0:
        return None
    return DateIdSplit(date=segment[:pos].strip(), id_info=segment[pos:].strip())


def split_on_last_space(segment: str) -> DateIdSplit | None:
    """
    Older boards wrote the ID without a marker after the timestamp.

    The left side of the last space only counts as a date when it looks like
    one: at least two '/' and one ':'.
    """
    s = segment.strip()
    pos = s.rfind(" ")
    if pos < 0:
        return None

    candidate = s[:pos].strip()
    if candidate.count("/") < 2 or candidate.count(":") < 1:
        return None
    return DateIdSplit(date=candidate, id_info=s[pos + 1 :].strip())


DEFAULT_STRATEGIES: tuple[SplitStrategy, ...] = (split_on_id_marker,)
LEGACY_STRATEGIES: tuple[SplitStrategy, ...] = (split_on_id_marker, split_on_last_space)


def split_date_and_id(
    segment: str,
    strategies: Sequence[SplitStrategy] = DEFAULT_STRATEGIES,
) -> DateIdSplit:
    for strategy in strategies:
        result = strategy(segment)
        if result is not None:
            return result
    return DateIdSplit(date=segment.strip(), id_info="")


def extract_id_token(id_info: str) -> str | None:
    """
    Pull the poster ID out of a display string such as ``ID:R780OCsAQ主``.

    The token is the run of ASCII letters, digits, '-' and '_' right after the
    first ``ID:``; an empty run means there is no token.
    """
    pos = id_info.find(_ID_PREFIX)
    if pos < 0:
        return None
    m = _ID_TOKEN_RE.match(id_info, pos + len(_ID_PREFIX))
    token = m.group(0) if m else ""
    return token or None


def _iter_lines(text: str) -> Iterator[tuple[int, str]]:
    # str.splitlines() would also break on \x1c and \u2028 inside bodies.
    for line_no, line in enumerate(text.split("\n"), start=1):
        yield line_no, line[:-1] if line.endswith("\r") else line


def _excerpt(line: str) -> str:
    s = line.strip()
    if len(s) <= _EXCERPT_CHARS:
        return s
    return s[: _EXCERPT_CHARS - 1] + "…"


def parse_dat(
    text: str,
    *,
    delimiter: str = DEFAULT_DELIMITER,
    strategies: Sequence[SplitStrategy] = DEFAULT_STRATEGIES,
) -> ParseResult:
    """
    Parse a whole dat dump in one forward pass.

    Returns the valid posts in file order, the per-ID totals gathered along the
    way, and one diagnostic per malformed line. Malformed lines never raise.
    """
    if not delimiter:
        raise ValueError("delimiter must be non-empty")

    posts: list[ParsedPost] = []
    tally: Counter[str] = Counter()
    diagnostics: list[ParseDiagnostic] = []

    for line_no, line in _iter_lines(text or ""):
        if not line.strip():
            continue

        parts = line.split(delimiter, _MAX_SEGMENTS - 1)
        if len(parts) < _MIN_SEGMENTS:
            diagnostics.append(
                ParseDiagnostic(
                    line_no=line_no,
                    reason=f"expected at least {_MIN_SEGMENTS} fields, got {len(parts)}",
                    excerpt=_excerpt(line),
                )
            )
            continue

        author, mail, date_and_id, body = parts[0], parts[1], parts[2], parts[3]
        split = split_date_and_id(date_and_id, strategies)
        user_id = extract_id_token(split.id_info)
        if user_id is not None:
            tally[user_id] += 1

        posts.append(
            ParsedPost(
                author=author,
                mail=mail,
                date=split.date,
                id_info=split.id_info,
                user_id=user_id,
                body=body,
            )
        )

    return ParseResult(
        posts=tuple(posts),
        tally=dict(tally),
        diagnostics=tuple(diagnostics),
    )
