from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Sequence

from .analytics import IdCount, count_id_occurrences
from .config_schema import ParsingConfig
from .dat_parser import (
    DEFAULT_STRATEGIES,
    LEGACY_STRATEGIES,
    ParseDiagnostic,
    ParsedPost,
    SplitStrategy,
    parse_dat,
)


@dataclass(frozen=True)
class ResponseRecord:
    """A display-ready post, in the shape the viewer consumes."""

    id: str
    author: str
    mail: str
    created_at: str
    user_id_info: str
    content: str
    parsed_user_id: str | None
    id_occurrence_count: int
    id_total_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ThreadResponses:
    records: tuple[ResponseRecord, ...]
    diagnostics: tuple[ParseDiagnostic, ...]


def assemble_responses(
    posts: Sequence[ParsedPost],
    counts: Sequence[IdCount],
) -> list[ResponseRecord]:
    if len(posts) != len(counts):
        raise ValueError(
            f"posts and counts must have the same length ({len(posts)} != {len(counts)})"
        )

    return [
        ResponseRecord(
            id=str(index + 1),
            author=post.author,
            mail=post.mail,
            created_at=post.date,
            user_id_info=post.id_info,
            content=post.body,
            parsed_user_id=post.user_id,
            id_occurrence_count=count.occurrence,
            id_total_count=count.total,
        )
        for index, (post, count) in enumerate(zip(posts, counts))
    ]


def strategies_for(parsing: ParsingConfig) -> tuple[SplitStrategy, ...]:
    return LEGACY_STRATEGIES if parsing.legacy_space_split else DEFAULT_STRATEGIES


def build_responses(text: str, *, parsing: ParsingConfig | None = None) -> ThreadResponses:
    """Parse a dat dump, count IDs, and assemble the final records."""
    cfg = parsing or ParsingConfig()
    parsed = parse_dat(text, delimiter=cfg.delimiter, strategies=strategies_for(cfg))
    counts = count_id_occurrences(parsed.posts, parsed.tally)
    return ThreadResponses(
        records=tuple(assemble_responses(parsed.posts, counts)),
        diagnostics=parsed.diagnostics,
    )
