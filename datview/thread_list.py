from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Annotated, Any, Sequence

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from .config_schema import DisplayConfig
from .errors import SchemaError
from .text import decode_entities, format_timestamp


def coerce_thread_id(value: Any) -> str:
    """
    Decode a wire thread identifier that may arrive as a JSON string or number.

    Strings are kept verbatim; integral numbers are rendered in decimal.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        raise ValueError("thread id must be a string or number, got boolean")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError("thread id must be a finite number")
        if value.is_integer():
            return str(int(value))
        return repr(value)
    raise ValueError(f"thread id must be a string or number, got {type(value).__name__}")


class RawThreadDescriptor(BaseModel):
    """One element of the subject.json array as sent by the board."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    thread: str
    title: StrictStr
    number: Annotated[StrictInt, Field(ge=0)]
    date: StrictInt

    @field_validator("thread", mode="before")
    @classmethod
    def _thread_to_string(cls, v: Any) -> str:
        return coerce_thread_id(v)


@dataclass(frozen=True)
class ThreadSummary:
    id: str
    title: str
    response_count: int
    created_at: str
    date: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def summarize_thread(item: RawThreadDescriptor, *, display: DisplayConfig) -> ThreadSummary:
    return ThreadSummary(
        id=item.thread,
        title=decode_entities(item.title),
        response_count=item.number,
        created_at=format_timestamp(
            item.date,
            tz=display.timezone,
            fmt=display.date_format,
            unavailable=display.unavailable_marker,
        ),
        date=item.date,
    )


def normalize_thread_list(
    payload: Any,
    *,
    display: DisplayConfig | None = None,
) -> list[ThreadSummary]:
    """
    Validate a decoded subject.json document and convert it to summaries.

    Order is preserved. Any invalid element aborts the whole list with
    SchemaError; partial results are never returned.
    """
    disp = display or DisplayConfig()

    if not isinstance(payload, Sequence) or isinstance(payload, (str, bytes)):
        raise SchemaError(
            f"Thread list must be a JSON array, got {type(payload).__name__}"
        )

    out: list[ThreadSummary] = []
    for index, raw in enumerate(payload):
        try:
            item = RawThreadDescriptor.model_validate(raw)
        except ValidationError as e:
            raise SchemaError(_format_item_errors(index, e)) from e
        out.append(summarize_thread(item, display=disp))
    return out


def _format_item_errors(index: int, err: ValidationError) -> str:
    parts: list[str] = []
    for item in err.errors():
        loc = ".".join(str(part) for part in item.get("loc", [])) or "<item>"
        msg = item.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}")
    return f"Invalid thread list item at index {index}: " + "; ".join(parts)
