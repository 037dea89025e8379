from __future__ import annotations

from typing import Annotated
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

PositiveInt = Annotated[int, Field(ge=1)]
PositiveFloat = Annotated[float, Field(gt=0)]


class SourceConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: str = "https://tulipplantation.com/tulipplantation"
    list_path: str = "subject.json"
    thread_dir: str = "thread"
    dat_suffix: str = ".dat"
    timeout_secs: PositiveFloat = 10.0
    encoding: str | None = None
    user_agent: str | None = None
    max_attempts: PositiveInt = 1

    @field_validator("base_url")
    @classmethod
    def _base_url_must_be_http(cls, v: str) -> str:
        url = (v or "").strip().rstrip("/")
        if not url.startswith(("http://", "https://")):
            raise ValueError("must be an http(s) URL")
        return url

    @field_validator("list_path", "thread_dir")
    @classmethod
    def _strip_slashes(cls, v: str) -> str:
        path = (v or "").strip().strip("/")
        if not path:
            raise ValueError("must be non-empty")
        return path

    @field_validator("encoding", "user_agent")
    @classmethod
    def _blank_is_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        s = v.strip()
        return s or None


class DisplayConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    timezone: str = "Asia/Tokyo"
    date_format: str = "%Y/%m/%d %H:%M"
    unavailable_marker: str = "日付不明"

    @field_validator("timezone")
    @classmethod
    def _timezone_must_exist(cls, v: str) -> str:
        name = (v or "").strip()
        try:
            ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone: {name!r}") from e
        return name


class ParsingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    delimiter: str = Field("<>", min_length=1)
    legacy_space_split: bool = False


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    source: SourceConfig = Field(default_factory=SourceConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    parsing: ParsingConfig = Field(default_factory=ParsingConfig)
