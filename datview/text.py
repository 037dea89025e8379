from __future__ import annotations

import re
from datetime import datetime, timezone
from functools import lru_cache
from html.entities import html5
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Asia/Tokyo"
DEFAULT_DATE_FORMAT = "%Y/%m/%d %H:%M"
UNAVAILABLE_MARKER = "日付不明"

_CHAR_REF_RE = re.compile(r"&(?:#[xX]([0-9A-Fa-f]+)|#([0-9]+)|([A-Za-z][A-Za-z0-9]*));")
_MAX_CODE_POINT = 0x10FFFF


@lru_cache(maxsize=16)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def decode_entities(text: str) -> str:
    """
    Decode well-formed named and numeric HTML character references.

    Anything else is left untouched: unknown names (``&bogus;``), references
    without the closing ``;`` (``&copy2024``), and numeric references that do
    not name a usable code point (``&#0;``, ``&#x110000;``, surrogates).
    """
    if not text or "&" not in text:
        return text
    return _CHAR_REF_RE.sub(_replace_char_ref, text)


def _replace_char_ref(m: re.Match[str]) -> str:
    hex_digits, dec_digits, name = m.groups()
    if name is not None:
        return html5.get(f"{name};", m.group(0))

    digits = hex_digits if hex_digits is not None else dec_digits
    stripped = digits.lstrip("0")
    # More than 8 significant digits is always out of range.
    if not stripped or len(stripped) > 8:
        return m.group(0)
    cp = int(stripped, 16 if hex_digits is not None else 10)
    if cp > _MAX_CODE_POINT or 0xD800 <= cp <= 0xDFFF:
        return m.group(0)
    return chr(cp)


def format_timestamp(
    seconds: int,
    *,
    tz: str = DEFAULT_TIMEZONE,
    fmt: str = DEFAULT_DATE_FORMAT,
    unavailable: str = UNAVAILABLE_MARKER,
) -> str:
    """
    Render Unix epoch seconds (UTC) as local time in ``tz``.

    Returns ``unavailable`` when the value is not a representable instant.
    """
    if isinstance(seconds, bool) or not isinstance(seconds, int):
        return unavailable

    try:
        utc = datetime.fromtimestamp(seconds, tz=timezone.utc)
        return utc.astimezone(_zone(tz)).strftime(fmt)
    except (OverflowError, OSError, ValueError):
        return unavailable
