"""Date helpers.

Layouts follow Go's reference time, ``Mon Jan 2 15:04:05 MST 2006``: the
layout ``January 2, 2006`` prints ``March 7, 2024``. Layouts containing ``%``
are handed to ``strftime``/``strptime`` instead.
"""
from __future__ import annotations

import calendar
import datetime as dt
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

_MONTHS = list(calendar.month_name)[1:]
_MONTH_ABBRS = [name[:3] for name in _MONTHS]
_DAYS = list(calendar.day_name)
_DAY_ABBRS = [name[:3] for name in _DAYS]

COMMON_LAYOUTS = [
    "2006-01-02T15:04:05Z07:00",
    "2006-01-02T15:04:05",
    "2006-01-02 15:04:05",
    "2006-01-02",
    "2006/01/02",
    "01/02/2006",
    "January 2, 2006",
    "Jan 2, 2006",
    "2 January 2006",
    "02 Jan 2006",
]


def _offset(value: dt.datetime, colon: bool, zulu: bool = False, hours_only: bool = False) -> str:
    delta = value.utcoffset() if isinstance(value, dt.datetime) else None
    if delta is None:
        delta = dt.timedelta(0)
    if zulu and delta == dt.timedelta(0):
        return "Z"
    minutes = int(delta.total_seconds() // 60)
    sign = "-" if minutes < 0 else "+"
    hours, minutes = divmod(abs(minutes), 60)
    if hours_only:
        return f"{sign}{hours:02d}"
    return f"{sign}{hours:02d}{':' if colon else ''}{minutes:02d}"


def _hour12(value: dt.date) -> int:
    hour = getattr(value, "hour", 0) % 12
    return 12 if hour == 0 else hour


def _fraction(digits: int, trim: bool) -> Callable[[dt.date], str]:
    def render(value: dt.date) -> str:
        micro = f"{getattr(value, 'microsecond', 0):06d}000"[:digits]
        if trim:
            micro = micro.rstrip("0")
            return "." + micro if micro else ""
        return "." + micro

    return render


# token, formatter, parse pattern, parsed field
_TOKENS: List[Tuple[str, Callable[[Any], str], str, str]] = [
    ("January", lambda v: _MONTHS[v.month - 1], "(" + "|".join(_MONTHS) + ")", "month_name"),
    ("Jan", lambda v: _MONTH_ABBRS[v.month - 1], "(" + "|".join(_MONTH_ABBRS) + ")", "month_abbr"),
    ("Monday", lambda v: _DAYS[v.weekday()], "(" + "|".join(_DAYS) + ")", ""),
    ("Mon", lambda v: _DAY_ABBRS[v.weekday()], "(" + "|".join(_DAY_ABBRS) + ")", ""),
    ("MST", lambda v: (v.tzname() if isinstance(v, dt.datetime) else None) or "UTC", r"([A-Z]{3,5})", ""),
    ("2006", lambda v: f"{v.year:04d}", r"(\d{4})", "year"),
    ("002", lambda v: f"{v.timetuple().tm_yday:03d}", r"(\d{3})", "yday"),
    ("01", lambda v: f"{v.month:02d}", r"(\d{2})", "month"),
    ("02", lambda v: f"{v.day:02d}", r"(\d{2})", "day"),
    ("03", lambda v: f"{_hour12(v):02d}", r"(\d{2})", "hour12"),
    ("04", lambda v: f"{getattr(v, 'minute', 0):02d}", r"(\d{2})", "minute"),
    ("05", lambda v: f"{getattr(v, 'second', 0):02d}", r"(\d{2})", "second"),
    ("06", lambda v: f"{v.year % 100:02d}", r"(\d{2})", "year2"),
    ("15", lambda v: f"{getattr(v, 'hour', 0):02d}", r"(\d{2})", "hour"),
    ("_2", lambda v: f"{v.day:2d}", r" ?(\d{1,2})", "day"),
    ("1", lambda v: str(v.month), r"(\d{1,2})", "month"),
    ("2", lambda v: str(v.day), r"(\d{1,2})", "day"),
    ("3", lambda v: str(_hour12(v)), r"(\d{1,2})", "hour12"),
    ("4", lambda v: str(getattr(v, "minute", 0)), r"(\d{1,2})", "minute"),
    ("5", lambda v: str(getattr(v, "second", 0)), r"(\d{1,2})", "second"),
    ("PM", lambda v: "PM" if getattr(v, "hour", 0) >= 12 else "AM", r"(AM|PM)", "ampm"),
    ("pm", lambda v: "pm" if getattr(v, "hour", 0) >= 12 else "am", r"(am|pm)", "ampm"),
    ("Z07:00", lambda v: _offset(v, colon=True, zulu=True), r"(Z|[+-]\d{2}:\d{2})", "offset"),
    ("-07:00", lambda v: _offset(v, colon=True), r"([+-]\d{2}:\d{2})", "offset"),
    ("-0700", lambda v: _offset(v, colon=False), r"([+-]\d{4})", "offset"),
    ("-07", lambda v: _offset(v, colon=False, hours_only=True), r"([+-]\d{2})", "offset"),
    (".000000000", _fraction(9, False), r"(\.\d+)", "fraction"),
    (".000000", _fraction(6, False), r"(\.\d+)", "fraction"),
    (".000", _fraction(3, False), r"(\.\d+)", "fraction"),
    (".999999999", _fraction(9, True), r"(\.\d+)?", "fraction"),
    (".999999", _fraction(6, True), r"(\.\d+)?", "fraction"),
    (".999", _fraction(3, True), r"(\.\d+)?", "fraction"),
]


def _chunks(layout: str) -> List[Tuple[str, Optional[Tuple]]]:
    """Split a Go layout into literal text and reference-time tokens."""
    chunks: List[Tuple[str, Optional[Tuple]]] = []
    literal = ""
    index = 0
    while index < len(layout):
        for token in _TOKENS:
            if layout.startswith(token[0], index):
                if literal:
                    chunks.append((literal, None))
                    literal = ""
                chunks.append((token[0], token))
                index += len(token[0])
                break
        else:
            literal += layout[index]
            index += 1
    if literal:
        chunks.append((literal, None))
    return chunks


def go_format(value: dt.date, layout: str) -> str:
    if "%" in layout:
        return value.strftime(layout)
    return "".join(text if token is None else token[1](value) for text, token in _chunks(layout))


def _parse_offset(text: str) -> dt.timezone:
    if text == "Z":
        return dt.timezone.utc
    sign = -1 if text[0] == "-" else 1
    digits = text[1:].replace(":", "")
    hours = int(digits[:2])
    minutes = int(digits[2:4] or 0)
    return dt.timezone(sign * dt.timedelta(hours=hours, minutes=minutes))


def go_parse(text: str, layout: str) -> dt.datetime:
    """Parse ``text`` against a Go or strftime layout; raises ``ValueError``."""
    if "%" in layout:
        return dt.datetime.strptime(text, layout)
    pattern = ""
    fields: List[str] = []
    for chunk, token in _chunks(layout):
        if token is None:
            pattern += re.escape(chunk)
        else:
            pattern += token[2]
            fields.append(token[3])
    match = re.fullmatch(pattern, text.strip())
    if match is None:
        raise ValueError(f"cannot parse {text!r} as {layout!r}")

    parts: Dict[str, Any] = {"year": 1, "month": 1, "day": 1, "hour": 0, "minute": 0, "second": 0}
    micro = 0
    tzinfo = None
    pm: Optional[bool] = None
    yday: Optional[int] = None
    for field, raw in zip(fields, match.groups()):
        if not field or raw is None:
            continue
        if field == "month_name":
            parts["month"] = _MONTHS.index(raw) + 1
        elif field == "month_abbr":
            parts["month"] = _MONTH_ABBRS.index(raw) + 1
        elif field == "year2":
            year = int(raw)
            parts["year"] = year + (1900 if year >= 69 else 2000)
        elif field == "hour12":
            parts["hour"] = int(raw) % 12
        elif field == "ampm":
            pm = raw.lower() == "pm"
        elif field == "offset":
            tzinfo = _parse_offset(raw)
        elif field == "fraction":
            micro = int((raw[1:] + "000000")[:6])
        elif field == "yday":
            yday = int(raw)
        else:
            parts[field] = int(raw)
    if pm is not None and pm and parts["hour"] < 12:
        parts["hour"] += 12
    result = dt.datetime(microsecond=micro, tzinfo=tzinfo, **parts)
    if yday is not None:
        result = result.replace(month=1, day=1) + dt.timedelta(days=yday - 1)
    return result


def coerce_date(value: Any) -> Optional[dt.date]:
    """Return ``value`` as a date/datetime, parsing strings with common layouts."""
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        return dt.datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    for layout in COMMON_LAYOUTS:
        try:
            return go_parse(text, layout)
        except ValueError:
            continue
    return None


def now() -> dt.datetime:
    return dt.datetime.now()


def format_date(value: Any, layout: str = "2006-01-02") -> str:
    """Format a date, or a string holding one; unparseable strings come back unchanged."""
    if value is None:
        return ""
    date = coerce_date(value)
    if date is None:
        return value if isinstance(value, str) else str(value)
    return go_format(date, layout)


def parse_date(text: Any, layout: str = "2006-01-02") -> dt.datetime:
    return go_parse(str(text), layout)


def _require_date(value: Any) -> dt.date:
    date = coerce_date(value)
    if date is None:
        raise ValueError(f"not a date: {value!r}")
    return date


def _shift_months(value: dt.date, months: int) -> dt.date:
    # Overflowing days roll into the next month: Jan 31 + 1 month is Mar 2 or 3.
    years, month_index = divmod(value.month - 1 + months, 12)
    first = value.replace(year=value.year + years, month=month_index + 1, day=1)
    return first + dt.timedelta(days=value.day - 1)


def add_days(value: Any, days: int) -> dt.date:
    return _require_date(value) + dt.timedelta(days=int(days))


def add_months(value: Any, months: int) -> dt.date:
    return _shift_months(_require_date(value), int(months))


def add_years(value: Any, years: int) -> dt.date:
    return _shift_months(_require_date(value), 12 * int(years))


FUNCTIONS = {
    "now": now,
    "formatDate": format_date,
    "parseDate": parse_date,
    "addDays": add_days,
    "addMonths": add_months,
    "addYears": add_years,
}
