"""
Datetime field type.

Stored as a naive `datetime`: UTC wall time when the `utc` option is set,
local wall time otherwise. Besides a single value, input may arrive split
across `<path>_date`, `<path>_time` and `<path>_tz_offset`.
"""

import re
from collections.abc import Mapping, Sequence
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from sqlalchemy import Column, DateTime
from sqlalchemy.sql.elements import ColumnElement

from content_model.fields.base import MISSING, is_empty
from content_model.fields.types.date import DateField, as_format_list

DEFAULT_PARSE_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %I:%M:%S %p",
    "%Y-%m-%d %I:%M %p",
    "%Y-%m-%d %I:%M%p",
    "%Y-%m-%d",
]

_OFFSET = re.compile(r"^(?P<sign>[+-])(?P<hours>\d{1,2}):?(?P<minutes>\d{2})?$")


def parse_tz_offset(value: Any) -> timezone | None:
    """Parse "+02:00", "-0530", "Z" or a number of minutes east of UTC."""
    if is_empty(value):
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return timezone(timedelta(minutes=value))
    text = str(value).strip()
    if text.upper() == "Z":
        return timezone.utc
    match = _OFFSET.match(text)
    if not match:
        raise ValueError(f"invalid timezone offset {value!r}")
    delta = timedelta(hours=int(match["hours"]), minutes=int(match["minutes"] or 0))
    return timezone(-delta if match["sign"] == "-" else delta)


class DatetimeField(DateField):
    """Date and time of day."""

    type_name = "datetime"
    proper_name = "Datetime"
    native_type = DateTime
    fixed_size = "full"
    default_options = {
        "format": "%Y-%m-%d %I:%M:%S %p",
        "parse_format": DEFAULT_PARSE_FORMATS,
        "utc": False,
        "today_button": True,
    }
    properties = ("format_string", "parse_formats", "is_utc", "today_button", "paths")

    def configure(self) -> None:
        super().configure()
        self.parse_formats = as_format_list(self.options.get("parse_format")) or list(DEFAULT_PARSE_FORMATS)
        self.paths = {
            "date": f"{self.path}_date",
            "time": f"{self.path}_time",
            "tz_offset": f"{self.path}_tz_offset",
        }

    def get_value_from_data(self, data: Mapping[str, Any] | None, subpath: str | None = None) -> Any:
        value = super().get_value_from_data(data, subpath)
        if subpath is not None or value is not MISSING:
            return value
        date_part = super().get_value_from_data(data, "date")
        if date_part is MISSING:
            return MISSING
        return {
            "date": date_part,
            "time": super().get_value_from_data(data, "time"),
            "tz_offset": super().get_value_from_data(data, "tz_offset"),
        }

    def normalize(self, value: datetime) -> datetime:
        """Convert an aware datetime to the naive form this field stores."""
        if value.tzinfo is None:
            return value
        if self.is_utc:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value.astimezone().replace(tzinfo=None)

    def parse(self, value: Any, formats: str | Sequence[str] | None = None, strict: bool = True) -> Any:
        formats = as_format_list(formats) if formats is not None else self.parse_formats
        tz = None
        if isinstance(value, Mapping):
            date_part, time_part = value.get("date"), value.get("time")
            if is_empty(date_part):
                return None
            tz = parse_tz_offset(value.get("tz_offset"))
            if isinstance(date_part, date):
                date_part = date_part.isoformat()
            value = f"{date_part} {time_part}" if not is_empty(time_part) else str(date_part)

        if is_empty(value):
            return None
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, date):
            parsed = datetime.combine(value, time.min)
        elif isinstance(value, str):
            parsed = self._parse_string(value.strip(), formats, strict)
        else:
            raise ValueError(f"cannot parse {type(value).__name__} as a datetime")

        if tz is not None and parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=tz)
        return self.normalize(parsed)

    @staticmethod
    def _parse_string(text: str, formats: Sequence[str], strict: bool) -> datetime:
        for fmt in formats:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue
        if not strict:
            return datetime.fromisoformat(text)
        raise ValueError(f"{text!r} does not match {list(formats)}")

    def invalid_message(self) -> str:
        return f"{self.label} must be a valid date and time"

    def as_datetime(self, record: Mapping[str, Any] | None) -> datetime | None:
        """The stored value as a datetime, or None when unset or unreadable."""
        try:
            return self.parse(self.get_data(record), strict=False)
        except (TypeError, ValueError):
            return None

    def format_value(self, value: Any, *args: Any, **kwargs: Any) -> str:
        value = self.parse(value, strict=False)
        if value is None:
            return ""
        fmt = args[0] if args else kwargs.get("format", self.format_string)
        if fmt is False or not fmt:
            return value.isoformat()
        return value.strftime(fmt)

    def on_day(self, column: Column, day: date) -> ColumnElement:
        return column.between(datetime.combine(day, time.min), datetime.combine(day, time.max))

    def after_day(self, column: Column, day: date) -> ColumnElement:
        return column > datetime.combine(day, time.max)

    def before_day(self, column: Column, day: date) -> ColumnElement:
        return column < datetime.combine(day, time.min)

    def between_days(self, column: Column, start: date, end: date) -> ColumnElement:
        return column.between(datetime.combine(start, time.min), datetime.combine(end, time.max))
