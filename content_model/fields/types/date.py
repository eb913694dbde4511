"""
Date field type.

Values are stored as `datetime.date`. Input strings are parsed with the
configured `input_format` (a strftime pattern or a list of them), falling
back to ISO 8601 unless parsing is strict.
"""

from collections.abc import Mapping, Sequence
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import Column, Date
from sqlalchemy.sql.elements import ColumnElement

from content_model.fields.base import MISSING, Field, ValidationOutcome, invert, is_empty
from content_model.schemas.filters import DateFilter

DATE_MODES = ("on", "after", "before", "between")
DEFAULT_DATE_MODE = "on"


def as_format_list(formats: str | Sequence[str] | None) -> list[str]:
    if not formats:
        return []
    if isinstance(formats, str):
        return [formats]
    return list(formats)


def parse_date_value(value: Any, formats: Sequence[str] = (), strict: bool = False) -> date | None:
    """Parse a date; None for empty input, ValueError when unparseable."""
    if is_empty(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"cannot parse {type(value).__name__} as a date")
    text = value.strip()
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    if not strict:
        try:
            return date.fromisoformat(text)
        except ValueError:
            return datetime.fromisoformat(text).date()
    raise ValueError(f"{value!r} does not match {list(formats)}")


class DateField(Field):
    """Calendar date."""

    type_name = "date"
    proper_name = "Date"
    native_type = Date
    fixed_size = "medium"
    filter_model = DateFilter
    default_options = {"format": "%d %b %Y", "input_format": "%Y-%m-%d", "year_range": None, "today_button": True}
    properties = ("format_string", "input_format", "year_range", "today_button", "is_utc")

    def configure(self) -> None:
        self.format_string = self.options.get("format")
        self.input_format = self.options.get("input_format")
        self.parse_formats = as_format_list(self.input_format)
        self.year_range = self.options.get("year_range")
        self.today_button = bool(self.options.get("today_button", True))
        self.is_utc = bool(self.options.get("utc", False))

    def parse(self, value: Any, formats: str | Sequence[str] | None = None, strict: bool = True) -> Any:
        formats = as_format_list(formats) if formats is not None else self.parse_formats
        return parse_date_value(value, formats, strict)

    def invalid_message(self) -> str:
        return f"{self.label} must be a valid date"

    def check_input(self, data: Mapping[str, Any] | None) -> ValidationOutcome:
        value = self.get_value_from_data(data)
        if value is MISSING:
            return ValidationOutcome.ok()
        try:
            self.parse(value, strict=False)
        except (TypeError, ValueError):
            return ValidationOutcome.fail(self.invalid_message())
        return ValidationOutcome.ok()

    def coerce(self, value: Any) -> Any:
        try:
            return self.parse(value, strict=False)
        except (TypeError, ValueError) as exc:
            raise self.update_error(self.invalid_message()) from exc

    def as_date(self, record: Mapping[str, Any] | None) -> date | None:
        """The stored value as a date, or None when unset or unreadable."""
        try:
            return parse_date_value(self.get_data(record))
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

    # Day-granularity predicates; datetime overrides them with day bounds
    def on_day(self, column: Column, day: date) -> ColumnElement:
        return column == day

    def after_day(self, column: Column, day: date) -> ColumnElement:
        return column > day

    def before_day(self, column: Column, day: date) -> ColumnElement:
        return column < day

    def between_days(self, column: Column, start: date, end: date) -> ColumnElement:
        return column.between(start, end)

    def add_filter_to_query(self, filter: Any) -> ColumnElement | None:
        date_filter = self.parse_filter(filter)
        if date_filter is None:
            return None
        column = self.column
        mode = date_filter.mode if date_filter.mode in DATE_MODES else DEFAULT_DATE_MODE

        try:
            if mode == "between":
                start = parse_date_value(date_filter.after, self.parse_formats)
                end = parse_date_value(date_filter.before, self.parse_formats)
                if start is None or end is None:
                    return None
                predicate = self.between_days(column, start, end)
            else:
                day = parse_date_value(date_filter.value, self.parse_formats)
                if day is None:
                    return None
                if mode == "after":
                    predicate = self.after_day(column, day)
                elif mode == "before":
                    predicate = self.before_day(column, day)
                else:
                    predicate = self.on_day(column, day)
        except (TypeError, ValueError):
            return None

        if date_filter.inverted:
            return invert(predicate, column)
        return predicate


def utc_now() -> datetime:
    """Current time as naive UTC, the stored form of tracked timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
