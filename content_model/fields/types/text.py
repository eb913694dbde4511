"""
Text field type and the text-matching predicates shared by text-like types.
"""

from collections.abc import Mapping
from typing import Any

from sqlalchemy import Column, String, and_, func, or_
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.types import TypeEngine

from content_model.fields.base import MISSING, Field, ValidationOutcome, invert, is_empty
from content_model.schemas.filters import TextFilter

TEXT_MODES = ("exactly", "begins_with", "ends_with", "contains")
DEFAULT_TEXT_MODE = "contains"


def text_predicate(column: Column, text_filter: TextFilter) -> ColumnElement | None:
    """
    Build the predicate for a text filter on one column.

    An empty value only means something in `exactly` mode, where it matches
    empty or null values.
    """
    mode = text_filter.mode if text_filter.mode in TEXT_MODES else DEFAULT_TEXT_MODE
    value = text_filter.value

    if not value:
        if mode != "exactly":
            return None
        if text_filter.inverted:
            return and_(column.is_not(None), column != "")
        return or_(column.is_(None), column == "")

    if text_filter.case_sensitive:
        if mode == "exactly":
            predicate = column == value
        elif mode == "begins_with":
            predicate = column.startswith(value, autoescape=True)
        elif mode == "ends_with":
            predicate = column.endswith(value, autoescape=True)
        else:
            predicate = column.contains(value, autoescape=True)
    else:
        if mode == "exactly":
            predicate = func.lower(column) == value.lower()
        elif mode == "begins_with":
            predicate = column.istartswith(value, autoescape=True)
        elif mode == "ends_with":
            predicate = column.iendswith(value, autoescape=True)
        else:
            predicate = column.icontains(value, autoescape=True)

    if text_filter.inverted:
        return invert(predicate, column)
    return predicate


def text_search_predicate(column: Column, term: str) -> ColumnElement | None:
    if not term:
        return None
    return column.icontains(term, autoescape=True)


def crop_string(value: str | None, length: int, append: str = "", preserve_words: bool = False) -> str:
    """Shorten a string to `length` characters, optionally on a word boundary."""
    if not value:
        return ""
    if len(value) <= length:
        return value
    cropped = value[:length]
    if preserve_words and value[length] != " " and " " in cropped:
        cropped = cropped[: cropped.rindex(" ")]
    return cropped.rstrip() + append


class TextField(Field):
    """Single-line string."""

    type_name = "text"
    proper_name = "Text"
    native_type = String
    text_capable = True
    empty_value = ""
    default_options = {"monospace": False}
    properties = ("monospace", "min", "max")
    filter_model = TextFilter

    def configure(self) -> None:
        self.monospace = bool(self.options.get("monospace"))
        self.min = self.options.get("min")
        self.max = self.options.get("max")

    def column_type(self) -> TypeEngine:
        if isinstance(self.max, int) and self.max > 0:
            return self.native_type(self.max)
        return self.native_type()

    def check_input(self, data: Mapping[str, Any] | None) -> ValidationOutcome:
        value = self.get_value_from_data(data)
        if value is MISSING or value is None:
            return ValidationOutcome.ok()
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            return ValidationOutcome.fail(f"{self.label} must be a string")
        value = str(value)
        if value and isinstance(self.min, int) and len(value) < self.min:
            return ValidationOutcome.fail(f"{self.label} must be at least {self.min} characters")
        if isinstance(self.max, int) and len(value) > self.max:
            return ValidationOutcome.fail(f"{self.label} must be at most {self.max} characters")
        return ValidationOutcome.ok()

    def coerce(self, value: Any) -> Any:
        if is_empty(value):
            return ""
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise self.update_error(f"{self.label} must be a string")
        return str(value)

    def crop(self, record: Mapping[str, Any] | None, length: int, append: str = "", preserve_words: bool = False) -> str:
        return crop_string(self.format(record), length, append, preserve_words)

    def add_filter_to_query(self, filter: Any) -> ColumnElement | None:
        text_filter = self.parse_filter(filter)
        if text_filter is None:
            return None
        return text_predicate(self.column, text_filter)

    def add_search_to_query(self, term: str) -> ColumnElement | None:
        return text_search_predicate(self.column, term)
