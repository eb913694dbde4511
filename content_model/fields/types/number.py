import math
import numbers
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Float, or_
from sqlalchemy.sql.elements import ColumnElement

from content_model.fields.base import MISSING, Field, ValidationOutcome, invert, is_empty
from content_model.schemas.filters import NumberFilter

NUMBER_MODES = ("equals", "between", "gt", "lt")
DEFAULT_NUMBER_MODE = "equals"


def parse_number(value: Any) -> float | None:
    """
    Parse a numeric literal or numeric string.

    Empty values parse to None. Booleans, non-finite numbers and anything
    else raise ValueError.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("booleans are not numbers")
    if isinstance(value, numbers.Real):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        number = float(text)
    else:
        raise ValueError(f"cannot parse {type(value).__name__} as a number")
    if not math.isfinite(number):
        raise ValueError("number must be finite")
    return number


def plain_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def format_number(value: Any, spec: Any = ",") -> str:
    """Format with a format-spec string; integral values render without decimals."""
    number = parse_number(value)
    if number is None:
        return ""
    if spec is False or spec is None:
        return plain_number(number)
    if number.is_integer() and "." not in spec:
        return format(int(number), spec)
    return format(number, spec)


class NumberField(Field):
    """Floating point number."""

    type_name = "number"
    proper_name = "Number"
    native_type = Float
    fixed_size = "small"
    default_options = {"format": ","}
    properties = ("format_string",)
    filter_model = NumberFilter

    def configure(self) -> None:
        self.format_string = self.options.get("format")

    def invalid_message(self) -> str:
        return f"{self.label} must be a number"

    def check_input(self, data: Mapping[str, Any] | None) -> ValidationOutcome:
        value = self.get_value_from_data(data)
        if value is MISSING:
            return ValidationOutcome.ok()
        try:
            parse_number(value)
        except (TypeError, ValueError):
            return ValidationOutcome.fail(self.invalid_message())
        return ValidationOutcome.ok()

    def coerce(self, value: Any) -> Any:
        try:
            return parse_number(value)
        except (TypeError, ValueError) as exc:
            raise self.update_error(self.invalid_message()) from exc

    def format_value(self, value: Any, *args: Any, **kwargs: Any) -> str:
        spec = args[0] if args else kwargs.get("format", self.format_string)
        return format_number(value, spec)

    def add_filter_to_query(self, filter: Any) -> ColumnElement | None:
        number_filter = self.parse_filter(filter)
        if number_filter is None:
            return None
        column = self.column
        mode = number_filter.mode if number_filter.mode in NUMBER_MODES else DEFAULT_NUMBER_MODE

        if mode == "between":
            bounds = number_filter.value if isinstance(number_filter.value, Mapping) else {}
            try:
                low = parse_number(bounds.get("min"))
                high = parse_number(bounds.get("max"))
            except (TypeError, ValueError):
                return None
            if low is None or high is None:
                return None
            if number_filter.inverted:
                return or_(column < low, column > high, column.is_(None))
            return column.between(low, high)

        try:
            value = parse_number(number_filter.value) if not is_empty(number_filter.value) else None
        except (TypeError, ValueError):
            return None

        if value is None:
            if mode != "equals":
                return None
            return column.is_not(None) if number_filter.inverted else column.is_(None)

        if mode == "gt":
            predicate = column > value
        elif mode == "lt":
            predicate = column < value
        else:
            predicate = column == value

        if number_filter.inverted:
            return invert(predicate, column)
        return predicate
