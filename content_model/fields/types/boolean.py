from collections.abc import Mapping
from typing import Any

from sqlalchemy import Boolean
from sqlalchemy.sql.elements import ColumnElement

from content_model.fields.base import MISSING, Field, ValidationOutcome
from content_model.schemas.filters import BooleanFilter


def parse_boolean(value: Any) -> bool | None:
    """Strict parse used by validation and filters; None when not boolean-like."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return None


def is_truthy(value: Any) -> bool:
    """Update semantics: 'false' and falsy values are False, anything else True."""
    if value is MISSING or not value:
        return False
    if isinstance(value, str) and value.strip().lower() == "false":
        return False
    return True


class BooleanField(Field):
    """True/false flag. Absent input in an update writes False."""

    type_name = "boolean"
    proper_name = "Boolean"
    native_type = Boolean
    fixed_size = "full"
    empty_value = False
    default_options = {"default": False, "indent": False}
    filter_model = BooleanFilter

    def check_input(self, data: Mapping[str, Any] | None) -> ValidationOutcome:
        value = self.get_value_from_data(data)
        if value is MISSING or value is None or value == "":
            return ValidationOutcome.ok()
        if parse_boolean(value) is None:
            return ValidationOutcome.fail(f"{self.label} must be true or false")
        return ValidationOutcome.ok()

    def is_empty_value(self, value: Any) -> bool:
        # a required checkbox must be checked
        return not is_truthy(value)

    def coerce(self, value: Any) -> Any:
        return is_truthy(value)

    def update_record(self, record: dict[str, Any], data: Mapping[str, Any] | None) -> None:
        record[self.path] = is_truthy(self.get_value_from_data(data))

    def is_modified(self, record: Mapping[str, Any] | None, data: Mapping[str, Any] | None) -> bool:
        return is_truthy(self.get_value_from_data(data)) != self.get_data(record)

    def get_data(self, record: Mapping[str, Any] | None) -> Any:
        if not record:
            return False
        return bool(record.get(self.path))

    def format(self, record: Mapping[str, Any] | None, *args: Any, **kwargs: Any) -> str:
        try:
            if not record or record.get(self.path) is None:
                return ""
            return "true" if record.get(self.path) else "false"
        except (TypeError, ValueError, AttributeError):
            return ""

    def add_filter_to_query(self, filter: Any) -> ColumnElement | None:
        boolean_filter = self.parse_filter(filter)
        if boolean_filter is None:
            return None
        value = boolean_filter.value
        if value is None or value == "":
            value = False
        else:
            value = parse_boolean(value)
            if value is None:
                return None
        if boolean_filter.inverted:
            value = not value
        if value:
            return self.column.is_(True)
        return self.column.is_not(True)
