"""
Select field type.

Options may be declared as a comma-separated string ("draft, published"),
a list of scalars, or a list of {"value": ..., "label": ...} mappings whose
extra keys travel with the option and can be read back with `pluck`.
"""

import copy
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Float, String, and_, or_
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.types import TypeEngine

from content_model.exceptions import ConfigurationError
from content_model.fields.base import MISSING, Field, ValidationOutcome, is_empty
from content_model.fields.types.number import parse_number
from content_model.schemas.filters import SelectFilter
from content_model.utils.labels import key_to_label


class SelectField(Field):
    """Single value chosen from a fixed set of options."""

    type_name = "select"
    proper_name = "Select"
    native_type = String
    filter_model = SelectFilter
    default_options = {"numeric": False, "empty_option": True, "ui": "select"}
    properties = ("ops", "numeric", "empty_option", "ui")

    def configure(self) -> None:
        self.numeric = bool(self.options.get("numeric"))
        self.empty_option = bool(self.options.get("empty_option", True))
        self.ui = self.options.get("ui") or "select"
        self.ops = self._parse_ops(self.options.get("options"))
        self.values = [op["value"] for op in self.ops]
        self.labels = {op["value"]: op["label"] for op in self.ops}
        self._map = {op["value"]: op for op in self.ops}
        self.paths = {
            "data": self.options.get("data_path") or f"{self.path}_data",
            "label": self.options.get("label_path") or f"{self.path}_label",
            "options": self.options.get("options_path") or f"{self.path}_options",
            "map": self.options.get("options_map_path") or f"{self.path}_map",
        }

        default = self.options.get("default")
        if not is_empty(default) and not callable(default) and self._match(default) is MISSING:
            raise ConfigurationError(
                f"Default value {default!r} for '{self.path}' is not one of its options",
                details={"path": self.path, "default": repr(default)},
            )

    def _parse_ops(self, raw: Any) -> list[dict[str, Any]]:
        if isinstance(raw, str):
            raw = [item.strip() for item in raw.split(",") if item.strip()]
        if not raw or not isinstance(raw, (list, tuple)):
            raise ConfigurationError(
                f"Select field '{self.path}' requires options",
                details={"path": self.path},
            )
        ops = []
        for item in raw:
            if isinstance(item, Mapping):
                if "value" not in item:
                    raise ConfigurationError(
                        f"Option for '{self.path}' is missing a value",
                        details={"path": self.path, "option": repr(item)},
                    )
                op = dict(item)
            else:
                op = {"value": item}
            op["value"] = self._option_value(op["value"])
            op.setdefault("label", key_to_label(str(op["value"])))
            ops.append(op)
        return ops

    def _option_value(self, value: Any) -> Any:
        if not self.numeric:
            return str(value)
        try:
            number = parse_number(value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"Option {value!r} for numeric select '{self.path}' is not a number",
                details={"path": self.path},
            ) from exc
        if number is None:
            raise ConfigurationError(f"Empty option for numeric select '{self.path}'", details={"path": self.path})
        return int(number) if number.is_integer() else number

    def _match(self, value: Any) -> Any:
        """Return the configured option value equal to `value`, or MISSING."""
        if isinstance(value, bool):
            return MISSING
        if self.numeric:
            try:
                number = parse_number(value)
            except (TypeError, ValueError):
                return MISSING
            return next((option for option in self.values if option == number), MISSING)
        if not isinstance(value, (str, int, float)):
            return MISSING
        value = str(value)
        return value if value in self._map else MISSING

    def column_type(self) -> TypeEngine:
        return Float() if self.numeric else String()

    def add_to_schema(self, builder) -> None:
        super().add_to_schema(builder)
        builder.add_virtual(self.paths["label"], lambda record: self.labels.get(record.get(self.path), ""))
        builder.add_virtual(self.paths["data"], lambda record: copy.deepcopy(self._map.get(record.get(self.path))))
        builder.add_virtual(self.paths["options"], lambda record: self.clone_ops())
        builder.add_virtual(self.paths["map"], lambda record: self.clone_map())

    def check_input(self, data: Mapping[str, Any] | None) -> ValidationOutcome:
        value = self.get_value_from_data(data)
        if value is MISSING or is_empty(value):
            return ValidationOutcome.ok()
        if self._match(value) is MISSING:
            return ValidationOutcome.fail(f"{value!r} is not a valid option for {self.label}")
        return ValidationOutcome.ok()

    def coerce(self, value: Any) -> Any:
        if is_empty(value):
            return None
        match = self._match(value)
        if match is MISSING:
            raise self.update_error(f"{value!r} is not a valid option for {self.label}")
        return match

    def get_data(self, record: Mapping[str, Any] | None) -> Any:
        value = super().get_data(record)
        if self.numeric and isinstance(value, float) and value.is_integer():
            return int(value)
        return value

    def format_value(self, value: Any, *args: Any, **kwargs: Any) -> str:
        return self.labels.get(value, "")

    def pluck(self, record: Mapping[str, Any] | None, prop: str, default: Any = None) -> Any:
        op = self._map.get(self.get_data(record))
        if op is None:
            return default
        return op.get(prop, default)

    def clone_ops(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self.ops)

    def clone_map(self) -> dict[Any, dict[str, Any]]:
        return copy.deepcopy(self._map)

    def add_filter_to_query(self, filter: Any) -> ColumnElement | None:
        select_filter = self.parse_filter(filter)
        if select_filter is None:
            return None
        column = self.column
        value = select_filter.value

        if isinstance(value, (list, tuple, set)):
            values = [self._filter_value(item) for item in value if not is_empty(item)]
            if any(item is MISSING for item in values):
                return None
            value = values or None
        elif not is_empty(value):
            value = self._filter_value(value)
            if value is MISSING:
                return None

        if is_empty(value):
            if self.numeric:
                return column.is_not(None) if select_filter.inverted else column.is_(None)
            if select_filter.inverted:
                return and_(column.is_not(None), column != "")
            return or_(column.is_(None), column == "")

        if isinstance(value, list):
            if select_filter.inverted:
                return or_(column.not_in(value), column.is_(None))
            return column.in_(value)
        if select_filter.inverted:
            return or_(column != value, column.is_(None))
        return column == value

    def _filter_value(self, value: Any) -> Any:
        if not self.numeric:
            return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else MISSING
        try:
            return parse_number(value)
        except (TypeError, ValueError):
            return MISSING
