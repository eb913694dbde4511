from collections.abc import Mapping
from typing import Any

from sqlalchemy import Column, String, and_, or_
from sqlalchemy.sql.elements import ColumnElement

from content_model.fields.base import MISSING, Field, ValidationOutcome, is_empty
from content_model.fields.types.text import text_predicate, text_search_predicate
from content_model.schemas.filters import TextFilter

PARTS = ("first", "last")


class NameField(Field):
    """
    Person name stored in two columns, `<path>_first` and `<path>_last`.

    Input may be a {"first", "last"} mapping, a full-name string (split on
    the first space), or the sub-keys themselves.
    """

    type_name = "name"
    proper_name = "Name"
    native_type = String
    filter_model = TextFilter
    text_capable = True

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(f"{self.path}_{part}" for part in PARTS)

    @property
    def column(self) -> Column:
        return self.list.table.c[self.column_names[0]]

    def sort_columns(self) -> list[Column]:
        table = self.list.table
        if table is None:
            return []
        return [table.c[f"{self.path}_last"], table.c[f"{self.path}_first"]]

    def add_to_schema(self, builder) -> None:
        for name in self.column_names:
            builder.add_column(self, Column(name, String(), index=self.index, nullable=True))

    def get_value_from_data(self, data: Mapping[str, Any] | None, subpath: str | None = None) -> Any:
        if subpath is not None:
            return super().get_value_from_data(data, subpath)
        value = super().get_value_from_data(data)
        if value is not MISSING:
            return self._split(value)
        parts = {part: super(NameField, self).get_value_from_data(data, part) for part in PARTS}
        parts = {part: value for part, value in parts.items() if value is not MISSING}
        return parts or MISSING

    @staticmethod
    def _split(value: Any) -> Any:
        if value is None or value == "":
            return {"first": "", "last": ""}
        if isinstance(value, Mapping):
            return {part: value[part] for part in PARTS if part in value}
        if isinstance(value, str):
            first, _, last = value.strip().partition(" ")
            return {"first": first, "last": last.strip()}
        return value

    def check_input(self, data: Mapping[str, Any] | None) -> ValidationOutcome:
        value = self.get_value_from_data(data)
        if value is MISSING:
            return ValidationOutcome.ok()
        if not isinstance(value, Mapping) or not all(
            part is None or isinstance(part, str) for part in value.values()
        ):
            return ValidationOutcome.fail(f"{self.label} must be a name")
        return ValidationOutcome.ok()

    def check_required_input(
        self, record: Mapping[str, Any] | None, data: Mapping[str, Any] | None
    ) -> ValidationOutcome:
        current = self.get_data(record)
        value = self.get_value_from_data(data)
        if isinstance(value, Mapping):
            current.update(value)
        if all(is_empty(current.get(part)) for part in PARTS):
            return ValidationOutcome.fail(self.required_message())
        return ValidationOutcome.ok()

    def update_record(self, record: dict[str, Any], data: Mapping[str, Any] | None) -> None:
        value = self.get_value_from_data(data)
        if value is MISSING:
            return
        if not isinstance(value, Mapping):
            raise self.update_error(f"{self.label} must be a name")
        updates = {}
        for part, part_value in value.items():
            if part_value is not None and not isinstance(part_value, str):
                raise self.update_error(f"{self.label} must be a name")
            updates[f"{self.path}_{part}"] = (part_value or "").strip()
        record.update(updates)

    def is_modified(self, record: Mapping[str, Any] | None, data: Mapping[str, Any] | None) -> bool:
        value = self.get_value_from_data(data)
        if not isinstance(value, Mapping):
            return value is not MISSING
        current = self.get_data(record)
        return any((part_value or "") != current.get(part) for part, part_value in value.items())

    def get_default_value(self) -> Any:
        return {"first": "", "last": ""}

    def set_default(self, record: dict[str, Any]) -> None:
        for part in PARTS:
            record[f"{self.path}_{part}"] = ""

    def get_data(self, record: Mapping[str, Any] | None) -> Any:
        record = record or {}
        return {part: record.get(f"{self.path}_{part}") or "" for part in PARTS}

    def format(self, record: Mapping[str, Any] | None, *args: Any, **kwargs: Any) -> str:
        try:
            data = self.get_data(record)
            return " ".join(data[part] for part in PARTS if data[part])
        except (TypeError, ValueError, AttributeError):
            return ""

    def add_filter_to_query(self, filter: Any) -> ColumnElement | None:
        text_filter = self.parse_filter(filter)
        if text_filter is None:
            return None
        table = self.list.table
        predicates = [text_predicate(table.c[name], text_filter) for name in self.column_names]
        if any(predicate is None for predicate in predicates):
            return None
        # a non-match (or an empty-name match) must hold for both parts
        if text_filter.inverted != (not text_filter.value):
            return and_(*predicates)
        return or_(*predicates)

    def add_search_to_query(self, term: str) -> ColumnElement | None:
        table = self.list.table
        predicates = [text_search_predicate(table.c[name], term) for name in self.column_names]
        predicates = [predicate for predicate in predicates if predicate is not None]
        return or_(*predicates) if predicates else None
