from collections.abc import Mapping
from typing import Any

from passlib.context import CryptContext
from sqlalchemy import String, and_, or_
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.types import TypeEngine

from content_model.fields.base import MISSING, Field, ValidationOutcome, is_empty
from content_model.schemas.filters import PasswordFilter

MASK = "********"


class PasswordField(Field):
    """Password stored as a passlib hash; the plain value is never kept."""

    type_name = "password"
    proper_name = "Password"
    native_type = String
    filter_model = PasswordFilter
    default_options = {"min": 8, "max": 72, "work_factor": None}
    properties = ("min", "max", "work_factor")

    def configure(self) -> None:
        settings = self.list.registry.settings
        self.min = self.options.get("min")
        self.max = self.options.get("max")
        self.work_factor = self.options.get("work_factor") or settings.password_work_factor
        schemes = list(self.options.get("schemes") or settings.password_schemes)
        context_options: dict[str, Any] = {"schemes": schemes, "deprecated": "auto"}
        if "bcrypt" in schemes:
            context_options["bcrypt__rounds"] = self.work_factor
        self.pwd_context = CryptContext(**context_options)

    def column_type(self) -> TypeEngine:
        return String(255)

    def check_input(self, data: Mapping[str, Any] | None) -> ValidationOutcome:
        value = self.get_value_from_data(data)
        if value is MISSING or is_empty(value):
            return ValidationOutcome.ok()
        if not isinstance(value, str):
            return ValidationOutcome.fail(f"{self.label} must be a string")
        if isinstance(self.min, int) and len(value) < self.min:
            return ValidationOutcome.fail(f"{self.label} must be at least {self.min} characters")
        if isinstance(self.max, int) and len(value) > self.max:
            return ValidationOutcome.fail(f"{self.label} must be at most {self.max} characters")
        confirm = self.get_value_from_data(data, "confirm")
        if confirm is not MISSING and confirm != value:
            return ValidationOutcome.fail("Passwords must match")
        return ValidationOutcome.ok()

    def coerce(self, value: Any) -> Any:
        if is_empty(value):
            return None
        if not isinstance(value, str):
            raise self.update_error(f"{self.label} must be a string")
        return self.pwd_context.hash(value)

    def is_modified(self, record: Mapping[str, Any] | None, data: Mapping[str, Any] | None) -> bool:
        value = self.get_value_from_data(data)
        if value is MISSING:
            return False
        if is_empty(value):
            return bool(record and record.get(self.path))
        return not self.compare(record, value)

    def compare(self, record: Mapping[str, Any] | None, candidate: str) -> bool:
        """Check a plain-text candidate against the stored hash."""
        hashed = record.get(self.path) if record else None
        if not hashed or not isinstance(candidate, str):
            return False
        return self.pwd_context.verify(candidate, hashed)

    def is_empty_value(self, value: Any) -> bool:
        # get_data reports a stored hash as True and a missing one as False
        return not value

    def get_data(self, record: Mapping[str, Any] | None) -> Any:
        return bool(record and record.get(self.path))

    def format(self, record: Mapping[str, Any] | None, *args: Any, **kwargs: Any) -> str:
        try:
            return MASK if self.get_data(record) else ""
        except (TypeError, ValueError, AttributeError):
            return ""

    def get_csv_value(self, record: Mapping[str, Any] | None) -> str:
        return ""

    def add_filter_to_query(self, filter: Any) -> ColumnElement | None:
        password_filter = self.parse_filter(filter)
        if password_filter is None:
            return None
        column = self.column
        exists = password_filter.exists != password_filter.inverted
        if exists:
            return and_(column.is_not(None), column != "")
        return or_(column.is_(None), column == "")
