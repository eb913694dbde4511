import re
from collections.abc import Mapping
from typing import Any

from content_model.fields.base import MISSING, ValidationOutcome, is_empty
from content_model.fields.types.text import TextField
from content_model.utils.sanitize import is_safe_url

_PROTOCOL = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)


class UrlField(TextField):
    """URL string; formats without its protocol."""

    type_name = "url"
    proper_name = "Url"
    properties = ()

    def check_input(self, data: Mapping[str, Any] | None) -> ValidationOutcome:
        outcome = super().check_input(data)
        if not outcome:
            return outcome
        value = self.get_value_from_data(data)
        if value is MISSING or is_empty(value):
            return outcome
        if not is_safe_url(str(value)):
            return ValidationOutcome.fail(f"{self.label} uses a protocol that is not allowed")
        return outcome

    def coerce(self, value: Any) -> Any:
        value = super().coerce(value)
        if value and not is_safe_url(value):
            raise self.update_error(f"{self.label} uses a protocol that is not allowed")
        return value.strip()

    def format_value(self, value: Any, *args: Any, **kwargs: Any) -> str:
        if is_empty(value):
            return ""
        formatter = self.options.get("format")
        if formatter is False:
            return str(value)
        if callable(formatter):
            return str(formatter(value))
        return _PROTOCOL.sub("", str(value))
