import re
from collections.abc import Mapping
from typing import Any

from content_model.fields.base import MISSING, ValidationOutcome, is_empty
from content_model.fields.types.text import TextField

HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


class ColorField(TextField):
    """Hex colour such as #ff9900."""

    type_name = "color"
    proper_name = "Color"
    fixed_size = "small"
    properties = ()

    def check_input(self, data: Mapping[str, Any] | None) -> ValidationOutcome:
        value = self.get_value_from_data(data)
        if value is MISSING or is_empty(value):
            return ValidationOutcome.ok()
        if not isinstance(value, str) or not HEX_COLOR.match(value.strip()):
            return ValidationOutcome.fail(f"{self.label} must be a hex colour")
        return ValidationOutcome.ok()

    def coerce(self, value: Any) -> Any:
        if is_empty(value):
            return ""
        if not isinstance(value, str) or not HEX_COLOR.match(value.strip()):
            raise self.update_error(f"{self.label} must be a hex colour")
        return value.strip().lower()
