from typing import Any

from content_model.fields.base import is_empty
from content_model.fields.types.text import TextField
from content_model.utils.slugify import slugify


class KeyField(TextField):
    """URL-safe key, slugified on write."""

    type_name = "key"
    proper_name = "Key"
    default_options = {"separator": "-"}
    properties = ("separator",)

    def configure(self) -> None:
        super().configure()
        self.separator = self.options.get("separator") or "-"

    def coerce(self, value: Any) -> Any:
        value = super().coerce(value)
        if is_empty(value.strip()):
            return ""
        return slugify(value, separator=self.separator)
