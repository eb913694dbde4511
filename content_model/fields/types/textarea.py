import html
from typing import Any

from sqlalchemy import Text

from content_model.fields.base import is_empty
from content_model.fields.types.text import TextField


class TextareaField(TextField):
    """Multi-line plain text; formats as HTML with line breaks."""

    type_name = "textarea"
    proper_name = "Textarea"
    native_type = Text
    default_size = "full"
    default_options = {"monospace": False, "height": 90}
    properties = ("monospace", "height", "min", "max")

    def configure(self) -> None:
        super().configure()
        self.height = self.options.get("height")

    def format_value(self, value: Any, *args: Any, **kwargs: Any) -> str:
        if is_empty(value):
            return ""
        escaped = html.escape(str(value))
        return escaped.replace("\r\n", "\n").replace("\n", "<br>")
