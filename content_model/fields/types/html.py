from typing import Any

from sqlalchemy import Text

from content_model.fields.types.text import TextField
from content_model.utils.sanitize import sanitize_html


class HtmlField(TextField):
    """
    Markup field.

    Validation, filtering and search behave exactly like text. With the
    `sanitize` option, stored markup is cleaned with the rich-content
    allow-list first.
    """

    type_name = "html"
    proper_name = "Html"
    native_type = Text
    default_size = "full"
    default_options = {"wysiwyg": False, "height": 180, "sanitize": False}
    properties = ("wysiwyg", "height", "sanitize")

    def configure(self) -> None:
        super().configure()
        self.wysiwyg = bool(self.options.get("wysiwyg"))
        self.height = self.options.get("height")
        self.sanitize = bool(self.options.get("sanitize"))

    def coerce(self, value: Any) -> Any:
        value = super().coerce(value)
        if self.sanitize and value:
            return sanitize_html(value)
        return value
