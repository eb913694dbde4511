from typing import Any

from content_model.fields.types.number import NumberField, format_number, parse_number


class MoneyField(NumberField):
    """Currency amount, formatted as -$1,234.50."""

    type_name = "money"
    proper_name = "Money"
    default_options = {"format": ",.2f", "currency": "$"}
    properties = ("format_string", "currency")

    def configure(self) -> None:
        super().configure()
        self.currency = self.options.get("currency") or ""

    def format_value(self, value: Any, *args: Any, **kwargs: Any) -> str:
        number = parse_number(value)
        if number is None:
            return ""
        spec = args[0] if args else kwargs.get("format", self.format_string)
        if spec is False or spec is None:
            return format_number(number, False)
        sign = "-" if number < 0 else ""
        return f"{sign}{self.currency}{format(abs(number), spec)}"
