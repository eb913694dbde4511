from content_model.fields.types.boolean import BooleanField
from content_model.fields.types.color import ColorField
from content_model.fields.types.date import DateField
from content_model.fields.types.date_time import DatetimeField
from content_model.fields.types.email import EmailField
from content_model.fields.types.html import HtmlField
from content_model.fields.types.key import KeyField
from content_model.fields.types.money import MoneyField
from content_model.fields.types.name import NameField
from content_model.fields.types.number import NumberField
from content_model.fields.types.password import PasswordField
from content_model.fields.types.relationship import RelationshipField
from content_model.fields.types.select import SelectField
from content_model.fields.types.text import TextField
from content_model.fields.types.textarea import TextareaField
from content_model.fields.types.url import UrlField

BUILTIN_FIELD_TYPES = (
    TextField,
    TextareaField,
    HtmlField,
    EmailField,
    UrlField,
    KeyField,
    ColorField,
    NumberField,
    MoneyField,
    BooleanField,
    SelectField,
    DateField,
    DatetimeField,
    PasswordField,
    NameField,
    RelationshipField,
)

# Extra tags accepted for built-in types
BUILTIN_ALIASES: dict[str, tuple[str, ...]] = {
    "html": ("richtext",),
    "relationship": ("reference",),
    "datetime": ("date_time",),
}

__all__ = [field_type.__name__ for field_type in BUILTIN_FIELD_TYPES] + ["BUILTIN_FIELD_TYPES", "BUILTIN_ALIASES"]
