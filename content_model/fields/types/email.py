import hashlib
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from content_model.fields.base import MISSING, ValidationOutcome, is_empty
from content_model.fields.types.text import TextField

_email_adapter = TypeAdapter(EmailStr)

GRAVATAR_URL = "https://www.gravatar.com/avatar/"


def is_valid_email(value: str) -> bool:
    try:
        _email_adapter.validate_python(value)
    except PydanticValidationError:
        return False
    return True


class EmailField(TextField):
    """Email address, stored lower-cased."""

    type_name = "email"
    proper_name = "Email"
    properties = ()

    def check_input(self, data: Mapping[str, Any] | None) -> ValidationOutcome:
        value = self.get_value_from_data(data)
        if value is MISSING or is_empty(value):
            return ValidationOutcome.ok()
        if not isinstance(value, str) or not is_valid_email(value.strip()):
            return ValidationOutcome.fail(f"{self.label} must be a valid email address")
        return ValidationOutcome.ok()

    def coerce(self, value: Any) -> Any:
        if is_empty(value):
            return ""
        if not isinstance(value, str) or not is_valid_email(value.strip()):
            raise self.update_error(f"{self.label} must be a valid email address")
        return value.strip().lower()

    def gravatar_url(
        self, record: Mapping[str, Any] | None, size: int = 80, default: str = "identicon", rating: str = "g"
    ) -> str:
        """Gravatar image URL for the stored address, or '' when unset."""
        email = self.format(record).strip().lower()
        if not email:
            return ""
        digest = hashlib.md5(email.encode("utf-8"), usedforsecurity=False).hexdigest()
        return f"{GRAVATAR_URL}{digest}?{urlencode({'s': size, 'd': default, 'r': rating})}"
