"""
Filter payload models.

Each field type parses its filter description with one of these models. A
payload that fails to parse is treated as an absent filter by the field.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from content_model.utils.labels import snake_case


class FilterModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    inverted: bool = False


class ModeFilterModel(FilterModel):
    mode: str | None = None

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, value: Any) -> Any:
        # "beginsWith" and "begins_with" name the same mode
        if isinstance(value, str):
            return snake_case(value) or None
        return value


class TextFilter(ModeFilterModel):
    value: str = ""
    case_sensitive: bool = Field(False, alias="caseSensitive")

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class NumberFilter(ModeFilterModel):
    value: Any = None


class BooleanFilter(FilterModel):
    value: Any = None


class SelectFilter(FilterModel):
    value: Any = None


class DateFilter(ModeFilterModel):
    value: Any = None
    after: Any = None
    before: Any = None


class PasswordFilter(FilterModel):
    exists: bool = True


class RelationshipFilter(FilterModel):
    value: Any = None
