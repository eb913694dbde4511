from .base import MISSING, Field, ValidationOutcome
from .registry import FieldTypeRegistry, default_field_types

__all__ = ["MISSING", "Field", "ValidationOutcome", "FieldTypeRegistry", "default_field_types"]
