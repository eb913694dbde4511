"""
CMS content model: Lists built from pluggable Field Types.

Public API:
    ListRegistry       : explicit registry of Lists, schema metadata and settings
    List               : a content type compiled onto one table
    Field              : abstract base class for field types
    FieldSpec          : unbound field declaration
    FieldTypeRegistry  : type tag to Field class mapping
    default_field_types: registry pre-loaded with the built-in types
"""

from .fields import Field, FieldTypeRegistry, ValidationOutcome, default_field_types
from .lists import List
from .registry import ListRegistry
from .schemas import FieldSpec

__all__ = [
    "Field",
    "FieldSpec",
    "FieldTypeRegistry",
    "List",
    "ListRegistry",
    "ValidationOutcome",
    "default_field_types",
]
