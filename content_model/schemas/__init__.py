from .field_spec import FieldSpec
from .list_options import ListOptions
from .pagination import PageInfo, PaginatedResult

# Define the public API of this module
__all__ = [
    "FieldSpec",
    "ListOptions",
    "PageInfo",
    "PaginatedResult",
]
