"""
Content Model Constants

Names and defaults shared by Lists and field types.
"""

from enum import Enum


class FieldSize(str, Enum):
    """Admin UI widths a field can request."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    FULL = "full"


class MappingRole(str, Enum):
    """Special roles a List can map onto one of its paths."""

    NAME = "name"
    CREATED_BY = "created_by"
    CREATED_ON = "created_on"
    MODIFIED_BY = "modified_by"
    MODIFIED_ON = "modified_on"


# camelCase spellings accepted in the `map` list option
MAPPING_ROLE_ALIASES: dict[str, MappingRole] = {
    "createdBy": MappingRole.CREATED_BY,
    "createdOn": MappingRole.CREATED_ON,
    "modifiedBy": MappingRole.MODIFIED_BY,
    "modifiedOn": MappingRole.MODIFIED_ON,
}

# Paths a List will never accept for a field
RESERVED_PATHS: frozenset[str] = frozenset(
    {
        "id",
        "fields",
        "metadata",
        "query",
        "registry",
        "schema",
        "table",
        "c",
        "columns",
        "save",
        "delete",
        "update",
        "validate",
    }
)

# Candidate paths for the name mapping, in priority order
NAME_PATH_CANDIDATES: tuple[str, ...] = ("name", "title")

# Paths added by the `track` list option
TRACK_PATHS: dict[str, str] = {
    "created_at": "created_at",
    "created_by": "created_by",
    "updated_at": "updated_at",
    "updated_by": "updated_by",
}

SORT_ORDER_PATH = "sort_order"
DEFAULT_SORT_TOKEN = "__default__"
NAME_COLUMN_TOKEN = "__name__"
