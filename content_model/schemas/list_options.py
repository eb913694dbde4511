from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from content_model.constants import DEFAULT_SORT_TOKEN


class ListOptions(BaseModel):
    """Options recognised at List construction; anything else is passed through."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    label: str | None = Field(None, description="Plural display label.")
    singular: str | None = Field(None, description="Singular display label.")
    plural: str | None = Field(None, description="Plural display label, defaults to label.")
    path: str | None = Field(None, description="URL path segment for the admin layer.")
    table_name: str | None = Field(None, alias="tableName", description="Name of the backing table.")

    track: bool | dict[str, bool | str] = Field(False, description="Add created/updated audit fields.")
    sortable: bool = Field(False, description="Add a manual sort order field.")
    autokey: dict[str, Any] | None = Field(None, description="Generate a key field from another path.")

    search_fields: str | list[str] | None = Field(None, alias="searchFields")
    search_uses_text_index: bool = Field(False, alias="searchUsesTextIndex")
    default_sort: str = Field(DEFAULT_SORT_TOKEN, alias="defaultSort")
    default_columns: str | list[str] | None = Field(None, alias="defaultColumns")
    map: dict[str, str] = Field(default_factory=dict, description="Role to path overrides.")
    per_page: int | None = Field(None, alias="perPage", ge=1)

    hidden: bool = False
    noedit: bool = False
    nocreate: bool = False
    nodelete: bool = False

    # Options that change the compiled schema and are frozen by register()
    SCHEMA_KEYS: ClassVar[frozenset[str]] = frozenset({"track", "sortable", "autokey", "table_name"})
