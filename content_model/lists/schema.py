"""
SchemaBuilder: collects what each field contributes to a List's storage
(columns, indexes, virtual projections and secondary tables) and compiles
the result into SQLAlchemy tables exactly once.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import Column, Index, Integer, MetaData, Table

from content_model.exceptions import ConfigurationError, DuplicatePathError

if TYPE_CHECKING:
    from content_model.fields.base import Field

logger = logging.getLogger(__name__)


class SchemaBuilder:
    def __init__(self, list_key: str, table_name: str) -> None:
        self.list_key = list_key
        self.table_name = table_name
        self.columns: dict[str, Column] = {}
        self.owners: dict[str, str] = {}
        self.indexes: list[tuple[str, tuple[str, ...], dict[str, Any]]] = []
        self.virtuals: dict[str, Callable[[dict[str, Any]], Any]] = {}
        self.secondary: dict[str, list[Column]] = {}
        self._built = False

    def _claim(self, name: str, owner: str) -> None:
        if name == "id" or name in self.columns or name in self.virtuals:
            raise DuplicatePathError(self.list_key, name)
        self.owners[name] = owner

    def add_column(self, field: Field, column: Column) -> Column:
        self._claim(column.name, field.path)
        self.columns[column.name] = column
        return column

    def add_index(self, name: str, column_names: Sequence[str], **kwargs: Any) -> None:
        self.indexes.append((name, tuple(column_names), kwargs))

    def add_virtual(self, name: str, getter: Callable[[dict[str, Any]], Any]) -> None:
        self._claim(name, name)
        self.virtuals[name] = getter

    def add_secondary_table(self, path: str, columns: list[Column]) -> None:
        if path in self.secondary:
            raise DuplicatePathError(self.list_key, path)
        self.secondary[path] = columns

    def build(self, metadata: MetaData) -> tuple[Table, dict[str, Table]]:
        """Create the List's table and its secondary tables on `metadata`."""
        if self._built:
            raise ConfigurationError(
                f"Schema for list '{self.list_key}' has already been built",
                details={"list": self.list_key},
            )
        names = [self.table_name, *(f"{self.table_name}__{path}" for path in self.secondary)]
        taken = [name for name in names if name in metadata.tables]
        if taken:
            raise ConfigurationError(
                f"Table '{taken[0]}' for list '{self.list_key}' already exists",
                details={"list": self.list_key, "table": taken[0]},
            )

        table = Table(
            self.table_name,
            metadata,
            Column("id", Integer, primary_key=True, autoincrement=True),
            *self.columns.values(),
        )
        for name, column_names, kwargs in self.indexes:
            missing = [column for column in column_names if column not in table.c]
            if missing:
                raise ConfigurationError(
                    f"Index '{name}' references unknown columns {missing}",
                    details={"list": self.list_key, "index": name},
                )
            Index(name, *(table.c[column] for column in column_names), **kwargs)

        secondary = {
            path: Table(f"{self.table_name}__{path}", metadata, *columns)
            for path, columns in self.secondary.items()
        }
        self._built = True
        logger.debug(
            "Schema compiled for %s: %d columns, %d secondary tables",
            self.list_key,
            len(table.c),
            len(secondary),
        )
        return table, secondary
