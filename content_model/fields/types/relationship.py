"""
Relationship field type.

The target List is named by key (`ref`) and resolved through the
ListRegistry when first needed, so Lists may reference each other in any
declaration order. Single relationships store the target id in an Integer
column; `many` relationships keep ordered ids in a secondary table
`<table>__<path>` that is synchronised by the persistence hooks.
"""

from collections import defaultdict
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from sqlalchemy import Column, ForeignKey, Integer, delete, insert, not_, or_, select
from sqlalchemy.sql.elements import ColumnElement

from content_model.exceptions import ConfigurationError
from content_model.fields.base import MISSING, Field, ValidationOutcome, is_empty
from content_model.schemas.filters import RelationshipFilter

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.ext.asyncio import AsyncSession

    from content_model.lists.list import List


def parse_id(value: Any) -> int:
    """Coerce an id, an int-like string or a record mapping to an integer id."""
    if isinstance(value, Mapping):
        value = value.get("id")
    if isinstance(value, bool):
        raise ValueError("booleans are not ids")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValueError(f"{value!r} is not a record id")


def parse_ids(value: Any) -> list[int]:
    """Parse a list (or comma-separated string) of ids, dropping duplicates."""
    if is_empty(value):
        return []
    if isinstance(value, str):
        value = [item for item in value.split(",") if item.strip()]
    elif not isinstance(value, (list, tuple, set)):
        value = [value]
    ids: list[int] = []
    for item in value:
        record_id = parse_id(item)
        if record_id not in ids:
            ids.append(record_id)
    return ids


class RelationshipField(Field):
    """Reference to one or many records of another List."""

    type_name = "relationship"
    proper_name = "Relationship"
    native_type = Integer
    filter_model = RelationshipFilter
    default_options = {"many": False}
    properties = ("ref", "many")

    def configure(self) -> None:
        self.ref = self.options.get("ref")
        if not self.ref or not isinstance(self.ref, str):
            raise ConfigurationError(
                f"Relationship field '{self.path}' requires a ref list key",
                details={"path": self.path},
            )
        self.many = bool(self.options.get("many"))
        self.empty_value = [] if self.many else None

    @property
    def ref_list(self) -> "List":
        return self.list.registry.require(self.ref)

    @property
    def column_names(self) -> tuple[str, ...]:
        return () if self.many else (self.path,)

    @property
    def secondary(self) -> "Table":
        return self.list.secondary_tables[self.path]

    def sort_columns(self) -> list[Column]:
        return [] if self.many else super().sort_columns()

    def add_to_schema(self, builder) -> None:
        if not self.many:
            builder.add_column(self, Column(self.path, Integer(), index=True, nullable=True))
            return
        builder.add_secondary_table(
            self.path,
            [
                Column("owner_id", Integer, ForeignKey(f"{builder.table_name}.id", ondelete="CASCADE"), nullable=False, index=True),
                Column("target_id", Integer, nullable=False, index=True),
                Column("position", Integer, nullable=False, default=0),
            ],
        )

    def check_input(self, data: Mapping[str, Any] | None) -> ValidationOutcome:
        value = self.get_value_from_data(data)
        if value is MISSING or is_empty(value):
            return ValidationOutcome.ok()
        try:
            if self.many:
                parse_ids(value)
            else:
                parse_id(value)
        except ValueError:
            return ValidationOutcome.fail(f"{self.label} must reference valid {self.ref} ids")
        return ValidationOutcome.ok()

    def coerce(self, value: Any) -> Any:
        try:
            if self.many:
                return parse_ids(value)
            return None if is_empty(value) else parse_id(value)
        except ValueError as exc:
            raise self.update_error(f"{self.label} must reference valid {self.ref} ids") from exc

    def get_default_value(self) -> Any:
        if self.many:
            return list(self.options.get("default") or [])
        return super().get_default_value()

    def get_data(self, record: Mapping[str, Any] | None) -> Any:
        if self.many:
            return list((record or {}).get(self.path) or [])
        return super().get_data(record)

    def format_value(self, value: Any, *args: Any, **kwargs: Any) -> str:
        if self.many:
            return ", ".join(str(item) for item in value or [])
        return super().format_value(value)

    def add_filter_to_query(self, filter: Any) -> ColumnElement | None:
        relationship_filter = self.parse_filter(filter)
        if relationship_filter is None:
            return None
        try:
            ids = parse_ids(relationship_filter.value)
        except ValueError:
            return None
        inverted = relationship_filter.inverted

        if self.many:
            secondary = self.secondary
            owner_ids = select(secondary.c.owner_id)
            if ids:
                owner_ids = owner_ids.where(secondary.c.target_id.in_(ids))
            predicate = self.list.table.c.id.in_(owner_ids)
            # an empty filter matches records with no related ids
            if not ids:
                return predicate if inverted else not_(predicate)
            return not_(predicate) if inverted else predicate

        column = self.column
        if not ids:
            return column.is_not(None) if inverted else column.is_(None)
        if inverted:
            return or_(column.not_in(ids), column.is_(None))
        return column.in_(ids)

    async def after_save(self, session: "AsyncSession", record: dict[str, Any]) -> None:
        if not self.many or self.path not in record:
            return
        secondary = self.secondary
        await session.execute(delete(secondary).where(secondary.c.owner_id == record["id"]))
        ids = self.get_data(record)
        if ids:
            await session.execute(
                insert(secondary),
                [{"owner_id": record["id"], "target_id": target, "position": index} for index, target in enumerate(ids)],
            )

    async def after_load(self, session: "AsyncSession", records: list[dict[str, Any]]) -> None:
        if not self.many or not records:
            return
        secondary = self.secondary
        owners = [record["id"] for record in records]
        result = await session.execute(
            select(secondary.c.owner_id, secondary.c.target_id)
            .where(secondary.c.owner_id.in_(owners))
            .order_by(secondary.c.owner_id, secondary.c.position)
        )
        related: dict[int, list[int]] = defaultdict(list)
        for owner_id, target_id in result.all():
            related[owner_id].append(target_id)
        for record in records:
            record[self.path] = related.get(record["id"], [])

    async def populate(self, session: "AsyncSession", record: Mapping[str, Any] | None) -> Any:
        """Load the related record (or records, for `many`) from the target List."""
        target = self.ref_list
        if self.many:
            return await target.find_by_ids(session, self.get_data(record))
        record_id = self.get_data(record)
        if record_id is None:
            return None
        return await target.get_item(session, record_id)
