"""
List

A List is a named collection of typed fields compiled onto one table. It
moves through two states: Building, while fields and options are declared,
and Registered, once register() has resolved every field through the
FieldTypeRegistry and compiled the schema. Registered Lists are frozen.

Lists never inspect field semantics. Filtering, searching, validating and
formatting are delegated to each field's strategy object.
"""

from __future__ import annotations

import copy
import html
import json
import logging
import re
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import Index, Select, and_, delete, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.sql.elements import ColumnElement

from content_model.constants import (
    DEFAULT_SORT_TOKEN,
    MAPPING_ROLE_ALIASES,
    NAME_COLUMN_TOKEN,
    NAME_PATH_CANDIDATES,
    RESERVED_PATHS,
    SORT_ORDER_PATH,
    TRACK_PATHS,
    MappingRole,
)
from content_model.exceptions import (
    ConfigurationError,
    DuplicatePathError,
    ListAlreadyRegisteredError,
    ListFrozenError,
    RecordNotFoundError,
    ReservedPathError,
    UniquenessExhaustedError,
    UpdateError,
    ValidationError,
)
from content_model.fields.base import MISSING, Field
from content_model.fields.types.date import utc_now
from content_model.fields.types.relationship import RelationshipField
from content_model.lists.relationships import ColumnSpec, Relationship, UIElement
from content_model.lists.schema import SchemaBuilder
from content_model.schemas.field_spec import FieldSpec
from content_model.schemas.list_options import ListOptions
from content_model.schemas.pagination import PageInfo, PaginatedResult
from content_model.utils.labels import kebab_case, key_to_label, plural, singular, snake_case
from content_model.utils.pagination import build_page_info, coerce_page, get_total_count
from content_model.utils.security import sanitize_csv_field
from content_model.utils.slugify import slugify

if TYPE_CHECKING:
    from sqlalchemy import Table
    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession

    from content_model.registry import ListRegistry

logger = logging.getLogger(__name__)

_PATH_SEPARATOR = re.compile(r"[\s,]+")

# Role a tracked path fills in the List's mappings
_TRACK_ROLES = {
    "created_at": MappingRole.CREATED_ON,
    "created_by": MappingRole.CREATED_BY,
    "updated_at": MappingRole.MODIFIED_ON,
    "updated_by": MappingRole.MODIFIED_BY,
}


def split_paths(value: Any) -> list[str]:
    """Split "a, b c" or an iterable of paths into a list of non-empty paths."""
    if not value:
        return []
    if isinstance(value, str):
        return [item for item in _PATH_SEPARATOR.split(value) if item]
    return [str(item).strip() for item in value if str(item).strip()]


def _record_id(record: Any) -> Any:
    if isinstance(record, Mapping):
        return record.get("id")
    return record


class List:
    """A content type: ordered fields, options and the table they compile to."""

    def __init__(self, key: str, registry: ListRegistry, **options: Any) -> None:
        if not key or not isinstance(key, str):
            raise ConfigurationError("List key must be a non-empty string", details={"key": repr(key)})
        self.key = key
        self.registry = registry
        self.options = self._parse_options(options)

        self._specs: dict[str, FieldSpec] = {}
        self._layout: list[tuple[str, Any]] = []
        self._registered = False
        self._track: dict[str, str] = {}
        self._search_index: Index | None = None

        self.fields: dict[str, Field] = {}
        self.relationships: dict[str, Relationship] = {}
        self.mappings: dict[str, str | None] = {role.value: None for role in MappingRole}
        self.ui_elements: list[UIElement] = []
        self.virtuals: dict[str, Any] = {}
        self.table: Table | None = None
        self.secondary_tables: dict[str, Table] = {}

        for role, path in self.options.map.items():
            self._set_mapping(role, path)

    def __repr__(self) -> str:
        state = "registered" if self._registered else "building"
        return f"<List {self.key!r} ({state}, {len(self._specs)} fields)>"

    @staticmethod
    def _parse_options(options: Mapping[str, Any]) -> ListOptions:
        try:
            return ListOptions.model_validate(dict(options))
        except PydanticValidationError as exc:
            raise ConfigurationError(
                "Invalid list options",
                details={"errors": [f"{'.'.join(map(str, error['loc']))}: {error['msg']}" for error in exc.errors()]},
            ) from exc

    # ── Labels & naming ───────────────────────────────────────────────────────

    @property
    def singular(self) -> str:
        return self.options.singular or singular(key_to_label(self.key))

    @property
    def plural(self) -> str:
        return self.options.plural or plural(self.singular)

    @property
    def label(self) -> str:
        return self.options.label or self.plural

    @property
    def path(self) -> str:
        return self.options.path or kebab_case(self.plural)

    @property
    def table_name(self) -> str:
        return self.options.table_name or snake_case(self.plural)

    @property
    def registered(self) -> bool:
        return self._registered

    # ── Building ──────────────────────────────────────────────────────────────

    def _assert_building(self, operation: str) -> None:
        if self._registered:
            raise ListFrozenError(self.key, operation)

    def _assert_registered(self) -> None:
        if not self._registered:
            raise ConfigurationError(
                f"List '{self.key}' must be registered first",
                details={"list": self.key},
            )

    def is_reserved(self, path: str) -> bool:
        return path in RESERVED_PATHS

    def add(self, *definitions: Any) -> List:
        """
        Declare fields and headings.

        Accepts heading strings, {"heading": ...} mappings, FieldSpecs and
        mappings of path to definition. Nested mappings without a "type" key
        are groups whose paths are joined with "_".
        """
        self._assert_building("add fields to")
        for definition in definitions:
            if isinstance(definition, str):
                self._layout.append(("heading", {"heading": definition}))
            elif isinstance(definition, FieldSpec):
                self._add_spec(definition)
            elif isinstance(definition, Mapping):
                if "heading" in definition and not FieldSpec.is_field_definition(definition):
                    self._layout.append(("heading", dict(definition)))
                else:
                    self._add_definitions(definition, prefix="")
            else:
                raise ConfigurationError(
                    f"Cannot add {definition!r} to list '{self.key}'",
                    details={"list": self.key},
                )
        return self

    def _add_definitions(self, definitions: Mapping[str, Any], prefix: str) -> None:
        for name, definition in definitions.items():
            path = f"{prefix}{name}"
            if isinstance(definition, Mapping) and not FieldSpec.is_field_definition(definition):
                self._add_definitions(definition, prefix=f"{path}_")
            else:
                self._add_spec(FieldSpec.from_definition(path, definition))

    def add_field(self, path: str, type_tag: Any, **options: Any) -> List:
        self._assert_building("add fields to")
        self._add_spec(FieldSpec.from_definition(path, {"type": type_tag, **options}))
        return self

    def add_fields(self, specs: Iterable[FieldSpec] | Mapping[str, Any]) -> List:
        self._assert_building("add fields to")
        if isinstance(specs, Mapping):
            return self.add(specs)
        for spec in specs:
            self._add_spec(spec)
        return self

    def _add_spec(self, spec: FieldSpec) -> None:
        if self.is_reserved(spec.path):
            raise ReservedPathError(self.key, spec.path)
        if spec.path in self._specs:
            raise DuplicatePathError(self.key, spec.path)
        self._specs[spec.path] = spec
        self._layout.append(("field", spec.path))

    def relationship(self, path: str, *, ref: str, ref_path: str, label: str | None = None, **options: Any) -> List:
        """Declare a back-reference from `ref`'s `ref_path` relationship to this List."""
        self._assert_building("add relationships to")
        if path in self.relationships or path in self._specs:
            raise DuplicatePathError(self.key, path)
        self.relationships[path] = Relationship(
            path=path, ref=ref, ref_path=ref_path, label=label or key_to_label(path), options=options
        )
        return self

    def map(self, role: str, path: str) -> List:
        self._assert_building("change mappings of")
        self._set_mapping(role, path)
        return self

    def _set_mapping(self, role: str, path: str | None) -> None:
        try:
            resolved = MAPPING_ROLE_ALIASES.get(role) or MappingRole(snake_case(role))
        except ValueError as exc:
            raise ConfigurationError(
                f"Unknown mapping role '{role}' on list '{self.key}'",
                details={"list": self.key, "role": role},
            ) from exc
        self.mappings[resolved.value] = path

    # ── Options ───────────────────────────────────────────────────────────────

    @staticmethod
    def _option_name(key: str) -> str:
        for name, info in ListOptions.model_fields.items():
            if key == name or key == info.alias:
                return name
        return key

    def get(self, key: str, default: Any = None) -> Any:
        name = self._option_name(key)
        if name in ListOptions.model_fields:
            return getattr(self.options, name)
        return (self.options.model_extra or {}).get(key, default)

    def set(self, key: str, value: Any) -> List:
        name = self._option_name(key)
        if name in ListOptions.SCHEMA_KEYS or name == "map":
            self._assert_building(f"change option '{key}' of")
        data = self.options.model_dump()
        data[name] = value
        self.options = self._parse_options(data)
        if name == "map":
            for role, path in self.options.map.items():
                self._set_mapping(role, path)
        return self

    # ── Registration ──────────────────────────────────────────────────────────

    def _option_specs(self) -> dict[str, FieldSpec]:
        """Fields implied by the track, sortable and autokey options."""
        specs: dict[str, FieldSpec] = {}

        track = self.options.track
        if track:
            wanted = dict.fromkeys(TRACK_PATHS, True) if track is True else track
            for role, default_path in TRACK_PATHS.items():
                setting = wanted.get(role, False)
                if not setting:
                    continue
                path = setting if isinstance(setting, str) else default_path
                if role.endswith("_at"):
                    definition = {"type": "datetime", "utc": True, "hidden": True, "noedit": True}
                else:
                    definition = {
                        "type": "relationship",
                        "ref": self.registry.settings.user_list_key,
                        "hidden": True,
                        "noedit": True,
                    }
                specs[path] = FieldSpec.from_definition(path, definition)
                self._track[role] = path

        if self.options.sortable:
            specs[SORT_ORDER_PATH] = FieldSpec.from_definition(
                SORT_ORDER_PATH, {"type": "number", "hidden": True, "noedit": True, "format": False}
            )

        autokey = self.options.autokey
        if autokey:
            if not autokey.get("from"):
                raise ConfigurationError(
                    f"autokey on list '{self.key}' requires a 'from' path",
                    details={"list": self.key},
                )
            path = autokey.get("path", "key")
            if path not in self._specs:
                specs[path] = FieldSpec.from_definition(
                    path,
                    {
                        "type": "key",
                        "separator": autokey.get("separator", "-"),
                        "index": True,
                        "unique": bool(autokey.get("unique")),
                        "hidden": True,
                        "noedit": True,
                    },
                )

        for path in specs:
            if path in self._specs:
                raise DuplicatePathError(self.key, path)
        return specs

    def register(self) -> List:
        """Resolve fields, compile the schema, and freeze the List."""
        if self._registered:
            raise ListAlreadyRegisteredError(self.key)
        self.registry.ensure_can_register(self)

        self._track = {}
        specs = {**self._specs, **self._option_specs()}
        fields = {path: self.registry.field_types.create(self, spec) for path, spec in specs.items()}

        builder = SchemaBuilder(self.key, self.table_name)
        for field in fields.values():
            field.add_to_schema(builder)
        text_columns = [name for field in fields.values() if field.options.get("text_index") for name in field.column_names]
        if text_columns:
            builder.add_index(f"ix_{self.table_name}_text", text_columns)

        self._validate_references(fields)
        self.table, self.secondary_tables = builder.build(self.registry.metadata)
        self.fields = fields
        self.virtuals = dict(builder.virtuals)

        self._automap()
        self.ui_elements = self._build_ui_elements()
        self._registered = True
        self.registry.add_list(self)
        logger.debug("List %s compiled onto table %s", self.key, self.table_name)
        return self

    def _validate_references(self, fields: dict[str, Field]) -> None:
        autokey = self.options.autokey
        if autokey:
            missing = [path for path in split_paths(autokey["from"]) if path not in fields]
            if missing:
                raise ConfigurationError(
                    f"autokey on list '{self.key}' references unknown paths {missing}",
                    details={"list": self.key, "paths": missing},
                )
        for role, path in self.mappings.items():
            if path and path not in fields and role != MappingRole.NAME.value:
                raise ConfigurationError(
                    f"Mapping '{role}' on list '{self.key}' points to unknown path '{path}'",
                    details={"list": self.key, "role": role, "path": path},
                )

    def _automap(self) -> None:
        if not self.mappings[MappingRole.NAME.value]:
            for candidate in NAME_PATH_CANDIDATES:
                if candidate in self.fields:
                    self.mappings[MappingRole.NAME.value] = candidate
                    break
        for role, path in self._track.items():
            mapped = _TRACK_ROLES[role].value
            if not self.mappings[mapped]:
                self.mappings[mapped] = path

    def _build_ui_elements(self) -> list[UIElement]:
        elements = []
        for kind, value in self._layout:
            if kind == "heading":
                options = {key: item for key, item in value.items() if key != "heading"}
                elements.append(UIElement(type="heading", heading=value["heading"], options=options))
            else:
                elements.append(UIElement(type="field", path=value))
        return elements

    # ── Lookup ────────────────────────────────────────────────────────────────

    def field(self, path: str) -> Field | None:
        return self.fields.get(path)

    @property
    def fields_array(self) -> list[Field]:
        return list(self.fields.values())

    @property
    def initial_fields(self) -> list[Field]:
        return [field for field in self.fields.values() if field.initial]

    @property
    def name_path(self) -> str | None:
        return self.mappings[MappingRole.NAME.value]

    @property
    def name_field(self) -> Field | None:
        return self.fields.get(self.name_path) if self.name_path else None

    @property
    def name_is_virtual(self) -> bool:
        return bool(self.name_path) and self.name_path not in self.fields and self.name_path in self.virtuals

    @property
    def search_fields(self) -> list[Field]:
        paths = split_paths(self.options.search_fields)
        if not paths and self.name_field is not None:
            paths = [self.name_path]
        return [self.fields[path] for path in paths if path in self.fields]

    @property
    def default_columns(self) -> list[ColumnSpec]:
        return self.expand_columns(self.options.default_columns or NAME_COLUMN_TOKEN)

    @property
    def default_sort(self) -> str:
        return ",".join(self._default_sort_tokens())

    def _default_sort_tokens(self) -> list[str]:
        tokens = [token for token in split_paths(self.options.default_sort) if token != DEFAULT_SORT_TOKEN]
        if tokens:
            return tokens
        if self.options.sortable:
            return [SORT_ORDER_PATH]
        if self.name_field is not None:
            return [self.name_path]
        return ["id"]

    def expand_paths(self, paths: Any = None) -> list[Field]:
        if paths is None:
            return list(self.fields.values())
        return [self.fields[path] for path in split_paths(paths) if path in self.fields]

    def expand_columns(self, columns: Any) -> list[ColumnSpec]:
        """Expand "__name__, title|30%" style column lists; unknown paths are dropped."""
        expanded: list[ColumnSpec] = []
        seen: set[str] = set()
        for token in split_paths(columns):
            path, _, width = token.partition("|")
            if path == NAME_COLUMN_TOKEN:
                path = self.name_path or ""
            if not path or path in seen:
                continue
            field = self.fields.get(path)
            if field is not None:
                expanded.append(ColumnSpec(path=path, label=field.label, type=field.type_name, width=width or None))
            elif path in self.virtuals:
                expanded.append(ColumnSpec(path=path, label=key_to_label(path), type="virtual", width=width or None))
            else:
                continue
            seen.add(path)
        if not expanded and self.name_field is not None:
            expanded.append(ColumnSpec(path=self.name_path, label=self.name_field.label, type=self.name_field.type_name))
        return expanded

    def expand_sort(self, sort: Any = None) -> list[Any]:
        """Translate "-title, created_at" into ORDER BY clauses."""
        self._assert_registered()
        tokens: list[str] = []
        for token in split_paths(sort) or [DEFAULT_SORT_TOKEN]:
            tokens.extend(self._default_sort_tokens() if token == DEFAULT_SORT_TOKEN else [token])

        clauses = []
        for token in tokens:
            descending = token.startswith("-")
            path = token.lstrip("+-")
            if path == "id":
                columns = [self.table.c.id]
            elif path in self.fields:
                columns = self.fields[path].sort_columns()
            else:
                continue
            clauses.extend(column.desc() if descending else column.asc() for column in columns)
        return clauses

    # ── Filters & search ──────────────────────────────────────────────────────

    def process_filters(self, filters: Any) -> dict[str, Any]:
        """Normalise a filter payload (mapping or JSON string) to known paths."""
        if not filters:
            return {}
        if isinstance(filters, (str, bytes)):
            try:
                filters = json.loads(filters)
            except ValueError:
                return {}
        if not isinstance(filters, Mapping):
            return {}
        return {path: value for path, value in filters.items() if path in self.fields}

    def get_filter_predicates(self, filters: Any) -> list[ColumnElement]:
        predicates = []
        for path, raw in self.process_filters(filters).items():
            predicate = self.fields[path].add_filter_to_query(raw)
            if predicate is not None:
                predicates.append(predicate)
        return predicates

    def apply_filters(self, query: Select, filters: Any) -> Select:
        predicates = self.get_filter_predicates(filters)
        if not predicates:
            return query
        return query.where(and_(*predicates))

    def get_search_filters(self, term: Any) -> ColumnElement | None:
        term = str(term).strip() if term is not None else ""
        if not term:
            return None
        predicates = []
        for field in self.search_fields:
            predicate = field.add_search_to_query(term)
            if predicate is not None:
                predicates.append(predicate)
        if term.isdigit():
            predicates.append(self.table.c.id == int(term))
        return or_(*predicates) if predicates else None

    def apply_search(self, query: Select, term: Any) -> Select:
        predicate = self.get_search_filters(term)
        return query if predicate is None else query.where(predicate)

    def build_query(self, filters: Any = None, search: Any = None, sort: Any = None, query: Select | None = None) -> Select:
        self._assert_registered()
        query = query if query is not None else select(self.table)
        query = self.apply_search(self.apply_filters(query, filters), search)
        if sort is not None:
            query = query.order_by(*self.expand_sort(sort))
        return query

    # ── Records ───────────────────────────────────────────────────────────────

    def new_record(self, data: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """A record holding every field's default, with any given input applied."""
        self._assert_registered()
        record: dict[str, Any] = {"id": None}
        for field in self.fields.values():
            field.set_default(record)
        if data:
            for field in self.fields.values():
                if field.get_value_from_data(data) is not MISSING:
                    field.update_record(record, data)
        return record

    def get_document_name(self, record: Mapping[str, Any] | None, escape_html: bool = False) -> str:
        if not record:
            return ""
        name = ""
        if self.name_field is not None:
            name = self.name_field.format(record)
        elif self.name_is_virtual:
            name = str(self.virtuals[self.name_path](record) or "")
        if not name and record.get("id") is not None:
            name = str(record["id"])
        return html.escape(name) if escape_html else name

    def get_virtuals(self, record: Mapping[str, Any]) -> dict[str, Any]:
        return {name: getter(record) for name, getter in self.virtuals.items()}

    def get_data(self, record: Mapping[str, Any], paths: Any = None) -> dict[str, Any]:
        """Output form of a record: id, name and the selected fields."""
        data: dict[str, Any] = {"id": record.get("id")}
        if self.name_path:
            data["name"] = self.get_document_name(record)
        if self.options.sortable:
            sort_order = record.get(SORT_ORDER_PATH)
            data[SORT_ORDER_PATH] = int(sort_order) if sort_order is not None else None
        data["fields"] = {field.path: field.get_data(record) for field in self.expand_paths(paths)}
        return data

    def get_csv_data(self, records: Iterable[Mapping[str, Any]], paths: Any = None) -> list[dict[str, str]]:
        """Rows of formatted, spreadsheet-safe values keyed by path."""
        fields = [field for field in self.expand_paths(paths) if field.type_name != "password"]
        rows = []
        for record in records:
            row = {"id": sanitize_csv_field(record.get("id"))}
            row.update({field.path: field.get_csv_value(record) for field in fields})
            rows.append(row)
        return rows

    def get_admin_url(self, record: Any = None) -> str:
        url = f"{self.registry.settings.admin_path.rstrip('/')}/{self.path}"
        record_id = _record_id(record)
        return f"{url}/{record_id}" if record_id is not None else url

    # ── Store operations ──────────────────────────────────────────────────────

    def _row_to_record(self, row: Mapping[str, Any]) -> dict[str, Any]:
        record: dict[str, Any] = {"id": row["id"]}
        for field in self.fields.values():
            field.load_row(row, record)
        return record

    async def _load(self, session: AsyncSession, query: Select) -> list[dict[str, Any]]:
        result = await session.execute(query)
        records = [self._row_to_record(row) for row in result.mappings().all()]
        for field in self.fields.values():
            await field.after_load(session, records)
        return records

    async def find(
        self,
        session: AsyncSession,
        filters: Any = None,
        search: Any = None,
        sort: Any = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]:
        query = self.build_query(filters, search, sort if sort is not None else DEFAULT_SORT_TOKEN)
        if limit is not None:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)
        return await self._load(session, query)

    async def count(self, session: AsyncSession, filters: Any = None, search: Any = None) -> int:
        return await get_total_count(session, self.build_query(filters, search))

    async def get_item(self, session: AsyncSession, record_id: Any) -> dict[str, Any] | None:
        self._assert_registered()
        records = await self._load(session, select(self.table).where(self.table.c.id == record_id))
        return records[0] if records else None

    async def require_item(self, session: AsyncSession, record_id: Any) -> dict[str, Any]:
        record = await self.get_item(session, record_id)
        if record is None:
            raise RecordNotFoundError(self.key, record_id)
        return record

    async def find_by_ids(self, session: AsyncSession, ids: Iterable[Any]) -> list[dict[str, Any]]:
        """Records for `ids`, in the order given; missing ids are skipped."""
        self._assert_registered()
        ids = list(ids)
        if not ids:
            return []
        records = await self._load(session, select(self.table).where(self.table.c.id.in_(ids)))
        by_id = {record["id"]: record for record in records}
        return [by_id[record_id] for record_id in ids if record_id in by_id]

    async def _next_sort_order(self, session: AsyncSession) -> int:
        result = await session.execute(select(func.max(self.table.c[SORT_ORDER_PATH])))
        current = result.scalar()
        return int(current or 0) + 1

    async def save(self, session: AsyncSession, record: dict[str, Any]) -> dict[str, Any]:
        """Insert or update a record, then commit. Store conflicts raise UpdateError."""
        self._assert_registered()
        values: dict[str, Any] = {}
        for field in self.fields.values():
            values.update(field.to_row(record))
        inserting = record.get("id") is None
        try:
            if inserting:
                if self.options.sortable and record.get(SORT_ORDER_PATH) is None:
                    record[SORT_ORDER_PATH] = values[SORT_ORDER_PATH] = await self._next_sort_order(session)
                result = await session.execute(insert(self.table).values(**values))
                record["id"] = result.inserted_primary_key[0]
            elif values:
                await session.execute(update(self.table).where(self.table.c.id == record["id"]).values(**values))
            for field in self.fields.values():
                await field.after_save(session, record)
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            if inserting:
                record["id"] = None
            logger.warning("Integrity error saving %s: %s", self.key, exc.orig)
            raise UpdateError(
                f"Could not save {self.singular}: a value conflicts with an existing record",
                details={"list": self.key},
            ) from exc
        return record

    async def delete_item(self, session: AsyncSession, record: Any) -> None:
        self._assert_registered()
        record_id = _record_id(record)
        for secondary in self.secondary_tables.values():
            await session.execute(delete(secondary).where(secondary.c.owner_id == record_id))
        result = await session.execute(delete(self.table).where(self.table.c.id == record_id))
        if result.rowcount == 0:
            await session.rollback()
            raise RecordNotFoundError(self.key, record_id)
        await session.commit()

    def _select_fields(self, fields: Any, ignore_noedit: bool) -> list[Field]:
        selected = self.expand_paths(fields) if fields is not None else list(self.fields.values())
        if ignore_noedit:
            return selected
        return [field for field in selected if not field.noedit]

    async def update_item(
        self,
        session: AsyncSession | None,
        record: Mapping[str, Any] | None,
        data: Mapping[str, Any] | None,
        *,
        user: Any = None,
        fields: Any = None,
        required: Any = None,
        ignore_noedit: bool = False,
    ) -> dict[str, Any]:
        """
        Validate `data`, apply it to a copy of `record` and save the copy.

        All validation failures are collected into one ValidationError. The
        caller's record is never modified; the updated copy is returned.
        Pass record=None to create a new record.
        """
        self._assert_registered()
        data = dict(data or {})
        targets = self._select_fields(fields, ignore_noedit)
        required_paths = set(split_paths(required))

        errors: dict[str, str] = {}
        for field in targets:
            outcome = await field.validate_input(data)
            if not outcome:
                errors[field.path] = outcome.message or f"Invalid value for {field.label}"
                continue
            if field.is_required(record) or field.path in required_paths:
                outcome = await field.validate_required_input(record, data)
                if not outcome:
                    errors[field.path] = outcome.message or field.required_message()
        if errors:
            raise ValidationError(f"Validation failed for {self.singular}", errors=errors)

        working = copy.deepcopy(dict(record)) if record is not None else self.new_record()
        changed: set[str] = set()
        for field in targets:
            if field.is_modified(working, data):
                changed.add(field.path)
            field.update_record(working, data)

        changed |= self._apply_watchers(working, changed)
        await self._apply_autokey(session, working, changed)
        self._apply_tracking(working, user)

        if session is not None:
            await self.save(session, working)
        return working

    def _apply_watchers(self, record: dict[str, Any], changed: set[str]) -> set[str]:
        recomputed = set()
        for field in self.fields.values():
            if field.watches(record, changed):
                record[field.path] = field.compute_value(record)
                recomputed.add(field.path)
        return recomputed

    async def _apply_autokey(self, session: AsyncSession | None, record: dict[str, Any], changed: set[str]) -> None:
        autokey = self.options.autokey
        if not autokey:
            return
        path = autokey.get("path", "key")
        sources = split_paths(autokey["from"])
        if record.get(path) and (autokey.get("fixed") or not changed.intersection(sources)):
            return
        text = " ".join(part for part in (self.fields[source].format(record) for source in sources) if part)
        if not text.strip():
            return
        value = slugify(text, separator=autokey.get("separator", "-"))
        if autokey.get("unique") and session is not None:
            value = await self.get_unique_value(session, path, value, exclude_id=record.get("id"))
        record[path] = value

    def _apply_tracking(self, record: dict[str, Any], user: Any) -> None:
        if not self._track:
            return
        now = utc_now()
        user_id = _record_id(user) if isinstance(user, Mapping) else getattr(user, "id", user)
        is_new = record.get("id") is None
        if is_new and "created_at" in self._track:
            record[self._track["created_at"]] = now
        if is_new and "created_by" in self._track and user_id is not None:
            record[self._track["created_by"]] = user_id
        if "updated_at" in self._track:
            record[self._track["updated_at"]] = now
        if "updated_by" in self._track and user_id is not None:
            record[self._track["updated_by"]] = user_id

    async def get_unique_value(
        self,
        session: AsyncSession,
        path: str,
        value: str,
        *,
        exclude_id: Any = None,
        max_attempts: int | None = None,
    ) -> str:
        """
        Find a value for `path` no other record uses: value, value-2, value-3...

        Advisory only; a unique index on the column is what guarantees it.
        """
        field = self.fields.get(path)
        if field is None:
            raise ConfigurationError(
                f"Unknown path '{path}' on list '{self.key}'",
                details={"list": self.key, "path": path},
            )
        attempts = self.registry.settings.unique_value_max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ConfigurationError(
                f"max_attempts must be at least 1, got {attempts}",
                details={"list": self.key, "path": path, "max_attempts": attempts},
            )
        column = field.column
        candidate = value
        for attempt in range(1, attempts + 1):
            query = select(self.table.c.id).where(column == candidate).limit(1)
            if exclude_id is not None:
                query = query.where(self.table.c.id != exclude_id)
            result = await session.execute(query)
            if result.first() is None:
                return candidate
            candidate = f"{value}-{attempt + 1}"
        raise UniquenessExhaustedError(path, value, attempts)

    # ── Pagination ────────────────────────────────────────────────────────────

    def _page_settings(self, per_page: int | None, max_pages: int | None) -> tuple[int, int | None]:
        settings = self.registry.settings
        per_page = per_page or self.options.per_page or settings.default_per_page
        max_pages = settings.max_pages if max_pages is None else max_pages
        return per_page, max_pages

    async def get_pages(
        self,
        session: AsyncSession,
        query: Select | None = None,
        page: Any = 1,
        per_page: int | None = None,
        max_pages: int | None = None,
    ) -> PageInfo:
        per_page, max_pages = self._page_settings(per_page, max_pages)
        total = await get_total_count(session, query if query is not None else self.build_query())
        return build_page_info(total, coerce_page(page), per_page, max_pages)

    async def paginate(
        self,
        session: AsyncSession,
        page: Any = 1,
        per_page: int | None = None,
        max_pages: int | None = None,
        filters: Any = None,
        search: Any = None,
        sort: Any = None,
        query: Select | None = None,
    ) -> PaginatedResult:
        per_page, max_pages = self._page_settings(per_page, max_pages)
        base = self.build_query(filters, search, query=query)
        info = await self.get_pages(session, base, page, per_page, max_pages)
        results: list[dict[str, Any]] = []
        if info.total:
            ordered = base.order_by(*self.expand_sort(sort), self.table.c.id.asc())
            results = await self._load(session, ordered.limit(per_page).offset((info.current_page - 1) * per_page))
        return PaginatedResult(**info.model_dump(), results=results)

    # ── Relationships ─────────────────────────────────────────────────────────

    async def get_related(self, session: AsyncSession, record: Mapping[str, Any], path: str) -> list[dict[str, Any]]:
        """Records of the referencing List that point at `record`."""
        relationship = self.relationships.get(path)
        if relationship is None:
            raise ConfigurationError(
                f"Unknown relationship '{path}' on list '{self.key}'",
                details={"list": self.key, "path": path},
            )
        target = self.registry.require(relationship.ref)
        field = target.fields.get(relationship.ref_path)
        if not isinstance(field, RelationshipField) or field.ref != self.key:
            raise ConfigurationError(
                f"'{relationship.ref}.{relationship.ref_path}' is not a relationship to '{self.key}'",
                details={"list": self.key, "path": path},
            )
        return await target.find(session, filters={relationship.ref_path: {"value": [record["id"]]}})

    async def populate_related(
        self, session: AsyncSession, records: Iterable[Mapping[str, Any]], paths: Any
    ) -> list[dict[str, Any]]:
        """Copies of `records` with relationship ids replaced by the related records."""
        populated = [dict(record) for record in records]
        for path in split_paths(paths):
            field = self.fields.get(path)
            if not isinstance(field, RelationshipField):
                raise ConfigurationError(
                    f"'{path}' on list '{self.key}' is not a relationship",
                    details={"list": self.key, "path": path},
                )
            ids: list[Any] = []
            for record in populated:
                values = field.get_data(record) if field.many else [field.get_data(record)]
                ids.extend(value for value in values if value is not None and value not in ids)
            related = {item["id"]: item for item in await field.ref_list.find_by_ids(session, ids)}
            for record in populated:
                if field.many:
                    record[path] = [related[value] for value in field.get_data(record) if value in related]
                else:
                    record[path] = related.get(field.get_data(record))
        return populated

    # ── Text index ────────────────────────────────────────────────────────────

    def declares_text_index(self) -> bool:
        return any(field.options.get("text_index") for field in self.fields.values())

    def build_search_text_index(self) -> Index | None:
        """Composite index over the search fields' columns, built once."""
        self._assert_registered()
        if self._search_index is None:
            columns = [
                self.table.c[name]
                for field in self.search_fields
                if field.text_capable
                for name in field.column_names
            ]
            if not columns:
                return None
            self._search_index = Index(f"ix_{self.table_name}_search", *columns)
        return self._search_index

    def declared_text_index(self) -> Index | None:
        """The index compiled from fields declaring `text_index`, if any."""
        name = f"ix_{self.table_name}_text"
        return next((index for index in self.table.indexes if index.name == name), None)

    async def ensure_text_index(self, connection: AsyncConnection) -> bool:
        """
        Create the text index if it is missing; True when one was ensured.

        A declared `text_index` wins over the search index built from
        searchUsesTextIndex.
        """
        self._assert_registered()
        if self.declares_text_index():
            index = self.declared_text_index()
        elif self.options.search_uses_text_index:
            index = self.build_search_text_index()
        else:
            return False
        if index is None:
            return False
        await connection.run_sync(index.create, checkfirst=True)
        return True
