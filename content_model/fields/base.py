"""
Field Base Class

Field: abstract strategy object bound to one path of one List. Every field
type implements the same capability contract (schema contribution, input
validation, record update, formatting, filter translation) so Lists can stay
ignorant of field semantics.

Records are plain dicts keyed by column name. Single-column fields use their
path as the column name.
"""

from __future__ import annotations

import copy
import weakref
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import Column, String, not_, or_
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.types import TypeEngine

from content_model.constants import FieldSize
from content_model.exceptions import ConfigurationError, UpdateError
from content_model.schemas.filters import FilterModel
from content_model.utils.labels import key_to_label
from content_model.utils.security import sanitize_csv_field

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from content_model.lists.list import List
    from content_model.lists.schema import SchemaBuilder


class _Missing:
    """Marker for a path that is absent from the input data."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of a field validation: a valid flag and an optional message."""

    valid: bool
    message: str | None = None

    def __bool__(self) -> bool:
        return self.valid

    @classmethod
    def ok(cls) -> ValidationOutcome:
        return cls(True)

    @classmethod
    def fail(cls, message: str) -> ValidationOutcome:
        return cls(False, message)


def is_empty(value: Any) -> bool:
    """True for absent, None, empty strings and empty collections."""
    if value is MISSING or value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def invert(predicate: ColumnElement, *columns: Column) -> ColumnElement:
    """Negate a predicate so that null values match, like a document store's $not."""
    return or_(not_(predicate), *(column.is_(None) for column in columns))


class Field(ABC):
    """
    Abstract base class for all field types.

    Subclasses set the class attributes below and implement `check_input`
    and `add_filter_to_query`. Everything else has a working default that
    suits single-column scalar fields.
    """

    type_name: ClassVar[str]
    proper_name: ClassVar[str]
    native_type: ClassVar[type[TypeEngine]] = String
    fixed_size: ClassVar[str | None] = None
    default_size: ClassVar[str] = FieldSize.MEDIUM.value
    default_options: ClassVar[dict[str, Any]] = {}
    properties: ClassVar[tuple[str, ...]] = ()
    filter_model: ClassVar[type[FilterModel]] = FilterModel
    text_capable: ClassVar[bool] = False
    empty_value: ClassVar[Any] = None

    def __init__(self, list_: List, path: str, options: Mapping[str, Any] | None = None) -> None:
        self._list_ref = weakref.ref(list_)
        self.path = path
        self.options: dict[str, Any] = {**self.default_options, **dict(options or {})}
        self.label: str = self.options.get("label") or key_to_label(path)
        self.type_description: str = self.options.get("type_description") or self.proper_name
        self._size = self._resolve_size()
        self.configure()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.path!r}>"

    def configure(self) -> None:  # noqa: B027
        """Type-specific setup; raise ConfigurationError for invalid options."""

    # ── Binding ───────────────────────────────────────────────────────────────

    @property
    def list(self) -> List:
        list_ = self._list_ref()
        if list_ is None:
            raise ConfigurationError(f"Field '{self.path}' is no longer bound to a list", details={"path": self.path})
        return list_

    @property
    def column_names(self) -> tuple[str, ...]:
        """Columns this field stores on the List's table."""
        return (self.path,)

    @property
    def column(self) -> Column:
        table = self.list.table
        if table is None:
            raise ConfigurationError(
                f"List '{self.list.key}' has not been registered",
                details={"list": self.list.key, "path": self.path},
            )
        return table.c[self.path]

    def sort_columns(self) -> list[Column]:
        table = self.list.table
        if table is None:
            return []
        return [table.c[name] for name in self.column_names]

    # ── Options ───────────────────────────────────────────────────────────────

    def _resolve_size(self) -> str:
        if self.fixed_size:
            return self.fixed_size
        size = self.options.get("size") or self.options.get("width")
        if size in {member.value for member in FieldSize}:
            return size
        return self.default_size

    @property
    def size(self) -> str:
        return self._size

    @property
    def initial(self) -> bool:
        return bool(self.options.get("initial", False))

    @property
    def required(self) -> bool:
        return bool(self.options.get("required", False))

    def is_required(self, record: Mapping[str, Any] | None = None) -> bool:
        """Evaluate the required option, which may be a predicate of the record."""
        required = self.options.get("required", False)
        if callable(required):
            return bool(required(record or {}))
        return bool(required)

    @property
    def note(self) -> str:
        return self.options.get("note") or ""

    @property
    def noedit(self) -> bool:
        return bool(self.options.get("noedit", False))

    @property
    def nocol(self) -> bool:
        return bool(self.options.get("nocol", False))

    @property
    def nosort(self) -> bool:
        return bool(self.options.get("nosort", False))

    @property
    def collapse(self) -> bool:
        return bool(self.options.get("collapse", False))

    @property
    def hidden(self) -> bool:
        return bool(self.options.get("hidden", False))

    @property
    def indent(self) -> bool:
        return bool(self.options.get("indent", False))

    @property
    def depends_on(self) -> dict[str, Any] | None:
        return self.options.get("depends_on") or None

    @property
    def index(self) -> bool:
        return bool(self.options.get("index", False))

    @property
    def unique(self) -> bool:
        return bool(self.options.get("unique", False))

    def get_default_value(self) -> Any:
        default = self.options.get("default", self.empty_value)
        if callable(default):
            return default()
        return copy.deepcopy(default)

    def get_options(self) -> dict[str, Any]:
        """Serializable metadata for the admin layer."""
        options: dict[str, Any] = {
            "path": self.path,
            "type": self.type_name,
            "label": self.label,
            "type_description": self.type_description,
            "size": self.size,
            "initial": self.initial,
            "required": bool(self.options.get("required", False)),
            "note": self.note,
            "noedit": self.noedit,
            "nocol": self.nocol,
            "nosort": self.nosort,
            "collapse": self.collapse,
            "hidden": self.hidden,
            "indent": self.indent,
            "depends_on": self.depends_on,
        }
        default = self.options.get("default", self.empty_value)
        if not callable(default):
            options["default_value"] = copy.deepcopy(default)
        for name in self.properties:
            options[name] = getattr(self, name, self.options.get(name))
        return options

    # ── Schema ────────────────────────────────────────────────────────────────

    def column_type(self) -> TypeEngine:
        return self.native_type()

    def add_to_schema(self, builder: SchemaBuilder) -> None:
        builder.add_column(
            self,
            Column(self.path, self.column_type(), index=self.index and not self.unique, unique=self.unique, nullable=True),
        )

    # ── Reading ───────────────────────────────────────────────────────────────

    def get_value_from_data(self, data: Mapping[str, Any] | None, subpath: str | None = None) -> Any:
        """Return the candidate value for this path, or MISSING."""
        if not isinstance(data, Mapping):
            return MISSING
        key = f"{self.path}_{subpath}" if subpath else self.path
        return data.get(key, MISSING)

    def get_data(self, record: Mapping[str, Any] | None) -> Any:
        if not record:
            return self.empty_value
        return record.get(self.path, self.empty_value)

    def set_default(self, record: dict[str, Any]) -> None:
        record[self.path] = self.get_default_value()

    def load_row(self, row: Mapping[str, Any], record: dict[str, Any]) -> None:
        for name in self.column_names:
            record[name] = row.get(name)

    def to_row(self, record: Mapping[str, Any]) -> dict[str, Any]:
        return {name: record[name] for name in self.column_names if name in record}

    def format(self, record: Mapping[str, Any] | None, *args: Any, **kwargs: Any) -> str:
        """Human-readable value; never raises and renders absent values as ''."""
        if not record:
            return ""
        try:
            return self.format_value(self.get_data(record), *args, **kwargs)
        except (TypeError, ValueError, ArithmeticError, AttributeError):
            return ""

    def format_value(self, value: Any, *args: Any, **kwargs: Any) -> str:
        if is_empty(value):
            return ""
        return str(value)

    def get_csv_value(self, record: Mapping[str, Any] | None) -> str:
        return sanitize_csv_field(self.format(record))

    # ── Validation ────────────────────────────────────────────────────────────

    @abstractmethod
    def check_input(self, data: Mapping[str, Any] | None) -> ValidationOutcome:
        """Synchronous structural check of the candidate value."""

    async def validate_input(self, data: Mapping[str, Any] | None) -> ValidationOutcome:
        return self.check_input(data)

    def is_empty_value(self, value: Any) -> bool:
        return is_empty(value)

    def required_message(self) -> str:
        return f"{self.label} is required"

    def check_required_input(
        self, record: Mapping[str, Any] | None, data: Mapping[str, Any] | None
    ) -> ValidationOutcome:
        value = self.get_value_from_data(data)
        if value is MISSING:
            if record is not None:
                value = self.get_data(record)
            else:
                value = self.get_default_value()
        if self.is_empty_value(value):
            return ValidationOutcome.fail(self.required_message())
        return ValidationOutcome.ok()

    async def validate_required_input(
        self, record: Mapping[str, Any] | None, data: Mapping[str, Any] | None
    ) -> ValidationOutcome:
        return self.check_required_input(record, data)

    # ── Updating ──────────────────────────────────────────────────────────────

    def coerce(self, value: Any) -> Any:
        """Convert an accepted input value to its stored form or raise UpdateError."""
        if is_empty(value):
            return self.empty_value
        return value

    def update_record(self, record: dict[str, Any], data: Mapping[str, Any] | None) -> None:
        value = self.get_value_from_data(data)
        if value is MISSING:
            return
        record[self.path] = self.coerce(value)

    def is_modified(self, record: Mapping[str, Any] | None, data: Mapping[str, Any] | None) -> bool:
        value = self.get_value_from_data(data)
        if value is MISSING:
            return False
        try:
            new_value = self.coerce(value)
        except UpdateError:
            return True
        return new_value != self.get_data(record)

    def update_error(self, message: str | None = None) -> UpdateError:
        return UpdateError(message or f"Invalid value for {self.label}", path=self.path)

    # ── Watching ──────────────────────────────────────────────────────────────

    def watches(self, record: Mapping[str, Any], changed: Iterable[str]) -> bool:
        """True when this field's `value` callable should be re-run."""
        watch = self.options.get("watch")
        if not watch or not callable(self.options.get("value")):
            return False
        changed = set(changed)
        if watch is True:
            return bool(changed)
        if callable(watch):
            return bool(watch(record))
        if isinstance(watch, str):
            watch = watch.replace(",", " ").split()
        if isinstance(watch, Mapping):
            return any(path in changed and record.get(path) == expected for path, expected in watch.items())
        return any(path in changed for path in watch)

    def compute_value(self, record: Mapping[str, Any]) -> Any:
        return self.coerce(self.options["value"](record))

    # ── Filtering & search ────────────────────────────────────────────────────

    def parse_filter(self, raw: Any) -> FilterModel | None:
        """Parse a filter payload; scalars are shorthand for {"value": scalar}."""
        if isinstance(raw, self.filter_model):
            return raw
        if not isinstance(raw, Mapping):
            raw = {"value": raw}
        try:
            return self.filter_model.model_validate(raw)
        except PydanticValidationError:
            return None

    @abstractmethod
    def add_filter_to_query(self, filter: Any) -> ColumnElement | None:
        """Translate a filter payload into a predicate, or None for no-op."""

    def add_search_to_query(self, term: str) -> ColumnElement | None:
        return None

    # ── Persistence hooks ─────────────────────────────────────────────────────

    async def after_save(self, session: AsyncSession, record: dict[str, Any]) -> None:  # noqa: B027
        """Persist state that does not live on the List's own table."""

    async def after_load(self, session: AsyncSession, records: list[dict[str, Any]]) -> None:  # noqa: B027
        """Attach state that does not live on the List's own table."""
