"""
Field Type Registry

FieldTypeRegistry: explicit mapping from type tags to Field classes. Lists
resolve their FieldSpecs through it at registration time.

Built-in types are registered explicitly by default_field_types(); there is
no discovery. Host applications copy a registry and register their own
types on the copy.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from content_model.exceptions import ConfigurationError, UnknownFieldTypeError
from content_model.fields.base import Field
from content_model.fields.types import BUILTIN_FIELD_TYPES, BUILTIN_ALIASES

if TYPE_CHECKING:
    from content_model.lists.list import List
    from content_model.schemas.field_spec import FieldSpec

logger = logging.getLogger(__name__)


class FieldTypeRegistry:
    """
    Registry of field types.

    Tags are matched case-insensitively; a type's proper name and any
    declared aliases resolve to its tag.
    """

    def __init__(self) -> None:
        self._types: dict[str, type[Field]] = {}
        self._aliases: dict[str, str] = {}

    # ── Registration ──────────────────────────────────────────────────────────

    def register(
        self, field_type: type[Field], *, aliases: Iterable[str] = (), replace: bool = False
    ) -> type[Field]:
        """Register a Field subclass under its type_name and aliases."""
        if not isinstance(field_type, type) or not issubclass(field_type, Field):
            raise ConfigurationError(
                f"{field_type!r} is not a Field subclass",
                details={"type": repr(field_type)},
            )
        tag = field_type.type_name.lower()
        if tag in self._types and not replace:
            raise ConfigurationError(
                f"Field type '{tag}' is already registered",
                details={"type_tag": tag},
            )
        if replace:
            self.unregister(tag)
        self._types[tag] = field_type
        for alias in (field_type.proper_name, *aliases):
            self._aliases.setdefault(alias.lower(), tag)
        logger.debug("Field type registered: %s (%s)", tag, field_type.__name__)
        return field_type

    def unregister(self, tag: str) -> type[Field] | None:
        """Remove a type and its aliases; returns the removed class, if any."""
        tag = self._normalize(tag)
        field_type = self._types.pop(tag, None)
        self._aliases = {alias: target for alias, target in self._aliases.items() if target != tag}
        return field_type

    # ── Lookup ────────────────────────────────────────────────────────────────

    def _normalize(self, tag: str) -> str:
        key = tag.strip().lower()
        return self._aliases.get(key, key)

    def get(self, tag: Any) -> type[Field] | None:
        """Return the Field class for a tag or class, or None if not registered."""
        if isinstance(tag, type):
            return tag if tag in self._types.values() else None
        if not isinstance(tag, str):
            return None
        return self._types.get(self._normalize(tag))

    def resolve(self, tag: Any, path: str | None = None, list_key: str | None = None) -> type[Field]:
        field_type = self.get(tag)
        if field_type is None:
            raise UnknownFieldTypeError(tag, path=path, list_key=list_key)
        return field_type

    def create(self, list_: List, spec: FieldSpec) -> Field:
        """Instantiate the field a spec describes, bound to `list_`."""
        field_type = self.resolve(spec.type_tag, path=spec.path, list_key=list_.key)
        return field_type(list_, spec.path, spec.options)

    def tags(self) -> list[str]:
        """Return registered tags in registration order."""
        return list(self._types)

    def __contains__(self, tag: Any) -> bool:
        return self.get(tag) is not None

    def __len__(self) -> int:
        return len(self._types)

    def copy(self) -> FieldTypeRegistry:
        clone = FieldTypeRegistry()
        clone._types = dict(self._types)
        clone._aliases = dict(self._aliases)
        return clone


def default_field_types() -> FieldTypeRegistry:
    """Build a fresh registry holding the built-in field types."""
    registry = FieldTypeRegistry()
    for field_type in BUILTIN_FIELD_TYPES:
        registry.register(field_type, aliases=BUILTIN_ALIASES.get(field_type.type_name, ()))
    return registry
