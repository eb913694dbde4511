"""
List Registry

ListRegistry: the explicit home of every List in an application. It owns the
SQLAlchemy MetaData the Lists compile onto, the FieldTypeRegistry used to
resolve their fields, and the Settings they read defaults from.

Create one at startup, declare and register Lists against it, then call
create_all() and ensure_text_indexes() before serving requests. close()
tears it down.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from sqlalchemy import MetaData

from content_model.config import Settings
from content_model.config import settings as default_settings
from content_model.exceptions import ConfigurationError, DuplicateListError, ListNotFoundError
from content_model.fields.registry import FieldTypeRegistry, default_field_types
from content_model.lists.list import List

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

logger = logging.getLogger(__name__)


class ListRegistry:
    """Registered Lists by key, plus the shared schema metadata."""

    def __init__(self, field_types: FieldTypeRegistry | None = None, settings: Settings | None = None) -> None:
        self.field_types = field_types if field_types is not None else default_field_types()
        self.settings = settings or default_settings
        self.metadata = MetaData()
        self._lists: dict[str, List] = {}

    # ── Registration ──────────────────────────────────────────────────────────

    def create_list(self, key: str, **options: Any) -> List:
        """Start building a List bound to this registry."""
        return List(key, self, **options)

    def ensure_can_register(self, list_: List) -> None:
        if list_.key in self._lists:
            raise DuplicateListError(list_.key)
        if list_.table_name in self.metadata.tables:
            raise ConfigurationError(
                f"Table '{list_.table_name}' is already used by another list",
                details={"list": list_.key, "table": list_.table_name},
            )

    def add_list(self, list_: List) -> List:
        """Record a registered List. Called by List.register()."""
        if list_.key in self._lists:
            raise DuplicateListError(list_.key)
        self._lists[list_.key] = list_
        logger.info("List registered: %s (%d fields)", list_.key, len(list_.fields))
        return list_

    # ── Lookup ────────────────────────────────────────────────────────────────

    def get(self, key: str) -> List | None:
        return self._lists.get(key)

    def require(self, key: str) -> List:
        list_ = self._lists.get(key)
        if list_ is None:
            raise ListNotFoundError(key)
        return list_

    def lists(self) -> list[List]:
        """Return all registered Lists in registration order."""
        return list(self._lists.values())

    def __contains__(self, key: object) -> bool:
        return key in self._lists

    def __iter__(self) -> Iterator[List]:
        return iter(list(self._lists.values()))

    def __len__(self) -> int:
        return len(self._lists)

    def get_orphaned_lists(self, nav: Mapping[str, Any] | Iterable[Any] | None = None) -> list[List]:
        """
        Lists that no admin navigation section mentions.

        `nav` maps section names to a list key or a list of keys; hidden
        Lists are never reported.
        """
        listed: set[str] = set()
        sections = nav.values() if isinstance(nav, Mapping) else (nav or [])
        for section in sections:
            if isinstance(section, str):
                listed.add(section)
            else:
                listed.update(str(key) for key in section)
        return [
            list_
            for list_ in self._lists.values()
            if not list_.options.hidden and list_.key not in listed and list_.path not in listed
        ]

    # ── Store bootstrap ───────────────────────────────────────────────────────

    async def create_all(self, engine: AsyncEngine) -> None:
        async with engine.begin() as conn:
            await conn.run_sync(self.metadata.create_all)
        logger.info("Created tables for %d lists", len(self._lists))

    async def drop_all(self, engine: AsyncEngine) -> None:
        async with engine.begin() as conn:
            await conn.run_sync(self.metadata.drop_all)

    async def ensure_text_indexes(self, engine: AsyncEngine) -> list[str]:
        """Ensure search indexes for every List that uses one; returns their keys."""
        ensured = []
        async with engine.begin() as conn:
            for list_ in self._lists.values():
                if await list_.ensure_text_index(conn):
                    ensured.append(list_.key)
        if ensured:
            logger.info("Search text indexes ensured for: %s", ", ".join(ensured))
        return ensured

    async def populate_related(
        self, session: AsyncSession, list_key: str, records: Iterable[Mapping[str, Any]], paths: Any
    ) -> list[dict[str, Any]]:
        return await self.require(list_key).populate_related(session, records, paths)

    # ── Teardown ──────────────────────────────────────────────────────────────

    def close(self) -> None:
        """Forget every List and clear the schema metadata."""
        count = len(self._lists)
        self._lists.clear()
        self.metadata.clear()
        logger.info("List registry closed (%d lists released)", count)
