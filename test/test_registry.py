"""
Tests for ListRegistry

Covers list creation and lookup, orphan detection for admin navigation,
schema bootstrap and teardown.
"""

import pytest
from sqlalchemy import inspect

from content_model.exceptions import ConfigurationError, DuplicateListError, ListNotFoundError
from content_model.fields.registry import FieldTypeRegistry
from content_model.registry import ListRegistry


class TestLookup:
    """Test registration and lookup by key"""

    def test_lists_in_registration_order(self, registry, blog):
        assert [list_.key for list_ in registry.lists()] == ["User", "Tag", "Post"]
        assert [list_.key for list_ in registry] == ["User", "Tag", "Post"]
        assert len(registry) == 3

    def test_get_and_require(self, registry, blog):
        assert registry.get("Post") is blog["Post"]
        assert registry.get("Ghost") is None
        assert registry.require("Tag") is blog["Tag"]
        with pytest.raises(ListNotFoundError) as exc_info:
            registry.require("Ghost")
        assert exc_info.value.details == {"list": "Ghost"}

    def test_contains(self, registry, blog):
        assert "User" in registry
        assert "user" not in registry

    def test_unregistered_lists_are_not_visible(self, registry):
        """A List is only looked up once register() has run"""
        draft = registry.create_list("Draft").add({"title": "text"})
        assert "Draft" not in registry
        draft.register()
        assert registry.require("Draft") is draft

    def test_duplicate_key(self, registry):
        registry.create_list("Post").add({"title": "text"}).register()
        with pytest.raises(DuplicateListError):
            registry.create_list("Post").add({"title": "text"}).register()

    def test_duplicate_table_name(self, registry):
        registry.create_list("Post").add({"title": "text"}).register()
        with pytest.raises(ConfigurationError) as exc_info:
            registry.create_list("Article", tableName="posts").add({"title": "text"}).register()
        assert exc_info.value.details["table"] == "posts"

    def test_custom_field_type_registry(self, test_settings):
        field_types = FieldTypeRegistry()
        registry = ListRegistry(field_types=field_types, settings=test_settings)
        assert registry.field_types is field_types
        assert registry.settings is test_settings


class TestOrphanedLists:
    """Test detection of Lists missing from the admin navigation"""

    def test_no_nav(self, registry, blog):
        assert [list_.key for list_ in registry.get_orphaned_lists()] == ["User", "Tag", "Post"]

    def test_mapping_nav_by_key_and_path(self, registry, blog):
        nav = {"content": ["Post", "tags"], "people": "users"}
        assert registry.get_orphaned_lists(nav) == []

    def test_partial_nav(self, registry, blog):
        """Sections may be plain keys or lists of keys"""
        orphans = registry.get_orphaned_lists({"content": ["posts"]})
        assert [list_.key for list_ in orphans] == ["User", "Tag"]
        orphans = registry.get_orphaned_lists(["User", ["Tag"]])
        assert [list_.key for list_ in orphans] == ["Post"]

    def test_hidden_lists_excluded(self, registry):
        registry.create_list("Setting", hidden=True).add({"value": "text"}).register()
        registry.create_list("Page").add({"title": "text"}).register()
        assert [list_.key for list_ in registry.get_orphaned_lists({})] == ["Page"]


class TestSchemaBootstrap:
    """Test creating and dropping tables"""

    @pytest.mark.asyncio
    async def test_create_all(self, registry, blog, engine):
        await registry.create_all(engine)
        async with engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        assert {"users", "tags", "posts", "posts__tags"} <= set(tables)

    @pytest.mark.asyncio
    async def test_create_all_is_idempotent(self, registry, blog, engine):
        await registry.create_all(engine)
        await registry.create_all(engine)

    @pytest.mark.asyncio
    async def test_drop_all(self, registry, blog, engine):
        await registry.create_all(engine)
        await registry.drop_all(engine)
        async with engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        assert "posts" not in tables


class TestClose:
    def test_close_releases_lists_and_metadata(self, registry, blog):
        """close() forgets every List and clears the schema metadata"""
        registry.close()
        assert len(registry) == 0
        assert registry.get("Post") is None
        assert len(registry.metadata.tables) == 0

    def test_keys_can_be_reused_after_close(self, registry, blog):
        registry.close()
        post = registry.create_list("Post").add({"title": "text"}).register()
        assert registry.require("Post") is post
