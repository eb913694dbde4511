"""
Pytest configuration and fixtures for content model tests

Every test gets its own ListRegistry and its own in-memory SQLite database,
so Lists registered in one test never leak into another.
"""

import pytest
from sqlalchemy.pool import StaticPool

from content_model.config import Settings
from content_model.database import build_engine, build_session_factory
from content_model.registry import ListRegistry

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def test_settings():
    """Settings for tests: in-memory database and cheap password hashing."""
    return Settings(
        _env_file=None,
        database_url=TEST_DATABASE_URL,
        password_work_factor=4,
        default_per_page=10,
        max_pages=5,
    )


@pytest.fixture
def registry(test_settings):
    """A fresh ListRegistry with the built-in field types."""
    registry = ListRegistry(settings=test_settings)
    yield registry
    registry.close()


@pytest.fixture
async def engine(test_settings):
    engine = build_engine(test_settings, poolclass=StaticPool)
    yield engine
    await engine.dispose()


@pytest.fixture
async def open_session(engine, registry):
    """
    Factory that creates tables for every List registered so far and opens
    a session. Register Lists first, then call it.
    """
    sessions = []
    factory = build_session_factory(engine)

    async def _open():
        await registry.create_all(engine)
        session = factory()
        sessions.append(session)
        return session

    yield _open

    for session in sessions:
        await session.close()


@pytest.fixture
def blog(registry):
    """
    A small blog schema: User, Tag and Post.

    Post tracks audit fields, derives a unique slug from its title and
    references User (single) and Tag (many).
    """
    user = registry.create_list("User")
    user.add(
        {
            "name": {"type": "name", "required": True},
            "email": {"type": "email", "required": True, "unique": True, "initial": True},
            "password": {"type": "password"},
            "is_admin": {"type": "boolean"},
        }
    )
    user.register()

    tag = registry.create_list("Tag")
    tag.add({"name": {"type": "text", "required": True}})
    tag.relationship("posts", ref="Post", ref_path="tags")
    tag.register()

    post = registry.create_list(
        "Post",
        track=True,
        autokey={"from": "title", "path": "slug", "unique": True},
        default_columns="title, state|20%, published_date",
    )
    post.add(
        {
            "title": {"type": "text", "required": True, "initial": True},
            "state": {"type": "select", "options": "draft, published, archived", "default": "draft"},
        },
        "Content",
        {"content": {"brief": {"type": "html"}, "extended": {"type": "html"}}},
        {
            "author": {"type": "relationship", "ref": "User"},
            "tags": {"type": "relationship", "ref": "Tag", "many": True},
            "published_date": {"type": "date"},
            "views": {"type": "number"},
            "featured": {"type": "boolean"},
        },
    )
    post.register()

    return {"User": user, "Tag": tag, "Post": post}


@pytest.fixture
async def db_session(blog, open_session):
    """Session on a database holding the blog schema."""
    return await open_session()


@pytest.fixture
def create_record(db_session):
    """Create and save a record through List.update_item."""

    async def _create(list_, data, **kwargs):
        return await list_.update_item(db_session, None, data, **kwargs)

    return _create


@pytest.fixture
def find_paths(db_session):
    """Run a filtered find and return one path's values, in id order."""

    async def _find(list_, path, filters=None, search=None):
        records = await list_.find(db_session, filters=filters, search=search, sort="id")
        return [record[path] for record in records]

    return _find
