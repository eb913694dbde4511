"""
Tests for List store operations and record helpers

Covers item lookup, deletion, pagination, relationships, output shapes,
CSV rows, admin URLs and the search text index.
"""

import pytest
from sqlalchemy import inspect, text

from content_model.exceptions import ConfigurationError, RecordNotFoundError


class TestRecords:
    """Test record construction and output helpers"""

    def test_new_record_holds_defaults(self, blog):
        record = blog["Post"].new_record()
        assert record["id"] is None
        assert record["state"] == "draft"
        assert record["title"] == ""
        assert record["tags"] == []
        assert record["featured"] is False

    def test_new_record_applies_data(self, blog):
        record = blog["User"].new_record({"name": "Jane Doe", "email": "JANE@example.com"})
        assert record["name_first"] == "Jane"
        assert record["email"] == "jane@example.com"

    def test_document_name(self, blog):
        assert blog["Post"].get_document_name({"id": 3, "title": "<b>Hi</b>"}) == "<b>Hi</b>"
        assert blog["Post"].get_document_name({"id": 3, "title": "<b>Hi</b>"}, escape_html=True) == "&lt;b&gt;Hi&lt;/b&gt;"
        assert blog["Post"].get_document_name({"id": 3, "title": ""}) == "3"
        assert blog["Post"].get_document_name(None) == ""
        assert blog["User"].get_document_name({"id": 1, "name_first": "Jane", "name_last": "Doe"}) == "Jane Doe"

    def test_get_data(self, blog):
        record = blog["Post"].new_record({"title": "Hi", "views": "7"})
        record["id"] = 4
        data = blog["Post"].get_data(record, "title views state")
        assert data == {"id": 4, "name": "Hi", "fields": {"title": "Hi", "views": 7.0, "state": "draft"}}

    def test_get_data_masks_passwords(self, blog):
        user = blog["User"]
        record = user.new_record({"name": "Jane Doe", "email": "jane@example.com", "password": "long enough"})
        assert user.get_data(record, "password")["fields"] == {"password": True}

    def test_csv_rows(self, blog):
        user = blog["User"]
        record = user.new_record({"name": "=cmd Doe", "email": "jane@example.com", "password": "long enough"})
        record["id"] = 1
        rows = user.get_csv_data([record])
        assert rows == [{"id": "1", "name": "'=cmd Doe", "email": "jane@example.com", "is_admin": "false"}]

    def test_csv_keeps_negative_numbers(self, blog):
        record = blog["Post"].new_record({"title": "Loss", "views": -5})
        record["id"] = 2
        assert blog["Post"].get_csv_data([record], "title views") == [{"id": "2", "title": "Loss", "views": "-5"}]

    def test_admin_url(self, blog):
        post = blog["Post"]
        assert post.get_admin_url() == "/admin/posts"
        assert post.get_admin_url({"id": 9}) == "/admin/posts/9"
        assert post.get_admin_url(12) == "/admin/posts/12"


class TestItems:
    """Test single-record lookup and deletion"""

    @pytest.mark.asyncio
    async def test_get_item(self, blog, create_record, db_session):
        post = await create_record(blog["Post"], {"title": "Found", "views": 3})
        loaded = await blog["Post"].get_item(db_session, post["id"])
        assert loaded["title"] == "Found"
        assert loaded["views"] == 3
        assert loaded["slug"] == "found"
        assert await blog["Post"].get_item(db_session, 999) is None

    @pytest.mark.asyncio
    async def test_require_item(self, blog, db_session):
        with pytest.raises(RecordNotFoundError) as exc_info:
            await blog["Post"].require_item(db_session, 999)
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Post with id '999' not found"

    @pytest.mark.asyncio
    async def test_find_by_ids_keeps_order(self, blog, create_record, db_session):
        first = await create_record(blog["Tag"], {"name": "a"})
        second = await create_record(blog["Tag"], {"name": "b"})
        records = await blog["Tag"].find_by_ids(db_session, [second["id"], 999, first["id"]])
        assert [record["name"] for record in records] == ["b", "a"]
        assert await blog["Tag"].find_by_ids(db_session, []) == []

    @pytest.mark.asyncio
    async def test_delete_item(self, blog, create_record, db_session):
        tag = await create_record(blog["Tag"], {"name": "gone"})
        post = await create_record(blog["Post"], {"title": "Doomed", "tags": [tag["id"]]})
        await blog["Post"].delete_item(db_session, post)
        assert await blog["Post"].get_item(db_session, post["id"]) is None
        secondary = blog["Post"].field("tags").secondary
        rows = (await db_session.execute(secondary.select())).all()
        assert rows == []

    @pytest.mark.asyncio
    async def test_delete_missing(self, blog, db_session):
        with pytest.raises(RecordNotFoundError):
            await blog["Post"].delete_item(db_session, 404)


@pytest.fixture
async def many_posts(blog, create_record):
    post = blog["Post"]
    for number in range(1, 24):
        await create_record(post, {"title": f"Post {number:02d}", "views": number})
    return post


class TestPagination:
    """Test paginate and get_pages"""

    @pytest.mark.asyncio
    async def test_first_page(self, many_posts, db_session):
        page = await many_posts.paginate(db_session)
        assert page.total == 23
        assert page.current_page == 1
        assert page.total_pages == 3
        assert page.pages == [1, 2, 3]
        assert page.previous is None
        assert page.next == 2
        assert (page.first, page.last) == (1, 10)
        assert [record["title"] for record in page.results][:2] == ["Post 01", "Post 02"]

    @pytest.mark.asyncio
    async def test_last_page(self, many_posts, db_session):
        page = await many_posts.paginate(db_session, page=3)
        assert len(page.results) == 3
        assert (page.first, page.last) == (21, 23)
        assert page.next is None

    @pytest.mark.asyncio
    async def test_page_beyond_range_is_clamped(self, many_posts, db_session):
        page = await many_posts.paginate(db_session, page=99)
        assert page.current_page == 3

    @pytest.mark.asyncio
    async def test_invalid_page_falls_back_to_first(self, many_posts, db_session):
        page = await many_posts.paginate(db_session, page="abc")
        assert page.current_page == 1

    @pytest.mark.asyncio
    async def test_max_pages_window(self, many_posts, db_session):
        page = await many_posts.paginate(db_session, page=5, per_page=2, max_pages=3)
        assert page.total_pages == 12
        assert page.pages == [4, 5, 6]

    @pytest.mark.asyncio
    async def test_filters_sort_and_search(self, many_posts, db_session):
        page = await many_posts.paginate(
            db_session, per_page=5, filters={"views": {"mode": "gt", "value": 20}}, sort="-views"
        )
        assert page.total == 3
        assert [record["views"] for record in page.results] == [23, 22, 21]
        page = await many_posts.paginate(db_session, search="Post 1")
        assert page.total == 10

    @pytest.mark.asyncio
    async def test_empty(self, blog, db_session):
        page = await blog["Post"].paginate(db_session)
        assert page.total == 0
        assert page.results == []
        assert (page.first, page.last) == (0, 0)

    @pytest.mark.asyncio
    async def test_per_page_option(self, registry, open_session):
        note = registry.create_list("Note", perPage=4).add({"name": "text"}).register()
        session = await open_session()
        for number in range(6):
            await note.update_item(session, None, {"name": f"n{number}"})
        page = await note.paginate(session)
        assert len(page.results) == 4
        assert page.total_pages == 2

    @pytest.mark.asyncio
    async def test_get_pages(self, many_posts, db_session):
        info = await many_posts.get_pages(db_session, page=2, per_page=20)
        assert info.total == 23
        assert info.current_page == 2
        assert (info.first, info.last) == (21, 23)


@pytest.fixture
async def tagged(blog, create_record):
    python = await create_record(blog["Tag"], {"name": "python"})
    sql = await create_record(blog["Tag"], {"name": "sql"})
    jane = await create_record(blog["User"], {"name": "Jane Doe", "email": "jane@example.com"})
    first = await create_record(blog["Post"], {"title": "First", "author": jane["id"], "tags": [python["id"]]})
    second = await create_record(blog["Post"], {"title": "Second", "tags": [sql["id"], python["id"]]})
    return {"python": python, "sql": sql, "jane": jane, "first": first, "second": second}


class TestRelationships:
    """Test back-references and population"""

    @pytest.mark.asyncio
    async def test_get_related(self, blog, tagged, db_session):
        related = await blog["Tag"].get_related(db_session, tagged["python"], "posts")
        assert [record["title"] for record in related] == ["First", "Second"]
        related = await blog["Tag"].get_related(db_session, tagged["sql"], "posts")
        assert [record["title"] for record in related] == ["Second"]

    @pytest.mark.asyncio
    async def test_get_related_unknown(self, blog, tagged, db_session):
        with pytest.raises(ConfigurationError):
            await blog["Tag"].get_related(db_session, tagged["python"], "nope")

    @pytest.mark.asyncio
    async def test_populate_related(self, blog, tagged, db_session):
        posts = await blog["Post"].find(db_session, sort="id")
        populated = await blog["Post"].populate_related(db_session, posts, "author tags")
        assert populated[0]["author"]["email"] == "jane@example.com"
        assert populated[1]["author"] is None
        assert [tag["name"] for tag in populated[1]["tags"]] == ["sql", "python"]
        # originals keep their ids
        assert posts[1]["tags"] == [tagged["sql"]["id"], tagged["python"]["id"]]

    @pytest.mark.asyncio
    async def test_populate_related_through_registry(self, registry, blog, tagged, db_session):
        posts = await blog["Post"].find(db_session, sort="id")
        populated = await registry.populate_related(db_session, "Post", posts, ["tags"])
        assert [tag["name"] for tag in populated[0]["tags"]] == ["python"]

    @pytest.mark.asyncio
    async def test_populate_non_relationship(self, blog, tagged, db_session):
        with pytest.raises(ConfigurationError):
            await blog["Post"].populate_related(db_session, [tagged["first"]], "title")

    @pytest.mark.asyncio
    async def test_updating_many_relationship_replaces_ids(self, blog, tagged, db_session):
        updated = await blog["Post"].update_item(db_session, tagged["second"], {"tags": [tagged["python"]["id"]]})
        loaded = await blog["Post"].get_item(db_session, updated["id"])
        assert loaded["tags"] == [tagged["python"]["id"]]


class TestTextIndex:
    """Test the search text index"""

    @pytest.fixture
    def article(self, registry):
        article = registry.create_list("Article", searchUsesTextIndex=True, searchFields="title, author")
        article.add({"title": "text", "author": "name", "views": "number"})
        return article.register()

    def test_index_covers_text_search_columns(self, article):
        index = article.build_search_text_index()
        assert index.name == "ix_articles_search"
        assert [column.name for column in index.columns] == ["title", "author_first", "author_last"]
        assert article.build_search_text_index() is index

    @pytest.mark.asyncio
    async def test_ensure_is_idempotent(self, registry, article, engine):
        await registry.create_all(engine)
        assert await registry.ensure_text_indexes(engine) == ["Article"]
        assert await registry.ensure_text_indexes(engine) == ["Article"]

        async with engine.connect() as conn:
            names = await conn.run_sync(lambda sync_conn: [index["name"] for index in inspect(sync_conn).get_indexes("articles")])
        assert "ix_articles_search" in names

    @pytest.mark.asyncio
    async def test_declared_index_wins_over_search_index(self, registry, engine):
        page = registry.create_list("Page", searchUsesTextIndex=True)
        page.add({"title": {"type": "text", "text_index": True}}).register()
        await registry.create_all(engine)
        assert await registry.ensure_text_indexes(engine) == ["Page"]

        async with engine.connect() as conn:
            names = await conn.run_sync(lambda sync_conn: [index["name"] for index in inspect(sync_conn).get_indexes("pages")])
        assert "ix_pages_text" in names
        assert "ix_pages_search" not in names

    @pytest.mark.asyncio
    async def test_missing_declared_index_is_recreated(self, registry, engine):
        """Tables created before the index was declared still get it"""
        page = registry.create_list("Page")
        page.add({"title": {"type": "text", "text_index": True}}).register()
        await registry.create_all(engine)
        async with engine.begin() as conn:
            await conn.execute(text("DROP INDEX ix_pages_text"))

        assert await registry.ensure_text_indexes(engine) == ["Page"]
        assert await registry.ensure_text_indexes(engine) == ["Page"]
        async with engine.connect() as conn:
            names = await conn.run_sync(lambda sync_conn: [index["name"] for index in inspect(sync_conn).get_indexes("pages")])
        assert names == ["ix_pages_text"]

    @pytest.mark.asyncio
    async def test_lists_without_option_are_skipped(self, blog, engine, registry):
        await registry.create_all(engine)
        assert await registry.ensure_text_indexes(engine) == []
