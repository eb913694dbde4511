"""
Tests for the text field type and the shared text predicates

Filter tests run against SQLite with case-sensitive LIKE enabled, so
case-sensitive and case-insensitive modes can be told apart.
"""

import pytest

from content_model.fields.base import MISSING
from content_model.fields.types.text import crop_string
from content_model.exceptions import UpdateError


@pytest.fixture
def title(blog):
    return blog["Post"].field("title")


class TestTextValidation:
    """Test check_input and required checks"""

    def test_absent_value_is_valid(self, title):
        assert title.check_input({}).valid
        assert title.check_input(None).valid

    def test_strings_and_numbers_are_valid(self, title):
        assert title.check_input({"title": "Hello"}).valid
        assert title.check_input({"title": 42}).valid
        assert title.check_input({"title": 4.5}).valid

    def test_other_types_are_invalid(self, title):
        outcome = title.check_input({"title": ["a"]})
        assert not outcome
        assert outcome.message == "Title must be a string"
        assert not title.check_input({"title": True}).valid
        assert not title.check_input({"title": {"a": 1}}).valid

    def test_min_and_max_length(self, registry):
        post = registry.create_list("Note").add({"code": {"type": "text", "min": 2, "max": 4}}).register()
        code = post.field("code")
        assert code.check_input({"code": "abc"}).valid
        assert code.check_input({"code": "a"}).message == "Code must be at least 2 characters"
        assert code.check_input({"code": "abcde"}).message == "Code must be at most 4 characters"
        # empty strings are left to the required check
        assert code.check_input({"code": ""}).valid

    @pytest.mark.asyncio
    async def test_required_input(self, title):
        assert (await title.validate_required_input(None, {"title": "Hi"})).valid
        outcome = await title.validate_required_input(None, {})
        assert not outcome
        assert outcome.message == "Title is required"
        assert not (await title.validate_required_input(None, {"title": ""})).valid

    @pytest.mark.asyncio
    async def test_required_falls_back_to_record(self, title):
        assert (await title.validate_required_input({"title": "Stored"}, {})).valid
        assert not (await title.validate_required_input({"title": "Stored"}, {"title": ""})).valid


class TestTextUpdate:
    """Test reading, coercion and formatting"""

    def test_get_value_from_data(self, title):
        assert title.get_value_from_data({"title": "x"}) == "x"
        assert title.get_value_from_data({}) is MISSING

    def test_update_record_stores_strings(self, title):
        record = {}
        title.update_record(record, {"title": 12})
        assert record == {"title": "12"}

    def test_update_record_ignores_absent(self, title):
        record = {"title": "keep"}
        title.update_record(record, {"other": "x"})
        assert record == {"title": "keep"}

    def test_empty_values_store_empty_string(self, title):
        record = {"title": "old"}
        title.update_record(record, {"title": None})
        assert record["title"] == ""

    def test_coerce_rejects_lists(self, title):
        with pytest.raises(UpdateError) as exc_info:
            title.coerce(["a"])
        assert exc_info.value.path == "title"

    def test_is_modified(self, title):
        assert title.is_modified({"title": "a"}, {"title": "b"})
        assert not title.is_modified({"title": "a"}, {"title": "a"})
        assert not title.is_modified({"title": "a"}, {})

    def test_format(self, title):
        assert title.format({"title": "Hello"}) == "Hello"
        assert title.format({"title": None}) == ""
        assert title.format(None) == ""

    def test_crop(self, title):
        record = {"title": "The quick brown fox"}
        assert title.crop(record, 9) == "The quick"
        assert title.crop(record, 12, "...") == "The quick br..."
        assert title.crop(record, 12, "...", preserve_words=True) == "The quick..."
        assert title.crop(record, 50) == "The quick brown fox"

    def test_crop_string_empty(self):
        assert crop_string(None, 5) == ""
        assert crop_string("", 5) == ""

    def test_options(self, title):
        options = title.get_options()
        assert options["type"] == "text"
        assert options["label"] == "Title"
        assert options["required"] is True
        assert options["initial"] is True
        assert options["monospace"] is False


@pytest.fixture
async def posts(blog, create_record):
    post = blog["Post"]
    await create_record(post, {"title": "Hello World", "content_brief": "Intro"})
    await create_record(post, {"title": "hello there"})
    await create_record(post, {"title": "Goodbye 100% sure"})
    return post


class TestTextFilters:
    """Test text filter modes against the database"""

    @pytest.mark.asyncio
    async def test_contains_is_case_insensitive_by_default(self, posts, find_paths):
        titles = await find_paths(posts, "title", {"title": {"value": "HELLO"}})
        assert titles == ["Hello World", "hello there"]

    @pytest.mark.asyncio
    async def test_scalar_shorthand(self, posts, find_paths):
        assert await find_paths(posts, "title", {"title": "there"}) == ["hello there"]

    @pytest.mark.asyncio
    async def test_exactly(self, posts, find_paths):
        titles = await find_paths(posts, "title", {"title": {"value": "hello world", "mode": "exactly"}})
        assert titles == ["Hello World"]

    @pytest.mark.asyncio
    async def test_exactly_case_sensitive(self, posts, find_paths):
        filters = {"title": {"value": "hello world", "mode": "exactly", "caseSensitive": True}}
        assert await find_paths(posts, "title", filters) == []

    @pytest.mark.asyncio
    async def test_begins_with_accepts_camel_case_mode(self, posts, find_paths):
        titles = await find_paths(posts, "title", {"title": {"value": "good", "mode": "beginsWith"}})
        assert titles == ["Goodbye 100% sure"]

    @pytest.mark.asyncio
    async def test_ends_with(self, posts, find_paths):
        assert await find_paths(posts, "title", {"title": {"value": "THERE", "mode": "ends_with"}}) == ["hello there"]

    @pytest.mark.asyncio
    async def test_case_sensitive_contains(self, posts, find_paths):
        filters = {"title": {"value": "hello", "case_sensitive": True}}
        assert await find_paths(posts, "title", filters) == ["hello there"]

    @pytest.mark.asyncio
    async def test_inverted(self, posts, find_paths):
        titles = await find_paths(posts, "title", {"title": {"value": "hello", "inverted": True}})
        assert titles == ["Goodbye 100% sure"]

    @pytest.mark.asyncio
    async def test_wildcards_are_escaped(self, posts, find_paths):
        assert await find_paths(posts, "title", {"title": "100%"}) == ["Goodbye 100% sure"]
        assert await find_paths(posts, "title", {"title": "%"}) == ["Goodbye 100% sure"]

    @pytest.mark.asyncio
    async def test_empty_value_is_ignored_outside_exactly(self, posts, find_paths):
        assert len(await find_paths(posts, "title", {"title": {"value": ""}})) == 3

    @pytest.mark.asyncio
    async def test_empty_exactly_matches_empty_values(self, posts, find_paths):
        filters = {"content_brief": {"value": "", "mode": "exactly"}}
        assert await find_paths(posts, "title", filters) == ["hello there", "Goodbye 100% sure"]

    @pytest.mark.asyncio
    async def test_empty_exactly_inverted_matches_present_values(self, posts, find_paths):
        filters = {"content_brief": {"value": "", "mode": "exactly", "inverted": True}}
        assert await find_paths(posts, "title", filters) == ["Hello World"]

    @pytest.mark.asyncio
    async def test_malformed_filter_is_ignored(self, posts, find_paths):
        assert len(await find_paths(posts, "title", {"title": {"value": ["a", "b"]}})) == 3

    @pytest.mark.asyncio
    async def test_search(self, posts, find_paths):
        assert await find_paths(posts, "title", search="WORLD") == ["Hello World"]
