"""
Tests for custom exception classes

Tests exception initialization, messages, status codes, error codes and
details.
"""

from fastapi import status

from content_model.exceptions import (
    ConfigurationError,
    ContentModelError,
    DuplicateListError,
    DuplicatePathError,
    ErrorCode,
    ListAlreadyRegisteredError,
    ListFrozenError,
    ListNotFoundError,
    RecordNotFoundError,
    ReservedPathError,
    UniquenessExhaustedError,
    UnknownFieldTypeError,
    UpdateError,
    ValidationError,
)


class TestContentModelError:
    """Test base ContentModelError class"""

    def test_default(self):
        """Test ContentModelError with default values"""
        exc = ContentModelError("Test error")
        assert str(exc) == "Test error"
        assert exc.message == "Test error"
        assert exc.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert exc.details == {}
        assert exc.error_code == ErrorCode.INTERNAL_ERROR

    def test_with_custom_status_and_details(self):
        """Test ContentModelError with custom status code and details"""
        exc = ContentModelError("Test error", status_code=status.HTTP_400_BAD_REQUEST, details={"count": 42})
        assert exc.status_code == status.HTTP_400_BAD_REQUEST
        assert exc.details["count"] == 42


class TestConfigurationErrors:
    """Test errors raised while declaring Lists"""

    def test_configuration_error(self):
        """Configuration errors are server faults"""
        exc = ConfigurationError("Bad list")
        assert isinstance(exc, ContentModelError)
        assert exc.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert exc.error_code == ErrorCode.CONFIGURATION_ERROR

    def test_unknown_field_type(self):
        """Test UnknownFieldTypeError message and details"""
        exc = UnknownFieldTypeError("hologram", path="cover", list_key="Post")
        assert str(exc) == "Unknown field type 'hologram' for path 'cover' on list 'Post'"
        assert exc.details == {"type_tag": "hologram", "path": "cover", "list": "Post"}
        assert exc.error_code == ErrorCode.UNKNOWN_FIELD_TYPE
        assert isinstance(exc, ConfigurationError)

    def test_unknown_field_type_without_context(self):
        assert str(UnknownFieldTypeError("hologram")) == "Unknown field type 'hologram'"

    def test_duplicate_and_reserved_paths(self):
        duplicate = DuplicatePathError("Post", "title")
        reserved = ReservedPathError("Post", "id")
        assert duplicate.error_code == ErrorCode.DUPLICATE_PATH
        assert reserved.error_code == ErrorCode.RESERVED_PATH
        assert str(reserved) == "Path 'id' on list 'Post' is reserved"

    def test_list_state_errors(self):
        frozen = ListFrozenError("Post", "add fields to")
        assert str(frozen) == "Cannot add fields to list 'Post' after it has been registered"
        assert frozen.details == {"list": "Post", "operation": "add fields to"}
        assert ListAlreadyRegisteredError("Post").error_code == ErrorCode.LIST_ALREADY_REGISTERED
        assert DuplicateListError("Post").error_code == ErrorCode.DUPLICATE_LIST
        assert str(ListNotFoundError("Ghost")) == "Unknown list 'Ghost'"


class TestRecordErrors:
    """Test errors raised while validating and saving records"""

    def test_validation_error(self):
        """Test ValidationError carries per-path messages"""
        exc = ValidationError("Validation failed for Post", errors={"title": "Title is required"})
        assert exc.status_code == status.HTTP_400_BAD_REQUEST
        assert exc.errors == {"title": "Title is required"}
        assert exc.details == {"fields": {"title": "Title is required"}}
        assert exc.error_code == ErrorCode.VALIDATION_FAILED

    def test_validation_error_defaults(self):
        exc = ValidationError()
        assert exc.message == "Validation failed"
        assert exc.errors == {}
        assert exc.details == {}

    def test_update_error(self):
        """Test UpdateError records its path"""
        exc = UpdateError("Invalid value for Views", path="views", details={"value": "x"})
        assert exc.path == "views"
        assert exc.details == {"value": "x", "path": "views"}
        assert exc.status_code == status.HTTP_400_BAD_REQUEST

    def test_uniqueness_exhausted(self):
        exc = UniquenessExhaustedError("slug", "my-post", 10)
        assert exc.status_code == status.HTTP_409_CONFLICT
        assert "my-post" in exc.message
        assert exc.error_code == ErrorCode.UNIQUENESS_EXHAUSTED

    def test_record_not_found(self):
        """Test RecordNotFoundError with and without an id"""
        assert str(RecordNotFoundError("Post")) == "Post not found"
        exc = RecordNotFoundError("Post", 5)
        assert str(exc) == "Post with id '5' not found"
        assert exc.status_code == status.HTTP_404_NOT_FOUND
        assert exc.details == {"list": "Post", "record_id": 5}

    def test_error_codes_are_strings(self):
        assert ErrorCode.RECORD_NOT_FOUND == "RESOURCE_RECORD_NOT_FOUND"
        assert all(isinstance(code.value, str) for code in ErrorCode)
