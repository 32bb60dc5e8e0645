"""Tests for the exception hierarchy."""

from school_commons.api.exception_handlers import get_http_status_code
from school_commons.core.exceptions import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheSerializationError,
    CacheTimeoutError,
    SchoolCommonsError,
    create_error_response,
)


class TestExceptions:
    """Tests for SchoolCommonsError and cache errors."""

    def test_cache_errors_share_base(self):
        for error_class in (CacheConnectionError, CacheKeyError, CacheSerializationError, CacheTimeoutError):
            assert issubclass(error_class, CacheError)
            assert issubclass(error_class, SchoolCommonsError)

    def test_error_code_defaults_to_class_name(self):
        error = CacheTimeoutError("Redis get timed out")

        assert error.error_code == "CacheTimeoutError"
        assert error.details == {}
        assert str(error) == "Redis get timed out"

    def test_create_error_response(self):
        error = CacheConnectionError(
            "Failed to connect to Redis",
            error_code="CACHE_UNAVAILABLE",
            details={"url": "redis://cache:6379/0"},
        )

        assert create_error_response(error) == {
            "error": {
                "code": "CACHE_UNAVAILABLE",
                "message": "Failed to connect to Redis",
                "details": {"url": "redis://cache:6379/0"},
                "type": "CacheConnectionError",
            }
        }

    def test_http_status_follows_exception_hierarchy(self):
        assert get_http_status_code(CacheTimeoutError("slow")) == 503
        assert get_http_status_code(SchoolCommonsError("boom")) == 500
