"""Unit tests for common Pydantic schemas."""

from session_export.schemas.common import ErrorResponse, PaginationMeta


class TestPaginationMeta:
    """Tests for PaginationMeta."""

    def test_fields(self) -> None:
        meta = PaginationMeta(total=45, page=2, page_size=20, total_pages=3)
        assert meta.model_dump() == {"total": 45, "page": 2, "page_size": 20, "total_pages": 3}


class TestErrorResponse:
    """Tests for ErrorResponse."""

    def test_detail_only(self) -> None:
        """ErrorResponse with only detail field."""
        err = ErrorResponse(detail="Not found")
        assert err.model_dump() == {"detail": "Not found", "errors": None}

    def test_with_field_errors(self) -> None:
        """Field errors are carried as given."""
        err = ErrorResponse(detail="Invalid export filters", errors={"range_start": "range_start is required"})
        assert err.errors == {"range_start": "range_start is required"}
