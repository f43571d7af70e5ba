"""
Unit tests for Pydantic models

Tests model validation, serialization, and filter translation.
"""
from datetime import date, datetime

import pytest
from pydantic import ValidationError

from src.core.errors import (
    ChunkWriteFailure,
    EmptyResultSet,
    NoApplicableRecords,
    SizeLimitExceeded,
    UnsupportedFormat,
)
from src.core.models import (
    EXPORT_COLUMNS,
    MAX_FIELD_LENGTH,
    ExportFilter,
    ExportResult,
    IngestionResult,
    Record,
    RecordInput,
    TicketStatus,
    UpsertOutcome,
)


class TestTicketStatus:

    @pytest.mark.parametrize("value, expected", [
        ("Processing", TicketStatus.PROCESSING),
        ("resolved", TicketStatus.RESOLVED),
        ("  REJECTED ", TicketStatus.REJECTED),
        ("raised", TicketStatus.RAISED),
        ("closed", TicketStatus.RAISED),
        ("", TicketStatus.RAISED),
        (None, TicketStatus.RAISED),
    ])
    def test_coerce(self, value, expected):
        assert TicketStatus.coerce(value) is expected


class TestRecordInput:

    def test_valid_record(self):
        record = RecordInput(natural_id=" T-1 ", description="d", status="Resolved")

        assert record.natural_id == "T-1"
        assert record.status == TicketStatus.RESOLVED
        assert record.remark == ""

    def test_blank_natural_id_rejected(self):
        with pytest.raises(ValidationError):
            RecordInput(natural_id="   ")

    def test_unknown_status_defaults(self):
        assert RecordInput(natural_id="T-1", status="Escalated").status == TicketStatus.RAISED

    def test_text_fields_truncated(self):
        record = RecordInput(natural_id="T-1", remark="r" * (MAX_FIELD_LENGTH + 1))

        assert len(record.remark) == MAX_FIELD_LENGTH

    def test_none_text_becomes_empty(self):
        assert RecordInput(natural_id="T-1", category=None).category == ""

    def test_to_db_params(self):
        params = RecordInput(natural_id="T-1", category="Network").to_db_params()

        assert params == {
            "natural_id": "T-1",
            "description": "",
            "remark": "",
            "category": "Network",
            "sub_category": "",
            "status": "Raised",
        }

    def test_schema_example_is_valid(self):
        example = RecordInput.model_json_schema()["example"]

        assert RecordInput(**example).natural_id == "T-100234"


class TestRecord:

    def test_export_row_follows_columns(self):
        created = datetime(2024, 5, 1, 8, 0, 0)
        record = Record(
            natural_id="T-1",
            description="d",
            remark="r",
            category="c",
            sub_category="s",
            status="Processing",
            created_at=created,
            updated_at=created,
        )

        row = record.export_row()

        assert len(row) == len(EXPORT_COLUMNS)
        assert row == ["T-1", "d", "r", "c", "s", "Processing",
                       "2024-05-01T08:00:00", "2024-05-01T08:00:00"]

    def test_export_labels_reingest(self):
        from src.core.schema import HeaderNormalizer

        header_map = HeaderNormalizer().build(label for label, _ in EXPORT_COLUMNS)

        assert set(header_map.fields) == {
            "natural_id", "description", "remark", "category", "sub_category", "status"
        }


class TestExportFilter:

    def test_empty_filter(self):
        export_filter = ExportFilter()

        assert export_filter.equality_filters() == {}
        assert export_filter.created_at_range() is None

    def test_blank_values_ignored(self):
        export_filter = ExportFilter(natural_id="  ", category="", start_date="", end_date="")

        assert export_filter.equality_filters() == {}
        assert export_filter.created_at_range() is None

    @pytest.mark.parametrize("status", ["all", "ALL", " All "])
    def test_status_all_sentinel(self, status):
        assert ExportFilter(status=status).status_filter() is None

    def test_status_filter_passthrough(self):
        assert ExportFilter(status="Resolved").equality_filters() == {"status": "Resolved"}

    def test_day_range_is_inclusive(self):
        start, end = ExportFilter(start_date="2024-01-01", end_date="2024-01-31").created_at_range()

        assert start == datetime(2024, 1, 1, 0, 0, 0)
        assert end == datetime(2024, 1, 31, 23, 59, 59, 999000)

    def test_range_needs_both_bounds(self):
        assert ExportFilter(start_date=date(2024, 1, 1)).created_at_range() is None
        assert ExportFilter(end_date=date(2024, 1, 1)).created_at_range() is None

    def test_datetime_bounds_reduced_to_dates(self):
        export_filter = ExportFilter(start_date=datetime(2024, 2, 3, 15, 0), end_date=date(2024, 2, 3))

        assert export_filter.start_date == date(2024, 2, 3)

    def test_invalid_date_rejected(self):
        with pytest.raises(ValidationError):
            ExportFilter(start_date="not-a-date")

    def test_equality_filters(self):
        export_filter = ExportFilter(
            natural_id=" T-1 ", category="Hardware", sub_category="Printer", description="jam"
        )

        assert export_filter.equality_filters() == {
            "natural_id": "T-1",
            "category": "Hardware",
            "sub_category": "Printer",
            "description": "jam",
        }


class TestResults:

    def test_upsert_outcome_applied(self):
        assert UpsertOutcome(inserted=2, updated=3, unchanged=4, failed=1).applied == 5

    def test_ingestion_response(self):
        result = IngestionResult(message="File uploaded successfully", total_records=7)

        assert result.to_response() == {"message": "File uploaded successfully", "totalRecords": 7}

    def test_export_response(self, tmp_path):
        result = ExportResult(
            url="http://localhost:3000/exports/upload_export_1.csv",
            filename="upload_export_1.csv",
            path=tmp_path / "upload_export_1.csv",
            record_count=3,
        )

        assert result.to_response() == {
            "message": "Export successful",
            "url": "http://localhost:3000/exports/upload_export_1.csv",
            "filename": "upload_export_1.csv",
        }


class TestErrors:

    def test_size_limit_message(self):
        error = SizeLimitExceeded(size=300 * 1024 * 1024, limit=200 * 1024 * 1024)

        assert "200MB" in error.message
        assert error.to_response()["error"] == "size_limit_exceeded"

    def test_unsupported_format_lists_allowed(self):
        error = UnsupportedFormat(".xls", (".csv", ".xlsx"))

        assert ".csv, .xlsx" in error.message

    def test_codes_are_distinct(self):
        codes = {
            SizeLimitExceeded(1, 1).code,
            UnsupportedFormat("x").code,
            NoApplicableRecords(0, 0).code,
            ChunkWriteFailure(0, RuntimeError()).code,
            EmptyResultSet().code,
        }

        assert len(codes) == 5

    def test_empty_result_message(self):
        assert EmptyResultSet({"status": "Raised"}).message == "No records found"
