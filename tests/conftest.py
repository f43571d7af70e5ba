"""
Pytest configuration and fixtures for workitem-ingest tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import csv
import threading
import time
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any, Generator

import openpyxl
import pytest

from src.core.config import PipelineSettings
from src.core.models import ExportFilter, Record, RecordInput, UpsertOutcome

RECORD_FIELDS = set(RecordInput.model_fields)


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# IN-MEMORY STORE
# =======================

class InMemoryRecordStore:
    """
    Thread-safe RecordStore double with the same upsert semantics as the
    PostgreSQL store: repeated ids in a chunk collapse to the last one, then
    insert, update on change, no-op when identical.

    Knobs:
        reject_ids: natural ids whose single operation is rejected
        fail_when: predicate on a chunk; True raises a store-level error
        delay: seconds each upsert_chunk call sleeps (to observe overlap)
        clock: returns the timestamp stamped on created/updated records
    """

    def __init__(self):
        self.records: dict[str, Record] = {}
        self.reject_ids: set[str] = set()
        self.fail_when: Callable[[Sequence[RecordInput]], bool] | None = None
        self.delay = 0.0
        self.clock: Callable[[], datetime] = datetime.now
        self.calls = 0
        self.active = 0
        self.peak_active = 0
        self.chunk_sizes: list[int] = []
        self._lock = threading.Lock()

    def upsert_chunk(self, records: Sequence[RecordInput]) -> UpsertOutcome:
        with self._lock:
            self.calls += 1
            self.active += 1
            self.peak_active = max(self.peak_active, self.active)
            self.chunk_sizes.append(len(records))
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.fail_when is not None and self.fail_when(records):
                raise ConnectionError("store unreachable")

            outcome = UpsertOutcome()
            latest = {record.natural_id: record for record in records}
            with self._lock:
                for record in latest.values():
                    if record.natural_id in self.reject_ids:
                        outcome.failed += 1
                        outcome.failed_ids.append(record.natural_id)
                        continue

                    now = self.clock()
                    existing = self.records.get(record.natural_id)
                    if existing is None:
                        self.records[record.natural_id] = Record(
                            **record.model_dump(), created_at=now, updated_at=now
                        )
                        outcome.inserted += 1
                    elif existing.model_dump(include=RECORD_FIELDS) == record.model_dump():
                        outcome.unchanged += 1
                    else:
                        self.records[record.natural_id] = Record(
                            **record.model_dump(), created_at=existing.created_at, updated_at=now
                        )
                        outcome.updated += 1
            return outcome
        finally:
            with self._lock:
                self.active -= 1

    def find_records(self, export_filter: ExportFilter) -> list[Record]:
        equality = export_filter.equality_filters()
        created_range = export_filter.created_at_range()

        matches = []
        for record in self.records.values():
            values = record.model_dump(mode="json")
            if any(values[column] != value for column, value in equality.items()):
                continue
            if created_range is not None and not (
                created_range[0] <= record.created_at <= created_range[1]
            ):
                continue
            matches.append(record)
        return sorted(matches, key=lambda r: (r.created_at, r.natural_id))


@pytest.fixture
def store() -> InMemoryRecordStore:
    """Fresh in-memory record store"""
    return InMemoryRecordStore()


@pytest.fixture
def store_factory() -> Callable[[], InMemoryRecordStore]:
    """For tests that need a fresh store per generated example"""
    return InMemoryRecordStore


# =======================
# SETTINGS FIXTURES
# =======================

@pytest.fixture
def settings(tmp_path) -> PipelineSettings:
    """Default settings with exports going to a temporary directory"""
    return PipelineSettings(export_dir=tmp_path / "exports")


# =======================
# FILE FIXTURES
# =======================

@pytest.fixture
def make_csv(tmp_path) -> Callable[..., Path]:
    """
    Write a CSV file from a header row and data rows

    Returns:
        Function (rows, name="upload.csv") -> Path
    """
    def _make(rows: list[list[Any]], name: str = "upload.csv") -> Path:
        path = tmp_path / name
        with open(path, "w", newline="", encoding="utf-8") as handle:
            csv.writer(handle).writerows(rows)
        return path

    return _make


@pytest.fixture
def make_xlsx(tmp_path) -> Callable[..., Path]:
    """
    Write an XLSX workbook with one sheet per entry

    Returns:
        Function (sheets: {title: rows}, name="upload.xlsx") -> Path
    """
    def _make(sheets: dict[str, list[list[Any]]], name: str = "upload.xlsx") -> Path:
        workbook = openpyxl.Workbook()
        workbook.remove(workbook.active)
        for title, rows in sheets.items():
            worksheet = workbook.create_sheet(title=title)
            for row in rows:
                worksheet.append(row)
        path = tmp_path / name
        workbook.save(path)
        return path

    return _make


def ticket_rows(count: int, prefix: str = "T", status: str = "Raised") -> list[list[str]]:
    """Header plus ``count`` unique-keyed rows"""
    rows = [["Ticket Ref ID", "Description", "Remarks", "Category", "Sub Category", "Status"]]
    for i in range(count):
        rows.append([f"{prefix}{i:05d}", f"desc {i}", f"remark {i}", "Hardware", "Printer", status])
    return rows


@pytest.fixture
def tickets() -> Callable[..., list[list[str]]]:
    """Builder for ticket rows (see ticket_rows)"""
    return ticket_rows


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[Any, None, None]:
    """
    Start PostgreSQL container for integration tests

    Skips when Docker is not available.
    """
    from testcontainers.postgres import PostgresContainer

    container = PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_ingest",
        password="test_password",
        dbname="test_workitems",
    )
    try:
        container.start()
    except Exception as e:  # Docker daemon missing or unreachable
        pytest.skip(f"Docker not available for PostgreSQL container: {e}")

    try:
        yield container
    finally:
        container.stop()


@pytest.fixture(scope="session")
def pg_pool(postgres_container):
    """Open connection pool against the container, with the schema created"""
    from src.warehouse.connection import DatabaseConnectionPool
    from src.warehouse.schema_mgmt import SchemaManager

    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_workitems",
        user="test_ingest",
        password="test_password",
        max_size=8,
    )
    pool.open()
    SchemaManager(pool).ensure_schema()

    yield pool

    pool.close()


@pytest.fixture
def clean_db(pg_pool):
    """Truncate the work_item table before a test"""
    pg_pool.execute_command("TRUNCATE TABLE work_item RESTART IDENTITY")
    yield pg_pool
