"""
Store contract consumed by the pipeline and exporter, plus its PostgreSQL
implementation.
"""

from collections.abc import Sequence
from typing import Protocol

from src.core.models import ExportFilter, Record, RecordInput, UpsertOutcome

from .connection import DatabaseConnectionPool
from .query import RecordQuery
from .schema_mgmt import SchemaManager
from .upsert import RecordUpsertWriter


class RecordStore(Protocol):
    """
    What the pipeline needs from persistence.

    ``upsert_chunk`` must tolerate concurrent calls from several threads.
    """

    def upsert_chunk(self, records: Sequence[RecordInput]) -> UpsertOutcome:
        ...

    def find_records(self, export_filter: ExportFilter) -> list[Record]:
        ...


class PostgresRecordStore:
    """RecordStore backed by the work_item table."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool
        self.writer = RecordUpsertWriter(pool)
        self.query = RecordQuery(pool)
        self.schema = SchemaManager(pool)

    def ensure_schema(self) -> None:
        self.schema.ensure_schema()

    def upsert_chunk(self, records: Sequence[RecordInput]) -> UpsertOutcome:
        return self.writer.upsert_chunk(records)

    def find_records(self, export_filter: ExportFilter) -> list[Record]:
        return self.query.find_records(export_filter)
