"""
Filtered reads of work items for fetch and export.
"""

from typing import Any

import psycopg

from src.core.models import ExportFilter, Record
from src.observability.logger import get_logger

from .connection import DatabaseConnectionPool
from .schema_mgmt import WORK_ITEM_TABLE

logger = get_logger(__name__)

SELECT_COLUMNS = (
    "natural_id, description, remark, category, sub_category, status, created_at, updated_at"
)


def build_where_clause(export_filter: ExportFilter) -> tuple[str, dict[str, Any]]:
    """
    Translate a filter into a WHERE clause and named parameters.

    Column names come from a fixed set, values are always bound.

    Returns:
        ("WHERE ..." or "", params)
    """
    clauses = []
    params: dict[str, Any] = {}

    for column, value in export_filter.equality_filters().items():
        clauses.append(f"{column} = %({column})s")
        params[column] = value

    created_range = export_filter.created_at_range()
    if created_range is not None:
        clauses.append("created_at BETWEEN %(created_from)s AND %(created_to)s")
        params["created_from"], params["created_to"] = created_range

    if not clauses:
        return "", params
    return "WHERE " + " AND ".join(clauses), params


class RecordQuery:
    """Runs filtered SELECTs against the work_item table."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def find_records(self, export_filter: ExportFilter) -> list[Record]:
        """
        Materialize every record matching the filter.

        Args:
            export_filter: Filter to apply

        Returns:
            Records ordered by created_at, natural_id

        Raises:
            psycopg.DatabaseError: If the query fails
        """
        where, params = build_where_clause(export_filter)
        query = (
            f"SELECT {SELECT_COLUMNS} FROM {WORK_ITEM_TABLE} {where} "
            "ORDER BY created_at, natural_id"
        )

        try:
            rows = self.pool.execute_query(query, params)
        except psycopg.DatabaseError as e:
            logger.error(f"Failed to query work items: {e}")
            raise

        logger.debug(
            f"Found {len(rows)} work items",
            extra={"filters": export_filter.describe()}
        )
        return [Record(**row) for row in rows]
