"""
Idempotent, unordered chunk upserts keyed by natural_id.

Implements INSERT ... ON CONFLICT UPDATE with a change guard, so re-applying
identical data modifies nothing and reports nothing.
"""

from collections.abc import Sequence

import psycopg

from src.core.models import RecordInput, UpsertOutcome
from src.observability.logger import get_logger

from .connection import DatabaseConnectionPool
from .schema_mgmt import WORK_ITEM_TABLE

logger = get_logger(__name__)

UPSERT_SQL = f"""
    INSERT INTO {WORK_ITEM_TABLE} (
        natural_id, description, remark, category, sub_category, status
    )
    VALUES (
        %(natural_id)s, %(description)s, %(remark)s,
        %(category)s, %(sub_category)s, %(status)s
    )
    ON CONFLICT (natural_id) DO UPDATE SET
        description = EXCLUDED.description,
        remark = EXCLUDED.remark,
        category = EXCLUDED.category,
        sub_category = EXCLUDED.sub_category,
        status = EXCLUDED.status,
        updated_at = now()
    WHERE (
        {WORK_ITEM_TABLE}.description, {WORK_ITEM_TABLE}.remark, {WORK_ITEM_TABLE}.category,
        {WORK_ITEM_TABLE}.sub_category, {WORK_ITEM_TABLE}.status
    ) IS DISTINCT FROM (
        EXCLUDED.description, EXCLUDED.remark, EXCLUDED.category,
        EXCLUDED.sub_category, EXCLUDED.status
    )
    RETURNING (xmax = 0) AS inserted
"""

# Per-operation failures: skipped, siblings continue
RECOVERABLE_ERRORS = (psycopg.IntegrityError, psycopg.DataError)


def lock_ordered(records: Sequence[RecordInput]) -> list[RecordInput]:
    """
    Last occurrence of each natural_id, sorted by natural_id.

    Concurrent chunks then take row locks in the same order and cannot
    deadlock on overlapping keys.
    """
    latest = {record.natural_id: record for record in records}
    return sorted(latest.values(), key=lambda record: record.natural_id)


def tally(outcome: UpsertOutcome, row: dict | None) -> None:
    if row is None:
        outcome.unchanged += 1
    elif row["inserted"]:
        outcome.inserted += 1
    else:
        outcome.updated += 1


class RecordUpsertWriter:
    """
    Applies a chunk as one unordered bulk upsert.

    The chunk is sent with a single executemany in one transaction. If the
    store rejects any operation the transaction is rolled back and the chunk
    replayed record by record, each under its own savepoint, so only the
    rejected records are lost. Connection-level errors propagate and fail
    the whole chunk.
    """

    def __init__(self, pool: DatabaseConnectionPool):
        """
        Initialize upsert writer.

        Args:
            pool: Database connection pool
        """
        self.pool = pool

    def upsert_chunk(self, records: Sequence[RecordInput]) -> UpsertOutcome:
        """
        Upsert a chunk of records.

        Repeated natural_ids within the chunk collapse to their last
        occurrence before writing.

        Args:
            records: Validated records (non-empty natural_id each)

        Returns:
            UpsertOutcome with inserted/updated/unchanged/failed counts

        Raises:
            psycopg.OperationalError: On connectivity problems
        """
        outcome = UpsertOutcome()
        batch = lock_ordered(records)
        if not batch:
            return outcome

        with self.pool.get_connection() as conn:
            try:
                rows = self._write_batch(conn, batch)
            except RECOVERABLE_ERRORS as e:
                logger.info(
                    f"Bulk upsert rejected, replaying {len(batch)} records one by one: {e}",
                    extra={"error_type": type(e).__name__}
                )
                self._write_each(conn, batch, outcome)
            else:
                for row in rows:
                    tally(outcome, row)

        logger.debug(
            "Upserted chunk",
            extra={
                "requested": len(records),
                "distinct": len(batch),
                "inserted": outcome.inserted,
                "updated": outcome.updated,
                "unchanged": outcome.unchanged,
                "failed": outcome.failed,
            }
        )
        return outcome

    def _write_batch(self, conn: psycopg.Connection, batch: list[RecordInput]) -> list[dict | None]:
        """One executemany; a row per record, None where nothing changed."""
        rows = []
        with conn.transaction():
            with conn.cursor() as cur:
                cur.executemany(UPSERT_SQL, [record.to_db_params() for record in batch], returning=True)
                while True:
                    rows.append(cur.fetchone())
                    if not cur.nextset():
                        break
        return rows

    def _write_each(self, conn: psycopg.Connection, batch: list[RecordInput], outcome: UpsertOutcome) -> None:
        with conn.transaction():
            with conn.cursor() as cur:
                for record in batch:
                    try:
                        with conn.transaction():
                            cur.execute(UPSERT_SQL, record.to_db_params())
                            row = cur.fetchone()
                    except RECOVERABLE_ERRORS as e:
                        outcome.failed += 1
                        outcome.failed_ids.append(record.natural_id)
                        logger.warning(
                            f"Upsert rejected for {record.natural_id!r}: {e}",
                            extra={"natural_id": record.natural_id, "error_type": type(e).__name__}
                        )
                        continue
                    tally(outcome, row)
