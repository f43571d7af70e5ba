"""
DDL for the work_item table.
"""

from src.observability.logger import get_logger

from .connection import DatabaseConnectionPool

logger = get_logger(__name__)

WORK_ITEM_TABLE = "work_item"

NATURAL_ID_MAX_LENGTH = 255

SCHEMA_DDL = (
    f"""
    CREATE TABLE IF NOT EXISTS {WORK_ITEM_TABLE} (
        id BIGSERIAL PRIMARY KEY,
        natural_id VARCHAR({NATURAL_ID_MAX_LENGTH}) NOT NULL UNIQUE,
        description TEXT NOT NULL DEFAULT '',
        remark TEXT NOT NULL DEFAULT '',
        category TEXT NOT NULL DEFAULT '',
        sub_category TEXT NOT NULL DEFAULT '',
        status VARCHAR(16) NOT NULL DEFAULT 'Raised'
            CHECK (status IN ('Processing', 'Raised', 'Resolved', 'Rejected')),
        created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    f"CREATE INDEX IF NOT EXISTS idx_{WORK_ITEM_TABLE}_created_at ON {WORK_ITEM_TABLE} (created_at)",
    f"""
    CREATE INDEX IF NOT EXISTS idx_{WORK_ITEM_TABLE}_desc_cat
        ON {WORK_ITEM_TABLE} (description, category, sub_category)
    """,
)


class SchemaManager:
    """Creates and inspects the work_item table."""

    def __init__(self, pool: DatabaseConnectionPool):
        self.pool = pool

    def ensure_schema(self) -> None:
        """Create the table and its indexes if they do not exist (idempotent)."""
        with self.pool.get_connection() as conn:
            with conn.cursor() as cur:
                for statement in SCHEMA_DDL:
                    cur.execute(statement)
            conn.commit()
        logger.info(f"Schema ready: {WORK_ITEM_TABLE}")

    def table_exists(self) -> bool:
        rows = self.pool.execute_query(
            "SELECT to_regclass(%s) IS NOT NULL AS present",
            (WORK_ITEM_TABLE,)
        )
        return bool(rows and rows[0]["present"])

    def count_records(self) -> int:
        rows = self.pool.execute_query(f"SELECT COUNT(*) AS count FROM {WORK_ITEM_TABLE}")
        return rows[0]["count"] if rows else 0
