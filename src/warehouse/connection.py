"""
PostgreSQL connection pool for the work-item store, built on psycopg3.

The pool is created by the caller and handed to the store explicitly;
nothing in the pipeline reaches for a process-wide handle.
"""
import os
import time
from contextlib import contextmanager

from psycopg import OperationalError
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from src.observability.logger import get_logger

logger = get_logger(__name__)

# constructor argument -> (environment variable, fallback)
ENV_DEFAULTS = {
    "host": ("DB_HOST", "localhost"),
    "port": ("DB_PORT", "5432"),
    "database": ("DB_NAME", "workitems"),
    "user": ("DB_USER", "ingest"),
    "password": ("DB_PASSWORD", None),
    "max_size": ("DB_POOL_SIZE", "10"),
    "timeout": ("DB_TIMEOUT", "30"),
}


def _from_env(name: str, value):
    if value:
        return value
    env_name, fallback = ENV_DEFAULTS[name]
    return os.getenv(env_name, fallback)


class DatabaseConnectionPool:
    """
    Pool of dict-row connections shared by the chunk writers and queries.

    Every constructor argument left unset falls back to its DB_* environment
    variable. Size the pool at least as large as the chunk worker count
    (see ensure_capacity), otherwise writers queue on the pool instead of
    the chunk limiter.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        min_size: int = 1,
        max_size: int | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Args:
            host: Database host (DB_HOST, default localhost)
            port: Database port (DB_PORT, default 5432)
            database: Database name (DB_NAME, default workitems)
            user: Database user (DB_USER, default ingest)
            password: Database password (DB_PASSWORD, required)
            min_size: Connections kept open while idle
            max_size: Upper bound on connections (DB_POOL_SIZE, default 10)
            timeout: Seconds to wait for a connection (DB_TIMEOUT, default 30)

        Raises:
            ValueError: If no password is configured
        """
        self.host = _from_env("host", host)
        self.port = int(_from_env("port", port))
        self.database = _from_env("database", database)
        self.user = _from_env("user", user)
        self.password = _from_env("password", password)
        if not self.password:
            raise ValueError(
                "Database password must be provided. "
                "Set DB_PASSWORD environment variable or pass to constructor."
            )

        self.min_size = min_size
        self.max_size = int(_from_env("max_size", max_size))
        self.timeout = float(_from_env("timeout", timeout))
        self._pool: ConnectionPool | None = None

    @property
    def conninfo(self) -> str:
        return make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=self.password,
            connect_timeout=int(self.timeout),
        )

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def ensure_capacity(self, workers: int) -> None:
        """Grow max_size before open() so every chunk worker gets a connection."""
        if workers <= self.max_size:
            return
        if self._pool is not None:
            raise RuntimeError("Cannot resize an open connection pool")
        logger.info(f"Raising connection pool size from {self.max_size} to {workers}")
        self.max_size = workers

    def open(self, max_retries: int = 3, retry_delay: float = 2.0) -> None:
        """
        Open the pool, retrying while the server is unreachable.

        Raises:
            OperationalError: If no connection succeeded after max_retries
        """
        if self._pool is not None:
            return

        for attempt in range(1, max_retries + 1):
            # A closed psycopg pool cannot be reopened, so build one per attempt
            pool = ConnectionPool(
                conninfo=self.conninfo,
                min_size=self.min_size,
                max_size=max(self.max_size, self.min_size),
                timeout=self.timeout,
                kwargs={"row_factory": dict_row},
                open=False,
            )
            try:
                pool.open(wait=True, timeout=self.timeout)
            except OperationalError as e:
                pool.close()
                if attempt >= max_retries:
                    raise OperationalError(
                        f"Failed to connect to database after {max_retries} attempts: {e}"
                    ) from e
                logger.warning(f"Database not reachable (attempt {attempt}/{max_retries}): {e}")
                time.sleep(retry_delay)
            else:
                logger.debug(
                    "Connection pool open",
                    extra={"host": self.host, "database": self.database, "max_size": self.max_size}
                )
                self._pool = pool
                return

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    @contextmanager
    def get_connection(self):
        """
        Borrow a connection; committed on clean exit, rolled back on error.

        Raises:
            RuntimeError: If the pool is not open
        """
        if self._pool is None:
            raise RuntimeError("Connection pool is not open. Call open() first.")

        with self._pool.connection() as conn:
            yield conn

    @contextmanager
    def get_cursor(self):
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                yield cur

    def execute_query(self, query: str, params: tuple | dict | None = None) -> list[dict]:
        """Run a SELECT and return every row as a dict."""
        with self.get_cursor() as cur:
            cur.execute(query, params)
            return cur.fetchall()

    def execute_command(self, command: str, params: tuple | dict | None = None) -> int:
        """Run a write or DDL statement in its own transaction; returns the rowcount."""
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(command, params)
                rowcount = cur.rowcount
            conn.commit()
            return rowcount

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
