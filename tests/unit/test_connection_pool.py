"""
Unit tests for database connection pool

Tests the PostgreSQL connection pool functionality using testcontainers.
"""
import pytest

from src.warehouse.connection import DatabaseConnectionPool


def container_pool(postgres_container, **kwargs) -> DatabaseConnectionPool:
    return DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_workitems",
        user="test_ingest",
        password="test_password",
        **kwargs,
    )


def test_password_required(monkeypatch):
    """Test that a pool cannot be built without credentials"""
    monkeypatch.delenv("DB_PASSWORD", raising=False)

    with pytest.raises(ValueError, match="password"):
        DatabaseConnectionPool(host="localhost")


def test_settings_from_environment(monkeypatch):
    monkeypatch.delenv("DB_NAME", raising=False)
    monkeypatch.delenv("DB_TIMEOUT", raising=False)
    monkeypatch.setenv("DB_HOST", "db.internal")
    monkeypatch.setenv("DB_PORT", "6543")
    monkeypatch.setenv("DB_PASSWORD", "secret")
    monkeypatch.setenv("DB_POOL_SIZE", "4")

    pool = DatabaseConnectionPool()

    assert pool.host == "db.internal"
    assert pool.port == 6543
    assert pool.max_size == 4
    assert "dbname=workitems" in pool.conninfo
    assert not pool.is_open


def test_ensure_capacity_grows_closed_pool():
    pool = DatabaseConnectionPool(host="localhost", password="x", max_size=2)

    pool.ensure_capacity(5)
    pool.ensure_capacity(3)

    assert pool.max_size == 5


def test_get_connection_requires_open_pool():
    pool = DatabaseConnectionPool(host="localhost", password="x")

    with pytest.raises(RuntimeError, match="not open"):
        with pool.get_connection():
            pass


@pytest.mark.integration
def test_connection_pool_initialization(postgres_container):
    """Test that connection pool initializes correctly"""
    pool = container_pool(postgres_container, min_size=2, max_size=5)

    pool.open()

    assert pool.is_open
    assert pool._pool.min_size == 2
    assert pool._pool.max_size == 5

    pool.close()
    assert not pool.is_open


@pytest.mark.integration
def test_get_connection(postgres_container):
    """Test getting a connection from the pool"""
    pool = container_pool(postgres_container)
    pool.open()

    with pool.get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT 1 as test")
            result = cur.fetchone()
            assert result["test"] == 1

    pool.close()


@pytest.mark.integration
def test_execute_query(postgres_container):
    """Test executing a query using the pool"""
    pool = container_pool(postgres_container)
    pool.open()

    result = pool.execute_query("SELECT 42 as answer")
    assert len(result) == 1
    assert result[0]["answer"] == 42

    pool.close()


@pytest.mark.integration
def test_execute_command(clean_db):
    """Test executing INSERT commands"""
    rowcount = clean_db.execute_command(
        "INSERT INTO work_item (natural_id, description) VALUES (%s, %s)",
        ("T-cmd", "inserted directly"),
    )

    assert rowcount == 1

    result = clean_db.execute_query(
        "SELECT description, status FROM work_item WHERE natural_id = %s",
        ("T-cmd",)
    )
    assert result == [{"description": "inserted directly", "status": "Raised"}]


@pytest.mark.integration
def test_context_manager(postgres_container):
    """Test using pool as context manager"""
    with container_pool(postgres_container) as pool:
        result = pool.execute_query("SELECT 1 as test")
        assert result[0]["test"] == 1

    # Pool should be closed after context
    with pytest.raises(RuntimeError):
        pool.execute_query("SELECT 1")


@pytest.mark.integration
def test_resize_open_pool_rejected(postgres_container):
    with container_pool(postgres_container, max_size=2) as pool:
        with pytest.raises(RuntimeError):
            pool.ensure_capacity(10)
