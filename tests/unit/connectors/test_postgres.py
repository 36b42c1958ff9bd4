"""
Unit tests for PostgresConnector.

Tests the PostgreSQL connector with mocked asyncpg connections.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import asyncpg
import pytest

from querypilot.connectors.base import (
    ColumnInfo,
    ConnectionError,
    ForeignKeyInfo,
    QueryError,
    QueryResult,
    SchemaError,
)
from querypilot.connectors.postgres import PostgresConnector
from querypilot.models.plan import QueryPlan
from querypilot.planner.coordinator import PlanCoordinator


@pytest.fixture
def postgres_config():
    """PostgreSQL connection configuration."""
    return {
        "host": "localhost",
        "port": 5432,
        "database": "testdb",
        "user": "testuser",
        "password": "testpass",
        "schema_name": "sales",
        "pool_size": 5,
        "timeout": 30,
    }


@pytest.fixture
def mock_pool():
    """Mock asyncpg connection pool with a prepared statement."""
    pool = AsyncMock()

    statement = MagicMock()
    statement.fetch = AsyncMock(return_value=[])
    statement.get_attributes = MagicMock(return_value=[])

    conn = AsyncMock()
    conn.fetchval = AsyncMock(return_value="PostgreSQL 15.0, compiled by gcc")
    conn.fetch = AsyncMock(return_value=[])
    conn.execute = AsyncMock()
    conn.prepare = AsyncMock(return_value=statement)

    pool.acquire = MagicMock()
    pool.acquire.return_value.__aenter__ = AsyncMock(return_value=conn)
    pool.acquire.return_value.__aexit__ = AsyncMock(return_value=False)
    pool.close = AsyncMock()

    return pool, conn, statement


@pytest.fixture
async def connected(postgres_config, mock_pool):
    """A connector connected to the mocked pool."""
    pool, conn, statement = mock_pool
    with patch("asyncpg.create_pool", new=AsyncMock(return_value=pool)):
        connector = PostgresConnector(**postgres_config)
        await connector.connect()
    return connector, conn, statement


class TestInitialization:
    """Test PostgresConnector initialization."""

    def test_initialization(self, postgres_config):
        connector = PostgresConnector(**postgres_config)

        assert connector.host == "localhost"
        assert connector.port == 5432
        assert connector.database == "testdb"
        assert connector.schema_name == "sales"
        assert connector.pool_size == 5
        assert connector.timeout == 30
        assert connector.is_connected is False

    def test_schema_defaults_to_public(self, postgres_config):
        postgres_config.pop("schema_name")
        assert PostgresConnector(**postgres_config).schema_name == "public"

    def test_repr(self, postgres_config):
        repr_str = repr(PostgresConnector(**postgres_config))

        assert "PostgresConnector" in repr_str
        assert "testuser@localhost:5432/testdb" in repr_str
        assert "disconnected" in repr_str


class TestConnection:
    """Test connection management."""

    @pytest.mark.asyncio
    async def test_connect_success(self, postgres_config, mock_pool):
        pool, conn, _ = mock_pool

        with patch("asyncpg.create_pool", new=AsyncMock(return_value=pool)) as create_pool:
            connector = PostgresConnector(**postgres_config)
            await connector.connect()
            await connector.connect()

        assert connector.is_connected is True
        assert create_pool.call_count == 1
        conn.fetchval.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connect_failure(self, postgres_config):
        with patch(
            "asyncpg.create_pool",
            new=AsyncMock(side_effect=asyncpg.PostgresError("Connection refused")),
        ):
            connector = PostgresConnector(**postgres_config)
            with pytest.raises(ConnectionError, match="Failed to connect"):
                await connector.connect()

        assert connector.is_connected is False

    @pytest.mark.asyncio
    async def test_close(self, connected, mock_pool):
        connector, _, _ = connected
        pool, _, _ = mock_pool

        await connector.close()
        await connector.close()

        assert connector.is_connected is False
        pool.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_operations_require_connection(self, postgres_config):
        connector = PostgresConnector(**postgres_config)

        with pytest.raises(ConnectionError, match="Not connected"):
            await connector.execute("SELECT 1")
        with pytest.raises(ConnectionError, match="Not connected"):
            await connector.describe_columns("company")


class TestExecute:
    """Test statement execution."""

    @pytest.mark.asyncio
    async def test_execute_returns_rows_and_columns(self, connected):
        connector, conn, statement = connected
        statement.fetch.return_value = [{"id": 1, "name": "Acme"}]
        statement.get_attributes.return_value = [
            SimpleNamespace(name="id"),
            SimpleNamespace(name="name"),
        ]

        result = await connector.execute("SELECT id, name FROM company")

        assert isinstance(result, QueryResult)
        assert result.rows == [{"id": 1, "name": "Acme"}]
        assert result.row_count == 1
        assert result.columns == ["id", "name"]
        conn.prepare.assert_awaited_once_with("SELECT id, name FROM company")

    @pytest.mark.asyncio
    async def test_empty_result_keeps_columns(self, connected):
        connector, _, statement = connected
        statement.get_attributes.return_value = [SimpleNamespace(name="id")]

        result = await connector.execute("SELECT id FROM company LIMIT 20 OFFSET 980")

        assert result.row_count == 0
        assert result.columns == ["id"]

    @pytest.mark.asyncio
    async def test_statement_timeout(self, connected):
        connector, conn, _ = connected

        await connector.execute("SELECT 1")
        await connector.execute("SELECT 1", timeout=60)

        assert conn.execute.call_args_list[0][0][0] == "SET statement_timeout = 30000"
        assert conn.execute.call_args_list[1][0][0] == "SET statement_timeout = 60000"

    @pytest.mark.asyncio
    async def test_timeout_error(self, connected):
        connector, conn, _ = connected
        conn.prepare.side_effect = asyncpg.QueryCanceledError("canceling statement")

        with pytest.raises(QueryError, match="Query timeout"):
            await connector.execute("SELECT pg_sleep(100)")

    @pytest.mark.asyncio
    async def test_postgres_error(self, connected):
        connector, conn, _ = connected
        conn.prepare.side_effect = asyncpg.PostgresSyntaxError("syntax error at or near")

        with pytest.raises(QueryError, match="Query execution failed"):
            await connector.execute("SELEC 1")

    @pytest.mark.asyncio
    async def test_fetch_value(self, connected):
        connector, conn, _ = connected
        conn.fetchval.return_value = 42

        assert await connector.fetch_value("SELECT count(*) FROM company") == 42
        conn.fetchval.assert_awaited_with("SELECT count(*) FROM company")

    @pytest.mark.asyncio
    async def test_fetch_value_error(self, connected):
        connector, conn, _ = connected
        conn.fetchval.side_effect = asyncpg.PostgresError("boom")

        with pytest.raises(QueryError):
            await connector.fetch_value("SELECT count(*) FROM company")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            asyncio.TimeoutError(),
            asyncpg.InterfaceError("connection is closed"),
        ],
    )
    async def test_fetch_value_wraps_driver_failures(self, connected, error):
        connector, conn, _ = connected
        conn.fetchval.side_effect = error

        with pytest.raises(QueryError, match="Query error"):
            await connector.fetch_value("SELECT count(*) FROM company")

    @pytest.mark.asyncio
    async def test_fetch_value_canceled(self, connected):
        connector, conn, _ = connected
        conn.fetchval.side_effect = asyncpg.QueryCanceledError("canceling statement")

        with pytest.raises(QueryError, match="Query timeout \(30s\)"):
            await connector.fetch_value("SELECT count(*) FROM company")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            asyncio.TimeoutError(),
            asyncpg.InterfaceError("connection is closed"),
        ],
    )
    async def test_count_failure_keeps_fetched_page(self, connected, error):
        connector, conn, statement = connected
        statement.fetch.return_value = [{"id": 1}]
        statement.get_attributes.return_value = [SimpleNamespace(name="id")]
        conn.fetchval.side_effect = error

        outcome = await PlanCoordinator(connector).accept(QueryPlan(tables=["company"]))

        assert outcome.kind == "executed"
        assert outcome.result.rows == [{"id": 1}]
        assert outcome.page_info.total is None


class TestCatalog:
    """Test catalog introspection."""

    @pytest.mark.asyncio
    async def test_describe_columns(self, connected):
        connector, conn, _ = connected
        conn.fetch.return_value = [
            {
                "column_name": "id",
                "data_type": "integer",
                "is_nullable": "NO",
                "column_default": "nextval('company_id_seq'::regclass)",
                "is_primary_key": True,
            },
            {
                "column_name": "name",
                "data_type": "text",
                "is_nullable": "YES",
                "column_default": None,
                "is_primary_key": False,
            },
        ]

        columns = await connector.describe_columns("company")

        assert columns == [
            ColumnInfo(
                name="id",
                data_type="integer",
                is_nullable=False,
                default_value="nextval('company_id_seq'::regclass)",
                is_primary_key=True,
            ),
            ColumnInfo(name="name", data_type="text", is_nullable=True),
        ]
        args = conn.fetch.call_args[0]
        assert args[1:] == ("sales", "company")

    @pytest.mark.asyncio
    async def test_describe_missing_table(self, connected):
        connector, conn, _ = connected
        conn.fetch.return_value = []

        with pytest.raises(SchemaError, match="sales.ghost does not exist"):
            await connector.describe_columns("ghost")

    @pytest.mark.asyncio
    async def test_describe_foreign_keys(self, connected):
        connector, conn, _ = connected
        conn.fetch.return_value = [
            {
                "constraint_name": "company_country_id_fkey",
                "column_name": "country_id",
                "foreign_table_name": "country",
                "foreign_column_name": "id",
            }
        ]

        foreign_keys = await connector.describe_foreign_keys("company")

        assert foreign_keys == [
            ForeignKeyInfo(
                constraint_name="company_country_id_fkey",
                column="country_id",
                foreign_table="country",
                foreign_column="id",
            )
        ]

    @pytest.mark.asyncio
    async def test_catalog_error_becomes_schema_error(self, connected):
        connector, conn, _ = connected
        conn.fetch.side_effect = asyncpg.PostgresError("permission denied")

        with pytest.raises(SchemaError, match="permission denied"):
            await connector.describe_foreign_keys("company")

    @pytest.mark.asyncio
    async def test_table_exists(self, connected):
        connector, conn, _ = connected
        conn.fetchval.return_value = True

        assert await connector.table_exists("country") is True
        assert conn.fetchval.call_args[0][1:] == ("sales", "country")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method, mock_attr",
        [
            ("describe_columns", "fetch"),
            ("describe_foreign_keys", "fetch"),
            ("table_exists", "fetchval"),
        ],
    )
    @pytest.mark.parametrize(
        "error",
        [
            asyncio.TimeoutError(),
            asyncpg.InterfaceError("connection is closed"),
        ],
    )
    async def test_catalog_driver_failures_become_schema_error(
        self, connected, method, mock_attr, error
    ):
        connector, conn, _ = connected
        getattr(conn, mock_attr).side_effect = error

        with pytest.raises(SchemaError):
            await getattr(connector, method)("company")
