"""
PostgreSQL Connector

Async PostgreSQL connector using asyncpg.

Features:
- Connection pooling with asyncpg
- Catalog introspection (columns, primary keys, foreign keys, table existence)
- Statement execution with per-statement timeout
- Column names preserved for empty result sets

Usage:
    connector = PostgresConnector(
        host="localhost",
        port=5432,
        database="mydb",
        user="postgres",
        password="secret"
    )

    await connector.connect()

    columns = await connector.describe_columns("company")
    result = await connector.execute("SELECT * FROM company LIMIT 20")

    await connector.close()
"""

import logging
import time
from typing import Any

import asyncpg

from querypilot.connectors.base import (
    BaseConnector,
    ColumnInfo,
    ConnectionError,
    ForeignKeyInfo,
    QueryError,
    QueryResult,
    SchemaError,
)

logger = logging.getLogger(__name__)

_COLUMNS_QUERY = """
    SELECT
        c.column_name,
        c.data_type,
        c.is_nullable,
        c.column_default,
        EXISTS (
            SELECT 1
            FROM information_schema.table_constraints AS tc
            JOIN information_schema.key_column_usage AS kcu
                ON tc.constraint_name = kcu.constraint_name
                AND tc.table_schema = kcu.table_schema
            WHERE tc.constraint_type = 'PRIMARY KEY'
            AND tc.table_schema = c.table_schema
            AND tc.table_name = c.table_name
            AND kcu.column_name = c.column_name
        ) AS is_primary_key
    FROM information_schema.columns AS c
    WHERE c.table_schema = $1 AND c.table_name = $2
    ORDER BY c.ordinal_position
"""

_FOREIGN_KEYS_QUERY = """
    SELECT
        tc.constraint_name,
        kcu.column_name,
        ccu.table_name AS foreign_table_name,
        ccu.column_name AS foreign_column_name
    FROM information_schema.table_constraints AS tc
    JOIN information_schema.key_column_usage AS kcu
        ON tc.constraint_name = kcu.constraint_name
        AND tc.table_schema = kcu.table_schema
    JOIN information_schema.constraint_column_usage AS ccu
        ON ccu.constraint_name = tc.constraint_name
        AND ccu.table_schema = tc.table_schema
    WHERE tc.constraint_type = 'FOREIGN KEY'
    AND tc.table_schema = $1
    AND tc.table_name = $2
    ORDER BY tc.constraint_name, kcu.ordinal_position
"""

_TABLE_EXISTS_QUERY = """
    SELECT EXISTS (
        SELECT 1
        FROM information_schema.tables
        WHERE table_schema = $1 AND table_name = $2
    )
"""


class PostgresConnector(BaseConnector):
    """
    PostgreSQL database connector using asyncpg.

    Provides async interface for PostgreSQL with connection pooling,
    catalog introspection, and statement execution.
    """

    async def connect(self) -> None:
        """
        Establish connection to PostgreSQL and create connection pool.

        Raises:
            ConnectionError: If connection fails
        """
        if self._connected and self._pool:
            logger.debug("Already connected, skipping connection")
            return

        try:
            logger.info(f"Connecting to PostgreSQL at {self.host}:{self.port}/{self.database}")

            self._pool = await asyncpg.create_pool(
                host=self.host,
                port=self.port,
                database=self.database,
                user=self.user,
                password=self.password,
                min_size=1,
                max_size=self.pool_size,
                command_timeout=self.timeout,
                **self.kwargs,
            )

            async with self._pool.acquire() as conn:
                version = await conn.fetchval("SELECT version()")
                logger.info(f"Connected to PostgreSQL: {version.split(',')[0]}")

            self._connected = True

        except asyncpg.PostgresError as e:
            logger.error(f"PostgreSQL connection failed: {e}")
            raise ConnectionError(f"Failed to connect to PostgreSQL: {e}") from e
        except Exception as e:
            logger.error(f"Unexpected error during connection: {e}")
            raise ConnectionError(f"Connection error: {e}") from e

    def _require_pool(self):
        if not self._connected or not self._pool:
            raise ConnectionError("Not connected to database. Call connect() first.")
        return self._pool

    async def execute(self, query: str, timeout: int | None = None) -> QueryResult:
        """
        Execute a SQL statement.

        Column names come from the prepared statement so that an empty
        result still reports its columns.

        Raises:
            QueryError: If query fails
            ConnectionError: If not connected
        """
        pool = self._require_pool()
        start_time = time.perf_counter()
        query_timeout = timeout or self.timeout

        try:
            async with pool.acquire() as conn:
                await conn.execute(f"SET statement_timeout = {query_timeout * 1000}")

                statement = await conn.prepare(query)
                rows = await statement.fetch()
                columns = [attribute.name for attribute in statement.get_attributes()]
                result_rows = [dict(row) for row in rows]

                execution_time_ms = (time.perf_counter() - start_time) * 1000

                logger.debug(
                    f"Query executed in {execution_time_ms:.2f}ms, "
                    f"returned {len(result_rows)} rows"
                )

                return QueryResult(
                    rows=result_rows,
                    row_count=len(result_rows),
                    columns=columns,
                    execution_time_ms=execution_time_ms,
                )

        except asyncpg.QueryCanceledError as e:
            logger.error(f"Query timed out after {query_timeout}s: {query[:100]}...")
            raise QueryError(f"Query timeout ({query_timeout}s)") from e
        except asyncpg.PostgresError as e:
            logger.error(f"Query failed: {e}\nQuery: {query[:200]}...")
            raise QueryError(f"Query execution failed: {e}") from e
        except Exception as e:
            logger.error(f"Unexpected error during query execution: {e}")
            raise QueryError(f"Query error: {e}") from e

    async def fetch_value(self, query: str) -> Any:
        """Execute a statement and return its first scalar value."""
        pool = self._require_pool()

        try:
            async with pool.acquire() as conn:
                return await conn.fetchval(query)
        except asyncpg.QueryCanceledError as e:
            logger.error(f"Scalar query timed out after {self.timeout}s: {query[:100]}...")
            raise QueryError(f"Query timeout ({self.timeout}s)") from e
        except asyncpg.PostgresError as e:
            logger.error(f"Scalar query failed: {e}\nQuery: {query[:200]}...")
            raise QueryError(f"Query execution failed: {e}") from e
        except Exception as e:
            logger.error(f"Unexpected error during scalar query: {e}")
            raise QueryError(f"Query error: {e}") from e

    async def describe_columns(self, table: str) -> list[ColumnInfo]:
        """
        Describe the columns of a table in catalog order.

        Raises:
            SchemaError: If the table is missing, not visible to the current
                role, or the catalog query fails
        """
        pool = self._require_pool()

        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(_COLUMNS_QUERY, self.schema_name, table)
        except asyncpg.PostgresError as e:
            logger.error(f"Describing {table} failed: {e}")
            raise SchemaError(f"Failed to describe {table}: {e}") from e
        except Exception as e:
            logger.error(f"Unexpected error describing {table}: {e}")
            raise SchemaError(f"Failed to describe {table}: {e}") from e

        if not rows:
            raise SchemaError(
                f"Table {self.schema_name}.{table} does not exist or is not accessible"
            )

        return [
            ColumnInfo(
                name=row["column_name"],
                data_type=row["data_type"],
                is_nullable=row["is_nullable"] == "YES",
                default_value=row["column_default"],
                is_primary_key=bool(row["is_primary_key"]),
            )
            for row in rows
        ]

    async def describe_foreign_keys(self, table: str) -> list[ForeignKeyInfo]:
        """
        List foreign keys declared on a table.

        Raises:
            SchemaError: If the catalog query fails
        """
        pool = self._require_pool()

        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(_FOREIGN_KEYS_QUERY, self.schema_name, table)
        except asyncpg.PostgresError as e:
            logger.error(f"Foreign key lookup for {table} failed: {e}")
            raise SchemaError(f"Failed to read foreign keys of {table}: {e}") from e
        except Exception as e:
            logger.error(f"Unexpected error reading foreign keys of {table}: {e}")
            raise SchemaError(f"Failed to read foreign keys of {table}: {e}") from e

        return [
            ForeignKeyInfo(
                constraint_name=row["constraint_name"],
                column=row["column_name"],
                foreign_table=row["foreign_table_name"],
                foreign_column=row["foreign_column_name"],
            )
            for row in rows
        ]

    async def table_exists(self, name: str) -> bool:
        pool = self._require_pool()

        try:
            async with pool.acquire() as conn:
                return bool(await conn.fetchval(_TABLE_EXISTS_QUERY, self.schema_name, name))
        except asyncpg.PostgresError as e:
            logger.error(f"Existence check for {name} failed: {e}")
            raise SchemaError(f"Failed to check table {name}: {e}") from e
        except Exception as e:
            logger.error(f"Unexpected error checking table {name}: {e}")
            raise SchemaError(f"Failed to check table {name}: {e}") from e

    async def close(self) -> None:
        """
        Close connection pool and clean up resources.

        Safe to call multiple times.
        """
        if not self._pool:
            logger.debug("No connection pool to close")
            return

        try:
            await self._pool.close()
            self._pool = None
            self._connected = False
            logger.info("PostgreSQL connection closed")
        except Exception as e:
            logger.error(f"Error closing connection: {e}")
            raise ConnectionError(f"Failed to close connection: {e}") from e
