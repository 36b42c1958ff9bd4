"""
Base Database Connector

Abstract base class for database connectors. Provides a consistent
async interface for connecting to, querying, and introspecting a database.

All connectors must implement:
- connect(): Establish connection with connection pooling
- execute(): Run a SQL statement and collect rows
- fetch_value(): Run a SQL statement returning a single scalar
- describe_columns(): Ordered column metadata for a table
- describe_foreign_keys(): Declared foreign keys of a table
- table_exists(): Catalog existence check
- close(): Clean up connections and pools
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

IMPLICIT_CONSTRAINT = "(implicit)"


# ============================================================================
# Data Models
# ============================================================================


class ColumnInfo(BaseModel):
    """Information about a database column."""

    name: str = Field(..., description="Column name")
    data_type: str = Field(..., description="Column data type")
    is_nullable: bool = Field(default=True, description="Whether column can be NULL")
    default_value: str | None = Field(None, description="Default expression if any")
    is_primary_key: bool = Field(default=False, description="Is part of primary key")

    model_config = ConfigDict(frozen=True)


class ForeignKeyInfo(BaseModel):
    """A foreign key, either declared in the catalog or inferred by naming convention."""

    constraint_name: str = Field(..., description="Constraint name or '(implicit)'")
    column: str = Field(..., description="Referencing column in the source table")
    foreign_table: str = Field(..., description="Referenced table")
    foreign_column: str = Field(..., description="Referenced column")

    model_config = ConfigDict(frozen=True)

    @property
    def is_implicit(self) -> bool:
        return self.constraint_name == IMPLICIT_CONSTRAINT


class TableSchema(BaseModel):
    """Columns and foreign keys of a single table."""

    name: str = Field(..., description="Table name")
    columns: list[ColumnInfo] = Field(default_factory=list, description="Ordered columns")
    foreign_keys: list[ForeignKeyInfo] = Field(
        default_factory=list, description="Outgoing foreign keys"
    )

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    @property
    def primary_key_columns(self) -> list[str]:
        return [column.name for column in self.columns if column.is_primary_key]


class QueryResult(BaseModel):
    """Result from query execution."""

    rows: list[dict[str, Any]] = Field(..., description="Query result rows")
    row_count: int = Field(..., description="Number of rows returned")
    columns: list[str] = Field(..., description="Column names")
    execution_time_ms: float = Field(..., description="Query execution time in ms")


class ConnectorError(Exception):
    """Base exception for connector errors."""

    pass


class ConnectionError(ConnectorError):
    """Error establishing or managing database connection."""

    pass


class QueryError(ConnectorError):
    """Error executing database query."""

    pass


class SchemaError(ConnectorError):
    """Error introspecting database schema."""

    pass


# ============================================================================
# Base Connector
# ============================================================================


class BaseConnector(ABC):
    """
    Abstract base class for database connectors.

    The schema resolver only needs the three catalog operations
    (describe_columns, describe_foreign_keys, table_exists); the plan
    coordinator only needs execute() and fetch_value().

    Usage:
        connector = PostgresConnector(host="localhost", ...)
        async with connector:
            columns = await connector.describe_columns("company")
            result = await connector.execute("SELECT * FROM company LIMIT 20")
    """

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        schema_name: str = "public",
        pool_size: int = 10,
        timeout: int = 30,
        **kwargs,
    ):
        """
        Initialize connector.

        Args:
            host: Database host
            port: Database port
            database: Database name
            user: Database user
            password: Database password
            schema_name: Schema used for catalog lookups (default: public)
            pool_size: Connection pool size (default: 10)
            timeout: Statement timeout in seconds (default: 30)
            **kwargs: Additional connector-specific parameters
        """
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.schema_name = schema_name
        self.pool_size = pool_size
        self.timeout = timeout
        self.kwargs = kwargs

        self._pool = None
        self._connected = False

        logger.info(f"Initialized {self.__class__.__name__} for {user}@{host}:{port}/{database}")

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish database connection and create connection pool.

        Should be idempotent.

        Raises:
            ConnectionError: If connection fails
        """
        pass

    @abstractmethod
    async def execute(self, query: str, timeout: int | None = None) -> QueryResult:
        """
        Execute a SQL statement and collect its rows.

        Raises:
            QueryError: If query execution fails
            ConnectionError: If not connected
        """
        pass

    @abstractmethod
    async def fetch_value(self, query: str) -> Any:
        """
        Execute a SQL statement and return the first column of the first row.

        Raises:
            QueryError: If query execution fails
            ConnectionError: If not connected
        """
        pass

    @abstractmethod
    async def describe_columns(self, table: str) -> list[ColumnInfo]:
        """
        Return ordered column metadata for a table.

        Raises:
            SchemaError: If the table cannot be described
        """
        pass

    @abstractmethod
    async def describe_foreign_keys(self, table: str) -> list[ForeignKeyInfo]:
        """
        Return foreign keys declared on a table.

        Raises:
            SchemaError: If the catalog cannot be read
        """
        pass

    @abstractmethod
    async def table_exists(self, name: str) -> bool:
        """Check whether a table with this exact name exists in the schema."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Close database connection and clean up pool.

        Should be idempotent.
        """
        pass

    @property
    def is_connected(self) -> bool:
        """Check if connector is connected."""
        return self._connected

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    def __repr__(self) -> str:
        status = "connected" if self._connected else "disconnected"
        return f"<{self.__class__.__name__} {self.user}@{self.host}:{self.port}/{self.database} ({status})>"
