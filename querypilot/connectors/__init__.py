"""
Database Connectors Module

Provides the async connector contract used by the schema resolver and
the plan coordinator, and its PostgreSQL implementation.

Usage:
    from querypilot.connectors import create_connector

    connector = create_connector(database_url="postgresql://u:p@localhost/app")

    async with connector:
        columns = await connector.describe_columns("company")
"""

from querypilot.connectors.base import (
    IMPLICIT_CONSTRAINT,
    BaseConnector,
    ColumnInfo,
    ConnectionError,
    ConnectorError,
    ForeignKeyInfo,
    QueryError,
    QueryResult,
    SchemaError,
    TableSchema,
)
from querypilot.connectors.factory import (
    create_connector,
    create_connector_from_settings,
    infer_database_type,
)
from querypilot.connectors.postgres import PostgresConnector

__all__ = [
    "BaseConnector",
    "PostgresConnector",
    "create_connector",
    "create_connector_from_settings",
    "infer_database_type",
    "IMPLICIT_CONSTRAINT",
    "ColumnInfo",
    "ForeignKeyInfo",
    "TableSchema",
    "QueryResult",
    "ConnectorError",
    "ConnectionError",
    "QueryError",
    "SchemaError",
]
