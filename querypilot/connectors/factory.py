"""Connector factory for supported database URLs."""

from __future__ import annotations

from urllib.parse import unquote, urlparse

from querypilot.config import DatabaseSettings
from querypilot.connectors.base import BaseConnector
from querypilot.connectors.postgres import PostgresConnector

_POSTGRES_SCHEMES = {"postgres", "postgresql"}


def infer_database_type(database_url: str) -> str:
    """Infer logical database type from connection URL scheme."""
    parsed = _parse_url(database_url)
    scheme = parsed.scheme.split("+")[0].lower()
    if scheme in _POSTGRES_SCHEMES:
        return "postgresql"
    raise ValueError(f"Unsupported database URL scheme: {parsed.scheme}")


def create_connector(
    *,
    database_url: str,
    schema_name: str = "public",
    pool_size: int = 10,
    timeout: int = 30,
    **kwargs,
) -> BaseConnector:
    """Create a connector instance from a database URL."""
    parsed = _parse_url(database_url)
    if not parsed.hostname:
        raise ValueError("Invalid database URL: host is required.")

    infer_database_type(database_url)
    db_name = parsed.path.lstrip("/")

    return PostgresConnector(
        host=parsed.hostname,
        port=parsed.port or 5432,
        database=db_name or "postgres",
        user=unquote(parsed.username) if parsed.username else "postgres",
        password=unquote(parsed.password) if parsed.password else "",
        schema_name=schema_name,
        pool_size=pool_size,
        timeout=timeout,
        **kwargs,
    )


def create_connector_from_settings(settings: DatabaseSettings) -> BaseConnector:
    """
    Create the connector for the configured target database.

    Raises:
        ValueError: If DATABASE_URL is not set
    """
    if settings.url is None:
        raise ValueError("No target database configured. Set DATABASE_URL.")

    return create_connector(
        database_url=str(settings.url),
        schema_name=settings.schema_name,
        pool_size=settings.pool_size,
        timeout=settings.timeout,
    )


def _parse_url(database_url: str):
    normalized = database_url.replace("postgresql+asyncpg://", "postgresql://")
    return urlparse(normalized)
