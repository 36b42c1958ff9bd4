"""
Schema Resolver

Builds the TableSchema of a table and of the tables its foreign keys
point at. When a table declares no foreign keys at all, relationships are
inferred from the `<name>_id` naming convention.

Usage:
    resolver = SchemaResolver(connector)
    main, related = await resolver.fetch_context("company")
    text = await resolver.schema_context("company")
"""

import asyncio
import logging

from querypilot.connectors.base import (
    IMPLICIT_CONSTRAINT,
    BaseConnector,
    ColumnInfo,
    ConnectorError,
    ForeignKeyInfo,
    TableSchema,
)
from querypilot.models.errors import SchemaResolutionError
from querypilot.schema.formatter import format_schema_context

logger = logging.getLogger(__name__)

IMPLICIT_SUFFIX = "_id"


class SchemaResolver:
    """
    Resolves table schemas through a connector's catalog operations.

    Nothing is cached: every call reads the catalog again.
    """

    def __init__(self, connector: BaseConnector):
        self.connector = connector

    async def fetch_schema(self, table: str) -> TableSchema:
        """
        Fetch columns and foreign keys of a table.

        Raises:
            SchemaResolutionError: If the table cannot be described
        """
        try:
            columns = await self.connector.describe_columns(table)
            foreign_keys = await self.connector.describe_foreign_keys(table)
            if not foreign_keys:
                foreign_keys = await self.detect_implicit_foreign_keys(table, columns)
        except ConnectorError as e:
            raise SchemaResolutionError(table, f"Failed to fetch schema for {table}: {e}") from e

        logger.debug(
            f"Resolved schema for {table}",
            extra={
                "table": table,
                "columns": len(columns),
                "foreign_keys": len(foreign_keys),
                "implicit": any(fk.is_implicit for fk in foreign_keys),
            },
        )
        return TableSchema(name=table, columns=columns, foreign_keys=foreign_keys)

    async def detect_implicit_foreign_keys(
        self, table: str, columns: list[ColumnInfo]
    ) -> list[ForeignKeyInfo]:
        """
        Infer `<x>_id -> <x>.id` relationships for a table without declared keys.

        Only columns other than the table's primary key are considered, and
        a relationship is emitted only when a table literally named `<x>`
        exists.
        """
        primary_keys = {column.name for column in columns if column.is_primary_key}
        inferred: list[ForeignKeyInfo] = []

        for column in columns:
            name = column.name
            if column.is_primary_key or name in primary_keys:
                continue
            if not name.endswith(IMPLICIT_SUFFIX) or len(name) <= len(IMPLICIT_SUFFIX):
                continue

            target = name[: -len(IMPLICIT_SUFFIX)]
            if await self.connector.table_exists(target):
                inferred.append(
                    ForeignKeyInfo(
                        constraint_name=IMPLICIT_CONSTRAINT,
                        column=name,
                        foreign_table=target,
                        foreign_column="id",
                    )
                )

        if inferred:
            logger.info(
                f"Inferred {len(inferred)} implicit foreign keys for {table}",
                extra={"table": table, "targets": [fk.foreign_table for fk in inferred]},
            )
        return inferred

    async def fetch_related_schemas(self, main: TableSchema) -> dict[str, TableSchema]:
        """
        Fetch one schema per unique foreign key target of `main`.

        Only one hop is followed. Tables that cannot be described (missing
        privileges, dropped tables) are logged and left out.
        """
        targets: list[str] = []
        for fk in main.foreign_keys:
            if fk.foreign_table not in targets:
                targets.append(fk.foreign_table)

        if not targets:
            return {}

        results = await asyncio.gather(
            *(self.fetch_schema(target) for target in targets),
            return_exceptions=True,
        )

        related: dict[str, TableSchema] = {}
        for target, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning(
                    f"Skipping related table {target}: {result}",
                    extra={
                        "table": main.name,
                        "related_table": target,
                        "error_type": type(result).__name__,
                    },
                )
                continue
            if isinstance(result, BaseException):
                raise result
            related[target] = result

        return related

    async def fetch_context(
        self, table: str, include_related: bool = True
    ) -> tuple[TableSchema, dict[str, TableSchema]]:
        """Fetch the table's schema together with its related tables."""
        main = await self.fetch_schema(table)
        related = await self.fetch_related_schemas(main) if include_related else {}
        return main, related

    async def schema_context(self, table: str, include_related: bool = True) -> str:
        """Schema text for `table` as it is sent to the model."""
        main, related = await self.fetch_context(table, include_related)
        return format_schema_context(main, related)
