"""Render table schemas as the text block injected into the plan prompt."""

from querypilot.connectors.base import ColumnInfo, TableSchema


def _format_column(column: ColumnInfo, include_default: bool) -> str:
    nullable = "NULL" if column.is_nullable else "NOT NULL"
    line = f"- {column.name} {column.data_type} {nullable}"
    if column.is_primary_key:
        line += " [PK]"
    if include_default and column.default_value:
        line += f" DEFAULT {column.default_value}"
    return line


def format_schema_context(
    current: TableSchema,
    related: dict[str, TableSchema] | None = None,
) -> str:
    """
    Describe the current table and its related tables.

    Related tables are emitted in sorted name order so the same schemas
    always produce the same text.
    """
    lines = [f"## Current Table: {current.name}", "", "### Columns"]
    lines.extend(_format_column(column, include_default=True) for column in current.columns)

    if current.foreign_keys:
        lines.extend(["", "### Foreign Keys"])
        for fk in current.foreign_keys:
            lines.append(
                f"- {current.name}.{fk.column} → {fk.foreign_table}.{fk.foreign_column} "
                f"(constraint: {fk.constraint_name})"
            )

    if related:
        lines.extend(["", "## Related Tables (via Foreign Keys)"])
        for name in sorted(related):
            lines.extend(["", f"### {name}", "Columns:"])
            lines.extend(
                _format_column(column, include_default=False)
                for column in related[name].columns
            )

    return "\n".join(lines) + "\n"
