"""
Query Plan Models

The structured plan returned by the AI collaborator. A plan describes what
data to fetch or change without containing raw SQL; the compiler turns it
into SQL text.

Wire format (all fields optional):
    {
        "tables": ["company", "country"],
        "joins": ["company.country_id = country.id"],
        "filters": ["country.name = 'China'"],
        "select": ["company.id", "company.name"],
        "limit": 20,
        "page": 1,
        "sort": {"column": "company.name", "order": "asc"},
        "action": "select",
        "update_set": {"status": "'closed'"},
        "insert_columns": ["name"],
        "insert_values": [["'Acme'"]],
        "need_other_tables": false,
        "description": "Companies located in China"
    }
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_LIMIT = 20
DEFAULT_PAGE = 1
DEFAULT_ACTION = "select"


def to_sql_literal(value: Any) -> str:
    """Render a JSON scalar as SQL literal text; strings pass through untouched."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int | float):
        return str(value)
    if isinstance(value, str):
        return value
    raise ValueError(f"expected a scalar SQL value, got {json.dumps(value)}")


class PlanSort(BaseModel):
    """Sort specification of a plan."""

    column: str = Field(default="", description="Column to order by")
    order: str = Field(default="asc", description="'asc' or 'desc'")

    model_config = ConfigDict(extra="ignore")

    @field_validator("column", "order", mode="before")
    @classmethod
    def none_to_default(cls, v: Any, info) -> Any:
        if v is None:
            return "asc" if info.field_name == "order" else ""
        return v

    @property
    def direction(self) -> str:
        """SQL direction keyword; anything but 'desc' sorts ascending."""
        return "DESC" if self.order.strip().upper() == "DESC" else "ASC"


class QueryPlan(BaseModel):
    """
    Structured query plan produced by the AI collaborator.

    tables[0] is the anchor table: the root of the FROM clause and the
    target of UPDATE, DELETE and INSERT. After validation limit > 0 and
    page >= 1 always hold. When need_other_tables is set every other
    field must be disregarded.
    """

    tables: list[str] = Field(default_factory=list, description="Tables involved, anchor first")
    joins: list[str] = Field(default_factory=list, description="Join conditions")
    filters: list[str] = Field(default_factory=list, description="WHERE fragments, AND-combined")
    select: list[str] = Field(default_factory=lambda: ["*"], description="Projected columns")
    limit: int = Field(default=DEFAULT_LIMIT, description="Rows per page")
    page: int = Field(default=DEFAULT_PAGE, description="1-based page number")
    sort: PlanSort | None = Field(default=None, description="Optional ordering")
    action: str = Field(default=DEFAULT_ACTION, description="select, update, delete or insert")
    update_set: dict[str, str] = Field(
        default_factory=dict, description="Column to SQL value, update only"
    )
    insert_columns: list[str] = Field(default_factory=list, description="Insert only")
    insert_values: list[list[str]] = Field(default_factory=list, description="Insert rows")
    need_other_tables: bool = Field(
        default=False,
        description="Request cannot be satisfied with the current table and its related tables",
    )
    description: str = Field(default="", description="Human-readable description")

    model_config = ConfigDict(extra="ignore")

    @field_validator("tables", "joins", "filters", "insert_columns", mode="before")
    @classmethod
    def coerce_string_list(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        return v

    @field_validator("select", mode="before")
    @classmethod
    def default_select(cls, v: Any) -> Any:
        if v is None or v == [] or v == "":
            return ["*"]
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("limit", mode="before")
    @classmethod
    def default_limit(cls, v: Any) -> Any:
        return DEFAULT_LIMIT if v is None else v

    @field_validator("limit")
    @classmethod
    def positive_limit(cls, v: int) -> int:
        return v if v > 0 else DEFAULT_LIMIT

    @field_validator("page", mode="before")
    @classmethod
    def default_page(cls, v: Any) -> Any:
        return DEFAULT_PAGE if v is None else v

    @field_validator("page")
    @classmethod
    def positive_page(cls, v: int) -> int:
        return v if v > 0 else DEFAULT_PAGE

    @field_validator("action", mode="before")
    @classmethod
    def normalize_action(cls, v: Any) -> Any:
        if v is None:
            return DEFAULT_ACTION
        if isinstance(v, str):
            return v.strip().lower() or DEFAULT_ACTION
        return v

    @field_validator("update_set", mode="before")
    @classmethod
    def render_update_values(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, dict):
            return {column: to_sql_literal(value) for column, value in v.items()}
        return v

    @field_validator("insert_values", mode="before")
    @classmethod
    def render_insert_rows(cls, v: Any) -> Any:
        if v is None:
            return []
        if not isinstance(v, list):
            return v
        # a single flat row is accepted as one row
        if v and not any(isinstance(row, list) for row in v):
            v = [v]
        return [
            [to_sql_literal(value) for value in row] if isinstance(row, list) else row
            for row in v
        ]

    @field_validator("description", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def anchor_table(self) -> str | None:
        return self.tables[0] if self.tables else None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
