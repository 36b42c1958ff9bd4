"""
SQL Compiler

Turns a QueryPlan into PostgreSQL text. Compilation is pure: nothing is
executed here, and the same plan always yields the same SQL.

SELECT and the companion COUNT query share one FROM/JOIN/WHERE builder, so
pagination totals always describe the same result set as the data query.
Filters, join conditions and values are emitted verbatim; the plan producer
is responsible for quoting literals.
"""

from querypilot.models.errors import PlanValidationError
from querypilot.models.plan import QueryPlan


def build_from_clause(plan: QueryPlan) -> str:
    """
    Build the FROM + JOIN clause shared by SELECT and COUNT.

    Each table after the anchor is joined on the first join condition that
    mentions "<table>."; without one it is CROSS JOINed, never dropped.
    """
    if not plan.tables:
        raise PlanValidationError("query plan has no tables", action=plan.action)

    clause = plan.tables[0]
    for table in plan.tables[1:]:
        needle = f"{table}."
        condition = next((join for join in plan.joins if needle in join), None)
        if condition:
            clause += f"\nJOIN {table} ON {condition}"
        else:
            clause += f"\nCROSS JOIN {table}"
    return clause


def build_where_clause(plan: QueryPlan) -> str:
    """Return "\\nWHERE a\\n  AND b", or "" when the plan has no filters."""
    if not plan.filters:
        return ""
    return "\nWHERE " + "\n  AND ".join(plan.filters)


def compile_select(plan: QueryPlan) -> str:
    columns = ", ".join(plan.select) if plan.select else "*"
    sql = f"SELECT {columns}\nFROM {build_from_clause(plan)}{build_where_clause(plan)}"

    if plan.sort is not None and plan.sort.column:
        sql += f"\nORDER BY {plan.sort.column} {plan.sort.direction}"

    sql += f"\nLIMIT {plan.limit}"
    if plan.page > 1:
        sql += f" OFFSET {plan.offset}"
    return sql


def compile_count(plan: QueryPlan) -> str:
    """
    Build the COUNT(*) query matching the plan's FROM/JOIN/WHERE.

    Returns "" when the plan has no tables; callers treat that as
    "no count available" rather than an error.
    """
    if not plan.tables:
        return ""
    return f"SELECT count(*) FROM {build_from_clause(plan)}{build_where_clause(plan)}"


def compile_update(plan: QueryPlan) -> str:
    if not plan.tables:
        raise PlanValidationError("update plan has no tables", action="update")
    if not plan.update_set:
        raise PlanValidationError("update plan has no SET values", action="update")

    assignments = ", ".join(f"{column} = {value}" for column, value in plan.update_set.items())
    return f"UPDATE {plan.tables[0]}\nSET {assignments}{build_where_clause(plan)}"


def compile_delete(plan: QueryPlan) -> str:
    if not plan.tables:
        raise PlanValidationError("delete plan has no tables", action="delete")
    return f"DELETE FROM {plan.tables[0]}{build_where_clause(plan)}"


def compile_insert(plan: QueryPlan) -> str:
    if not plan.tables:
        raise PlanValidationError("insert plan has no tables", action="insert")
    if not plan.insert_columns or not plan.insert_values:
        raise PlanValidationError("insert plan has no columns or values", action="insert")

    rows = ",\n       ".join("(" + ", ".join(row) + ")" for row in plan.insert_values)
    columns = ", ".join(plan.insert_columns)
    return f"INSERT INTO {plan.tables[0]} ({columns})\nVALUES {rows}"


_COMPILERS = {
    "select": compile_select,
    "": compile_select,
    "update": compile_update,
    "delete": compile_delete,
    "insert": compile_insert,
}


def compile_plan(plan: QueryPlan) -> str:
    """
    Compile a plan into SQL according to its action.

    Raises:
        PlanValidationError: On an unsupported action or a plan missing the
            fields its action requires
    """
    compiler = _COMPILERS.get(plan.action)
    if compiler is None:
        raise PlanValidationError(f"unsupported action: {plan.action}", action=plan.action)
    return compiler(plan)
