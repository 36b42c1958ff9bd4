"""
Models Module

Plan value objects and the error taxonomy.
"""

from querypilot.models.errors import (
    NoActivePlanError,
    PlanExecutionError,
    PlanParseError,
    PlanValidationError,
    QueryPlanError,
    SchemaResolutionError,
)
from querypilot.models.plan import (
    DEFAULT_ACTION,
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    PlanSort,
    QueryPlan,
    to_sql_literal,
)

__all__ = [
    # Plan
    "QueryPlan",
    "PlanSort",
    "to_sql_literal",
    "DEFAULT_ACTION",
    "DEFAULT_LIMIT",
    "DEFAULT_PAGE",
    # Errors
    "QueryPlanError",
    "PlanParseError",
    "PlanValidationError",
    "SchemaResolutionError",
    "PlanExecutionError",
    "NoActivePlanError",
]
