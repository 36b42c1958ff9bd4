"""
Query Plan Errors

Exception hierarchy shared by the parser, compiler, schema resolver and
coordinator. Every error carries a human-readable message and a context
dictionary for structured logging.
"""

from typing import Any


class QueryPlanError(Exception):
    """
    Base exception for query plan processing.

    Attributes:
        message: Error description
        context: Additional context for debugging
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class PlanParseError(QueryPlanError):
    """The collaborator's response did not contain a usable JSON plan."""

    NO_JSON = "no JSON found"
    MALFORMED = "malformed JSON"

    def __init__(self, reason: str, raw: str = "", detail: str | None = None):
        self.reason = reason
        self.raw = raw
        message = f"{reason} in AI response"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, context={"reason": reason, "raw": raw[:500]})


class PlanValidationError(QueryPlanError):
    """A plan violates the compiler contract (missing tables, SET values, ...)."""

    def __init__(self, message: str, action: str | None = None):
        self.action = action
        super().__init__(message, context={"action": action})


class SchemaResolutionError(QueryPlanError):
    """The anchor table could not be described."""

    def __init__(self, table: str, message: str):
        self.table = table
        super().__init__(message, context={"table": table})


class PlanExecutionError(QueryPlanError):
    """The database rejected compiled SQL. The literal SQL is kept for display."""

    def __init__(self, message: str, sql: str):
        self.sql = sql
        super().__init__(message, context={"sql": sql})


class NoActivePlanError(QueryPlanError):
    """A pagination command arrived before any plan was executed."""

    def __init__(self, message: str = "No query plan to paginate; ask a question first"):
        super().__init__(message)
