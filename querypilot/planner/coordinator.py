"""
Pagination & Execution Coordinator

Decides what happens to a freshly parsed plan and keeps "next page" /
"previous page" follow-ups consistent with the most recent plan.

Safety rule: only read-only plans (action "select" or unset) are ever
executed. Mutating plans are compiled and handed back for the operator
to review and run explicitly.

Usage:
    coordinator = PlanCoordinator(connector)

    outcome = await coordinator.accept(plan)
    if outcome.kind == "review_required":
        print(outcome.sql)

    outcome = await coordinator.navigate("next")
"""

import logging
import math
from dataclasses import dataclass
from typing import Literal

from querypilot.connectors.base import BaseConnector, ConnectorError, QueryResult
from querypilot.models.errors import (
    NoActivePlanError,
    PlanExecutionError,
    PlanValidationError,
)
from querypilot.models.plan import DEFAULT_LIMIT, QueryPlan
from querypilot.planner.compiler import compile_count, compile_plan

logger = logging.getLogger(__name__)

NEED_OTHER_TABLES_MESSAGE = (
    "Cannot satisfy this query with the current table and its related tables."
)
READ_ONLY_ACTIONS = {"select", ""}

Direction = Literal["next", "previous"]
OutcomeKind = Literal["executed", "review_required", "need_other_tables"]


def is_read_only(plan: QueryPlan) -> bool:
    """True when the plan is a SELECT and therefore safe to auto-execute."""
    return plan.action in READ_ONLY_ACTIONS


def summarize_plan(plan: QueryPlan) -> str:
    """One-line description of a plan for confirmation and review output."""
    if plan.need_other_tables:
        return NEED_OTHER_TABLES_MESSAGE
    if plan.description:
        return plan.description

    action = (plan.action or "select").upper()
    summary = f"{action} on {', '.join(plan.tables)}"

    if plan.filters:
        summary += " where " + " and ".join(plan.filters)
    if plan.sort is not None:
        summary += f" order by {plan.sort.column} {plan.sort.order}"
    if plan.limit > 0:
        summary += f" (limit {plan.limit}, page {plan.page})"
    return summary


def detect_navigation(text: str) -> Direction | None:
    """Recognize relative pagination requests in free text."""
    lowered = text.lower()
    if "next page" in lowered:
        return "next"
    if "previous page" in lowered or "prev page" in lowered:
        return "previous"
    return None


def next_page(plan: QueryPlan) -> QueryPlan:
    """Copy of the plan one page further. No upper bound is enforced."""
    return plan.model_copy(update={"page": plan.page + 1})


def previous_page(plan: QueryPlan) -> QueryPlan:
    """Copy of the plan one page back, never below page 1."""
    return plan.model_copy(update={"page": max(1, plan.page - 1)})


@dataclass(frozen=True)
class PageInfo:
    """Pagination position derived from page, limit and the COUNT total."""

    page: int
    limit: int
    row_count: int
    total: int | None = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def total_pages(self) -> int | None:
        if self.total is None:
            return None
        return max(1, math.ceil(self.total / self.limit))

    @property
    def first_row(self) -> int:
        return self.offset + 1 if self.row_count else 0

    @property
    def last_row(self) -> int:
        return self.offset + self.row_count

    def status(self) -> str:
        if self.total is None:
            position = f"Page {self.page}"
        else:
            position = f"Page {self.page}/{self.total_pages}"

        if not self.row_count:
            rows = "No rows"
        else:
            rows = f"Rows {self.first_row}–{self.last_row}"
        if self.total is not None:
            rows += f" of {self.total}"
        return f"{position}  |  {rows}"


@dataclass
class PlanOutcome:
    """What the coordinator did with a plan."""

    kind: OutcomeKind
    plan: QueryPlan
    summary: str
    sql: str | None = None
    count_sql: str | None = None
    result: QueryResult | None = None
    page_info: PageInfo | None = None

    @property
    def executed(self) -> bool:
        return self.kind == "executed"


class PlanCoordinator:
    """
    Owns the "current plan" of a session.

    The retained plan is replaced wholesale by every accepted plan and is
    only used to answer relative pagination commands.
    """

    def __init__(self, connector: BaseConnector):
        self.connector = connector
        self.current_plan: QueryPlan | None = None

    def reset(self) -> None:
        self.current_plan = None

    async def accept(self, plan: QueryPlan, sql: str | None = None) -> PlanOutcome:
        """
        Classify a freshly parsed plan and execute it when it is read-only.

        Raises:
            PlanValidationError: If the plan cannot be compiled
            PlanExecutionError: If the database rejects the data query
        """
        summary = summarize_plan(plan)
        if plan.need_other_tables:
            logger.info("Plan requires other tables; nothing to execute")
            return PlanOutcome(kind="need_other_tables", plan=plan, summary=summary)

        sql = sql or compile_plan(plan)
        self.current_plan = plan

        if not is_read_only(plan):
            logger.info(
                f"{plan.action.upper()} plan held for review",
                extra={"action": plan.action, "tables": plan.tables},
            )
            return PlanOutcome(kind="review_required", plan=plan, summary=summary, sql=sql)

        return await self._execute(plan, sql, summary)

    async def navigate(self, direction: Direction) -> PlanOutcome:
        """
        Move the retained plan one page and re-execute it.

        Raises:
            NoActivePlanError: If no plan has been accepted yet
            PlanValidationError: If the retained plan is not read-only
            PlanExecutionError: If the database rejects the data query
        """
        if self.current_plan is None:
            raise NoActivePlanError()
        if not is_read_only(self.current_plan):
            raise PlanValidationError(
                f"cannot paginate a {self.current_plan.action} plan",
                action=self.current_plan.action,
            )

        step = next_page if direction == "next" else previous_page
        plan = step(self.current_plan)
        sql = compile_plan(plan)
        self.current_plan = plan

        logger.info(
            f"Paginating to page {plan.page}",
            extra={"direction": direction, "page": plan.page, "limit": plan.limit},
        )
        return await self._execute(plan, sql, summarize_plan(plan))

    async def _execute(self, plan: QueryPlan, sql: str, summary: str) -> PlanOutcome:
        try:
            result = await self.connector.execute(sql)
        except ConnectorError as e:
            logger.error(f"Plan execution failed: {e}", extra={"sql": sql})
            raise PlanExecutionError(str(e), sql=sql) from e

        count_sql = compile_count(plan)
        total = await self._count(count_sql) if count_sql else None

        page_info = PageInfo(
            page=plan.page, limit=plan.limit, row_count=result.row_count, total=total
        )
        logger.info(
            "Executed read-only plan",
            extra={
                "tables": plan.tables,
                "page": plan.page,
                "rows": result.row_count,
                "total": total,
            },
        )
        return PlanOutcome(
            kind="executed",
            plan=plan,
            summary=summary,
            sql=sql,
            count_sql=count_sql or None,
            result=result,
            page_info=page_info,
        )

    async def _count(self, count_sql: str) -> int | None:
        try:
            value = await self.connector.fetch_value(count_sql)
        except ConnectorError as e:
            logger.warning(f"Count query failed, total unavailable: {e}", extra={"sql": count_sql})
            return None
        return int(value) if value is not None else None

    def data_view_state(self, table: str | None = None, default_limit: int = DEFAULT_LIMIT) -> str:
        """Describe the retained plan's position for the next plan prompt."""
        plan = self.current_plan
        if plan is None or not plan.tables:
            current = table or "(none)"
            return f"Current table: {current}, Page: 1, Limit: {default_limit}"

        state = f"Current table: {plan.tables[0]}, Page: {plan.page}, Limit: {plan.limit}"
        if plan.sort is not None and plan.sort.column:
            state += f", Sort: {plan.sort.column} {plan.sort.order}"
        return state
