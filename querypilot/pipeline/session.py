"""
Plan Session

Runs one natural-language request end to end:

    schema resolution -> prompt -> LLM -> plan parsing -> SQL compilation
    -> coordinator (execute read-only, hold mutations for review)

"next page" / "previous page" requests skip the LLM and move the retained
plan through the coordinator directly.

Usage:
    async with PlanSession.from_settings(get_settings()) as session:
        outcome = await session.ask("company", "companies in China")
        outcome = await session.ask("company", "next page")
"""

import asyncio
import logging
import time

from querypilot.config import PlannerSettings, Settings
from querypilot.connectors.base import BaseConnector
from querypilot.connectors.factory import create_connector_from_settings
from querypilot.llm.base import BaseLLMProvider
from querypilot.llm.factory import LLMProviderFactory
from querypilot.models.errors import QueryPlanError
from querypilot.models.plan import QueryPlan
from querypilot.planner.compiler import compile_plan
from querypilot.planner.coordinator import PlanCoordinator, PlanOutcome, detect_navigation
from querypilot.planner.parser import parse_plan
from querypilot.planner.prompts import QUERY_PLAN_SYSTEM_PROMPT, build_query_plan_prompt
from querypilot.schema.resolver import SchemaResolver

logger = logging.getLogger(__name__)


class PlanSession:
    """
    One interactive session against a database.

    Owns the coordinator (and therefore the retained plan). Requests are
    serialized: at most one plan is generated or executed at a time.
    """

    def __init__(
        self,
        connector: BaseConnector,
        provider: BaseLLMProvider,
        planner_settings: PlannerSettings | None = None,
    ):
        self.connector = connector
        self.provider = provider
        self.settings = planner_settings or PlannerSettings()
        self.resolver = SchemaResolver(connector)
        self.coordinator = PlanCoordinator(connector)
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "PlanSession":
        """
        Build a session from application settings.

        Raises:
            ValueError: If no database URL is configured or the LLM provider
                cannot be created
        """
        connector = create_connector_from_settings(settings.database)
        provider = LLMProviderFactory.create_default_provider(settings.llm)
        return cls(connector, provider, settings.planner)

    async def __aenter__(self) -> "PlanSession":
        await self.connector.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.connector.close()
        await self.provider.close()

    @property
    def current_plan(self) -> QueryPlan | None:
        return self.coordinator.current_plan

    async def schema_context(self, table: str) -> str:
        """
        Schema text for a table, including related tables when enabled.

        Raises:
            SchemaResolutionError: If the table cannot be described
        """
        return await self.resolver.schema_context(table, self.settings.include_related_schemas)

    async def ask(self, table: str, question: str) -> PlanOutcome:
        """
        Answer one request about `table`.

        Raises:
            NoActivePlanError: On a pagination request with no retained plan
            SchemaResolutionError: If the table cannot be described
            PlanParseError: If the model response holds no usable plan
            PlanValidationError: If the plan cannot be compiled
            PlanExecutionError: If the database rejects the data query
        """
        async with self._lock:
            direction = detect_navigation(question)
            if direction is not None:
                return await self.coordinator.navigate(direction)
            return await self._plan_and_accept(table, question)

    async def _plan_and_accept(self, table: str, question: str) -> PlanOutcome:
        schema_context = await self.schema_context(table)
        data_view_state = self.coordinator.data_view_state(table, self.settings.default_limit)
        prompt = build_query_plan_prompt(schema_context, data_view_state, question)

        logger.info(
            f"Requesting query plan for {table}",
            extra={
                "provider": self.provider.provider_name,
                "table": table,
                "question": question,
                "data_view_state": data_view_state,
            },
        )

        start = time.perf_counter()
        response = await self.provider.generate_text(
            prompt, system=QUERY_PLAN_SYSTEM_PROMPT, json_output=self.settings.json_output
        )
        latency_ms = (time.perf_counter() - start) * 1000
        logger.debug(
            "Query plan response received",
            extra={"response": response, "latency_ms": round(latency_ms, 2)},
        )

        try:
            plan = self.apply_limits(parse_plan(response))
            sql = None if plan.need_other_tables else compile_plan(plan)
        except QueryPlanError as e:
            logger.error(f"Rejected query plan: {e}", extra={"error": e.to_dict()})
            raise

        outcome = await self.coordinator.accept(plan, sql)
        logger.info(
            f"Plan outcome: {outcome.kind}",
            extra={"summary": outcome.summary, "sql": outcome.sql},
        )
        return outcome

    async def navigate(self, direction: str) -> PlanOutcome:
        async with self._lock:
            return await self.coordinator.navigate(direction)

    def apply_limits(self, plan: QueryPlan) -> QueryPlan:
        """Apply the configured default page size and optional cap."""
        limit = plan.limit
        if "limit" not in plan.model_fields_set:
            limit = self.settings.default_limit
        if self.settings.max_limit is not None and limit > self.settings.max_limit:
            limit = self.settings.max_limit
        if limit == plan.limit:
            return plan
        return plan.model_copy(update={"limit": limit})
