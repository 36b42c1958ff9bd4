"""
Planner Module

Pure plan parsing and SQL compilation, plus the stateful coordinator that
owns pagination of the current plan.

Usage:
    from querypilot.planner import compile_plan, parse_plan

    plan = parse_plan(ai_response)
    sql = compile_plan(plan)
"""

from querypilot.planner.compiler import (
    build_from_clause,
    build_where_clause,
    compile_count,
    compile_plan,
)
from querypilot.planner.coordinator import (
    NEED_OTHER_TABLES_MESSAGE,
    PageInfo,
    PlanCoordinator,
    PlanOutcome,
    detect_navigation,
    is_read_only,
    next_page,
    previous_page,
    summarize_plan,
)
from querypilot.planner.parser import extract_json, parse_plan
from querypilot.planner.prompts import QUERY_PLAN_SYSTEM_PROMPT, build_query_plan_prompt

__all__ = [
    # Parsing
    "extract_json",
    "parse_plan",
    # Compilation
    "build_from_clause",
    "build_where_clause",
    "compile_plan",
    "compile_count",
    # Coordination
    "PlanCoordinator",
    "PlanOutcome",
    "PageInfo",
    "NEED_OTHER_TABLES_MESSAGE",
    "detect_navigation",
    "is_read_only",
    "next_page",
    "previous_page",
    "summarize_plan",
    # Prompts
    "QUERY_PLAN_SYSTEM_PROMPT",
    "build_query_plan_prompt",
]
