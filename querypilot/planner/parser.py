"""
Plan Parser

Extracts the JSON query plan from free-text AI output. The response may
wrap the JSON in markdown fences or surround it with prose, so extraction
tries, in order:

1. a ```json fenced block
2. the first fenced block whose content starts with "{"
3. the first balanced {...} span found by brace matching
"""

import json
import logging

from pydantic import ValidationError

from querypilot.models.errors import PlanParseError
from querypilot.models.plan import QueryPlan

logger = logging.getLogger(__name__)

_FENCE = "```"
_JSON_FENCE = "```json"


def _fenced_block(text: str, opener: str) -> str | None:
    idx = text.find(opener)
    if idx < 0:
        return None
    start = idx + len(opener)
    end = text.find(_FENCE, start)
    if end < 0:
        return None
    return text[start:end].strip()


def _balanced_object(text: str) -> str | None:
    depth = 0
    start = -1
    in_string = False
    escaped = False

    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"' and depth > 0:
            in_string = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                return text[start : i + 1]

    return None


def extract_json(text: str) -> str:
    """Return the JSON object text embedded in `text`, or "" when there is none."""
    if not text:
        return ""

    block = _fenced_block(text, _JSON_FENCE)
    if block is not None:
        return block

    block = _fenced_block(text, _FENCE)
    if block is not None and block.startswith("{"):
        return block

    return _balanced_object(text) or ""


def parse_plan(response: str) -> QueryPlan:
    """
    Parse an AI response into a QueryPlan with defaults applied.

    Raises:
        PlanParseError: "no JSON found" or "malformed JSON"
    """
    json_str = extract_json(response)
    if not json_str:
        logger.warning("No JSON found in AI response", extra={"response_chars": len(response or "")})
        raise PlanParseError(PlanParseError.NO_JSON, raw=response or "")

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        logger.warning(f"Malformed plan JSON: {e}")
        raise PlanParseError(PlanParseError.MALFORMED, raw=json_str, detail=str(e)) from e

    if not isinstance(data, dict):
        raise PlanParseError(
            PlanParseError.MALFORMED,
            raw=json_str,
            detail=f"expected an object, got {type(data).__name__}",
        )

    try:
        plan = QueryPlan.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Plan JSON has invalid fields: {e.error_count()} errors")
        raise PlanParseError(PlanParseError.MALFORMED, raw=json_str, detail=str(e)) from e

    logger.debug(
        "Parsed query plan",
        extra={
            "tables": plan.tables,
            "action": plan.action,
            "limit": plan.limit,
            "page": plan.page,
            "need_other_tables": plan.need_other_tables,
        },
    )
    return plan
