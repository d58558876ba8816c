"""
Parsing of optimizer completions into OptimizerResult.

Models wrap JSON in markdown fences or surround it with prose, so the payload
is located first: a fenced ```json block wins, otherwise the largest
top-level {...} span that parses.
"""

import json
import logging
import math
import re
from typing import Any, Optional

from rosterai.services.scheduling.errors import MalformedOptimizerOutput
from rosterai.services.scheduling.types import (
    OptimizerResult,
    OptimizerSummary,
    RawRecommendation,
)


logger = logging.getLogger(__name__)

FENCED_BLOCK_RE = re.compile(r"```(?:json|JSON)?\s*(\{.*?\})\s*```", re.DOTALL)

SUMMARY_ALIASES = {
    "coverage_score": ("coverage_score", "coverageScore"),
    "preference_score": ("preference_score", "preferenceScore"),
    "estimated_weekly_hours": ("estimated_weekly_hours", "estimatedWeeklyHours", "estimatedHours"),
    "constraint_violations": ("constraint_violations", "constraintViolations"),
}


def _top_level_spans(content: str) -> list[str]:
    """All balanced top-level {...} spans, ignoring braces inside JSON strings."""
    spans = []
    offset = 0

    while offset < len(content):
        depth = 0
        start = None
        in_string = False
        escaped = False

        for i in range(offset, len(content)):
            ch = content[i]
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
                    spans.append(content[start:i + 1])

        if depth == 0:
            break
        # an unmatched "{" swallowed the rest of the content, scan again after it
        offset = start + 1

    return spans


def _load_object(text: str) -> Optional[dict]:
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def extract_json_payload(content: Optional[str]) -> dict:
    """
    Locate and decode the JSON object in a completion.

    Raises:
        MalformedOptimizerOutput: no parseable JSON object anywhere in the content
    """
    if not isinstance(content, str) or not content.strip():
        raise MalformedOptimizerOutput(
            "Optimizer returned empty content", raw_content="" if content is None else str(content)
        )

    for match in FENCED_BLOCK_RE.finditer(content):
        parsed = _load_object(match.group(1))
        if parsed is not None:
            return parsed

    parsed = _load_object(content.strip())
    if parsed is not None:
        return parsed

    for span in sorted(_top_level_spans(content), key=len, reverse=True):
        parsed = _load_object(span)
        if parsed is not None:
            return parsed

    raise MalformedOptimizerOutput(
        "Failed to parse optimizer response: no JSON object found", raw_content=content
    )


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _parse_summary(data: Any) -> OptimizerSummary:
    if not isinstance(data, dict):
        return OptimizerSummary()

    values = {}
    for name, keys in SUMMARY_ALIASES.items():
        values[name] = next((_number(data[k]) for k in keys if data.get(k) is not None), None)

    violations = values["constraint_violations"]
    warnings = data.get("warnings") or []
    if not isinstance(warnings, list):
        warnings = [warnings]

    return OptimizerSummary(
        coverage_score=values["coverage_score"],
        preference_score=values["preference_score"],
        estimated_weekly_hours=values["estimated_weekly_hours"],
        constraint_violations=int(violations) if violations is not None else None,
        warnings=[str(w) for w in warnings if w],
    )


def parse_optimizer_payload(payload: dict) -> OptimizerResult:
    """
    Shape a decoded payload into an OptimizerResult.

    Raises:
        MalformedOptimizerOutput: the payload has no recommendations list
    """
    recs = payload.get("recommendations")
    if not isinstance(recs, list):
        raise MalformedOptimizerOutput(
            "Optimizer response has no recommendations list",
            raw_content=json.dumps(payload, default=str),
        )

    recommendations = [
        RawRecommendation.from_dict(item) if isinstance(item, dict) else RawRecommendation(raw={"value": item})
        for item in recs
    ]
    return OptimizerResult(recommendations=recommendations, summary=_parse_summary(payload.get("summary")))


def parse_completion(content: Optional[str]) -> OptimizerResult:
    return parse_optimizer_payload(extract_json_payload(content))
