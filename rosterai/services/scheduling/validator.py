"""
Response validator and normaliser.

Checks raw optimizer recommendations against the context they were produced
from, fills defaults, and builds the run summary. Invalid entries become
warnings; they never abort a run.
"""

import logging
import math
from typing import Optional

from rosterai.core.config import settings

from .aggregator import as_date, as_id, as_time
from .rules import summarize_assignments
from .types import (
    OptimizerSummary,
    RawRecommendation,
    Recommendation,
    RejectedRecommendation,
    RunSummary,
    SchedulingContext,
    ValidationResult,
)


logger = logging.getLogger(__name__)

DEFAULT_REASONING = "Assigned by optimizer"


def _confidence(value, default: float) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        score = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(score):
        return default
    return min(max(score, 0.0), 1.0)


def _reject(result: ValidationResult, raw: RawRecommendation, reason: str) -> None:
    logger.warning(f"Dropping recommendation {raw.raw or raw}: {reason}")
    result.rejected.append(RejectedRecommendation(reason=reason, raw=raw.raw))


def validate_recommendations(
    raw_recommendations: list[RawRecommendation],
    context: SchedulingContext,
    default_confidence: Optional[float] = None,
) -> ValidationResult:
    """Keep only recommendations that reference this context; fill missing fields."""
    if default_confidence is None:
        default_confidence = settings.DEFAULT_CONFIDENCE_SCORE

    employees = context.employee_index()
    shifts = context.shift_index()
    seen = set()
    result = ValidationResult()

    for raw in raw_recommendations:
        employee_id = as_id(raw.employee_id)
        shift_id = as_id(raw.shift_id)
        day = as_date(raw.date)

        if employee_id is None or employee_id not in employees:
            _reject(result, raw, f"unknown employee_id {raw.employee_id!r}")
            continue
        if shift_id is None or shift_id not in shifts:
            _reject(result, raw, f"unknown shift_id {raw.shift_id!r} for employee {employee_id}")
            continue
        if day is None:
            _reject(result, raw, f"unparseable date {raw.date!r} for employee {employee_id}")
            continue
        if not context.start_date <= day <= context.end_date:
            _reject(result, raw, f"date {day.isoformat()} outside the run window for employee {employee_id}")
            continue

        key = (employee_id, shift_id, day)
        if key in seen:
            _reject(result, raw, f"duplicate of employee {employee_id}, shift {shift_id} on {day.isoformat()}")
            continue
        seen.add(key)

        shift = shifts[shift_id]
        reasoning = str(raw.reasoning).strip() if raw.reasoning is not None else ""

        result.validated.append(
            Recommendation(
                employee_id=employee_id,
                shift_id=shift_id,
                recommended_date=day,
                start_time=as_time(raw.start_time) or shift.start_time,
                end_time=as_time(raw.end_time) or shift.end_time,
                confidence_score=_confidence(raw.confidence_score, default_confidence),
                reasoning=reasoning or DEFAULT_REASONING,
            )
        )

    if result.rejected:
        logger.warning(
            f"Validation kept {len(result.validated)} and dropped {len(result.rejected)} recommendations"
        )
    return result


def _score(value: Optional[float]) -> Optional[float]:
    return None if value is None else round(min(max(value, 0.0), 100.0), 1)


def summarize(
    context: SchedulingContext,
    optimizer_summary: OptimizerSummary,
    validation: ValidationResult,
    input_warnings: Optional[list[str]] = None,
) -> RunSummary:
    """
    Merge the optimizer's summary with locally computed statistics.

    Scores the optimizer omitted are computed from the validated set. Warnings
    are input warnings, then optimizer warnings, then one per dropped entry.
    """
    shifts = context.shift_index()
    local = summarize_assignments(
        context,
        [(r.employee_id, r.recommended_date, shifts[r.shift_id]) for r in validation.validated],
    )

    def pick(name: str):
        value = getattr(optimizer_summary, name)
        return value if value is not None else getattr(local, name)

    warnings = list(input_warnings or [])
    warnings.extend(optimizer_summary.warnings)
    warnings.extend(f"Dropped recommendation: {r.reason}" for r in validation.rejected)

    return RunSummary(
        total_recommendations=len(validation.validated),
        coverage_score=_score(pick("coverage_score")),
        preference_score=_score(pick("preference_score")),
        estimated_weekly_hours=pick("estimated_weekly_hours"),
        constraint_violations=int(pick("constraint_violations") or 0),
        warnings=warnings,
    )
