"""
Scheduling rule helpers shared by the deterministic optimizers and the
validator: demand lookup, preferences, standing assignments and fatigue
limits (fatigue rules merged with hard constraints).
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Optional

from rosterai.db.models.shift_preferences import PreferenceType

from .types import (
    EmployeeRecord,
    OptimizerSummary,
    RawRecommendation,
    SchedulingContext,
    ShiftRecord,
    format_time,
)


DEFAULT_SHIFT_HEADCOUNT = 1  # when no forecast covers a date/shift
DAYS_PER_BLOCK = 7

# Most restrictive preference wins when several apply
PREFERENCE_PRECEDENCE = {
    PreferenceType.UNAVAILABLE: 3,
    PreferenceType.AVOID: 2,
    PreferenceType.PREFERRED: 1,
}

# Hard constraint types that map onto fatigue limits
LIMIT_CONSTRAINT_TYPES = (
    "max_consecutive_days",
    "max_weekly_hours",
    "max_shift_hours",
    "min_rest_hours",
)


@dataclass
class FatigueLimits:
    max_consecutive_days: Optional[int] = None
    max_weekly_hours: Optional[float] = None
    max_shift_hours: Optional[float] = None
    min_rest_hours: Optional[float] = None


def _tighter(current, candidate, lower_is_tighter: bool = True):
    if candidate is None:
        return current
    if current is None:
        return candidate
    return min(current, candidate) if lower_is_tighter else max(current, candidate)


def resolve_fatigue_limits(context: SchedulingContext) -> FatigueLimits:
    """Tightest limits across all fatigue rules and hard limit constraints."""
    limits = FatigueLimits()

    for rule in context.fatigue_rules:
        limits.max_consecutive_days = _tighter(limits.max_consecutive_days, rule.max_consecutive_days)
        limits.max_weekly_hours = _tighter(limits.max_weekly_hours, rule.max_weekly_hours)
        limits.max_shift_hours = _tighter(limits.max_shift_hours, rule.max_shift_hours)
        limits.min_rest_hours = _tighter(limits.min_rest_hours, rule.min_rest_hours, lower_is_tighter=False)

    for constraint in context.constraints:
        if not constraint.is_hard_constraint or constraint.constraint_type not in LIMIT_CONSTRAINT_TYPES:
            continue
        raw = constraint.rule_config.get("value", constraint.rule_config.get(constraint.constraint_type))
        try:
            value = float(raw)
        except (TypeError, ValueError):
            continue
        if constraint.constraint_type == "max_consecutive_days":
            limits.max_consecutive_days = _tighter(limits.max_consecutive_days, int(value))
        elif constraint.constraint_type == "min_rest_hours":
            limits.min_rest_hours = _tighter(limits.min_rest_hours, value, lower_is_tighter=False)
        else:
            current = getattr(limits, constraint.constraint_type)
            setattr(limits, constraint.constraint_type, _tighter(current, value))

    return limits


def demand_for(context: SchedulingContext, day: date, shift_id: int) -> int:
    """Required headcount for a shift on a date. Shift specific forecasts win over day level ones."""
    day_level = None
    for forecast in context.demand_forecasts:
        if forecast.forecast_date != day:
            continue
        if forecast.shift_id == shift_id:
            return forecast.required_headcount
        if forecast.shift_id is None and day_level is None:
            day_level = forecast.required_headcount
    return day_level if day_level is not None else DEFAULT_SHIFT_HEADCOUNT


def preference_for(
    context: SchedulingContext, employee_id: int, shift_id: int, day: date
) -> Optional[PreferenceType]:
    best = None
    for pref in context.preferences:
        if pref.employee_id != employee_id or not pref.applies_to(shift_id, day):
            continue
        if best is None or PREFERENCE_PRECEDENCE[pref.preference_type] > PREFERENCE_PRECEDENCE[best]:
            best = pref.preference_type
    return best


def standing_shifts(context: SchedulingContext) -> dict[int, dict[date, ShiftRecord]]:
    """employee_id -> {date -> shift} for existing assignments active inside the window."""
    shifts = context.shift_index()
    worked: dict[int, dict[date, ShiftRecord]] = defaultdict(dict)
    for day in context.dates:
        for assignment in context.existing_assignments:
            shift = shifts.get(assignment.shift_id)
            if shift and assignment.active_on(day) and day not in worked[assignment.employee_id]:
                worked[assignment.employee_id][day] = shift
    return worked


def existing_coverage(context: SchedulingContext, day: date, shift_id: int) -> int:
    return sum(
        1 for a in context.existing_assignments
        if a.shift_id == shift_id and a.active_on(day)
    )


def block_index(context: SchedulingContext, day: date) -> int:
    """7-day block of the window a date falls in (weekly hour limits apply per block)."""
    return (day - context.start_date).days // DAYS_PER_BLOCK


def rest_hours_between(first: ShiftRecord, first_day: date, second: ShiftRecord, second_day: date) -> float:
    _, first_end = first.interval_on(first_day)
    second_start, _ = second.interval_on(second_day)
    return (second_start - first_end).total_seconds() / 3600


def consecutive_streak(days: set[date], day: date) -> int:
    """Length of the run of worked days that would include `day`."""
    streak = 1
    cursor = day.toordinal() - 1
    while date.fromordinal(cursor) in days:
        streak += 1
        cursor -= 1
    cursor = day.toordinal() + 1
    while date.fromordinal(cursor) in days:
        streak += 1
        cursor += 1
    return streak


def fits_fatigue_limits(
    context: SchedulingContext,
    limits: FatigueLimits,
    worked: dict[date, ShiftRecord],
    day: date,
    shift: ShiftRecord,
) -> bool:
    """Whether adding `shift` on `day` to an employee's worked days keeps every limit."""
    if day in worked:
        return False

    if limits.max_shift_hours is not None and shift.duration_hours > limits.max_shift_hours:
        return False

    if limits.max_weekly_hours is not None:
        block = block_index(context, day)
        hours = sum(s.duration_hours for d, s in worked.items() if block_index(context, d) == block)
        if hours + shift.duration_hours > limits.max_weekly_hours:
            return False

    if limits.max_consecutive_days is not None:
        if consecutive_streak(set(worked), day) > limits.max_consecutive_days:
            return False

    if limits.min_rest_hours is not None:
        prev_day = date.fromordinal(day.toordinal() - 1)
        next_day = date.fromordinal(day.toordinal() + 1)
        if prev_day in worked and rest_hours_between(worked[prev_day], prev_day, shift, day) < limits.min_rest_hours:
            return False
        if next_day in worked and rest_hours_between(shift, day, worked[next_day], next_day) < limits.min_rest_hours:
            return False

    return True


def count_violations(
    context: SchedulingContext,
    assignments: list[tuple[int, date, ShiftRecord]],
    limits: Optional[FatigueLimits] = None,
) -> int:
    """
    Count rule breaches in a set of (employee_id, date, shift) assignments.

    Counted: more than one shift per employee per day, working an UNAVAILABLE
    slot, and every breach of the fatigue limits.
    """
    limits = limits or resolve_fatigue_limits(context)
    by_employee: dict[int, dict[date, list[ShiftRecord]]] = defaultdict(lambda: defaultdict(list))
    for employee_id, day, shift in assignments:
        by_employee[employee_id][day].append(shift)

    violations = 0
    for employee_id, days in by_employee.items():
        block_hours: dict[int, float] = defaultdict(float)

        for day, shifts in days.items():
            violations += len(shifts) - 1
            for shift in shifts:
                if preference_for(context, employee_id, shift.id, day) == PreferenceType.UNAVAILABLE:
                    violations += 1
                if limits.max_shift_hours is not None and shift.duration_hours > limits.max_shift_hours:
                    violations += 1
                block_hours[block_index(context, day)] += shift.duration_hours

        if limits.max_weekly_hours is not None:
            violations += sum(1 for hours in block_hours.values() if hours > limits.max_weekly_hours)

        ordered = sorted(days)
        if limits.max_consecutive_days is not None:
            streak = 0
            previous = None
            for day in ordered:
                streak = streak + 1 if previous and (day - previous).days == 1 else 1
                if streak == limits.max_consecutive_days + 1:
                    violations += 1
                previous = day

        if limits.min_rest_hours is not None:
            for first_day, second_day in zip(ordered, ordered[1:]):
                if (second_day - first_day).days != 1:
                    continue
                first = max(days[first_day], key=lambda s: s.interval_on(first_day)[1])
                second = min(days[second_day], key=lambda s: s.interval_on(second_day)[0])
                if rest_hours_between(first, first_day, second, second_day) < limits.min_rest_hours:
                    violations += 1

    return violations


def build_raw_recommendation(
    employee: EmployeeRecord,
    day: date,
    shift: ShiftRecord,
    preference: Optional[PreferenceType],
    reason: str,
) -> RawRecommendation:
    """Recommendation as produced by the deterministic optimizers."""
    confidence = 0.75
    notes = [reason]
    if preference == PreferenceType.PREFERRED:
        confidence = 0.9
        notes.append("matches the employee's preferred shift")
    elif preference == PreferenceType.AVOID:
        confidence = 0.55
        notes.append("employee would rather avoid this shift")

    return RawRecommendation(
        employee_id=employee.id,
        employee_name=employee.display_name,
        shift_id=shift.id,
        shift_name=shift.name,
        date=day.isoformat(),
        start_time=format_time(shift.start_time),
        end_time=format_time(shift.end_time),
        confidence_score=confidence,
        reasoning="; ".join(notes),
    )


def unfilled_warning(unfilled_slots: int) -> str:
    return f"{unfilled_slots} shift slot(s) could not be filled without breaking a rule"


# ========== Summary scores ==========

PREFERENCE_SATISFACTION = {
    PreferenceType.PREFERRED: 1.0,
    PreferenceType.AVOID: 0.0,
    PreferenceType.UNAVAILABLE: 0.0,
}
NEUTRAL_SATISFACTION = 0.5


def coverage_score(context: SchedulingContext, assignments: list[tuple[int, date, ShiftRecord]]) -> float:
    """Percentage (0-100) of required headcount covered by standing plus new assignments."""
    filled: dict[tuple[date, int], int] = defaultdict(int)
    for _, day, shift in assignments:
        filled[(day, shift.id)] += 1

    required_total = 0
    covered_total = 0
    for day in context.dates:
        for shift in context.shifts:
            required = demand_for(context, day, shift.id)
            if required <= 0:
                continue
            required_total += required
            have = existing_coverage(context, day, shift.id) + filled[(day, shift.id)]
            covered_total += min(have, required)

    if required_total == 0:
        return 100.0
    return round(100.0 * covered_total / required_total, 1)


def preference_score(context: SchedulingContext, assignments: list[tuple[int, date, ShiftRecord]]) -> Optional[float]:
    """Average preference satisfaction (0-100) of the new assignments, None when there are none."""
    if not assignments:
        return None
    total = 0.0
    for employee_id, day, shift in assignments:
        pref = preference_for(context, employee_id, shift.id, day)
        total += PREFERENCE_SATISFACTION.get(pref, NEUTRAL_SATISFACTION)
    return round(100.0 * total / len(assignments), 1)


def estimated_weekly_hours(context: SchedulingContext, assignments: list[tuple[int, date, ShiftRecord]]) -> float:
    """Total recommended hours normalised to a 7-day week."""
    hours = sum(shift.duration_hours for _, _, shift in assignments)
    days = max(len(context.dates), 1)
    return round(hours * DAYS_PER_BLOCK / days, 1)


def summarize_assignments(
    context: SchedulingContext, assignments: list[tuple[int, date, ShiftRecord]]
) -> OptimizerSummary:
    """Locally computed summary statistics for a set of new assignments."""
    standing = [
        (employee_id, day, shift)
        for employee_id, days in standing_shifts(context).items()
        for day, shift in days.items()
    ]
    return OptimizerSummary(
        coverage_score=coverage_score(context, assignments),
        preference_score=preference_score(context, assignments),
        estimated_weekly_hours=estimated_weekly_hours(context, assignments),
        constraint_violations=count_violations(context, standing + list(assignments)),
    )
