"""
Deterministic greedy optimizer. Needs no network.

Strategy:
1. Build the open slots: (date, shift) pairs where demand exceeds standing coverage
2. Walk the dates in order; within a date fill the most constrained slot first
3. For each open seat pick the best scoring employee that keeps every fatigue
   limit, is not UNAVAILABLE and works no other shift that day
4. Report unfilled seats as a warning
"""

import logging
from collections import defaultdict
from datetime import date

from rosterai.db.models.schedule_runs import OptimizationGoal
from rosterai.db.models.shift_preferences import PreferenceType

from .optimizer import BaseOptimizer
from .rules import (
    block_index,
    build_raw_recommendation,
    demand_for,
    existing_coverage,
    fits_fatigue_limits,
    preference_for,
    resolve_fatigue_limits,
    standing_shifts,
    summarize_assignments,
    unfilled_warning,
)
from .types import (
    EmployeeRecord,
    OptimizerResult,
    RawRecommendation,
    SchedulingContext,
    ShiftRecord,
)


logger = logging.getLogger(__name__)


# (preference weight, weekly hours weight) per goal
GOAL_WEIGHTS = {
    OptimizationGoal.COVERAGE: (5, -1),
    OptimizationGoal.PREFERENCE: (30, -1),
    OptimizationGoal.COST: (2, -3),
    OptimizationGoal.BALANCED: (10, -2),
}

PREFERENCE_VALUE = {
    PreferenceType.PREFERRED: 1,
    PreferenceType.AVOID: -1,
}


class GreedyScheduleSolver:
    """
    Greedy coverage-first solver over a SchedulingContext.
    """

    def __init__(self, context: SchedulingContext):
        self.context = context
        self.limits = resolve_fatigue_limits(context)
        self.pref_weight, self.hours_weight = GOAL_WEIGHTS[context.optimization_goal]

        # emp_id -> {date -> shift}, seeded with standing assignments
        self.worked: dict[int, dict[date, ShiftRecord]] = defaultdict(dict)
        for emp_id, days in standing_shifts(context).items():
            self.worked[emp_id].update(days)

        self.recommendations: list[RawRecommendation] = []
        self.assignments: list[tuple[int, date, ShiftRecord]] = []
        self.unfilled = 0

    def solve(self) -> OptimizerResult:
        for day in self.context.dates:
            for shift, needed in self._open_slots(day):
                for _ in range(needed):
                    if not self._fill_seat(day, shift, needed):
                        self.unfilled += 1

        summary = summarize_assignments(self.context, self.assignments)
        if self.unfilled:
            summary.warnings.append(unfilled_warning(self.unfilled))

        logger.info(
            f"Greedy solver produced {len(self.recommendations)} recommendations, "
            f"{self.unfilled} unfilled seats"
        )
        return OptimizerResult(recommendations=self.recommendations, summary=summary)

    def _open_slots(self, day: date) -> list[tuple[ShiftRecord, int]]:
        """Shifts still needing staff on `day`, hardest to fill first."""
        slots = []
        for shift in self.context.shifts:
            needed = demand_for(self.context, day, shift.id) - existing_coverage(self.context, day, shift.id)
            if needed > 0:
                slots.append((shift, needed))

        def constraint_score(slot: tuple[ShiftRecord, int]) -> tuple[float, int, int]:
            shift, needed = slot
            available = len(self._candidates(day, shift))
            # Ratio of available employees to required staff (lower = harder)
            return (available / max(needed, 1), -needed, shift.id)

        return sorted(slots, key=constraint_score)

    def _candidates(self, day: date, shift: ShiftRecord) -> list[EmployeeRecord]:
        return [
            emp for emp in self.context.employees
            if preference_for(self.context, emp.id, shift.id, day) != PreferenceType.UNAVAILABLE
            and fits_fatigue_limits(self.context, self.limits, self.worked[emp.id], day, shift)
        ]

    def _score(self, employee: EmployeeRecord, day: date, shift: ShiftRecord) -> float:
        pref = preference_for(self.context, employee.id, shift.id, day)
        block = block_index(self.context, day)
        hours = sum(
            s.duration_hours for d, s in self.worked[employee.id].items()
            if block_index(self.context, d) == block
        )
        return self.pref_weight * PREFERENCE_VALUE.get(pref, 0) + self.hours_weight * hours

    def _fill_seat(self, day: date, shift: ShiftRecord, demand: int) -> bool:
        candidates = self._candidates(day, shift)
        if not candidates:
            return False

        # Highest score wins; lower id breaks ties
        best = min(candidates, key=lambda e: (-self._score(e, day, shift), e.id))
        pref = preference_for(self.context, best.id, shift.id, day)

        self.worked[best.id][day] = shift
        self.assignments.append((best.id, day, shift))
        self.recommendations.append(
            build_raw_recommendation(
                best, day, shift, pref,
                f"Covers {shift.name} on {day.isoformat()} (demand {demand})",
            )
        )
        return True


class HeuristicOptimizer(BaseOptimizer):
    """Greedy optimizer, used when no inference gateway is configured or for tests."""

    def optimize(self, context: SchedulingContext) -> OptimizerResult:
        return GreedyScheduleSolver(context).solve()

    def provider_name(self) -> str:
        return "heuristic/greedy"
