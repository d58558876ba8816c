"""
OR-Tools CP-SAT based optimizer.

Hard constraints:
- At most one shift per employee per date (standing assignments occupy their date)
- No UNAVAILABLE slot, no shift longer than max_shift_hours
- max_weekly_hours per 7-day block, max_consecutive_days, min_rest_hours
- No overstaffing beyond forecast demand

Objective (via weights):
- Unmet demand: highest priority (weight -1000 per unfilled seat)
- Preferred / avoided shifts and weekly hours: weighted by optimization goal
"""

import logging
from datetime import date
from typing import Optional

from ortools.sat.python import cp_model

from rosterai.core.config import settings
from rosterai.db.models.schedule_runs import OptimizationGoal
from rosterai.db.models.shift_preferences import PreferenceType

from .errors import OptimizerError
from .optimizer import BaseOptimizer
from .rules import (
    block_index,
    build_raw_recommendation,
    demand_for,
    existing_coverage,
    preference_for,
    resolve_fatigue_limits,
    rest_hours_between,
    standing_shifts,
    summarize_assignments,
    unfilled_warning,
)
from .types import OptimizerResult, SchedulingContext


logger = logging.getLogger(__name__)


WEIGHT_UNMET_SEAT = -1000
RANDOM_SEED = 7

# (preferred bonus, avoided penalty, per-hour penalty) per goal
GOAL_WEIGHTS = {
    OptimizationGoal.COVERAGE: (5, -5, 0),
    OptimizationGoal.PREFERENCE: (30, -30, 0),
    OptimizationGoal.COST: (2, -2, -3),
    OptimizationGoal.BALANCED: (10, -10, -1),
}


def _minutes(hours: float) -> int:
    return int(round(hours * 60))


class CpSatOptimizer(BaseOptimizer):
    """Exact optimizer on top of CP-SAT, bounded by a wall clock limit."""

    def __init__(self, time_limit_seconds: Optional[float] = None):
        self.time_limit_seconds = time_limit_seconds or settings.CPSAT_TIME_LIMIT_SECONDS

    def provider_name(self) -> str:
        return "ortools/cp-sat"

    def optimize(self, context: SchedulingContext) -> OptimizerResult:
        model = cp_model.CpModel()
        limits = resolve_fatigue_limits(context)
        standing = standing_shifts(context)
        dates = context.dates
        pref_bonus, avoid_penalty, hour_penalty = GOAL_WEIGHTS[context.optimization_goal]

        # ========== DECISION VARIABLES ==========
        # x[(emp_id, date, shift_id)] = BoolVar
        x: dict[tuple[int, date, int], cp_model.IntVar] = {}
        for emp in context.employees:
            for day in dates:
                if day in standing[emp.id]:
                    continue
                for shift in context.shifts:
                    if preference_for(context, emp.id, shift.id, day) == PreferenceType.UNAVAILABLE:
                        continue
                    if limits.max_shift_hours is not None and shift.duration_hours > limits.max_shift_hours:
                        continue
                    x[(emp.id, day, shift.id)] = model.new_bool_var(f"x_e{emp.id}_{day.isoformat()}_s{shift.id}")

        def day_vars(emp_id: int, day: date) -> list:
            return [x[(emp_id, day, s.id)] for s in context.shifts if (emp_id, day, s.id) in x]

        shifts_by_id = context.shift_index()

        # ========== HARD CONSTRAINTS ==========
        for emp in context.employees:
            # 1. One shift per day
            for day in dates:
                vars_today = day_vars(emp.id, day)
                if len(vars_today) > 1:
                    model.add_at_most_one(vars_today)

            # 2. Weekly hours per 7-day block
            if limits.max_weekly_hours is not None:
                cap = _minutes(limits.max_weekly_hours)
                blocks: dict[int, list] = {}
                standing_minutes: dict[int, int] = {}
                for day in dates:
                    block = block_index(context, day)
                    blocks.setdefault(block, [])
                    standing_minutes.setdefault(block, 0)
                    if day in standing[emp.id]:
                        standing_minutes[block] += _minutes(standing[emp.id][day].duration_hours)
                    for shift in context.shifts:
                        var = x.get((emp.id, day, shift.id))
                        if var is not None:
                            blocks[block].append(_minutes(shift.duration_hours) * var)
                for block, terms in blocks.items():
                    if terms:
                        model.add(sum(terms) + standing_minutes[block] <= max(cap, standing_minutes[block]))

            # 3. Consecutive days
            if limits.max_consecutive_days is not None:
                span = limits.max_consecutive_days + 1
                for start in range(len(dates) - span + 1):
                    window = dates[start:start + span]
                    fixed = sum(1 for d in window if d in standing[emp.id])
                    terms = [v for d in window for v in day_vars(emp.id, d)]
                    if terms:
                        model.add(sum(terms) + fixed <= max(limits.max_consecutive_days, fixed))

            # 4. Rest between consecutive days
            if limits.min_rest_hours is not None:
                for today, tomorrow in zip(dates, dates[1:]):
                    for s1 in context.shifts:
                        for s2 in context.shifts:
                            if rest_hours_between(s1, today, s2, tomorrow) >= limits.min_rest_hours:
                                continue
                            v1 = x.get((emp.id, today, s1.id))
                            v2 = x.get((emp.id, tomorrow, s2.id))
                            if v1 is not None and v2 is not None:
                                model.add(v1 + v2 <= 1)
                            elif v1 is not None and standing[emp.id].get(tomorrow) == s2:
                                model.add(v1 == 0)
                            elif v2 is not None and standing[emp.id].get(today) == s1:
                                model.add(v2 == 0)

        # ========== DEMAND (soft, no overstaffing) ==========
        objective_terms = []
        slack_vars = []
        for day in dates:
            for shift in context.shifts:
                needed = demand_for(context, day, shift.id) - existing_coverage(context, day, shift.id)
                covering = [x[(e.id, day, shift.id)] for e in context.employees if (e.id, day, shift.id) in x]
                if needed <= 0:
                    if covering:
                        model.add(sum(covering) == 0)
                    continue
                if not covering:
                    # No possible coverage, reported as unfilled
                    slack_vars.append(needed)
                    continue
                slack = model.new_int_var(0, needed, f"slack_{day.isoformat()}_s{shift.id}")
                model.add(sum(covering) + slack == needed)
                objective_terms.append(WEIGHT_UNMET_SEAT * slack)
                slack_vars.append(slack)

        # ========== PREFERENCES / HOURS ==========
        for (emp_id, day, shift_id), var in x.items():
            pref = preference_for(context, emp_id, shift_id, day)
            if pref == PreferenceType.PREFERRED:
                objective_terms.append(pref_bonus * var)
            elif pref == PreferenceType.AVOID:
                objective_terms.append(avoid_penalty * var)
            if hour_penalty:
                objective_terms.append(hour_penalty * round(shifts_by_id[shift_id].duration_hours) * var)

        if objective_terms:
            model.maximize(sum(objective_terms))

        # ========== SOLVE ==========
        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = self.time_limit_seconds
        solver.parameters.num_workers = 1
        solver.parameters.random_seed = RANDOM_SEED
        status = solver.solve(model)

        if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
            status_name = solver.status_name(status)
            logger.error(f"CP-SAT found no schedule: {status_name}")
            raise OptimizerError(f"Solver status: {status_name} - no valid schedule found")

        # ========== EXTRACT RESULTS ==========
        employees = context.employee_index()
        recommendations = []
        assignments = []
        for (emp_id, day, shift_id), var in sorted(x.items(), key=lambda item: (item[0][1], item[0][2], item[0][0])):
            if solver.value(var) != 1:
                continue
            shift = shifts_by_id[shift_id]
            pref = preference_for(context, emp_id, shift_id, day)
            assignments.append((emp_id, day, shift))
            recommendations.append(
                build_raw_recommendation(
                    employees[emp_id], day, shift, pref,
                    f"Selected by CP-SAT to cover {shift.name} on {day.isoformat()}",
                )
            )

        unfilled = sum(v if isinstance(v, int) else solver.value(v) for v in slack_vars)
        summary = summarize_assignments(context, assignments)
        if status == cp_model.FEASIBLE:
            summary.warnings.append("Solution may not be optimal (time limit reached)")
        if unfilled:
            summary.warnings.append(unfilled_warning(unfilled))

        logger.info(
            f"CP-SAT ({solver.status_name(status)}) produced {len(recommendations)} recommendations, "
            f"{unfilled} unfilled seats"
        )
        return OptimizerResult(recommendations=recommendations, summary=summary)
