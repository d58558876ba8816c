"""
Context builder: shapes aggregated records into the immutable SchedulingContext.
Pure function, no I/O.
"""

from rosterai.db.models.schedule_runs import OptimizationGoal

from .types import AggregatedData, SchedulingContext


def build_context(aggregated: AggregatedData, goal: OptimizationGoal) -> SchedulingContext:
    if aggregated.start_date is None or aggregated.end_date is None:
        raise ValueError("Aggregated data has no date window")
    if aggregated.end_date < aggregated.start_date:
        raise ValueError(
            f"end_date {aggregated.end_date} is before start_date {aggregated.start_date}"
        )

    return SchedulingContext(
        start_date=aggregated.start_date,
        end_date=aggregated.end_date,
        optimization_goal=OptimizationGoal(goal),
        employees=tuple(aggregated.employees),
        shifts=tuple(aggregated.shifts),
        existing_assignments=tuple(aggregated.existing_assignments),
        preferences=tuple(aggregated.preferences),
        constraints=tuple(aggregated.constraints),
        demand_forecasts=tuple(aggregated.demand_forecasts),
        fatigue_rules=tuple(aggregated.fatigue_rules),
    )
