"""
Prompt construction for the inference gateway.
Builds the system prompt (policy, goal definitions, output schema) and the
user prompt (JSON context plus instructions).
"""

import json

from rosterai.db.models.schedule_runs import OptimizationGoal
from rosterai.services.scheduling.types import SchedulingContext


GOAL_DESCRIPTIONS = {
    OptimizationGoal.COST: "Minimise total scheduled hours and overtime while still meeting demand.",
    OptimizationGoal.COVERAGE: "Fill every forecast seat first; preferences only break ties.",
    OptimizationGoal.PREFERENCE: "Honour employee preferences as far as demand allows.",
    OptimizationGoal.BALANCED: "Balance demand coverage, preferences and an even spread of hours.",
}

OUTPUT_SCHEMA = {
    "recommendations": [
        {
            "employee_id": "integer, must be an id from employees",
            "employee_name": "string",
            "shift_id": "integer, must be an id from shifts",
            "shift_name": "string",
            "date": "YYYY-MM-DD inside date_range",
            "start_time": "HH:MM",
            "end_time": "HH:MM",
            "confidence_score": "number between 0 and 1",
            "reasoning": "one sentence",
        }
    ],
    "summary": {
        "coverage_score": "number 0-100",
        "preference_score": "number 0-100",
        "estimated_weekly_hours": "number",
        "constraint_violations": "integer",
        "warnings": ["string"],
    },
}


def build_system_prompt(goal: OptimizationGoal) -> str:
    """Build the fixed policy preamble for one optimization goal."""

    goal = OptimizationGoal(goal)
    goals_text = "\n".join(
        f"- {g.value}: {desc}" + ("  <-- ACTIVE GOAL" if g == goal else "")
        for g, desc in GOAL_DESCRIPTIONS.items()
    )

    return f"""You are an AI workforce scheduling optimizer.
Your job is to assign employees to shift templates for every date of the requested date range.

HARD CONSTRAINTS (never break):
- Only use employee ids and shift ids that appear in the context.
- At most one shift per employee per date.
- Never assign an employee to a shift or day marked UNAVAILABLE.
- Respect every constraint with is_hard_constraint = true.
- Respect fatigue rules: max_consecutive_days, max_weekly_hours, max_shift_hours, min_rest_hours.
- Existing assignments already cover their shifts; do not duplicate them.

SOFT CONSTRAINTS (satisfy where possible):
- Meet required_headcount from demand_forecasts; default to 1 per shift per date when none is given.
- Prefer PREFERRED shifts, avoid AVOID shifts.
- Respect constraints with is_hard_constraint = false.

OPTIMIZATION GOALS:
{goals_text}

OUTPUT:
- Respond ONLY with a single JSON object matching the schema below. No markdown, no explanation.
- Dates are YYYY-MM-DD, times are HH:MM 24-hour format.

SCHEMA:
```json
{json.dumps(OUTPUT_SCHEMA, indent=2)}
```"""


def build_user_prompt(context: SchedulingContext) -> str:
    """Build user prompt with the serialised scheduling context."""

    context_str = json.dumps(context.to_payload(), indent=2, default=str)

    return f"""Scheduling context:
{context_str}

Generate shift assignment recommendations from {context.start_date.isoformat()} to {context.end_date.isoformat()} \
for the "{context.optimization_goal.value}" goal. Respond with JSON only."""
