import json

from rosterai.db.models.schedule_runs import OptimizationGoal
from rosterai.services.ai.prompts import OUTPUT_SCHEMA, build_system_prompt, build_user_prompt

from conftest import get_test_monday
from helpers import make_context


# ==================== System Prompt ====================

class TestSystemPrompt:
    def test_marks_active_goal(self):
        prompt = build_system_prompt(OptimizationGoal.COST)
        active = [line for line in prompt.splitlines() if "ACTIVE GOAL" in line]
        assert len(active) == 1
        assert active[0].startswith("- cost:")

    def test_accepts_goal_value(self):
        assert "- coverage:" in build_system_prompt("coverage")

    def test_lists_constraints_and_schema(self):
        prompt = build_system_prompt(OptimizationGoal.BALANCED)
        assert "HARD CONSTRAINTS" in prompt
        assert "UNAVAILABLE" in prompt
        assert "min_rest_hours" in prompt
        assert json.dumps(OUTPUT_SCHEMA, indent=2) in prompt


# ==================== User Prompt ====================

class TestUserPrompt:
    def test_embeds_context_json(self):
        context = make_context(get_test_monday(), days=3, goal=OptimizationGoal.PREFERENCE)
        prompt = build_user_prompt(context)

        body = prompt.split("Scheduling context:\n", 1)[1].split("\n\nGenerate", 1)[0]
        payload = json.loads(body)

        assert payload["date_range"] == {"start_date": "2025-01-20", "end_date": "2025-01-22"}
        assert payload["optimization_goal"] == "preference"
        assert [e["name"] for e in payload["employees"]] == ["Alice Smith", "Bob Jones", "Cara Lee"]
        assert payload["shifts"][0]["start_time"] == "06:00"

    def test_instructions(self):
        prompt = build_user_prompt(make_context(get_test_monday()))
        assert "from 2025-01-20 to 2025-01-26" in prompt
        assert prompt.endswith("Respond with JSON only.")
