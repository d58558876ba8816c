from datetime import timedelta

from rosterai.db.models.shift_preferences import PreferenceType
from rosterai.services.scheduling.rules import (
    DEFAULT_SHIFT_HEADCOUNT,
    FatigueLimits,
    count_violations,
    coverage_score,
    demand_for,
    existing_coverage,
    fits_fatigue_limits,
    preference_for,
    preference_score,
    resolve_fatigue_limits,
    rest_hours_between,
)
from rosterai.services.scheduling.types import (
    AssignmentRecord,
    ConstraintRecord,
    FatigueRuleRecord,
    ForecastRecord,
    PreferenceRecord,
)

from conftest import get_test_monday
from helpers import EVENING, MORNING, NIGHT, make_context


class TestDemand:
    def test_default_headcount(self):
        ctx = make_context(get_test_monday())
        assert demand_for(ctx, get_test_monday(), MORNING.id) == DEFAULT_SHIFT_HEADCOUNT

    def test_shift_specific_forecast_wins(self):
        monday = get_test_monday()
        ctx = make_context(monday, forecasts=(
            ForecastRecord(forecast_date=monday, required_headcount=4),
            ForecastRecord(forecast_date=monday, required_headcount=2, shift_id=MORNING.id),
        ))

        assert demand_for(ctx, monday, MORNING.id) == 2
        assert demand_for(ctx, monday, EVENING.id) == 4
        assert demand_for(ctx, monday + timedelta(days=1), EVENING.id) == DEFAULT_SHIFT_HEADCOUNT

    def test_existing_coverage_counts_active_assignments(self):
        monday = get_test_monday()
        ctx = make_context(monday, assignments=(
            AssignmentRecord(employee_id=1, shift_id=MORNING.id, effective_date=monday, end_date=monday),
            AssignmentRecord(employee_id=2, shift_id=MORNING.id, effective_date=monday - timedelta(days=30)),
        ))

        assert existing_coverage(ctx, monday, MORNING.id) == 2
        assert existing_coverage(ctx, monday + timedelta(days=1), MORNING.id) == 1


class TestPreferences:
    def test_most_restrictive_wins(self):
        monday = get_test_monday()
        ctx = make_context(monday, preferences=(
            PreferenceRecord(employee_id=1, preference_type=PreferenceType.PREFERRED, shift_id=MORNING.id),
            PreferenceRecord(employee_id=1, preference_type=PreferenceType.UNAVAILABLE, day_of_week=0),
        ))

        assert preference_for(ctx, 1, MORNING.id, monday) == PreferenceType.UNAVAILABLE
        assert preference_for(ctx, 1, MORNING.id, monday + timedelta(days=1)) == PreferenceType.PREFERRED
        assert preference_for(ctx, 2, MORNING.id, monday) is None


class TestFatigueLimits:
    def test_tightest_values_are_used(self):
        ctx = make_context(
            get_test_monday(),
            fatigue_rules=(
                FatigueRuleRecord(name="default", max_weekly_hours=48, min_rest_hours=10, max_consecutive_days=6),
                FatigueRuleRecord(name="strict", max_weekly_hours=40, min_rest_hours=12),
            ),
            constraints=(
                ConstraintRecord(name="cap", constraint_type="max_consecutive_days",
                                 is_hard_constraint=True, rule_config={"value": 5}),
                ConstraintRecord(name="soft cap", constraint_type="max_weekly_hours",
                                 is_hard_constraint=False, rule_config={"value": 10}),
            ),
        )

        limits = resolve_fatigue_limits(ctx)

        assert limits.max_weekly_hours == 40
        assert limits.min_rest_hours == 12
        assert limits.max_consecutive_days == 5
        assert limits.max_shift_hours is None

    def test_rest_across_midnight(self):
        monday = get_test_monday()
        tuesday = monday + timedelta(days=1)

        assert rest_hours_between(EVENING, monday, MORNING, tuesday) == 8
        assert rest_hours_between(NIGHT, monday, EVENING, tuesday) == 8

    def test_fits_rejects_second_shift_same_day(self):
        monday = get_test_monday()
        ctx = make_context(monday)
        assert not fits_fatigue_limits(ctx, FatigueLimits(), {monday: MORNING}, monday, EVENING)

    def test_fits_checks_weekly_hours(self):
        monday = get_test_monday()
        ctx = make_context(monday)
        worked = {monday + timedelta(days=i): MORNING for i in range(4)}

        assert fits_fatigue_limits(ctx, FatigueLimits(max_weekly_hours=40), worked, monday + timedelta(days=5), MORNING)
        assert not fits_fatigue_limits(ctx, FatigueLimits(max_weekly_hours=36), worked, monday + timedelta(days=5), MORNING)

    def test_fits_checks_rest_both_sides(self):
        monday = get_test_monday()
        ctx = make_context(monday)
        limits = FatigueLimits(min_rest_hours=11)
        tuesday = monday + timedelta(days=1)

        assert not fits_fatigue_limits(ctx, limits, {monday: EVENING}, tuesday, MORNING)
        assert not fits_fatigue_limits(ctx, limits, {tuesday: MORNING}, monday, EVENING)
        assert fits_fatigue_limits(ctx, limits, {monday: MORNING}, tuesday, MORNING)

    def test_fits_checks_consecutive_days_gap_filling(self):
        monday = get_test_monday()
        ctx = make_context(monday)
        worked = {monday: MORNING, monday + timedelta(days=1): MORNING,
                  monday + timedelta(days=3): MORNING}

        # wednesday would join a 4-day streak
        assert not fits_fatigue_limits(ctx, FatigueLimits(max_consecutive_days=3), worked,
                                       monday + timedelta(days=2), MORNING)


class TestViolations:
    def test_clean_schedule_has_none(self):
        monday = get_test_monday()
        ctx = make_context(monday)
        assert count_violations(ctx, [(1, monday, MORNING), (2, monday, EVENING)]) == 0

    def test_double_booking_and_unavailable(self):
        monday = get_test_monday()
        ctx = make_context(monday, preferences=(
            PreferenceRecord(employee_id=2, preference_type=PreferenceType.UNAVAILABLE),
        ))

        assert count_violations(ctx, [(1, monday, MORNING), (1, monday, EVENING)]) == 1
        assert count_violations(ctx, [(2, monday, MORNING)]) == 1

    def test_fatigue_breaches(self):
        monday = get_test_monday()
        ctx = make_context(monday, fatigue_rules=(
            FatigueRuleRecord(name="r", max_consecutive_days=2, min_rest_hours=12),
        ))
        assignments = [
            (1, monday, EVENING),
            (1, monday + timedelta(days=1), MORNING),  # 8h rest
            (1, monday + timedelta(days=2), MORNING),  # 3rd consecutive day
        ]

        assert count_violations(ctx, assignments) == 2


class TestScores:
    def test_coverage_counts_standing_assignments(self):
        monday = get_test_monday()
        ctx = make_context(monday, days=1, assignments=(
            AssignmentRecord(employee_id=1, shift_id=MORNING.id, effective_date=monday),
        ))

        assert coverage_score(ctx, []) == 50.0
        assert coverage_score(ctx, [(2, monday, EVENING)]) == 100.0

    def test_coverage_with_no_demand_is_full(self):
        monday = get_test_monday()
        ctx = make_context(monday, days=1, forecasts=(
            ForecastRecord(forecast_date=monday, required_headcount=0),
        ))
        assert coverage_score(ctx, []) == 100.0

    def test_preference_score(self):
        monday = get_test_monday()
        ctx = make_context(monday, preferences=(
            PreferenceRecord(employee_id=1, preference_type=PreferenceType.PREFERRED),
            PreferenceRecord(employee_id=2, preference_type=PreferenceType.AVOID),
        ))

        assert preference_score(ctx, []) is None
        assert preference_score(ctx, [(1, monday, MORNING), (2, monday, EVENING)]) == 50.0
        assert preference_score(ctx, [(3, monday, MORNING)]) == 50.0
