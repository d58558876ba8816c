from rosterai.db.database import Base

# Import models
from rosterai.db.models.employees import Employees, EmploymentStatus
from rosterai.db.models.shifts import Shifts
from rosterai.db.models.shift_assignments import EmployeeShiftAssignments
from rosterai.db.models.shift_preferences import EmployeeShiftPreferences, PreferenceType
from rosterai.db.models.scheduling_constraints import SchedulingConstraints
from rosterai.db.models.demand_forecasts import DemandForecasts
from rosterai.db.models.fatigue_rules import FatigueRules
from rosterai.db.models.schedule_runs import ScheduleRuns, ScheduleRunStatus, OptimizationGoal
from rosterai.db.models.schedule_recommendations import ScheduleRecommendations

__all__ = [
    "Base",
    # Models
    "Employees",
    "Shifts",
    "EmployeeShiftAssignments",
    "EmployeeShiftPreferences",
    "SchedulingConstraints",
    "DemandForecasts",
    "FatigueRules",
    "ScheduleRuns",
    "ScheduleRecommendations",
    # Enums
    "EmploymentStatus",
    "PreferenceType",
    "ScheduleRunStatus",
    "OptimizationGoal",
]
