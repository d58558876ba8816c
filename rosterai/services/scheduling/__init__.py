"""
Scheduling run service package.

Usage:
    from datetime import date
    from rosterai.services.scheduling import RunRequest, generate_schedule

    # One call - load inputs, optimize, validate, persist
    outcome = generate_schedule(db, RunRequest(run_id=7, company_id=1,
                                               start_date=date(2025, 1, 20),
                                               end_date=date(2025, 1, 26)))

    # Or wire the pieces yourself (tests, other data stores)
    from rosterai.services.scheduling import ScheduleOrchestrator, HeuristicOptimizer

    outcome = ScheduleOrchestrator(store, HeuristicOptimizer()).run(request)
"""

from .types import (
    RunRequest,
    RunOutcome,
    RunSummary,
    SchedulingContext,
    OptimizerResult,
    OptimizerSummary,
    RawRecommendation,
    Recommendation,
)
from .errors import (
    SchedulingError,
    InputFetchError,
    OptimizerError,
    OptimizerCapacityError,
    OptimizerQuotaError,
    OptimizerTimeoutError,
    MalformedOptimizerOutput,
    PersistenceError,
    StaleRunError,
    RunNotFoundError,
    InvalidRunTransition,
    RunRequestMismatch,
    ReviewError,
)
from .store import DataStore, SqlAlchemyDataStore
from .aggregator import aggregate_inputs
from .context import build_context
from .optimizer import BaseOptimizer, get_optimizer
from .heuristic_optimizer import HeuristicOptimizer
from .validator import validate_recommendations, summarize
from .run_state import RunStateMachine
from .persistence import RecommendationWriter
from .orchestrator import ScheduleOrchestrator, generate_schedule

__all__ = [
    # Types
    "RunRequest",
    "RunOutcome",
    "RunSummary",
    "SchedulingContext",
    "OptimizerResult",
    "OptimizerSummary",
    "RawRecommendation",
    "Recommendation",
    # Errors
    "SchedulingError",
    "InputFetchError",
    "OptimizerError",
    "OptimizerCapacityError",
    "OptimizerQuotaError",
    "OptimizerTimeoutError",
    "MalformedOptimizerOutput",
    "PersistenceError",
    "StaleRunError",
    "RunNotFoundError",
    "InvalidRunTransition",
    "RunRequestMismatch",
    "ReviewError",
    # Main entry points
    "ScheduleOrchestrator",
    "generate_schedule",
    # Building blocks
    "DataStore",
    "SqlAlchemyDataStore",
    "aggregate_inputs",
    "build_context",
    "BaseOptimizer",
    "get_optimizer",
    "HeuristicOptimizer",
    "validate_recommendations",
    "summarize",
    "RunStateMachine",
    "RecommendationWriter",
]
