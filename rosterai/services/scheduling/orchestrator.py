"""
Scheduling run orchestrator.

Flow for one run:
1. Load the run and check it is pending
2. Mark it running
3. Aggregate inputs and build the SchedulingContext
4. Call the optimizer
5. Validate and normalise its output, summarise
6. Persist recommendations, mark the run completed

Any error after step 1 marks the run failed; the caller always gets a RunOutcome.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from .aggregator import aggregate_inputs
from .context import build_context
from .errors import SchedulingError
from .optimizer import BaseOptimizer, get_optimizer
from .persistence import RecommendationWriter
from .run_state import RunStateMachine
from .store import DataStore, SqlAlchemyDataStore
from .types import RunOutcome, RunRequest
from .validator import summarize, validate_recommendations


logger = logging.getLogger(__name__)


class ScheduleOrchestrator:

    def __init__(
        self,
        store: DataStore,
        optimizer: BaseOptimizer,
        writer: Optional[RecommendationWriter] = None,
    ):
        self.store = store
        self.optimizer = optimizer
        self.writer = writer or RecommendationWriter(store)

    def run(self, request: RunRequest) -> RunOutcome:
        """Execute one scheduling run to a terminal state."""
        machine = RunStateMachine(self.store, request.run_id)

        try:
            machine.load(request)
        except SchedulingError as e:
            logger.warning(f"Schedule run {request.run_id} not started: {e.message}")
            return RunOutcome(
                run_id=request.run_id,
                success=False,
                status_code=e.status_code,
                error_message=e.message,
                error_code=e.error_code,
            )

        model_used = self.optimizer.provider_name()
        logger.info(
            f"Starting schedule run {request.run_id} for company {request.company_id} "
            f"({request.start_date} to {request.end_date}, goal {request.optimization_goal.value}, "
            f"optimizer {model_used})"
        )

        try:
            machine.start()

            aggregated = aggregate_inputs(self.store, request)
            context = build_context(aggregated, request.optimization_goal)

            result = self.optimizer.optimize(context)

            validation = validate_recommendations(result.recommendations, context)
            summary = summarize(context, result.summary, validation, aggregated.warnings)

            summary.total_recommendations = self.writer.write(request.run_id, validation.validated)
            machine.complete(summary, model_used)

        except SchedulingError as e:
            logger.error(f"Schedule run {request.run_id} failed: [{e.error_code}] {e.message}")
            message, code = machine.fail(e, model_used)
            return RunOutcome(
                run_id=request.run_id,
                success=False,
                status_code=e.status_code,
                error_message=message,
                error_code=code,
            )
        except Exception as e:
            logger.exception(f"Unexpected error in schedule run {request.run_id}")
            message, code = machine.fail(e, model_used)
            return RunOutcome(
                run_id=request.run_id,
                success=False,
                status_code=500,
                error_message=message,
                error_code=code,
            )

        logger.info(
            f"Schedule run {request.run_id} completed: {summary.total_recommendations} recommendations, "
            f"{len(summary.warnings)} warnings"
        )
        return RunOutcome(run_id=request.run_id, success=True, summary=summary)


def generate_schedule(db: Session, request: RunRequest, optimizer: Optional[BaseOptimizer] = None) -> RunOutcome:
    """
    Run one schedule generation against a database session.

    Args:
        db: Database session
        request: The pending run to execute and its parameters
        optimizer: Defaults to the configured backend (OPTIMIZER_BACKEND)

    Returns:
        RunOutcome; the run row holds the same terminal status and summary

    Example:
        from rosterai.services.scheduling import RunRequest, generate_schedule

        outcome = generate_schedule(db, RunRequest(run_id=7, company_id=1,
                                                   start_date=date(2025, 1, 20),
                                                   end_date=date(2025, 1, 26)))
        if not outcome.success:
            print(outcome.error_message)
    """
    store = SqlAlchemyDataStore(db)
    return ScheduleOrchestrator(store, optimizer or get_optimizer()).run(request)
