"""
Exception hierarchy for scheduling runs.

Every error carries an HTTP-style status code and a short machine readable
code so the run record and the caller can present a specific remediation.

    SchedulingError (500)
    ├── InputFetchError (500)
    ├── OptimizerError (500)
    │   ├── OptimizerCapacityError (429)
    │   ├── OptimizerQuotaError (402)
    │   ├── OptimizerTimeoutError (429)
    │   └── MalformedOptimizerOutput (500)
    ├── PersistenceError (500)
    ├── StaleRunError (500)
    ├── RunNotFoundError (404)
    ├── InvalidRunTransition (409)
    ├── RunRequestMismatch (409)
    └── ReviewError (400)
"""

from typing import Any, Dict, Optional


class SchedulingError(Exception):
    status_code = 500
    error_code = "scheduling_error"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.error_code}


class InputFetchError(SchedulingError):
    """Employees or shifts could not be loaded; the run cannot proceed."""
    error_code = "input_fetch_failed"


class OptimizerError(SchedulingError):
    error_code = "optimizer_failed"


class OptimizerCapacityError(OptimizerError):
    status_code = 429
    error_code = "optimizer_rate_limited"

    def __init__(self, message: str = "Rate limits exceeded, please try again later."):
        super().__init__(message)


class OptimizerQuotaError(OptimizerError):
    status_code = 402
    error_code = "optimizer_quota_exhausted"

    def __init__(self, message: str = "Payment required, please add credits to your workspace."):
        super().__init__(message)


class OptimizerTimeoutError(OptimizerError):
    status_code = 429
    error_code = "optimizer_timeout"

    def __init__(self, message: str = "Optimizer timed out, please try again later."):
        super().__init__(message)


class MalformedOptimizerOutput(OptimizerError):
    error_code = "optimizer_malformed_output"

    def __init__(self, message: str, raw_content: str = ""):
        super().__init__(message)
        self.raw_content = raw_content


class PersistenceError(SchedulingError):
    error_code = "persistence_failed"


class StaleRunError(SchedulingError):
    error_code = "stale_run"


class RunNotFoundError(SchedulingError):
    status_code = 404
    error_code = "run_not_found"


class InvalidRunTransition(SchedulingError):
    status_code = 409
    error_code = "invalid_run_transition"


class RunRequestMismatch(SchedulingError):
    """Request parameters differ from the stored run they would write to."""
    status_code = 409
    error_code = "run_request_mismatch"


class ReviewError(SchedulingError):
    status_code = 400
    error_code = "review_rejected"


def describe_error(error: BaseException) -> tuple[str, str]:
    """Human readable message and error code for any exception."""
    if isinstance(error, SchedulingError):
        return error.message, error.error_code
    text = str(error) or error.__class__.__name__
    return f"Unexpected error: {text}", SchedulingError.error_code
