"""
Optimizer abstraction.
Turns a SchedulingContext into candidate assignments. Implementations:
GatewayOptimizer (external inference), HeuristicOptimizer (greedy) and
CpSatOptimizer (OR-Tools).
"""

from abc import ABC, abstractmethod
from typing import Optional

from rosterai.core.config import settings

from .types import OptimizerResult, SchedulingContext


class BaseOptimizer(ABC):
    """Abstract base for optimizers."""

    @abstractmethod
    def optimize(self, context: SchedulingContext) -> OptimizerResult:
        """Produce candidate assignments for the context. Raises OptimizerError."""
        ...

    @abstractmethod
    def provider_name(self) -> str:
        """Identifies the implementation (recorded as the run's ai_model_used)."""
        ...


def get_optimizer(backend: Optional[str] = None) -> BaseOptimizer:
    """Factory for the configured optimizer backend."""
    backend = (backend or settings.OPTIMIZER_BACKEND).lower()

    if backend == "gateway":
        from rosterai.services.ai.gateway_optimizer import GatewayOptimizer
        return GatewayOptimizer()
    if backend == "heuristic":
        from .heuristic_optimizer import HeuristicOptimizer
        return HeuristicOptimizer()
    if backend == "cpsat":
        from .cpsat_optimizer import CpSatOptimizer
        return CpSatOptimizer()
    raise ValueError(f"Unknown optimizer backend: {backend}")
