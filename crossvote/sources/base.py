"""Base interfaces for opinion and risk collaborators."""

from abc import ABC, abstractmethod
from typing import Any, Dict

from crossvote.sources.models import SignalSnapshot, StrategyEvaluation, SuitabilityCheck


class StrategySource(ABC):
    """Abstract base class for strategy evaluators."""

    name: str = "strategy"

    @abstractmethod
    async def evaluate(self, params: Dict[str, Any]) -> StrategyEvaluation:
        """Evaluate a rebalancing strategy.

        Args:
            params: Strategy parameters taken from the request context

        Returns:
            Strategy evaluation with expected return and confidence

        Raises:
            Exception: If evaluation fails
        """
        pass


class SignalSource(ABC):
    """Abstract base class for market signal monitors."""

    name: str = "signal"

    @abstractmethod
    async def snapshot(self) -> SignalSnapshot:
        """Return the current market signal summary.

        Raises:
            Exception: If no snapshot can be produced
        """
        pass


class RiskProvider(ABC):
    """Abstract base class for a single risk component estimator."""

    name: str = "risk"

    @abstractmethod
    async def estimate(self) -> float:
        """Return a risk estimate in [0, 1]."""
        pass


class EmergencyPredicate(ABC):
    """A named condition that blocks all rebalancing while true."""

    name: str = "emergency"

    @abstractmethod
    async def check(self) -> bool:
        pass


class MarketSuitabilityPredicate(ABC):
    """Decides whether market conditions allow a rebalance at all."""

    name: str = "market_suitability"

    @abstractmethod
    async def check(self) -> SuitabilityCheck:
        pass
