"""
Risk assessment combining strategy, market, liquidity and technical signals.
"""

import math
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from crossvote.analysis.models import AgentInput, RiskAssessment, RiskComponents
from crossvote.config import Settings, get_settings
from crossvote.exceptions import ConfigurationError
from crossvote.sources.models import SignalSnapshot, StrategyEvaluation
from crossvote.utils.helpers import clamp

# Market risk never exceeds this, however volatile the signal factors are
MAX_MARKET_RISK = 0.8


class RiskWeights(BaseModel):
    """Convex weights for the four risk components."""

    strategy: float = Field(0.3, ge=0.0, le=1.0)
    market: float = Field(0.3, ge=0.0, le=1.0)
    liquidity: float = Field(0.2, ge=0.0, le=1.0)
    technical: float = Field(0.2, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _weights_sum_to_one(self) -> "RiskWeights":
        total = self.strategy + self.market + self.liquidity + self.technical
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"Risk weights must sum to 1.0, got {total:.4f}")
        return self

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "RiskWeights":
        """Build weights from configuration.

        Raises:
            ConfigurationError: If the configured weights are invalid
        """
        settings = settings or get_settings()
        try:
            return cls(
                strategy=settings.strategy_risk_weight,
                market=settings.market_risk_weight,
                liquidity=settings.liquidity_risk_weight,
                technical=settings.technical_risk_weight,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid risk weights: {e}")


class RiskAssessor:
    """Combines sub-risk signals into one bounded overall score."""

    def __init__(
        self,
        weights: Optional[RiskWeights] = None,
        default_component_risk: float = 0.5,
    ):
        """Initialize assessor.

        Args:
            weights: Component weights (default: 0.3/0.3/0.2/0.2)
            default_component_risk: Pessimistic value used when a risk
                provider fails (default: 0.5)

        Raises:
            ConfigurationError: If the default risk is outside [0, 1]
        """
        if not 0.0 <= default_component_risk <= 1.0:
            raise ConfigurationError(
                f"Default component risk must be in [0, 1], got {default_component_risk}"
            )
        self.weights = weights or RiskWeights()
        self.default_component_risk = default_component_risk

    def strategy_risk(self, strategy: AgentInput) -> float:
        """Loss risk reported by the strategy evaluator, 0 when unavailable."""
        if not strategy.available or not isinstance(strategy.payload, StrategyEvaluation):
            return 0.0
        return clamp(strategy.payload.impermanent_loss_risk)

    def market_risk(self, signal: AgentInput) -> Optional[float]:
        """Volatility-derived market risk, None when the signal is unavailable."""
        if not signal.available or not isinstance(signal.payload, SignalSnapshot):
            return None
        volatility = signal.payload.volatility()
        return clamp(min(MAX_MARKET_RISK, volatility * 2))

    def assess(
        self,
        strategy: AgentInput,
        signal: AgentInput,
        liquidity: Optional[float] = None,
        technical: Optional[float] = None,
    ) -> RiskAssessment:
        """
        Build the combined risk assessment.

        Args:
            strategy: Strategy input for this cycle
            signal: Signal input for this cycle
            liquidity: Liquidity risk estimate (None if the provider failed)
            technical: Technical risk estimate (None if the provider failed)

        Returns:
            RiskAssessment with clamped components and the weighted overall score
        """
        factors: List[str] = []

        strategy_risk = self.strategy_risk(strategy)
        if strategy.available:
            factors.append(f"Strategy implementation risk: {strategy_risk:.1%}")
        else:
            factors.append("Strategy risk unknown (input unavailable), assumed 0")

        market_risk = self.market_risk(signal)
        if market_risk is None:
            market_risk = 0.0
            factors.append("Market risk unknown (signal unavailable), assumed 0")
        else:
            factors.append(
                f"Market volatility risk: {signal.payload.volatility():.1%} volatility"
            )

        if liquidity is None:
            liquidity_risk = self.default_component_risk
            factors.append(
                f"Liquidity risk provider failed, using default {liquidity_risk:.1%}"
            )
        else:
            liquidity_risk = clamp(liquidity)
            factors.append(f"Cross-chain liquidity risk: {liquidity_risk:.1%}")

        if technical is None:
            technical_risk = self.default_component_risk
            factors.append(
                f"Technical risk provider failed, using default {technical_risk:.1%}"
            )
        else:
            technical_risk = clamp(technical)
            factors.append(f"Contract and bridge technical risk: {technical_risk:.1%}")

        components = RiskComponents(
            strategy=strategy_risk,
            market=market_risk,
            liquidity=liquidity_risk,
            technical=technical_risk,
        )
        return RiskAssessment(
            components=components,
            overall=self.combine(components),
            factors=factors,
        )

    def combine(self, components: RiskComponents) -> float:
        """Weighted sum of the components, clamped to [0, 1]."""
        w = self.weights
        overall = (
            components.strategy * w.strategy
            + components.market * w.market
            + components.liquidity * w.liquidity
            + components.technical * w.technical
        )
        return clamp(overall)
