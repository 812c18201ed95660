"""Models for collaborator responses."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

SignalDirection = Literal["rebalance_opportunity", "hold_conservative", "hold"]
SignalStrength = Literal["strong", "moderate", "neutral"]


class StrategyEvaluation(BaseModel):
    """Result of a strategy backtest/evaluation."""

    expected_return: float = Field(..., description="Expected return as a fraction (0.05 = 5%)")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Evaluator confidence (0-1)")
    gas_estimate: float = Field(0.0, ge=0.0, description="Estimated gas units for the move")
    impermanent_loss_risk: float = Field(0.0, description="Reported loss risk, clamped when combined")


class SignalFactor(BaseModel):
    """One factor contributing to a market signal."""

    type: str
    direction: Literal["bullish", "bearish", "neutral"] = "neutral"
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    value: Optional[float] = None
    description: Optional[str] = None


class SignalSnapshot(BaseModel):
    """Market signal summary from the signal monitor."""

    direction: SignalDirection = "hold"
    strength: SignalStrength = "neutral"
    confidence: float = Field(..., ge=0.0, le=1.0)
    factors: List[SignalFactor] = Field(default_factory=list)

    def volatility(self, default: float = 0.1) -> float:
        """Mean absolute factor value, used as a volatility proxy.

        Args:
            default: Returned when no factor carries a value (default: 0.1)

        Returns:
            Volatility estimate
        """
        values = [abs(f.value) for f in self.factors if f.value is not None]
        if not values:
            return default
        return sum(values) / len(values)


class SuitabilityCheck(BaseModel):
    """Market suitability verdict."""

    suitable: bool
    reason: Optional[str] = None
