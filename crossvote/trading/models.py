"""
Pydantic models for governed decisions and their execution plans.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from crossvote.config import Settings, get_settings
from crossvote.exceptions import ConfigurationError
from crossvote.utils.helpers import utc_now

DecisionAction = Literal["reject", "hold", "rebalance"]


class GovernanceThresholds(BaseModel):
    """Gates a rebalance has to clear."""

    minimum_confidence: float = Field(0.6, ge=0.0, le=1.0)
    consensus_threshold: float = Field(0.7, ge=0.0, le=1.0)
    risk_ceiling: float = Field(0.7, ge=0.0, le=1.0)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "GovernanceThresholds":
        """Build thresholds from configuration.

        Raises:
            ConfigurationError: If any threshold is outside [0, 1]
        """
        settings = settings or get_settings()
        try:
            return cls(
                minimum_confidence=settings.minimum_confidence,
                consensus_threshold=settings.consensus_threshold,
                risk_ceiling=settings.risk_ceiling,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid governance thresholds: {e}")


class EligibilityResult(BaseModel):
    """Whether a new decision cycle may start."""

    allowed: bool
    reason: Optional[str] = None
    next_eligible_time: Optional[datetime] = None


class ExecutionStep(BaseModel):
    """One step of an execution plan."""

    id: int
    action: str
    description: str
    estimated_seconds: int = Field(..., ge=0)
    estimated_gas_units: int = Field(..., ge=0)


class ExecutionPlan(BaseModel):
    """Ordered work breakdown handed to the execution backend."""

    model_config = ConfigDict(frozen=True)

    steps: List[ExecutionStep]
    total_time: int
    total_gas: int
    dry_run: bool = True
    risk_mitigation: List[str] = Field(default_factory=list)
    monitoring: List[str] = Field(default_factory=list)


class Decision(BaseModel):
    """Final governed outcome of one evaluation cycle."""

    model_config = ConfigDict(frozen=True)

    action: DecisionAction
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    consensus: float = Field(0.0, ge=0.0, le=1.0)
    overall_risk: float = Field(0.0, ge=0.0, le=1.0)
    reasoning: List[str] = Field(default_factory=list)
    execution_plan: Optional[ExecutionPlan] = None
    timestamp: datetime = Field(default_factory=utc_now)
    next_eligible_time: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class DecisionOutcome(BaseModel):
    """Realized result reported after settlement."""

    succeeded: bool
    realized_return: Optional[float] = None
    reported_at: datetime = Field(default_factory=utc_now)


class DecisionRecord(Decision):
    """A Decision as stored in the ledger."""

    id: str
    inserted_at: datetime = Field(default_factory=utc_now)
    outcome: Optional[DecisionOutcome] = None


class SessionStatus(BaseModel):
    """Snapshot of the coordinator state."""

    in_progress: bool
    last_decision: Optional[Decision] = None
    success_rate: float
    emergency_stop: Optional[str] = None
    ledger_size: int = 0


class PerformanceReview(BaseModel):
    """Summary of the decision history."""

    total_decisions: int
    rebalance_decisions: int
    hold_decisions: int
    success_rate: float
    recent_avg_return: float
    recent_sample_size: int
    avg_confidence: float
    improvements: List[str] = Field(default_factory=list)
