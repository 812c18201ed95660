"""Models for gathered inputs, votes and consensus results."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from crossvote.sources.models import SignalSnapshot, StrategyEvaluation
from crossvote.utils.helpers import utc_now

VoteSource = Literal["strategy", "signal", "risk", "performance"]
VoteDecision = Literal["rebalance", "hold", "abstain"]
Recommendation = Literal["rebalance", "hold"]


class RequestContext(BaseModel):
    """Caller request for one evaluation cycle."""

    request: str = ""
    params: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class AgentInput(BaseModel):
    """One collaborator's opinion snapshot for the current cycle."""

    source: Literal["strategy", "signal"]
    available: bool
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    payload: Optional[Union[StrategyEvaluation, SignalSnapshot]] = None
    fetched_at: datetime = Field(default_factory=utc_now)
    error: Optional[str] = None

    @classmethod
    def unavailable(cls, source: str, error: str) -> "AgentInput":
        """Placeholder input for a failed or timed-out fetch."""
        return cls(source=source, available=False, confidence=0.0, error=error)


class RiskComponents(BaseModel):
    """Individual risk signals, each already clamped to [0, 1]."""

    strategy: float = Field(..., ge=0.0, le=1.0)
    market: float = Field(..., ge=0.0, le=1.0)
    liquidity: float = Field(..., ge=0.0, le=1.0)
    technical: float = Field(..., ge=0.0, le=1.0)


class RiskAssessment(BaseModel):
    """Combined risk picture for one cycle."""

    components: RiskComponents
    overall: float = Field(..., ge=0.0, le=1.0)
    factors: List[str] = Field(default_factory=list)


class RecentPerformance(BaseModel):
    """Return proxy over the most recent rebalance decisions."""

    avg_return: float
    sample_size: int = Field(0, ge=0)


class PerformanceSnapshot(BaseModel):
    """Ledger-derived history consumed by the performance voter."""

    success_rate: float = Field(0.7, ge=0.0, le=1.0)
    recent: RecentPerformance = Field(
        default_factory=lambda: RecentPerformance(avg_return=0.03, sample_size=0)
    )


class GatheredInputs(BaseModel):
    """Everything the voters see during a cycle."""

    strategy: AgentInput
    signal: AgentInput
    risk: RiskAssessment
    performance: PerformanceSnapshot = Field(default_factory=PerformanceSnapshot)
    gathered_at: datetime = Field(default_factory=utc_now)

    @property
    def has_primary_input(self) -> bool:
        """True when at least one opinion source delivered data."""
        return self.strategy.available or self.signal.available

    def unavailable_sources(self) -> List[str]:
        return [i.source for i in (self.strategy, self.signal) if not i.available]


class Vote(BaseModel):
    """One voter's stance in one round."""

    model_config = ConfigDict(frozen=True)

    source: VoteSource
    decision: VoteDecision
    confidence: float = Field(..., ge=0.0, le=1.0)
    reasoning: str
    round: int = Field(..., ge=1)
    data: Dict[str, Any] = Field(default_factory=dict)


class VotingRound(BaseModel):
    """Ordered votes cast in a single round."""

    model_config = ConfigDict(frozen=True)

    round: int = Field(..., ge=1)
    votes: List[Vote]
    timestamp: datetime = Field(default_factory=utc_now)

    def count(self, decision: VoteDecision) -> int:
        return sum(1 for v in self.votes if v.decision == decision)

    def agreement_ratio(self) -> float:
        """max(rebalance, hold) / non-abstaining votes, 0 when all abstain."""
        rebalance = self.count("rebalance")
        hold = self.count("hold")
        total = rebalance + hold
        if total == 0:
            return 0.0
        return max(rebalance, hold) / total


class ConsensusResult(BaseModel):
    """Aggregate of every vote across all executed rounds."""

    rebalance_count: int = 0
    hold_count: int = 0
    abstain_count: int = 0
    avg_confidence: float = Field(0.0, ge=0.0, le=1.0)
    consensus_ratio: float = Field(0.0, ge=0.0, le=1.0)
    recommendation: Recommendation = "hold"
    rounds_completed: int = 0
    source_breakdown: Dict[str, Dict[str, int]] = Field(default_factory=dict)
    reasoning: List[str] = Field(default_factory=list)

    @property
    def non_abstain_total(self) -> int:
        return self.rebalance_count + self.hold_count
