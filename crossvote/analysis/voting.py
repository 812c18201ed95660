"""Multi-round voting among the four fixed voter roles."""

import asyncio
import random
from typing import Callable, List, Optional, Sequence

from crossvote.analysis.models import GatheredInputs, Vote, VotingRound
from crossvote.exceptions import ConfigurationError, CycleCancelledError
from crossvote.sources.models import SignalSnapshot, StrategyEvaluation
from crossvote.utils.helpers import clamp
from crossvote.utils.logger import get_logger

logger = get_logger(__name__)


class VoteJitter:
    """Seedable noise applied to opinion confidences between rounds.

    `amplitude` is the full width of the uniform noise band, so 0.1 moves a
    confidence by at most +/-0.05. The default of 0 keeps voting deterministic.
    """

    def __init__(self, amplitude: float = 0.0, seed: Optional[int] = None):
        if amplitude < 0 or amplitude > 1:
            raise ConfigurationError(f"Jitter amplitude must be in [0, 1], got {amplitude}")
        self.amplitude = amplitude
        self._rng = random.Random(seed)

    def apply(self, confidence: float) -> float:
        if self.amplitude == 0:
            return confidence
        return clamp(confidence + (self._rng.random() - 0.5) * self.amplitude)


Voter = Callable[[GatheredInputs, int, VoteJitter], Vote]


def strategy_vote(inputs: GatheredInputs, round_index: int, jitter: VoteJitter) -> Vote:
    """Vote from the strategy evaluator's expected return and confidence."""
    strategy = inputs.strategy
    if not strategy.available or not isinstance(strategy.payload, StrategyEvaluation):
        return Vote(
            source="strategy",
            decision="abstain",
            confidence=0.0,
            reasoning="No strategy data available",
            round=round_index,
        )

    evaluation = strategy.payload
    confidence = jitter.apply(evaluation.confidence)

    # Anything short of a strong, confident return is a hold
    decision = "hold"
    if evaluation.expected_return > 0.05 and confidence > 0.7:
        decision = "rebalance"

    return Vote(
        source="strategy",
        decision=decision,
        confidence=confidence,
        reasoning=f"Expected return: {evaluation.expected_return * 100:.2f}%",
        round=round_index,
        data={
            "expected_return": evaluation.expected_return,
            "gas_estimate": evaluation.gas_estimate,
            "impermanent_loss_risk": evaluation.impermanent_loss_risk,
        },
    )


def signal_vote(inputs: GatheredInputs, round_index: int, jitter: VoteJitter) -> Vote:
    """Vote from the market signal direction."""
    signal = inputs.signal
    if not signal.available or not isinstance(signal.payload, SignalSnapshot):
        return Vote(
            source="signal",
            decision="abstain",
            confidence=0.0,
            reasoning="No signal data available",
            round=round_index,
        )

    snapshot = signal.payload
    confidence = jitter.apply(snapshot.confidence)

    decision = "hold"
    if snapshot.direction == "rebalance_opportunity" and confidence > 0.6:
        decision = "rebalance"

    return Vote(
        source="signal",
        decision=decision,
        confidence=confidence,
        reasoning=f"Market signals: {snapshot.direction} ({snapshot.strength} strength)",
        round=round_index,
        data={
            "direction": snapshot.direction,
            "strength": snapshot.strength,
            "factors": len(snapshot.factors),
        },
    )


def risk_vote(inputs: GatheredInputs, round_index: int, jitter: VoteJitter) -> Vote:
    """Vote from the overall risk score; low risk favours rebalancing."""
    if not inputs.has_primary_input:
        return Vote(
            source="risk",
            decision="abstain",
            confidence=0.0,
            reasoning="No opinion input to assess risk against",
            round=round_index,
        )

    overall = inputs.risk.overall
    confidence = max(0.5, 1 - overall)
    decision = "rebalance" if overall < 0.3 else "hold"

    return Vote(
        source="risk",
        decision=decision,
        confidence=confidence,
        reasoning=f"Overall risk: {overall * 100:.1f}%",
        round=round_index,
        data={"overall_risk": overall, "risk_factors": len(inputs.risk.factors)},
    )


def performance_vote(inputs: GatheredInputs, round_index: int, jitter: VoteJitter) -> Vote:
    """Vote from the ledger's success rate and recent return proxy."""
    if not inputs.has_primary_input:
        return Vote(
            source="performance",
            decision="abstain",
            confidence=0.0,
            reasoning="No opinion input to weigh history against",
            round=round_index,
        )

    success_rate = inputs.performance.success_rate
    recent = inputs.performance.recent

    decision = "hold"
    confidence = 0.5
    if success_rate > 0.7 and recent.avg_return > 0.03:
        decision = "rebalance"
        confidence = min(0.9, success_rate)
    elif success_rate < 0.4 or recent.avg_return < 0:
        confidence = min(0.8, 1 - success_rate)

    return Vote(
        source="performance",
        decision=decision,
        confidence=confidence,
        reasoning=(
            f"Historical success: {success_rate * 100:.1f}%, "
            f"Recent avg return: {recent.avg_return * 100:.2f}%"
        ),
        round=round_index,
        data={
            "historical_success": success_rate,
            "recent_return": recent.avg_return,
            "sample_size": recent.sample_size,
        },
    )


DEFAULT_VOTERS: Sequence[Voter] = (strategy_vote, signal_vote, risk_vote, performance_vote)


class VotingEngine:
    """Runs sequential voting rounds with early termination on agreement."""

    def __init__(
        self,
        jitter: Optional[VoteJitter] = None,
        voters: Sequence[Voter] = DEFAULT_VOTERS,
    ):
        self.jitter = jitter or VoteJitter()
        self.voters = tuple(voters)

    def run_round(self, inputs: GatheredInputs, round_index: int) -> VotingRound:
        votes = [voter(inputs, round_index, self.jitter) for voter in self.voters]
        for vote in votes:
            logger.debug(
                f"Round {round_index} {vote.source}: {vote.decision} "
                f"({vote.confidence:.2f}) - {vote.reasoning}"
            )
        return VotingRound(round=round_index, votes=votes)

    async def run_voting(
        self,
        inputs: GatheredInputs,
        max_rounds: int = 3,
        consensus_threshold: float = 0.7,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> List[VotingRound]:
        """
        Run up to `max_rounds` rounds of voting.

        After every round from the second on, voting stops early when the
        latest round's max(rebalance, hold) / non-abstaining votes reaches
        the consensus threshold.

        Args:
            inputs: Gathered inputs for this cycle
            max_rounds: Maximum number of rounds (default: 3)
            consensus_threshold: Agreement ratio for early termination (default: 0.7)
            should_stop: Cancellation check evaluated between rounds

        Returns:
            Executed rounds in order

        Raises:
            ConfigurationError: If max_rounds or the threshold is invalid
            CycleCancelledError: If should_stop() returns True between rounds
        """
        if max_rounds < 1:
            raise ConfigurationError(f"max_rounds must be at least 1, got {max_rounds}")
        if not 0.0 <= consensus_threshold <= 1.0:
            raise ConfigurationError(
                f"Consensus threshold must be in [0, 1], got {consensus_threshold}"
            )

        rounds: List[VotingRound] = []
        for round_index in range(1, max_rounds + 1):
            if should_stop is not None and should_stop():
                raise CycleCancelledError(f"cancelled before round {round_index}")

            logger.info(f"Running voting round {round_index}/{max_rounds}")
            voting_round = self.run_round(inputs, round_index)
            rounds.append(voting_round)

            if round_index >= 2 and self.has_early_consensus(voting_round, consensus_threshold):
                logger.info(f"Early consensus reached after round {round_index}")
                break

            # Yield so timeouts and cancellation can land between rounds
            await asyncio.sleep(0)

        return rounds

    @staticmethod
    def has_early_consensus(voting_round: VotingRound, threshold: float) -> bool:
        non_abstain = voting_round.count("rebalance") + voting_round.count("hold")
        if non_abstain == 0:
            return False
        return voting_round.agreement_ratio() >= threshold
