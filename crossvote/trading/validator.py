"""
Threshold gates applied to a consensus before anything is executed.
"""

from typing import List, Optional, Tuple

from crossvote.analysis.models import ConsensusResult, RiskAssessment
from crossvote.trading.models import Decision, GovernanceThresholds
from crossvote.utils.logger import get_logger

logger = get_logger(__name__)

NO_INPUT_MESSAGE = "No input available: every voter abstained"


def check_gates(
    consensus: ConsensusResult,
    risk: RiskAssessment,
    thresholds: GovernanceThresholds,
) -> Tuple[bool, List[str]]:
    """
    Apply the governance gates to a consensus result.

    Args:
        consensus: Aggregated voting result
        risk: Risk assessment for the cycle
        thresholds: Gate thresholds

    Returns:
        Tuple of (passed: bool, failures: List[str]), failures in gate order

    Gates applied:
        1. Average confidence >= minimum confidence
        2. Consensus ratio >= consensus threshold
        3. Overall risk <= risk ceiling
    """
    failures = []

    if consensus.non_abstain_total == 0:
        failures.append(NO_INPUT_MESSAGE)

    # 1. Minimum confidence
    if consensus.avg_confidence < thresholds.minimum_confidence:
        failures.append(
            f"Confidence {consensus.avg_confidence:.1%} below minimum "
            f"{thresholds.minimum_confidence:.1%}"
        )

    # 2. Consensus threshold
    if consensus.consensus_ratio < thresholds.consensus_threshold:
        failures.append(
            f"Consensus {consensus.consensus_ratio:.1%} below threshold "
            f"{thresholds.consensus_threshold:.1%}"
        )

    # 3. Risk ceiling
    if risk.overall > thresholds.risk_ceiling:
        failures.append(
            f"Overall risk {risk.overall:.1%} exceeds risk ceiling "
            f"{thresholds.risk_ceiling:.1%}"
        )

    return not failures, failures


class DecisionValidator:
    """Turns a consensus into a hold/rebalance decision under the gates."""

    def __init__(self, thresholds: Optional[GovernanceThresholds] = None):
        self.thresholds = thresholds or GovernanceThresholds()

    def validate(
        self,
        consensus: ConsensusResult,
        risk: RiskAssessment,
        thresholds: Optional[GovernanceThresholds] = None,
    ) -> Decision:
        """Validate a consensus result.

        Every failing gate adds a reasoning entry; any failure forces a hold
        whatever the voters recommended.

        Args:
            consensus: Aggregated voting result
            risk: Risk assessment for the cycle
            thresholds: Overrides the validator's own thresholds

        Returns:
            Decision without an execution plan
        """
        thresholds = thresholds or self.thresholds
        passed, failures = check_gates(consensus, risk, thresholds)

        reasoning = [
            f"Consensus: {consensus.consensus_ratio:.1%}",
            f"Avg confidence: {consensus.avg_confidence:.1%}",
            f"Overall risk: {risk.overall:.1%}",
        ]
        reasoning.extend(consensus.reasoning)

        if not passed:
            action = "hold"
            reasoning.extend(f"Validation failed: {failure}" for failure in failures)
            logger.info(f"Validation failed ({len(failures)} gate(s)): {failures[0]}")
        elif consensus.recommendation == "rebalance":
            action = "rebalance"
        else:
            action = "hold"
            reasoning.append("Majority of votes recommends holding")

        return Decision(
            action=action,
            confidence=consensus.avg_confidence,
            consensus=consensus.consensus_ratio,
            overall_risk=risk.overall,
            reasoning=reasoning,
            metadata={
                "voting_summary": {
                    "rebalance_votes": consensus.rebalance_count,
                    "hold_votes": consensus.hold_count,
                    "abstain_votes": consensus.abstain_count,
                    "rounds_completed": consensus.rounds_completed,
                    "source_breakdown": consensus.source_breakdown,
                },
                "recommendation": consensus.recommendation,
                "failed_gates": failures,
            },
        )
