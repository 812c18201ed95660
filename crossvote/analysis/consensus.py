"""Consensus calculation over every vote cast in a voting session."""

from typing import Dict, Sequence

from crossvote.analysis.models import ConsensusResult, VotingRound


def aggregate(rounds: Sequence[VotingRound]) -> ConsensusResult:
    """Fold all votes from all executed rounds into one result.

    Args:
        rounds: Executed voting rounds (not only the last one)

    Returns:
        Consensus result. The ratio is max(rebalance, hold) over the
        non-abstaining votes, and avg_confidence averages those same votes;
        both are 0 when every vote abstained.
    """
    rebalance_count = 0
    hold_count = 0
    abstain_count = 0
    total_confidence = 0.0
    source_breakdown: Dict[str, Dict[str, int]] = {}
    reasoning = []

    for voting_round in rounds:
        for vote in voting_round.votes:
            breakdown = source_breakdown.setdefault(
                vote.source, {"rebalance": 0, "hold": 0, "abstain": 0}
            )
            breakdown[vote.decision] += 1

            if vote.decision == "abstain":
                abstain_count += 1
                continue

            if vote.decision == "rebalance":
                rebalance_count += 1
            else:
                hold_count += 1

            total_confidence += vote.confidence
            line = f"{vote.source}: {vote.reasoning}"
            if line not in reasoning:
                reasoning.append(line)

    non_abstain = rebalance_count + hold_count
    if non_abstain > 0:
        avg_confidence = total_confidence / non_abstain
        consensus_ratio = max(rebalance_count, hold_count) / non_abstain
    else:
        avg_confidence = 0.0
        consensus_ratio = 0.0

    return ConsensusResult(
        rebalance_count=rebalance_count,
        hold_count=hold_count,
        abstain_count=abstain_count,
        avg_confidence=min(1.0, avg_confidence),
        consensus_ratio=consensus_ratio,
        recommendation="rebalance" if rebalance_count > hold_count else "hold",
        rounds_completed=len(rounds),
        source_breakdown=source_breakdown,
        reasoning=reasoning,
    )
