"""Input gathering, risk assessment, voting and consensus."""

from crossvote.analysis.aggregator import InputAggregator
from crossvote.analysis.consensus import aggregate
from crossvote.analysis.risk import RiskAssessor, RiskWeights
from crossvote.analysis.voting import VoteJitter, VotingEngine

__all__ = [
    "InputAggregator",
    "RiskAssessor",
    "RiskWeights",
    "VoteJitter",
    "VotingEngine",
    "aggregate",
]
