"""Eligibility, validation, planning and the decision ledger."""

from crossvote.trading.coordinator import VotingCoordinator
from crossvote.trading.eligibility import EligibilityGate
from crossvote.trading.ledger import DecisionLedger, DecisionStore
from crossvote.trading.planner import ExecutionPlanner
from crossvote.trading.validator import DecisionValidator

__all__ = [
    "DecisionLedger",
    "DecisionStore",
    "DecisionValidator",
    "EligibilityGate",
    "ExecutionPlanner",
    "VotingCoordinator",
]
