"""Collaborator interfaces and adapters."""

from crossvote.sources.base import (
    EmergencyPredicate,
    MarketSuitabilityPredicate,
    RiskProvider,
    SignalSource,
    StrategySource,
)
from crossvote.sources.models import SignalFactor, SignalSnapshot, StrategyEvaluation, SuitabilityCheck

__all__ = [
    "EmergencyPredicate",
    "MarketSuitabilityPredicate",
    "RiskProvider",
    "SignalFactor",
    "SignalSnapshot",
    "SignalSource",
    "StrategyEvaluation",
    "StrategySource",
    "SuitabilityCheck",
]
