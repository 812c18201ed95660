"""In-process collaborators backed by fixed values or plain callables.

These back the command line snapshot mode and make the pipeline easy to
drive without any network access.
"""

import asyncio
import inspect
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from crossvote.exceptions import InputUnavailableError
from crossvote.sources.base import (
    EmergencyPredicate,
    MarketSuitabilityPredicate,
    RiskProvider,
    SignalSource,
    StrategySource,
)
from crossvote.sources.models import SignalSnapshot, StrategyEvaluation, SuitabilityCheck


async def _resolve(value: Any, delay: float, source: str) -> Any:
    """Wait `delay` seconds, then return the value, call it, or raise it."""
    if delay:
        await asyncio.sleep(delay)
    if isinstance(value, BaseException):
        raise value
    if callable(value):
        value = value()
        if inspect.isawaitable(value):
            value = await value
    if value is None:
        raise InputUnavailableError(source, "no data configured")
    return value


class StaticStrategySource(StrategySource):
    """Strategy source returning a fixed evaluation."""

    def __init__(
        self,
        evaluation: Union[StrategyEvaluation, Callable, BaseException, None],
        delay: float = 0.0,
        name: str = "strategy",
    ):
        self.evaluation = evaluation
        self.delay = delay
        self.name = name
        self.calls: List[Dict[str, Any]] = []

    async def evaluate(self, params: Dict[str, Any]) -> StrategyEvaluation:
        self.calls.append(params)
        return await _resolve(self.evaluation, self.delay, self.name)


class StaticSignalSource(SignalSource):
    """Signal source returning a fixed snapshot."""

    def __init__(
        self,
        snapshot: Union[SignalSnapshot, Callable, BaseException, None],
        delay: float = 0.0,
        name: str = "signal",
    ):
        self.value = snapshot
        self.delay = delay
        self.name = name

    async def snapshot(self) -> SignalSnapshot:
        return await _resolve(self.value, self.delay, self.name)


class StaticRiskProvider(RiskProvider):
    """Risk provider returning a fixed estimate."""

    def __init__(
        self,
        value: Union[float, Callable, BaseException, None],
        delay: float = 0.0,
        name: str = "risk",
    ):
        self.value = value
        self.delay = delay
        self.name = name

    async def estimate(self) -> float:
        return float(await _resolve(self.value, self.delay, self.name))


class CallableEmergencyPredicate(EmergencyPredicate):
    """Emergency condition evaluated by a (sync or async) callable."""

    def __init__(self, name: str, check: Union[Callable[[], Any], bool]):
        self.name = name
        self._check = check

    async def check(self) -> bool:
        if isinstance(self._check, bool):
            return self._check
        result = self._check()
        if inspect.isawaitable(result):
            result = await result
        return bool(result)


class StaticMarketSuitability(MarketSuitabilityPredicate):
    """Market suitability predicate with a fixed verdict."""

    def __init__(self, suitable: bool = True, reason: Optional[str] = None):
        self.verdict = SuitabilityCheck(suitable=suitable, reason=reason)

    async def check(self) -> SuitabilityCheck:
        return self.verdict


def default_emergency_predicates() -> List[EmergencyPredicate]:
    """The three emergency conditions, all clear until wired to real monitors."""
    return [
        CallableEmergencyPredicate("high_network_congestion", False),
        CallableEmergencyPredicate("bridge_outage", False),
        CallableEmergencyPredicate("extreme_volatility", False),
    ]


def sources_from_snapshot(data: Dict[str, Any]) -> Dict[str, Any]:
    """Build static collaborators from a snapshot document.

    Expected keys (all optional): "strategy", "signal", "liquidity_risk",
    "technical_risk", "emergencies" (name -> bool), "market" ({"suitable",
    "reason"}). A missing strategy or signal yields an unavailable source.

    Args:
        data: Parsed snapshot document

    Returns:
        Keyword arguments accepted by VotingCoordinator
    """
    strategy = data.get("strategy")
    signal = data.get("signal")
    market = data.get("market") or {}

    emergencies = data.get("emergencies")
    if emergencies is None:
        predicates = default_emergency_predicates()
    else:
        predicates = [
            CallableEmergencyPredicate(name, bool(active))
            for name, active in emergencies.items()
        ]

    return {
        "strategy_source": StaticStrategySource(
            StrategyEvaluation.model_validate(strategy) if strategy else None
        ),
        "signal_source": StaticSignalSource(
            SignalSnapshot.model_validate(signal) if signal else None
        ),
        "liquidity_provider": StaticRiskProvider(
            data.get("liquidity_risk"), name="liquidity"
        ),
        "technical_provider": StaticRiskProvider(
            data.get("technical_risk"), name="technical"
        ),
        "emergency_predicates": predicates,
        "market_predicate": StaticMarketSuitability(
            suitable=market.get("suitable", True), reason=market.get("reason")
        ),
    }


def load_snapshot(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a JSON snapshot file and build collaborators from it."""
    with open(path, "r", encoding="utf-8") as f:
        return sources_from_snapshot(json.load(f))
