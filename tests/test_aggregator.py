"""Tests for concurrent input gathering."""

import asyncio

import pytest

from crossvote.analysis.aggregator import GATHER_DEADLINE_MESSAGE, InputAggregator
from crossvote.analysis.models import RequestContext
from crossvote.exceptions import ConfigurationError
from crossvote.sources.base import RiskProvider
from crossvote.sources.static import StaticRiskProvider, StaticSignalSource, StaticStrategySource
from tests.factories import signal_snapshot, strategy_evaluation


def _aggregator(strategy=None, signal=None, liquidity=0.2, technical=0.2, **kwargs):
    return InputAggregator(
        strategy_source=strategy or StaticStrategySource(strategy_evaluation()),
        signal_source=signal or StaticSignalSource(signal_snapshot()),
        liquidity_provider=StaticRiskProvider(liquidity, name="liquidity"),
        technical_provider=StaticRiskProvider(technical, name="technical"),
        **kwargs,
    )


def test_gather_collects_all_inputs():
    inputs = asyncio.run(_aggregator().gather(RequestContext()))

    assert inputs.strategy.available
    assert inputs.signal.available
    assert inputs.strategy.confidence == 0.9
    assert inputs.risk.overall == pytest.approx(0.2)
    assert inputs.has_primary_input


def test_request_text_is_passed_to_strategy_source():
    strategy = StaticStrategySource(strategy_evaluation())
    aggregator = _aggregator(strategy=strategy)

    asyncio.run(aggregator.gather(RequestContext(request="move to arbitrum", params={"pool": "usdc"})))

    assert strategy.calls == [{"pool": "usdc", "request": "move to arbitrum"}]


def test_failing_source_does_not_affect_the_others():
    aggregator = _aggregator(strategy=StaticStrategySource(RuntimeError("backtest service down")))

    inputs = asyncio.run(aggregator.gather(RequestContext()))

    assert not inputs.strategy.available
    assert inputs.strategy.confidence == 0.0
    assert inputs.strategy.error == "backtest service down"
    assert inputs.signal.available
    assert inputs.unavailable_sources() == ["strategy"]


def test_slow_source_hits_fetch_timeout():
    aggregator = _aggregator(
        signal=StaticSignalSource(signal_snapshot(), delay=1.0),
        fetch_timeout=0.05,
    )

    inputs = asyncio.run(aggregator.gather(RequestContext()))

    assert not inputs.signal.available
    assert "timed out" in inputs.signal.error
    assert inputs.strategy.available


def test_gather_deadline_marks_pending_sources_unavailable():
    aggregator = _aggregator(
        strategy=StaticStrategySource(strategy_evaluation(), delay=1.0),
        fetch_timeout=5.0,
        gather_timeout=0.05,
    )

    inputs = asyncio.run(aggregator.gather(RequestContext()))

    assert not inputs.strategy.available
    assert inputs.strategy.error == GATHER_DEADLINE_MESSAGE
    assert inputs.signal.available


def test_failed_risk_provider_falls_back_to_default():
    aggregator = _aggregator(liquidity=ValueError("no pool data"), technical=float("nan"))

    inputs = asyncio.run(aggregator.gather(RequestContext()))

    assert inputs.risk.components.liquidity == 0.5
    assert inputs.risk.components.technical == 0.5


def test_non_numeric_risk_estimate_falls_back_to_default():
    class GarbageProvider(RiskProvider):
        name = "liquidity"

        def __init__(self, value):
            self.value = value

        async def estimate(self):
            return self.value

    aggregator = _aggregator()
    aggregator.liquidity_provider = GarbageProvider({"risk": 0.2})
    aggregator.technical_provider = GarbageProvider("high")

    inputs = asyncio.run(aggregator.gather(RequestContext()))

    assert inputs.risk.components.liquidity == 0.5
    assert inputs.risk.components.technical == 0.5
    assert inputs.strategy.available


def test_missing_risk_providers_use_default():
    aggregator = InputAggregator(
        strategy_source=StaticStrategySource(strategy_evaluation()),
        signal_source=StaticSignalSource(signal_snapshot()),
    )

    inputs = asyncio.run(aggregator.gather(RequestContext()))

    assert inputs.risk.components.liquidity == 0.5
    assert inputs.risk.components.technical == 0.5


def test_all_sources_unavailable():
    aggregator = _aggregator(
        strategy=StaticStrategySource(None),
        signal=StaticSignalSource(RuntimeError("monitor offline")),
    )

    inputs = asyncio.run(aggregator.gather(RequestContext()))

    assert not inputs.has_primary_input
    assert inputs.unavailable_sources() == ["strategy", "signal"]


@pytest.mark.parametrize("fetch_timeout, gather_timeout", [(0, 30), (10, 0), (-1, 30)])
def test_non_positive_timeouts_are_rejected(fetch_timeout, gather_timeout):
    with pytest.raises(ConfigurationError):
        _aggregator(fetch_timeout=fetch_timeout, gather_timeout=gather_timeout)
