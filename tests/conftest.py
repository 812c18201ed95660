"""Shared fixtures for the Crossvote test suite."""

import pytest

from crossvote.config import Settings
from crossvote.sources.static import (
    StaticMarketSuitability,
    StaticRiskProvider,
    StaticSignalSource,
    StaticStrategySource,
)
from crossvote.trading.coordinator import VotingCoordinator
from crossvote.trading.ledger import DecisionLedger
from tests.factories import T0, signal_snapshot, strategy_evaluation


@pytest.fixture
def test_settings():
    """Settings with defaults only, isolated from the caller's environment."""
    return Settings(_env_file=None)


@pytest.fixture
def clock():
    """Mutable clock; set clock.now to move time."""

    class Clock:
        def __init__(self):
            self.now = T0

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def make_coordinator(test_settings, clock):
    """Factory building a coordinator over static collaborators.

    Defaults reproduce the low-risk scenario: strategy 9% / 0.9, an
    opportunity signal at 0.8 and every risk component at 0.2.
    """

    def _make(
        strategy=None,
        signal=None,
        liquidity=0.2,
        technical=0.2,
        settings=None,
        ledger=None,
        strategy_delay=0.0,
        **kwargs,
    ):
        settings = settings or test_settings
        return VotingCoordinator(
            strategy_source=StaticStrategySource(
                strategy if strategy is not None else strategy_evaluation(),
                delay=strategy_delay,
            ),
            signal_source=StaticSignalSource(
                signal if signal is not None else signal_snapshot()
            ),
            liquidity_provider=StaticRiskProvider(liquidity, name="liquidity"),
            technical_provider=StaticRiskProvider(technical, name="technical"),
            market_predicate=kwargs.pop("market_predicate", StaticMarketSuitability()),
            settings=settings,
            ledger=ledger if ledger is not None else DecisionLedger(
                capacity=settings.ledger_capacity,
                performance_window=settings.performance_window,
            ),
            clock=clock,
            **kwargs,
        )

    return _make
