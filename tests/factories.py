"""Builders for collaborator payloads used across the tests."""

from datetime import datetime, timezone

from crossvote.sources.models import SignalFactor, SignalSnapshot, StrategyEvaluation

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def strategy_evaluation(expected_return=0.09, confidence=0.9, loss_risk=0.2):
    return StrategyEvaluation(
        expected_return=expected_return,
        confidence=confidence,
        gas_estimate=250_000,
        impermanent_loss_risk=loss_risk,
    )


def signal_snapshot(direction="rebalance_opportunity", confidence=0.8, volatility=0.1):
    # market risk = 2 * volatility, capped at 0.8
    return SignalSnapshot(
        direction=direction,
        strength="strong",
        confidence=confidence,
        factors=[
            SignalFactor(type="apr_trend", direction="bullish", confidence=0.8, value=volatility),
            SignalFactor(type="sentiment", direction="bullish", confidence=0.7),
        ],
    )
