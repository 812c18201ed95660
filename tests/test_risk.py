"""Tests for risk assessment."""

import pytest

from crossvote.analysis.models import AgentInput
from crossvote.analysis.risk import MAX_MARKET_RISK, RiskAssessor, RiskWeights
from crossvote.config import Settings
from crossvote.exceptions import ConfigurationError
from tests.factories import signal_snapshot, strategy_evaluation


def _strategy(loss_risk=0.2):
    evaluation = strategy_evaluation(loss_risk=loss_risk)
    return AgentInput(source="strategy", available=True, confidence=0.9, payload=evaluation)


def _signal(volatility=0.1):
    snapshot = signal_snapshot(volatility=volatility)
    return AgentInput(source="signal", available=True, confidence=0.8, payload=snapshot)


def test_low_risk_components_combine_to_weighted_sum():
    risk = RiskAssessor().assess(_strategy(0.2), _signal(0.1), liquidity=0.2, technical=0.2)

    assert risk.components.market == pytest.approx(0.2)
    assert risk.overall == pytest.approx(0.2)
    assert len(risk.factors) == 4


def test_components_are_clamped_before_weighting():
    risk = RiskAssessor().assess(_strategy(3.0), _signal(0.1), liquidity=-1.0, technical=7.0)

    assert risk.components.strategy == 1.0
    assert risk.components.liquidity == 0.0
    assert risk.components.technical == 1.0
    assert 0.0 <= risk.overall <= 1.0


def test_market_risk_is_capped():
    risk = RiskAssessor().assess(_strategy(), _signal(volatility=5.0), liquidity=0.2, technical=0.2)

    assert risk.components.market == MAX_MARKET_RISK


def test_signal_without_factor_values_uses_default_volatility():
    snapshot = signal_snapshot()
    snapshot = snapshot.model_copy(update={"factors": []})
    signal = AgentInput(source="signal", available=True, confidence=0.8, payload=snapshot)

    assert RiskAssessor().market_risk(signal) == pytest.approx(0.2)


def test_failed_providers_use_default_component_risk():
    risk = RiskAssessor(default_component_risk=0.5).assess(_strategy(), _signal())

    assert risk.components.liquidity == 0.5
    assert risk.components.technical == 0.5
    assert any("provider failed" in factor for factor in risk.factors)


def test_unavailable_opinions_contribute_zero_risk():
    risk = RiskAssessor().assess(
        AgentInput.unavailable("strategy", "down"),
        AgentInput.unavailable("signal", "down"),
        liquidity=0.2,
        technical=0.2,
    )

    assert risk.components.strategy == 0.0
    assert risk.components.market == 0.0
    assert risk.overall == pytest.approx(0.08)


def test_weights_must_sum_to_one():
    with pytest.raises(ValueError):
        RiskWeights(strategy=0.5, market=0.3, liquidity=0.2, technical=0.2)


def test_invalid_configured_weights_raise_configuration_error():
    settings = Settings(_env_file=None, strategy_risk_weight=0.6)

    with pytest.raises(ConfigurationError):
        RiskWeights.from_settings(settings)


def test_default_component_risk_out_of_range():
    with pytest.raises(ConfigurationError):
        RiskAssessor(default_component_risk=1.5)
