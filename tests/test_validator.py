"""Tests for governance gates."""

import pytest

from crossvote.analysis.models import ConsensusResult, RiskAssessment, RiskComponents
from crossvote.config import Settings
from crossvote.exceptions import ConfigurationError
from crossvote.trading.models import GovernanceThresholds
from crossvote.trading.validator import NO_INPUT_MESSAGE, DecisionValidator, check_gates


def _risk(overall):
    components = RiskComponents(strategy=overall, market=overall, liquidity=overall, technical=overall)
    return RiskAssessment(components=components, overall=overall)


def _consensus(avg_confidence=0.75, ratio=0.75, recommendation="rebalance", rebalance=6, hold=2):
    return ConsensusResult(
        rebalance_count=rebalance,
        hold_count=hold,
        avg_confidence=avg_confidence,
        consensus_ratio=ratio,
        recommendation=recommendation,
        rounds_completed=2,
        reasoning=["strategy: Expected return: 9.00%"],
    )


def test_passing_rebalance_consensus_is_approved():
    decision = DecisionValidator().validate(_consensus(), _risk(0.2))

    assert decision.action == "rebalance"
    assert decision.confidence == 0.75
    assert decision.consensus == 0.75
    assert decision.overall_risk == 0.2
    assert decision.execution_plan is None
    assert decision.metadata["failed_gates"] == []
    assert "strategy: Expected return: 9.00%" in decision.reasoning


def test_passing_hold_consensus_holds():
    consensus = _consensus(recommendation="hold", rebalance=2, hold=6)

    decision = DecisionValidator().validate(consensus, _risk(0.2))

    assert decision.action == "hold"
    assert "Majority of votes recommends holding" in decision.reasoning


def test_low_confidence_forces_hold():
    decision = DecisionValidator().validate(_consensus(avg_confidence=0.55), _risk(0.2))

    assert decision.action == "hold"
    assert any("Confidence 55.0% below minimum 60.0%" in line for line in decision.reasoning)


def test_weak_consensus_forces_hold():
    decision = DecisionValidator().validate(_consensus(ratio=0.6), _risk(0.2))

    assert decision.action == "hold"
    assert any("below threshold" in line for line in decision.reasoning)


def test_risk_above_ceiling_forces_hold():
    decision = DecisionValidator().validate(_consensus(), _risk(0.75))

    assert decision.action == "hold"
    assert any("exceeds risk ceiling" in line for line in decision.reasoning)


def test_every_failing_gate_is_reported_in_order():
    passed, failures = check_gates(
        _consensus(avg_confidence=0.5, ratio=0.5), _risk(0.9), GovernanceThresholds()
    )

    assert not passed
    assert [f.split()[0] for f in failures] == ["Confidence", "Consensus", "Overall"]


def test_gates_are_inclusive_at_the_threshold():
    passed, failures = check_gates(
        _consensus(avg_confidence=0.6, ratio=0.7), _risk(0.7), GovernanceThresholds()
    )

    assert passed
    assert failures == []


def test_no_input_is_reported():
    consensus = ConsensusResult(abstain_count=12, rounds_completed=3)

    decision = DecisionValidator().validate(consensus, _risk(0.1))

    assert decision.action == "hold"
    assert any(NO_INPUT_MESSAGE in line for line in decision.reasoning)


def test_explicit_thresholds_override_defaults():
    strict = GovernanceThresholds(minimum_confidence=0.8)

    decision = DecisionValidator().validate(_consensus(), _risk(0.2), thresholds=strict)

    assert decision.action == "hold"


@pytest.mark.parametrize(
    "overrides",
    [{"minimum_confidence": 1.2}, {"consensus_threshold": -0.1}, {"risk_ceiling": 2.0}],
)
def test_out_of_range_thresholds_raise(overrides):
    with pytest.raises(ConfigurationError):
        GovernanceThresholds.from_settings(Settings(_env_file=None, **overrides))
