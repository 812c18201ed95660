"""Tests for the decision ledger and its performance heuristics."""

from datetime import timedelta

import pytest

from crossvote.exceptions import ConfigurationError
from crossvote.trading.ledger import DEFAULT_RECENT_RETURN, DEFAULT_SUCCESS_RATE, DecisionLedger
from crossvote.trading.models import Decision
from tests.factories import T0


def _decision(action="rebalance", confidence=0.8, at=T0):
    return Decision(action=action, confidence=confidence, consensus=0.75, timestamp=at)


def test_record_assigns_unique_ids():
    ledger = DecisionLedger()

    first = ledger.record(_decision())
    second = ledger.record(_decision())

    assert first.id != second.id
    assert first.id.startswith("decision_")
    assert len(ledger) == 2


def test_capacity_evicts_oldest_first():
    ledger = DecisionLedger(capacity=5)
    records = [ledger.record(_decision(at=T0 + timedelta(minutes=i))) for i in range(8)]

    history = ledger.history()

    assert len(ledger) == 5
    assert [r.id for r in history] == [r.id for r in records[3:]]


def test_history_limit_returns_most_recent_last():
    ledger = DecisionLedger()
    records = [ledger.record(_decision(at=T0 + timedelta(minutes=i))) for i in range(4)]

    assert [r.id for r in ledger.history(2)] == [r.id for r in records[2:]]
    assert ledger.history(0) == []


def test_defaults_without_rebalances():
    ledger = DecisionLedger()
    ledger.record(_decision(action="hold", confidence=0.3))

    recent = ledger.recent_performance()

    assert ledger.success_rate() == DEFAULT_SUCCESS_RATE
    assert recent.avg_return == DEFAULT_RECENT_RETURN
    assert recent.sample_size == 0


def test_success_rate_counts_confident_rebalances():
    ledger = DecisionLedger()
    for confidence in (0.9, 0.8, 0.5, 0.6):
        ledger.record(_decision(confidence=confidence))
    ledger.record(_decision(action="hold", confidence=0.1))

    # 0.6 is not above the success cut-off
    assert ledger.success_rate() == pytest.approx(0.5)


def test_recent_performance_uses_confidence_proxy_over_window():
    ledger = DecisionLedger(performance_window=2)
    for confidence in (0.5, 0.9, 0.7):
        ledger.record(_decision(confidence=confidence))

    recent = ledger.recent_performance()

    assert recent.sample_size == 2
    assert recent.avg_return == pytest.approx(((0.9 - 0.5) * 0.1 + (0.7 - 0.5) * 0.1) / 2)


def test_realized_outcomes_override_heuristics():
    ledger = DecisionLedger()
    record = ledger.record(_decision(confidence=0.9))

    updated = ledger.record_outcome(record.id, succeeded=False, realized_return=-0.02)

    assert updated.confidence == 0.9
    assert updated.outcome.succeeded is False
    assert ledger.success_rate() == 0.0
    assert ledger.recent_performance().avg_return == pytest.approx(-0.02)


def test_record_outcome_unknown_id():
    with pytest.raises(KeyError):
        DecisionLedger().record_outcome("decision_missing", succeeded=True)


def test_last_rebalance_skips_holds():
    ledger = DecisionLedger()
    rebalance = ledger.record(_decision(at=T0))
    ledger.record(_decision(action="hold", at=T0 + timedelta(hours=1)))

    assert ledger.last_rebalance().id == rebalance.id


def test_average_confidence():
    ledger = DecisionLedger()
    assert ledger.average_confidence() == 0.0

    ledger.record(_decision(confidence=0.8))
    ledger.record(_decision(action="hold", confidence=0.4))

    assert ledger.average_confidence() == pytest.approx(0.6)


@pytest.mark.parametrize("kwargs", [{"capacity": 0}, {"performance_window": 0}])
def test_invalid_sizes(kwargs):
    with pytest.raises(ConfigurationError):
        DecisionLedger(**kwargs)
