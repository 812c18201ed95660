"""Tests for execution plan synthesis."""

import pytest

from crossvote.config import Settings
from crossvote.exceptions import ConfigurationError
from crossvote.trading.models import Decision
from crossvote.trading.planner import MONITORING, RISK_MITIGATION, ExecutionPlanner


def test_rebalance_plan_has_three_ordered_steps():
    plan = ExecutionPlanner().plan(Decision(action="rebalance", confidence=0.75, consensus=0.75))

    assert [step.id for step in plan.steps] == [1, 2, 3]
    assert [step.action for step in plan.steps] == [
        "pre_execution_health_check",
        "execute_rebalance",
        "post_execution_verification",
    ]
    assert plan.total_time == 390
    assert plan.total_gas == 580_000
    assert plan.dry_run is True
    assert plan.risk_mitigation == RISK_MITIGATION
    assert plan.monitoring == MONITORING


def test_totals_follow_configured_estimates():
    settings = Settings(_env_file=None, rebalance_seconds=600, rebalance_gas=900_000, dry_run=False)

    plan = ExecutionPlanner.from_settings(settings).plan(Decision(action="rebalance"))

    assert plan.total_time == 30 + 600 + 60
    assert plan.total_gas == 50_000 + 900_000 + 30_000
    assert plan.dry_run is False


@pytest.mark.parametrize("action", ["hold", "reject"])
def test_only_rebalances_are_planned(action):
    with pytest.raises(ValueError):
        ExecutionPlanner().plan(Decision(action=action))


def test_missing_estimate_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        ExecutionPlanner(estimates={"execute_rebalance": (300, 500_000)})


def test_negative_estimate_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        ExecutionPlanner.from_settings(Settings(_env_file=None, health_check_gas=-1))
