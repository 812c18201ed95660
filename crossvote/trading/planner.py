"""
Execution plan synthesis for approved rebalance decisions.
"""

from typing import Dict, List, Optional, Tuple

from crossvote.config import Settings, get_settings
from crossvote.exceptions import ConfigurationError
from crossvote.trading.models import Decision, ExecutionPlan, ExecutionStep

RISK_MITIGATION = [
    "Verify sufficient liquidity before execution",
    "Monitor gas prices for optimal execution",
    "Implement circuit breakers for emergency stops",
    "Verify bridge health status",
]

MONITORING = [
    "Track execution progress in real-time",
    "Monitor cross-chain message delivery",
    "Verify final balances and allocations",
    "Record performance metrics for learning",
]

# (action, description) in execution order
PLAN_STEPS: List[Tuple[str, str]] = [
    ("pre_execution_health_check", "Verify all contracts and balances"),
    ("execute_rebalance", "Execute cross-chain rebalancing"),
    ("post_execution_verification", "Verify successful execution and update records"),
]


class ExecutionPlanner:
    """Expands an approved rebalance into an ordered, costed step plan.

    Estimates come from configuration, never from live queries; the plan is
    only a description for the execution backend.
    """

    def __init__(
        self,
        estimates: Optional[Dict[str, Tuple[int, int]]] = None,
        dry_run: bool = True,
    ):
        """Initialize planner.

        Args:
            estimates: Mapping of step action to (seconds, gas units)
            dry_run: Flag passed through to every plan

        Raises:
            ConfigurationError: If an estimate is missing or negative
        """
        estimates = estimates or {
            "pre_execution_health_check": (30, 50_000),
            "execute_rebalance": (300, 500_000),
            "post_execution_verification": (60, 30_000),
        }
        for action, _ in PLAN_STEPS:
            if action not in estimates:
                raise ConfigurationError(f"Missing estimate for plan step '{action}'")
            seconds, gas = estimates[action]
            if seconds < 0 or gas < 0:
                raise ConfigurationError(f"Negative estimate for plan step '{action}'")
        self.estimates = estimates
        self.dry_run = dry_run

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ExecutionPlanner":
        settings = settings or get_settings()
        return cls(
            estimates={
                "pre_execution_health_check": (
                    settings.health_check_seconds,
                    settings.health_check_gas,
                ),
                "execute_rebalance": (settings.rebalance_seconds, settings.rebalance_gas),
                "post_execution_verification": (
                    settings.verification_seconds,
                    settings.verification_gas,
                ),
            },
            dry_run=settings.dry_run,
        )

    def plan(self, decision: Decision) -> ExecutionPlan:
        """Build the plan for a rebalance decision.

        Raises:
            ValueError: If the decision is not a rebalance
        """
        if decision.action != "rebalance":
            raise ValueError(f"Cannot plan execution for a '{decision.action}' decision")

        steps = []
        for step_id, (action, description) in enumerate(PLAN_STEPS, 1):
            seconds, gas = self.estimates[action]
            steps.append(
                ExecutionStep(
                    id=step_id,
                    action=action,
                    description=description,
                    estimated_seconds=seconds,
                    estimated_gas_units=gas,
                )
            )

        return ExecutionPlan(
            steps=steps,
            total_time=sum(s.estimated_seconds for s in steps),
            total_gas=sum(s.estimated_gas_units for s in steps),
            dry_run=self.dry_run,
            risk_mitigation=list(RISK_MITIGATION),
            monitoring=list(MONITORING),
        )
