"""
Eligibility checks run before a decision cycle may start.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from crossvote.exceptions import ConfigurationError
from crossvote.sources.base import EmergencyPredicate, MarketSuitabilityPredicate
from crossvote.trading.ledger import DecisionLedger
from crossvote.trading.models import EligibilityResult
from crossvote.utils.logger import get_logger

logger = get_logger(__name__)


class EligibilityGate:
    """Decides whether a new cycle may start: cooldown, emergencies, market."""

    def __init__(
        self,
        ledger: DecisionLedger,
        emergency_predicates: Optional[Sequence[EmergencyPredicate]] = None,
        market_predicate: Optional[MarketSuitabilityPredicate] = None,
        cooldown: timedelta = timedelta(hours=24),
        retry_window: timedelta = timedelta(hours=2),
    ):
        """Initialize gate.

        Args:
            ledger: Decision history consulted for the last rebalance
            emergency_predicates: Ordered emergency conditions
            market_predicate: Market suitability check (None = always suitable)
            cooldown: Minimum time between two rebalances (default: 24h)
            retry_window: Wait after an unsuitable market (default: 2h)

        Raises:
            ConfigurationError: If a duration is negative
        """
        if cooldown < timedelta(0) or retry_window < timedelta(0):
            raise ConfigurationError("Cooldown and retry window must not be negative")

        self.ledger = ledger
        self.emergency_predicates: List[EmergencyPredicate] = list(emergency_predicates or [])
        self.market_predicate = market_predicate
        self.cooldown = cooldown
        self.retry_window = retry_window
        self.stop_reason: Optional[str] = None

    def engage_stop(self, reason: str) -> None:
        """Block every cycle until release_stop() is called."""
        self.stop_reason = reason or "manual"

    def release_stop(self) -> None:
        self.stop_reason = None

    def check_cooldown(self, now: datetime) -> EligibilityResult:
        """Reject while the last rebalance is younger than the cooldown."""
        last = self.ledger.last_rebalance()
        if last is not None and now - last.timestamp < self.cooldown:
            return EligibilityResult(
                allowed=False,
                reason="Too soon since last rebalance (cooldown period active)",
                next_eligible_time=last.timestamp + self.cooldown,
            )
        return EligibilityResult(allowed=True)

    async def check_emergencies(self, now: datetime) -> EligibilityResult:
        """Evaluate emergency conditions in order; the first one true wins.

        A predicate that raises is treated as tripped and retried after the
        retry window.
        """
        if self.stop_reason is not None:
            return EligibilityResult(
                allowed=False,
                reason=f"Emergency stop engaged: {self.stop_reason}",
                next_eligible_time=None,
            )

        for predicate in self.emergency_predicates:
            try:
                tripped = await predicate.check()
            except Exception as e:
                logger.warning(f"Emergency check '{predicate.name}' failed: {e}")
                return EligibilityResult(
                    allowed=False,
                    reason=f"Emergency check failed: {predicate.name}",
                    next_eligible_time=now + self.retry_window,
                )
            if tripped:
                return EligibilityResult(
                    allowed=False,
                    reason=f"Emergency condition: {predicate.name}",
                    next_eligible_time=None,
                )
        return EligibilityResult(allowed=True)

    async def check_market(self, now: datetime) -> EligibilityResult:
        if self.market_predicate is None:
            return EligibilityResult(allowed=True)

        try:
            verdict = await self.market_predicate.check()
            suitable, reason = verdict.suitable, verdict.reason
        except Exception as e:
            logger.warning(f"Market suitability check failed: {e}")
            suitable, reason = False, f"check failed ({e})"

        if not suitable:
            return EligibilityResult(
                allowed=False,
                reason=f"Unsuitable market conditions: {reason or 'unspecified'}",
                next_eligible_time=now + self.retry_window,
            )
        return EligibilityResult(allowed=True)

    async def check_eligibility(self, now: datetime) -> EligibilityResult:
        """Run cooldown, emergency and market checks in that order.

        Args:
            now: Current time (timezone-aware)

        Returns:
            The first failing check's result, or an allowed result
        """
        result = self.check_cooldown(now)
        if not result.allowed:
            return result

        result = await self.check_emergencies(now)
        if not result.allowed:
            return result

        return await self.check_market(now)
