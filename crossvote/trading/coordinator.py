"""
Main orchestrator for governed rebalancing decisions.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence, Union

from crossvote.analysis.aggregator import InputAggregator
from crossvote.analysis.consensus import aggregate
from crossvote.analysis.models import GatheredInputs, RequestContext, RiskAssessment
from crossvote.analysis.risk import RiskAssessor, RiskWeights
from crossvote.analysis.voting import VoteJitter, VotingEngine
from crossvote.config import Settings, get_settings
from crossvote.exceptions import ConfigurationError, CycleCancelledError, PipelineTimeoutError
from crossvote.sources.base import (
    EmergencyPredicate,
    MarketSuitabilityPredicate,
    RiskProvider,
    SignalSource,
    StrategySource,
)
from crossvote.sources.static import default_emergency_predicates
from crossvote.trading.eligibility import EligibilityGate
from crossvote.trading.ledger import DecisionLedger, DecisionStore
from crossvote.trading.models import (
    Decision,
    DecisionRecord,
    GovernanceThresholds,
    PerformanceReview,
    SessionStatus,
)
from crossvote.trading.planner import ExecutionPlanner
from crossvote.trading.session import SessionLock
from crossvote.trading.validator import DecisionValidator
from crossvote.utils.helpers import utc_now
from crossvote.utils.logger import get_logger

logger = get_logger(__name__)

EVALUATION_IN_PROGRESS = "Evaluation in progress"


class VotingCoordinator:
    """Runs one governed decision cycle at a time.

    Cycle: eligibility -> gather -> voting -> validation -> (plan) -> record.
    Only eligibility rejections skip the ledger.
    """

    def __init__(
        self,
        strategy_source: StrategySource,
        signal_source: SignalSource,
        liquidity_provider: Optional[RiskProvider] = None,
        technical_provider: Optional[RiskProvider] = None,
        emergency_predicates: Optional[Sequence[EmergencyPredicate]] = None,
        market_predicate: Optional[MarketSuitabilityPredicate] = None,
        settings: Optional[Settings] = None,
        thresholds: Optional[GovernanceThresholds] = None,
        ledger: Optional[DecisionLedger] = None,
        store: Optional[DecisionStore] = None,
        jitter: Optional[VoteJitter] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize coordinator.

        Args:
            strategy_source: Strategy evaluator collaborator
            signal_source: Market signal collaborator
            liquidity_provider: Liquidity risk collaborator
            technical_provider: Technical risk collaborator
            emergency_predicates: Ordered emergency conditions (default: the
                three standard conditions, all clear)
            market_predicate: Market suitability check
            settings: Configuration (default: environment settings)
            thresholds: Gate thresholds (default: from settings)
            ledger: Decision ledger (default: a new one sized from settings)
            store: Persistence backend for a new ledger
            jitter: Vote confidence noise (default: from settings)
            clock: Returns the current timezone-aware time

        Raises:
            ConfigurationError: If any threshold, weight or timeout is invalid
        """
        self.settings = settings or get_settings()
        s = self.settings

        if s.max_rounds < 1:
            raise ConfigurationError(f"max_rounds must be at least 1, got {s.max_rounds}")
        if s.decision_timeout <= 0:
            raise ConfigurationError("decision_timeout must be positive")

        self.thresholds = thresholds or GovernanceThresholds.from_settings(s)
        self.risk_assessor = RiskAssessor(
            weights=RiskWeights.from_settings(s),
            default_component_risk=s.default_component_risk,
        )
        self.aggregator = InputAggregator(
            strategy_source=strategy_source,
            signal_source=signal_source,
            liquidity_provider=liquidity_provider,
            technical_provider=technical_provider,
            risk_assessor=self.risk_assessor,
            fetch_timeout=s.fetch_timeout,
            gather_timeout=s.gather_timeout,
        )
        self.voting_engine = VotingEngine(
            jitter=jitter or VoteJitter(s.jitter_amplitude, s.jitter_seed)
        )
        self.validator = DecisionValidator(self.thresholds)
        self.planner = ExecutionPlanner.from_settings(s)

        if ledger is None:
            if store is None and s.persist_decisions:
                from crossvote.database.repositories import DecisionRepository

                store = DecisionRepository()
            ledger = DecisionLedger(
                capacity=s.ledger_capacity,
                store=store,
                performance_window=s.performance_window,
            )
        self.ledger = ledger

        if emergency_predicates is None:
            emergency_predicates = default_emergency_predicates()
        self.gate = EligibilityGate(
            ledger=self.ledger,
            emergency_predicates=emergency_predicates,
            market_predicate=market_predicate,
            cooldown=timedelta(hours=s.cooldown_hours),
            retry_window=timedelta(hours=s.market_retry_hours),
        )

        self.clock = clock or utc_now
        self._session = SessionLock()
        self._in_progress = False
        self._cancel_requested = False
        self._cycle_risk: Optional[RiskAssessment] = None
        self._last_decision: Optional[Decision] = None

    def evaluate(self, context: Union[RequestContext, str, None] = None) -> Decision:
        """Run a full cycle from synchronous code.

        Safe to call from several threads at once; calls are serialized by
        the session lock like evaluate_async.

        Args:
            context: Request context or plain request text

        Returns:
            The decision for this cycle
        """
        return asyncio.run(self.evaluate_async(context))

    async def evaluate_async(
        self, context: Union[RequestContext, str, None] = None
    ) -> Decision:
        """Run a full cycle under the session lock.

        With concurrency_mode "queue" concurrent callers wait in FIFO order;
        with "reject" they get a reject decision immediately.
        """
        if context is None:
            context = RequestContext()
        elif isinstance(context, str):
            context = RequestContext(request=context)

        if self.settings.concurrency_mode == "reject":
            if not self._session.try_acquire():
                logger.info("Evaluation requested while another cycle is running, rejecting")
                return Decision(
                    action="reject",
                    reasoning=[EVALUATION_IN_PROGRESS],
                    timestamp=self.clock(),
                    metadata={"reason": "evaluation in progress"},
                )
        else:
            await self._session.acquire()

        self._in_progress = True
        self._cancel_requested = False
        self._cycle_risk = None
        try:
            return await self._evaluate_locked(context)
        finally:
            self._in_progress = False
            self._cancel_requested = False
            self._session.release()

    async def _run_with_deadline(self, context: RequestContext) -> Decision:
        timeout = self.settings.decision_timeout
        try:
            return await asyncio.wait_for(self._run_cycle(context), timeout=timeout)
        except asyncio.TimeoutError:
            raise PipelineTimeoutError(f"no decision within {timeout:g}s")

    async def _evaluate_locked(self, context: RequestContext) -> Decision:
        try:
            decision = await self._run_with_deadline(context)
        except PipelineTimeoutError as e:
            logger.warning(f"Decision pipeline timed out ({e}), forcing hold")
            decision = self._forced_hold(f"Pipeline timeout: {e}", "pipeline timeout")
        except CycleCancelledError as e:
            logger.warning(f"Decision cycle cancelled: {e}")
            decision = self._forced_hold(f"Cancelled: {e}", "cancelled")

        if decision.action == "reject":
            logger.info(f"Rebalance rejected: {decision.reasoning[0]}")
            self._last_decision = decision
            return decision

        if decision.action == "rebalance":
            plan = self.planner.plan(decision)
            decision = decision.model_copy(update={"execution_plan": plan})

        decision = decision.model_copy(update={"timestamp": self.clock()})
        self.ledger.record(decision)
        self._last_decision = decision
        return decision

    async def _run_cycle(self, context: RequestContext) -> Decision:
        now = self.clock()
        logger.info("Starting rebalancing decision cycle")

        eligibility = await self.gate.check_eligibility(now)
        if not eligibility.allowed:
            return Decision(
                action="reject",
                reasoning=[eligibility.reason],
                timestamp=now,
                next_eligible_time=eligibility.next_eligible_time,
                metadata={"reason": eligibility.reason},
            )

        self._check_cancelled("before gathering inputs")
        inputs = await self.aggregator.gather(context)
        self._check_cancelled("after gathering inputs")

        self._cycle_risk = inputs.risk
        inputs = inputs.model_copy(update={"performance": self.ledger.performance_snapshot()})

        rounds = await self.voting_engine.run_voting(
            inputs,
            max_rounds=self.settings.max_rounds,
            consensus_threshold=self.thresholds.consensus_threshold,
            should_stop=lambda: self._cancel_requested,
        )
        consensus = aggregate(rounds)
        decision = self.validator.validate(consensus, inputs.risk)

        unavailable = self._unavailable_reasoning(inputs)
        if unavailable:
            decision = decision.model_copy(update={"reasoning": unavailable + decision.reasoning})
        return decision

    @staticmethod
    def _unavailable_reasoning(inputs: GatheredInputs) -> List[str]:
        lines = []
        for agent_input in (inputs.strategy, inputs.signal):
            if not agent_input.available:
                lines.append(f"{agent_input.source.capitalize()} input unavailable: {agent_input.error}")
        return lines

    def _check_cancelled(self, where: str) -> None:
        if self._cancel_requested:
            raise CycleCancelledError(f"cancelled {where}")

    def _forced_hold(self, message: str, reason: str) -> Decision:
        overall = self._cycle_risk.overall if self._cycle_risk is not None else 0.0
        return Decision(
            action="hold",
            overall_risk=overall,
            reasoning=[message],
            timestamp=self.clock(),
            metadata={"reason": reason},
        )

    def cancel(self) -> bool:
        """Ask the running cycle to stop at its next checkpoint.

        Returns:
            True if a cycle was running
        """
        if not self._in_progress:
            return False
        self._cancel_requested = True
        return True

    def emergency_stop(self, reason: str = "manual") -> None:
        """Block all cycles until resume() and cancel the running one."""
        logger.warning(f"Emergency stop engaged: {reason}")
        self.gate.engage_stop(reason)
        self.cancel()

    def resume(self) -> None:
        logger.info("Emergency stop released")
        self.gate.release_stop()

    def history(self, limit: Optional[int] = None) -> List[DecisionRecord]:
        return self.ledger.history(limit)

    def record_outcome(
        self, record_id: str, succeeded: bool, realized_return: Optional[float] = None
    ) -> DecisionRecord:
        return self.ledger.record_outcome(record_id, succeeded, realized_return)

    def status(self) -> SessionStatus:
        last = self._last_decision
        if last is None:
            history = self.ledger.history(1)
            last = history[-1] if history else None
        return SessionStatus(
            in_progress=self._in_progress,
            last_decision=last,
            success_rate=self.ledger.success_rate(),
            emergency_stop=self.gate.stop_reason,
            ledger_size=len(self.ledger),
        )

    def performance_review(self) -> PerformanceReview:
        """Summarize the decision history with improvement suggestions."""
        return build_performance_review(self.ledger)


def build_performance_review(ledger: DecisionLedger) -> PerformanceReview:
    records = ledger.history()
    rebalances = sum(1 for r in records if r.action == "rebalance")
    success_rate = ledger.success_rate()
    recent = ledger.recent_performance()
    avg_confidence = ledger.average_confidence()

    improvements = []
    if recent.avg_return < 0.02:
        improvements.append("Consider more aggressive yield opportunities")
    if avg_confidence < 0.7:
        improvements.append("Improve data quality and agent coordination")
    if success_rate < 0.6:
        improvements.append("Review and adjust risk parameters")

    return PerformanceReview(
        total_decisions=len(records),
        rebalance_decisions=rebalances,
        hold_decisions=len(records) - rebalances,
        success_rate=success_rate,
        recent_avg_return=recent.avg_return,
        recent_sample_size=recent.sample_size,
        avg_confidence=avg_confidence,
        improvements=improvements,
    )
