"""Concurrent input gathering from opinion and risk collaborators."""

import asyncio
import math
from typing import Awaitable, Dict, Optional

from crossvote.analysis.models import AgentInput, GatheredInputs, RequestContext
from crossvote.analysis.risk import RiskAssessor
from crossvote.exceptions import ConfigurationError
from crossvote.sources.base import RiskProvider, SignalSource, StrategySource
from crossvote.utils.logger import get_logger

logger = get_logger(__name__)

GATHER_DEADLINE_MESSAGE = "gather deadline exceeded"


class InputAggregator:
    """Pulls strategy, signal and risk inputs with per-source failure isolation."""

    def __init__(
        self,
        strategy_source: StrategySource,
        signal_source: SignalSource,
        liquidity_provider: Optional[RiskProvider] = None,
        technical_provider: Optional[RiskProvider] = None,
        risk_assessor: Optional[RiskAssessor] = None,
        fetch_timeout: float = 10.0,
        gather_timeout: float = 30.0,
    ):
        """Initialize aggregator.

        Args:
            strategy_source: Strategy evaluator collaborator
            signal_source: Market signal collaborator
            liquidity_provider: Liquidity risk collaborator (None = always default)
            technical_provider: Technical risk collaborator (None = always default)
            risk_assessor: Assessor combining the risk components
            fetch_timeout: Timeout for each individual fetch in seconds
            gather_timeout: Overall deadline for the whole gather in seconds

        Raises:
            ConfigurationError: If a timeout is not positive
        """
        if fetch_timeout <= 0 or gather_timeout <= 0:
            raise ConfigurationError("Fetch and gather timeouts must be positive")

        self.strategy_source = strategy_source
        self.signal_source = signal_source
        self.liquidity_provider = liquidity_provider
        self.technical_provider = technical_provider
        self.risk_assessor = risk_assessor or RiskAssessor()
        self.fetch_timeout = fetch_timeout
        self.gather_timeout = gather_timeout

    async def gather(
        self, context: RequestContext, timeout: Optional[float] = None
    ) -> GatheredInputs:
        """Gather all inputs for one cycle.

        Every fetch runs as its own task with its own timeout. Fetches still
        pending at the overall deadline are cancelled and treated as
        unavailable rather than failing the cycle.

        Args:
            context: Caller request context
            timeout: Overall deadline in seconds. If None, uses gather_timeout.

        Returns:
            Gathered inputs with the combined risk assessment
        """
        deadline = timeout or self.gather_timeout

        tasks: Dict[str, asyncio.Task] = {
            "strategy": asyncio.create_task(
                self._safe_fetch(
                    "strategy",
                    self._fetch_strategy(context),
                )
            ),
            "signal": asyncio.create_task(
                self._safe_fetch("signal", self._fetch_signal())
            ),
        }
        if self.liquidity_provider is not None:
            tasks["liquidity"] = asyncio.create_task(
                self._safe_estimate(self.liquidity_provider)
            )
        if self.technical_provider is not None:
            tasks["technical"] = asyncio.create_task(
                self._safe_estimate(self.technical_provider)
            )

        try:
            done, pending = await asyncio.wait(tasks.values(), timeout=deadline)
        except asyncio.CancelledError:
            for task in tasks.values():
                task.cancel()
            raise

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        results = {}
        for name, task in tasks.items():
            if task in done:
                results[name] = task.result()
            else:
                logger.warning(f"{name} input still pending after {deadline}s, treating as unavailable")
                results[name] = None

        strategy = results["strategy"] or AgentInput.unavailable("strategy", GATHER_DEADLINE_MESSAGE)
        signal = results["signal"] or AgentInput.unavailable("signal", GATHER_DEADLINE_MESSAGE)

        risk = self.risk_assessor.assess(
            strategy,
            signal,
            liquidity=results.get("liquidity"),
            technical=results.get("technical"),
        )

        logger.info(
            f"Inputs gathered: strategy={'ok' if strategy.available else 'unavailable'}, "
            f"signal={'ok' if signal.available else 'unavailable'}, "
            f"overall risk={risk.overall:.2f}"
        )

        return GatheredInputs(strategy=strategy, signal=signal, risk=risk)

    async def _fetch_strategy(self, context: RequestContext) -> AgentInput:
        params = dict(context.params)
        if context.request:
            params.setdefault("request", context.request)
        evaluation = await self.strategy_source.evaluate(params)
        return AgentInput(
            source="strategy",
            available=True,
            confidence=evaluation.confidence,
            payload=evaluation,
        )

    async def _fetch_signal(self) -> AgentInput:
        snapshot = await self.signal_source.snapshot()
        return AgentInput(
            source="signal",
            available=True,
            confidence=snapshot.confidence,
            payload=snapshot,
        )

    async def _safe_fetch(self, name: str, fetch: Awaitable[AgentInput]) -> AgentInput:
        """Run one fetch under its own timeout, converting failure to unavailable.

        Args:
            name: Source name
            fetch: Awaitable producing the input

        Returns:
            The fetched input, or an unavailable placeholder
        """
        try:
            return await asyncio.wait_for(fetch, timeout=self.fetch_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{name} source timed out after {self.fetch_timeout}s")
            return AgentInput.unavailable(name, f"timed out after {self.fetch_timeout}s")
        except Exception as e:
            logger.warning(f"{name} source failed: {e}")
            return AgentInput.unavailable(name, str(e) or type(e).__name__)

    async def _safe_estimate(self, provider: RiskProvider) -> Optional[float]:
        """Fetch a risk estimate, returning None on failure or timeout."""
        try:
            value = await asyncio.wait_for(provider.estimate(), timeout=self.fetch_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{provider.name} risk provider timed out after {self.fetch_timeout}s")
            return None
        except Exception as e:
            logger.warning(f"{provider.name} risk provider failed: {e}")
            return None

        if value is None:
            logger.warning(f"{provider.name} risk provider returned no usable value")
            return None
        try:
            value = float(value)
        except (TypeError, ValueError):
            logger.warning(f"{provider.name} risk provider returned non-numeric value {value!r}")
            return None
        if math.isnan(value):
            logger.warning(f"{provider.name} risk provider returned no usable value")
            return None
        return value
