"""Bounded decision history and the performance signal derived from it."""

import threading
import uuid
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, List, Optional

from crossvote.analysis.models import PerformanceSnapshot, RecentPerformance
from crossvote.exceptions import ConfigurationError, LedgerStoreError
from crossvote.trading.models import Decision, DecisionOutcome, DecisionRecord
from crossvote.utils.logger import get_logger

logger = get_logger(__name__)

# Used until at least one rebalance has been recorded
DEFAULT_SUCCESS_RATE = 0.7
DEFAULT_RECENT_RETURN = 0.03


class DecisionStore(ABC):
    """Persistence backend the ledger mirrors its records into."""

    @abstractmethod
    def append(self, record: DecisionRecord) -> None:
        pass

    @abstractmethod
    def update(self, record: DecisionRecord) -> None:
        pass

    @abstractmethod
    def load_recent(self, limit: int) -> List[DecisionRecord]:
        """Newest `limit` records, oldest first."""
        pass

    @abstractmethod
    def prune(self, keep: int) -> None:
        pass


class DecisionLedger:
    """Append-only, FIFO-bounded history of recorded decisions.

    Appends and reads are serialized by one lock, so readers observe the
    history either before or after an append, never in between.
    """

    def __init__(
        self,
        capacity: int = 100,
        store: Optional[DecisionStore] = None,
        performance_window: int = 10,
    ):
        """Initialize ledger.

        Args:
            capacity: Maximum number of records kept (default: 100)
            store: Optional persistence backend; the newest `capacity`
                records are loaded from it on start-up
            performance_window: Default window for recent_performance

        Raises:
            ConfigurationError: If capacity or window is below 1
        """
        if capacity < 1:
            raise ConfigurationError(f"Ledger capacity must be at least 1, got {capacity}")
        if performance_window < 1:
            raise ConfigurationError(
                f"Performance window must be at least 1, got {performance_window}"
            )

        self.capacity = capacity
        self.performance_window = performance_window
        self.store = store
        self._records: Deque[DecisionRecord] = deque(maxlen=capacity)
        self._lock = threading.Lock()

        if store is not None:
            self._hydrate()

    def _hydrate(self) -> None:
        try:
            records = self.store.load_recent(self.capacity)
        except LedgerStoreError as e:
            logger.warning(f"Could not load decision history: {e}")
            return
        with self._lock:
            self._records.extend(records)
        logger.info(f"Loaded {len(records)} decision records from store")

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def record(self, decision: Decision) -> DecisionRecord:
        """Append a decision, evicting the oldest record beyond capacity.

        Args:
            decision: Decision to record

        Returns:
            The stored record
        """
        fields = {name: getattr(decision, name) for name in Decision.model_fields}
        record = DecisionRecord(id=f"decision_{uuid.uuid4().hex[:12]}", **fields)

        with self._lock:
            self._records.append(record)

        if self.store is not None:
            try:
                self.store.append(record)
                self.store.prune(self.capacity)
            except LedgerStoreError as e:
                logger.warning(f"Could not persist decision {record.id}: {e}")

        logger.info(
            f"Decision recorded: {record.action} (confidence: {record.confidence:.1%})"
        )
        return record

    def history(self, limit: Optional[int] = None) -> List[DecisionRecord]:
        """Recorded decisions, most recent last.

        Args:
            limit: Return only the newest `limit` records (None = all)
        """
        with self._lock:
            records = list(self._records)
        if limit is not None:
            if limit <= 0:
                return []
            records = records[-limit:]
        return records

    def last_rebalance(self) -> Optional[DecisionRecord]:
        for record in reversed(self.history()):
            if record.action == "rebalance":
                return record
        return None

    def record_outcome(
        self,
        record_id: str,
        succeeded: bool,
        realized_return: Optional[float] = None,
    ) -> DecisionRecord:
        """Attach a realized settlement outcome to a recorded decision.

        The recorded confidence is left untouched.

        Raises:
            KeyError: If no record with that id is held
        """
        outcome = DecisionOutcome(succeeded=succeeded, realized_return=realized_return)
        with self._lock:
            for index, record in enumerate(self._records):
                if record.id == record_id:
                    updated = record.model_copy(update={"outcome": outcome})
                    self._records[index] = updated
                    break
            else:
                raise KeyError(f"Decision record '{record_id}' not found")

        if self.store is not None:
            try:
                self.store.update(updated)
            except LedgerStoreError as e:
                logger.warning(f"Could not persist outcome for {record_id}: {e}")
        return updated

    def _rebalances(self) -> List[DecisionRecord]:
        return [r for r in self.history() if r.action == "rebalance"]

    def success_rate(self) -> float:
        """Fraction of rebalance decisions considered successful.

        A realized outcome decides when one has been reported; otherwise a
        rebalance recorded with confidence above 0.6 counts as a success.
        """
        rebalances = self._rebalances()
        if not rebalances:
            return DEFAULT_SUCCESS_RATE

        successes = 0
        for record in rebalances:
            if record.outcome is not None:
                if record.outcome.succeeded:
                    successes += 1
            elif record.confidence > 0.6:
                successes += 1
        return successes / len(rebalances)

    def recent_performance(self, window: Optional[int] = None) -> RecentPerformance:
        """Average return proxy over the last `window` rebalance decisions.

        The proxy is the realized return when reported, else
        (confidence - 0.5) * 0.1, i.e. within +/-5%.
        """
        window = window or self.performance_window
        recent = self._rebalances()[-window:]
        if not recent:
            return RecentPerformance(avg_return=DEFAULT_RECENT_RETURN, sample_size=0)

        returns = []
        for record in recent:
            if record.outcome is not None and record.outcome.realized_return is not None:
                returns.append(record.outcome.realized_return)
            else:
                returns.append((record.confidence - 0.5) * 0.1)

        return RecentPerformance(avg_return=sum(returns) / len(returns), sample_size=len(returns))

    def performance_snapshot(self) -> PerformanceSnapshot:
        return PerformanceSnapshot(
            success_rate=self.success_rate(),
            recent=self.recent_performance(),
        )

    def average_confidence(self) -> float:
        records = self.history()
        if not records:
            return 0.0
        return sum(r.confidence for r in records) / len(records)
