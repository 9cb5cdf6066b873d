"""
Result Caches

Two distinct eviction policies for pipeline results:

- LRUResultCache: bounded by capacity. When full, inserting a new key
  evicts the oldest-inserted key. Reads do not refresh an entry's
  position, so "least recently used" here means least recently inserted.
- TTLResultCache: unbounded, every entry expires a fixed time after it
  was stored. Used for the long-running pipelines.

Cache keys come from fingerprint(). The fingerprint is deliberately
coarse: entity counts, the date range, one (type, headline amount)
tuple per scenario and the pipeline name. Two inputs that differ only in
secondary parameters share a key; pass use_cache=False when that matters.

Neither cache is thread-safe. They are written only by the orchestrator
on a single event loop.
"""

import hashlib
import json
import time
from collections import OrderedDict
from typing import Any, Callable, Generic, Optional, TypeVar

from futurefund.models.execution import PipelineInput
from futurefund.models.scenario import Scenario, ScenarioType, check_exhaustive


V = TypeVar("V")


# =============================================================================
# FINGERPRINT
# =============================================================================

# Parameter that best identifies a scenario of each type
_HEADLINE_AMOUNT: dict[ScenarioType, str] = check_exhaustive({
    ScenarioType.JOB_CHANGE: "new_salary",
    ScenarioType.CAREER_BREAK: "lost_income",
    ScenarioType.HOME_PURCHASE: "home_price",
    ScenarioType.MAJOR_EXPENSE: "amount",
    ScenarioType.LARGE_PURCHASE: "amount",
    ScenarioType.DEBT_PAYOFF: "debt_amount",
    ScenarioType.INVESTMENT: "investment_amount",
    ScenarioType.EMERGENCY_FUND: "target_amount",
    ScenarioType.CASH_HOARDING: "monthly_contribution",
    ScenarioType.EXPENSE_CHANGE: "monthly_change",
    ScenarioType.CUSTOM: "monthly_impact",
}, "headline amounts")


def headline_amount(scenario: Scenario) -> Optional[float]:
    """The amount used in the cache key, falling back to parameters['amount']."""
    key = _HEADLINE_AMOUNT.get(scenario.type, "amount") if scenario.type else "amount"
    if scenario.has(key):
        return scenario.amount(key)
    if scenario.has("amount"):
        return scenario.amount("amount")
    return None


def fingerprint(pipeline_name: str, pipeline_input: PipelineInput) -> str:
    """Stable SHA-256 key for a pipeline run."""
    date_range = None
    if pipeline_input.date_range is not None:
        date_range = [
            pipeline_input.date_range.start.isoformat(),
            pipeline_input.date_range.end.isoformat(),
        ]

    accounts = len(pipeline_input.context.accounts) if pipeline_input.context else 0
    key_data = {
        "pipeline": pipeline_name,
        "transaction_count": pipeline_input.transaction_count,
        "account_count": accounts,
        "date_range": date_range,
        "scenarios": [
            [s.type.value if s.type else None, headline_amount(s)]
            for s in pipeline_input.scenario_set
        ],
    }
    payload = json.dumps(key_data, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


# =============================================================================
# CACHES
# =============================================================================

class _StatsMixin:
    def _init_stats(self) -> None:
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def _record(self, hit: bool) -> None:
        if hit:
            self.hits += 1
        else:
            self.misses += 1

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class LRUResultCache(_StatsMixin, Generic[V]):
    """Capacity-bounded cache evicting the oldest-inserted key."""

    name = "lru"

    def __init__(self, capacity: int = 50):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: "OrderedDict[str, V]" = OrderedDict()
        self._init_stats()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def keys(self) -> list[str]:
        return list(self._entries)

    def get(self, key: str) -> Optional[V]:
        value = self._entries.get(key)
        self._record(value is not None)
        return value

    def set(self, key: str, value: V) -> Optional[str]:
        """
        Store a value.

        Replacing an existing key keeps its position. Returns the evicted
        key, if any.
        """
        if key in self._entries:
            self._entries[key] = value
            return None

        evicted = None
        if len(self._entries) >= self.capacity:
            evicted, _ = self._entries.popitem(last=False)
            self.evictions += 1
        self._entries[key] = value
        return evicted

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def stats(self) -> dict[str, Any]:
        return {
            "size": len(self._entries),
            "capacity": self.capacity,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "hit_rate": self.hit_rate,
        }


class TTLResultCache(_StatsMixin, Generic[V]):
    """Cache whose entries expire `ttl_seconds` after being stored."""

    name = "ttl"

    def __init__(
        self,
        ttl_seconds: float = 30 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, V]] = {}
        self._init_stats()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self._live(key) is not None

    def _live(self, key: str) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            self.evictions += 1
            return None
        return value

    def get(self, key: str) -> Optional[V]:
        value = self._live(key)
        self._record(value is not None)
        return value

    def set(self, key: str, value: V) -> None:
        self._entries[key] = (self._clock(), value)

    def purge_expired(self) -> int:
        """Drop every expired entry. Returns how many were dropped."""
        now = self._clock()
        expired = [
            k for k, (stored_at, _) in self._entries.items()
            if now - stored_at >= self.ttl_seconds
        ]
        for k in expired:
            del self._entries[k]
        self.evictions += len(expired)
        return len(expired)

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def stats(self) -> dict[str, Any]:
        return {
            "size": len(self._entries),
            "ttl_seconds": self.ttl_seconds,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "hit_rate": self.hit_rate,
        }
