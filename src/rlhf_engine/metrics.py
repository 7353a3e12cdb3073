"""Lightweight in-memory metrics for the preference engine.

Avoids external dependencies. Counters are updated under the engine's own
locking for writes; read-path counters rely on GIL-protected increments."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Any
import time
import math


@dataclass
class _LatencyStats:
    count: int = 0
    total: float = 0.0
    min: float = math.inf
    max: float = 0.0

    def record(self, value: float):
        self.count += 1
        self.total += value
        if value < self.min:
            self.min = value
        if value > self.max:
            self.max = value

    def snapshot(self) -> Dict[str, Any]:
        if self.count == 0:
            return {"count": 0, "avg_ms": 0.0, "min_ms": 0.0, "max_ms": 0.0}
        return {
            "count": self.count,
            "avg_ms": (self.total / self.count) * 1000.0,
            "min_ms": self.min * 1000.0 if self.min is not math.inf else 0.0,
            "max_ms": self.max * 1000.0,
        }


@dataclass
class MetricsCollector:
    comparisons_recorded: int = 0
    refits: int = 0
    refits_skipped: int = 0
    persistence_failures: int = 0
    score_calls: int = 0
    rank_calls: int = 0
    ranked_responses: int = 0
    refit_latency: _LatencyStats = field(default_factory=_LatencyStats)
    rank_latency: _LatencyStats = field(default_factory=_LatencyStats)

    def record_comparison(self):
        self.comparisons_recorded += 1

    def record_refit(self, latency_s: float, applied: bool):
        if applied:
            self.refits += 1
            self.refit_latency.record(latency_s)
        else:
            self.refits_skipped += 1

    def record_persistence_failure(self):
        self.persistence_failures += 1

    def record_score(self):
        self.score_calls += 1

    def record_rank(self, responses: int, latency_s: float):
        self.rank_calls += 1
        self.ranked_responses += responses
        self.rank_latency.record(latency_s)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "comparisons": {
                "recorded": self.comparisons_recorded,
                "persistence_failures": self.persistence_failures,
            },
            "refit": {
                "applied": self.refits,
                "skipped": self.refits_skipped,
                "latency": self.refit_latency.snapshot(),
            },
            "scoring": {
                "score_calls": self.score_calls,
                "rank_calls": self.rank_calls,
                "avg_responses_per_rank": (self.ranked_responses / self.rank_calls) if self.rank_calls else 0.0,
                "rank_latency": self.rank_latency.snapshot(),
            },
        }


def time_block():
    start = time.perf_counter()
    def end():
        return time.perf_counter() - start
    return end
