"""Preference engine: comparison history, reward model and stats in one owner.

One ``PreferenceEngine`` is built at process start and injected wherever
comparisons are recorded or responses are scored. Writers are serialized by
a lock so the refit-interval check, the refit and the persisted write happen
as one unit; readers work against the current immutable model snapshot.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError

from .comparisons import Comparison, ComparisonStore, Preference
from .config import Settings, settings as default_settings
from .features import extract_features
from .interfaces import KeyValueStore
from .metrics import MetricsCollector, time_block
from .reward_model import RewardModel
from .storage import InMemoryKeyValueStore, PersistedState

logger = logging.getLogger(__name__)

EXPORT_VERSION = 1


@dataclass(frozen=True)
class RankedResponse:
    original_index: int
    response: str
    reward: float

    def to_dict(self) -> Dict[str, Any]:
        return {"originalIndex": self.original_index, "response": self.response, "reward": self.reward}


class PreferenceEngine:
    def __init__(self, store: Optional[KeyValueStore] = None, config: Optional[Settings] = None,
                 metrics: Optional[MetricsCollector] = None, load: bool = True):
        self.config = config or default_settings
        self.store = store if store is not None else InMemoryKeyValueStore()
        self.metrics = metrics or MetricsCollector()
        self._lock = threading.RLock()

        self.comparisons = ComparisonStore(max_size=self.config.max_stored_comparisons)
        self._model = RewardModel()
        self.total_comparisons = 0
        self.model_updates = 0

        if load:
            self.load()

    # ---- State load / save ---------------------------------------------------
    def load(self) -> bool:
        """Replace in-memory state with the persisted record.

        Missing, unreadable or malformed records leave empty defaults in
        place. Never raises.
        """
        key = self.config.storage_key
        try:
            raw = self.store.load(key)
        except Exception as e:
            logger.warning(f"Failed to load preference state '{key}', starting empty: {e}")
            return False
        if raw is None:
            logger.info(f"No stored preference state under '{key}', starting empty")
            return False
        try:
            state = PersistedState.model_validate(raw)
            comparisons = [Comparison.from_dict(c.model_dump()) for c in state.comparisons]
            model = RewardModel.from_dict(state.rewardModel.model_dump())
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(f"Malformed preference state under '{key}', using defaults: {e}")
            return False

        with self._lock:
            self.comparisons = ComparisonStore(self.config.max_stored_comparisons, comparisons)
            self._model = model
            self.total_comparisons = state.stats.totalComparisons
            self.model_updates = state.stats.modelUpdates
        logger.info(
            f"Loaded preference state: {len(self.comparisons)} comparisons, "
            f"{self.model_updates} model updates"
        )
        return True

    def _snapshot_locked(self) -> Dict[str, Any]:
        return {
            "comparisons": self.comparisons.to_list(),
            "rewardModel": self._model.to_dict(),
            "stats": {
                "totalComparisons": self.total_comparisons,
                "modelUpdates": self.model_updates,
            },
        }

    def _persist_locked(self) -> bool:
        try:
            self.store.save(self.config.storage_key, self._snapshot_locked())
            return True
        except Exception as e:
            # In-memory state stays authoritative; the next successful save catches up.
            self.metrics.record_persistence_failure()
            logger.error(f"Failed to persist preference state: {e}", exc_info=True)
            return False

    # ---- Mutations -----------------------------------------------------------
    def record_comparison(self, question: str, response_a: str, response_b: str,
                          preferred: Union[str, Preference]) -> str:
        """Record which of two responses a human preferred; returns its id."""
        with self._lock:
            comparison = self.comparisons.create(question, response_a, response_b, preferred)
            self.total_comparisons += 1
            self.metrics.record_comparison()
            if self.total_comparisons % self.config.refit_interval == 0:
                self._refit_locked()
            self._persist_locked()
        return comparison.id

    def refit(self) -> bool:
        """Refit the reward model from recent history now; True if it changed."""
        with self._lock:
            applied = self._refit_locked()
            if applied:
                self._persist_locked()
        return applied

    def _refit_locked(self) -> bool:
        timer = time_block()
        window = self.comparisons.recent(self.config.refit_window)
        updated = self._model.refit(
            window,
            window=self.config.refit_window,
            min_comparisons=self.config.min_comparisons_for_refit,
            learning_rate=self.config.learning_rate,
        )
        if updated is None:
            self.metrics.record_refit(timer(), applied=False)
            return False
        self._model = updated
        self.model_updates += 1
        self.metrics.record_refit(timer(), applied=True)
        logger.info(f"Reward model updated from {len(window)} comparisons (update #{self.model_updates})")
        return True

    # ---- Reads ---------------------------------------------------------------
    @property
    def reward_model(self) -> RewardModel:
        return self._model

    def extract_features(self, response: str, question: str) -> Dict[str, float]:
        return extract_features(response, question)

    def calculate_reward(self, response: str, question: str) -> float:
        self.metrics.record_score()
        return self._model.score(response, question)

    score = calculate_reward

    def rank_responses(self, responses: Sequence[str], question: str) -> List[RankedResponse]:
        """Order candidates by descending reward; ties keep their input order."""
        if isinstance(responses, str) or not isinstance(responses, Sequence):
            raise TypeError("responses must be a sequence of str")
        if not isinstance(question, str):
            raise TypeError(f"question must be str, got {type(question).__name__}")
        timer = time_block()
        model = self._model
        scored = [RankedResponse(i, r, model.score(r, question)) for i, r in enumerate(responses)]
        scored.sort(key=lambda item: item.reward, reverse=True)
        self.metrics.record_rank(len(scored), timer())
        return scored

    rank = rank_responses

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "totalComparisons": self.total_comparisons,
                "modelUpdates": self.model_updates,
                "numWeightedFeatures": len(self._model.weights),
                "comparisonsStored": len(self.comparisons),
            }

    def export_data(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "version": EXPORT_VERSION,
                "comparisons": self.comparisons.to_list(),
                "rewardModel": self._model.to_dict(),
                "stats": self.get_stats(),
                "exportedAt": datetime.now(timezone.utc).isoformat(),
            }
