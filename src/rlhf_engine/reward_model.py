"""Linear reward model over the interpretable response features.

The model is an immutable snapshot: ``refit`` returns a new instance with a
fresh weights mapping, so concurrent scorers holding the old snapshot never
see a partially updated model.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

import numpy as np

from .comparisons import Comparison
from .features import FEATURE_NAMES, extract_features, feature_array

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RewardModel:
    weights: Dict[str, float] = field(default_factory=dict)
    bias: float = 0.0

    def weight_vector(self) -> np.ndarray:
        return np.array([self.weights.get(name, 0.0) for name in FEATURE_NAMES], dtype=float)

    def raw_score(self, features: Dict[str, float]) -> float:
        return float(self.bias + self.weight_vector() @ feature_array(features))

    def score_features(self, features: Dict[str, float]) -> float:
        return max(0.0, min(1.0, self.raw_score(features)))

    def score(self, response: str, question: str) -> float:
        """Reward in [0, 1] for ``response`` to ``question``."""
        return self.score_features(extract_features(response, question))

    def refit(self, comparisons: Sequence[Comparison], window: int = 500,
              min_comparisons: int = 10, learning_rate: float = 0.1) -> Optional["RewardModel"]:
        """Return a refit model, or ``None`` if there is too little data.

        Each comparison in the trailing ``window`` nudges every weight by
        ``learning_rate * (chosen - rejected)``. Updates accumulate on top of
        the current weights without decay or normalization.
        """
        recent = list(comparisons)[-window:] if window > 0 else []
        if len(recent) < min_comparisons:
            logger.debug(f"Refit skipped: {len(recent)} comparisons < {min_comparisons}")
            return None

        deltas = np.zeros(len(FEATURE_NAMES), dtype=float)
        for comp in recent:
            chosen = feature_array(extract_features(comp.chosen, comp.question))
            rejected = feature_array(extract_features(comp.rejected, comp.question))
            deltas += chosen - rejected

        updated = self.weight_vector() + learning_rate * deltas
        weights = dict(self.weights)
        weights.update({name: float(w) for name, w in zip(FEATURE_NAMES, updated)})
        return RewardModel(weights=weights, bias=self.bias)

    def to_dict(self) -> Dict[str, Any]:
        return {"weights": dict(self.weights), "bias": self.bias}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RewardModel":
        weights = {k: float(v) for k, v in (data.get("weights") or {}).items() if k in FEATURE_NAMES}
        return cls(weights=weights, bias=float(data.get("bias", 0.0)))
