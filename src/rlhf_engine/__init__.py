"""Preference learning from pairwise human comparisons."""

from .comparisons import Comparison, ComparisonStore, Preference
from .engine import PreferenceEngine, RankedResponse
from .features import FEATURE_NAMES, extract_features
from .reward_model import RewardModel
from .storage import InMemoryKeyValueStore, SqlKeyValueStore

__all__ = [
    "Comparison",
    "ComparisonStore",
    "Preference",
    "PreferenceEngine",
    "RankedResponse",
    "FEATURE_NAMES",
    "extract_features",
    "RewardModel",
    "InMemoryKeyValueStore",
    "SqlKeyValueStore",
]
