"""Protocols for the collaborators the engine consumes but does not own.

Kept light-weight so storage backends and kill-switch sources can be
swapped (or faked in tests) without touching the engine.
"""
from __future__ import annotations

from typing import Any, Dict, Optional, Protocol


class KeyValueStore(Protocol):
    def load(self, key: str) -> Optional[Dict[str, Any]]: ...  # pragma: no cover

    def save(self, key: str, value: Dict[str, Any]) -> None: ...  # pragma: no cover


class FeatureGate(Protocol):
    def is_disabled(self, feature: str) -> bool: ...  # pragma: no cover


__all__ = [
    "KeyValueStore",
    "FeatureGate",
]
