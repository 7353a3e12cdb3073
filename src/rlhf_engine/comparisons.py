"""Recorded pairwise preferences and the bounded history that holds them."""
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)


class Preference(str, Enum):
    A = "A"
    B = "B"

    @classmethod
    def parse(cls, value: Union[str, "Preference"]) -> "Preference":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise TypeError(f"preferred must be 'A' or 'B', got {type(value).__name__}")
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ValueError(f"preferred must be 'A' or 'B', got {value!r}") from None


@dataclass(frozen=True)
class Comparison:
    id: str
    question: str
    response_a: str
    response_b: str
    preferred: Preference
    timestamp: int  # epoch milliseconds

    @property
    def chosen(self) -> str:
        return self.response_a if self.preferred is Preference.A else self.response_b

    @property
    def rejected(self) -> str:
        return self.response_b if self.preferred is Preference.A else self.response_a

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "question": self.question,
            "responseA": self.response_a,
            "responseB": self.response_b,
            "preferred": self.preferred.value,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Comparison":
        return cls(
            id=data["id"],
            question=data["question"],
            response_a=data["responseA"],
            response_b=data["responseB"],
            preferred=Preference.parse(data["preferred"]),
            timestamp=int(data["timestamp"]),
        )


class ComparisonStore:
    """Ordered, size-capped history of comparisons (oldest first).

    Appending past ``max_size`` drops the oldest entries. Timestamps are
    kept non-decreasing even if the wall clock steps backwards.
    """

    def __init__(self, max_size: int = 1000, comparisons: Optional[Iterable[Comparison]] = None):
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self._items: List[Comparison] = list(comparisons or [])[-max_size:]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))

    @property
    def last_timestamp(self) -> int:
        return self._items[-1].timestamp if self._items else 0

    def create(self, question: str, response_a: str, response_b: str,
               preferred: Union[str, Preference]) -> Comparison:
        for name, value in (("question", question), ("response_a", response_a), ("response_b", response_b)):
            if not isinstance(value, str):
                raise TypeError(f"{name} must be str, got {type(value).__name__}")
        now_ms = max(int(time.time() * 1000), self.last_timestamp)
        comparison = Comparison(
            id=f"comp_{uuid.uuid4().hex}",
            question=question,
            response_a=response_a,
            response_b=response_b,
            preferred=Preference.parse(preferred),
            timestamp=now_ms,
        )
        self.append(comparison)
        return comparison

    def append(self, comparison: Comparison) -> None:
        self._items.append(comparison)
        overflow = len(self._items) - self.max_size
        if overflow > 0:
            del self._items[:overflow]
            logger.debug(f"Pruned {overflow} oldest comparison(s)")

    def recent(self, limit: int) -> List[Comparison]:
        """Trailing window of at most ``limit`` comparisons, oldest first."""
        if limit <= 0:
            return []
        return self._items[-limit:]

    def to_list(self) -> List[Dict[str, Any]]:
        return [c.to_dict() for c in self._items]
