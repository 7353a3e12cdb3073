"""Boolean feature gate over an admin-controlled kill-switch status map.

The map itself is produced elsewhere (a remote poller); this only answers
``is_disabled(feature)``. ``True`` in the map means the feature is killed.
"""
from __future__ import annotations

import json
import logging
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)

MASTER_SWITCH = "extension"


class StatusMapGate:
    def __init__(self, global_status: Optional[Mapping[str, bool]] = None,
                 user_overrides: Optional[Mapping[str, bool]] = None):
        self._status: Dict[str, bool] = {}
        self.update(global_status or {}, user_overrides)

    def update(self, global_status: Mapping[str, bool],
               user_overrides: Optional[Mapping[str, bool]] = None) -> None:
        """Swap in a new status map; user overrides win over global values."""
        merged = {str(k): bool(v) for k, v in global_status.items()}
        merged.update({str(k): bool(v) for k, v in (user_overrides or {}).items()})
        self._status = merged

    def is_disabled(self, feature: str) -> bool:
        status = self._status
        return status.get(MASTER_SWITCH, False) or status.get(feature, False)

    def snapshot(self) -> Dict[str, bool]:
        return dict(self._status)

    @classmethod
    def from_json(cls, raw: Optional[str]) -> "StatusMapGate":
        """Build a gate from a JSON object; anything unparsable leaves all features enabled."""
        if not raw or not raw.strip():
            return cls()
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring malformed kill-switch status: {e}")
            return cls()
        if not isinstance(parsed, dict):
            logger.warning("Ignoring kill-switch status that is not a JSON object")
            return cls()
        return cls(parsed)
