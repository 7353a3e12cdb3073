"""Key-value persistence backends and the persisted record schema."""
from __future__ import annotations

import copy
import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


class KVEntry(Base):
    __tablename__ = "kv_store"
    key = Column(String(200), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


# ---- Persisted record schema -------------------------------------------------

class StoredComparison(BaseModel):
    id: str
    question: str
    responseA: str
    responseB: str
    preferred: str = Field(pattern=r"^[ABab]$")
    timestamp: int


class StoredRewardModel(BaseModel):
    weights: Dict[str, float] = Field(default_factory=dict)
    bias: float = 0.0


class StoredStats(BaseModel):
    totalComparisons: int = Field(0, ge=0)
    modelUpdates: int = Field(0, ge=0)


class PersistedState(BaseModel):
    """Shape of the single record the engine reads and writes."""
    comparisons: List[StoredComparison] = Field(default_factory=list)
    rewardModel: StoredRewardModel = Field(default_factory=StoredRewardModel)
    stats: StoredStats = Field(default_factory=StoredStats)


# ---- Backends ----------------------------------------------------------------

class InMemoryKeyValueStore:
    """Process-local store; values are deep-copied on the way in and out."""

    def __init__(self, initial: Optional[Dict[str, Dict[str, Any]]] = None):
        self._data: Dict[str, Dict[str, Any]] = copy.deepcopy(initial or {})
        self.save_count = 0

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    def save(self, key: str, value: Dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(value)
        self.save_count += 1


class SqlKeyValueStore:
    """JSON documents in a single SQLAlchemy table, one row per key."""

    def __init__(self, db_url: Optional[str] = None):
        self.db_url = db_url or settings.db_url
        if self.db_url.startswith("sqlite:///"):
            db_dir = os.path.dirname(self.db_url.replace("sqlite:///", ""))
            if db_dir and not os.path.exists(db_dir):
                os.makedirs(db_dir, exist_ok=True)
            self.engine = create_engine(self.db_url, connect_args={"check_same_thread": False})
        else:
            self.engine = create_engine(self.db_url)
        self.SessionLocal = sessionmaker(bind=self.engine)
        Base.metadata.create_all(self.engine)

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        with self.SessionLocal() as session:
            entry = session.get(KVEntry, key)
            if entry is None:
                return None
            return json.loads(entry.value)

    def save(self, key: str, value: Dict[str, Any]) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        with self.SessionLocal() as session:
            entry = session.get(KVEntry, key)
            if entry is None:
                session.add(KVEntry(key=key, value=payload))
            else:
                entry.value = payload
            session.commit()

    def close(self):  # pragma: no cover - trivial
        self.engine.dispose()
