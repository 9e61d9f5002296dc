"""
Analysis history storage.

History is owned per user and written on a best-effort basis after a
comprehensive analysis. Two backends share the HistoryStore protocol:

- InMemoryHistoryStore: thread-safe, bounded per owner. Default for
  development and tests.
- SQLHistoryStore: SQLAlchemy Core table, works against the hosted
  Postgres database or a local SQLite file.
"""

import logging
import threading
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    func,
    insert,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from sentimentiq.core.models import AnalysisHistoryRecord
from sentimentiq.utils.errors import ConfigurationError, PersistenceError


@runtime_checkable
class HistoryStore(Protocol):
    """Storage collaborator for analysis history."""

    def insert_history(
        self,
        owner_id: str,
        text: str,
        features: List[str],
        result: Dict[str, Any],
    ) -> AnalysisHistoryRecord:
        ...

    def list_history(self, owner_id: str, limit: int = 50) -> List[AnalysisHistoryRecord]:
        """Newest first."""
        ...

    def delete_history(self, owner_id: str, record_id: str) -> bool:
        ...

    def delete_all(self, owner_id: str) -> int:
        """Remove every record of an owner (account deletion)."""
        ...


class InMemoryHistoryStore:
    """
    Thread-safe in-memory history.

    Features:
    - Per-owner isolation (records are only visible to their owner)
    - Oldest records evicted once an owner exceeds max_records_per_user
    """

    def __init__(self, max_records_per_user: int = 500):
        self.max_records_per_user = max_records_per_user
        self._records: Dict[str, "OrderedDict[str, AnalysisHistoryRecord]"] = {}
        self._lock = threading.RLock()
        self.logger = logging.getLogger("history")

    def insert_history(
        self,
        owner_id: str,
        text: str,
        features: List[str],
        result: Dict[str, Any],
    ) -> AnalysisHistoryRecord:
        record = AnalysisHistoryRecord(
            user_id=owner_id,
            text=text,
            features=list(features),
            result=result,
        )
        with self._lock:
            owned = self._records.setdefault(owner_id, OrderedDict())
            owned[record.id] = record

            while len(owned) > self.max_records_per_user:
                evicted, _ = owned.popitem(last=False)
                self.logger.debug(f"Evicted history record {evicted[:8]}...")

        self.logger.debug(f"Stored history record {record.id[:8]}... for {owner_id}")
        return record

    def list_history(self, owner_id: str, limit: int = 50) -> List[AnalysisHistoryRecord]:
        with self._lock:
            owned = list(self._records.get(owner_id, {}).values())
        owned.reverse()
        return owned[:max(limit, 0)]

    def delete_history(self, owner_id: str, record_id: str) -> bool:
        with self._lock:
            owned = self._records.get(owner_id)
            if owned is None or record_id not in owned:
                return False
            del owned[record_id]
            return True

    def delete_all(self, owner_id: str) -> int:
        with self._lock:
            owned = self._records.pop(owner_id, None)
        removed = len(owned) if owned else 0
        if removed:
            self.logger.info(f"Deleted {removed} history records for {owner_id}")
        return removed

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "owners": len(self._records),
                "records": sum(len(v) for v in self._records.values()),
                "max_records_per_user": self.max_records_per_user,
            }

    def __len__(self) -> int:
        with self._lock:
            return sum(len(v) for v in self._records.values())


metadata = MetaData()

analysis_history = Table(
    "analysis_history",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(255), nullable=False, index=True),
    Column("text", Text, nullable=False),
    Column("features", JSON, nullable=False),
    Column("result", JSON, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, index=True),
)


class SQLHistoryStore:
    """
    SQLAlchemy-backed history store.

    Maintains the same interface as InMemoryHistoryStore. Every query is
    scoped by user_id; database errors surface as PersistenceError.
    """

    def __init__(self, engine: Engine, create_tables: bool = True):
        self.engine = engine
        self.logger = logging.getLogger("history.sql")
        if create_tables:
            metadata.create_all(engine)

    @classmethod
    def from_url(cls, url: str, **engine_kwargs: Any) -> "SQLHistoryStore":
        return cls(create_engine(url, **engine_kwargs))

    def insert_history(
        self,
        owner_id: str,
        text: str,
        features: List[str],
        result: Dict[str, Any],
    ) -> AnalysisHistoryRecord:
        record = AnalysisHistoryRecord(
            user_id=owner_id,
            text=text,
            features=list(features),
            result=result,
        )
        stmt = insert(analysis_history).values(
            id=record.id,
            user_id=record.user_id,
            text=record.text,
            features=record.features,
            result=record.result,
            created_at=record.created_at,
        )
        try:
            with self.engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to insert history record: {e}", operation="insert") from e
        return record

    def list_history(self, owner_id: str, limit: int = 50) -> List[AnalysisHistoryRecord]:
        query = (
            select(analysis_history)
            .where(analysis_history.c.user_id == owner_id)
            .order_by(analysis_history.c.created_at.desc(), analysis_history.c.id)
            .limit(max(limit, 0))
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query).mappings().all()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list history: {e}", operation="list") from e

        return [
            AnalysisHistoryRecord(
                id=row["id"],
                user_id=row["user_id"],
                text=row["text"],
                features=list(row["features"] or []),
                result=dict(row["result"] or {}),
                created_at=_as_utc(row["created_at"]),
            )
            for row in rows
        ]

    def delete_history(self, owner_id: str, record_id: str) -> bool:
        stmt = delete(analysis_history).where(
            analysis_history.c.id == record_id,
            analysis_history.c.user_id == owner_id,
        )
        try:
            with self.engine.begin() as conn:
                return conn.execute(stmt).rowcount > 0
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to delete history record: {e}", operation="delete") from e

    def delete_all(self, owner_id: str) -> int:
        stmt = delete(analysis_history).where(analysis_history.c.user_id == owner_id)
        try:
            with self.engine.begin() as conn:
                return conn.execute(stmt).rowcount
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to delete history: {e}", operation="delete_all") from e

    def count(self, owner_id: Optional[str] = None) -> int:
        query = select(func.count()).select_from(analysis_history)
        if owner_id is not None:
            query = query.where(analysis_history.c.user_id == owner_id)
        with self.engine.connect() as conn:
            return int(conn.execute(query).scalar_one())


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def create_history_store(config: Optional[Dict[str, Any]] = None) -> Optional[HistoryStore]:
    """
    Factory function to create a history store from the 'history' section.

    Returns None when history is switched off (backend "none").
    """
    config = config or {}
    backend = str(config.get("backend", "memory")).lower()

    if backend == "none":
        return None
    if backend == "memory":
        return InMemoryHistoryStore(
            max_records_per_user=config.get("max_records_per_user", 500)
        )
    if backend == "sql":
        url = config.get("url")
        if not url:
            raise ConfigurationError(
                "history.url is required for the sql history backend",
                config_key="history.url",
            )
        return SQLHistoryStore.from_url(url)

    raise ConfigurationError(
        f"Unknown history backend: {backend}", config_key="history.backend"
    )
