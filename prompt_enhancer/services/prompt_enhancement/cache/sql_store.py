"""
Durable cache store backed by SQLAlchemy.
"""

import json
import asyncio
import logging
from datetime import datetime
from typing import Optional, Callable, Any

from sqlalchemy import Column, String, Float, Text, DateTime, Integer, create_engine, delete, or_
from sqlalchemy.orm import declarative_base, sessionmaker

from ..interfaces import ICacheStore
from ..models import CacheEntry, FrameworkDetectionResult
from ..exceptions import CacheStoreError

logger = logging.getLogger(__name__)

Base = declarative_base()


class PromptCacheRecord(Base):
    __tablename__ = "prompt_cache"

    key = Column(String(64), primary_key=True)
    original_prompt = Column(Text, nullable=False, default="")
    enhanced_prompt = Column(Text, nullable=False)
    context_snapshot = Column(Text, nullable=False)
    framework_detection = Column(Text)
    quality_score = Column(Float, default=0.0)
    hits = Column(Integer, default=0)
    project_signature = Column(String(64))
    complexity = Column(String(16))
    created_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, index=True)


class SQLCacheStore(ICacheStore):
    """
    Cache store persisting entries in a relational table.

    Each operation runs in its own session on the default thread pool, so
    blocking database I/O never stalls the event loop and independent keys
    never share state.
    """

    def __init__(self, database_url: str = "sqlite:///data/prompt_cache.db"):
        """
        Initialize store and create the table if needed.

        Args:
            database_url: SQLAlchemy database URL
        """
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        self.engine = create_engine(database_url, connect_args=connect_args)
        Base.metadata.create_all(self.engine)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.info(f"Prompt cache table ready at {self.engine.url.render_as_string(hide_password=True)}")

    async def get(self, key: str) -> Optional[CacheEntry]:
        try:
            return await self._run(self._read, key)
        except Exception as e:
            raise CacheStoreError(f"Failed to read cache entry {key}: {e}") from e

    async def put(self, entry: CacheEntry):
        try:
            await self._run(self._write, entry)
        except Exception as e:
            raise CacheStoreError(f"Failed to write cache entry {entry.key}: {e}") from e

    async def delete(self, key: str) -> bool:
        try:
            return await self._run(self._delete, key)
        except Exception as e:
            raise CacheStoreError(f"Failed to delete cache entry {key}: {e}") from e

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        try:
            return await self._run(self._purge_expired, now or datetime.utcnow())
        except Exception as e:
            raise CacheStoreError(f"Failed to purge expired cache entries: {e}") from e

    async def invalidate(self, pattern: Optional[str] = None) -> int:
        if pattern is None:
            return await self.purge_expired()
        try:
            return await self._run(self._invalidate, pattern)
        except Exception as e:
            raise CacheStoreError(f"Failed to invalidate cache entries matching '{pattern}': {e}") from e

    async def close(self):
        await self._run(self.engine.dispose)

    async def _run(self, operation: Callable[..., Any], *args) -> Any:
        return await asyncio.get_event_loop().run_in_executor(None, operation, *args)

    def _read(self, key: str) -> Optional[CacheEntry]:
        with self._session_factory() as session:
            record = session.get(PromptCacheRecord, key)
            if record is None:
                return None
            return self._to_entry(record)

    def _write(self, entry: CacheEntry):
        with self._session_factory() as session:
            session.merge(self._to_record(entry))
            session.commit()

    def _delete(self, key: str) -> bool:
        with self._session_factory() as session:
            result = session.execute(delete(PromptCacheRecord).where(PromptCacheRecord.key == key))
            session.commit()
            return result.rowcount > 0

    def _purge_expired(self, now: datetime) -> int:
        with self._session_factory() as session:
            result = session.execute(
                delete(PromptCacheRecord).where(
                    PromptCacheRecord.expires_at.is_not(None),
                    PromptCacheRecord.expires_at <= now
                )
            )
            session.commit()
            return result.rowcount

    def _invalidate(self, pattern: str) -> int:
        with self._session_factory() as session:
            result = session.execute(
                delete(PromptCacheRecord).where(or_(
                    PromptCacheRecord.key.contains(pattern, autoescape=True),
                    PromptCacheRecord.original_prompt.contains(pattern, autoescape=True)
                ))
            )
            session.commit()
            return result.rowcount

    def _to_record(self, entry: CacheEntry) -> PromptCacheRecord:
        return PromptCacheRecord(
            key=entry.key,
            original_prompt=entry.original_prompt,
            enhanced_prompt=entry.enhanced_prompt,
            context_snapshot=entry.context_snapshot,
            framework_detection=json.dumps(entry.framework_detection.to_dict()),
            quality_score=entry.quality_score,
            hits=entry.hits,
            project_signature=entry.project_signature,
            complexity=entry.complexity,
            created_at=entry.created_at,
            expires_at=entry.expires_at
        )

    def _to_entry(self, record: PromptCacheRecord) -> CacheEntry:
        detection = json.loads(record.framework_detection or "{}")
        return CacheEntry(
            key=record.key,
            enhanced_prompt=record.enhanced_prompt,
            context_snapshot=record.context_snapshot,
            framework_detection=FrameworkDetectionResult(
                detected_frameworks=detection.get("detected_frameworks", []),
                confidence=detection.get("confidence", 0.0),
                detection_method=detection.get("detection_method", "none")
            ),
            quality_score=record.quality_score or 0.0,
            hits=record.hits or 0,
            created_at=record.created_at,
            original_prompt=record.original_prompt or "",
            project_signature=record.project_signature,
            complexity=record.complexity or "medium",
            expires_at=record.expires_at
        )
